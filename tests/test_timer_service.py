"""
Tests for the timer state machine against a real (in-memory) store.
"""

import datetime
import pytest

from timebill.domain.errors import InvalidInput, NoActiveTimer, StoreError, TimerAlreadyRunning
from timebill.domain.models import ActiveTimer, TrackerPreferences
from timebill.infra.repository import SqlEntryStore
from timebill.services.clock import FixedClock
from timebill.services.timer_service import TimerService

UTC = datetime.timezone.utc


def make_service(store, clock, user_id="anna", tz=UTC):
    return TimerService(store, user_id, clock=clock, tz=tz)


class TestStart:

    @pytest.mark.asyncio
    async def test_start_creates_active_timer(self, store, clock):
        service = make_service(store, clock)
        started = []
        service.timer_started.connect(lambda timer: started.append(timer))

        timer = await service.start("client-a", "project-1", "Design")

        assert service.is_running
        assert timer.start_time == clock.now()
        stored = await store.get_active_timer("anna")
        assert stored.client_id == "client-a"
        assert stored.project_id == "project-1"
        assert stored.description == "Design"
        assert stored.start_time == clock.now()
        assert started == [timer]

    @pytest.mark.asyncio
    async def test_start_requires_client(self, store, clock):
        service = make_service(store, clock)
        with pytest.raises(InvalidInput):
            await service.start("")
        assert await store.get_active_timer("anna") is None

    @pytest.mark.asyncio
    async def test_start_while_running_fails(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        clock.advance(minutes=5)

        with pytest.raises(TimerAlreadyRunning):
            await service.start("client-b")

        stored = await store.get_active_timer("anna")
        assert stored.client_id == "client-a"

    @pytest.mark.asyncio
    async def test_start_detects_timer_started_elsewhere(self, store, clock):
        """Another device started a timer; this service has not seen it yet."""
        await store.upsert_active_timer(ActiveTimer(
            user_id="anna", client_id="client-x", start_time=clock.now()
        ))
        service = make_service(store, clock)

        with pytest.raises(TimerAlreadyRunning):
            await service.start("client-a")
        assert service.active_timer.client_id == "client-x"

    @pytest.mark.asyncio
    async def test_timers_are_per_user(self, store, clock):
        await make_service(store, clock, "anna").start("client-a")
        await make_service(store, clock, "bram").start("client-b")
        assert len(await store.list_active_timers()) == 2


class TestTick:

    @pytest.mark.asyncio
    async def test_elapsed_is_floor_of_seconds(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        clock.advance(seconds=61.9)
        assert service.tick() == 61
        assert service.current_elapsed_seconds == 61

    @pytest.mark.asyncio
    async def test_tick_is_repeatable(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        now = clock.advance(minutes=42)
        assert service.tick(now) == service.tick(now) == 42 * 60

    @pytest.mark.asyncio
    async def test_idle_elapsed_is_zero(self, store, clock):
        service = make_service(store, clock)
        assert service.tick() == 0
        assert not service.is_running

    @pytest.mark.asyncio
    async def test_reminder_scenario(self, store, clock):
        """Pings at 30/60/90 minutes, one popup for hour two at 125 minutes."""
        service = make_service(store, clock)
        pings, popups = [], []
        service.ping.connect(lambda index: pings.append(index))
        service.popup.connect(lambda hour: popups.append(hour))

        await service.start("client-a")
        for _ in range(90):
            clock.advance(minutes=1)
            service.tick()
        assert pings == [1, 2, 3]
        assert popups == []

        for _ in range(35):
            clock.advance(minutes=1)
            service.tick()
        assert popups == [2]
        assert service.reminder_signal.kind == "popup"
        assert service.reminder_signal.hour == 2

    @pytest.mark.asyncio
    async def test_repeated_tick_does_not_refire(self, store, clock):
        service = make_service(store, clock)
        pings = []
        service.ping.connect(lambda index: pings.append(index))
        await service.start("client-a")
        now = clock.advance(minutes=30)
        service.tick(now)
        service.tick(now)
        assert pings == [1]

    @pytest.mark.asyncio
    async def test_dismiss_popup_clears_signal(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        service.tick(clock.advance(hours=2))
        assert service.reminder_signal.kind == "popup"

        service.dismiss_popup()
        assert service.reminder_signal.kind == "none"
        service.tick(clock.advance(minutes=10))
        assert service.reminder_signal.kind == "none"


class TestStop:

    @pytest.mark.asyncio
    async def test_stop_commits_entry(self, store, clock):
        service = make_service(store, clock)
        stopped = []
        service.timer_stopped.connect(lambda entry: stopped.append(entry))
        await service.start("client-a", "project-1", "Workshop")
        clock.advance(minutes=45, seconds=30)

        entry = await service.stop()

        assert entry.id is not None
        assert entry.seconds == 45 * 60 + 30
        assert entry.date == datetime.date(2026, 1, 5)
        assert entry.client_id == "client-a"
        assert entry.project_id == "project-1"
        assert entry.description == "Workshop"
        assert not service.is_running
        assert await store.get_active_timer("anna") is None
        assert [e.id for e in await store.list_entries()] == [entry.id]
        assert stopped == [entry]

    @pytest.mark.asyncio
    async def test_stop_under_a_minute_is_noop(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        clock.advance(seconds=59)

        assert await service.stop() is None
        assert service.is_running
        assert await store.get_active_timer("anna") is not None
        assert await store.list_entries() == []

    @pytest.mark.asyncio
    async def test_stop_at_exactly_a_minute(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        clock.advance(seconds=60)
        entry = await service.stop()
        assert entry.seconds == 60

    @pytest.mark.asyncio
    async def test_stop_when_idle_fails(self, store, clock):
        service = make_service(store, clock)
        with pytest.raises(NoActiveTimer):
            await service.stop()

    @pytest.mark.asyncio
    async def test_stop_uses_local_date_of_start(self, store):
        """Started 23:30 UTC is already the next day two hours east."""
        clock = FixedClock(datetime.datetime(2026, 1, 4, 23, 30, tzinfo=UTC))
        service = make_service(store, clock, tz=datetime.timezone(datetime.timedelta(hours=2)))
        await service.start("client-a")
        clock.advance(hours=1)

        entry = await service.stop()
        assert entry.date == datetime.date(2026, 1, 5)

    @pytest.mark.asyncio
    async def test_stop_resets_reminders(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        service.tick(clock.advance(hours=2))
        await service.stop()

        assert service.reminders.last_ping_index == 0
        assert service.reminders.last_popup_hour == 0
        assert service.reminder_signal.kind == "none"

    @pytest.mark.asyncio
    async def test_stop_after_timer_vanished_elsewhere(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        await store.delete_active_timer("anna")  # cancelled on another device
        clock.advance(minutes=10)

        with pytest.raises(NoActiveTimer):
            await service.stop()
        assert not service.is_running
        assert await store.list_entries() == []

    @pytest.mark.asyncio
    async def test_custom_minimum_entry_length(self, store, clock):
        prefs = TrackerPreferences(min_entry_seconds=300)
        service = TimerService(store, "anna", clock=clock, preferences=prefs, tz=UTC)
        await service.start("client-a")
        clock.advance(minutes=4)
        assert await service.stop() is None


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_discards_timer(self, store, clock):
        service = make_service(store, clock)
        cancelled = []
        service.timer_cancelled.connect(lambda: cancelled.append(True))
        await service.start("client-a")
        clock.advance(hours=3)

        await service.cancel()

        assert not service.is_running
        assert await store.get_active_timer("anna") is None
        assert await store.list_entries() == []
        assert cancelled == [True]

    @pytest.mark.asyncio
    async def test_cancel_when_idle_fails(self, store, clock):
        with pytest.raises(NoActiveTimer):
            await make_service(store, clock).cancel()

    @pytest.mark.asyncio
    async def test_can_start_again_after_cancel(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        await service.cancel()
        timer = await service.start("client-b")
        assert timer.client_id == "client-b"


class TestResync:

    @pytest.mark.asyncio
    async def test_resync_picks_up_remote_timer(self, store, clock):
        service = make_service(store, clock)
        started = clock.now() - datetime.timedelta(minutes=95)
        await store.upsert_active_timer(ActiveTimer(user_id="anna", client_id="client-x", start_time=started))

        assert await service.resync()
        assert service.current_elapsed_seconds == 95 * 60

    @pytest.mark.asyncio
    async def test_resync_after_reload_pings_once(self, store, clock):
        """Reminders re-arm from elapsed time instead of replaying every interval."""
        service = make_service(store, clock)
        pings = []
        service.ping.connect(lambda index: pings.append(index))
        started = clock.now() - datetime.timedelta(minutes=95)
        await store.upsert_active_timer(ActiveTimer(user_id="anna", client_id="client-x", start_time=started))

        await service.resync()
        service.tick()
        assert pings == [3]

    @pytest.mark.asyncio
    async def test_last_writer_wins(self, store, clock):
        """Two devices start at once: the later upsert is the timer."""
        phone = make_service(store, clock)
        laptop = make_service(store, clock)
        await phone.start("client-a")
        clock.advance(seconds=5)
        await store.upsert_active_timer(ActiveTimer(user_id="anna", client_id="client-b", start_time=clock.now()))

        await phone.resync()
        await laptop.resync()
        assert phone.active_timer == laptop.active_timer
        assert phone.active_timer.client_id == "client-b"

    @pytest.mark.asyncio
    async def test_resync_clears_vanished_timer(self, store, clock):
        service = make_service(store, clock)
        await service.start("client-a")
        await store.delete_active_timer("anna")

        assert await service.resync()
        assert not service.is_running


class FlakyStore(SqlEntryStore):
    """Store whose timer reads or deletes can be switched to fail"""

    def __init__(self, session):
        super().__init__(session)
        self.fail_reads = False
        self.fail_timer_delete = False

    async def get_active_timer(self, user_id):
        if self.fail_reads:
            raise StoreError("network down")
        return await super().get_active_timer(user_id)

    async def delete_active_timer(self, user_id):
        if self.fail_timer_delete:
            raise StoreError("network down")
        await super().delete_active_timer(user_id)


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_failed_resync_keeps_state_and_reports(self, db_session, clock):
        store = FlakyStore(db_session)
        service = make_service(store, clock)
        errors = []
        service.error_reported.connect(lambda message: errors.append(message))
        timer = await service.start("client-a")

        store.fail_reads = True
        assert not await service.resync()
        assert service.active_timer == timer
        assert errors == ["network down"]

        store.fail_reads = False
        assert await service.resync()

    @pytest.mark.asyncio
    async def test_failed_stop_leaves_no_entry(self, db_session, clock):
        store = FlakyStore(db_session)
        service = make_service(store, clock)
        await service.start("client-a")
        clock.advance(minutes=30)

        store.fail_timer_delete = True
        with pytest.raises(StoreError):
            await service.stop()

        assert await store.list_entries() == []
        assert service.is_running
        assert await store.get_active_timer("anna") is not None

    @pytest.mark.asyncio
    async def test_failed_start_changes_nothing(self, db_session, clock):
        store = FlakyStore(db_session)
        service = make_service(store, clock)
        store.fail_reads = True
        with pytest.raises(StoreError):
            await service.start("client-a")
        assert not service.is_running

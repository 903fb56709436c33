"""
Timer Service - Core time tracking logic.

Architecture Decision: Observer Pattern (Qt Signals)
The service emits signals when state changes, keeping it decoupled from UI.
A window, a tray icon or a test can all listen to the same service.

The service owns one user's stopwatch. The running timer itself lives in the
EntryStore (one row per user); the service only keeps the last snapshot it
read and always derives elapsed time from that snapshot's start instant.
"""

import datetime
import logging
import math
from typing import List, NamedTuple, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from timebill.domain.errors import InvalidInput, NoActiveTimer, StoreError, TimerAlreadyRunning
from timebill.domain.models import ActiveTimer, TimeEntry, TrackerPreferences
from timebill.infra.store import EntryStore
from timebill.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

PING_INTERVAL_MINUTES = 30
POPUP_AFTER_HOURS = 2


class ReminderDecision(NamedTuple):
    """Outcome of one reminder evaluation plus the markers to keep"""
    ping_index: int
    popup_hour: int
    ping: bool
    popup: Optional[int]


class ReminderSignal(NamedTuple):
    kind: str  # "none", "ping" or "popup"
    value: int = 0  # ping index or hour count

    @property
    def hour(self) -> Optional[int]:
        return self.value if self.kind == "popup" else None


NO_SIGNAL = ReminderSignal("none")


def evaluate_reminders(elapsed_seconds: int, last_ping_index: int, last_popup_hour: int,
                       popup_open: bool = False,
                       ping_interval_minutes: int = PING_INTERVAL_MINUTES,
                       popup_after_hours: int = POPUP_AFTER_HOURS) -> ReminderDecision:
    """
    Decide which reminders a running timer has earned.

    A ping is due whenever the number of whole ping intervals elapsed is past
    `last_ping_index`. A popup is due once the timer has run at least
    `popup_after_hours`, no popup is on screen, and the whole hour count is past
    `last_popup_hour`. Feeding the returned markers back in with the same
    elapsed value fires nothing.

    Several boundaries crossed in one step (e.g. after a reload) fire a single
    ping for the latest one.
    """
    ping_index = (elapsed_seconds // 60) // ping_interval_minutes
    ping = ping_index > 0 and ping_index > last_ping_index
    if ping:
        last_ping_index = ping_index

    popup = None
    hours = elapsed_seconds // 3600
    if hours >= popup_after_hours and not popup_open and hours > last_popup_hour:
        popup = hours
        last_popup_hour = hours

    return ReminderDecision(last_ping_index, last_popup_hour, ping, popup)


class ReminderTracker:
    """
    In-memory reminder markers for the current run.

    Nothing here is persisted. After a reload the markers start empty and
    re-arm from the elapsed time of the timer that is found.
    """

    def __init__(self, ping_interval_minutes: int = PING_INTERVAL_MINUTES,
                 popup_after_hours: int = POPUP_AFTER_HOURS):
        self.ping_interval_minutes = ping_interval_minutes
        self.popup_after_hours = popup_after_hours
        self.reset()

    def reset(self) -> None:
        self.last_ping_index = 0
        self.last_popup_hour = 0
        self.popup_open = False

    def observe(self, elapsed_seconds: int) -> List[ReminderSignal]:
        """Feed the current elapsed time; returns the signals that are newly due"""
        if elapsed_seconds <= 0:
            self.reset()
            return []

        decision = evaluate_reminders(
            elapsed_seconds,
            self.last_ping_index,
            self.last_popup_hour,
            self.popup_open,
            self.ping_interval_minutes,
            self.popup_after_hours,
        )
        self.last_ping_index = decision.ping_index
        self.last_popup_hour = decision.popup_hour

        signals = []
        if decision.ping:
            signals.append(ReminderSignal("ping", decision.ping_index))
        if decision.popup is not None:
            self.popup_open = True
            signals.append(ReminderSignal("popup", decision.popup))
        return signals

    def dismiss_popup(self) -> None:
        """User said they are still working; the next popup waits for a new hour"""
        self.popup_open = False


class TimerService(QObject):
    """
    The time tracking engine for one user. Manages state but knows nothing
    about the UI. Emits signals when things change (Observer Pattern).
    """

    # Signals
    ticked = Signal(int)  # elapsed seconds
    ping = Signal(int)  # ping index (1 = 30 min, 2 = 60 min, ...)
    popup = Signal(int)  # whole hours the timer has been running
    timer_started = Signal(object)  # ActiveTimer
    timer_stopped = Signal(object)  # TimeEntry
    timer_cancelled = Signal()
    error_reported = Signal(str)

    def __init__(self, store: EntryStore, user_id: str, clock: Optional[Clock] = None,
                 preferences: Optional[TrackerPreferences] = None,
                 tz: Optional[datetime.tzinfo] = None):
        super().__init__()
        if preferences is None:
            preferences = TrackerPreferences()

        self.store = store
        self.user_id = user_id
        self.clock = clock or SystemClock()
        self.tz = tz
        self.min_entry_seconds = preferences.min_entry_seconds

        self.active_timer: Optional[ActiveTimer] = None
        self.reminders = ReminderTracker(
            preferences.ping_interval_minutes,
            preferences.popup_after_hours,
        )
        self.reminder_signal: ReminderSignal = NO_SIGNAL

        # Created on demand; a QTimer needs a running Qt event loop
        self._ticker: Optional[QTimer] = None

    @property
    def is_running(self) -> bool:
        return self.active_timer is not None

    @property
    def current_elapsed_seconds(self) -> int:
        return self.elapsed_at(self.clock.now())

    def elapsed_at(self, now: datetime.datetime) -> int:
        """Whole seconds between the timer's start and `now`; 0 when idle"""
        if self.active_timer is None:
            return 0
        seconds = (now - self.active_timer.start_time).total_seconds()
        return max(0, math.floor(seconds))

    def local_date(self, instant: datetime.datetime) -> datetime.date:
        """Calendar day of `instant` for the owner (configured zone or system local)"""
        return instant.astimezone(self.tz).date()

    def tick(self, now: Optional[datetime.datetime] = None) -> int:
        """
        One step of the running clock.

        Recomputes elapsed time, evaluates reminders and emits the matching
        signals. Calling it again with the same `now` yields the same elapsed
        value and fires nothing new.
        """
        elapsed = self.elapsed_at(now or self.clock.now())
        if self.active_timer is None:
            return elapsed

        current = NO_SIGNAL
        for signal in self.reminders.observe(elapsed):
            current = signal
            if signal.kind == "ping":
                logger.debug("Ping %d for user %s", signal.value, self.user_id)
                self.ping.emit(signal.value)
            else:
                logger.info("Timer of user %s running for %d hours", self.user_id, signal.value)
                self.popup.emit(signal.value)

        # An open popup stays the current signal until it is dismissed
        if self.reminders.popup_open:
            current = ReminderSignal("popup", self.reminders.last_popup_hour)
        self.reminder_signal = current

        self.ticked.emit(elapsed)
        return elapsed

    def dismiss_popup(self) -> None:
        self.reminders.dismiss_popup()
        self.reminder_signal = NO_SIGNAL

    async def start(self, client_id: str, project_id: Optional[str] = None,
                    description: str = "") -> ActiveTimer:
        """
        Start the stopwatch for a client (and optionally a project).

        Raises:
            InvalidInput: no client given
            TimerAlreadyRunning: the store already holds a timer for this user
            StoreError: the store could not be read or written
        """
        if not client_id:
            raise InvalidInput("Select a client before starting the timer")

        existing = await self.store.get_active_timer(self.user_id)
        if existing is not None:
            self._adopt(existing)
            raise TimerAlreadyRunning(self.user_id)

        timer = ActiveTimer(
            user_id=self.user_id,
            client_id=client_id,
            project_id=project_id or None,
            description=description or "",
            start_time=self.clock.now(),
        )
        await self.store.upsert_active_timer(timer)

        self.active_timer = timer
        self._reset_reminders()
        logger.info("Timer started for user %s (client %s)", self.user_id, client_id)
        self.timer_started.emit(timer)
        return timer

    async def stop(self) -> Optional[TimeEntry]:
        """
        Stop the stopwatch and commit the elapsed time as a TimeEntry.

        Returns None, changing nothing, while less than the minimum entry
        length has elapsed.

        Raises:
            NoActiveTimer: no timer is running for this user
            StoreError: nothing was committed
        """
        timer = await self._fresh_timer()
        if timer is None:
            raise NoActiveTimer(self.user_id)

        elapsed = self.elapsed_at(self.clock.now())
        if elapsed < self.min_entry_seconds:
            logger.debug("Ignoring stop after %ds for user %s", elapsed, self.user_id)
            return None

        entry = TimeEntry(
            user_id=self.user_id,
            client_id=timer.client_id,
            project_id=timer.project_id,
            description=timer.description,
            seconds=elapsed,
            date=self.local_date(timer.start_time),
        )
        entry_id = await self.store.insert_entry(entry)
        try:
            await self.store.delete_active_timer(self.user_id)
        except StoreError:
            # Keep stop all-or-nothing: take the new entry back out
            try:
                await self.store.delete_entry(entry_id)
            except StoreError:
                logger.error("Could not roll back entry %s after failed stop", entry_id)
            raise

        entry = entry.model_copy(update={"id": entry_id})
        self._clear()
        logger.info("Timer stopped for user %s after %ds", self.user_id, elapsed)
        self.timer_stopped.emit(entry)
        return entry

    async def cancel(self) -> None:
        """
        Throw the running timer away without recording any time.

        Raises:
            NoActiveTimer: no timer is running for this user
            StoreError: the timer is still there
        """
        timer = await self._fresh_timer()
        if timer is None:
            raise NoActiveTimer(self.user_id)

        await self.store.delete_active_timer(self.user_id)
        self._clear()
        logger.info("Timer cancelled for user %s", self.user_id)
        self.timer_cancelled.emit()

    async def resync(self) -> bool:
        """
        Replace the in-memory snapshot with what the store holds now.

        Safe to call on any schedule. A store failure keeps the old snapshot,
        is reported through `error_reported` and returns False; the next
        resync simply tries again.
        """
        try:
            timer = await self.store.get_active_timer(self.user_id)
        except StoreError as e:
            logger.warning("Resync failed for user %s: %s", self.user_id, e)
            self.error_reported.emit(str(e))
            return False

        self._adopt(timer)
        return True

    def start_ticking(self, interval_ms: int = 1000) -> None:
        """Drive `tick` from a Qt timer (requires a running Qt event loop)"""
        if self._ticker is None:
            self._ticker = QTimer(self)
            self._ticker.timeout.connect(self._on_tick)
        self._ticker.start(interval_ms)

    def stop_ticking(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()

    def _on_tick(self):
        """Called every second to update the timer"""
        if self.active_timer is None:
            return
        self.tick()

    async def _fresh_timer(self) -> Optional[ActiveTimer]:
        timer = await self.store.get_active_timer(self.user_id)
        self._adopt(timer)
        return timer

    def _adopt(self, timer: Optional[ActiveTimer]) -> None:
        """Take over a store snapshot; another device may have changed it"""
        if timer == self.active_timer:
            return
        if timer is None:
            logger.info("Timer of user %s disappeared from the store", self.user_id)
            self._clear()
            return
        self.active_timer = timer
        self._reset_reminders()

    def _reset_reminders(self) -> None:
        self.reminders.reset()
        self.reminder_signal = NO_SIGNAL

    def _clear(self) -> None:
        self.active_timer = None
        self._reset_reminders()

"""Services layer - Business logic"""

from .catalog_service import CatalogService
from .clock import FixedClock, SystemClock
from .entry_service import EntryService
from .report_service import ReportService
from .timer_service import TimerService

__all__ = ["CatalogService", "EntryService", "FixedClock", "ReportService", "SystemClock", "TimerService"]

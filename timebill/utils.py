import sys
from pathlib import Path
from typing import Optional

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to resource, works for dev and for PyInstaller.

    Args:
        relative_path: Relative path from project root (e.g., "timebill/resources/templates")

    Returns:
        Absolute Path object
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller creates a temp folder and stores path in _MEIPASS
        base_path = Path(sys._MEIPASS)
    else:
        # Standard python execution
        # This file is in timebill/utils.py, so project root is up two levels
        base_path = Path(__file__).parent.parent.absolute()

    return base_path / relative_path


def format_duration(seconds: int) -> str:
    """Format seconds as HH:MM:SS"""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hours(seconds: int) -> str:
    """Decimal hours with two places and a decimal comma: 5400 -> '1,50'"""
    return f"{seconds / 3600:.2f}".replace('.', ',')


def format_money(amount: float, currency: str = "EUR") -> str:
    """Dutch style amount: 1234.5 -> '€ 1.234,50'"""
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    sign = "-" if amount < 0 else ""
    # swap the separators of the default 1,234.50 rendering
    text = f"{abs(amount):,.2f}".translate(str.maketrans(",.", ".,"))
    return f"{symbol} {sign}{text}"


def timer_title(elapsed_seconds: int, project_name: Optional[str] = None,
                idle_title: str = "Time tracking") -> str:
    """Window/tab title: the running time while a timer runs"""
    if elapsed_seconds > 0:
        return f"⏱️ {format_duration(elapsed_seconds)} - {project_name or 'Timer'}"
    return idle_title

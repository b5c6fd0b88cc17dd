"""Event reminder engine: timestamped events, periodic alerts, shared storage."""

from .core.engine import ReminderEngine
from .models.event import Event

__all__ = ["Event", "ReminderEngine"]

__version__ = "0.1.0"

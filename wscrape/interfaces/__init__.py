from .capture_observer import CaptureObserver
from .entry_sink import EntrySink

__all__ = ["CaptureObserver", "EntrySink"]

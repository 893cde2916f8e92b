from typing import Protocol, Sequence
from wscrape.model.login_entry import LoginEntry


class CaptureObserver(Protocol):
    """
    Receives every parsed batch after it has been handed to the store.

    Called on the capture worker thread; a slow observer delays the next
    capture cycle.
    """
    def on_capture(self, entries: Sequence[LoginEntry]) -> None: ...

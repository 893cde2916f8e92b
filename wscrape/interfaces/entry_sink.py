from typing import Protocol
from wscrape.model.login_entry import LoginEntry


class EntrySink(Protocol):
    """
    Durable destination for login entries.

    save() raises PersistenceError (or a subclass) for a single failed entry;
    the caller decides whether to continue with the rest of the batch.
    """
    def save(self, entry: LoginEntry) -> None: ...
    def close(self) -> None: ...

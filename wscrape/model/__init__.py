from .login_entry import LoginEntry, COLUMN_KEYS
from .credentials import Login

__all__ = ["LoginEntry",
           "COLUMN_KEYS",
           "Login"]

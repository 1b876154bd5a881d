from .user import User
from .admin import Admin, AdminRole
from .logs import AdminActionLog
from .key_value import KeyValueEntry

__all__ = [
    "User",
    "Admin",
    "AdminRole",
    "AdminActionLog",
    "KeyValueEntry",
]

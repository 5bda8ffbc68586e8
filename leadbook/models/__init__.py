from .user import User
from .lead import Lead
from .change_record import ChangeRecord

__all__ = ["User", "Lead", "ChangeRecord"]

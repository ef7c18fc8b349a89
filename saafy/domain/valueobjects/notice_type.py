from enum import Enum


class NoticeType(Enum):
    """Severity of a user-visible notice"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

from .health import health_check
from .token import rtc_token
from .calls import send_call_invitation

__all__ = [
    "health_check",
    "rtc_token",
    "send_call_invitation",
]

"""
Recipient lookup.

Profiles are owned by the mobile apps (they write their own push tokens to
Firestore); this server only reads them, once per invitation.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import DEFAULT_PLATFORM, RECIPIENT_LOOKUP_STRATEGIES

logger = logging.getLogger("signaling")


def _clean_token(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass(frozen=True)
class RecipientProfile:
    user_id: str
    fcm_token: Optional[str] = None
    voip_token: Optional[str] = None
    platform: str = DEFAULT_PLATFORM
    name: Optional[str] = None
    image_url: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "RecipientProfile":
        platform = data.get("platform") or DEFAULT_PLATFORM
        return cls(
            user_id=data.get("userId") or data.get("id") or "",
            fcm_token=_clean_token(data.get("fcmToken")),
            voip_token=_clean_token(data.get("voipToken")),
            platform=str(platform).strip().lower() or DEFAULT_PLATFORM,
            name=data.get("name"),
            image_url=data.get("imageUrl"),
            username=data.get("username"),
        )

    @property
    def is_ios(self) -> bool:
        return self.platform == "ios"


class DocumentKeyResolver:
    """Resolve ``users/{recipientId}`` directly."""

    def __init__(self, store):
        self.store = store

    def resolve(self, recipient_id: str) -> Optional[RecipientProfile]:
        data = self.store.get_user(recipient_id)
        if data is None:
            return None
        return RecipientProfile.from_document(data)


class FieldQueryResolver:
    """Resolve the first user whose ``field`` equals the recipient id."""

    def __init__(self, store, field: str):
        self.store = store
        self.field = field

    def resolve(self, recipient_id: str) -> Optional[RecipientProfile]:
        data = self.store.find_user_by_field(self.field, recipient_id)
        if data is None:
            return None
        return RecipientProfile.from_document(data)


def build_resolver(store, strategy: Optional[str] = None, field: Optional[str] = None):
    strategy = strategy or settings.RECIPIENT_LOOKUP
    if strategy not in RECIPIENT_LOOKUP_STRATEGIES:
        raise ImproperlyConfigured(
            f"RECIPIENT_LOOKUP must be one of {RECIPIENT_LOOKUP_STRATEGIES}, got {strategy!r}"
        )
    if strategy == "field":
        field = field or settings.RECIPIENT_LOOKUP_FIELD
        logger.info(f"Resolving recipients by users.{field}")
        return FieldQueryResolver(store, field)
    return DocumentKeyResolver(store)

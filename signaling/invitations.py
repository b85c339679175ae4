"""
Call invitation pipeline.

validate -> resolve recipient -> write call record -> push -> summary

The record write always happens before any push, and a failed write aborts
the request. Push failures never do.
"""
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import (
    CALL_RECORD_KEYS,
    CALL_STATUS_RINGING,
    CALL_TYPES,
    DEFAULT_CALL_TYPE,
    REQUIRED_INVITATION_FIELDS,
)
from .errors import ClientError, ConfigurationError, NotFoundError
from .firebase_service import FirestoreService
from .payload import build_notification_payload, stringify_data
from .push_service import build_dispatcher
from .recipients import build_resolver
from .utils import now_ms, run_async

logger = logging.getLogger("signaling")


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value) -> Optional[str]:
    return _text(value) or None


def _identifier(data: Dict[str, Any], name: str) -> str:
    """Read a required id field. Integers (numeric Agora uids) become strings."""
    value = data.get(name)
    if value is None or isinstance(value, str):
        return _text(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise ClientError(f"{name} must be a string")


@dataclass(frozen=True)
class CallInvitationRequest:
    call_id: str
    channel_name: str
    caller_uid: str
    recipient_id: str
    caller_name: str
    call_type: str = DEFAULT_CALL_TYPE
    agora_app_id: Optional[str] = None
    agora_token: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CallInvitationRequest":
        """Validate a request body. Pure: raises ClientError, touches nothing."""
        ids = {name: _identifier(data, name) for name in REQUIRED_INVITATION_FIELDS}
        missing = [name for name in REQUIRED_INVITATION_FIELDS if not ids[name]]
        if missing:
            raise ClientError("Missing required fields", missing=missing)

        call_type = _text(data.get("callType")).lower() or DEFAULT_CALL_TYPE
        if call_type not in CALL_TYPES:
            raise ClientError("Invalid callType", allowed=list(CALL_TYPES))

        extra = data.get("payload")
        if extra is None:
            extra = {}
        if not isinstance(extra, dict):
            raise ClientError("payload must be an object")

        caller_uid = ids["callerUid"]
        return cls(
            call_id=ids["callId"],
            channel_name=ids["channelName"],
            caller_uid=caller_uid,
            recipient_id=ids["recipientId"],
            caller_name=_text(data.get("callerName")) or caller_uid,
            call_type=call_type,
            agora_app_id=_optional_text(data.get("agoraAppId")),
            agora_token=_optional_text(data.get("agoraToken")),
            payload=extra,
        )

    def key(self, record_key: str) -> str:
        return self.channel_name if record_key == "channelName" else self.call_id


@dataclass(frozen=True)
class CallRecord:
    call_id: str
    channel_name: str
    caller_uid: str
    caller_name: str
    recipient_id: str
    call_type: str
    timestamp: int
    status: str = CALL_STATUS_RINGING
    agora_app_id: Optional[str] = None
    agora_token: Optional[str] = None

    @classmethod
    def for_invitation(cls, invitation: CallInvitationRequest, timestamp: int) -> "CallRecord":
        return cls(
            call_id=invitation.call_id,
            channel_name=invitation.channel_name,
            caller_uid=invitation.caller_uid,
            caller_name=invitation.caller_name,
            recipient_id=invitation.recipient_id,
            call_type=invitation.call_type,
            timestamp=timestamp,
            agora_app_id=invitation.agora_app_id,
            agora_token=invitation.agora_token,
        )

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "callId": self.call_id,
            "channelName": self.channel_name,
            "callerUid": self.caller_uid,
            "callerName": self.caller_name,
            "recipientId": self.recipient_id,
            "callType": self.call_type,
            "status": self.status,
            "timestamp": self.timestamp,
        }
        if self.agora_app_id:
            doc["agoraAppId"] = self.agora_app_id
        if self.agora_token:
            doc["agoraToken"] = self.agora_token
        return doc


def notification_text(invitation: CallInvitationRequest):
    title = f"{invitation.caller_name} is calling"
    body = f"Tap to answer {invitation.call_type} call"
    return title, body


class CallInvitationService:
    """
    Process-wide collaborators for the invitation endpoint.

    Built once (see get_invitation_service) and never mutated; tests build
    their own with fakes.
    """

    def __init__(self, store, resolver, dispatcher, record_key: str = "channelName", clock=now_ms):
        if record_key not in CALL_RECORD_KEYS:
            raise ImproperlyConfigured(
                f"CALL_RECORD_KEY must be one of {CALL_RECORD_KEYS}, got {record_key!r}"
            )
        self.store = store
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.record_key = record_key
        self.clock = clock

    def invite(self, invitation: CallInvitationRequest) -> Dict[str, Any]:
        if not self.store.is_available():
            raise ConfigurationError("firestore_unavailable")

        recipient = self.resolver.resolve(invitation.recipient_id)
        if recipient is None:
            raise NotFoundError("Recipient not found")

        key = invitation.key(self.record_key)
        record = CallRecord.for_invitation(invitation, self.clock())
        self.store.set_call_record(key, record.to_document())
        logger.info(
            f"[CALL/INVITE] Wrote call record {key} "
            f"(callId={invitation.call_id}, recipient={invitation.recipient_id})"
        )

        data = stringify_data(build_notification_payload(invitation))
        logger.debug(f"[CALL/INVITE] Push data for {key}: {data}")
        title, body = notification_text(invitation)

        result = run_async(self.dispatcher.dispatch(recipient, data, key, title, body))
        logger.info(
            f"[CALL/INVITE] {key} platform={recipient.platform} "
            f"voip={result.voip.status} fcm={result.fcm.status}"
        )

        return {
            "success": True,
            "callId": invitation.call_id,
            "channelName": invitation.channel_name,
            "platform": recipient.platform,
            "pushSent": result.any_sent,
            "notifications": result.as_dict(),
        }


@lru_cache(maxsize=None)
def get_invitation_service() -> CallInvitationService:
    store = FirestoreService()
    return CallInvitationService(
        store=store,
        resolver=build_resolver(store),
        dispatcher=build_dispatcher(),
        record_key=settings.CALL_RECORD_KEY,
    )

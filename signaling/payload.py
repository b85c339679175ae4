import json
from typing import Any, Dict, Mapping

from .constants import (
    CALLKIT_RING_DURATION_MS,
    CALLKIT_TYPE_AUDIO,
    CALLKIT_TYPE_VIDEO,
    NOTIFICATION_CLICK_ACTION,
)


def build_notification_payload(invitation) -> Dict[str, Any]:
    """
    Data map shared by every push channel.

    Identifiers and media routing first, then the CallKit-style fields the
    incoming-call UI plugins read, then the caller's own ``payload`` which
    wins on key collisions.
    """
    payload = {
        "event": "incoming_call",
        "callId": invitation.call_id,
        "channelName": invitation.channel_name,
        "callerUid": invitation.caller_uid,
        "callerName": invitation.caller_name,
        "recipientId": invitation.recipient_id,
        "callType": invitation.call_type,
        "click_action": NOTIFICATION_CLICK_ACTION,
        # CallKit / flutter_callkit_incoming
        "id": invitation.call_id,
        "nameCaller": invitation.caller_name,
        "handle": invitation.caller_uid,
        "type": CALLKIT_TYPE_AUDIO if invitation.call_type == "audio" else CALLKIT_TYPE_VIDEO,
        "duration": CALLKIT_RING_DURATION_MS,
    }
    if invitation.agora_app_id:
        payload["agoraAppId"] = invitation.agora_app_id
    if invitation.agora_token:
        payload["agoraToken"] = invitation.agora_token

    payload.update(invitation.payload or {})
    return payload


def stringify_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def stringify_data(data: Mapping[str, Any]) -> Dict[str, str]:
    """FCM data messages only accept string values; None entries are dropped."""
    return {
        str(key): stringify_value(value)
        for key, value in data.items()
        if value is not None
    }

"""
Push notification service for iOS (APNs VoIP) and FCM (Firebase Admin SDK)
"""
import hashlib
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx
import jwt
from firebase_admin import messaging

from .constants import ANDROID_CHANNEL_ID, FCM_TTL_SECONDS, IOS_CALL_CATEGORY, NOTIFICATION_CLICK_ACTION
from .firebase_service import get_firebase_app

logger = logging.getLogger("signaling")

SENT = "sent"
NOT_ATTEMPTED = "not_attempted"
FAILED = "failed"

APNS_COLLAPSE_ID_MAX_BYTES = 64


def apns_collapse_id(key: str) -> str:
    """
    HTTP headers are ASCII and APNs caps apns-collapse-id at 64 bytes.
    Keys that don't fit are replaced by their SHA-1 hex digest, which is
    stable per key so repeated invitations still collapse.
    """
    if key.isascii() and len(key) <= APNS_COLLAPSE_ID_MAX_BYTES:
        return key
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


@dataclass
class PushResult:
    """Outcome of one push channel: sent, not attempted, or failed"""
    status: str
    channel: str
    message_id: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def sent(cls, channel: str, message_id: Optional[str]) -> "PushResult":
        return cls(status=SENT, channel=channel, message_id=message_id)

    @classmethod
    def not_attempted(cls, channel: str, reason: str) -> "PushResult":
        return cls(status=NOT_ATTEMPTED, channel=channel, reason=reason)

    @classmethod
    def failed(cls, channel: str, error: str, error_code: str) -> "PushResult":
        return cls(status=FAILED, channel=channel, error=error, error_code=error_code)

    @property
    def success(self) -> bool:
        return self.status == SENT

    @property
    def attempted(self) -> bool:
        return self.status != NOT_ATTEMPTED

    def as_dict(self) -> Dict[str, Any]:
        data = {"status": self.status}
        for key in ("message_id", "reason", "error", "error_code"):
            value = getattr(self, key)
            if value is not None:
                data[_camel(key)] = value
        return data


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class APNsVoIPService:
    """
    Apple Push Notification service for VoIP pushes.
    Uses HTTP/2 with JWT authentication.
    """

    APNS_PRODUCTION_HOST = "api.push.apple.com"
    APNS_SANDBOX_HOST = "api.sandbox.push.apple.com"

    def __init__(
        self,
        team_id: Optional[str] = None,
        key_id: Optional[str] = None,
        bundle_id: Optional[str] = None,
        private_key: Optional[str] = None,
        use_sandbox: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.team_id = team_id or os.environ.get("APNS_TEAM_ID")
        self.key_id = key_id or os.environ.get("APNS_KEY_ID")
        self.bundle_id = bundle_id or os.environ.get("APNS_BUNDLE_ID")
        if use_sandbox is None:
            use_sandbox = os.environ.get("APNS_USE_SANDBOX", "0") == "1"
        self.use_sandbox = use_sandbox
        self.transport = transport

        self.private_key = private_key
        if self.private_key is None:
            # Private key can be provided as file path or direct content
            key_path = os.environ.get("APNS_KEY_PATH")
            key_content = os.environ.get("APNS_KEY_CONTENT")
            if key_path and os.path.exists(key_path):
                with open(key_path, "r") as f:
                    self.private_key = f.read()
            elif key_content:
                # Handle escaped newlines in env var
                self.private_key = key_content.replace("\\n", "\n")

    def is_configured(self) -> bool:
        """Check if APNs is properly configured"""
        return all([
            self.team_id,
            self.key_id,
            self.bundle_id,
            self.private_key,
        ])

    @property
    def topic(self) -> str:
        # VoIP push uses .voip suffix on bundle ID
        return f"{self.bundle_id}.voip"

    def _generate_token(self) -> str:
        """Generate JWT token for APNs authentication"""
        headers = {
            "alg": "ES256",
            "kid": self.key_id,
        }
        payload = {
            "iss": self.team_id,
            "iat": int(time.time()),
        }
        return jwt.encode(payload, self.private_key, algorithm="ES256", headers=headers)

    def _client(self) -> httpx.AsyncClient:
        if self.transport is not None:
            return httpx.AsyncClient(transport=self.transport)
        return httpx.AsyncClient(http2=True)

    async def send_voip_push(
        self,
        device_token: str,
        data: Dict[str, str],
        collapse_id: str,
    ) -> PushResult:
        """
        Send VoIP push notification to iOS device.

        The app is woken in the background and renders its own incoming-call
        UI, so the aps block carries no alert.

        Args:
            device_token: The VoIP device token
            data: Stringified notification payload
            collapse_id: Call record key, used to collapse duplicate pushes
        """
        if not self.is_configured():
            return PushResult.failed("voip", "APNs not configured", "not_configured")

        host = self.APNS_SANDBOX_HOST if self.use_sandbox else self.APNS_PRODUCTION_HOST
        url = f"https://{host}/3/device/{device_token}"

        headers = {
            "authorization": f"bearer {self._generate_token()}",
            "apns-topic": self.topic,
            "apns-push-type": "voip",
            "apns-priority": "10",  # High priority for VoIP
            "apns-expiration": "0",  # Immediate delivery only
            "apns-collapse-id": apns_collapse_id(collapse_id),
        }
        body = {**data, "aps": {"content-available": 1}}

        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, json=body, timeout=30.0)
        except httpx.TimeoutException:
            logger.error("[APNs] Push timeout")
            return PushResult.failed("voip", "Request timeout", "timeout")
        except httpx.HTTPError as e:
            logger.error(f"[APNs] Push transport error: {e}")
            return PushResult.failed("voip", str(e), "transport_error")

        if response.status_code == 200:
            apns_id = response.headers.get("apns-id")
            logger.info(f"[APNs] VoIP push sent successfully: {apns_id}")
            return PushResult.sent("voip", apns_id)

        try:
            reason = response.json().get("reason", "Unknown")
        except ValueError:
            reason = response.text or "Unknown error"

        logger.error(f"[APNs] Push failed: {response.status_code} - {reason}")
        return PushResult.failed("voip", reason, str(response.status_code))


class FCMService:
    """
    Firebase Cloud Messaging service.
    Uses Firebase Admin SDK for sending messages.
    """

    def __init__(self, app_provider=get_firebase_app):
        self._app_provider = app_provider

    def is_configured(self) -> bool:
        """Check if FCM is properly configured"""
        return self._app_provider() is not None

    def build_message(
        self,
        device_token: str,
        data: Dict[str, str],
        title: str,
        body: str,
        platform: str,
        tag: str,
        ttl: int = FCM_TTL_SECONDS,
    ) -> messaging.Message:
        """
        Build a notification + data message.

        iOS recipients without a VoIP token get APNs headers and an aps block
        the system can render; everyone else gets Android delivery metadata.
        """
        notification = messaging.Notification(title=title, body=body)

        if platform == "ios":
            return messaging.Message(
                token=device_token,
                notification=notification,
                data=data,
                apns=messaging.APNSConfig(
                    headers={
                        "apns-priority": "10",
                        "apns-push-type": "alert",
                        "apns-collapse-id": apns_collapse_id(tag),
                    },
                    payload=messaging.APNSPayload(
                        aps=messaging.Aps(
                            alert=messaging.ApsAlert(title=title, body=body),
                            badge=1,
                            sound="default",
                            category=IOS_CALL_CATEGORY,
                            content_available=True,
                        ),
                    ),
                ),
            )

        return messaging.Message(
            token=device_token,
            notification=notification,
            data=data,
            android=messaging.AndroidConfig(
                priority="high",
                ttl=ttl,
                notification=messaging.AndroidNotification(
                    channel_id=ANDROID_CHANNEL_ID,
                    priority="max",
                    tag=tag,
                    click_action=NOTIFICATION_CLICK_ACTION,
                    visibility="public",
                    sound="default",
                ),
            ),
        )

    async def send_call_push(
        self,
        device_token: str,
        data: Dict[str, str],
        title: str,
        body: str,
        platform: str,
        tag: str,
    ) -> PushResult:
        """
        Send an incoming-call message through FCM.

        Args:
            device_token: The FCM registration token
            data: Data payload (all values must be strings)
            title: Visible notification title
            body: Visible notification body
            platform: Recipient platform, selects the delivery metadata
            tag: Call record key, used as notification tag / collapse id
        """
        app = self._app_provider()
        if app is None:
            return PushResult.failed("fcm", "FCM not configured", "not_configured")

        try:
            message = self.build_message(device_token, data, title, body, platform, tag)
            # Send message (synchronous, but fast)
            response = messaging.send(message, app=app)
        except messaging.UnregisteredError:
            logger.warning(f"[FCM] Token unregistered: {device_token[:20]}...")
            return PushResult.failed("fcm", "Token unregistered", "UNREGISTERED")
        except messaging.SenderIdMismatchError:
            logger.error("[FCM] Sender ID mismatch")
            return PushResult.failed("fcm", "Sender ID mismatch", "SENDER_ID_MISMATCH")
        except Exception as e:
            logger.error(f"[FCM] Send error: {e}")
            return PushResult.failed("fcm", str(e), "exception")

        logger.info(f"[FCM] Message sent successfully: {response}")
        return PushResult.sent("fcm", response)


@dataclass
class DispatchResult:
    voip: PushResult
    fcm: PushResult

    @property
    def any_sent(self) -> bool:
        return self.voip.success or self.fcm.success

    def as_dict(self) -> Dict[str, Any]:
        return {"voip": self.voip.as_dict(), "fcm": self.fcm.as_dict()}


class NotificationDispatcher:
    """
    Picks the push channel for a recipient and sends at most one push.

    ios + voipToken          -> VoIP push only
    ios + fcmToken           -> FCM with APNs alert metadata
    other + fcmToken         -> FCM with Android metadata
    no usable token          -> nothing sent
    """

    def __init__(self, apns: APNsVoIPService, fcm: FCMService):
        self.apns = apns
        self.fcm = fcm

    async def dispatch(
        self,
        profile,
        data: Dict[str, str],
        tag: str,
        title: str,
        body: str,
    ) -> DispatchResult:
        if profile.is_ios and profile.voip_token:
            voip = await self._attempt("voip", self.apns.send_voip_push(profile.voip_token, data, tag))
            return DispatchResult(voip=voip, fcm=PushResult.not_attempted("fcm", "voip_preferred"))

        voip_reason = "missing_voip_token" if profile.is_ios else "not_ios"
        voip = PushResult.not_attempted("voip", voip_reason)

        if profile.fcm_token:
            fcm = await self._attempt("fcm", self.fcm.send_call_push(
                profile.fcm_token, data, title, body, profile.platform, tag,
            ))
            return DispatchResult(voip=voip, fcm=fcm)

        logger.warning(f"[PUSH] No usable push token for {profile.user_id} (platform={profile.platform})")
        return DispatchResult(voip=voip, fcm=PushResult.not_attempted("fcm", "missing_fcm_token"))

    async def _attempt(self, channel: str, send) -> PushResult:
        try:
            return await send
        except Exception as e:
            logger.exception(f"[PUSH] {channel} push raised")
            return PushResult.failed(channel, str(e), "exception")


def build_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(APNsVoIPService(), FCMService())

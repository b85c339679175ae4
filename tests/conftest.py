import json
from dataclasses import dataclass, field

import pytest

from signaling.errors import DependencyError
from signaling.invitations import CallInvitationService
from signaling.push_service import NotificationDispatcher, PushResult
from signaling.recipients import DocumentKeyResolver

FIXED_NOW_MS = 1_700_000_000_000


class FakeStore:
    """In-memory stand-in for FirestoreService."""

    def __init__(self, users=None, available=True, fail_writes=False):
        self.users = dict(users or {})
        self.calls = {}
        self.writes = []
        self.available = available
        self.fail_writes = fail_writes
        self.reads = []

    def is_available(self):
        return self.available

    def get_user(self, user_id):
        self.reads.append(user_id)
        data = self.users.get(user_id)
        if data is None:
            return None
        return {"id": user_id, **data}

    def find_user_by_field(self, field_name, value):
        self.reads.append((field_name, value))
        for user_id, data in self.users.items():
            if data.get(field_name) == value:
                return {"id": user_id, **data}
        return None

    def set_call_record(self, key, data):
        if self.fail_writes:
            raise DependencyError("failed_to_create_call_record")
        self.calls[key] = dict(data)
        self.writes.append((key, dict(data)))
        return data


@dataclass
class FakeAPNs:
    result: PushResult = field(default_factory=lambda: PushResult.sent("voip", "apns-1"))
    calls: list = field(default_factory=list)

    async def send_voip_push(self, device_token, data, collapse_id):
        self.calls.append({"token": device_token, "data": data, "collapse_id": collapse_id})
        return self.result


@dataclass
class FakeFCM:
    result: PushResult = field(default_factory=lambda: PushResult.sent("fcm", "projects/p/messages/1"))
    calls: list = field(default_factory=list)

    async def send_call_push(self, device_token, data, title, body, platform, tag):
        self.calls.append({
            "token": device_token,
            "data": data,
            "title": title,
            "body": body,
            "platform": platform,
            "tag": tag,
        })
        return self.result


@pytest.fixture
def store():
    return FakeStore(users={
        "bob": {"platform": "android", "fcmToken": "TOK", "name": "Bob", "username": "bobby"},
        "ios-voip": {"platform": "iOS", "voipToken": "VOIP", "fcmToken": "FCM-IOS"},
        "ios-fcm": {"platform": "ios", "fcmToken": "FCM-IOS"},
        "ios-none": {"platform": "ios"},
        "android-none": {"platform": "android"},
        "no-platform": {"fcmToken": "TOK2"},
    })


@pytest.fixture
def apns():
    return FakeAPNs()


@pytest.fixture
def fcm():
    return FakeFCM()


@pytest.fixture
def service(store, apns, fcm):
    return CallInvitationService(
        store=store,
        resolver=DocumentKeyResolver(store),
        dispatcher=NotificationDispatcher(apns, fcm),
        record_key="channelName",
        clock=lambda: FIXED_NOW_MS,
    )


@pytest.fixture
def use_service(monkeypatch, service):
    """Route the HTTP views to the in-memory service."""
    monkeypatch.setattr("signaling.views.calls.get_invitation_service", lambda: service)
    monkeypatch.setattr("signaling.views.health.get_invitation_service", lambda: service)
    return service


@pytest.fixture
def post_json(client):
    def _post(path, payload, **extra):
        return client.post(path, data=json.dumps(payload), content_type="application/json", **extra)
    return _post


@pytest.fixture
def invitation_body():
    return {
        "callId": "c1",
        "channelName": "room1",
        "callerUid": "u1",
        "recipientId": "bob",
    }

from unittest import mock

import pytest

from signaling.errors import DependencyError
from signaling.firebase_service import FirestoreService


def _snapshot(doc_id, data, exists=True):
    snap = mock.Mock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


@pytest.fixture
def db():
    return mock.MagicMock()


@pytest.fixture
def firestore(db):
    return FirestoreService(db=db, users_collection="users", calls_collection="calls")


def test_get_user(firestore, db):
    db.collection.return_value.document.return_value.get.return_value = _snapshot(
        "bob", {"fcmToken": "TOK", "platform": "android"},
    )

    user = firestore.get_user("bob")

    db.collection.assert_called_with("users")
    db.collection.return_value.document.assert_called_with("bob")
    assert user == {"id": "bob", "fcmToken": "TOK", "platform": "android"}


def test_get_user_missing(firestore, db):
    db.collection.return_value.document.return_value.get.return_value = _snapshot("x", None, exists=False)

    assert firestore.get_user("x") is None


def test_get_user_error_raises_dependency_error(firestore, db):
    db.collection.return_value.document.return_value.get.side_effect = RuntimeError("deadline exceeded")

    with pytest.raises(DependencyError):
        firestore.get_user("bob")


def test_find_user_by_field(firestore, db):
    query = db.collection.return_value.where.return_value.limit.return_value
    query.stream.return_value = iter([_snapshot("bob", {"username": "bobby"})])

    user = firestore.find_user_by_field("username", "bobby")

    db.collection.return_value.where.assert_called_with("username", "==", "bobby")
    db.collection.return_value.where.return_value.limit.assert_called_with(1)
    assert user == {"id": "bob", "username": "bobby"}


def test_find_user_by_field_no_match(firestore, db):
    db.collection.return_value.where.return_value.limit.return_value.stream.return_value = iter([])

    assert firestore.find_user_by_field("username", "ghost") is None


def test_set_call_record_overwrites(firestore, db):
    data = {"callId": "c1", "channelName": "room1"}

    assert firestore.set_call_record("room1", data) == data

    db.collection.assert_called_with("calls")
    db.collection.return_value.document.assert_called_with("room1")
    db.collection.return_value.document.return_value.set.assert_called_once_with(data)


def test_set_call_record_failure(firestore, db):
    db.collection.return_value.document.return_value.set.side_effect = RuntimeError("permission denied")

    with pytest.raises(DependencyError) as excinfo:
        firestore.set_call_record("room1", {})

    assert excinfo.value.message == "failed_to_create_call_record"


def test_collections_default_to_settings(settings, db):
    settings.USERS_COLLECTION = "profiles"
    settings.CALLS_COLLECTION = "rooms"

    service = FirestoreService(db=db)

    assert service.users_collection == "profiles"
    assert service.calls_collection == "rooms"
    assert service.is_available()

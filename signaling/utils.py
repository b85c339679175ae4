import asyncio
import time

from .constants import DEFAULT_TOKEN_EXPIRE_SECONDS, MAX_TOKEN_EXPIRE_SECONDS, ROLE_PUBLISHER, ROLE_SUBSCRIBER


def parse_role(value):
    if value is None or value == "":
        return ROLE_PUBLISHER
    if isinstance(value, int):
        return ROLE_PUBLISHER if value == ROLE_PUBLISHER else ROLE_SUBSCRIBER
    if isinstance(value, str):
        value = value.lower()
        if value in {"publisher", "host", "broadcaster", str(ROLE_PUBLISHER)}:
            return ROLE_PUBLISHER
        if value in {"subscriber", "audience", str(ROLE_SUBSCRIBER)}:
            return ROLE_SUBSCRIBER
    return None


def parse_uid(value):
    """Non-negative integer uid; anything else means 0 (Agora assigns one)."""
    if value is None:
        return 0
    try:
        uid = int(str(value).strip())
    except ValueError:
        return 0
    return uid if uid >= 0 else 0


def clamp_expire(expire):
    try:
        expire = int(expire)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_EXPIRE_SECONDS
    if expire <= 0:
        return DEFAULT_TOKEN_EXPIRE_SECONDS
    return min(expire, MAX_TOKEN_EXPIRE_SECONDS)


def now_ms() -> int:
    return int(time.time() * 1000)


def run_async(coro):
    """Helper to run async code in sync Django views."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            raise RuntimeError("event loop is closed")
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)

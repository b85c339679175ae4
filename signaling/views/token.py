import logging
import time

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from agora_token_builder import RtcTokenBuilder

from ..errors import ClientError
from ..http import api_view, require_values
from ..utils import clamp_expire, parse_role, parse_uid

logger = logging.getLogger("signaling")


def _first(params, *names):
    for name in names:
        value = params.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


@csrf_exempt
@api_view("GET", tag="TOKEN")
def rtc_token(request):
    app_id = settings.AGORA_APP_ID
    app_cert = settings.AGORA_APP_CERT

    channel = _first(request.GET, "channel", "room", "channelName")
    if not channel:
        logger.error("[TOKEN] Missing channel")
        raise ClientError("Missing params")

    require_values(AGORA_APP_ID=app_id, AGORA_APP_CERT=app_cert)

    uid = parse_uid(_first(request.GET, "uid", "user", "u"))

    role = parse_role(request.GET.get("role"))
    if role is None:
        raise ClientError("invalid_role")

    expire = clamp_expire(settings.TOKEN_EXPIRY_SECONDS)
    expire_ts = int(time.time()) + expire

    token_value = RtcTokenBuilder.buildTokenWithUid(app_id, app_cert, channel, uid, role, expire_ts)

    logger.info(f"[TOKEN] Success: channel={channel}, uid={uid}")
    return JsonResponse({
        "token": token_value,
        "channelName": channel,
        "uid": uid,
        "expires_in": expire,
    })

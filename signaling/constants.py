DEFAULT_TOKEN_EXPIRE_SECONDS = 600
MAX_TOKEN_EXPIRE_SECONDS = 86400

ROLE_PUBLISHER = 1
ROLE_SUBSCRIBER = 2

REQUIRED_INVITATION_FIELDS = ("callId", "channelName", "callerUid", "recipientId")
CALL_TYPES = ("video", "audio")
DEFAULT_CALL_TYPE = "video"
DEFAULT_PLATFORM = "android"

CALL_STATUS_RINGING = "ringing"
CALL_RECORD_KEYS = ("channelName", "callId")
RECIPIENT_LOOKUP_STRATEGIES = ("document", "field")

# CallKit-style payload
CALLKIT_RING_DURATION_MS = 30000
CALLKIT_TYPE_AUDIO = 0
CALLKIT_TYPE_VIDEO = 1
NOTIFICATION_CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"

# FCM delivery metadata
ANDROID_CHANNEL_ID = "calls"
FCM_TTL_SECONDS = 60
IOS_CALL_CATEGORY = "CALL_CATEGORY"

CORS_DEFAULT_ALLOWED_HEADERS = (
    "content-type",
    "authorization",
    "x-requested-with",
    "x-client-id",
    "x-firebase-locale",
)
CORS_FALLBACK_METHODS = ("GET", "POST")
CORS_EXPOSE_HEADERS = ("Authorization", "Content-Length")

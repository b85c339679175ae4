from django.urls import path
from . import views

urlpatterns = [
    # Health check
    path("health", views.health_check, name="health"),

    # Agora RTC token (the aliases match older client builds)
    path("token", views.rtc_token, name="token"),
    path("agoraToken", views.rtc_token, name="agora_token"),
    path("rtcToken", views.rtc_token, name="rtc_token"),

    # Call invitation (Firestore record + VoIP/FCM push)
    # Note: Device tokens are stored by app directly in Firestore users/{uid}
    path("sendCallInvitation", views.send_call_invitation, name="send_call_invitation"),
]

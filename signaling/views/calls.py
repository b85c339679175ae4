import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..http import api_view, json_body
from ..invitations import CallInvitationRequest, get_invitation_service

logger = logging.getLogger("signaling")


@csrf_exempt
@api_view("POST", tag="CALL/INVITE")
def send_call_invitation(request):
    """
    Invite a recipient to a call: write the call record to Firestore, then
    ring the recipient's device with a VoIP or FCM push.
    """
    data = json_body(request)
    logger.debug(f"[CALL/INVITE] Request data: {data}")

    invitation = CallInvitationRequest.from_payload(data)
    summary = get_invitation_service().invite(invitation)

    return JsonResponse(summary)

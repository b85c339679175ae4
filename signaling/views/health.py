from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from ..http import api_view
from ..invitations import get_invitation_service


@csrf_exempt
@api_view("GET", tag="HEALTH")
def health_check(request):
    firestore_ok = get_invitation_service().store.is_available()

    return JsonResponse({
        "status": "ok",
        "firestore": "connected" if firestore_ok else "not_configured",
    })

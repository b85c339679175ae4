import json
import logging
from functools import wraps

from django.http import HttpResponse, JsonResponse

from .errors import ApiError, ClientError, ConfigurationError, MethodNotAllowed

logger = logging.getLogger("signaling")


def json_body(request) -> dict:
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data
    except (UnicodeDecodeError, json.JSONDecodeError, ValueError) as exc:
        raise ClientError(f"invalid_json: {exc}") from exc


def require_values(**values):
    """Raise ConfigurationError naming every blank setting."""
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError("Server misconfiguration", missing=missing)


def error_response(error: ApiError) -> JsonResponse:
    response = JsonResponse(error.as_dict(), status=error.status_code)
    if isinstance(error, MethodNotAllowed):
        response["Allow"] = ", ".join(error.allowed)
    return response


def api_view(*methods, tag=None):
    """
    Wrap a view with the shared request/response contract.

    - OPTIONS is answered with an empty 204 (the CORS middleware adds headers).
    - Verbs outside ``methods`` get a JSON 405.
    - ApiError subclasses become JSON error responses with their status.
    - Anything else is logged with its traceback and becomes a JSON 500.

    The allowed verbs are exposed as ``view.allowed_methods`` for the CORS
    middleware.
    """
    allowed = [method.upper() for method in methods]

    def decorator(view_func):
        log_tag = tag or view_func.__name__.upper()

        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            logger.info(f"[{log_tag}] {request.method} from {request.META.get('REMOTE_ADDR')}")

            if request.method == "OPTIONS":
                return HttpResponse(status=204)

            try:
                if request.method not in allowed:
                    raise MethodNotAllowed(allowed + ["OPTIONS"])
                return view_func(request, *args, **kwargs)
            except ApiError as exc:
                log = logger.error if exc.status_code >= 500 else logger.warning
                log(f"[{log_tag}] {exc.status_code} {exc.message}")
                return error_response(exc)
            except Exception:
                logger.exception(f"[{log_tag}] Unhandled error")
                return JsonResponse({"error": "Internal server error"}, status=500)

        wrapper.allowed_methods = allowed
        return wrapper

    return decorator

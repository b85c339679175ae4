"""
Cross-origin access control for the signaling endpoints.

Browsers calling from an allow-listed origin (or any localhost port during
development) get their exact origin echoed with credentials allowed.
Non-browser callers (no Origin header) get ``*``. Everyone else gets the
literal ``null``, which browsers refuse.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.urls import Resolver404, resolve
from django.utils.cache import patch_vary_headers

from .constants import CORS_DEFAULT_ALLOWED_HEADERS, CORS_EXPOSE_HEADERS, CORS_FALLBACK_METHODS

logger = logging.getLogger("signaling")

LOCALHOST_ORIGIN_RE = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")


def is_localhost_origin(origin: Optional[str]) -> bool:
    if not origin:
        return False
    return bool(LOCALHOST_ORIGIN_RE.match(origin))


def parse_requested_headers(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class CorsPolicy:
    allowed_origins: Tuple[str, ...] = ()
    allow_localhost: bool = True
    default_headers: Tuple[str, ...] = CORS_DEFAULT_ALLOWED_HEADERS
    expose_headers: Tuple[str, ...] = CORS_EXPOSE_HEADERS
    max_age: int = 3600
    debug: bool = False

    @classmethod
    def from_settings(cls) -> "CorsPolicy":
        return cls(
            allowed_origins=tuple(getattr(settings, "CORS_ALLOWED_ORIGINS", ())),
            allow_localhost=getattr(settings, "CORS_ALLOW_LOCALHOST", True),
            max_age=getattr(settings, "CORS_MAX_AGE", 3600),
            debug=getattr(settings, "CORS_DEBUG", False),
        )

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        if origin in self.allowed_origins:
            return True
        return self.allow_localhost and is_localhost_origin(origin)

    def headers_for(
        self,
        origin: Optional[str],
        requested_headers: Optional[str] = None,
        methods: Iterable[str] = CORS_FALLBACK_METHODS,
    ) -> Dict[str, str]:
        headers = {}

        allowed = self.is_allowed(origin)
        if allowed:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Access-Control-Allow-Credentials"] = "true"
        elif not origin:
            headers["Access-Control-Allow-Origin"] = "*"
        else:
            headers["Access-Control-Allow-Origin"] = "null"

        verbs = [m.upper() for m in methods if m.upper() != "OPTIONS"]
        headers["Access-Control-Allow-Methods"] = ",".join(verbs + ["OPTIONS"])

        combined = list(dict.fromkeys(
            [h.lower() for h in self.default_headers] + parse_requested_headers(requested_headers)
        ))
        headers["Access-Control-Allow-Headers"] = ", ".join(combined)
        headers["Access-Control-Max-Age"] = str(self.max_age)
        if self.expose_headers:
            headers["Access-Control-Expose-Headers"] = ",".join(self.expose_headers)

        if self.debug:
            logger.debug(
                f"[CORS] origin={origin!r} allowed={allowed} "
                f"requested={requested_headers!r} headers={headers}"
            )
        return headers


class CorsPolicyMiddleware:
    """Apply the CORS policy to every response, error responses included."""

    def __init__(self, get_response):
        self.get_response = get_response
        self.policy = CorsPolicy.from_settings()

    def __call__(self, request):
        response = self.get_response(request)

        methods = self._methods_for(request)
        headers = self.policy.headers_for(
            request.headers.get("Origin"),
            request.headers.get("Access-Control-Request-Headers"),
            methods,
        )
        for name, value in headers.items():
            response[name] = value
        patch_vary_headers(response, ("Origin",))
        return response

    def _methods_for(self, request):
        # process_view may not have run (e.g. a middleware short-circuited)
        methods = getattr(request, "cors_allowed_methods", None)
        if methods:
            return methods
        try:
            match = resolve(request.path_info)
        except Resolver404:
            return CORS_FALLBACK_METHODS
        return getattr(match.func, "allowed_methods", None) or CORS_FALLBACK_METHODS

    def process_view(self, request, view_func, view_args, view_kwargs):
        request.cors_allowed_methods = getattr(view_func, "allowed_methods", None)
        return None

import pytest

from signaling.cors import CorsPolicy, is_localhost_origin, parse_requested_headers


@pytest.fixture
def policy():
    return CorsPolicy(allowed_origins=("https://app.example.com",))


@pytest.mark.parametrize("origin", [
    "http://localhost",
    "http://localhost:5173",
    "https://127.0.0.1:8443",
])
def test_localhost_origins_match(origin):
    assert is_localhost_origin(origin)


@pytest.mark.parametrize("origin", [
    None,
    "",
    "http://localhost.evil.com",
    "http://evil.com/?localhost",
    "ftp://localhost:21",
])
def test_non_localhost_origins_do_not_match(origin):
    assert not is_localhost_origin(origin)


def test_allow_listed_origin_is_echoed_with_credentials(policy):
    headers = policy.headers_for("https://app.example.com")

    assert headers["Access-Control-Allow-Origin"] == "https://app.example.com"
    assert headers["Access-Control-Allow-Credentials"] == "true"


def test_missing_origin_gets_wildcard_without_credentials(policy):
    headers = policy.headers_for(None)

    assert headers["Access-Control-Allow-Origin"] == "*"
    assert "Access-Control-Allow-Credentials" not in headers


def test_unknown_origin_gets_null(policy):
    headers = policy.headers_for("https://evil.example.com")

    assert headers["Access-Control-Allow-Origin"] == "null"
    assert "Access-Control-Allow-Credentials" not in headers


def test_localhost_rule_can_be_disabled():
    strict = CorsPolicy(allowed_origins=(), allow_localhost=False)

    assert strict.headers_for("http://localhost:3000")["Access-Control-Allow-Origin"] == "null"


def test_methods_are_the_endpoint_verbs_plus_options(policy):
    headers = policy.headers_for("https://app.example.com", methods=["post"])

    assert headers["Access-Control-Allow-Methods"] == "POST,OPTIONS"


def test_requested_headers_are_unioned_with_defaults(policy):
    headers = policy.headers_for(
        "https://app.example.com",
        requested_headers="X-Custom-Thing, Content-Type ,,authorization",
    )

    allowed = headers["Access-Control-Allow-Headers"].split(", ")
    assert allowed[:5] == [
        "content-type",
        "authorization",
        "x-requested-with",
        "x-client-id",
        "x-firebase-locale",
    ]
    assert allowed.count("content-type") == 1
    assert "x-custom-thing" in allowed
    assert headers["Access-Control-Max-Age"] == "3600"


def test_expose_headers_on_every_response(policy):
    for origin in ("https://app.example.com", None, "https://evil.example.com"):
        headers = policy.headers_for(origin)

        assert headers["Access-Control-Expose-Headers"] == "Authorization,Content-Length"


def test_expose_headers_can_be_disabled():
    headers = CorsPolicy(expose_headers=()).headers_for(None)

    assert "Access-Control-Expose-Headers" not in headers


def test_parse_requested_headers_normalizes():
    assert parse_requested_headers(" A , b,, ") == ["a", "b"]
    assert parse_requested_headers(None) == []


def test_from_settings_reads_allow_list(settings):
    settings.CORS_ALLOWED_ORIGINS = ["https://web.example.org"]
    settings.CORS_MAX_AGE = 60

    policy = CorsPolicy.from_settings()

    assert policy.is_allowed("https://web.example.org")
    assert policy.headers_for(None)["Access-Control-Max-Age"] == "60"


def test_preflight_from_localhost(client):
    response = client.options(
        "/sendCallInvitation",
        HTTP_ORIGIN="http://localhost:5173",
        HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
        HTTP_ACCESS_CONTROL_REQUEST_HEADERS="content-type,x-trace-id",
    )

    assert response.status_code == 204
    assert response.content == b""
    assert response["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert response["Access-Control-Allow-Credentials"] == "true"
    assert response["Access-Control-Allow-Methods"] == "POST,OPTIONS"
    assert "x-trace-id" in response["Access-Control-Allow-Headers"]
    assert "Origin" in response["Vary"]
    assert response["Access-Control-Expose-Headers"] == "Authorization,Content-Length"


def test_preflight_on_token_endpoint_lists_get(client):
    response = client.options("/token", HTTP_ORIGIN="http://127.0.0.1:3000")

    assert response.status_code == 204
    assert response["Access-Control-Allow-Methods"] == "GET,OPTIONS"


def test_cors_headers_on_unknown_path(client):
    response = client.get("/does-not-exist", HTTP_ORIGIN="https://evil.example.com")

    assert response.status_code == 404
    assert response["Access-Control-Allow-Origin"] == "null"

"""
ASGI middlewares: security headers and locale resolution.
"""

from urllib.parse import parse_qs
from http.cookies import SimpleCookie

from powerplay.config import settings
from powerplay.locales import LOCALES, normalize_locale, negotiate_locale


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def _header(scope, name: bytes):
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def resolve_locale(scope) -> str:
    """Path prefix is handled by the middleware; here: query, cookie, Accept-Language, default."""
    query = parse_qs(scope.get("query_string", b"").decode("latin-1"))
    locale = normalize_locale((query.get("locale") or [None])[0])
    if locale:
        return locale
    cookie_header = _header(scope, b"cookie")
    if cookie_header:
        cookie = SimpleCookie()
        try:
            cookie.load(cookie_header)
        except Exception:
            cookie = SimpleCookie()
        if "locale" in cookie:
            locale = normalize_locale(cookie["locale"].value)
            if locale:
                return locale
    locale = negotiate_locale(_header(scope, b"accept-language"))
    return locale or settings.default_locale


def split_locale_prefix(path: str):
    """'/en/api/v1/matches' -> ('en', '/api/v1/matches'); no prefix -> (None, path)"""
    segments = path.split("/", 2)
    if len(segments) > 1 and segments[1] in LOCALES:
        rest = "/" + segments[2] if len(segments) > 2 else "/"
        return segments[1], rest
    return None, path


class LocaleMiddleware:
    """Strips a /ko or /en prefix, stores the locale on request.state and sets Content-Language."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        locale, path = split_locale_prefix(scope.get("path", "/"))
        if locale:
            scope = dict(scope)
            scope["path"] = path
            scope["raw_path"] = path.encode("utf-8")
        else:
            locale = resolve_locale(scope)
        scope.setdefault("state", {})
        scope["state"]["locale"] = locale

        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_language(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].append((b"Content-Language", locale.encode("latin-1")))
            await send(message)

        await self.app(scope, receive, send_with_language)

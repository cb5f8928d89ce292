"""Session tokens carried in an HTTP-only cookie.

`SessionIssuer` mints a signed simplejwt access token for a user and
attaches it to a response as the `jwt` cookie. Tokens are stateless:
revoking only clears the cookie, already issued tokens stay valid until
they expire.

`CookieJWTAuthentication` is the matching DRF authentication class;
`StatelessCookieJWTAuthentication` trusts the token's user id without
loading the user.
"""

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication, JWTStatelessUserAuthentication
from rest_framework_simplejwt.tokens import AccessToken


@dataclass(frozen=True)
class CookieSettings:
    name: str = "jwt"
    max_age: timedelta = timedelta(days=7)
    secure: bool = False
    samesite: str = "Strict"
    httponly: bool = True

    @classmethod
    def from_settings(cls) -> "CookieSettings":
        return cls(
            name=getattr(settings, "JWT_COOKIE_NAME", "jwt"),
            max_age=getattr(settings, "SESSION_TOKEN_LIFETIME", timedelta(days=7)),
            secure=getattr(settings, "JWT_COOKIE_SECURE", False),
            samesite=getattr(settings, "JWT_COOKIE_SAMESITE", "Strict"),
        )


class SessionIssuer:
    """Issue and revoke the session cookie."""

    def __init__(self, cookie: CookieSettings):
        self.cookie = cookie

    def issue(self, user) -> str:
        token = AccessToken.for_user(user)
        token.set_exp(lifetime=self.cookie.max_age)
        return str(token)

    def attach(self, response, user) -> str:
        token = self.issue(user)
        response.set_cookie(
            self.cookie.name,
            token,
            max_age=int(self.cookie.max_age.total_seconds()),
            httponly=self.cookie.httponly,
            secure=self.cookie.secure,
            samesite=self.cookie.samesite,
        )
        return token

    def revoke(self, response) -> None:
        response.delete_cookie(self.cookie.name, samesite=self.cookie.samesite)


@lru_cache(maxsize=1)
def get_session_issuer() -> SessionIssuer:
    return SessionIssuer(CookieSettings.from_settings())


class CookieJWTAuthentication(JWTAuthentication):
    """Authenticate from the session cookie, or a Bearer header when present.

    An explicit Authorization header that fails validation is rejected. A
    stale or tampered cookie is ignored instead, so public endpoints such
    as login keep working for a browser still holding an old cookie.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            return super().authenticate(request)

        raw_token = request.COOKIES.get(getattr(settings, "JWT_COOKIE_NAME", "jwt"))
        if not raw_token:
            return None
        try:
            validated_token = self.get_validated_token(raw_token)
            return self.get_user(validated_token), validated_token
        except AuthenticationFailed:
            return None


class StatelessCookieJWTAuthentication(CookieJWTAuthentication, JWTStatelessUserAuthentication):
    """Cookie or Bearer authentication that binds a `TokenUser` without a database lookup.

    For views that resolve the account themselves and answer 404 when the
    user behind a valid session no longer exists.
    """

"""Users app API views.

Endpoints include:
- signup: creates an unverified account and emails a one-time code.
- verify-email: consumes the code and opens a session (jwt cookie).
- resend-verification: replaces the pending code and emails it again.
- login: checks credentials for a verified account and opens a session.
- logout: clears the session cookie.
- onboarding: completes the profile of the session's user.
- me: returns the session's user.
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from .exceptions import AuthFlowError
from .logging import log_auth_event
from .serializers import (
    LoginSerializer,
    OnboardingSerializer,
    ResendVerificationSerializer,
    SignupSerializer,
    UserSerializer,
    VerifyEmailSerializer,
)
from .services import get_auth_flow
from .sessions import StatelessCookieJWTAuthentication


def _error_response(action: str, request, exc: AuthFlowError, user=None) -> Response:
    log_auth_event(action, request, user=user, status=exc.code)
    return Response(exc.to_dict(), status=exc.status_code)


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Sign up",
    description=(
        "Creates an unverified account and emails a 6-digit verification code valid for 10 minutes.\n\n"
        "Errors: 400 for missing fields (with `missingFields`), weak password, invalid or duplicate "
        "email; 500 when the verification email cannot be sent (the account is not kept)."
    ),
    request=SignupSerializer,
    responses={
        201: OpenApiResponse(description="Account created, verification code sent"),
        400: OpenApiResponse(description="Validation error"),
        500: OpenApiResponse(description="Verification email could not be sent"),
    },
)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def signup(request):
    """Register a new user and send the verification code via email."""
    serializer = SignupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    try:
        user = get_auth_flow().signup(
            email=data.get("email"),
            password=data.get("password"),
            full_name=data.get("full_name"),
        )
    except AuthFlowError as exc:
        return _error_response("signup", request, exc)

    log_auth_event("signup", request, user=user, status="success")
    return Response(
        {
            "detail": "Signup successful. Please check your email for the verification code.",
            "email": user.email,
        },
        status=status.HTTP_201_CREATED,
    )


# Throttle scope for registration
signup.throttle_scope = "signup"


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Verify email",
    description=(
        "Checks the 6-digit code sent at signup. On success the account is verified and a session "
        "cookie (`jwt`) is set. Wrong, expired and unknown codes share one 400 response. An already "
        "verified account only accepts the code that verified it, until that code would have expired."
    ),
    request=VerifyEmailSerializer,
    responses={
        200: OpenApiResponse(description="Email verified, session started", response=UserSerializer),
        400: OpenApiResponse(description="Invalid or expired OTP"),
    },
)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def verify_email(request):
    """Confirm the email with the one-time code and start a session."""
    serializer = VerifyEmailSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    flow = get_auth_flow()
    try:
        user, newly_verified = flow.verify_email(email=data.get("email"), otp=data.get("otp"))
    except AuthFlowError as exc:
        return _error_response("verify_email", request, exc)

    response = Response(
        {
            "success": True,
            "detail": "Email verified successfully" if newly_verified else "Email already verified",
            "user": UserSerializer(user).data,
        }
    )
    flow.start_session(response, user)
    log_auth_event("verify_email", request, user=user, status="success", extra={"newly_verified": newly_verified})
    return response


# Throttle scope for email verification
verify_email.throttle_scope = "email_verify"


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Resend verification code",
    request=ResendVerificationSerializer,
    responses={
        200: OpenApiResponse(description="New code sent"),
        400: OpenApiResponse(description="Missing email or already verified"),
        404: OpenApiResponse(description="Unknown email"),
        500: OpenApiResponse(description="Verification email could not be sent"),
    },
)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def resend_verification(request):
    """Issue a fresh verification code; earlier codes stop working."""
    serializer = ResendVerificationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        user = get_auth_flow().resend_verification(email=serializer.validated_data.get("email"))
    except AuthFlowError as exc:
        return _error_response("resend_verification", request, exc)

    log_auth_event("resend_verification", request, user=user, status="success")
    return Response({"detail": "Verification code sent. Please check your email."})


# Resend shares the verification throttle so codes cannot be farmed
resend_verification.throttle_scope = "email_verify"


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Log in",
    description=(
        "Authenticates with email and password and sets the session cookie (`jwt`).\n\n"
        "Errors: 400 for missing fields; 401 for unknown email or wrong password (same message); "
        "403 when the email has not been verified yet."
    ),
    request=LoginSerializer,
    responses={
        200: OpenApiResponse(description="Logged in", response=UserSerializer),
        400: OpenApiResponse(description="Missing fields"),
        401: OpenApiResponse(description="Invalid email or password"),
        403: OpenApiResponse(description="Email not verified"),
    },
)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    flow = get_auth_flow()
    try:
        user = flow.login(email=data.get("email"), password=data.get("password"))
    except AuthFlowError as exc:
        return _error_response("login", request, exc)

    response = Response({"success": True, "user": UserSerializer(user).data})
    flow.start_session(response, user)
    log_auth_event("login", request, user=user, status="success")
    return response


# Throttle scope for login
login.throttle_scope = "login"


@extend_schema(tags=["Auth Endpoints"], summary="Log out", request=None)
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def logout(request):
    """Clear the session cookie. Always succeeds."""
    response = Response({"success": True, "detail": "Logged out successfully"})
    get_auth_flow().end_session(response)
    user = request.user if request.user.is_authenticated else None
    log_auth_event("logout", request, user=user, status="success")
    return response


# Throttle scope for logout
logout.throttle_scope = "logout"


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Complete onboarding",
    description=(
        "Stores the profile of the session's user and marks the account as onboarded. "
        "All of fullName, bio, nativeLanguage, learningLanguage and location are required; "
        "a 400 response lists the missing ones in `missingFields`."
    ),
    request=OnboardingSerializer,
    responses={
        200: OpenApiResponse(description="Onboarded", response=UserSerializer),
        400: OpenApiResponse(description="Missing fields"),
        401: OpenApiResponse(description="Unauthorized"),
        404: OpenApiResponse(description="User not found"),
    },
)
@api_view(["POST", "PUT"])
@authentication_classes([StatelessCookieJWTAuthentication])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def onboard(request):
    serializer = OnboardingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    try:
        user = get_auth_flow().onboard(
            user_id=request.user.pk,
            full_name=data.get("full_name"),
            bio=data.get("bio"),
            native_language=data.get("native_language"),
            learning_language=data.get("learning_language"),
            location=data.get("location"),
        )
    except AuthFlowError as exc:
        return _error_response("onboard", request, exc, user=request.user)

    log_auth_event("onboard", request, user=user, status="success")
    return Response({"success": True, "user": UserSerializer(user).data})


# Throttle scope for onboarding
onboard.throttle_scope = "onboard"


@extend_schema(
    tags=["Auth Endpoints"],
    summary="Get current user",
    description="Returns the user bound to the session cookie. 401 without a valid session.",
    responses={
        200: OpenApiResponse(description="User profile", response=UserSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def current_user(request):
    """Return the authenticated user's profile."""
    return Response({"success": True, "user": UserSerializer(request.user).data})


# Throttle scope for profile endpoint
current_user.throttle_scope = "profile"

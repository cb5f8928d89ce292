"""Errors raised by the authentication flows.

Each error carries the HTTP status and the message the client sees, so
views can translate any `AuthFlowError` into a response without knowing
which step failed.
"""

from rest_framework import status


class AuthFlowError(Exception):
    """Base class for expected failures of an auth flow."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid"
    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message}


class MissingFieldsError(AuthFlowError):
    """Required request fields were absent or empty."""

    code = "missing_fields"
    default_message = "All fields are required"

    def __init__(self, missing_fields, message: str | None = None):
        self.missing_fields = list(missing_fields)
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "missingFields": self.missing_fields}


class PasswordPolicyError(AuthFlowError):
    """The password failed one of the strength rules."""

    code = "weak_password"


class InvalidEmailError(AuthFlowError):
    code = "invalid_email"
    default_message = "Email is not valid"


class EmailTakenError(AuthFlowError):
    code = "duplicate_email"
    default_message = "Email already exists, please login or use a different email"


class InvalidOtpError(AuthFlowError):
    # Shared by unknown email, wrong code and expired code
    code = "invalid_otp"
    default_message = "Invalid or expired OTP"


class AlreadyVerifiedError(AuthFlowError):
    code = "already_verified"
    default_message = "Email is already verified"


class InvalidCredentialsError(AuthFlowError):
    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class EmailNotVerifiedError(AuthFlowError):
    code = "unverified"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Please verify your email before logging in"


class UserNotFoundError(AuthFlowError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class EmailDispatchError(AuthFlowError):
    """The verification email could not be handed to the mail backend."""

    code = "email_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to send verification email. Please try again."

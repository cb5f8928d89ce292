"""Authentication and onboarding flows.

`AuthFlow` drives an account through its lifecycle::

    unregistered -> pending_verification -> verified -> onboarded

Signup creates the account with a pending one-time code and emails it;
verification consumes the code; login and verification open a session
(see `users.sessions`); onboarding completes the profile. Pushes to the
chat directory happen after verification, login and onboarding and are
best effort.

Collaborators (mailer, chat directory, session issuer) are passed in, and
`get_auth_flow()` builds the shared instance from settings.
"""

import enum
import logging
import random
from functools import lru_cache

from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.template.loader import render_to_string
from django.utils import timezone

from chat.directory import get_directory, sync_user

from .exceptions import (
    AlreadyVerifiedError,
    EmailDispatchError,
    EmailNotVerifiedError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidOtpError,
    MissingFieldsError,
    PasswordPolicyError,
    UserNotFoundError,
)
from .models import PROFILE_FIELDS, User
from .otp import consume_challenge, is_challenge_valid, is_consumed_code, issue_challenge, otp_ttl
from .sessions import get_session_issuer
from .validators import validate_email_format, validate_password_strength

logger = logging.getLogger("videochat.auth")

AVATAR_URL = "https://avatar.iran.liara.run/public/{}.png"
AVATAR_COUNT = 100

# Request field names reported back in `missingFields`
FIELD_LABELS = {
    "email": "email",
    "password": "password",
    "otp": "otp",
    "full_name": "fullName",
    "bio": "bio",
    "native_language": "nativeLanguage",
    "learning_language": "learningLanguage",
    "location": "location",
}


class AccountState(str, enum.Enum):
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    ONBOARDED = "onboarded"


def missing_fields(**values) -> list[str]:
    """Return request names of values that are absent or blank, in call order."""
    missing = []
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(FIELD_LABELS.get(name, name))
    return missing


def random_avatar() -> str:
    return AVATAR_URL.format(random.randint(1, AVATAR_COUNT))


def normalize_email(email: str) -> str:
    return email.strip().lower()


class VerificationMailer:
    """Send the verification code through Django's email backend."""

    subject = "Verify Your Email - VideoChat"

    def send(self, email: str, name: str, code: str) -> bool:
        context = {
            "name": name,
            "code": code,
            "ttl_minutes": int(otp_ttl().total_seconds() // 60),
            "year": timezone.now().year,
        }
        try:
            send_mail(
                subject=self.subject,
                message=render_to_string("users/emails/verification.txt", context),
                from_email=None,
                recipient_list=[email],
                html_message=render_to_string("users/emails/verification.html", context),
            )
        except Exception:
            # Any backend failure (SMTP, DNS, timeout) means the code never left
            logger.exception("auth.email_dispatch_failed", extra={"event": "auth.email_dispatch_failed"})
            return False
        return True


class AuthFlow:
    """Orchestrates signup, verification, login and onboarding."""

    def __init__(self, *, mailer, directory, sessions, clock=timezone.now):
        self.mailer = mailer
        self.directory = directory
        self.sessions = sessions
        self.clock = clock

    @staticmethod
    def state_of(user: User) -> AccountState:
        if not user.email_verified:
            return AccountState.PENDING_VERIFICATION
        if user.is_onboarded:
            return AccountState.ONBOARDED
        return AccountState.VERIFIED

    def signup(self, *, email: str | None, password: str | None, full_name: str | None) -> User:
        """Create an unverified account and email its verification code.

        If the email cannot be sent the new account is deleted again, so a
        signup only sticks once the user can plausibly receive the code.
        """
        missing = missing_fields(email=email, password=password, full_name=full_name)
        if missing:
            raise MissingFieldsError(missing)

        check = validate_password_strength(password)
        if not check.valid:
            raise PasswordPolicyError(check.reason)

        email = normalize_email(email)
        if not validate_email_format(email):
            raise InvalidEmailError()
        if User.objects.filter(email=email).exists():
            raise EmailTakenError()

        user = User(email=email, full_name=full_name.strip(), profile_picture=random_avatar())
        user.set_password(password)
        code = issue_challenge(user, now=self.clock())
        try:
            with transaction.atomic():
                user.save()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same address
            raise EmailTakenError()

        logger.info("auth.user_created", extra={"event": "auth.user_created", "user_id": user.pk})

        if not self.mailer.send(user.email, user.full_name, code):
            user_id = user.pk
            user.delete()
            logger.warning(
                "auth.signup_rolled_back",
                extra={"event": "auth.signup_rolled_back", "user_id": user_id},
            )
            raise EmailDispatchError()
        return user

    def verify_email(self, *, email: str | None, otp: str | None) -> tuple[User, bool]:
        """Consume the pending code; returns the user and whether it was newly verified.

        Unknown email, wrong code and expired code are indistinguishable to
        the caller. Re-submitting the code that verified the account succeeds
        without changing it until that code would have expired.
        """
        missing = missing_fields(email=email, otp=otp)
        if missing:
            raise MissingFieldsError(missing)

        try:
            user = User.objects.get(email=normalize_email(email))
        except User.DoesNotExist:
            raise InvalidOtpError()

        code = str(otp).strip()
        now = self.clock()
        if user.email_verified:
            # Only a repeat of the code that verified the account, before it expires
            if not is_consumed_code(user, code, now=now):
                raise InvalidOtpError()
            logger.info("auth.already_verified", extra={"event": "auth.already_verified", "user_id": user.pk})
            return user, False

        if not is_challenge_valid(user, code, now=now):
            raise InvalidOtpError()

        consume_challenge(user)
        user.email_verified = True
        user.save(
            update_fields=[
                "verification_otp",
                "otp_expires_at",
                "consumed_otp_digest",
                "consumed_otp_expires_at",
                "email_verified",
            ]
        )
        logger.info("auth.email_verified", extra={"event": "auth.email_verified", "user_id": user.pk})

        sync_user(self.directory, user)
        return user, True

    def resend_verification(self, *, email: str | None) -> User:
        """Replace the pending code with a fresh one and email it.

        The new code is kept even if sending fails, so the user can retry.
        """
        missing = missing_fields(email=email)
        if missing:
            raise MissingFieldsError(missing, message="Email is required")

        try:
            user = User.objects.get(email=normalize_email(email))
        except User.DoesNotExist:
            raise UserNotFoundError()

        if user.email_verified:
            raise AlreadyVerifiedError()

        code = issue_challenge(user, now=self.clock())
        user.save(update_fields=["verification_otp", "otp_expires_at"])
        logger.info("auth.otp_reissued", extra={"event": "auth.otp_reissued", "user_id": user.pk})

        if not self.mailer.send(user.email, user.full_name, code):
            raise EmailDispatchError()
        return user

    def login(self, *, email: str | None, password: str | None) -> User:
        missing = missing_fields(email=email, password=password)
        if missing:
            raise MissingFieldsError(missing)

        try:
            user = User.objects.get(email=normalize_email(email))
        except User.DoesNotExist:
            # Hash anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            raise InvalidCredentialsError()

        if not user.check_password(password) or not user.is_active:
            raise InvalidCredentialsError()
        if not user.email_verified:
            raise EmailNotVerifiedError()

        user.last_login = self.clock()
        user.save(update_fields=["last_login"])

        sync_user(self.directory, user)
        return user

    def onboard(
        self,
        *,
        user_id,
        full_name=None,
        bio=None,
        native_language=None,
        learning_language=None,
        location=None,
    ) -> User:
        """Store the full profile and mark the account as onboarded."""
        values = {
            "full_name": full_name,
            "bio": bio,
            "native_language": native_language,
            "learning_language": learning_language,
            "location": location,
        }
        missing = missing_fields(**values)
        if missing:
            raise MissingFieldsError(missing)

        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise UserNotFoundError()

        for name in PROFILE_FIELDS:
            setattr(user, name, values[name].strip())
        user.is_onboarded = True
        user.save(update_fields=[*PROFILE_FIELDS, "is_onboarded"])
        logger.info("auth.onboarded", extra={"event": "auth.onboarded", "user_id": user.pk})

        sync_user(self.directory, user)
        return user

    def start_session(self, response, user) -> str:
        return self.sessions.attach(response, user)

    def end_session(self, response) -> None:
        self.sessions.revoke(response)


@lru_cache(maxsize=1)
def get_auth_flow() -> AuthFlow:
    return AuthFlow(
        mailer=VerificationMailer(),
        directory=get_directory(),
        sessions=get_session_issuer(),
    )

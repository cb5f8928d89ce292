"""One-time codes for email verification.

Codes are drawn from `secrets` so they cannot be predicted from earlier
codes, and always render as exactly six digits.
"""

import secrets
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone
from django.utils.crypto import constant_time_compare, salted_hmac

OTP_MIN = 100000
OTP_MAX = 999999
DIGEST_SALT = "users.otp.consumed"


def generate_otp() -> str:
    """Return a uniformly distributed code in the range 100000..999999."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def otp_ttl() -> timedelta:
    return timedelta(minutes=getattr(settings, "OTP_TTL_MINUTES", 10))


def otp_expiry(now: datetime | None = None) -> datetime:
    return (now or timezone.now()) + otp_ttl()


def issue_challenge(user, now: datetime | None = None) -> str:
    """Set a fresh code and expiry on `user`, replacing any earlier challenge.

    The caller is responsible for saving the user.
    """
    code = generate_otp()
    user.set_otp(code, otp_expiry(now))
    return code


def is_challenge_valid(user, code: str, now: datetime | None = None) -> bool:
    """Check a presented code against the user's pending challenge.

    Code equality and expiry are checked separately; a missing code, a
    missing expiry, a different code and an elapsed expiry all fail alike.
    """
    if not user.verification_otp or not user.otp_expires_at or not code:
        return False
    if not secrets.compare_digest(str(user.verification_otp).encode(), str(code).encode()):
        return False
    return user.otp_expires_at > (now or timezone.now())


def otp_digest(code: str) -> str:
    return salted_hmac(DIGEST_SALT, str(code), algorithm="sha256").hexdigest()


def consume_challenge(user) -> None:
    """Clear the pending challenge, keeping a digest of it until it would have expired.

    The caller is responsible for saving the user.
    """
    user.consumed_otp_digest = otp_digest(user.verification_otp)
    user.consumed_otp_expires_at = user.otp_expires_at
    user.clear_otp()


def is_consumed_code(user, code: str, now: datetime | None = None) -> bool:
    """Check a presented code against the one that already verified `user`."""
    if not user.consumed_otp_digest or not user.consumed_otp_expires_at or not code:
        return False
    if not constant_time_compare(user.consumed_otp_digest, otp_digest(code)):
        return False
    return user.consumed_otp_expires_at > (now or timezone.now())

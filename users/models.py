"""User model for authentication, email verification and onboarding.

This module defines the custom `User` model which extends Django's
`AbstractUser`, keyed by a unique email instead of a username. It carries
the pending email-verification challenge (one code plus its expiry) and
the language-exchange profile completed during onboarding.
"""

from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractUser
from django.db import models

PROFILE_FIELDS = ("full_name", "bio", "native_language", "learning_language", "location")


class UserManager(BaseUserManager):
    """Manager creating users identified by email."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The email must be set")
        email = self.normalize_email(email).strip().lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        # Staff accounts are created by operators, not through signup
        extra_fields.setdefault("email_verified", True)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Custom user with unique email, verification challenge and profile.

    Fields:
    - email: the login identifier, unique at the database level (normalized).
    - email_verified: whether the user proved control of the email address.
    - verification_otp / otp_expires_at: the single pending challenge; both
      are set and cleared together.
    - consumed_otp_digest / consumed_otp_expires_at: keyed digest of the code
      that verified the account and that code's original expiry, so a
      repeated verification with the same code can be recognized.
    - is_onboarded: set once every profile field has been supplied.
    """

    username = None
    first_name = None
    last_name = None

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=150)
    profile_picture = models.URLField(blank=True, default="")
    email_verified = models.BooleanField(default=False)
    verification_otp = models.CharField(max_length=6, null=True, blank=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)
    consumed_otp_digest = models.CharField(max_length=128, null=True, blank=True)
    consumed_otp_expires_at = models.DateTimeField(null=True, blank=True)
    is_onboarded = models.BooleanField(default=False)
    bio = models.TextField(blank=True, default="")
    native_language = models.CharField(max_length=64, blank=True, default="")
    learning_language = models.CharField(max_length=64, blank=True, default="")
    location = models.CharField(max_length=128, blank=True, default="")

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["full_name"]

    objects = UserManager()

    def save(self, *args, **kwargs):
        """Normalize the email so uniqueness checks are case-insensitive."""
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def set_otp(self, code: str, expires_at) -> None:
        self.verification_otp = code
        self.otp_expires_at = expires_at

    def clear_otp(self) -> None:
        self.verification_otp = None
        self.otp_expires_at = None

    @property
    def has_pending_otp(self) -> bool:
        return self.verification_otp is not None

    @property
    def profile_complete(self) -> bool:
        return all(getattr(self, name) for name in PROFILE_FIELDS)

    def get_full_name(self):
        return self.full_name

    def get_short_name(self):
        return self.full_name

    def __str__(self):
        return self.email

    class Meta(AbstractUser.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(verification_otp__isnull=True, otp_expires_at__isnull=True)
                | models.Q(verification_otp__isnull=False, otp_expires_at__isnull=False),
                name="otp_and_expiry_set_together",
            )
        ]

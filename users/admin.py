"""Admin registration for the custom User model.

Builds on Django's `UserAdmin`, swapping the username-based fieldsets for
email, verification state and the onboarding profile.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserChangeForm as BaseUserChangeForm
from django.contrib.auth.forms import UserCreationForm as BaseUserCreationForm

from .models import User


class UserCreationForm(BaseUserCreationForm):
    class Meta(BaseUserCreationForm.Meta):
        model = User
        fields = ("email", "full_name")


class UserChangeForm(BaseUserChangeForm):
    class Meta(BaseUserChangeForm.Meta):
        model = User
        fields = "__all__"


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration keyed by email.

    The pending verification code is read-only: it can be inspected to help
    a user, but codes are only ever issued by the signup and resend flows.
    """

    add_form = UserCreationForm
    form = UserChangeForm

    list_display = (
        "email",
        "full_name",
        "email_verified",
        "is_onboarded",
        "is_staff",
        "is_active",
        "last_login",
        "date_joined",
    )
    list_filter = ("is_staff", "is_superuser", "is_active", "email_verified", "is_onboarded", "groups")
    search_fields = ("email", "full_name")
    ordering = ("-date_joined",)
    readonly_fields = (
        "last_login",
        "date_joined",
        "verification_otp",
        "otp_expires_at",
        "consumed_otp_digest",
        "consumed_otp_expires_at",
    )

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            "Verification",
            {
                "fields": (
                    "email_verified",
                    "verification_otp",
                    "otp_expires_at",
                    "consumed_otp_digest",
                    "consumed_otp_expires_at",
                )
            },
        ),
        (
            "Profile",
            {
                "fields": (
                    "full_name",
                    "profile_picture",
                    "bio",
                    "native_language",
                    "learning_language",
                    "location",
                    "is_onboarded",
                )
            },
        ),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "full_name", "password1", "password2"),
            },
        ),
    )

    filter_horizontal = ("groups", "user_permissions")

"""Authentication and onboarding routes grouped under /api/v1/auth/."""

from django.urls import path

from .views import current_user, login, logout, onboard, resend_verification, signup, verify_email

urlpatterns = [
    path("auth/signup/", signup, name="signup"),
    path("auth/login/", login, name="login"),
    path("auth/logout/", logout, name="logout"),
    path("auth/verify-email/", verify_email, name="verify_email"),
    path("auth/resend-verification/", resend_verification, name="resend_verification"),
    path("auth/onboarding/", onboard, name="onboarding"),
    path("auth/me/", current_user, name="me"),
]

from datetime import timedelta
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from users.models import User

from chat.directory import StreamDirectory

from .factories import DEFAULT_PASSWORD, UserFactory

SIGNUP_URL = "/api/v1/auth/signup/"
LOGIN_URL = "/api/v1/auth/login/"
LOGOUT_URL = "/api/v1/auth/logout/"
VERIFY_URL = "/api/v1/auth/verify-email/"
RESEND_URL = "/api/v1/auth/resend-verification/"
ONBOARD_URL = "/api/v1/auth/onboarding/"
ME_URL = "/api/v1/auth/me/"

PROFILE = {
    "fullName": "Ann Lee",
    "bio": "Polyglot in training",
    "nativeLanguage": "english",
    "learningLanguage": "spanish",
    "location": "Lisbon, Portugal",
}


class SignupVerifyLoginOnboardScenarioTests(APITestCase):
    def test_full_flow(self):
        resp = self.client.post(
            SIGNUP_URL, {"email": "a@x.com", "password": "Abc123!@", "fullName": "Ann"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["email"], "a@x.com")
        self.assertNotIn("jwt", resp.cookies)

        user = User.objects.get(email="a@x.com")
        code = user.verification_otp
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["a@x.com"])
        self.assertIn(code, mail.outbox[0].body)

        wrong = "000000" if code != "000000" else "111111"
        resp = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": wrong}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data, {"detail": "Invalid or expired OTP"})

        resp = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": code}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["user"]["isEmailVerified"])
        self.assertIn("jwt", resp.cookies)

        resp = self.client.post(LOGIN_URL, {"email": "a@x.com", "password": "Abc123!@"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["user"]["email"], "a@x.com")
        self.assertFalse(resp.data["user"]["isOnboarded"])

        incomplete = {**PROFILE}
        del incomplete["location"]
        resp = self.client.post(ONBOARD_URL, incomplete, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["missingFields"], ["location"])

        resp = self.client.post(ONBOARD_URL, PROFILE, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["user"]["isOnboarded"])
        self.assertEqual(resp.data["user"]["nativeLanguage"], "english")

        me = self.client.get(ME_URL)
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["user"]["fullName"], "Ann Lee")


class SignupTests(APITestCase):
    def test_overlong_values_are_rejected_before_saving(self):
        resp = self.client.post(
            SIGNUP_URL,
            {"email": "a@x.com", "password": DEFAULT_PASSWORD, "fullName": "A" * 151},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("fullName", resp.data)
        self.assertFalse(User.objects.exists())

    def test_missing_fields_are_listed(self):
        resp = self.client.post(SIGNUP_URL, {"email": "a@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["missingFields"], ["password", "fullName"])

    def test_weak_password_reports_first_failing_rule(self):
        resp = self.client.post(
            SIGNUP_URL, {"email": "a@x.com", "password": "abcdefg1", "fullName": "Ann"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Password must contain at least one uppercase letter")

    def test_invalid_and_duplicate_email(self):
        UserFactory(email="taken@x.com")
        resp = self.client.post(
            SIGNUP_URL, {"email": "bad-email", "password": DEFAULT_PASSWORD, "fullName": "Ann"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["detail"], "Email is not valid")

        resp = self.client.post(
            SIGNUP_URL, {"email": "Taken@x.com", "password": DEFAULT_PASSWORD, "fullName": "Ann"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("already exists", resp.data["detail"])

    def test_email_failure_rolls_back_signup(self):
        with patch("users.services.send_mail", side_effect=SMTPException("relay down")):
            resp = self.client.post(
                SIGNUP_URL, {"email": "a@x.com", "password": DEFAULT_PASSWORD, "fullName": "Ann"}, format="json"
            )
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(User.objects.filter(email="a@x.com").exists())

        # The address is free again once email delivery recovers
        resp = self.client.post(
            SIGNUP_URL, {"email": "a@x.com", "password": DEFAULT_PASSWORD, "fullName": "Ann"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)


class VerifyEmailTests(APITestCase):
    def setUp(self):
        self.user = UserFactory(email="a@x.com", pending=True)

    def test_expired_code_matches_wrong_code_response(self):
        wrong = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "999999"}, format="json")
        unknown = self.client.post(VERIFY_URL, {"email": "nobody@x.com", "otp": "123456"}, format="json")

        User.objects.filter(pk=self.user.pk).update(otp_expires_at=timezone.now() - timedelta(seconds=1))
        expired = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "123456"}, format="json")

        for resp in (wrong, unknown, expired):
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(resp.data, {"detail": "Invalid or expired OTP"})
            self.assertNotIn("jwt", resp.cookies)

    def test_reverify_is_idempotent_and_issues_fresh_cookie(self):
        first = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "123456"}, format="json")
        self.assertEqual(first.status_code, status.HTTP_200_OK)

        self.client.cookies.clear()
        second = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "123456"}, format="json")
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data["detail"], "Email already verified")
        self.assertIn("jwt", second.cookies)

    def test_verified_account_with_wrong_code_gets_no_session(self):
        UserFactory(email="victim@x.com")
        resp = self.client.post(VERIFY_URL, {"email": "victim@x.com", "otp": "000000"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data, {"detail": "Invalid or expired OTP"})
        self.assertNotIn("jwt", resp.cookies)
        self.assertEqual(self.client.get(ME_URL).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_reverify_with_a_different_code_is_rejected(self):
        self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "123456"}, format="json")
        self.client.cookies.clear()
        resp = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "654321"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("jwt", resp.cookies)

    def test_missing_otp(self):
        resp = self.client.post(VERIFY_URL, {"email": "a@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["missingFields"], ["otp"])


class ResendVerificationTests(APITestCase):
    def test_resend_replaces_code(self):
        user = UserFactory(email="a@x.com", pending=True)
        with patch("users.otp.generate_otp", return_value="654321"):
            resp = self.client.post(RESEND_URL, {"email": "a@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        user.refresh_from_db()
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(user.verification_otp, "654321")
        self.assertIn("654321", mail.outbox[0].body)

        stale = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "123456"}, format="json")
        self.assertEqual(stale.status_code, status.HTTP_400_BAD_REQUEST)
        fresh = self.client.post(VERIFY_URL, {"email": "a@x.com", "otp": "654321"}, format="json")
        self.assertEqual(fresh.status_code, status.HTTP_200_OK)

    def test_resend_error_statuses(self):
        UserFactory(email="done@x.com")
        self.assertEqual(self.client.post(RESEND_URL, {}, format="json").status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            self.client.post(RESEND_URL, {"email": "nobody@x.com"}, format="json").status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertEqual(
            self.client.post(RESEND_URL, {"email": "done@x.com"}, format="json").status_code,
            status.HTTP_400_BAD_REQUEST,
        )

    def test_resend_email_failure_is_reported_without_rollback(self):
        user = UserFactory(email="a@x.com", pending=True)
        with patch("users.services.send_mail", side_effect=SMTPException("relay down")):
            resp = self.client.post(RESEND_URL, {"email": "a@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        user.refresh_from_db()
        self.assertIsNotNone(user.verification_otp)
        self.assertIsNotNone(user.otp_expires_at)


class LoginLogoutTests(APITestCase):
    def test_login_sets_hardened_cookie(self):
        UserFactory(email="a@x.com")
        resp = self.client.post(LOGIN_URL, {"email": "a@x.com", "password": DEFAULT_PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        cookie = resp.cookies["jwt"]
        self.assertTrue(cookie["httponly"])
        self.assertEqual(cookie["samesite"], "Strict")
        self.assertEqual(int(cookie["max-age"]), 7 * 24 * 60 * 60)
        self.assertFalse(cookie["secure"])

    def test_bad_credentials_and_unverified_are_distinct(self):
        UserFactory(email="a@x.com")
        UserFactory(email="pending@x.com", pending=True)

        unknown = self.client.post(LOGIN_URL, {"email": "b@x.com", "password": DEFAULT_PASSWORD}, format="json")
        wrong = self.client.post(LOGIN_URL, {"email": "a@x.com", "password": "Nope123!"}, format="json")
        unverified = self.client.post(
            LOGIN_URL, {"email": "pending@x.com", "password": DEFAULT_PASSWORD}, format="json"
        )

        self.assertEqual(unknown.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(wrong.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(unknown.data, wrong.data)
        self.assertEqual(unverified.status_code, status.HTTP_403_FORBIDDEN)
        self.assertNotEqual(unverified.data, wrong.data)

    def test_login_missing_fields(self):
        resp = self.client.post(LOGIN_URL, {"email": "a@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["missingFields"], ["password"])

    def test_logout_clears_cookie_even_without_session(self):
        resp = self.client.post(LOGOUT_URL)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.cookies["jwt"].value, "")
        self.assertEqual(int(resp.cookies["jwt"]["max-age"]), 0)

    def test_logout_ends_cookie_session(self):
        UserFactory(email="a@x.com")
        self.client.post(LOGIN_URL, {"email": "a@x.com", "password": DEFAULT_PASSWORD}, format="json")
        self.assertEqual(self.client.get(ME_URL).status_code, status.HTTP_200_OK)

        self.client.post(LOGOUT_URL)
        self.assertEqual(self.client.get(ME_URL).status_code, status.HTTP_401_UNAUTHORIZED)


class OnboardingTests(APITestCase):
    def setUp(self):
        self.user = UserFactory(email="a@x.com")
        self.client.post(LOGIN_URL, {"email": "a@x.com", "password": DEFAULT_PASSWORD}, format="json")

    def test_requires_session(self):
        self.client.cookies.clear()
        resp = self.client.post(ONBOARD_URL, PROFILE, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_lists_every_missing_field(self):
        resp = self.client.put(ONBOARD_URL, {"fullName": "Ann", "bio": "  "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["missingFields"], ["bio", "nativeLanguage", "learningLanguage", "location"])

    def test_put_onboards_session_user_only(self):
        other = UserFactory(email="other@x.com")
        resp = self.client.put(ONBOARD_URL, {**PROFILE, "id": other.pk, "email": "other@x.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        self.user.refresh_from_db()
        other.refresh_from_db()
        self.assertTrue(self.user.is_onboarded)
        self.assertEqual(self.user.email, "a@x.com")
        self.assertEqual(self.user.location, "Lisbon, Portugal")
        self.assertFalse(other.is_onboarded)

    def test_session_for_deleted_user_is_not_found(self):
        self.user.delete()
        resp = self.client.post(ONBOARD_URL, PROFILE, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(User.objects.filter(email="a@x.com").exists())

    def test_deleted_user_cannot_read_profile(self):
        self.user.delete()
        resp = self.client.get(ME_URL)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_header_onboards_token_user(self):
        token = self.client.cookies["jwt"].value
        self.client.cookies.clear()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        resp = self.client.post(ONBOARD_URL, PROFILE, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["user"]["email"], "a@x.com")


class DirectoryIsolationTests(APITestCase):
    """Directory failures leave statuses and bodies untouched."""

    def _run_flow(self):
        UserFactory(email="p@x.com", pending=True)
        verify = self.client.post(VERIFY_URL, {"email": "p@x.com", "otp": "123456"}, format="json")
        login = self.client.post(LOGIN_URL, {"email": "p@x.com", "password": DEFAULT_PASSWORD}, format="json")
        onboard = self.client.post(ONBOARD_URL, PROFILE, format="json")
        return [(r.status_code, {k: v for k, v in r.data.items() if k != "user"}) for r in (verify, login, onboard)]

    def test_directory_exception_does_not_change_responses(self):
        with patch.object(StreamDirectory, "upsert", side_effect=RuntimeError("stream down")) as upsert:
            results = self._run_flow()
        self.assertEqual(upsert.call_count, 3)
        self.assertEqual([code for code, _ in results], [200, 200, 200])

    def test_directory_rejection_matches_success(self):
        with patch.object(StreamDirectory, "upsert", return_value=False):
            failed = self._run_flow()
        User.objects.all().delete()
        self.client.cookies.clear()
        with patch.object(StreamDirectory, "upsert", return_value=True):
            succeeded = self._run_flow()
        self.assertEqual(failed, succeeded)

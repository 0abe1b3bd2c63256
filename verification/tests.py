import json
from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone

from .models import OtpVerification
from .services import normalize_phone, OtpValidationError
from .sms import SmsError, send_otp_sms


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


class NormalizePhoneTests(TestCase):
    def test_variants(self):
        self.assertEqual(normalize_phone("98765 43210"), "+919876543210")
        self.assertEqual(normalize_phone("+91-98765-43210"), "+919876543210")
        with self.assertRaises(OtpValidationError):
            normalize_phone("12345")


class SmsTests(TestCase):
    def test_request_shape(self):
        with patch("verification.sms.requests.post", return_value=FakeResponse({"status": "success"})) as post:
            send_otp_sms("+919876543210", "123456")
        params = post.call_args.kwargs["data"]
        self.assertEqual(params["mobile"], "9876543210")
        self.assertEqual(params["apirequest"], "Text")
        self.assertEqual(params["TemplateID"], "TPL1")
        self.assertEqual(params["format"], "JSON")
        self.assertIn("123456", params["message"])
        self.assertNotIn("{#var#}", params["message"])

    def test_gateway_error(self):
        with patch("verification.sms.requests.post", return_value=FakeResponse({"status": "error"})):
            with self.assertRaises(SmsError):
                send_otp_sms("+919876543210", "123456")


class GenerateOtpViewTests(TestCase):
    url = "/api/generate-otp.php"

    def _post(self, body):
        return self.client.post(self.url, data=json.dumps(body), content_type="application/json")

    def test_generates_and_sends(self):
        with patch("verification.services.send_otp_sms") as sms:
            resp = self._post({"phone": "9876543210", "purpose": "test_ride"})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertGreater(body["expires_in"], 290)
        self.assertNotIn("development_otp", body)
        otp = OtpVerification.objects.get()
        self.assertEqual(otp.phone, "+919876543210")
        self.assertRegex(otp.otp, r"^\d{6}$")
        sms.assert_called_once_with("+919876543210", otp.otp)

    def test_existing_otp_reused_without_resend(self):
        with patch("verification.services.send_otp_sms") as sms:
            self._post({"phone": "9876543210", "purpose": "test_ride"})
            resp = self._post({"phone": "9876543210", "purpose": "test_ride"})
        self.assertTrue(resp.json()["success"])
        self.assertEqual(OtpVerification.objects.count(), 1)
        self.assertEqual(sms.call_count, 1)

    def test_force_new_resends_same_code(self):
        with patch("verification.services.send_otp_sms") as sms:
            self._post({"phone": "9876543210", "purpose": "test_ride"})
            self._post({"phone": "9876543210", "purpose": "test_ride", "force_new": True})
        self.assertEqual(OtpVerification.objects.count(), 1)
        self.assertEqual(sms.call_count, 2)
        self.assertEqual(sms.call_args_list[0], sms.call_args_list[1])

    def test_locked_otp_is_replaced_on_request(self):
        locked = OtpVerification.objects.create(
            phone="+919876543210", otp="123456", purpose="test_ride",
            attempts=4, max_attempts=3,
            expires_at=timezone.now() + timedelta(minutes=4),
        )
        with patch("verification.services.send_otp_sms") as sms:
            resp = self._post({"phone": "9876543210", "purpose": "test_ride", "force_new": True})

        self.assertEqual(resp.json()["message"], "OTP sent successfully")
        self.assertEqual(OtpVerification.objects.count(), 2)
        fresh = OtpVerification.objects.exclude(pk=locked.pk).get()
        self.assertEqual(fresh.attempts, 0)
        sms.assert_called_once_with("+919876543210", fresh.otp)

    def test_form_encoded_body(self):
        with patch("verification.services.send_otp_sms"):
            resp = self.client.post(self.url, {"phone": "9876543210", "purpose": "booking_form"})
        self.assertTrue(resp.json()["success"])

    @override_settings(OTP_DEVELOPMENT_MODE=True)
    def test_development_mode_echoes_otp(self):
        with patch("verification.services.send_otp_sms") as sms:
            body = self._post({"phone": "9876543210", "purpose": "contact_form"}).json()
        sms.assert_not_called()
        self.assertEqual(body["development_otp"], OtpVerification.objects.get().otp)

    def test_rate_limit(self):
        for _ in range(15):
            OtpVerification.objects.create(
                phone="+919876543210", otp="111111", purpose="test_ride",
                expires_at=timezone.now() - timedelta(minutes=1),
            )
        with patch("verification.services.send_otp_sms") as sms:
            with self.assertLogs("verification.services", level="WARNING"):
                resp = self._post({"phone": "9876543210", "purpose": "test_ride"})
        self.assertEqual(resp.status_code, 429)
        self.assertTrue(resp.json()["rate_limited"])
        sms.assert_not_called()

    def test_validation(self):
        resp = self._post({"phone": "98765", "purpose": "test_ride"})
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(resp.json()["validation_error"])

        resp = self._post({"phone": "9876543210", "purpose": "newsletter"})
        self.assertTrue(resp.json()["validation_error"])

        resp = self._post({"purpose": "test_ride"})
        self.assertEqual(resp.json()["error"], "Phone number is required")

    def test_sms_failure_discards_otp(self):
        with patch("verification.services.send_otp_sms", side_effect=SmsError("down")):
            with self.assertLogs("verification.views", level="ERROR"):
                resp = self._post({"phone": "9876543210", "purpose": "test_ride"})
        self.assertEqual(resp.status_code, 502)
        self.assertFalse(OtpVerification.objects.exists())

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


class VerifyOtpViewTests(TestCase):
    url = "/api/verify-otp.php"

    def setUp(self):
        self.otp = OtpVerification.objects.create(
            phone="+919876543210", otp="482913", purpose="test_ride",
            expires_at=timezone.now() + timedelta(minutes=5),
        )

    def _verify(self, code, purpose="test_ride"):
        return self.client.post(
            self.url,
            data=json.dumps({"phone": "9876543210", "otp": code, "purpose": purpose}),
            content_type="application/json",
        )

    def test_correct_code_verifies_and_clears_others(self):
        stale = OtpVerification.objects.create(
            phone="+919876543210", otp="000000", purpose="test_ride",
            expires_at=timezone.now() - timedelta(minutes=10),
        )
        resp = self._verify("482913")
        self.assertEqual(resp.json(), {"success": True, "message": "Phone number verified successfully", "verified": True})
        self.otp.refresh_from_db()
        self.assertTrue(self.otp.verified)
        self.assertIsNotNone(self.otp.verified_at)
        self.assertFalse(OtpVerification.objects.filter(pk=stale.pk).exists())

    def test_wrong_code_counts_attempt(self):
        resp = self._verify("111111")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(resp.json()["invalid_otp"])
        self.otp.refresh_from_db()
        self.assertEqual(self.otp.attempts, 1)

    def test_correct_code_accepted_at_max_attempts(self):
        for code in ("111111", "222222", "333333"):
            self.assertTrue(self._verify(code).json()["invalid_otp"])
        self.otp.refresh_from_db()
        self.assertEqual(self.otp.attempts, 3)

        resp = self._verify("482913")
        self.assertTrue(resp.json()["verified"])

    def test_locked_once_attempts_exceed_max(self):
        for code in ("111111", "222222", "333333"):
            self._verify(code)
        resp = self._verify("444444")
        self.assertEqual(resp.status_code, 429)
        self.assertTrue(resp.json()["max_attempts_exceeded"])

        resp = self._verify("482913")
        self.assertTrue(resp.json()["max_attempts_exceeded"])
        self.otp.refresh_from_db()
        self.assertFalse(self.otp.verified)

    def test_expired_code_rejected(self):
        OtpVerification.objects.filter(pk=self.otp.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        self.assertTrue(self._verify("482913").json()["invalid_otp"])

    def test_purpose_must_match(self):
        self.assertTrue(self._verify("482913", purpose="booking_form").json()["invalid_otp"])

    def test_malformed_code(self):
        resp = self._verify("48291")
        self.assertEqual(resp.json()["error"], "OTP must be 6 digits")
        self.assertTrue(resp.json()["validation_error"])

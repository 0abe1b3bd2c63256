import json
from datetime import timedelta
from unittest.mock import patch

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from crm.models import SalesforceSubmission
from verification.models import OtpVerification
from . import models


class FakeResponse:
    status_code = 200
    text = "ok"


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class SubmitTestDriveTests(TestCase):
    url = "/api/submit-test-drive.php"

    def _post_json(self, body):
        return self.client.post(self.url, data=json.dumps(body), content_type="application/json")

    def valid(self, **overrides):
        data = {
            "full_name": "Meera Iyer",
            "phone": "9123456780",
            "email": "meera@example.com",
            "pincode": "400001",
            "message": "Weekend slot please",
        }
        data.update(overrides)
        return data

    def test_success_persists_forwards_and_emails(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()) as post:
            resp = self._post_json(self.valid())

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertIn("Thank you for your test ride request", body["message"])

        ride = models.TestDrive.objects.get()
        self.assertEqual(ride.phone, "9123456780")
        self.assertFalse(ride.phone_verified)
        self.assertEqual(body["reference"], ride.reference)

        post.assert_called_once()
        self.assertIn("00N_test_ride_date", post.call_args.kwargs["data"])
        self.assertTrue(SalesforceSubmission.objects.filter(form_type="test_ride", transaction_id=ride.reference).exists())

        self.assertEqual([m.to for m in mail.outbox], [["rides@kineticev.test"], ["meera@example.com"]])
        self.assertEqual(mail.outbox[0].subject, "[KineticEV] New Test Ride Request: Meera Iyer")

    def test_form_encoded_submission(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()):
            resp = self.client.post(self.url, self.valid(date="2024-06-01"))
        self.assertTrue(resp.json()["success"])
        self.assertEqual(str(models.TestDrive.objects.get().date), "2024-06-01")

    def test_field_errors(self):
        resp = self._post_json(self.valid(phone="12", email="bad", pincode="", full_name="X"))
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Please correct the errors below and try again.")
        self.assertEqual(body["errors"]["phone"], "Please enter a valid 10-digit mobile number")
        self.assertEqual(body["errors"]["email"], "Please enter a valid email address")
        self.assertEqual(body["errors"]["pincode"], "Pincode is required")
        self.assertEqual(body["errors"]["full_name"], "Name should be larger than 2 characters")
        self.assertFalse(models.TestDrive.objects.exists())

    def test_verified_phone_is_flagged(self):
        OtpVerification.objects.create(
            phone="+919123456780", otp="123456", purpose="test_ride", verified=True,
            verified_at=timezone.now() - timedelta(minutes=5),
            expires_at=timezone.now() + timedelta(minutes=1),
        )
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()):
            self._post_json(self.valid())
        self.assertTrue(models.TestDrive.objects.get().phone_verified)

    def test_crm_outage_still_succeeds(self):
        failing = FakeResponse()
        failing.status_code = 500
        with patch("crm.salesforce.requests.post", return_value=failing):
            with self.assertLogs("crm.services", level="ERROR"):
                resp = self._post_json(self.valid())
        self.assertTrue(resp.json()["success"])
        self.assertEqual(len(mail.outbox), 2)

    def test_database_error(self):
        with patch("leads.views.TestDrive.objects.create", side_effect=DatabaseError("locked")):
            with self.assertLogs("leads.views", level="ERROR"):
                resp = self._post_json(self.valid())
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(
            resp.json()["message"],
            "Sorry, there was an error processing your test ride request. Please try again later.",
        )
        self.assertEqual(len(mail.outbox), 0)


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class SaveContactTests(TestCase):
    url = "/api/save-contact.php"

    def _post_json(self, body):
        return self.client.post(self.url, data=json.dumps(body), content_type="application/json")

    def valid(self, **overrides):
        data = {
            "name": "Rohan Kulkarni",
            "phone": "98220 12345",
            "email": "rohan@example.com",
            "help": "enquiry",
            "message": "Is the DX+ available in grey?",
        }
        data.update(overrides)
        return data

    def test_enquiry_persists_forwards_and_emails(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()) as post:
            resp = self._post_json(self.valid())

        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Contact saved successfully")

        contact = models.ContactSubmission.objects.get()
        self.assertEqual(contact.phone, "9822012345")
        self.assertEqual(contact.help_type, "enquiry")
        self.assertEqual(contact.ip_address, "127.0.0.1")
        self.assertEqual(body["contact_id"], contact.reference)
        self.assertEqual(body["data"]["reference_id"], contact.reference)

        payload = post.call_args.kwargs["data"]
        self.assertEqual(payload["recordType"], "RT-RETAIL")
        self.assertEqual(payload["00N_concern"], "Enquiry")
        self.assertEqual(payload["00N_message"], "Is the DX+ available in grey?")
        self.assertEqual(payload["retURL"], "https://testserver/thank-you")
        self.assertNotIn("00N_test_ride_date", payload)
        self.assertNotIn("00N_booking_amount", payload)
        sub = SalesforceSubmission.objects.get()
        self.assertEqual((sub.form_type, sub.transaction_id, sub.help_type), ("contact", contact.reference, "enquiry"))

        self.assertEqual([m.to for m in mail.outbox], [["support@kineticev.test"], ["rohan@example.com"]])
        self.assertEqual(mail.outbox[0].subject, "[KineticEV] New Contact Request: Enquiry")
        self.assertIn(contact.reference, mail.outbox[1].body)

    def test_dealership_uses_dealership_record_type(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()) as post:
            self.client.post("/api/save-contact", self.valid(help="dealership"))
        payload = post.call_args.kwargs["data"]
        self.assertEqual(payload["recordType"], "RT-DEALER")
        self.assertEqual(payload["00N_concern"], "Dealership")

    def test_support_request_is_not_sent_to_crm(self):
        with patch("crm.salesforce.requests.post") as post:
            resp = self._post_json(self.valid(help="support"))
        self.assertEqual(resp.status_code, 201)
        post.assert_not_called()
        self.assertFalse(SalesforceSubmission.objects.exists())
        self.assertEqual(len(mail.outbox), 2)

    def test_field_errors(self):
        resp = self._post_json({"name": "R", "phone": "", "email": "nope", "help": "careers"})
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Please correct the errors below and try again.")
        self.assertEqual(body["errors"], {
            "name": "Full name must be at least 2 characters",
            "phone": "Phone number is required",
            "email": "Please enter a valid email address",
            "help": "Please select a valid concern type",
        })
        self.assertFalse(models.ContactSubmission.objects.exists())

    def test_verified_phone_is_flagged(self):
        OtpVerification.objects.create(
            phone="+919822012345", otp="123456", purpose="contact_form", verified=True,
            verified_at=timezone.now() - timedelta(minutes=2),
            expires_at=timezone.now() + timedelta(minutes=1),
        )
        with patch("crm.salesforce.requests.post", return_value=FakeResponse()):
            self._post_json(self.valid())
        self.assertTrue(models.ContactSubmission.objects.get().phone_verified)

    def test_database_error(self):
        with patch("leads.views.ContactSubmission.objects.create", side_effect=DatabaseError("locked")):
            with self.assertLogs("leads.views", level="ERROR"):
                resp = self._post_json(self.valid())
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"success": False, "error": "Internal server error. Please try again later."})
        self.assertEqual(len(mail.outbox), 0)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)

from decimal import Decimal
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from django.conf import settings
from django.core import mail
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse

from payments.integrations.phonepe import (
    GatewayAuthError,
    GatewayConnectionError,
    GatewayDataError,
    GatewayResponseError,
)
from payments.models import Transaction
from .forms import BookingForm


def booking_data(**overrides):
    data = {
        "firstname": "Asha Patil",
        "phone": "98765 43210",
        "email": "asha@example.com",
        "address": "12 MG Road, Shivajinagar",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411005",
        "variant": "dx",
        "color": "white",
        "terms": "on",
        "amount": "1000",
    }
    data.update(overrides)
    return data


class BookingFormTests(TestCase):
    def test_valid_form_normalises_phone(self):
        form = BookingForm(booking_data())
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["phone"], "9876543210")
        self.assertFalse(form.cleaned_data["ownedBefore"])

    def test_messages(self):
        form = BookingForm(booking_data(
            firstname="A",
            phone="12345",
            email="nope",
            address="abc",
            city="Pune1",
            pincode="011005",
            variant="sx",
            color="pink",
            terms="",
        ))
        self.assertFalse(form.is_valid())
        summary = form.error_summary()
        for message in (
            "Name should be larger than 2 characters",
            "Please enter a valid 10-digit mobile number",
            "Please enter a valid email address",
            "Address must be at least 5 characters",
            "Enter a valid city name",
            "Please enter a valid 6-digit pin code",
            "Please select a valid variant",
            "Please select a valid color",
            "You must agree to the terms and conditions",
        ):
            self.assertIn(message, summary)
        self.assertTrue(summary.startswith("Name should be larger than 2 characters. "))

    def test_required_messages_name_the_field(self):
        form = BookingForm({})
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["firstname"], ["This field is required (Full Name)"])
        self.assertEqual(form.errors["pincode"], ["This field is required (Pincode)"])

    def test_name_with_digits_rejected(self):
        form = BookingForm(booking_data(firstname="R2D2"))
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["firstname"], ["Enter a valid name"])


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class ProcessPaymentTests(TestCase):
    url = "/api/process-payment"

    def _post(self, data=None, token="tok", order=None, order_error=None, token_error=None):
        order = order or {"ok": True, "order_id": "OMO9", "redirect_url": "https://pay.test/c/OMO9", "data": {}}
        with patch("bookings.views.fetch_access_token", return_value=token, side_effect=token_error) as fetch, \
                patch("bookings.views.create_order", return_value=order, side_effect=order_error) as create:
            resp = self.client.post(self.url, data or booking_data())
        return resp, fetch, create

    def test_invalid_form_redirects_with_error(self):
        resp, fetch, _ = self._post(booking_data(pincode="12"))

        self.assertEqual(resp.status_code, 302)
        location = urlparse(resp["Location"])
        self.assertEqual(location.path, "/book-now")
        self.assertEqual(parse_qs(location.query)["error"], ["Please enter a valid 6-digit pin code"])
        self.assertFalse(Transaction.objects.exists())
        fetch.assert_not_called()

    def test_success_persists_pending_and_redirects_to_gateway(self):
        resp, _, create = self._post(booking_data(txnid="TXN12345"))

        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "payments/checkout_redirect.html")
        self.assertContains(resp, "https://pay.test/c/OMO9")

        txn = Transaction.objects.get()
        self.assertEqual(txn.transaction_id, "TXN12345")
        self.assertEqual(txn.status, "PENDING")
        self.assertEqual(txn.amount, Decimal("1000.00"))
        self.assertEqual(txn.gateway_order_id, "OMO9")
        self.assertEqual(create.call_args.args, ("tok", txn))

    def test_row_is_pending_before_gateway_is_called(self):
        seen = []

        def fake_token():
            seen.append(list(Transaction.objects.values_list("transaction_id", "status")))
            return "tok"

        with patch("bookings.views.fetch_access_token", side_effect=fake_token), \
                patch("bookings.views.create_order",
                      return_value={"ok": True, "order_id": "OMO1", "redirect_url": "https://pay.test/c", "data": {}}):
            self.client.post(self.url, booking_data(txnid="TXNORDER1"))

        self.assertEqual(seen, [[("TXNORDER1", "PENDING")]])

    def test_generated_txn_id_and_default_amount(self):
        data = booking_data()
        del data["amount"]
        self._post(data)
        txn = Transaction.objects.get()
        self.assertRegex(txn.transaction_id, r"^TXN\d{14}$")
        self.assertEqual(txn.amount, Decimal("1000.00"))

    def test_gateway_failures_map_to_error_pages(self):
        cases = [
            ({"token_error": GatewayConnectionError("down")}, "gateway_connection"),
            ({"token_error": GatewayAuthError("no", status_code=401)}, "gateway_auth"),
            ({"token_error": GatewayAuthError("no token", status_code=200)}, "gateway_token"),
            ({"order_error": GatewayResponseError("522", status_code=522)}, "gateway_unavailable"),
            ({"order_error": GatewayResponseError("400", status_code=400)}, "gateway_rejected"),
            ({"order_error": GatewayDataError("no orderId", status_code=200)}, "gateway_data"),
        ]
        for i, (kwargs, kind) in enumerate(cases):
            with self.subTest(kind=kind):
                with self.assertLogs("bookings.views", level="ERROR"):
                    resp, _, _ = self._post(booking_data(txnid=f"TXNERR{i}"), **kwargs)
                self.assertTemplateUsed(resp, "error_page.html")
                self.assertEqual(resp.context["kind"], kind)
                self.assertContains(resp, "/book-now", status_code=resp.status_code)
                # booking row stays for later reconciliation
                self.assertEqual(Transaction.objects.get(transaction_id=f"TXNERR{i}").status, "PENDING")

    def test_missing_gateway_credentials_shows_error_page(self):
        with override_settings(PHONEPE={**settings.PHONEPE, "CLIENT_ID": ""}):
            with self.assertLogs("bookings.views", level="ERROR"):
                resp = self.client.post(self.url, booking_data(txnid="TXNCONF1"))
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.context["kind"], "gateway_auth")
        self.assertContains(resp, "Payment Gateway Error", status_code=502)

    def test_unavailable_page_says_nothing_was_charged(self):
        with self.assertLogs("bookings.views", level="ERROR"):
            resp, _, _ = self._post(order_error=GatewayResponseError("522", status_code=522))
        self.assertEqual(resp.status_code, 503)
        self.assertContains(resp, "no amount has been charged", status_code=503)

    def test_database_error_sends_failure_mail(self):
        with patch("bookings.views.Transaction.objects.create", side_effect=DatabaseError("disk full")):
            with self.assertLogs("bookings.views", level="ERROR"):
                resp, fetch, _ = self._post(booking_data(txnid="TXNDB1"))

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.context["title"], "Database Error")
        fetch.assert_not_called()
        subjects = [m.subject for m in mail.outbox]
        self.assertIn("[KineticEV] Booking Failure: TXNDB1", subjects)
        self.assertIn("Your Booking Failed: TXNDB1", subjects)
        self.assertEqual(len(mail.outbox), 3)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


class PageTests(TestCase):
    def test_book_now_shows_error(self):
        resp = self.client.get(reverse("bookings:book_now"), {"error": "Enter a valid name"})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Enter a valid name")
        self.assertContains(resp, 'id="pay-button" disabled')

    def test_thank_you_shows_transaction(self):
        Transaction.objects.create(
            transaction_id="TXNTY1", firstname="Asha", phone="9876543210", email="asha@example.com",
            address="12 MG Road", city="Pune", state="Maharashtra", pincode="411005",
            variant="dx", color="red", terms=True, amount=Decimal("1000"), status="COMPLETED",
        )
        resp = self.client.get("/thank-you", {"txnid": "TXNTY1"})
        self.assertContains(resp, "TXNTY1")
        self.assertContains(resp, "1000.00")

    def test_thank_you_unknown_transaction(self):
        resp = self.client.get("/thank-you", {"txnid": "NOPE"})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "NOPE")

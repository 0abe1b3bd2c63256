from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from requests import Timeout

from payments.models import Transaction
from .models import SalesforceSubmission
from .salesforce import (
    SalesforceError,
    build_lead_payload,
    is_eligible,
    normalize_submission_type,
    split_name,
    submit_lead,
)
from .services import CrmForwarder


class FakeResponse:
    def __init__(self, status_code, text="ok"):
        self.status_code = status_code
        self.text = text


class LeadMappingTests(TestCase):
    def test_book_now_payment_update(self):
        form = {
            "full_name": "Rahul Dev Sharma",
            "phone": "9876543210",
            "email": "rahul@example.com",
            "address_1": "Flat 4, Baner Road",
            "pincode": "411045",
            "variant_id": "dx-plus",
            "color_name": "grey",
            "amount": "1000.00",
            "transaction_id": "TXN1",
            "payment_status": "COMPLETED",
            "payment_details": {"paymentDetails": [{"paymentMode": "CARD"}]},
            "payment_date": date(2024, 3, 9),
        }
        payload = build_lead_payload(form, "book_now", payment_update=True)

        self.assertEqual(payload["oid"], "ORG123")
        self.assertEqual(payload["recordType"], "RT-RETAIL")
        self.assertEqual(payload["encoding"], "UTF-8")
        self.assertEqual(payload["first_name"], "Rahul")
        self.assertEqual(payload["last_name"], "Dev Sharma")
        self.assertEqual(payload["00N_whatsapp"], "9876543210")
        self.assertEqual(payload["00N_address"], "Flat 4, Baner Road")
        self.assertEqual(payload["00N_variant"], "DX+")
        self.assertEqual(payload["00N_product_variant"], "DX+ grey")
        self.assertEqual(payload["00N_booking_amount"], "1000.00")
        self.assertEqual(payload["00N_payment_method"], "CARD")
        self.assertEqual(payload["00N_payment_date"], "09-03-2024")
        self.assertEqual(payload["00N_payment_status"], "Success")
        self.assertNotIn("retURL", payload)
        self.assertNotIn("00N_test_ride_date", payload)
        # empty values dropped
        self.assertNotIn("00N_message", payload)

    def test_book_now_defaults(self):
        payload = build_lead_payload({"full_name": "Asha", "phone": "9876543210"}, "book_now", payment_update=True)
        self.assertEqual(payload["00N_booking_amount"], "1000")
        self.assertEqual(payload["00N_payment_method"], "UPI")
        self.assertNotIn("last_name", payload)

    def test_test_ride_has_ride_date_and_ret_url(self):
        form = {"full_name": "Meera Iyer", "phone": "9123456780", "email": "m@example.com", "pincode": "400001"}
        payload = build_lead_payload(form, "test_ride", today=date(2024, 5, 1))

        self.assertEqual(payload["00N_test_ride_date"], "01-05-2024")
        self.assertEqual(payload["00N_test_ride_date_web"], "01-05-2024")
        self.assertEqual(payload["retURL"], "https://testserver/thank-you")
        self.assertNotIn("00N_booking_amount", payload)
        self.assertNotIn("00N_payment_method", payload)

    def test_dealership_record_type(self):
        payload = build_lead_payload({"full_name": "A B", "help_type": "dealership"}, "contact")
        self.assertEqual(payload["recordType"], "RT-DEALER")
        self.assertEqual(payload["00N_concern"], "Dealership")

    def test_helpers(self):
        self.assertEqual(split_name("Cher"), ("Cher", ""))
        self.assertEqual(normalize_submission_type("COMPLETED"), "success")
        self.assertEqual(normalize_submission_type("failure"), "failed")
        self.assertEqual(normalize_submission_type("whatever"), "pending")
        self.assertTrue(is_eligible({"help_type": "Enquiry"}, "contact"))
        self.assertTrue(is_eligible({}, "test_ride"))
        self.assertFalse(is_eligible({"help_type": "support"}, "contact"))


class SubmitLeadTests(TestCase):
    def test_redirect_counts_as_success(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse(302)) as post:
            result = submit_lead({"oid": "ORG123"})
        self.assertTrue(result["ok"])
        self.assertEqual(post.call_args.kwargs["data"], {"oid": "ORG123"})

    def test_error_status_raises(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse(500, "bad")):
            with self.assertRaises(SalesforceError) as ctx:
                submit_lead({"oid": "ORG123"})
        self.assertEqual(ctx.exception.status_code, 500)

    def test_timeout_raises(self):
        with patch("crm.salesforce.requests.post", side_effect=Timeout("slow")):
            with self.assertRaises(SalesforceError):
                submit_lead({})


class CrmForwarderTests(TestCase):
    def setUp(self):
        self.txn = Transaction.objects.create(
            transaction_id="TXNCRM1",
            firstname="Asha Patil",
            phone="9876543210",
            email="asha@example.com",
            address="12 MG Road",
            city="Pune",
            state="Maharashtra",
            pincode="411005",
            variant="dx",
            color="red",
            terms=True,
            amount=Decimal("1000.00"),
            status="COMPLETED",
        )

    def test_success_forwarded_once(self):
        forwarder = CrmForwarder(send_all_payments=False)
        with patch("crm.salesforce.requests.post", return_value=FakeResponse(200)) as post:
            self.assertTrue(forwarder.forward_transaction(self.txn, "COMPLETED"))
            self.assertFalse(forwarder.forward_transaction(self.txn, "success"))
        self.assertEqual(post.call_count, 1)
        sub = SalesforceSubmission.objects.get()
        self.assertEqual(sub.customer_email, "asha@example.com")
        self.assertEqual(sub.salesforce_response["status_code"], 200)

    def test_non_success_gated_by_flag(self):
        with patch("crm.salesforce.requests.post", return_value=FakeResponse(200)) as post:
            self.assertFalse(CrmForwarder(send_all_payments=False).forward_transaction(self.txn, "FAILED"))
            self.assertTrue(CrmForwarder(send_all_payments=True).forward_transaction(self.txn, "FAILED"))
            self.assertTrue(CrmForwarder(send_all_payments=True).forward_transaction(self.txn, "PENDING"))
        self.assertEqual(post.call_count, 2)
        self.assertEqual(
            set(SalesforceSubmission.objects.values_list("submission_type", flat=True)),
            {"failed", "pending"},
        )

    def test_failed_push_releases_claim(self):
        forwarder = CrmForwarder()
        with patch("crm.salesforce.requests.post", return_value=FakeResponse(503)):
            with self.assertLogs("crm.services", level="ERROR"):
                self.assertFalse(forwarder.forward_transaction(self.txn, "COMPLETED"))
        self.assertFalse(SalesforceSubmission.objects.exists())

        with patch("crm.salesforce.requests.post", return_value=FakeResponse(200)):
            self.assertTrue(forwarder.forward_transaction(self.txn, "COMPLETED"))

    def test_ineligible_lead_skipped(self):
        with patch("crm.salesforce.requests.post") as post:
            self.assertFalse(CrmForwarder().forward_lead({"help_type": "support"}, "contact", reference="C1"))
        post.assert_not_called()

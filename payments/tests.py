import json
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.conf import settings
from django.core import mail
from django.core.management import call_command
from django.test import Client, TestCase, override_settings
from requests import ConnectionError as RequestsConnectionError

from crm.models import SalesforceSubmission
from .emails import notify_transaction_outcome
from .integrations import phonepe
from .integrations.phonepe import (
    GatewayAuthError,
    GatewayConnectionError,
    GatewayDataError,
    GatewayResponseError,
)
from .models import EmailNotification, Transaction
from .services import apply_gateway_status, extract_txn_id, map_gateway_state


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


def make_txn(**overrides):
    data = dict(
        transaction_id="TXN1700000000123",
        firstname="Asha Patil",
        phone="9876543210",
        email="asha@example.com",
        address="12 MG Road, Shivajinagar",
        city="Pune",
        state="Maharashtra",
        pincode="411005",
        variant="dx-plus",
        color="blue",
        terms=True,
        amount=Decimal("1000.00"),
    )
    data.update(overrides)
    return Transaction.objects.create(**data)


class TransactionModelTests(TestCase):
    def test_amount_helpers(self):
        txn = make_txn(amount=Decimal("1499.5"))
        txn.refresh_from_db()
        self.assertEqual(txn.amount_minor_units, 149950)
        self.assertEqual(txn.amount_display, "1499.50")
        self.assertEqual(str(txn), "TXN1700000000123 (PENDING)")


class PhonePeClientTests(TestCase):
    def test_access_token_uses_client_credentials(self):
        with patch("payments.integrations.phonepe.requests.post",
                   return_value=FakeResponse(200, {"access_token": "tok"})) as post:
            token = phonepe.fetch_access_token()

        self.assertEqual(token, "tok")
        form = post.call_args.kwargs["data"]
        self.assertEqual(form["grant_type"], "client_credentials")
        self.assertEqual(form["client_id"], "test-client")
        self.assertEqual(form["client_secret"], "test-secret")
        self.assertEqual(post.call_args.kwargs["timeout"], (10, 30))

    def test_missing_token_is_auth_error(self):
        with patch("payments.integrations.phonepe.requests.post",
                   return_value=FakeResponse(200, {"expires_at": 1})):
            with self.assertRaises(GatewayAuthError) as ctx:
                phonepe.fetch_access_token()
        self.assertEqual(ctx.exception.status_code, 200)

    def test_missing_credentials_is_auth_error(self):
        with override_settings(PHONEPE={**settings.PHONEPE, "CLIENT_SECRET": ""}):
            with patch("payments.integrations.phonepe.requests.post") as post:
                with self.assertLogs("payments.integrations.phonepe", level="ERROR"):
                    with self.assertRaises(GatewayAuthError):
                        phonepe.fetch_access_token()
        post.assert_not_called()

    def test_token_http_error_is_auth_error(self):
        with patch("payments.integrations.phonepe.requests.post",
                   return_value=FakeResponse(401, None, text="unauthorized")):
            with self.assertLogs("payments.integrations.phonepe", level="ERROR"):
                with self.assertRaises(GatewayAuthError) as ctx:
                    phonepe.fetch_access_token()
        self.assertEqual(ctx.exception.status_code, 401)

    def test_network_failure_is_connection_error(self):
        with patch("payments.integrations.phonepe.requests.post",
                   side_effect=RequestsConnectionError("boom")):
            with self.assertRaises(GatewayConnectionError):
                phonepe.fetch_access_token()

    def test_create_order_payload(self):
        txn = make_txn()
        body = {"orderId": "OMO123", "redirectUrl": "https://pay.test/checkout/OMO123"}
        with patch("payments.integrations.phonepe.requests.post", return_value=FakeResponse(200, body)) as post:
            result = phonepe.create_order("tok", txn)

        self.assertEqual(result["order_id"], "OMO123")
        self.assertEqual(result["redirect_url"], "https://pay.test/checkout/OMO123")
        self.assertEqual(post.call_args.kwargs["headers"]["Authorization"], "O-Bearer tok")
        payload = json.loads(post.call_args.kwargs["data"])
        self.assertEqual(payload["merchantOrderId"], txn.transaction_id)
        self.assertEqual(payload["amount"], 100000)
        self.assertEqual(payload["paymentFlow"]["type"], "PG_CHECKOUT")
        self.assertEqual(
            payload["paymentFlow"]["merchantUrls"]["redirectUrl"],
            f"https://testserver/api/check-status?txnid={txn.transaction_id}",
        )

    def test_create_order_522_is_unavailable(self):
        txn = make_txn()
        with patch("payments.integrations.phonepe.requests.post",
                   return_value=FakeResponse(522, None, text="origin timeout")):
            with self.assertRaises(GatewayResponseError) as ctx:
                phonepe.create_order("tok", txn)
        self.assertTrue(ctx.exception.is_unavailable)

    def test_create_order_without_order_id_is_data_error(self):
        txn = make_txn()
        with patch("payments.integrations.phonepe.requests.post",
                   return_value=FakeResponse(200, {"redirectUrl": "https://pay.test/x"})):
            with self.assertRaises(GatewayDataError):
                phonepe.create_order("tok", txn)

    def test_status_url_is_templated(self):
        with patch("payments.integrations.phonepe.requests.get",
                   return_value=FakeResponse(200, {"state": "COMPLETED"})) as get:
            result = phonepe.get_order_status("tok", "TXN42")
        self.assertEqual(get.call_args.args[0], "https://gateway.test/checkout/v2/order/TXN42/status")
        self.assertEqual(result["data"], {"state": "COMPLETED"})

    def test_status_invalid_json_is_data_error(self):
        with patch("payments.integrations.phonepe.requests.get",
                   return_value=FakeResponse(200, None, text="<html>")):
            with self.assertRaises(GatewayDataError):
                phonepe.get_order_status("tok", "TXN42")


class StatusMappingTests(TestCase):
    def test_state_key_wins_over_status(self):
        self.assertEqual(map_gateway_state({"state": "FAILED", "status": "COMPLETED"}), "FAILED")

    def test_falls_back_to_transaction_status(self):
        self.assertEqual(map_gateway_state({"transaction_status": "completed"}), "COMPLETED")

    def test_unknown_value_is_pending(self):
        self.assertEqual(map_gateway_state({"state": "AUTHORIZED"}), "PENDING")

    def test_missing_state_logs_and_is_pending(self):
        with self.assertLogs("payments.services", level="ERROR") as cm:
            self.assertEqual(map_gateway_state({"orderId": "X"}), "PENDING")
        self.assertIn("orderId", cm.output[0])

    def test_extract_txn_id_order(self):
        params = {"orderId": "B", "merchantOrderId": "A"}
        self.assertEqual(extract_txn_id(params), "A")
        self.assertEqual(extract_txn_id({}, {"transaction_id": "C"}), "C")
        self.assertEqual(extract_txn_id({"txnid": "  "}), "")


class ApplyGatewayStatusTests(TestCase):
    def test_pending_to_completed(self):
        make_txn()
        txn = apply_gateway_status("TXN1700000000123", "COMPLETED", {"state": "COMPLETED", "orderId": "OMO1"})
        txn.refresh_from_db()
        self.assertEqual(txn.status, "COMPLETED")
        self.assertEqual(txn.payment_details["orderId"], "OMO1")
        self.assertEqual(txn.gateway_order_id, "OMO1")

    def test_terminal_status_is_never_overwritten(self):
        make_txn(status="COMPLETED", payment_details={"state": "COMPLETED"})
        with self.assertLogs("payments.services", level="WARNING"):
            txn = apply_gateway_status("TXN1700000000123", "FAILED", {"state": "FAILED"})
        txn.refresh_from_db()
        self.assertEqual(txn.status, "COMPLETED")
        self.assertEqual(txn.payment_details, {"state": "COMPLETED"})

    def test_unknown_transaction_returns_none(self):
        with self.assertLogs("payments.services", level="ERROR"):
            self.assertIsNone(apply_gateway_status("NOPE", "COMPLETED", {}))


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class CheckStatusViewTests(TestCase):
    def setUp(self):
        self.txn = make_txn()
        self.sf_post = patch("crm.salesforce.requests.post", return_value=FakeResponse(200, None, text="ok"))
        self.sf = self.sf_post.start()
        self.addCleanup(self.sf_post.stop)

    def _check(self, gateway_data, client=None, **params):
        client = client or self.client
        params = params or {"txnid": self.txn.transaction_id}
        with patch("payments.services.fetch_access_token", return_value="tok"), \
                patch("payments.services.get_order_status",
                      return_value={"ok": True, "status_code": 200, "data": gateway_data}):
            return client.get("/api/check-status", params)

    def test_completed_redirects_and_notifies_once(self):
        resp = self._check({"state": "COMPLETED", "orderId": "OMO1"})

        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], f"/thank-you?txnid={self.txn.transaction_id}")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, "COMPLETED")

        # two admins, one customer
        self.assertEqual(len(mail.outbox), 3)
        self.assertEqual(mail.outbox[0].subject, f"[KineticEV] Booking Success: {self.txn.transaction_id}")
        self.assertEqual(mail.outbox[0].to, ["ops@kineticev.test"])
        self.assertEqual(mail.outbox[2].subject, f"Your Booking is Confirmed: {self.txn.transaction_id}")
        self.assertIn("1000.00", mail.outbox[2].body)

        self.assertEqual(self.sf.call_count, 1)
        sub = SalesforceSubmission.objects.get()
        self.assertEqual((sub.submission_type, sub.form_type), ("success", "book_now"))
        note = EmailNotification.objects.get()
        self.assertEqual(note.outcome, "success")
        self.assertEqual(len(note.recipients), 3)

        session = self.client.session
        self.assertTrue(session.get(f"email_sent_{self.txn.transaction_id}_success"))

    def test_repeat_checks_do_not_resend(self):
        self._check({"state": "COMPLETED"})
        self._check({"state": "COMPLETED"})
        # a new browser without the session cache
        self._check({"state": "COMPLETED"}, client=Client())

        self.assertEqual(len(mail.outbox), 3)
        self.assertEqual(self.sf.call_count, 1)
        self.assertEqual(EmailNotification.objects.count(), 1)
        self.assertEqual(SalesforceSubmission.objects.count(), 1)

    def test_failed_redirects_home_and_sends_failure(self):
        resp = self._check({"state": "FAILED"})

        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], "/")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, "FAILED")
        self.assertEqual(len(mail.outbox), 3)
        self.assertEqual(mail.outbox[0].subject, f"[KineticEV] Booking Failure: {self.txn.transaction_id}")
        self.assertEqual(mail.outbox[2].subject, f"Your Booking Failed: {self.txn.transaction_id}")
        self.assertTrue(SalesforceSubmission.objects.filter(submission_type="failed").exists())

    def test_failed_not_forwarded_when_flag_is_off(self):
        with override_settings(SALESFORCE={**settings.SALESFORCE, "SEND_ALL_PAYMENTS": False}):
            self._check({"state": "FAILED"})
        self.assertEqual(self.sf.call_count, 0)
        self.assertFalse(SalesforceSubmission.objects.exists())
        self.assertEqual(len(mail.outbox), 3)

    def test_pending_renders_recheck_page(self):
        resp = self._check({"state": "PENDING"})

        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "payments/pending.html")
        self.assertContains(resp, f"txnid={self.txn.transaction_id}")
        self.assertEqual(len(mail.outbox), 0)
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, "PENDING")
        self.assertEqual(self.txn.payment_details, {"state": "PENDING"})

        self._check({"state": "PENDING"})
        self.assertEqual(self.sf.call_count, 1)

    def test_stored_terminal_status_wins(self):
        self.txn.status = "COMPLETED"
        self.txn.save()
        resp = self._check({"state": "FAILED"})
        self.assertEqual(resp["Location"], f"/thank-you?txnid={self.txn.transaction_id}")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, "COMPLETED")

    def test_alternate_parameter_name(self):
        resp = self._check({"state": "COMPLETED"}, merchantOrderId=self.txn.transaction_id)
        self.assertEqual(resp.status_code, 302)

    def test_missing_txn_id(self):
        resp = self.client.get("/api/check-status")
        self.assertEqual(resp.status_code, 400)
        self.assertTemplateUsed(resp, "error_page.html")

    def test_gateway_outage_renders_error_page(self):
        with patch("payments.services.fetch_access_token", side_effect=GatewayConnectionError("timeout")):
            with self.assertLogs("payments.views", level="ERROR"):
                resp = self.client.get("/api/check-status", {"txnid": self.txn.transaction_id})
        self.assertEqual(resp.status_code, 504)
        self.assertEqual(resp.context["kind"], "status_connection")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, "PENDING")

    def test_crm_failure_does_not_block_redirect(self):
        self.sf.return_value = FakeResponse(500, None, text="down")
        with self.assertLogs("crm.services", level="ERROR"):
            resp = self._check({"state": "COMPLETED"})
        self.assertEqual(resp.status_code, 302)
        # claim released for a later retry
        self.assertFalse(SalesforceSubmission.objects.exists())
        self.assertEqual(len(mail.outbox), 3)


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class NotifierTests(TestCase):
    def test_claim_released_when_nothing_sent(self):
        txn = make_txn(status="COMPLETED")
        with patch("payments.emails.send_templated", side_effect=RuntimeError("smtp down")):
            with self.assertLogs("payments.emails", level="ERROR"):
                self.assertFalse(notify_transaction_outcome(txn, "success"))
        self.assertFalse(EmailNotification.objects.exists())

        self.assertTrue(notify_transaction_outcome(txn, "success"))
        self.assertEqual(len(mail.outbox), 3)

    def test_session_cache_short_circuits(self):
        txn = make_txn(status="COMPLETED")
        session = {f"email_sent_{txn.transaction_id}_success": "2024-01-01T00:00:00"}
        self.assertFalse(notify_transaction_outcome(txn, "success", session=session))
        self.assertEqual(len(mail.outbox), 0)

    def test_pending_outcome_sends_nothing(self):
        txn = make_txn()
        self.assertFalse(notify_transaction_outcome(txn, "pending"))
        self.assertEqual(len(mail.outbox), 0)


class RecheckCommandTests(TestCase):
    def test_rechecks_old_pending_transactions(self):
        make_txn()
        Transaction.objects.update(created_at="2020-01-01T00:00:00Z")
        make_txn(transaction_id="TXNFRESH")

        out = StringIO()
        with patch("payments.management.commands.recheck_pending_transactions.resolve_transaction",
                   return_value={"status": "COMPLETED"}) as resolve:
            call_command("recheck_pending_transactions", "--sleep", "0", stdout=out)

        resolve.assert_called_once_with("TXN1700000000123")
        self.assertIn("TXN1700000000123 -> COMPLETED", out.getvalue())

    def test_nothing_to_do(self):
        out = StringIO()
        call_command("recheck_pending_transactions", stdout=out)
        self.assertIn("No pending transactions", out.getvalue())

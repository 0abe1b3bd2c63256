import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from .models import SalesforceSubmission
from .salesforce import (
    SalesforceError,
    build_lead_payload,
    is_eligible,
    normalize_submission_type,
    submit_lead,
)

logger = logging.getLogger(__name__)


def transaction_form_data(txn, status) -> dict:
    """Flatten a payments.Transaction into the shape the lead mapper reads."""
    return {
        "full_name": txn.firstname,
        "phone": txn.phone,
        "email": txn.email,
        "city": txn.city,
        "state": txn.state,
        "address_1": txn.address,
        "pincode": txn.pincode,
        "variant_id": txn.variant,
        "color_name": txn.color,
        "amount": txn.amount_display,
        "transaction_id": txn.transaction_id,
        "payment_status": status,
        "payment_details": txn.payment_details,
        "payment_date": txn.created_at.date() if txn.created_at else None,
        "form_type": SalesforceSubmission.FORM_BOOK_NOW,
    }


class CrmForwarder:
    """Pushes leads to Salesforce, at most once per (transaction, outcome, form)."""

    def __init__(self, *, send_all_payments=True):
        self.send_all_payments = send_all_payments

    @classmethod
    def from_settings(cls):
        return cls(send_all_payments=getattr(settings, "SALESFORCE", {}).get("SEND_ALL_PAYMENTS", True))

    def _claim(self, *, transaction_id, submission_type, form_type, email="", phone="", help_type=""):
        try:
            with transaction.atomic():
                return SalesforceSubmission.objects.create(
                    transaction_id=transaction_id,
                    submission_type=submission_type,
                    form_type=form_type,
                    customer_email=email or "",
                    customer_phone=phone or "",
                    help_type=help_type or "",
                )
        except IntegrityError:
            return None

    def forward_transaction(self, txn, status) -> bool:
        """Forward a booking payment outcome. Returns True when a push happened."""
        submission_type = normalize_submission_type(status)
        if submission_type != SalesforceSubmission.SUBMISSION_SUCCESS and not self.send_all_payments:
            logger.info(
                "Skipping Salesforce push for %s (%s): only successful payments are forwarded",
                txn.transaction_id, submission_type,
            )
            return False

        claim = self._claim(
            transaction_id=txn.transaction_id,
            submission_type=submission_type,
            form_type=SalesforceSubmission.FORM_BOOK_NOW,
            email=txn.email,
            phone=txn.phone,
        )
        if claim is None:
            logger.info("Salesforce already has %s/%s, not resending", txn.transaction_id, submission_type)
            return False

        payload = build_lead_payload(
            transaction_form_data(txn, submission_type),
            SalesforceSubmission.FORM_BOOK_NOW,
            payment_update=True,
        )
        try:
            result = submit_lead(payload)
        except SalesforceError:
            logger.exception("Salesforce push failed for %s/%s", txn.transaction_id, submission_type)
            # release so a later status check can retry
            claim.delete()
            return False

        claim.salesforce_response = result
        claim.save(update_fields=["salesforce_response"])
        return True

    def forward_lead(self, form_data: dict, form_type: str, *, reference: str) -> bool:
        """Forward a plain form lead (test ride, enquiry). No dedup: each submission is a lead."""
        if not is_eligible(form_data, form_type):
            logger.info("Lead %s (%s) is not eligible for Salesforce", reference, form_type)
            return False

        payload = build_lead_payload(form_data, form_type)
        try:
            result = submit_lead(payload)
        except SalesforceError:
            logger.exception("Salesforce lead push failed for %s", reference)
            return False

        SalesforceSubmission.objects.create(
            transaction_id=reference,
            submission_type=SalesforceSubmission.SUBMISSION_SUCCESS,
            form_type=form_type,
            customer_email=form_data.get("email", ""),
            customer_phone=form_data.get("phone", ""),
            help_type=form_data.get("help_type", ""),
            salesforce_response=result,
        )
        return True

from django.db import models


class SalesforceSubmission(models.Model):
    """Record of a lead pushed to Salesforce.

    For payment updates the row doubles as the dedup claim: it is inserted
    before the push and the unique constraint rejects a second claimant.
    """

    FORM_BOOK_NOW = "book_now"
    FORM_TEST_RIDE = "test_ride"
    FORM_CONTACT = "contact"
    FORM_CHOICES = [
        (FORM_BOOK_NOW, "Book now"),
        (FORM_TEST_RIDE, "Test ride"),
        (FORM_CONTACT, "Contact"),
    ]

    SUBMISSION_SUCCESS = "success"
    SUBMISSION_FAILED = "failed"
    SUBMISSION_PENDING = "pending"
    SUBMISSION_CHOICES = [
        (SUBMISSION_SUCCESS, "success"),
        (SUBMISSION_FAILED, "failed"),
        (SUBMISSION_PENDING, "pending"),
    ]

    transaction_id = models.CharField(max_length=100, db_index=True)
    form_type = models.CharField(max_length=16, choices=FORM_CHOICES, default=FORM_BOOK_NOW)
    submission_type = models.CharField(max_length=16, choices=SUBMISSION_CHOICES)
    customer_email = models.EmailField(blank=True, default="")
    customer_phone = models.CharField(max_length=20, blank=True, default="")
    help_type = models.CharField(max_length=32, blank=True, default="")
    salesforce_response = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["transaction_id", "submission_type", "form_type"],
                name="uniq_sf_submission",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_id} {self.form_type}/{self.submission_type}"

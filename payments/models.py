from decimal import Decimal

from django.db import models


class Transaction(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "PENDING"),
        (STATUS_COMPLETED, "COMPLETED"),
        (STATUS_FAILED, "FAILED"),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)

    VARIANT_CHOICES = [("dx", "DX"), ("dx-plus", "DX+")]
    COLOR_CHOICES = [
        ("red", "Red"),
        ("blue", "Blue"),
        ("white", "White"),
        ("black", "Black"),
        ("grey", "Grey"),
    ]

    transaction_id = models.CharField(max_length=100, unique=True, db_index=True)  # merchant order id
    firstname = models.CharField(max_length=100)
    phone = models.CharField(max_length=15)
    email = models.EmailField()
    address = models.TextField()
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    pincode = models.CharField(max_length=6)
    owned_before = models.BooleanField(default=False)
    variant = models.CharField(max_length=16, choices=VARIANT_CHOICES)
    color = models.CharField(max_length=16, choices=COLOR_CHOICES)
    terms = models.BooleanField(default=False)
    productinfo = models.CharField(max_length=255, blank=True, default="")
    gateway_order_id = models.CharField(max_length=64, blank=True, default="")

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_details = models.JSONField(blank=True, null=True)  # last raw gateway status payload

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def amount_minor_units(self) -> int:
        """Amount in paise, as the gateway expects it."""
        return int((Decimal(self.amount) * 100).to_integral_value())

    @property
    def amount_display(self) -> str:
        return f"{Decimal(self.amount):.2f}"

    def __str__(self):
        return f"{self.transaction_id} ({self.status})"


class EmailNotification(models.Model):
    """One row per (transaction, outcome) whose notification emails were sent."""

    OUTCOME_SUCCESS = "success"
    OUTCOME_FAILURE = "failure"
    OUTCOME_PENDING = "pending"
    OUTCOME_CHOICES = [
        (OUTCOME_SUCCESS, "success"),
        (OUTCOME_FAILURE, "failure"),
        (OUTCOME_PENDING, "pending"),
    ]

    transaction_id = models.CharField(max_length=100, db_index=True)
    outcome = models.CharField(max_length=16, choices=OUTCOME_CHOICES)
    email_type = models.CharField(max_length=32, blank=True, default="")
    recipients = models.JSONField(default=list, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["transaction_id", "outcome"], name="uniq_email_per_txn_outcome"),
        ]

    def __str__(self):
        return f"{self.transaction_id} {self.outcome}"

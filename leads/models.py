import uuid

from django.db import models


class TestDrive(models.Model):
    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    full_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=15)
    email = models.EmailField()
    pincode = models.CharField(max_length=6)
    message = models.TextField(blank=True, default="")
    date = models.DateField(null=True, blank=True)  # preferred ride date, optional
    phone_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def reference(self) -> str:
        return f"TR-{self.uuid.hex[:12].upper()}"

    def as_lead(self) -> dict:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "pincode": self.pincode,
            "message": self.message,
            "transaction_id": self.reference,
            "form_type": "test_ride",
        }

    def __str__(self):
        return f"{self.full_name} ({self.phone})"


class ContactSubmission(models.Model):
    HELP_SUPPORT = "support"
    HELP_ENQUIRY = "enquiry"
    HELP_DEALERSHIP = "dealership"
    HELP_OTHERS = "others"
    HELP_CHOICES = [
        (HELP_SUPPORT, "Support"),
        (HELP_ENQUIRY, "Enquiry"),
        (HELP_DEALERSHIP, "Dealership enquiry"),
        (HELP_OTHERS, "Others"),
    ]

    uuid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    full_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=15)
    email = models.EmailField()
    help_type = models.CharField(max_length=16, choices=HELP_CHOICES)
    message = models.TextField(blank=True, default="")
    phone_verified = models.BooleanField(default=False)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def reference(self) -> str:
        return f"CT-{self.uuid.hex[:12].upper()}"

    def as_lead(self) -> dict:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "help_type": self.help_type,
            "message": self.message,
            "transaction_id": self.reference,
            "form_type": "contact",
        }

    def __str__(self):
        return f"{self.full_name} ({self.get_help_type_display()})"

from django.db import models
from django.utils import timezone


class OtpVerification(models.Model):
    PURPOSE_CHOICES = [
        ("contact_form", "Contact form"),
        ("test_ride", "Test ride"),
        ("booking_form", "Booking form"),
    ]

    phone = models.CharField(max_length=16, db_index=True)  # +91XXXXXXXXXX
    otp = models.CharField(max_length=6)
    purpose = models.CharField(max_length=20, choices=PURPOSE_CHOICES)
    verified = models.BooleanField(default=False)
    expires_at = models.DateTimeField()
    verified_at = models.DateTimeField(null=True, blank=True)
    attempts = models.PositiveIntegerField(default=0)
    max_attempts = models.PositiveIntegerField(default=3)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["phone", "purpose"], name="otp_phone_purpose_idx")]

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()

    @property
    def is_locked(self) -> bool:
        return self.attempts > self.max_attempts

    def __str__(self):
        return f"{self.phone} {self.purpose} ({'verified' if self.verified else 'open'})"

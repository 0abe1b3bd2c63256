from django.contrib import admin
from .models import OtpVerification

@admin.register(OtpVerification)
class OtpVerificationAdmin(admin.ModelAdmin):
    list_display = ("phone", "purpose", "verified", "attempts", "expires_at", "created_at")
    search_fields = ("phone",)
    list_filter = ("purpose", "verified")
    readonly_fields = ("created_at", "verified_at")
    exclude = ("otp",)

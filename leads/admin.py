from django.contrib import admin
from .models import ContactSubmission, TestDrive

@admin.register(TestDrive)
class TestDriveAdmin(admin.ModelAdmin):
    list_display = ("full_name", "phone", "email", "pincode", "phone_verified", "created_at")
    search_fields = ("full_name", "phone", "email", "pincode")
    list_filter = ("phone_verified", "created_at")
    readonly_fields = ("uuid", "created_at")


@admin.register(ContactSubmission)
class ContactSubmissionAdmin(admin.ModelAdmin):
    list_display = ("full_name", "phone", "email", "help_type", "phone_verified", "created_at")
    search_fields = ("full_name", "phone", "email")
    list_filter = ("help_type", "phone_verified", "created_at")
    readonly_fields = ("uuid", "ip_address", "user_agent", "created_at")

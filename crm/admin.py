from django.contrib import admin
from .models import SalesforceSubmission

@admin.register(SalesforceSubmission)
class SalesforceSubmissionAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "form_type", "submission_type", "customer_email", "created_at")
    search_fields = ("transaction_id", "customer_email", "customer_phone")
    list_filter = ("form_type", "submission_type", "created_at")
    readonly_fields = ("created_at", "salesforce_response")

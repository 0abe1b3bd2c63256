from django.contrib import admin
from .models import EmailNotification, Transaction

@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "firstname", "phone", "variant", "color", "amount", "status", "created_at")
    search_fields = ("transaction_id", "gateway_order_id", "firstname", "email", "phone")
    list_filter = ("status", "variant", "color", "created_at")
    readonly_fields = ("created_at", "updated_at", "payment_details")


@admin.register(EmailNotification)
class EmailNotificationAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "outcome", "sent_at")
    search_fields = ("transaction_id",)
    list_filter = ("outcome",)
    readonly_fields = ("created_at", "sent_at", "recipients")

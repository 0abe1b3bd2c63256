import time
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.utils import timezone
from payments.models import Transaction
from payments.integrations.phonepe import PhonePeError
from payments.services import resolve_transaction

class Command(BaseCommand):
    help = "Re-run the status check for PENDING transactions (operator triggered)"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument("--sleep", type=float, default=0.5)
        parser.add_argument("--older-than-minutes", type=int, default=5)

    def handle(self, *args, **opts):
        cutoff = timezone.now() - timedelta(minutes=opts["older_than_minutes"])
        qs = (
            Transaction.objects.filter(status=Transaction.STATUS_PENDING, created_at__lt=cutoff)
            .order_by("created_at")[:opts["max"]]
        )
        txn_ids = list(qs.values_list("transaction_id", flat=True))

        if not txn_ids:
            self.stdout.write(self.style.SUCCESS("No pending transactions to recheck."))
            return

        for txn_id in txn_ids:
            try:
                result = resolve_transaction(txn_id)
                self.stdout.write(self.style.SUCCESS(f"{txn_id} -> {result['status']}"))
            except PhonePeError as e:
                self.stdout.write(self.style.WARNING(f"{txn_id}: {e}"))
            if opts["sleep"]:
                time.sleep(opts["sleep"])

# inventory/management/commands/flag_expired_stock.py

from django.core.management.base import BaseCommand
from django.utils import timezone

from audit.models import EventType
from audit.services.event_log import EventLog
from inventory.models import Batch


class Command(BaseCommand):
    help = "Record a STOCK_EXPIRED audit event for every expired batch that still has stock."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List expired batches without writing events.",
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        dry_run = bool(options.get("dry_run"))

        expired = (
            Batch.objects.select_related("product")
            .filter(expiry_date__lt=today, quantity__gt=0)
            .order_by("expiry_date")
        )

        events = EventLog(source="medstock.cron")
        flagged = 0

        for batch in expired:
            self.stdout.write(
                f"{batch.product.name} / {batch.batch_no}: "
                f"{batch.quantity} units expired {batch.expiry_date.isoformat()}"
            )
            if dry_run:
                continue

            events.append(
                EventType.STOCK_EXPIRED,
                {
                    "batch_id": batch.id,
                    "batch_no": batch.batch_no,
                    "product_id": batch.product_id,
                    "product_name": batch.product.name,
                    "quantity": batch.quantity,
                    "expiry_date": batch.expiry_date,
                },
                f"Stock expired: {batch.product.name} (Batch: {batch.batch_no})",
            )
            flagged += 1

        if dry_run:
            self.stdout.write(self.style.WARNING(f"{expired.count()} batches would be flagged."))
        else:
            self.stdout.write(self.style.SUCCESS(f"{flagged} batches flagged."))

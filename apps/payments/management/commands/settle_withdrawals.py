import logging

from django.core.management.base import BaseCommand
from apps.payments.ledger import settle_stale_withdrawals

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = ("Settle withdrawals still pending after the settlement delay, and fail the ones "
            "pending longer than WITHDRAWAL_SETTLEMENT_TIMEOUT_HOURS.")

    def handle(self, *args, **options):
        settled, failed = settle_stale_withdrawals()
        logger.info(f"Withdrawal sweep: {settled} settled, {failed} timed out")
        self.stdout.write(self.style.SUCCESS(f"Settled {settled} withdrawal(s), failed {failed}"))

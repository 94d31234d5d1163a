import logging

from django.core.management.base import BaseCommand
from django.utils import timezone
from apps.jobs.models import Job

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Delete jobs whose expires_at has passed. Run periodically, e.g. from cron."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help="Only report how many jobs would be deleted")

    def handle(self, *args, **options):
        expired = Job.objects.filter(expires_at__lte=timezone.now())
        count = expired.count()
        if options['dry_run']:
            self.stdout.write(f"{count} expired job(s) would be deleted")
            return
        expired.delete()
        logger.info(f"Purged {count} expired job(s)")
        self.stdout.write(self.style.SUCCESS(f"Deleted {count} expired job(s)"))

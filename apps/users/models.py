from decimal import Decimal

from django.db import models
from django.contrib.auth.models import AbstractUser
from django.conf import settings
from django.utils import timezone
from core.constants import ACCOUNT_ROLE_CHOICES


def default_preferences():
    return {
        'notifications': {'email': True, 'push': True, 'sms': False},
        'job_alerts': {'enabled': True, 'categories': [], 'max_distance': 50, 'min_pay': 10},
    }


class User(AbstractUser):
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=10, choices=ACCOUNT_ROLE_CHOICES, default='worker')
    company_name = models.CharField(max_length=200, blank=True, default='')
    location = models.CharField(max_length=100, blank=True, default='')
    bio = models.TextField(max_length=500, blank=True, default='')
    skills = models.JSONField(default=list, blank=True)
    preferences = models.JSONField(default=default_preferences, blank=True)

    # Verification flags gate permissions; `role` is advisory only
    is_verified = models.BooleanField(default=False)
    business_verified = models.BooleanField(default=False)
    is_banned = models.BooleanField(default=False)
    ban_reason = models.CharField(max_length=255, blank=True, default='')

    # Cached projection of completed ledger entries, see apps.payments.ledger
    wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    wallet_currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)

    total_jobs = models.PositiveIntegerField(default=0)
    completed_jobs = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    average_rating = models.FloatField(default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    deleted_at = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name', 'last_name']

    def __str__(self):
        return f"{self.full_name} <{self.email}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_employer(self):
        return self.business_verified

    def soft_delete(self):
        """Deactivate the account and free its email; rows are never removed."""
        now = timezone.now()
        self.is_active = False
        self.deleted_at = now
        self.email = f"deleted_{int(now.timestamp() * 1000)}_{self.email}"
        self.username = self.email[:150]
        self.phone = None
        self.save(update_fields=['is_active', 'deleted_at', 'email', 'username', 'phone'])

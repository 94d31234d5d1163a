import random
import string
import time

from django.db import models
from django.conf import settings
from core.constants import TRANSACTION_TYPE_CHOICES, TRANSACTION_STATUS_CHOICES, PAYMENT_METHOD_CHOICES


def generate_reference():
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=9))
    return f"TXN-{int(time.time() * 1000)}-{suffix}"


class PaymentMethod(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payment_methods')
    type = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    name = models.CharField(max_length=100)
    last4 = models.CharField(max_length=4, blank=True, default='')
    is_default = models.BooleanField(default=False)
    # Identifier at the payment processor, stubbed
    processor_method_id = models.CharField(max_length=100, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-is_default', 'created_at']

    def __str__(self):
        return f"{self.name} ({self.type}) - {self.user.email}"


class Transaction(models.Model):
    """One signed ledger entry; withdrawals and fees are stored negative."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='transactions')
    type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    description = models.CharField(max_length=255)
    reference = models.CharField(max_length=40, unique=True, default=generate_reference, editable=False)
    job = models.ForeignKey('jobs.Job', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    payment_method = models.ForeignKey(
        PaymentMethod, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions'
    )
    status = models.CharField(max_length=20, choices=TRANSACTION_STATUS_CHOICES, default='pending')
    metadata = models.JSONField(default=dict, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status']),
            models.Index(fields=['type', 'status']),
        ]

    def __str__(self):
        return f"{self.reference} {self.type} {self.amount} {self.currency} ({self.status})"

    @property
    def is_positive(self):
        return self.type in ('earned', 'bonus', 'refund')

    @property
    def formatted_amount(self):
        sign = '+' if self.is_positive else '-'
        return f"{sign}{self.currency}{abs(self.amount):.2f}"

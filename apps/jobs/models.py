from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone
from core.constants import (
    JOB_CATEGORY_CHOICES, JOB_STATUS_CHOICES, JOB_APPLICATION_STATUS_CHOICES,
    PAY_TYPE_CHOICES, EXPERIENCE_CHOICES, JOB_PAYMENT_STATUS_CHOICES
)


def default_expiry():
    return timezone.now() + timedelta(days=settings.JOB_EXPIRY_DAYS)


def default_currency():
    return settings.DEFAULT_CURRENCY


class Job(models.Model):
    employer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='posted_jobs')
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=2000)
    category = models.CharField(max_length=20, choices=JOB_CATEGORY_CHOICES)
    company_name = models.CharField(max_length=200, blank=True, default='')

    pay_amount = models.DecimalField(max_digits=10, decimal_places=2)
    pay_currency = models.CharField(max_length=3, default=default_currency)
    pay_type = models.CharField(max_length=20, choices=PAY_TYPE_CHOICES, default='hourly')

    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    latitude = models.FloatField()
    longitude = models.FloatField()

    date = models.DateField()
    time_start = models.CharField(max_length=5)
    time_end = models.CharField(max_length=5)
    duration = models.DecimalField(max_digits=5, decimal_places=2)

    skills = models.JSONField(default=list, blank=True)
    experience = models.CharField(max_length=20, choices=EXPERIENCE_CHOICES, default='none')
    tags = models.JSONField(default=list, blank=True)
    is_urgent = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)
    views = models.PositiveIntegerField(default=0)
    applications_count = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, default='active')
    # Non-null exactly while status is in_progress or completed
    selected_worker = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_jobs'
    )

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    # Submitted by the employer, rates the selected worker
    employer_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    employer_review = models.TextField(max_length=1000, blank=True, default='')
    employer_rated_at = models.DateTimeField(null=True, blank=True)
    # Submitted by the worker, rates the employer
    worker_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    worker_review = models.TextField(max_length=1000, blank=True, default='')
    worker_rated_at = models.DateTimeField(null=True, blank=True)

    payment_status = models.CharField(max_length=20, choices=JOB_PAYMENT_STATUS_CHOICES, default='pending')
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payment_transaction = models.ForeignKey(
        'payments.Transaction', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )

    expires_at = models.DateTimeField(default=default_expiry)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'category']),
            models.Index(fields=['city', 'status']),
            models.Index(fields=['expires_at']),
        ]

    def __str__(self):
        return f"{self.title} - {self.employer.email}"

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()

    @property
    def is_open(self):
        """Accepting applications: active and not past expiry."""
        return self.status == 'active' and not self.is_expired

    def refresh_applications_count(self):
        self.applications_count = self.applications.count()
        Job.objects.filter(pk=self.pk).update(applications_count=self.applications_count)


class JobApplication(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='applications')
    worker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='job_applications')
    status = models.CharField(max_length=20, choices=JOB_APPLICATION_STATUS_CHOICES, default='pending')
    message = models.TextField(max_length=1000, blank=True, default='')
    proposed_pay = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    applied_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['applied_at']

    def __str__(self):
        return f"{self.worker.email} applied to {self.job.title} ({self.status})"

    @property
    def is_pending(self):
        return self.status == 'pending'

from django.db import models
from django.conf import settings

NOTIFICATION_TYPE_CHOICES = (
    ('new_application', 'New Application'),
    ('application_accepted', 'Application Accepted'),
    ('application_rejected', 'Application Rejected'),
    ('job_completed', 'Job Completed'),
    ('job_cancelled', 'Job Cancelled'),
    ('new_rating', 'New Rating'),
)


class Notification(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=30, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.type} for {self.user.email}"

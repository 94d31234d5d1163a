import logging

from .models import Notification

logger = logging.getLogger(__name__)


def notify(user, type, title, message, **data):
    """Store an in-app notification for `user`; delivery is by polling."""
    if user is None:
        return None
    notification = Notification.objects.create(
        user=user, type=type, title=title, message=message, data=data
    )
    logger.info(f"Notification {type} queued for user {user.id}")
    return notification

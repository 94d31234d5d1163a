from django.urls import path
from .views import (
    NotificationListView, UnreadCountView, NotificationReadView, NotificationReadAllView,
    NotificationDeleteView, NotificationClearAllView
)

urlpatterns = [
    path('', NotificationListView.as_view(), name='notifications'),
    path('unread-count/', UnreadCountView.as_view(), name='notifications_unread_count'),
    path('read-all/', NotificationReadAllView.as_view(), name='notifications_read_all'),
    path('clear-all/', NotificationClearAllView.as_view(), name='notifications_clear_all'),
    path('<int:pk>/read/', NotificationReadView.as_view(), name='notification_read'),
    path('<int:pk>/', NotificationDeleteView.as_view(), name='notification_delete'),
]

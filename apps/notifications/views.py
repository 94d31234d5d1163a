from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import NotFound
from drf_yasg.utils import swagger_auto_schema
from django.utils import timezone
from core.utils import paginate
from .models import Notification
from .serializers import NotificationSerializer
import logging

logger = logging.getLogger(__name__)


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Your notifications, newest first. Query: unread_only=true, page, limit.",
        responses={200: NotificationSerializer(many=True)}
    )
    def get(self, request):
        queryset = Notification.objects.filter(user=request.user)
        if request.query_params.get('unread_only', '').lower() == 'true':
            queryset = queryset.filter(read=False)
        page, pagination = paginate(queryset, request)
        return Response({
            'success': True,
            'data': {'notifications': NotificationSerializer(page, many=True).data, 'pagination': pagination}
        }, status=status.HTTP_200_OK)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        count = Notification.objects.filter(user=request.user, read=False).count()
        return Response({'success': True, 'data': {'unread_count': count}}, status=status.HTTP_200_OK)


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        try:
            notification = Notification.objects.get(pk=pk, user=request.user)
        except Notification.DoesNotExist:
            raise NotFound('Notification not found')
        if not notification.read:
            notification.read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=['read', 'read_at'])
        return Response({
            'success': True,
            'message': 'Notification marked as read',
            'data': {'notification': NotificationSerializer(notification).data}
        }, status=status.HTTP_200_OK)


class NotificationReadAllView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        updated = Notification.objects.filter(user=request.user, read=False).update(read=True, read_at=timezone.now())
        return Response({
            'success': True,
            'message': 'All notifications marked as read',
            'data': {'updated_count': updated}
        }, status=status.HTTP_200_OK)


class NotificationDeleteView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, pk):
        deleted, _ = Notification.objects.filter(pk=pk, user=request.user).delete()
        if not deleted:
            raise NotFound('Notification not found')
        return Response({'success': True, 'message': 'Notification deleted'}, status=status.HTTP_200_OK)


class NotificationClearAllView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request):
        deleted, _ = Notification.objects.filter(user=request.user).delete()
        logger.info(f"User {request.user.id} cleared {deleted} notification(s)")
        return Response({
            'success': True,
            'message': 'All notifications cleared',
            'data': {'deleted_count': deleted}
        }, status=status.HTTP_200_OK)

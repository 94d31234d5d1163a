from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from rest_framework.authtoken.models import Token
from rest_framework.exceptions import NotFound
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from core.exceptions import StateConflict
from core.utils import paginate
from apps.jobs.models import Job
from apps.jobs.serializers import JobSerializer
from apps.jobs.services import active_jobs_for
from .serializers import (
    RegisterSerializer, LoginSerializer, UserSerializer, PublicUserSerializer,
    PreferencesSerializer, UserJobsFilterSerializer
)
import logging

User = get_user_model()

logger = logging.getLogger(__name__)

token_response = openapi.Response(
    description='Authenticated',
    schema=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
            'data': openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'token': openapi.Schema(type=openapi.TYPE_STRING),
                    'user': openapi.Schema(type=openapi.TYPE_OBJECT),
                }
            ),
        }
    )
)


class AuthRegisterView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @swagger_auto_schema(
        request_body=RegisterSerializer,
        responses={201: token_response, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        token, created = Token.objects.get_or_create(user=user)
        return Response({
            'success': True,
            'message': 'User registered successfully',
            'data': {'token': token.key, 'user': UserSerializer(user).data}
        }, status=status.HTTP_201_CREATED)


class AuthLoginView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @swagger_auto_schema(
        request_body=LoginSerializer,
        responses={200: token_response, 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        token, created = Token.objects.get_or_create(user=user)
        logger.info(f"Login successful for user: {user.email}")
        return Response({
            'success': True,
            'message': 'Login successful',
            'data': {'token': token.key, 'user': UserSerializer(user).data}
        }, status=status.HTTP_200_OK)


class UserProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(responses={200: UserSerializer, 401: 'Unauthorized'})
    def get(self, request):
        return Response({'success': True, 'data': {'user': UserSerializer(request.user).data}}, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Update name, phone, company, location, bio or skills",
        request_body=UserSerializer,
        responses={200: UserSerializer, 400: 'Bad Request'}
    )
    def put(self, request):
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'success': True,
            'message': 'Profile updated successfully',
            'data': {'user': serializer.data}
        }, status=status.HTTP_200_OK)


class UserPreferencesView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(request_body=PreferencesSerializer, responses={200: 'Preferences updated'})
    def put(self, request):
        serializer = PreferencesSerializer(request.user, data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response({
            'success': True,
            'message': 'Preferences updated successfully',
            'data': {'preferences': user.preferences}
        }, status=status.HTTP_200_OK)


class UserJobsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Jobs you posted (role=employer), were selected for (role=worker), or both (role=all)",
        manual_parameters=[
            openapi.Parameter('role', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=['all', 'employer', 'worker']),
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
        ],
        responses={200: JobSerializer(many=True)}
    )
    def get(self, request):
        filters = UserJobsFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        role = filters.validated_data['role']

        if role == 'employer':
            condition = Q(employer=request.user)
        elif role == 'worker':
            condition = Q(selected_worker=request.user)
        else:
            condition = Q(employer=request.user) | Q(selected_worker=request.user)
        queryset = Job.objects.filter(condition).select_related('employer', 'selected_worker')
        if filters.validated_data.get('status'):
            queryset = queryset.filter(status=filters.validated_data['status'])

        page, pagination = paginate(queryset.order_by('-created_at'), request)
        return Response({
            'success': True,
            'data': {
                'jobs': JobSerializer(page, many=True, context={'request': request}).data,
                'pagination': pagination,
            }
        }, status=status.HTTP_200_OK)


class PublicProfileView(APIView):
    permission_classes = [permissions.AllowAny]

    @swagger_auto_schema(responses={200: PublicUserSerializer, 404: 'Not Found'})
    def get(self, request, user_id):
        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            raise NotFound('User not found')
        return Response({'success': True, 'data': {'user': PublicUserSerializer(user).data}}, status=status.HTTP_200_OK)


class DeleteAccountView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Deactivate your account. Refused while you have active or in-progress jobs.",
        responses={200: 'Account deleted', 400: 'Bad Request'}
    )
    def delete(self, request):
        user = request.user
        if active_jobs_for(user).exists():
            raise StateConflict('Cannot delete account with active jobs')
        with transaction.atomic():
            user.soft_delete()
            Token.objects.filter(user=user).delete()
        logger.info(f"Account {user.id} soft-deleted")
        return Response({'success': True, 'message': 'Account deleted successfully'}, status=status.HTTP_200_OK)

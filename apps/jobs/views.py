from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.exceptions import NotFound, PermissionDenied
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.contrib.auth import get_user_model
from django.db.models import F, Q
from django.utils import timezone
from core.exceptions import StateConflict
from core.utils import IsVerified, paginate
from .models import Job, JobApplication
from .serializers import (
    JobSerializer, JobApplicationSerializer, MyApplicationSerializer, ApplySerializer,
    ApplicationActionSerializer, ApplicationStatusFilterSerializer, JobFilterSerializer
)
from .feedback_serializers import RatingSerializer, JobRatingsSerializer, ReceivedRatingSerializer
from .utils import bounding_box, longitude_ranges, nearest_first
from . import services
import logging

User = get_user_model()

logger = logging.getLogger(__name__)

SORT_ORDERING = {
    'recent': ['-created_at'],
    'pay_high': ['-pay_amount', '-created_at'],
    'pay_low': ['pay_amount', '-created_at'],
    'distance': ['-created_at'],
}

job_body = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=['title', 'description', 'category', 'pay', 'location', 'date', 'time', 'duration'],
    properties={
        'title': openapi.Schema(type=openapi.TYPE_STRING),
        'description': openapi.Schema(type=openapi.TYPE_STRING),
        'category': openapi.Schema(type=openapi.TYPE_STRING, enum=['Delivery', 'Events', 'Digital', 'Retail', 'Food Service', 'Other']),
        'pay': openapi.Schema(type=openapi.TYPE_OBJECT, properties={
            'amount': openapi.Schema(type=openapi.TYPE_NUMBER),
            'currency': openapi.Schema(type=openapi.TYPE_STRING),
            'type': openapi.Schema(type=openapi.TYPE_STRING, enum=['hourly', 'fixed', 'commission']),
        }),
        'location': openapi.Schema(type=openapi.TYPE_OBJECT, properties={
            'address': openapi.Schema(type=openapi.TYPE_STRING),
            'city': openapi.Schema(type=openapi.TYPE_STRING),
            'coordinates': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_NUMBER)),
        }),
        'date': openapi.Schema(type=openapi.TYPE_STRING, format='date'),
        'time': openapi.Schema(type=openapi.TYPE_OBJECT, properties={
            'start': openapi.Schema(type=openapi.TYPE_STRING),
            'end': openapi.Schema(type=openapi.TYPE_STRING),
        }),
        'duration': openapi.Schema(type=openapi.TYPE_NUMBER),
        'skills': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_STRING)),
        'is_urgent': openapi.Schema(type=openapi.TYPE_BOOLEAN),
    },
)


class JobListCreateView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsVerified()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="List open jobs. Filters: category, city, min_pay, max_pay, search, "
                              "sort (recent|pay_high|pay_low|distance), lat/lng/radius (km), page, limit.",
        responses={200: JobSerializer(many=True), 400: 'Bad Request'}
    )
    def get(self, request):
        filters = JobFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        queryset = Job.objects.filter(status='active', expires_at__gt=timezone.now()).select_related('employer')
        if params.get('category') and params['category'] != 'All':
            queryset = queryset.filter(category=params['category'])
        if params.get('city') and params['city'] != 'All Cities':
            queryset = queryset.filter(city__icontains=params['city'])
        if params.get('min_pay') is not None:
            queryset = queryset.filter(pay_amount__gte=params['min_pay'])
        if params.get('max_pay') is not None:
            queryset = queryset.filter(pay_amount__lte=params['max_pay'])
        if params.get('search'):
            term = params['search']
            queryset = queryset.filter(
                Q(title__icontains=term) | Q(description__icontains=term) | Q(company_name__icontains=term)
            )
        sort = params['sort']
        queryset = queryset.order_by(*SORT_ORDERING[sort])

        if 'lat' in params:
            lat, lng, radius = params['lat'], params['lng'], params['radius']
            min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius)
            in_longitude = Q()
            for low, high in longitude_ranges(min_lng, max_lng):
                in_longitude |= Q(longitude__gte=low, longitude__lte=high)
            candidates = queryset.filter(in_longitude, latitude__gte=min_lat, latitude__lte=max_lat)
            nearby = nearest_first(candidates, lat, lng, radius)
            if sort != 'distance':
                # Same instances from the evaluated queryset, back in its order
                in_range = {job.pk for job in nearby}
                nearby = [job for job in candidates if job.pk in in_range]
            page, pagination = paginate(nearby, request)
        else:
            page, pagination = paginate(queryset, request)

        serializer = JobSerializer(page, many=True, context={'request': request})
        return Response({
            'success': True,
            'data': {'jobs': serializer.data, 'pagination': pagination}
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Post a new job. Requires a verified account.",
        request_body=job_body,
        responses={201: JobSerializer, 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def post(self, request):
        serializer = JobSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'success': True,
            'message': 'Job created successfully',
            'data': {'job': serializer.data}
        }, status=status.HTTP_201_CREATED)


class JobDetailView(APIView):

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_owned_job(self, request, pk, action):
        job = services.get_job(pk)
        if job.employer_id != request.user.pk:
            raise PermissionDenied(f"Not authorized to {action} this job")
        if job.status != 'active':
            raise StateConflict(f"Cannot {action} job that is not active")
        return job

    @swagger_auto_schema(
        operation_description="Get a job by id. Counts as a view.",
        responses={200: JobSerializer, 404: 'Not Found'}
    )
    def get(self, request, pk):
        job = services.get_job(pk)
        Job.objects.filter(pk=job.pk).update(views=F('views') + 1)
        job.refresh_from_db(fields=['views'])
        serializer = JobSerializer(job, context={'request': request})
        return Response({'success': True, 'data': {'job': serializer.data}}, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Update a job. Owner only, while the job is active.",
        request_body=job_body,
        responses={200: JobSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def put(self, request, pk):
        job = self.get_owned_job(request, pk, 'update')
        serializer = JobSerializer(job, data=request.data, partial=True, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Job {job.id} updated by {request.user.id}")
        return Response({
            'success': True,
            'message': 'Job updated successfully',
            'data': {'job': serializer.data}
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Delete a job. Owner only, while the job is active.",
        responses={200: 'Job deleted', 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def delete(self, request, pk):
        job = self.get_owned_job(request, pk, 'delete')
        job.delete()
        logger.info(f"Job {pk} deleted by {request.user.id}")
        return Response({'success': True, 'message': 'Job deleted successfully'}, status=status.HTTP_200_OK)


class JobCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Cancel an active or in-progress job. Owner only.",
        responses={200: JobSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        job = services.cancel_job(services.get_job(pk), request.user)
        serializer = JobSerializer(job, context={'request': request})
        return Response({
            'success': True,
            'message': 'Job cancelled successfully',
            'data': {'job': serializer.data}
        }, status=status.HTTP_200_OK)


class ApplicationView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Apply for a job",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            properties={
                'message': openapi.Schema(type=openapi.TYPE_STRING),
                'proposed_pay': openapi.Schema(type=openapi.TYPE_NUMBER),
            },
        ),
        responses={201: JobSerializer, 400: 'Bad Request', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = ApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = services.get_job(job_id)
        services.apply(
            job, request.user,
            message=serializer.validated_data.get('message', ''),
            proposed_pay=serializer.validated_data.get('proposed_pay'),
        )
        job.refresh_from_db()
        return Response({
            'success': True,
            'message': 'Application submitted successfully',
            'data': {'job': JobSerializer(job, context={'request': request}).data}
        }, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(
        operation_description="Withdraw (remove) your pending application for a job",
        responses={200: 'Application withdrawn', 400: 'Bad Request', 404: 'Not Found'}
    )
    def delete(self, request, job_id):
        services.remove_application(services.get_job(job_id), request.user)
        return Response({'success': True, 'message': 'Application withdrawn successfully'}, status=status.HTTP_200_OK)


class ApplicationUpdateView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Accept or reject (job owner) or withdraw (applicant) an application",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            required=['action'],
            properties={'action': openapi.Schema(type=openapi.TYPE_STRING, enum=['accept', 'reject', 'withdraw'])},
        ),
        responses={200: JobSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def put(self, request, job_id, application_id):
        serializer = ApplicationActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        action = serializer.validated_data['action']

        job = services.get_job(job_id)
        application = services.get_application(job, application_id)
        if action == 'accept':
            services.accept_application(job, application, request.user)
            message = 'Application accepted successfully'
        elif action == 'reject':
            services.reject_application(job, application, request.user)
            message = 'Application rejected successfully'
        else:
            services.withdraw_application(job, application, request.user)
            message = 'Application withdrawn successfully'

        job.refresh_from_db()
        return Response({
            'success': True,
            'message': message,
            'data': {'job': JobSerializer(job, context={'request': request}).data}
        }, status=status.HTTP_200_OK)


class MyApplicationsView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List your own applications with a summary of each job",
        responses={200: MyApplicationSerializer(many=True)}
    )
    def get(self, request):
        filters = ApplicationStatusFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        queryset = JobApplication.objects.filter(worker=request.user).select_related('job', 'job__employer')
        if filters.validated_data.get('status'):
            queryset = queryset.filter(status=filters.validated_data['status'])
        queryset = queryset.order_by('-job__created_at', '-applied_at')
        page, pagination = paginate(queryset, request)
        return Response({
            'success': True,
            'data': {'applications': MyApplicationSerializer(page, many=True).data, 'pagination': pagination}
        }, status=status.HTTP_200_OK)


class JobApplicationsListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List every application for a job. Job owner only.",
        responses={200: JobApplicationSerializer(many=True), 403: 'Forbidden', 404: 'Not Found'}
    )
    def get(self, request, job_id):
        job = services.get_job(job_id)
        if job.employer_id != request.user.pk:
            raise PermissionDenied('Not authorized to view applications for this job')
        applications = job.applications.select_related('worker')
        return Response({
            'success': True,
            'data': {
                'applications': JobApplicationSerializer(applications, many=True).data,
                'total_applications': applications.count(),
            }
        }, status=status.HTTP_200_OK)


class RatingView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Rate the other party of a completed job",
        request_body=RatingSerializer,
        responses={200: JobSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        serializer = RatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = services.submit_rating(
            services.get_job(job_id), request.user,
            serializer.validated_data['rating'], serializer.validated_data.get('review', '')
        )
        return Response({
            'success': True,
            'message': 'Rating submitted successfully',
            'data': {'job': JobSerializer(job, context={'request': request}).data}
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Change the rating you gave for a job",
        request_body=RatingSerializer,
        responses={200: JobSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def put(self, request, job_id):
        serializer = RatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = services.update_rating(
            services.get_job(job_id), request.user,
            serializer.validated_data['rating'], serializer.validated_data.get('review')
        )
        return Response({
            'success': True,
            'message': 'Rating updated successfully',
            'data': {'job': JobSerializer(job, context={'request': request}).data}
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Remove the rating you gave for a job",
        responses={200: 'Rating deleted', 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def delete(self, request, job_id):
        services.delete_rating(services.get_job(job_id), request.user)
        return Response({'success': True, 'message': 'Rating deleted successfully'}, status=status.HTTP_200_OK)


class JobRatingsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, job_id):
        job = services.get_job(job_id)
        return Response({'success': True, 'data': {'ratings': JobRatingsSerializer(job).data}}, status=status.HTTP_200_OK)


class UserRatingsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            raise NotFound('User not found')
        page, pagination = paginate(services.ratings_received(user), request)
        return Response({
            'success': True,
            'data': {
                'ratings': ReceivedRatingSerializer(page, many=True).data,
                'average_rating': user.average_rating,
                'total_reviews': user.total_reviews,
                'pagination': pagination,
            }
        }, status=status.HTTP_200_OK)

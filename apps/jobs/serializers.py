from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import F
from rest_framework import serializers
from apps.users.serializers import UserSummarySerializer
from core.constants import (
    JOB_CATEGORY_CHOICES, PAY_TYPE_CHOICES, EXPERIENCE_CHOICES, JOB_APPLICATION_STATUS_CHOICES, JOB_SORT_CHOICES
)
from .models import Job, JobApplication
import logging

User = get_user_model()

logger = logging.getLogger(__name__)

TIME_PATTERN = r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$'


class CoordinatesField(serializers.Field):
    """`[lng, lat]` on the wire, `longitude`/`latitude` columns on the model."""

    default_error_messages = {
        'invalid': 'Coordinates must be an array of 2 numbers',
        'out_of_range': 'Coordinates are out of range',
    }

    def to_representation(self, obj):
        return [obj.longitude, obj.latitude]

    def to_internal_value(self, data):
        if not isinstance(data, (list, tuple)) or len(data) != 2:
            self.fail('invalid')
        try:
            lng, lat = float(data[0]), float(data[1])
        except (TypeError, ValueError):
            self.fail('invalid')
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            self.fail('out_of_range')
        return {'longitude': lng, 'latitude': lat}


class PaySerializer(serializers.Serializer):
    amount = serializers.DecimalField(source='pay_amount', max_digits=10, decimal_places=2, min_value=1)
    currency = serializers.CharField(source='pay_currency', max_length=3, required=False)
    type = serializers.ChoiceField(source='pay_type', choices=PAY_TYPE_CHOICES, required=False)


class LocationSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    coordinates = CoordinatesField(source='*')


class TimeSerializer(serializers.Serializer):
    start = serializers.RegexField(TIME_PATTERN, source='time_start', error_messages={'invalid': 'Invalid time format'})
    end = serializers.RegexField(TIME_PATTERN, source='time_end', error_messages={'invalid': 'Invalid time format'})


class JobApplicationSerializer(serializers.ModelSerializer):
    worker = UserSummarySerializer(read_only=True)

    class Meta:
        model = JobApplication
        fields = ['id', 'job', 'worker', 'status', 'message', 'proposed_pay', 'applied_at', 'responded_at']
        read_only_fields = fields


class JobSerializer(serializers.ModelSerializer):
    title = serializers.CharField(min_length=5, max_length=100)
    description = serializers.CharField(min_length=20, max_length=2000)
    category = serializers.ChoiceField(choices=JOB_CATEGORY_CHOICES)
    pay = PaySerializer(source='*')
    location = LocationSerializer(source='*')
    time = TimeSerializer(source='*')
    duration = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0.5'))
    skills = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=30), required=False)
    experience = serializers.ChoiceField(choices=EXPERIENCE_CHOICES, required=False)
    employer = UserSummarySerializer(read_only=True)
    selected_worker = UserSummarySerializer(read_only=True)
    completion = serializers.SerializerMethodField()
    payment = serializers.SerializerMethodField()
    applications = serializers.SerializerMethodField()
    has_applied = serializers.SerializerMethodField()
    distance = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            'id', 'title', 'description', 'category', 'company_name', 'employer',
            'pay', 'location', 'date', 'time', 'duration', 'skills', 'experience', 'tags',
            'is_urgent', 'is_featured', 'status', 'views', 'applications_count',
            'selected_worker', 'applications', 'has_applied', 'distance',
            'completion', 'payment', 'expires_at', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'company_name', 'is_featured', 'status', 'views', 'applications_count',
            'expires_at', 'created_at', 'updated_at'
        ]

    def _viewer(self):
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        return user if user is not None and user.is_authenticated else None

    def get_completion(self, obj):
        def rating(side):
            value = getattr(obj, f'{side}_rating')
            if value is None:
                return None
            return {
                'rating': value,
                'review': getattr(obj, f'{side}_review'),
                'rated_at': getattr(obj, f'{side}_rated_at'),
            }

        return {
            'started_at': obj.started_at,
            'completed_at': obj.completed_at,
            'employer_rating': rating('employer'),
            'worker_rating': rating('worker'),
        }

    def get_payment(self, obj):
        return {
            'status': obj.payment_status,
            'paid_at': obj.paid_at,
            'amount': obj.payment_amount,
            'transaction_id': obj.payment_transaction_id,
        }

    def get_applications(self, obj):
        # Employer sees every application, anyone else only their own
        viewer = self._viewer()
        if viewer is None:
            return []
        applications = obj.applications.select_related('worker')
        if obj.employer_id != viewer.pk:
            applications = applications.filter(worker=viewer)
        return JobApplicationSerializer(applications, many=True).data

    def get_has_applied(self, obj):
        viewer = self._viewer()
        if viewer is None:
            return False
        return obj.applications.filter(worker=viewer).exclude(status='withdrawn').exists()

    def get_distance(self, obj):
        return getattr(obj, 'distance', None)

    def create(self, validated_data):
        employer = self.context['request'].user
        validated_data['employer'] = employer
        validated_data['company_name'] = employer.company_name or employer.full_name
        job = super().create(validated_data)
        User.objects.filter(pk=employer.pk).update(total_jobs=F('total_jobs') + 1)
        logger.info(f"Job {job.id} '{job.title}' posted by {employer.id}")
        return job


class MyApplicationSerializer(serializers.ModelSerializer):
    """An application seen from the applicant's side, with a job summary."""
    job = serializers.SerializerMethodField()

    class Meta:
        model = JobApplication
        fields = ['id', 'job', 'status', 'message', 'proposed_pay', 'applied_at', 'responded_at']

    def get_job(self, obj):
        job = obj.job
        return {
            'id': job.id,
            'title': job.title,
            'company_name': job.company_name,
            'pay': PaySerializer(job).data,
            'location': LocationSerializer(job).data,
            'date': job.date,
            'time': TimeSerializer(job).data,
            'status': job.status,
            'employer': UserSummarySerializer(job.employer).data,
        }


class ApplySerializer(serializers.Serializer):
    message = serializers.CharField(max_length=500, required=False, allow_blank=True)
    proposed_pay = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=1, required=False)


class ApplicationActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(
        choices=['accept', 'reject', 'withdraw'],
        error_messages={'invalid_choice': 'Action must be accept, reject, or withdraw'}
    )


class ApplicationStatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=JOB_APPLICATION_STATUS_CHOICES, required=False)


class JobFilterSerializer(serializers.Serializer):
    category = serializers.CharField(required=False)
    city = serializers.CharField(required=False)
    min_pay = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    max_pay = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    search = serializers.CharField(required=False)
    sort = serializers.ChoiceField(choices=JOB_SORT_CHOICES, default='recent')
    lat = serializers.FloatField(min_value=-90, max_value=90, required=False)
    lng = serializers.FloatField(min_value=-180, max_value=180, required=False)
    radius = serializers.FloatField(min_value=0.1, max_value=100, default=50)

    def validate_category(self, value):
        if value != 'All' and value not in dict(JOB_CATEGORY_CHOICES):
            raise serializers.ValidationError("Invalid category")
        return value

    def validate(self, data):
        if ('lat' in data) != ('lng' in data):
            raise serializers.ValidationError("lat and lng must be given together")
        return data

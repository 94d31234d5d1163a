from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils import timezone
from core.constants import ACCOUNT_ROLE_CHOICES, JOB_CATEGORY_CHOICES, JOB_STATUS_CHOICES
import logging

User = get_user_model()

logger = logging.getLogger(__name__)


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(max_length=128, write_only=True)
    first_name = serializers.CharField(max_length=50)
    last_name = serializers.CharField(max_length=50)
    role = serializers.ChoiceField(choices=ACCOUNT_ROLE_CHOICES, default='worker')
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=200, required=False, allow_blank=True)

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("User already exists with this email")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(username=validated_data['email'], **validated_data)
        user.set_password(password)
        user.save()
        logger.info(f"Registered account {user.id} ({user.email}) as {user.role}")
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(max_length=128, write_only=True)

    def validate(self, data):
        email = data.get('email').strip().lower()
        user = User.objects.filter(email__iexact=email).first()
        if not user or not user.check_password(data.get('password')):
            logger.warning(f"Failed login for {email}")
            raise serializers.ValidationError("Invalid credentials")
        if not user.is_active:
            raise serializers.ValidationError("Account is deactivated")
        if user.is_banned:
            raise serializers.ValidationError(f"Account is banned. {user.ban_reason}".strip())
        data['user'] = user
        return data

    def save(self):
        user = self.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return user


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    wallet = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()
    verification = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name', 'phone', 'role',
            'company_name', 'location', 'bio', 'skills', 'preferences',
            'verification', 'wallet', 'stats', 'date_joined', 'last_login'
        ]
        read_only_fields = ['email', 'role', 'preferences', 'date_joined', 'last_login']

    def get_wallet(self, obj):
        return {'balance': obj.wallet_balance, 'currency': obj.wallet_currency}

    def get_stats(self, obj):
        return {
            'total_jobs': obj.total_jobs,
            'completed_jobs': obj.completed_jobs,
            'total_earnings': obj.total_earnings,
            'average_rating': obj.average_rating,
            'total_reviews': obj.total_reviews,
        }

    def get_verification(self, obj):
        return {'is_verified': obj.is_verified, 'business_verified': obj.business_verified}

    def validate_skills(self, value):
        if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
            raise serializers.ValidationError("Skills must be a list of strings")
        return [s.strip() for s in value if s.strip()]


class PublicUserSerializer(serializers.ModelSerializer):
    """Profile as seen by other accounts; no contact details or wallet."""
    full_name = serializers.CharField(read_only=True)
    stats = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'role', 'company_name',
            'location', 'bio', 'skills', 'is_verified', 'stats', 'date_joined'
        ]

    def get_stats(self, obj):
        return {
            'completed_jobs': obj.completed_jobs,
            'average_rating': obj.average_rating,
            'total_reviews': obj.total_reviews,
        }


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'company_name', 'is_verified', 'average_rating', 'total_reviews']
        ref_name = 'UserSummary'


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)


class JobAlertPreferencesSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(required=False)
    categories = serializers.ListField(
        child=serializers.ChoiceField(choices=JOB_CATEGORY_CHOICES), required=False
    )
    max_distance = serializers.IntegerField(min_value=1, max_value=500, required=False)
    min_pay = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)


class PreferencesSerializer(serializers.Serializer):
    notifications = NotificationPreferencesSerializer(required=False)
    job_alerts = JobAlertPreferencesSerializer(required=False)

    def update(self, instance, validated_data):
        preferences = dict(instance.preferences or {})
        for section, values in validated_data.items():
            merged = dict(preferences.get(section, {}))
            for key, value in values.items():
                merged[key] = float(value) if key == 'min_pay' else value
            preferences[section] = merged
        instance.preferences = preferences
        instance.save(update_fields=['preferences'])
        return instance


class UserJobsFilterSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=['all', 'employer', 'worker'], default='all')
    status = serializers.ChoiceField(choices=JOB_STATUS_CHOICES, required=False)

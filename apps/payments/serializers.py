from rest_framework import serializers
from core.constants import PAYMENT_METHOD_CHOICES, TRANSACTION_TYPE_CHOICES, TRANSACTION_STATUS_CHOICES
from .models import PaymentMethod, Transaction


class PaymentMethodSerializer(serializers.ModelSerializer):
    type = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES)
    name = serializers.CharField(min_length=2, max_length=100)
    last4 = serializers.RegexField(r'^\d{4}$', error_messages={'invalid': 'Last 4 digits must be 4 numbers'})
    processor_method_id = serializers.CharField(max_length=100, required=False, allow_blank=True)

    class Meta:
        model = PaymentMethod
        fields = ['id', 'type', 'name', 'last4', 'is_default', 'processor_method_id', 'created_at']
        read_only_fields = ['created_at']


class PaymentMethodUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100, required=False)
    is_default = serializers.BooleanField(required=False)


class TransactionSerializer(serializers.ModelSerializer):
    formatted_amount = serializers.CharField(read_only=True)
    is_positive = serializers.BooleanField(read_only=True)
    job = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id', 'reference', 'type', 'amount', 'formatted_amount', 'is_positive', 'currency',
            'description', 'status', 'job', 'payment_method', 'processed_at', 'failed_at',
            'failure_reason', 'created_at'
        ]
        read_only_fields = fields

    def get_job(self, obj):
        if obj.job_id is None:
            return None
        return {'id': obj.job_id, 'title': obj.job.title, 'company_name': obj.job.company_name}


class TransactionFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=TRANSACTION_TYPE_CHOICES, required=False)
    status = serializers.ChoiceField(choices=TRANSACTION_STATUS_CHOICES, required=False)


class WithdrawSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=1,
        error_messages={'min_value': 'Amount must be at least 1'}
    )
    payment_method_id = serializers.IntegerField(error_messages={'required': 'Payment method is required'})

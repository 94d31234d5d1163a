from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import NotFound
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction
from core.exceptions import StateConflict
from core.utils import paginate
from apps.jobs import services
from apps.jobs.serializers import JobSerializer
from .models import PaymentMethod, Transaction
from .serializers import (
    PaymentMethodSerializer, PaymentMethodUpdateSerializer, TransactionSerializer,
    TransactionFilterSerializer, WithdrawSerializer
)
from . import ledger
import logging

logger = logging.getLogger(__name__)


def payment_methods_of(user):
    return PaymentMethodSerializer(PaymentMethod.objects.filter(user=user), many=True).data


class WalletView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Wallet balance and saved payment methods",
        responses={200: 'Wallet', 401: 'Unauthorized'}
    )
    def get(self, request):
        user = request.user
        return Response({
            'success': True,
            'data': {
                'wallet': {'balance': user.wallet_balance, 'currency': user.wallet_currency},
                'payment_methods': payment_methods_of(user),
            }
        }, status=status.HTTP_200_OK)


class TransactionListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Transaction history, newest first. Filters: type, status, page, limit.",
        responses={200: TransactionSerializer(many=True)}
    )
    def get(self, request):
        filters = TransactionFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        queryset = Transaction.objects.filter(user=request.user).select_related('job')
        for field in ('type', 'status'):
            if filters.validated_data.get(field):
                queryset = queryset.filter(**{field: filters.validated_data[field]})
        page, pagination = paginate(queryset, request)
        return Response({
            'success': True,
            'data': {'transactions': TransactionSerializer(page, many=True).data, 'pagination': pagination}
        }, status=status.HTTP_200_OK)


class WithdrawView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Withdraw from the wallet to a saved payment method. Settles asynchronously.",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            required=['amount', 'payment_method_id'],
            properties={
                'amount': openapi.Schema(type=openapi.TYPE_NUMBER),
                'payment_method_id': openapi.Schema(type=openapi.TYPE_INTEGER),
            },
        ),
        responses={200: TransactionSerializer, 400: 'Insufficient balance', 404: 'Payment method not found'}
    )
    def post(self, request):
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = ledger.request_withdrawal(
            request.user,
            serializer.validated_data['amount'],
            serializer.validated_data['payment_method_id'],
        )
        return Response({
            'success': True,
            'message': 'Withdrawal initiated successfully',
            'data': {'transaction': TransactionSerializer(entry).data}
        }, status=status.HTTP_200_OK)


class AddPaymentMethodView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Save a card or bank account. The first one saved becomes the default.",
        request_body=PaymentMethodSerializer,
        responses={200: PaymentMethodSerializer(many=True), 400: 'Bad Request'}
    )
    def post(self, request):
        serializer = PaymentMethodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        with transaction.atomic():
            existing = PaymentMethod.objects.select_for_update().filter(user=user)
            is_default = serializer.validated_data.get('is_default', False) or not existing.exists()
            if is_default:
                existing.update(is_default=False)
            serializer.save(user=user, is_default=is_default)
        logger.info(f"User {user.id} added payment method {serializer.instance.id}")
        return Response({
            'success': True,
            'message': 'Payment method added successfully',
            'data': {'payment_methods': payment_methods_of(user)}
        }, status=status.HTTP_200_OK)


class PaymentMethodDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get_method(self, request, pk):
        try:
            return PaymentMethod.objects.get(pk=pk, user=request.user)
        except PaymentMethod.DoesNotExist:
            raise NotFound('Payment method not found')

    @swagger_auto_schema(
        operation_description="Rename a payment method or make it the default",
        request_body=PaymentMethodUpdateSerializer,
        responses={200: PaymentMethodSerializer(many=True), 404: 'Not Found'}
    )
    def put(self, request, pk):
        method = self.get_method(request, pk)
        serializer = PaymentMethodUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        with transaction.atomic():
            if 'name' in data:
                method.name = data['name']
            if 'is_default' in data:
                if data['is_default']:
                    PaymentMethod.objects.filter(user=request.user).exclude(pk=method.pk).update(is_default=False)
                method.is_default = data['is_default']
            method.save()
        return Response({
            'success': True,
            'message': 'Payment method updated successfully',
            'data': {'payment_methods': payment_methods_of(request.user)}
        }, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Remove a payment method. The default one can only go once it is the last.",
        responses={200: PaymentMethodSerializer(many=True), 400: 'Bad Request', 404: 'Not Found'}
    )
    def delete(self, request, pk):
        method = self.get_method(request, pk)
        others = PaymentMethod.objects.filter(user=request.user).exclude(pk=method.pk)
        if method.is_default and others.exists():
            raise StateConflict('Cannot delete default payment method. Set another as default first.')
        with transaction.atomic():
            method.delete()
            if others.exists() and not others.filter(is_default=True).exists():
                first = others.order_by('created_at').first()
                first.is_default = True
                first.save(update_fields=['is_default'])
        return Response({
            'success': True,
            'message': 'Payment method removed successfully',
            'data': {'payment_methods': payment_methods_of(request.user)}
        }, status=status.HTTP_200_OK)


class CompleteJobView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark an in-progress job complete and pay the selected worker. Job owner only.",
        responses={200: 'Job and payout transaction', 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, job_id):
        job, entry = services.complete_job(services.get_job(job_id), request.user)
        return Response({
            'success': True,
            'message': 'Job completed and payment processed',
            'data': {
                'job': JobSerializer(job, context={'request': request}).data,
                'transaction': TransactionSerializer(entry).data,
            }
        }, status=status.HTTP_200_OK)

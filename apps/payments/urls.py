from django.urls import path
from .views import (
    WalletView, TransactionListView, WithdrawView, AddPaymentMethodView,
    PaymentMethodDetailView, CompleteJobView
)

urlpatterns = [
    path('wallet/', WalletView.as_view(), name='wallet'),
    path('transactions/', TransactionListView.as_view(), name='transactions'),
    path('withdraw/', WithdrawView.as_view(), name='withdraw'),
    path('add-payment-method/', AddPaymentMethodView.as_view(), name='add_payment_method'),
    path('payment-method/<int:pk>/', PaymentMethodDetailView.as_view(), name='payment_method_detail'),
    path('complete-job/<int:job_id>/', CompleteJobView.as_view(), name='complete_job'),
]

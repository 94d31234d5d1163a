from django.contrib import admin
from django.db import transaction
from .models import PaymentMethod, Transaction
from . import ledger


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ('user', 'type', 'name', 'last4', 'is_default', 'created_at')
    search_fields = ('user__email', 'name')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('reference', 'user', 'type', 'amount', 'currency', 'status', 'created_at')
    list_filter = ('type', 'status')
    search_fields = ('reference', 'user__email', 'description')
    # Entries are created and settled through apps.payments.ledger only
    readonly_fields = ('reference', 'user', 'type', 'amount', 'currency', 'status', 'processed_at', 'failed_at')

    def save_model(self, request, obj, form, change):
        with transaction.atomic():
            super().save_model(request, obj, form, change)
            ledger.sync_balance(obj.user)

    def delete_model(self, request, obj):
        user = obj.user
        with transaction.atomic():
            super().delete_model(request, obj)
            ledger.sync_balance(user)

    def delete_queryset(self, request, queryset):
        users = {entry.user for entry in queryset.select_related('user')}
        with transaction.atomic():
            super().delete_queryset(request, queryset)
            for user in users:
                ledger.sync_balance(user)

    def has_add_permission(self, request):
        return False

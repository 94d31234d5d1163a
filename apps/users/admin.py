from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'role', 'is_verified', 'business_verified', 'is_banned', 'wallet_balance')
    list_filter = ('role', 'is_verified', 'business_verified', 'is_banned', 'is_active')
    search_fields = ('email', 'first_name', 'last_name', 'company_name', 'phone')
    readonly_fields = ('wallet_balance', 'total_earnings', 'average_rating', 'total_reviews')

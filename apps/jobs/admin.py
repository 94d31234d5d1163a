from django.contrib import admin
from .models import Job, JobApplication


class JobApplicationInline(admin.TabularInline):
    model = JobApplication
    extra = 0
    readonly_fields = ('applied_at', 'responded_at')


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('title', 'employer', 'category', 'city', 'pay_amount', 'status', 'applications_count', 'expires_at')
    list_filter = ('status', 'category', 'payment_status')
    search_fields = ('title', 'company_name', 'employer__email', 'city')
    inlines = [JobApplicationInline]


@admin.register(JobApplication)
class JobApplicationAdmin(admin.ModelAdmin):
    list_display = ('job', 'worker', 'status', 'proposed_pay', 'applied_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'worker__email')

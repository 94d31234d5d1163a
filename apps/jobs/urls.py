from django.urls import path
from .views import (
    JobListCreateView, JobDetailView, JobCancelView,
    ApplicationView, ApplicationUpdateView, MyApplicationsView, JobApplicationsListView,
    RatingView, JobRatingsView, UserRatingsView
)

urlpatterns = [
    # Jobs
    path('jobs/', JobListCreateView.as_view(), name='job_list_create'),
    path('jobs/<int:pk>/', JobDetailView.as_view(), name='job_detail'),
    path('jobs/<int:pk>/cancel/', JobCancelView.as_view(), name='job_cancel'),

    # Applications
    path('applications/my/', MyApplicationsView.as_view(), name='my_applications'),
    path('applications/job/<int:job_id>/', JobApplicationsListView.as_view(), name='job_applications'),
    path('applications/<int:job_id>/', ApplicationView.as_view(), name='job_apply'),
    path('applications/<int:job_id>/<int:application_id>/', ApplicationUpdateView.as_view(), name='application_update'),

    # Ratings
    path('ratings/job/<int:job_id>/', JobRatingsView.as_view(), name='job_ratings'),
    path('ratings/user/<int:user_id>/', UserRatingsView.as_view(), name='user_ratings'),
    path('ratings/<int:job_id>/', RatingView.as_view(), name='job_rate'),
]

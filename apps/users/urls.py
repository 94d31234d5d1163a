from django.urls import path
from .views import (
    AuthRegisterView, AuthLoginView, UserProfileView, UserPreferencesView,
    UserJobsView, PublicProfileView, DeleteAccountView
)

urlpatterns = [
    # Authentication
    path('auth/register/', AuthRegisterView.as_view(), name='auth_register'),
    path('auth/login/', AuthLoginView.as_view(), name='auth_login'),

    # Profile Management
    path('users/profile/', UserProfileView.as_view(), name='user_profile'),
    path('users/preferences/', UserPreferencesView.as_view(), name='user_preferences'),
    path('users/jobs/', UserJobsView.as_view(), name='user_jobs'),
    path('users/account/', DeleteAccountView.as_view(), name='user_delete_account'),
    path('users/<int:user_id>/', PublicProfileView.as_view(), name='user_public_profile'),
]

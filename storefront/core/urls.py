from django.urls import path
from .views import StorefrontTokenObtainPairView, StorefrontTokenRefreshView, user_me, audit_log_list

urlpatterns = [
    # Auth endpoints
    path('auth/login/', StorefrontTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', StorefrontTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
]

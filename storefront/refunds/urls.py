from django.urls import path
from . import views

urlpatterns = [
    # Customer endpoints
    path('refunds/request/', views.refund_request_create, name='refund-request-create'),
    path('refunds/user/', views.user_refunds, name='refund-user-list'),
    path('refunds/<int:pk>/', views.refund_detail, name='refund-detail'),
    path('refunds/<int:pk>/cancel/', views.refund_cancel, name='refund-cancel'),

    # Admin endpoints
    path('refunds/admin/all/', views.admin_refund_list, name='refund-admin-list'),
    path('refunds/admin/stats/', views.admin_refund_stats, name='refund-admin-stats'),
    path('refunds/<int:pk>/review/', views.refund_review, name='refund-review'),
    path('refunds/<int:pk>/approve/', views.refund_approve, name='refund-approve'),
    path('refunds/<int:pk>/reject/', views.refund_reject, name='refund-reject'),
]

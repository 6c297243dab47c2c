from django.urls import path
from . import views

urlpatterns = [
    # Customer endpoints
    path('orders/submit-for-review/', views.submit_order_for_review, name='order-submit-for-review'),
    path('orders/review-orders/', views.my_review_orders, name='order-review-list'),
    path('orders/review-orders/<int:pk>/', views.review_order_tracking, name='order-review-tracking'),
    path('orders/review-orders/<int:pk>/confirm-pictures/', views.customer_confirm_pictures, name='order-confirm-pictures'),

    # Admin endpoints
    path('orders/admin/review-orders/', views.admin_review_orders, name='admin-review-orders'),
    path('orders/admin/review-orders/<int:pk>/', views.admin_update_review_status, name='admin-review-order-status'),
    path('orders/admin/review-orders/<int:pk>/picture-reply/', views.admin_picture_reply, name='admin-picture-reply'),
    path('orders/admin/review-orders/<int:pk>/shipping/', views.admin_update_shipping, name='admin-review-order-shipping'),
]

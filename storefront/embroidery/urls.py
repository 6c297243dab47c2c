from django.urls import path
from . import views

urlpatterns = [
    # Embroidery option endpoints
    path('embroidery-options/', views.embroidery_option_list_create, name='embroidery-option-list-create'),
    path('embroidery-options/<int:pk>/', views.embroidery_option_detail, name='embroidery-option-detail'),
    path('embroidery-options/<int:pk>/toggle/', views.embroidery_option_toggle, name='embroidery-option-toggle'),

    # Custom embroidery order endpoints
    path('custom-embroidery/', views.custom_embroidery_list_create, name='custom-embroidery-list-create'),
    path('custom-embroidery/my-orders/', views.my_custom_embroidery_orders, name='custom-embroidery-my-orders'),
    path('custom-embroidery/<int:pk>/', views.custom_embroidery_detail, name='custom-embroidery-detail'),
    path('custom-embroidery/<int:pk>/status/', views.custom_embroidery_status, name='custom-embroidery-status'),
]

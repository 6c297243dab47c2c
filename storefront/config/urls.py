"""
URL configuration for the storefront API.

Every app mounts its routes under /api/v1/.
"""
from django.urls import path, include

urlpatterns = [
    path('api/v1/', include('storefront.core.urls')),
    path('api/v1/', include('storefront.catalog.urls')),
    path('api/v1/', include('storefront.pricing.urls')),
    path('api/v1/', include('storefront.embroidery.urls')),
    path('api/v1/', include('storefront.cart.urls')),
    path('api/v1/', include('storefront.orders.urls')),
    path('api/v1/', include('storefront.refunds.urls')),
]

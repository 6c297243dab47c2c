from django.urls import path
from . import views

urlpatterns = [
    # Category endpoints
    path('categories/', views.category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', views.category_detail, name='category-detail'),

    # Product endpoints
    path('products/', views.product_list_create, name='product-list-create'),
    path('products/inventory/status/', views.inventory_status, name='product-inventory-status'),
    path('products/slug/<slug:slug>/', views.product_by_slug, name='product-by-slug'),
    path('products/<int:pk>/', views.product_detail, name='product-detail'),
    path('products/<int:pk>/inventory/', views.product_inventory, name='product-inventory'),
    path('products/<int:pk>/variants/', views.product_variants, name='product-variants'),

    # Review endpoints
    path('reviews/', views.review_create, name='review-create'),
    path('reviews/product/<int:product_id>/', views.product_reviews, name='product-reviews'),
    path('reviews/admin/', views.review_admin_list, name='review-admin-list'),
    path('reviews/admin/<int:pk>/', views.review_admin_delete, name='review-admin-delete'),
    path('reviews/admin/<int:pk>/status/', views.review_admin_status, name='review-admin-status'),
    path('reviews/<int:pk>/helpful/', views.review_helpful, name='review-helpful'),
]

from django.urls import path
from . import views

urlpatterns = [
    path('cart/', views.cart, name='cart'),
    path('cart/sync/', views.cart_sync, name='cart-sync'),
    path('cart/<int:item_id>/', views.cart_item_detail, name='cart-item-detail'),
]

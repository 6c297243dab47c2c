from django.urls import path
from . import views

urlpatterns = [
    path('material-costs/', views.material_cost_list_create, name='material-cost-list-create'),
    path('material-costs/<int:pk>/', views.material_cost_detail, name='material-cost-detail'),
    path('material-costs/<int:pk>/toggle-status/', views.material_cost_toggle_status, name='material-cost-toggle-status'),
    path('pricing/quote/', views.pricing_quote, name='pricing-quote'),
]

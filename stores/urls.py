# stores/urls.py - Reseller Platform API URL Configuration
from django.urls import path

from . import views

urlpatterns = [
    # ==================== RESELLER STORE ====================
    path('reseller/store', views.ResellerStoreView.as_view(), name='reseller-store'),
    path('reseller/store/subdomain/check', views.SubdomainCheckView.as_view(), name='reseller-subdomain-check'),
    path('reseller/store/domain/verify', views.DomainVerificationView.as_view(), name='reseller-domain-verify'),
    path('reseller/settings', views.ResellerSettingsView.as_view(), name='reseller-settings'),

    # ==================== PLATFORM ADMIN ====================
    path('admin/stores', views.AdminStoreListView.as_view(), name='admin-stores'),

    path('health/', views.HealthCheckView.as_view(), name='health-check'),
]

from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.urls import path, include
from django.views.generic import TemplateView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView

from stores import admin_shell
from stores.settings_views import SettingsPageView

urlpatterns = [
    # Django admin (platform data management)
    path('django-admin/', admin.site.urls),

    # API endpoints
    path('api/', include('stores.urls')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # Authentication
    path('auth/signin/', auth_views.LoginView.as_view(template_name='registration/login.html'), name='signin'),
    path('auth/signout/', auth_views.LogoutView.as_view(next_page='/'), name='signout'),

    # Admin dashboard
    path('admin', admin_shell.AdminDashboardView.as_view(), name='admin-dashboard'),
    path('admin/resellers', admin_shell.AdminResellersView.as_view(), name='admin-resellers'),
    path('admin/<slug:section>', admin_shell.AdminSectionView.as_view(), name='admin-section'),

    # Reseller pages
    path('reseller/settings', SettingsPageView.as_view(), name='reseller-settings-page'),

    path('', TemplateView.as_view(template_name='stores/home.html'), name='home'),
]

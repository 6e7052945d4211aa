# stores/models.py - Core Reseller Platform Models
"""
Core models for the reseller platform: platform users with roles
and the one store each reseller owns
"""

from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Platform user with a role used by the API and the admin dashboard"""
    ROLE_ADMIN = 'admin'
    ROLE_RESELLER = 'reseller'
    ROLE_CUSTOMER = 'customer'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Platform Admin'),
        (ROLE_RESELLER, 'Reseller'),
        (ROLE_CUSTOMER, 'Customer'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_platform_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_reseller(self):
        return self.role == self.ROLE_RESELLER

    def __str__(self):
        return f"{self.username} ({self.role})"


class Store(models.Model):
    """Reseller storefront with its domain configuration and pricing settings"""
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_SUSPENDED = 'suspended'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    reseller = models.OneToOneField(User, on_delete=models.CASCADE, related_name='store')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')

    # Domain settings
    subdomain = models.CharField(max_length=63, unique=True)
    custom_domain = models.CharField(max_length=253, unique=True, null=True, blank=True)
    custom_domain_verified = models.BooleanField(default=False)
    # {aRecord, cnameRecord, verificationToken}
    dns_settings = models.JSONField(default=dict, blank=True)

    # Markup range, fulfillment and balance alert plus the settings page groups
    settings = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='store_status_created_idx'),
        ]

    @property
    def has_custom_domain(self):
        return bool(self.custom_domain)

    def __str__(self):
        return f"{self.name} ({self.custom_domain or self.subdomain})"

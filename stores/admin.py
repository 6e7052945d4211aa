from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Store, User


@admin.register(User)
class PlatformUserAdmin(UserAdmin):
    list_display = ['username', 'email', 'role', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff']
    fieldsets = UserAdmin.fieldsets + (
        ('Platform', {'fields': ('role',)}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Platform', {'fields': ('role',)}),
    )


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'subdomain', 'custom_domain', 'custom_domain_verified', 'reseller', 'status', 'created_at']
    list_filter = ['status', 'custom_domain_verified', 'created_at']
    search_fields = ['name', 'subdomain', 'custom_domain', 'reseller__username', 'reseller__email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    actions = ['activate_stores', 'suspend_stores']

    fieldsets = (
        ('Store', {
            'fields': ('name', 'description', 'reseller', 'status')
        }),
        ('Domain', {
            'fields': ('subdomain', 'custom_domain', 'custom_domain_verified', 'dns_settings')
        }),
        ('Settings', {
            'fields': ('settings',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    def activate_stores(self, request, queryset):
        updated = queryset.update(status=Store.STATUS_ACTIVE)
        self.message_user(request, f'{updated} store(s) activated.')
    activate_stores.short_description = "Activate selected stores"

    def suspend_stores(self, request, queryset):
        updated = queryset.update(status=Store.STATUS_SUSPENDED)
        self.message_user(request, f'{updated} store(s) suspended.')
    suspend_stores.short_description = "Suspend selected stores"

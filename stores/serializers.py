# stores/serializers.py - Store API Serializers
"""
Serializers for the store document exposed by the reseller API
"""

from django.conf import settings as django_settings
from rest_framework import serializers

from .models import Store


class NumberField(serializers.FloatField):
    """Float field that keeps whole numbers as ints in the stored document"""

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail('invalid')
        value = super().to_internal_value(data)
        if value.is_integer():
            return int(value)
        return value


class StoreSettingsSerializer(serializers.Serializer):
    """Validate the pricing part of a store's settings document"""
    defaultMarkup = serializers.IntegerField(min_value=0)
    minimumMarkup = serializers.IntegerField(min_value=0)
    maximumMarkup = serializers.IntegerField(min_value=0)
    autoFulfillment = serializers.BooleanField()
    lowBalanceAlert = NumberField(min_value=0)

    def validate(self, attrs):
        max_markup = django_settings.RESELLER_SETTINGS['MAX_MARKUP']
        minimum = attrs['minimumMarkup']
        default = attrs['defaultMarkup']
        maximum = attrs['maximumMarkup']

        if maximum > max_markup:
            raise serializers.ValidationError(f"Markup cannot exceed {max_markup}%")
        if not minimum <= default <= maximum:
            raise serializers.ValidationError(
                "Markup must satisfy minimumMarkup <= defaultMarkup <= maximumMarkup"
            )
        return attrs


class StoreSerializer(serializers.ModelSerializer):
    """Store document: identity, domainSettings, settings and lifecycle"""
    domainSettings = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Store
        fields = ['id', 'reseller', 'name', 'description', 'domainSettings',
                  'settings', 'status', 'createdAt', 'updatedAt']
        read_only_fields = fields

    def get_domainSettings(self, obj):
        if not obj.custom_domain:
            return {'subdomain': obj.subdomain}

        return {
            'subdomain': obj.subdomain,
            'customDomain': obj.custom_domain,
            'customDomainVerified': obj.custom_domain_verified,
            'dnsSettings': {
                'aRecord': obj.dns_settings.get('aRecord', ''),
                'cnameRecord': obj.dns_settings.get('cnameRecord', ''),
                'verificationToken': obj.dns_settings.get('verificationToken', ''),
            },
        }


class AdminStoreSerializer(StoreSerializer):
    """Store document with the reseller's account details for the admin dashboard"""
    resellerUsername = serializers.CharField(source='reseller.username', read_only=True)
    resellerEmail = serializers.EmailField(source='reseller.email', read_only=True)

    class Meta(StoreSerializer.Meta):
        fields = StoreSerializer.Meta.fields + ['resellerUsername', 'resellerEmail']
        read_only_fields = fields


class SubdomainCheckSerializer(serializers.Serializer):
    subdomain = serializers.CharField(max_length=100, trim_whitespace=True, error_messages={
        'required': 'Subdomain is required',
        'blank': 'Subdomain is required',
    })


class DomainVerificationSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=['dns', 'file'], default='dns', error_messages={
        'invalid_choice': 'Verification method must be "dns" or "file"',
    })


# stores/services.py
"""
Store provisioning and update logic shared by the REST endpoints and the
reseller settings page
"""
import logging

from django.conf import settings as django_settings
from django.db import IntegrityError, transaction

from .documents import MergeError, filter_updates, merge_document
from .domain_utils import (
    DOMAIN_LABEL_RE, VERIFICATION_METHODS, build_dns_settings, generate_unique_subdomain,
    normalize_domain, reseller_setting, validate_domain,
)
from .exceptions import NotFoundError, ValidationError, first_error_message
from .models import Store
from .serializers import StoreSettingsSerializer

logger = logging.getLogger(__name__)

PRICING_NUMBER_FIELDS = ['defaultMarkup', 'minimumMarkup', 'maximumMarkup', 'lowBalanceAlert']


def get_reseller_store(reseller):
    """Return the reseller's store or raise NotFoundError"""
    try:
        return Store.objects.get(reseller=reseller)
    except Store.DoesNotExist:
        raise NotFoundError('Store not found')


def default_store_settings():
    return dict(django_settings.RESELLER_SETTINGS['DEFAULT_STORE_SETTINGS'])


def build_store_settings(overrides):
    """
    Merge creation-time overrides into the default settings.
    Falsy numeric overrides fall back to the default; autoFulfillment
    only falls back when it is missing or null.
    """
    defaults = default_store_settings()
    if not isinstance(overrides, dict):
        overrides = {}

    merged = {}
    for key in PRICING_NUMBER_FIELDS:
        merged[key] = overrides.get(key) or defaults[key]

    auto_fulfillment = overrides.get('autoFulfillment')
    merged['autoFulfillment'] = defaults['autoFulfillment'] if auto_fulfillment is None else auto_fulfillment

    return validate_store_settings(merged)


def validate_store_settings(settings_doc):
    """Validate the pricing keys of a settings document, keeping any other groups as-is"""
    if not isinstance(settings_doc, dict):
        raise ValidationError('settings must be an object')

    defaults = default_store_settings()
    pricing = {
        key: settings_doc[key] if settings_doc.get(key) is not None else default
        for key, default in defaults.items()
    }

    serializer = StoreSettingsSerializer(data=pricing)
    if not serializer.is_valid():
        raise ValidationError(first_error_message(serializer.errors))

    validated = dict(settings_doc)
    validated.update(serializer.validated_data)
    return validated


def creation_message(is_domain_custom):
    if is_domain_custom:
        return 'Store created! Please configure your domain DNS settings.'
    return 'Store created successfully!'


def provision_store(reseller, data):
    """
    Create the reseller's one store.

    Expected payload:
    {
        "name": "Acme",
        "description": "...",
        "domain": "acme.com",
        "isDomainCustom": true,
        "settings": {"defaultMarkup": 25}
    }
    """
    if Store.objects.filter(reseller=reseller).exists():
        raise ValidationError('Store already exists')

    if not isinstance(data, dict):
        data = {}

    name = data.get('name')
    domain = data.get('domain')
    description = data.get('description') or ''
    is_domain_custom = bool(data.get('isDomainCustom'))

    if not name or not domain:
        raise ValidationError('Store name and domain are required')
    if not isinstance(name, str) or not name.strip() or not isinstance(description, str):
        raise ValidationError('Store name and description must be text')

    custom_domain = None
    if is_domain_custom:
        custom_domain = normalize_domain(domain)
        if not validate_domain(custom_domain):
            raise ValidationError('Invalid domain format')

        if Store.objects.filter(custom_domain=custom_domain).exists():
            raise ValidationError('Domain is already in use')

    # Custom domain stores still get a subdomain for backup/default access
    subdomain = generate_unique_subdomain(name)
    store_settings = build_store_settings(data.get('settings'))

    try:
        with transaction.atomic():
            store = Store.objects.create(
                reseller=reseller,
                name=name.strip(),
                description=description,
                subdomain=subdomain,
                custom_domain=custom_domain,
                custom_domain_verified=False,
                dns_settings=build_dns_settings(subdomain) if custom_domain else {},
                settings=store_settings,
                status=Store.STATUS_ACTIVE,
            )
    except IntegrityError:
        # Lost a race against a concurrent create; report which uniqueness rule failed
        if Store.objects.filter(reseller=reseller).exists():
            raise ValidationError('Store already exists')
        if custom_domain and Store.objects.filter(custom_domain=custom_domain).exists():
            raise ValidationError('Domain is already in use')
        raise ValidationError('Subdomain is already in use, please try again')

    logger.info(f"Store created: {store.name} ({store.custom_domain or store.subdomain}) by {reseller.username}")
    return store, is_domain_custom


def editable_document(store):
    """The writable part of the store document, as plain data"""
    return {
        'name': store.name,
        'description': store.description,
        'settings': dict(store.settings or {}),
        'domainSettings': {
            'subdomain': store.subdomain,
            'customDomain': store.custom_domain,
        },
    }


def apply_subdomain(store, subdomain):
    if subdomain == store.subdomain:
        return
    if not isinstance(subdomain, str) or len(subdomain) < 3 or not DOMAIN_LABEL_RE.match(subdomain):
        raise ValidationError('Invalid subdomain format')
    if subdomain in reseller_setting('RESERVED_SUBDOMAINS'):
        raise ValidationError('This subdomain is reserved')
    if Store.objects.filter(subdomain=subdomain).exclude(pk=store.pk).exists():
        raise ValidationError('Subdomain is already in use')

    store.subdomain = subdomain
    if store.custom_domain:
        store.dns_settings = dict(
            store.dns_settings,
            cnameRecord=f"{subdomain}.{reseller_setting('STORE_DOMAIN')}",
        )


def apply_custom_domain(store, custom_domain):
    if custom_domain in (None, ''):
        store.custom_domain = None
        store.custom_domain_verified = False
        store.dns_settings = {}
        return

    domain = normalize_domain(custom_domain)
    if domain == store.custom_domain:
        return
    if not validate_domain(domain):
        raise ValidationError('Invalid domain format')
    if Store.objects.filter(custom_domain=domain).exclude(pk=store.pk).exists():
        raise ValidationError('Domain is already in use')

    store.custom_domain = domain
    store.custom_domain_verified = False
    store.dns_settings = build_dns_settings(store.subdomain)


def apply_document(store, document):
    """Copy a merged document back onto the model, validating every field"""
    name = document.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Store name is required')

    description = document.get('description')
    if description is None:
        description = ''
    if not isinstance(description, str):
        raise ValidationError('Store description must be text')

    domain_settings = document.get('domainSettings')
    if not isinstance(domain_settings, dict):
        raise ValidationError('domainSettings must be an object')

    store.name = name.strip()
    store.description = description
    store.settings = validate_store_settings(document.get('settings'))
    apply_subdomain(store, domain_settings.get('subdomain'))
    apply_custom_domain(store, domain_settings.get('customDomain'))


def update_store(store, updates):
    """
    Apply a field-level merge update to the store.
    An empty update leaves the store untouched.
    """
    if updates is None:
        updates = {}
    if not isinstance(updates, dict):
        raise ValidationError('Update body must be a JSON object')

    try:
        allowed, ignored = filter_updates(updates)
        if ignored:
            logger.debug(f"Ignoring read-only or unknown store fields: {', '.join(ignored)}")
        if not allowed:
            return store

        merged = merge_document(editable_document(store), allowed)
    except MergeError as e:
        raise ValidationError(str(e))

    apply_document(store, merged)

    try:
        with transaction.atomic():
            store.save()
    except IntegrityError:
        raise ValidationError('Subdomain or domain is already in use')

    logger.info(f"Store updated: {store.pk} fields={', '.join(allowed)}")
    return store


def verify_custom_domain(store, method='dns'):
    """Check the store's custom domain for its verification token"""
    if not store.custom_domain:
        raise ValidationError('Store has no custom domain')

    verifier = VERIFICATION_METHODS.get(method)
    if verifier is None:
        raise ValidationError('Verification method must be "dns" or "file"')

    token = (store.dns_settings or {}).get('verificationToken')
    if not token:
        store.dns_settings = build_dns_settings(store.subdomain)
        store.save(update_fields=['dns_settings', 'updated_at'])
        token = store.dns_settings['verificationToken']

    result = verifier(store.custom_domain, token)

    if result['verified'] and not store.custom_domain_verified:
        store.custom_domain_verified = True
        store.save(update_fields=['custom_domain_verified', 'updated_at'])
        logger.info(f"Custom domain verified: {store.custom_domain} via {method}")

    return result
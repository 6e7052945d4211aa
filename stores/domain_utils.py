# stores/domain_utils.py
"""
Store domain helpers
Subdomain generation, custom domain validation, DNS record defaults
and custom domain ownership verification
"""
import re
import uuid
import logging
from typing import Dict, Any

import dns.exception
import dns.resolver
import requests
from django.conf import settings
from django.utils.text import slugify

from .models import Store

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 63
MAX_DOMAIN_LENGTH = 253

DOMAIN_LABEL_RE = re.compile(r'^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$')
TLD_RE = re.compile(r'^[a-z]{2,63}$')


def reseller_setting(key):
    return settings.RESELLER_SETTINGS[key]


def slugify_subdomain(name: str) -> str:
    """Turn a store name into a DNS-safe subdomain label"""
    slug = slugify(name or '')
    slug = re.sub(r'[^a-z0-9-]', '', slug.replace('_', '-'))
    slug = re.sub(r'-{2,}', '-', slug).strip('-')
    slug = slug[:MAX_LABEL_LENGTH].rstrip('-')
    return slug or 'store'


def is_subdomain_taken(subdomain: str) -> bool:
    return (
        subdomain in reseller_setting('RESERVED_SUBDOMAINS')
        or Store.objects.filter(subdomain=subdomain).exists()
    )


def generate_unique_subdomain(name: str) -> str:
    """
    Derive a subdomain from the store name that no other store uses.
    Collisions get a numeric suffix: acme, acme-2, acme-3, ...
    """
    base = slugify_subdomain(name)
    candidate = base
    counter = 1
    while is_subdomain_taken(candidate):
        counter += 1
        suffix = f"-{counter}"
        candidate = f"{base[:MAX_LABEL_LENGTH - len(suffix)].rstrip('-')}{suffix}"
    return candidate


def normalize_domain(domain) -> str:
    if not isinstance(domain, str):
        return ''
    return domain.strip().lower().rstrip('.')


def is_platform_domain(domain) -> bool:
    """True for the platform domain itself and any host under it"""
    platform_domain = normalize_domain(reseller_setting('STORE_DOMAIN'))
    return domain == platform_domain or domain.endswith(f".{platform_domain}")


def validate_domain(domain) -> bool:
    """
    Validate custom domain format (e.g. acme.com, shop.acme.co.uk).
    Hosts on the platform domain are store subdomains, never custom domains.
    """
    domain = normalize_domain(domain)
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False

    labels = domain.split('.')
    if len(labels) < 2:
        return False

    if not TLD_RE.match(labels[-1]):
        return False

    if is_platform_domain(domain):
        return False

    return all(DOMAIN_LABEL_RE.match(label) for label in labels)


def generate_verification_token() -> str:
    return uuid.uuid4().hex


def build_dns_settings(subdomain: str) -> Dict[str, str]:
    """DNS records a reseller must publish for a custom domain"""
    return {
        'aRecord': reseller_setting('STORE_IP_ADDRESS'),
        'cnameRecord': f"{subdomain}.{reseller_setting('STORE_DOMAIN')}",
        'verificationToken': generate_verification_token(),
    }


def check_subdomain_availability(subdomain: str) -> Dict[str, Any]:
    """Check whether a requested subdomain can still be claimed"""
    clean_subdomain = slugify_subdomain(subdomain)

    if len(clean_subdomain) < 3:
        return {
            'available': False,
            'subdomain': clean_subdomain,
            'message': 'Subdomain must be at least 3 characters long.'
        }

    if clean_subdomain in reseller_setting('RESERVED_SUBDOMAINS'):
        return {
            'available': False,
            'subdomain': clean_subdomain,
            'message': 'This subdomain is reserved.'
        }

    if Store.objects.filter(subdomain=clean_subdomain).exists():
        return {
            'available': False,
            'subdomain': clean_subdomain,
            'message': 'This subdomain is already in use.'
        }

    return {
        'available': True,
        'subdomain': clean_subdomain,
        'message': 'This subdomain is available.'
    }


def verify_dns_token(domain: str, token: str) -> Dict[str, Any]:
    """Look for the verification token in a TXT record on the domain"""
    record_name = f"{reseller_setting('VERIFICATION_RECORD_PREFIX')}.{domain}"
    try:
        answers = dns.resolver.resolve(record_name, 'TXT', lifetime=reseller_setting('VERIFICATION_TIMEOUT'))
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return {
            'verified': False,
            'reason': f'No TXT record found at {record_name}'
        }
    except dns.exception.DNSException as e:
        logger.warning(f"DNS verification lookup failed for {record_name}: {e}")
        return {
            'verified': False,
            'reason': f'DNS lookup failed: {e}'
        }

    values = [b''.join(answer.strings).decode('utf-8', 'ignore') for answer in answers]
    if token in values:
        return {'verified': True, 'reason': ''}

    return {
        'verified': False,
        'reason': 'Verification token does not match'
    }


def verify_file_token(domain: str, token: str) -> Dict[str, Any]:
    """Fetch the well-known verification file from the domain"""
    verification_url = f"http://{domain}{reseller_setting('VERIFICATION_FILE_PATH')}"
    try:
        response = requests.get(verification_url, timeout=reseller_setting('VERIFICATION_TIMEOUT'))
    except requests.RequestException as e:
        logger.warning(f"File verification request failed for {verification_url}: {e}")
        return {
            'verified': False,
            'reason': f'Could not fetch {verification_url}'
        }

    if response.status_code == 200 and token in response.text:
        return {'verified': True, 'reason': ''}

    return {
        'verified': False,
        'reason': 'Verification file not found or its content is wrong'
    }


VERIFICATION_METHODS = {
    'dns': verify_dns_token,
    'file': verify_file_token,
}

from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from stores.models import Store, User


class StoreProvisioningTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.reseller = User.objects.create_user(
            username='reseller',
            email='reseller@example.com',
            password='testpass123',
            role=User.ROLE_RESELLER
        )

        self.other_reseller = User.objects.create_user(
            username='other',
            email='other@example.com',
            password='testpass123',
            role=User.ROLE_RESELLER
        )

        self.customer = User.objects.create_user(
            username='customer',
            email='customer@example.com',
            password='testpass123'
        )

    def create_store(self, user=None, **payload):
        self.client.force_authenticate(user=user or self.reseller)
        data = {'name': 'Acme', 'domain': 'acme', 'isDomainCustom': False}
        data.update(payload)
        return self.client.post('/api/reseller/store', data, format='json')

    def test_create_store_with_subdomain(self):
        """Test creating a store on a generated subdomain"""
        response = self.create_store(description='Gift cards')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['isDomainCustom'])
        self.assertEqual(response.data['message'], 'Store created successfully!')

        store = response.data['store']
        self.assertEqual(store['name'], 'Acme')
        self.assertEqual(store['description'], 'Gift cards')
        self.assertEqual(store['status'], 'active')
        self.assertEqual(store['reseller'], self.reseller.id)
        self.assertEqual(store['domainSettings'], {'subdomain': 'acme'})
        self.assertEqual(store['settings'], {
            'defaultMarkup': 20,
            'minimumMarkup': 10,
            'maximumMarkup': 50,
            'autoFulfillment': True,
            'lowBalanceAlert': 100,
        })

    def test_create_store_with_custom_domain(self):
        """Test custom domain stores get DNS instructions and a backup subdomain"""
        response = self.create_store(domain='acme.com', isDomainCustom=True)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['isDomainCustom'])
        self.assertIn('DNS', response.data['message'])

        domain_settings = response.data['store']['domainSettings']
        self.assertEqual(domain_settings['customDomain'], 'acme.com')
        self.assertFalse(domain_settings['customDomainVerified'])
        self.assertEqual(domain_settings['subdomain'], 'acme')
        self.assertEqual(domain_settings['dnsSettings']['aRecord'], '123.456.789.0')
        self.assertEqual(domain_settings['dnsSettings']['cnameRecord'], 'acme.yourdomain.com')
        self.assertTrue(domain_settings['dnsSettings']['verificationToken'])

    def test_dns_defaults_follow_configuration(self):
        """Test DNS record defaults come from the platform settings"""
        from django.conf import settings

        overrides = dict(settings.RESELLER_SETTINGS, STORE_IP_ADDRESS='10.1.2.3', STORE_DOMAIN='stores.example.net')
        with self.settings(RESELLER_SETTINGS=overrides):
            response = self.create_store(domain='acme.com', isDomainCustom=True)

        dns_settings = response.data['store']['domainSettings']['dnsSettings']
        self.assertEqual(dns_settings['aRecord'], '10.1.2.3')
        self.assertEqual(dns_settings['cnameRecord'], 'acme.stores.example.net')

    def test_settings_overrides_merge_with_defaults(self):
        """Test request settings override the defaults, falsy numbers fall back"""
        response = self.create_store(settings={
            'defaultMarkup': 30,
            'minimumMarkup': 0,
            'autoFulfillment': False,
            'unknownKey': 'dropped',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['store']['settings'], {
            'defaultMarkup': 30,
            'minimumMarkup': 10,
            'maximumMarkup': 50,
            'autoFulfillment': False,
            'lowBalanceAlert': 100,
        })

    def test_second_store_rejected(self):
        """Test a reseller can own only one store"""
        self.create_store()
        response = self.create_store(name='Another')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Store already exists'})
        self.assertEqual(Store.objects.filter(reseller=self.reseller).count(), 1)

    def test_missing_required_fields(self):
        """Test name and domain are required"""
        self.client.force_authenticate(user=self.reseller)

        response = self.client.post('/api/reseller/store', {'name': 'Acme'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Store name and domain are required')

        response = self.client.post('/api/reseller/store', {'domain': 'acme.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Store.objects.exists())

    def test_invalid_custom_domain(self):
        """Test malformed custom domains are rejected"""
        response = self.create_store(domain='not a domain', isDomainCustom=True)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid domain format')

    def test_platform_domain_rejected_as_custom_domain(self):
        """Test hosts on the platform domain cannot be claimed as custom domains"""
        self.create_store()

        response = self.create_store(user=self.other_reseller, name='Copycat',
                                     domain='acme.yourdomain.com', isDomainCustom=True)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid domain format')
        self.assertFalse(Store.objects.filter(reseller=self.other_reseller).exists())

    def test_settings_overrides_outside_markup_range_rejected(self):
        """Test creation-time markup overrides must fit the default markup range"""
        response = self.create_store(settings={'defaultMarkup': 60})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {
            'error': 'Markup must satisfy minimumMarkup <= defaultMarkup <= maximumMarkup'
        })
        self.assertFalse(Store.objects.exists())

        response = self.create_store(settings={'defaultMarkup': 60, 'maximumMarkup': 75})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['store']['settings']['defaultMarkup'], 60)

    def test_custom_domain_in_use_for_any_reseller(self):
        """Test a claimed custom domain is rejected whoever asks for it"""
        self.create_store(domain='acme.com', isDomainCustom=True)

        response = self.create_store(user=self.other_reseller, name='Acme Two', domain='ACME.com', isDomainCustom=True)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Domain is already in use')
        self.assertFalse(Store.objects.filter(reseller=self.other_reseller).exists())

    def test_colliding_names_get_unique_subdomains(self):
        """Test stores with the same name get distinct subdomains"""
        first = self.create_store()
        second = self.create_store(user=self.other_reseller)

        self.assertEqual(first.data['store']['domainSettings']['subdomain'], 'acme')
        self.assertEqual(second.data['store']['domainSettings']['subdomain'], 'acme-2')

    def test_get_store(self):
        """Test a reseller can fetch their store"""
        created = self.create_store()

        response = self.client.get('/api/reseller/store')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], created.data['store']['id'])
        self.assertEqual(response.data['name'], 'Acme')

    def test_get_store_not_found(self):
        """Test 404 when the reseller has no store yet"""
        self.client.force_authenticate(user=self.reseller)

        response = self.client.get('/api/reseller/store')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Store not found'})

    def test_patch_store(self):
        """Test field-level updates, including dotted paths"""
        self.create_store()

        response = self.client.patch('/api/reseller/store', {
            'description': 'Updated',
            'settings.defaultMarkup': 25,
            'settings.notifications': {'orderEmails': False},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Updated')
        self.assertEqual(response.data['settings']['defaultMarkup'], 25)
        self.assertEqual(response.data['settings']['minimumMarkup'], 10)
        self.assertEqual(response.data['settings']['notifications'], {'orderEmails': False})

        store = Store.objects.get(reseller=self.reseller)
        self.assertEqual(store.settings['defaultMarkup'], 25)

    def test_patch_replaces_whole_subdocument(self):
        """Test setting a whole object replaces it, missing pricing keys use defaults"""
        self.create_store(settings={'defaultMarkup': 30})

        response = self.client.patch('/api/reseller/store', {
            'settings': {'maximumMarkup': 80, 'business': {'phone': '555-0100'}},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['settings']['defaultMarkup'], 20)
        self.assertEqual(response.data['settings']['maximumMarkup'], 80)
        self.assertEqual(response.data['settings']['business'], {'phone': '555-0100'})

    def test_patch_empty_body_returns_store_unchanged(self):
        """Test an empty update leaves the store untouched"""
        created = self.create_store()

        response = self.client.patch('/api/reseller/store', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, created.data['store'])

    def test_patch_ignores_read_only_fields(self):
        """Test clients cannot move the store to another reseller"""
        self.create_store()

        response = self.client.patch('/api/reseller/store', {
            'reseller': self.other_reseller.id,
            'createdAt': '2000-01-01T00:00:00Z',
            'name': 'Renamed',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reseller'], self.reseller.id)
        self.assertEqual(response.data['name'], 'Renamed')

    def test_patch_cannot_change_status(self):
        """Test resellers cannot reactivate a store suspended by an admin"""
        self.create_store()
        Store.objects.filter(reseller=self.reseller).update(status=Store.STATUS_SUSPENDED)

        response = self.client.patch('/api/reseller/store', {'status': 'active', 'description': 'Back'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'suspended')
        self.assertEqual(response.data['description'], 'Back')
        self.assertEqual(Store.objects.get(reseller=self.reseller).status, Store.STATUS_SUSPENDED)

    def test_patch_invalid_markup_range(self):
        """Test markup updates keep minimum <= default <= maximum"""
        self.create_store()

        response = self.client.patch('/api/reseller/store', {'settings.defaultMarkup': 90}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertEqual(Store.objects.get(reseller=self.reseller).settings['defaultMarkup'], 20)

    def test_patch_custom_domain(self):
        """Test adding a custom domain later issues DNS settings"""
        self.create_store()

        response = self.client.patch('/api/reseller/store', {'domainSettings.customDomain': 'shop.acme.io'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        domain_settings = response.data['domainSettings']
        self.assertEqual(domain_settings['customDomain'], 'shop.acme.io')
        self.assertFalse(domain_settings['customDomainVerified'])
        self.assertEqual(domain_settings['dnsSettings']['cnameRecord'], 'acme.yourdomain.com')

    def test_patch_custom_domain_in_use(self):
        """Test a PATCH cannot claim another store's domain"""
        self.create_store(user=self.other_reseller, domain='taken.com', isDomainCustom=True)
        self.create_store(name='Mine')

        response = self.client.patch('/api/reseller/store', {'domainSettings.customDomain': 'taken.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Domain is already in use')

    def test_patch_store_not_found(self):
        """Test 404 when updating a store that does not exist"""
        self.client.force_authenticate(user=self.reseller)

        response = self.client.patch('/api/reseller/store', {'name': 'x'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unauthenticated_requests_rejected(self):
        """Test anonymous callers get 401 on every store endpoint"""
        for method in ('post', 'get', 'patch'):
            response = getattr(self.client, method)('/api/reseller/store', {}, format='json')
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
            self.assertEqual(response.data, {'error': 'Unauthorized'})
            self.assertEqual(response['WWW-Authenticate'], 'Token')

    def test_invalid_token_rejected_with_challenge(self):
        """Test a bad API token gets 401 with a WWW-Authenticate challenge"""
        self.client.credentials(HTTP_AUTHORIZATION='Token not-a-real-token')

        response = self.client.get('/api/reseller/store')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Unauthorized'})
        self.assertEqual(response['WWW-Authenticate'], 'Token')

    def test_non_reseller_rejected(self):
        """Test users without the reseller role get 401"""
        self.client.force_authenticate(user=self.customer)

        for method in ('post', 'get', 'patch'):
            response = getattr(self.client, method)('/api/reseller/store', {'name': 'x', 'domain': 'x'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.assertFalse(Store.objects.exists())

    def test_database_failure_returns_generic_error(self):
        """Test unexpected errors map to 500 with a generic message"""
        self.client.force_authenticate(user=self.reseller)

        with mock.patch('stores.services.Store.objects.get', side_effect=DatabaseError('connection refused')):
            response = self.client.get('/api/reseller/store')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to fetch store'})

        with mock.patch('stores.services.provision_store', side_effect=DatabaseError('connection refused')):
            response = self.client.post('/api/reseller/store', {'name': 'Acme', 'domain': 'acme'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Failed to create store'})


class ResellerSettingsAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.reseller = User.objects.create_user(
            username='reseller',
            password='testpass123',
            role=User.ROLE_RESELLER
        )
        self.store = Store.objects.create(
            reseller=self.reseller,
            name='Acme',
            subdomain='acme',
            settings={'defaultMarkup': 20, 'minimumMarkup': 10, 'maximumMarkup': 50,
                      'autoFulfillment': True, 'lowBalanceAlert': 100}
        )
        self.client.force_authenticate(user=self.reseller)

    def test_get_settings(self):
        """Test the settings endpoint returns the store document"""
        response = self.client.get('/api/reseller/settings')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.store.id)
        self.assertEqual(response.data['settings']['lowBalanceAlert'], 100)

    def test_patch_settings(self):
        """Test the settings endpoint applies the same merge"""
        response = self.client.patch('/api/reseller/settings', {
            'settings.lowBalanceAlert': 250.5,
            'settings.autoFulfillment': False,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['settings']['lowBalanceAlert'], 250.5)
        self.assertFalse(response.data['settings']['autoFulfillment'])

    def test_patch_settings_rejects_non_object(self):
        """Test a non-object body is a validation error"""
        response = self.client.patch('/api/reseller/settings', [1, 2], format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_subdomain_check(self):
        """Test subdomain availability answers"""
        response = self.client.post('/api/reseller/store/subdomain/check', {'subdomain': 'acme'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['available'])

        response = self.client.post('/api/reseller/store/subdomain/check', {'subdomain': 'New Shop'}, format='json')
        self.assertTrue(response.data['available'])
        self.assertEqual(response.data['subdomain'], 'new-shop')

        response = self.client.post('/api/reseller/store/subdomain/check', {'subdomain': 'www'}, format='json')
        self.assertFalse(response.data['available'])

        response = self.client.post('/api/reseller/store/subdomain/check', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'subdomain: Subdomain is required')


class HealthCheckTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health_check(self):
        """Test the health check is public and reports the database"""
        response = self.client.get('/api/health/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'status': 'healthy', 'database': True})

    def test_health_check_database_down(self):
        """Test a failing database reports unhealthy with 503"""
        with mock.patch('stores.views.connection') as connection:
            connection.cursor.side_effect = DatabaseError('connection refused')
            response = self.client.get('/api/health/')

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data, {'status': 'unhealthy', 'database': False})

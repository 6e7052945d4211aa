# stores/views.py - Reseller Store API
"""
REST endpoints for store provisioning and configuration

    POST  /api/reseller/store      create the reseller's store
    GET   /api/reseller/store      fetch it
    PATCH /api/reseller/store      field-level merge update
    GET   /api/reseller/settings   same contract, used by the settings page
    PATCH /api/reseller/settings
"""
import logging

from django.db import DatabaseError, connection
from django.db.models import Q
from rest_framework import exceptions, generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .domain_utils import check_subdomain_availability
from .exceptions import AuthorizationError, UnexpectedError
from .models import Store, User
from .permissions import HasRole
from .serializers import (
    AdminStoreSerializer, DomainVerificationSerializer, StoreSerializer, SubdomainCheckSerializer,
)

logger = logging.getLogger(__name__)


class RoleRequiredMixin:
    """Answer 401 for anonymous users and users with another role"""
    permission_classes = [HasRole]
    required_role = User.ROLE_RESELLER

    def permission_denied(self, request, message=None, code=None):
        if request.authenticators and not request.successful_authenticator:
            raise exceptions.NotAuthenticated()
        raise AuthorizationError()


class RoleRequiredAPIView(RoleRequiredMixin, APIView):
    pass


class ResellerStoreView(RoleRequiredAPIView):
    """Create, fetch and update the signed-in reseller's store"""

    def post(self, request):
        try:
            store, is_domain_custom = services.provision_store(request.user, request.data)
        except exceptions.APIException:
            raise
        except Exception as e:
            logger.exception(f"Failed to create store: {e}")
            raise UnexpectedError('Failed to create store')

        return Response({
            'store': StoreSerializer(store).data,
            'isDomainCustom': is_domain_custom,
            'message': services.creation_message(is_domain_custom),
        })

    def get(self, request):
        try:
            store = services.get_reseller_store(request.user)
        except exceptions.APIException:
            raise
        except Exception as e:
            logger.exception(f"Failed to fetch store: {e}")
            raise UnexpectedError('Failed to fetch store')

        return Response(StoreSerializer(store).data)

    def patch(self, request):
        try:
            store = services.get_reseller_store(request.user)
            store = services.update_store(store, request.data)
        except exceptions.APIException:
            raise
        except Exception as e:
            logger.exception(f"Failed to update store: {e}")
            raise UnexpectedError('Failed to update store')

        return Response(StoreSerializer(store).data)


class ResellerSettingsView(RoleRequiredAPIView):
    """Settings page endpoint: the store document in and out"""

    def get(self, request):
        try:
            store = services.get_reseller_store(request.user)
        except exceptions.APIException:
            raise
        except Exception as e:
            logger.exception(f"Failed to fetch store settings: {e}")
            raise UnexpectedError('Failed to fetch store settings')

        return Response(StoreSerializer(store).data)

    def patch(self, request):
        try:
            store = services.get_reseller_store(request.user)
            store = services.update_store(store, request.data)
        except exceptions.APIException:
            raise
        except Exception as e:
            logger.exception(f"Failed to update store settings: {e}")
            raise UnexpectedError('Failed to update settings')

        return Response(StoreSerializer(store).data)


class SubdomainCheckView(RoleRequiredAPIView):
    """Check if a subdomain is available"""

    def post(self, request):
        serializer = SubdomainCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(check_subdomain_availability(serializer.validated_data['subdomain']))


class DomainVerificationView(RoleRequiredAPIView):
    """Verify ownership of the store's custom domain"""

    def post(self, request):
        serializer = DomainVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        method = serializer.validated_data['method']

        store = services.get_reseller_store(request.user)
        result = services.verify_custom_domain(store, method)

        return Response({
            'verified': result['verified'],
            'method': method,
            'reason': result['reason'],
            'store': StoreSerializer(store).data,
        })


class AdminStoreListView(RoleRequiredMixin, generics.ListAPIView):
    """Stores across all resellers for the admin dashboard"""
    serializer_class = AdminStoreSerializer
    required_role = User.ROLE_ADMIN
    filterset_fields = ['status', 'custom_domain_verified']
    search_fields = ['name', 'subdomain', 'custom_domain', 'reseller__username']
    ordering_fields = ['created_at', 'name']

    def get_queryset(self):
        queryset = Store.objects.select_related('reseller')
        has_custom_domain = self.request.query_params.get('has_custom_domain')
        if has_custom_domain == 'true':
            queryset = queryset.exclude(Q(custom_domain__isnull=True) | Q(custom_domain=''))
        elif has_custom_domain == 'false':
            queryset = queryset.filter(Q(custom_domain__isnull=True) | Q(custom_domain=''))
        return queryset


class HealthCheckView(APIView):
    """Database connectivity check"""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
        except DatabaseError as e:
            logger.error(f"Health check failed: {e}")
            return Response({'status': 'unhealthy', 'database': False},
                            status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response({'status': 'healthy', 'database': True})

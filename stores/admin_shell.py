# stores/admin_shell.py
"""
Admin dashboard shell: role-gated layout with a fixed navigation list
"""
from collections import namedtuple

from django.conf import settings
from django.contrib.auth.views import redirect_to_login
from django.db.models import Count
from django.http import Http404
from django.shortcuts import redirect
from django.views.generic import TemplateView

from .models import Store, User

NavItem = namedtuple('NavItem', ['name', 'href', 'icon'])

NAVIGATION = [
    NavItem('Dashboard', '/admin', 'layout-dashboard'),
    NavItem('Products', '/admin/products', 'package'),
    NavItem('Users', '/admin/users', 'users'),
    NavItem('Orders', '/admin/orders', 'shopping-cart'),
    NavItem('Resellers', '/admin/resellers', 'store'),
    NavItem('Redeem Codes', '/admin/redeem-codes', 'gift'),
    NavItem('Settings', '/admin/settings', 'settings'),
]

SECTIONS = {item.href.rsplit('/', 1)[-1]: item for item in NAVIGATION[1:]}


def build_navigation(path):
    """Navigation entries with the active one marked by exact path match"""
    return [
        {'name': item.name, 'href': item.href, 'icon': item.icon, 'active': path == item.href}
        for item in NAVIGATION
    ]


class RoleRequiredPageMixin:
    """
    Send anonymous users to sign-in and signed-in users with another
    role to the home page
    """
    required_role = User.ROLE_ADMIN

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return redirect_to_login(request.get_full_path(), settings.LOGIN_URL)
        if getattr(request.user, 'role', None) != self.required_role:
            return redirect('/')
        return super().dispatch(request, *args, **kwargs)


class AdminShellView(RoleRequiredPageMixin, TemplateView):
    """Base view for every page rendered inside the admin shell"""
    template_name = 'stores/admin/section.html'
    section_title = 'Dashboard'

    def get_section_title(self):
        return self.section_title

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context.update({
            'shell_title': 'Admin Dashboard',
            'navigation': build_navigation(self.request.path),
            'section_title': self.get_section_title(),
        })
        return context


class AdminDashboardView(AdminShellView):
    template_name = 'stores/admin/dashboard.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        status_counts = dict(
            Store.objects.values_list('status').annotate(total=Count('id')).order_by()
        )
        context.update({
            'total_stores': sum(status_counts.values()),
            'status_counts': [
                {'status': label, 'count': status_counts.get(value, 0)}
                for value, label in Store.STATUS_CHOICES
            ],
            'total_resellers': User.objects.filter(role=User.ROLE_RESELLER).count(),
            'pending_domains': Store.objects.filter(
                custom_domain__isnull=False, custom_domain_verified=False
            ).count(),
        })
        return context


class AdminSectionView(AdminShellView):
    """Sections of the dashboard that only render the shell and their title"""

    def get_section_title(self):
        item = SECTIONS.get(self.kwargs.get('section'))
        if item is None:
            raise Http404('Unknown admin section')
        return item.name


class AdminResellersView(AdminShellView):
    template_name = 'stores/admin/resellers.html'
    section_title = 'Resellers'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['stores'] = Store.objects.select_related('reseller')[:100]
        return context

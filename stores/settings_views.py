# stores/settings_views.py
"""
Reseller settings page

The page loads the reseller's store (loaded) or shows an error banner
(error). Each tab posts its form here; the update goes through the same
merge as PATCH /api/reseller/settings.
"""
import logging

from django.contrib import messages
from django.contrib.auth import update_session_auth_hash
from django.contrib.auth.forms import PasswordChangeForm
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views import View

from . import services
from .admin_shell import RoleRequiredPageMixin
from .exceptions import NotFoundError, StoreError
from .forms import STORE_SETTINGS_FORMS
from .models import User
from .serializers import StoreSerializer

logger = logging.getLogger(__name__)

SECURITY_TAB = 'security'
FORMS_BY_TAB = {form_class.tab: form_class for form_class in STORE_SETTINGS_FORMS}
TABS = [(form_class.tab, form_class.title) for form_class in STORE_SETTINGS_FORMS] + [(SECURITY_TAB, 'Security')]


class SettingsPageView(RoleRequiredPageMixin, View):
    template_name = 'stores/reseller/settings.html'
    required_role = User.ROLE_RESELLER

    def load_store(self):
        """Return (store, error); exactly one of them is set"""
        try:
            return services.get_reseller_store(self.request.user), None
        except NotFoundError:
            return None, 'Store not found. Please contact support.'
        except Exception as e:
            logger.exception(f"Failed to fetch store settings: {e}")
            messages.error(self.request, 'Failed to load store settings')
            return None, 'Failed to load store settings'

    def update_settings(self, store, updates):
        """
        Apply a tab's updates and replace the page state with the result.
        Failures are reported as a toast and re-raised so the tab keeps
        the submitted values.
        """
        try:
            store = services.update_store(store, updates)
        except Exception as e:
            if not isinstance(e, StoreError):
                logger.exception(f"Failed to update settings: {e}")
            messages.error(self.request, 'Failed to update settings')
            raise

        messages.success(self.request, 'Settings updated successfully')
        return store

    def get_active_tab(self, tab):
        return tab if tab in FORMS_BY_TAB or tab == SECURITY_TAB else 'business'

    def render_page(self, store=None, error=None, active_tab='business', bound_form=None, password_form=None):
        tabs = []
        if store is not None:
            for tab, title in TABS:
                if tab == SECURITY_TAB:
                    form = password_form or PasswordChangeForm(self.request.user, prefix=SECURITY_TAB)
                elif bound_form is not None and bound_form.tab == tab:
                    form = bound_form
                else:
                    form = FORMS_BY_TAB[tab].for_store(store)
                tabs.append({'tab': tab, 'title': title, 'form': form, 'active': tab == active_tab})

        context = {
            'state': 'error' if error else 'loaded',
            'error': error,
            'store': StoreSerializer(store).data if store is not None else None,
            'tabs': tabs,
            'active_tab': active_tab,
        }
        status = 200 if bound_form is None and password_form is None else 400
        return render(self.request, self.template_name, context, status=status)

    def get(self, request):
        store, error = self.load_store()
        return self.render_page(store, error, self.get_active_tab(request.GET.get('tab')))

    def post(self, request):
        tab = self.get_active_tab(request.POST.get('tab'))
        store, error = self.load_store()
        if error:
            return self.render_page(None, error, tab)

        if tab == SECURITY_TAB:
            return self.change_password(store)

        form = FORMS_BY_TAB[tab].for_store(store, data=request.POST)
        if not form.is_valid():
            messages.error(request, 'Failed to update settings')
            return self.render_page(store, active_tab=tab, bound_form=form)

        try:
            self.update_settings(store, form.to_updates())
        except StoreError as e:
            form.add_error(None, str(e.detail))
            store, error = self.load_store()
            return self.render_page(store, error, tab, bound_form=form)

        return redirect(f"{reverse('reseller-settings-page')}?tab={tab}")

    def change_password(self, store):
        form = PasswordChangeForm(self.request.user, data=self.request.POST, prefix=SECURITY_TAB)
        if not form.is_valid():
            messages.error(self.request, 'Failed to update password')
            return self.render_page(store, active_tab=SECURITY_TAB, password_form=form)

        user = form.save()
        update_session_auth_hash(self.request, user)
        logger.info(f"Password changed for {user.username}")
        messages.success(self.request, 'Password updated successfully')
        return redirect(f"{reverse('reseller-settings-page')}?tab={SECURITY_TAB}")

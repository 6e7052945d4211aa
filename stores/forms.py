# stores/forms.py
"""
Settings page tab forms. Each form reads its initial values from the
store document and turns cleaned data into a field-level update.
"""
from django import forms


class StoreSettingsForm(forms.Form):
    tab = None
    title = ''

    @classmethod
    def initial_for_store(cls, store):
        return {}

    @classmethod
    def for_store(cls, store, data=None):
        return cls(data=data, initial=cls.initial_for_store(store), prefix=cls.tab)

    def to_updates(self):
        raise NotImplementedError


def settings_group(store, group):
    value = (store.settings or {}).get(group)
    return value if isinstance(value, dict) else {}


class BusinessSettingsForm(StoreSettingsForm):
    tab = 'business'
    title = 'Business'

    name = forms.CharField(max_length=200, label='Store name')
    description = forms.CharField(widget=forms.Textarea(attrs={'rows': 3}), required=False)
    email = forms.EmailField(required=False, label='Business email')
    phone = forms.CharField(max_length=30, required=False, label='Business phone')
    address = forms.CharField(widget=forms.Textarea(attrs={'rows': 2}), required=False)

    @classmethod
    def initial_for_store(cls, store):
        business = settings_group(store, 'business')
        return {
            'name': store.name,
            'description': store.description,
            'email': business.get('email', ''),
            'phone': business.get('phone', ''),
            'address': business.get('address', ''),
        }

    def to_updates(self):
        data = self.cleaned_data
        return {
            'name': data['name'],
            'description': data['description'],
            'settings.business': {
                'email': data['email'],
                'phone': data['phone'],
                'address': data['address'],
            },
        }


class OrderSettingsForm(StoreSettingsForm):
    tab = 'orders'
    title = 'Orders'

    default_markup = forms.IntegerField(min_value=0, label='Default markup (%)')
    minimum_markup = forms.IntegerField(min_value=0, label='Minimum markup (%)')
    maximum_markup = forms.IntegerField(min_value=0, label='Maximum markup (%)')
    auto_fulfillment = forms.BooleanField(required=False, label='Fulfill orders automatically')

    @classmethod
    def initial_for_store(cls, store):
        settings = store.settings or {}
        return {
            'default_markup': settings.get('defaultMarkup'),
            'minimum_markup': settings.get('minimumMarkup'),
            'maximum_markup': settings.get('maximumMarkup'),
            'auto_fulfillment': settings.get('autoFulfillment', True),
        }

    def clean(self):
        cleaned_data = super().clean()
        minimum = cleaned_data.get('minimum_markup')
        default = cleaned_data.get('default_markup')
        maximum = cleaned_data.get('maximum_markup')
        if None not in (minimum, default, maximum) and not minimum <= default <= maximum:
            raise forms.ValidationError('Default markup must lie between the minimum and maximum markup.')
        return cleaned_data

    def to_updates(self):
        data = self.cleaned_data
        return {
            'settings.defaultMarkup': data['default_markup'],
            'settings.minimumMarkup': data['minimum_markup'],
            'settings.maximumMarkup': data['maximum_markup'],
            'settings.autoFulfillment': data['auto_fulfillment'],
        }


class PaymentSettingsForm(StoreSettingsForm):
    tab = 'payments'
    title = 'Payments'

    PAYOUT_METHODS = [
        ('bank_transfer', 'Bank transfer'),
        ('paypal', 'PayPal'),
        ('wallet', 'Platform wallet'),
    ]

    low_balance_alert = forms.DecimalField(min_value=0, decimal_places=2, label='Low balance alert')
    payout_method = forms.ChoiceField(choices=PAYOUT_METHODS, initial='bank_transfer')
    account_holder = forms.CharField(max_length=200, required=False)
    account_number = forms.CharField(max_length=64, required=False)

    @classmethod
    def initial_for_store(cls, store):
        payments = settings_group(store, 'payments')
        return {
            'low_balance_alert': (store.settings or {}).get('lowBalanceAlert'),
            'payout_method': payments.get('payoutMethod', 'bank_transfer'),
            'account_holder': payments.get('accountHolder', ''),
            'account_number': payments.get('accountNumber', ''),
        }

    def to_updates(self):
        data = self.cleaned_data
        alert = data['low_balance_alert']
        return {
            'settings.lowBalanceAlert': int(alert) if alert == alert.to_integral_value() else float(alert),
            'settings.payments': {
                'payoutMethod': data['payout_method'],
                'accountHolder': data['account_holder'],
                'accountNumber': data['account_number'],
            },
        }


class NotificationSettingsForm(StoreSettingsForm):
    tab = 'notifications'
    title = 'Notifications'

    order_emails = forms.BooleanField(required=False, label='Email me about new orders')
    low_balance_emails = forms.BooleanField(required=False, label='Email me when my balance is low')
    marketing_emails = forms.BooleanField(required=False, label='Product news and offers')

    @classmethod
    def initial_for_store(cls, store):
        notifications = settings_group(store, 'notifications')
        return {
            'order_emails': notifications.get('orderEmails', True),
            'low_balance_emails': notifications.get('lowBalanceEmails', True),
            'marketing_emails': notifications.get('marketingEmails', False),
        }

    def to_updates(self):
        data = self.cleaned_data
        return {
            'settings.notifications': {
                'orderEmails': data['order_emails'],
                'lowBalanceEmails': data['low_balance_emails'],
                'marketingEmails': data['marketing_emails'],
            },
        }


STORE_SETTINGS_FORMS = [
    BusinessSettingsForm,
    OrderSettingsForm,
    PaymentSettingsForm,
    NotificationSettingsForm,
]

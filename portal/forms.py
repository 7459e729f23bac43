"""Forms used by the portal application.

This module defines the forms for each step of the public submission
wizard, the admin login form, the catalogue and storage settings forms and
the profile forms.  Choice lists are supplied by the views from the
reference data returned by the testimonies API, so every form accepting
choices takes them as constructor arguments.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from django import forms
from django.conf import settings

from portal.services.resources import (
    CategoryType,
    ContentType,
    Country,
    Group,
    StorageSettings,
    TestimonyStatus,
)
from portal.services.storage_units import MB, bytes_to_unit, megabytes, parse_size
from portal.services.wizard import NEW_GROUP_CHOICE, OTHER_CHOICE

Choices = List[Tuple[str, str]]


def _choices(items: Iterable[Any], placeholder: str, empty_placeholder: str) -> Choices:
    items = list(items)
    return [('', placeholder if items else empty_placeholder)] + [(item.id, item.name) for item in items]


def _min_length(value: str, length: int, message: str) -> str:
    value = (value or '').strip()
    if len(value) < length:
        raise forms.ValidationError(message)
    return value


class LoginForm(forms.Form):
    """Admin sign-in form requesting email and password."""

    email = forms.EmailField(
        label='Email',
        error_messages={'invalid': 'Invalid email address'},
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'admin@example.com'}),
    )
    password = forms.CharField(
        label='Password',
        min_length=6,
        error_messages={'min_length': 'Password must be at least 6 characters'},
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'placeholder': '••••••••'}),
    )


# ---------------------------------------------------------------------------
# Submission wizard
# ---------------------------------------------------------------------------


class CategoryStepForm(forms.Form):
    """Step 0: what the testimony is about and how it is categorised."""

    testimony_category_id = forms.ChoiceField(
        label='Testimony Type',
        error_messages={'required': 'Testimony type is required'},
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    category_type = forms.ChoiceField(
        label='Category',
        choices=CategoryType.CHOICES,
        widget=forms.RadioSelect,
    )

    def __init__(self, *args, testimony_categories=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['testimony_category_id'].choices = _choices(
            testimony_categories, 'What is your testimony about?', 'No types available'
        )


class DetailsStepForm(forms.Form):
    """Step 1: network, external category or zone/group/church details.

    Which fields are required depends on the category type chosen in the
    previous step, which is passed in as ``category_type``.
    """

    network_id = forms.ChoiceField(label='Network', required=False, widget=forms.Select(attrs={'class': 'form-select'}))
    custom_network = forms.CharField(
        label='Network Name',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Enter network name'}),
    )
    external_category_id = forms.ChoiceField(
        label='Category', required=False, widget=forms.Select(attrs={'class': 'form-select'})
    )
    custom_external = forms.CharField(
        label='Category Name',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Enter category name'}),
    )
    zone_id = forms.ChoiceField(
        label='Zone',
        required=False,
        widget=forms.Select(attrs={'class': 'form-select', 'data-refresh': 'zone'}),
    )
    group_id = forms.ChoiceField(label='Group', required=False, widget=forms.Select(attrs={'class': 'form-select'}))
    new_group_name = forms.CharField(
        label='New Group Name',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Enter group name'}),
    )
    church = forms.CharField(
        label='Church',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Your church name'}),
    )

    def __init__(
        self,
        *args,
        category_type: str = CategoryType.NETWORK,
        networks=(),
        external_categories=(),
        zones=(),
        groups: Optional[List[Group]] = None,
        groups_error: bool = False,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.category_type = category_type
        self.fields['network_id'].choices = _choices(networks, 'Choose network', 'No networks available') + [
            (OTHER_CHOICE, 'Other')
        ]
        self.fields['external_category_id'].choices = _choices(
            external_categories, 'Choose category', 'No categories available'
        ) + [(OTHER_CHOICE, 'Other')]
        self.fields['zone_id'].choices = _choices(zones, 'Select zone', 'No zones available')
        group_placeholder = 'Error loading groups' if groups_error else 'Select group'
        self.fields['group_id'].choices = [('', group_placeholder)] + [
            (group.id, group.name) for group in groups or []
        ] + [(NEW_GROUP_CHOICE, '+ Add new group')]

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        category_type = self.category_type
        if category_type == CategoryType.NETWORK:
            network_id = cleaned_data.get('network_id')
            if not network_id:
                self.add_error('network_id', 'Please choose a network')
            elif network_id == OTHER_CHOICE and not (cleaned_data.get('custom_network') or '').strip():
                self.add_error('custom_network', 'Please enter the network name')
        elif category_type == CategoryType.EXTERNAL:
            category_id = cleaned_data.get('external_category_id')
            if not category_id:
                self.add_error('external_category_id', 'Please choose a category')
            elif category_id == OTHER_CHOICE and not (cleaned_data.get('custom_external') or '').strip():
                self.add_error('custom_external', 'Please enter the category name')
        elif category_type == CategoryType.REGION:
            if not cleaned_data.get('zone_id'):
                self.add_error('zone_id', 'Please select a zone')
            group_id = cleaned_data.get('group_id')
            if not group_id:
                self.add_error('group_id', 'Please select a group')
            elif group_id == NEW_GROUP_CHOICE and not (cleaned_data.get('new_group_name') or '').strip():
                self.add_error('new_group_name', 'Please enter the group name')
            if not (cleaned_data.get('church') or '').strip():
                self.add_error('church', 'Church name is required')
        return cleaned_data

    def relevant_data(self) -> Dict[str, str]:
        """Return only the cleaned fields that belong to the category type."""

        keys = {
            CategoryType.NETWORK: ('network_id', 'custom_network'),
            CategoryType.EXTERNAL: ('external_category_id', 'custom_external'),
            CategoryType.REGION: ('zone_id', 'group_id', 'new_group_name', 'church'),
        }.get(self.category_type, ())
        return {key: self.cleaned_data.get(key) or '' for key in keys}


class PersonalInfoStepForm(forms.Form):
    """Step 2: who is sharing the testimony."""

    name = forms.CharField(
        label='Full Name',
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Your name'}),
        error_messages={'required': 'Name must be at least 2 characters'},
    )
    email = forms.EmailField(
        label='Email',
        error_messages={'invalid': 'Invalid email address', 'required': 'Invalid email address'},
        widget=forms.EmailInput(attrs={'class': 'form-control', 'placeholder': 'email@example.com'}),
    )
    country_id = forms.ChoiceField(
        label='Country',
        error_messages={'required': 'Country is required'},
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    phone_country_code = forms.CharField(
        label='Country Code',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': '+1'}),
    )
    phone = forms.CharField(
        label='Phone',
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Phone number'}),
        error_messages={'required': 'Invalid phone number'},
    )
    kingschat_username = forms.CharField(
        label='KingsChat Username',
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Optional'}),
    )

    def __init__(self, *args, countries: Iterable[Country] = (), **kwargs):
        super().__init__(*args, **kwargs)
        self.countries = list(countries)
        self.fields['country_id'].choices = _choices(self.countries, 'Select country', 'No countries available')

    def clean_name(self) -> str:
        return _min_length(self.cleaned_data.get('name'), 2, 'Name must be at least 2 characters')

    def clean_phone(self) -> str:
        return _min_length(self.cleaned_data.get('phone'), 6, 'Invalid phone number')

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        code = (cleaned_data.get('phone_country_code') or '').strip()
        country_id = cleaned_data.get('country_id')
        if not code and country_id:
            country = next((c for c in self.countries if c.id == country_id), None)
            if country:
                code = country.phone_code
        if not code:
            self.add_error('phone_country_code', 'Country code is required')
        cleaned_data['phone_country_code'] = code
        return cleaned_data


class ContentStepForm(forms.Form):
    """Step 3: the testimony itself, as text or an audio/video file."""

    content_type = forms.ChoiceField(label='Content Type', choices=ContentType.CHOICES, widget=forms.RadioSelect)
    text_content = forms.CharField(
        label='Testimony',
        required=False,
        widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 8, 'placeholder': 'Share your testimony...'}),
    )
    file = forms.FileField(label='Media File', required=False)

    def __init__(self, *args, has_pending_upload: bool = False, pending_content_type: str = '', **kwargs):
        super().__init__(*args, **kwargs)
        self.has_pending_upload = has_pending_upload
        self.pending_content_type = pending_content_type

    @staticmethod
    def size_limit(content_type: str) -> int:
        """Return the client-side size cap in bytes for ``content_type``."""

        if content_type == ContentType.VIDEO:
            return megabytes(getattr(settings, 'TESTIMONY_MAX_VIDEO_MB', 100))
        return megabytes(getattr(settings, 'TESTIMONY_MAX_AUDIO_MB', 20))

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        content_type = cleaned_data.get('content_type')
        if content_type == ContentType.TEXT:
            if not (cleaned_data.get('text_content') or '').strip():
                self.add_error('text_content', 'Please share your testimony')
            return cleaned_data
        if not content_type:
            return cleaned_data
        upload = cleaned_data.get('file')
        if upload is None:
            if not (self.has_pending_upload and self.pending_content_type == content_type):
                self.add_error('file', f'Please upload your {content_type.lower()} file')
            return cleaned_data
        limit = self.size_limit(content_type)
        if upload.size > limit:
            self.add_error('file', f'File too large. Maximum size is {limit // MB}MB')
        return cleaned_data


# ---------------------------------------------------------------------------
# Back-office
# ---------------------------------------------------------------------------


class TestimonyFilterForm(forms.Form):
    """Filters for the admin testimonies list (submitted via GET)."""

    search = forms.CharField(
        required=False,
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search by name, email or content'}),
    )
    status = forms.ChoiceField(required=False, choices=[('', 'All statuses')] + TestimonyStatus.CHOICES)
    category_type = forms.ChoiceField(
        required=False, choices=[('', 'All categories')] + CategoryType.CHOICES
    )
    content_type = forms.ChoiceField(required=False, choices=[('', 'All content')] + ContentType.CHOICES)
    testimony_category_id = forms.ChoiceField(required=False)
    country_id = forms.ChoiceField(required=False)
    zone_id = forms.ChoiceField(required=False)
    page = forms.IntegerField(required=False, min_value=1, widget=forms.HiddenInput)

    FILTER_FIELDS = (
        'search',
        'status',
        'category_type',
        'content_type',
        'testimony_category_id',
        'country_id',
        'zone_id',
    )

    def __init__(self, *args, testimony_categories=(), countries=(), zones=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['testimony_category_id'].choices = [('', 'All types')] + [
            (item.id, item.name) for item in testimony_categories
        ]
        self.fields['country_id'].choices = [('', 'All countries')] + [(item.id, item.name) for item in countries]
        self.fields['zone_id'].choices = [('', 'All zones')] + [(item.id, item.name) for item in zones]
        for field in self.fields.values():
            css = 'form-select' if isinstance(field, forms.ChoiceField) else 'form-control'
            field.widget.attrs.setdefault('class', css)

    def filters(self) -> Dict[str, str]:
        """Return the non-empty filters, ignoring invalid input."""

        if not self.is_valid():
            return {}
        return {
            key: self.cleaned_data[key].strip() if key == 'search' else self.cleaned_data[key]
            for key in self.FILTER_FIELDS
            if self.cleaned_data.get(key)
        }

    def page_number(self) -> int:
        if not self.is_valid():
            return 1
        return self.cleaned_data.get('page') or 1


class NamedResourceForm(forms.Form):
    """Create or rename a network, external category or testimony type."""

    name = forms.CharField(
        label='Name',
        max_length=255,
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )

    def __init__(self, *args, noun: str = 'Name', **kwargs):
        super().__init__(*args, **kwargs)
        self.noun = noun

    def clean_name(self) -> str:
        return _min_length(self.cleaned_data.get('name'), 2, f'{self.noun} must be at least 2 characters')


class StorageSettingsForm(forms.Form):
    """Storage quotas, edited in GB/MB and sent to the API in bytes."""

    total_storage_gb = forms.DecimalField(
        label='Total Storage Limit (GB)',
        min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '1'}),
    )
    max_video_mb = forms.DecimalField(
        label='Max Video File Size (MB)',
        min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '1'}),
    )
    max_audio_mb = forms.DecimalField(
        label='Max Audio File Size (MB)',
        min_value=0,
        widget=forms.NumberInput(attrs={'class': 'form-control', 'step': '1'}),
    )

    MIN_TOTAL_STORAGE = 100 * MB
    MIN_FILE_SIZE = MB

    @classmethod
    def initial_from(cls, storage: StorageSettings) -> Dict[str, str]:
        return {
            'total_storage_gb': bytes_to_unit(storage.total_storage_limit, 'GB'),
            'max_video_mb': bytes_to_unit(storage.max_video_file_size, 'MB'),
            'max_audio_mb': bytes_to_unit(storage.max_audio_file_size, 'MB'),
        }

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data
        total = parse_size(cleaned_data.get('total_storage_gb'), 'GB')
        video = parse_size(cleaned_data.get('max_video_mb'), 'MB')
        audio = parse_size(cleaned_data.get('max_audio_mb'), 'MB')
        if total < self.MIN_TOTAL_STORAGE:
            self.add_error('total_storage_gb', 'Total storage limit must be at least 100 MB')
        if video < self.MIN_FILE_SIZE:
            self.add_error('max_video_mb', 'Max video file size must be at least 1 MB')
        if audio < self.MIN_FILE_SIZE:
            self.add_error('max_audio_mb', 'Max audio file size must be at least 1 MB')
        cleaned_data['storage'] = StorageSettings(
            total_storage_limit=total,
            max_video_file_size=video,
            max_audio_file_size=audio,
        )
        return cleaned_data


class ProfileForm(forms.Form):
    name = forms.CharField(
        label='Name',
        max_length=255,
        error_messages={'required': 'Name is required'},
        widget=forms.TextInput(attrs={'class': 'form-control'}),
    )
    email = forms.EmailField(
        label='Email',
        error_messages={'required': 'Valid email is required', 'invalid': 'Valid email is required'},
        widget=forms.EmailInput(attrs={'class': 'form-control'}),
    )

    def clean_name(self) -> str:
        name = (self.cleaned_data.get('name') or '').strip()
        if not name:
            raise forms.ValidationError('Name is required')
        return name


class PasswordChangeForm(forms.Form):
    current_password = forms.CharField(
        label='Current Password',
        error_messages={'required': 'Current password is required'},
        widget=forms.PasswordInput(attrs={'class': 'form-control'}),
    )
    new_password = forms.CharField(
        label='New Password',
        min_length=6,
        error_messages={
            'required': 'New password must be at least 6 characters',
            'min_length': 'New password must be at least 6 characters',
        },
        widget=forms.PasswordInput(attrs={'class': 'form-control'}),
    )
    confirm_password = forms.CharField(
        label='Confirm New Password',
        required=False,
        widget=forms.PasswordInput(attrs={'class': 'form-control'}),
    )

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        new_password = cleaned_data.get('new_password')
        if new_password and new_password != cleaned_data.get('confirm_password'):
            self.add_error('confirm_password', 'Passwords do not match')
        return cleaned_data

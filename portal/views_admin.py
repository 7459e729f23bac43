"""Back-office view functions for the testimony portal.

Every view here, apart from sign in and sign out, is wrapped in
:func:`portal.auth.admin_required`, which confirms the remote session and
attaches the authenticated API client as ``request.api``.  Failures
reported by the API are surfaced with ``django.contrib.messages`` and the
page is rendered (or the user redirected) rather than raising, except for
:class:`ApiAuthenticationError`, which is left to the session middleware.

Networks, external categories and testimony types share a single set of
catalogue views parameterised by the ``kind`` URL segment; see
:data:`CATALOGUES`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from django.contrib import messages
from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_http_methods, require_POST

from portal.auth import (
    SESSION_ADMIN_KEY,
    admin_required,
    clear_credentials,
    get_api_client,
    has_credentials,
    store_credentials,
)
from portal.forms import (
    LoginForm,
    NamedResourceForm,
    PasswordChangeForm,
    ProfileForm,
    StorageSettingsForm,
    TestimonyFilterForm,
)
from portal.services.api_client import ApiClient, ApiError, ApiFailure
from portal.services.resources import TestimonyStatus, flatten_zones

logger = logging.getLogger(__name__)

TESTIMONIES_PER_PAGE = 10


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


@require_http_methods(['GET', 'POST'])
def login_view(request: HttpRequest) -> HttpResponse:
    """Sign an administrator in through the testimonies API."""
    next_url = request.POST.get('next') or request.GET.get('next') or ''
    if not url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        next_url = ''
    if request.method == 'GET' and has_credentials(request):
        return redirect(next_url or 'admin_dashboard')
    if request.method == 'POST':
        form = LoginForm(request.POST)
        if form.is_valid():
            try:
                result = ApiClient().login(form.cleaned_data['email'], form.cleaned_data['password'])
            except ApiFailure as exc:
                messages.error(request, exc.message)
            else:
                store_credentials(request, result)
                logger.info('Admin %s signed in', result.admin.email)
                return redirect(next_url or 'admin_dashboard')
    else:
        form = LoginForm()
    return render(request, 'backoffice/login.html', {'form': form, 'next': next_url})


@require_POST
def logout_view(request: HttpRequest) -> HttpResponse:
    """Sign out remotely, then forget the local credentials regardless."""
    try:
        get_api_client(request).logout()
    except ApiFailure as exc:
        logger.info('Remote logout failed: %s', exc.message)
    clear_credentials(request)
    messages.info(request, 'You have been signed out.')
    return redirect('admin_login')


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@admin_required
def dashboard(request: HttpRequest) -> HttpResponse:
    """Display headline statistics and the latest submissions."""
    try:
        overview = request.api.get_stats()
    except ApiError as exc:
        messages.error(request, exc.message or 'Failed to load statistics')
        overview = None
    return render(request, 'backoffice/dashboard.html', {'overview': overview})


# ---------------------------------------------------------------------------
# Testimonies
# ---------------------------------------------------------------------------


def _filter_reference(client: ApiClient) -> Dict[str, List[Any]]:
    """Load the lists behind the filter drop-downs.

    Filters are a convenience; if the lists cannot be loaded the page still
    works with the free-text and fixed-choice filters.
    """

    reference: Dict[str, List[Any]] = {'testimony_categories': [], 'countries': [], 'zones': []}
    try:
        reference['testimony_categories'] = client.get_testimony_categories()
        reference['countries'] = client.get_countries()
        reference['zones'] = flatten_zones(client.get_zones())
    except ApiError as exc:
        logger.warning('Failed to load testimony filter choices: %s', exc.message)
    return reference


@admin_required
def testimony_list(request: HttpRequest) -> HttpResponse:
    """List testimonies with filters and pagination."""
    client: ApiClient = request.api
    filter_form = TestimonyFilterForm(request.GET or None, **_filter_reference(client))
    filters = filter_form.filters() if request.GET else {}
    page = filter_form.page_number() if request.GET else 1
    result = None
    try:
        result = client.get_testimonies(page=page, limit=TESTIMONIES_PER_PAGE, **filters)
    except ApiError:
        messages.error(request, 'Failed to load testimonies')
    query = urlencode(filters)
    return render(
        request,
        'backoffice/testimony_list.html',
        {
            'filter_form': filter_form,
            'result': result,
            'filter_query': query,
            'statuses': TestimonyStatus,
        },
    )


def _back_to_list(request: HttpRequest) -> HttpResponse:
    target = request.POST.get('next', '')
    if target and url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}):
        return redirect(target)
    return redirect('admin_testimony_list')


@admin_required
def testimony_detail(request: HttpRequest, testimony_id: str) -> HttpResponse:
    """Show a single testimony with its media and moderation actions."""
    try:
        testimony = request.api.get_testimony(testimony_id)
    except ApiError:
        messages.error(request, 'Failed to load testimony details')
        return redirect('admin_testimony_list')
    return render(
        request,
        'backoffice/testimony_detail.html',
        {'testimony': testimony, 'statuses': TestimonyStatus},
    )


@require_POST
@admin_required
def testimony_set_status(request: HttpRequest, testimony_id: str) -> HttpResponse:
    """Approve or reject a testimony."""
    status = request.POST.get('status', '')
    if status not in TestimonyStatus.MODERATION_TARGETS:
        messages.error(request, 'Failed to update testimony')
        return _back_to_list(request)
    try:
        request.api.update_testimony_status(testimony_id, status)
    except ApiError:
        messages.error(request, 'Failed to update testimony')
    else:
        logger.info('Admin %s set testimony %s to %s', request.admin.email, testimony_id, status)
        messages.success(request, f'Testimony {status.lower()}')
    return _back_to_list(request)


@require_POST
@admin_required
def testimony_delete(request: HttpRequest, testimony_id: str) -> HttpResponse:
    """Delete a testimony once the confirmation box has been ticked."""
    if not request.POST.get('confirm'):
        messages.error(request, 'Please confirm that you want to delete this testimony.')
        return redirect('admin_testimony_detail', testimony_id=testimony_id)
    try:
        request.api.delete_testimony(testimony_id)
    except ApiError:
        messages.error(request, 'Failed to delete testimony')
        return redirect('admin_testimony_detail', testimony_id=testimony_id)
    logger.info('Admin %s deleted testimony %s', request.admin.email, testimony_id)
    messages.success(request, 'Testimony deleted')
    return redirect('admin_testimony_list')


# ---------------------------------------------------------------------------
# Catalogues: networks, external categories and testimony types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Catalogue:
    """Describes one admin-managed list of named records."""

    kind: str
    title: str
    singular: str
    label: str
    plural: str
    noun: str
    list_method: str
    create_method: str
    update_method: str
    delete_method: str

    def call(self, client: ApiClient, method: str, *args, **kwargs):
        operation: Callable[..., Any] = getattr(client, getattr(self, method))
        return operation(*args, **kwargs)


CATALOGUES: Dict[str, Catalogue] = {
    'networks': Catalogue(
        kind='networks',
        title='Networks',
        singular='Network',
        label='Network',
        plural='networks',
        noun='Network name',
        list_method='get_admin_networks',
        create_method='create_network',
        update_method='update_network',
        delete_method='delete_network',
    ),
    'categories': Catalogue(
        kind='categories',
        title='External Categories',
        singular='Category',
        label='Category',
        plural='external categories',
        noun='Category name',
        list_method='get_admin_external_categories',
        create_method='create_external_category',
        update_method='update_external_category',
        delete_method='delete_external_category',
    ),
    'testimony-types': Catalogue(
        kind='testimony-types',
        title='Testimony Types',
        singular='Testimony category',
        label='Category',
        plural='testimony categories',
        noun='Category name',
        list_method='get_admin_testimony_categories',
        create_method='create_testimony_category',
        update_method='update_testimony_category',
        delete_method='delete_testimony_category',
    ),
}


def _catalogue(kind: str) -> Catalogue:
    try:
        return CATALOGUES[kind]
    except KeyError:
        raise Http404(f'Unknown catalogue: {kind}')


def _catalogue_redirect(catalogue: Catalogue) -> HttpResponse:
    return redirect('admin_catalogue_list', kind=catalogue.kind)


@require_http_methods(['GET', 'POST'])
@admin_required
def catalogue_list(request: HttpRequest, kind: str) -> HttpResponse:
    """List a catalogue and handle the inline create form."""
    catalogue = _catalogue(kind)
    client: ApiClient = request.api
    if request.method == 'POST':
        form = NamedResourceForm(request.POST, noun=catalogue.noun)
        if form.is_valid():
            try:
                catalogue.call(client, 'create_method', form.cleaned_data['name'])
            except ApiError as exc:
                messages.error(request, exc.message or f'Failed to create {catalogue.label.lower()}')
            else:
                messages.success(request, f'{catalogue.singular} created successfully')
                return _catalogue_redirect(catalogue)
    else:
        form = NamedResourceForm(noun=catalogue.noun)
    items: Optional[List[Any]] = None
    try:
        items = catalogue.call(client, 'list_method')
    except ApiError:
        messages.error(request, f'Failed to load {catalogue.plural}')
    return render(
        request,
        'backoffice/catalogue_list.html',
        {'catalogue': catalogue, 'items': items, 'form': form},
    )


@require_http_methods(['GET', 'POST'])
@admin_required
def catalogue_edit(request: HttpRequest, kind: str, item_id: str) -> HttpResponse:
    """Rename a catalogue entry."""
    catalogue = _catalogue(kind)
    client: ApiClient = request.api
    try:
        items = catalogue.call(client, 'list_method')
    except ApiError:
        messages.error(request, f'Failed to load {catalogue.plural}')
        return _catalogue_redirect(catalogue)
    item = next((entry for entry in items if entry.id == item_id), None)
    if item is None:
        raise Http404(f'{catalogue.singular} not found')
    if request.method == 'POST':
        form = NamedResourceForm(request.POST, noun=catalogue.noun)
        if form.is_valid():
            try:
                catalogue.call(client, 'update_method', item_id, name=form.cleaned_data['name'])
            except ApiError as exc:
                messages.error(request, exc.message or f'Failed to update {catalogue.label.lower()}')
            else:
                messages.success(request, f'{catalogue.singular} updated successfully')
                return _catalogue_redirect(catalogue)
    else:
        form = NamedResourceForm(initial={'name': item.name}, noun=catalogue.noun)
    return render(
        request,
        'backoffice/catalogue_edit.html',
        {'catalogue': catalogue, 'item': item, 'form': form},
    )


@require_POST
@admin_required
def catalogue_toggle(request: HttpRequest, kind: str, item_id: str) -> HttpResponse:
    """Activate or deactivate a catalogue entry."""
    catalogue = _catalogue(kind)
    currently_active = request.POST.get('is_active') in ('1', 'true', 'True')
    try:
        catalogue.call(request.api, 'update_method', item_id, is_active=not currently_active)
    except ApiError:
        messages.error(request, f'Failed to update {catalogue.label.lower()}')
    else:
        messages.success(request, f"{catalogue.label} {'deactivated' if currently_active else 'activated'}")
    return _catalogue_redirect(catalogue)


@require_POST
@admin_required
def catalogue_delete(request: HttpRequest, kind: str, item_id: str) -> HttpResponse:
    catalogue = _catalogue(kind)
    try:
        catalogue.call(request.api, 'delete_method', item_id)
    except ApiError as exc:
        messages.error(request, exc.message or f'Failed to delete {catalogue.label.lower()}')
    else:
        logger.info('Admin %s deleted %s %s', request.admin.email, catalogue.kind, item_id)
        messages.success(request, f'{catalogue.label} deleted successfully')
    return _catalogue_redirect(catalogue)


# ---------------------------------------------------------------------------
# Storage settings and profile
# ---------------------------------------------------------------------------


@require_http_methods(['GET', 'POST'])
@admin_required
def storage_settings(request: HttpRequest) -> HttpResponse:
    """Show storage usage and edit the upload quotas."""
    client: ApiClient = request.api
    overview = None
    try:
        overview = client.get_storage_settings()
    except ApiError:
        messages.error(request, 'Failed to load storage settings')
    if request.method == 'POST':
        form = StorageSettingsForm(request.POST)
        if form.is_valid():
            try:
                client.update_storage_settings(form.cleaned_data['storage'])
            except ApiError as exc:
                messages.error(request, exc.message or 'Failed to update settings')
            else:
                logger.info('Admin %s updated storage settings', request.admin.email)
                messages.success(request, 'Storage settings updated successfully')
                return redirect('admin_storage_settings')
    else:
        initial = StorageSettingsForm.initial_from(overview.settings) if overview else None
        form = StorageSettingsForm(initial=initial)
    return render(request, 'backoffice/storage_settings.html', {'overview': overview, 'form': form})


def _render_profile(request: HttpRequest, profile_form=None, password_form=None, status: int = 200) -> HttpResponse:
    profile = None
    try:
        profile = request.api.get_admin_profile()
    except ApiError:
        messages.error(request, 'Failed to load profile')
    if profile_form is None:
        initial = {'name': profile.name, 'email': profile.email} if profile else None
        profile_form = ProfileForm(initial=initial)
    return render(
        request,
        'backoffice/profile.html',
        {
            'profile': profile,
            'profile_form': profile_form,
            'password_form': password_form or PasswordChangeForm(),
        },
        status=status,
    )


@require_http_methods(['GET', 'POST'])
@admin_required
def profile(request: HttpRequest) -> HttpResponse:
    """Show and update the signed-in administrator's name and email."""
    if request.method == 'GET':
        return _render_profile(request)
    form = ProfileForm(request.POST)
    if not form.is_valid():
        return _render_profile(request, profile_form=form)
    try:
        admin = request.api.update_admin_profile(name=form.cleaned_data['name'], email=form.cleaned_data['email'])
    except ApiError as exc:
        messages.error(request, exc.message or 'Failed to update profile')
        return _render_profile(request, profile_form=form)
    request.session[SESSION_ADMIN_KEY] = admin.to_session()
    messages.success(request, 'Profile updated successfully')
    return redirect('admin_profile')


@require_POST
@admin_required
def change_password(request: HttpRequest) -> HttpResponse:
    form = PasswordChangeForm(request.POST)
    if not form.is_valid():
        return _render_profile(request, password_form=form)
    try:
        request.api.change_admin_password(form.cleaned_data['current_password'], form.cleaned_data['new_password'])
    except ApiError as exc:
        messages.error(request, exc.message or 'Failed to change password')
        return _render_profile(request, password_form=PasswordChangeForm())
    logger.info('Admin %s changed their password', request.admin.email)
    messages.success(request, 'Password changed successfully')
    return redirect('admin_profile')

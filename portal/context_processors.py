"""Custom context processors for the portal application.

Context processors add extra variables into the context of every template
rendered by Django.  Here we expose the signed-in administrator and the
back-office navigation so the admin layout can highlight the active
section.
"""

from __future__ import annotations

from typing import Any, Dict

from django.urls import reverse

from portal.auth import current_admin

ADMIN_NAV_ITEMS = [
    ('admin_dashboard', 'Dashboard', {}),
    ('admin_testimony_list', 'Testimonies', {}),
    ('admin_catalogue_list', 'Networks', {'kind': 'networks'}),
    ('admin_catalogue_list', 'Categories', {'kind': 'categories'}),
    ('admin_catalogue_list', 'Testimony Types', {'kind': 'testimony-types'}),
    ('admin_profile', 'Profile', {}),
    ('admin_storage_settings', 'Settings', {}),
]


def admin_navigation(request) -> Dict[str, Any]:
    """Expose the current admin and the sidebar entries to all templates.

    An entry is marked active when the request path falls under its URL;
    the dashboard only matches exactly.
    """

    path = getattr(request, 'path', '')
    dashboard_url = reverse('admin_dashboard')
    nav = []
    for url_name, label, kwargs in ADMIN_NAV_ITEMS:
        url = reverse(url_name, kwargs=kwargs or None)
        active = path == url if url == dashboard_url else path.startswith(url)
        nav.append({'label': label, 'url': url, 'active': active})
    return {
        'current_admin': current_admin(request),
        'admin_nav': nav,
    }

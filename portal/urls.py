"""URL declarations for the portal application.

Public pages (landing page and submission wizard) live at the root and
under ``submit/``; the back office lives under ``admin/``.  Networks,
external categories and testimony types share one set of routes keyed by
the ``kind`` segment.
"""

from django.urls import path, register_converter

from . import views
from . import views_admin as backoffice


class CatalogueKindConverter:
    regex = 'networks|categories|testimony-types'

    def to_python(self, value: str) -> str:
        return value

    def to_url(self, value: str) -> str:
        return value


register_converter(CatalogueKindConverter, 'catalogue')

urlpatterns = [
    # Public
    path('', views.home, name='home'),
    path('submit/', views.submit, name='submit'),
    path('submit/success/', views.submit_success, name='submit_success'),
    # Authentication
    path('admin/login/', backoffice.login_view, name='admin_login'),
    path('admin/logout/', backoffice.logout_view, name='admin_logout'),
    # Dashboard
    path('admin/', backoffice.dashboard, name='admin_dashboard'),
    # Testimonies
    path('admin/testimonies/', backoffice.testimony_list, name='admin_testimony_list'),
    path('admin/testimonies/<str:testimony_id>/', backoffice.testimony_detail, name='admin_testimony_detail'),
    path(
        'admin/testimonies/<str:testimony_id>/status/',
        backoffice.testimony_set_status,
        name='admin_testimony_status',
    ),
    path(
        'admin/testimonies/<str:testimony_id>/delete/',
        backoffice.testimony_delete,
        name='admin_testimony_delete',
    ),
    # Networks, external categories and testimony types
    path('admin/<catalogue:kind>/', backoffice.catalogue_list, name='admin_catalogue_list'),
    path('admin/<catalogue:kind>/new/', backoffice.catalogue_list, name='admin_catalogue_create'),
    path('admin/<catalogue:kind>/<str:item_id>/edit/', backoffice.catalogue_edit, name='admin_catalogue_edit'),
    path('admin/<catalogue:kind>/<str:item_id>/toggle/', backoffice.catalogue_toggle, name='admin_catalogue_toggle'),
    path('admin/<catalogue:kind>/<str:item_id>/delete/', backoffice.catalogue_delete, name='admin_catalogue_delete'),
    # Settings and profile
    path('admin/settings/', backoffice.storage_settings, name='admin_storage_settings'),
    path('admin/profile/', backoffice.profile, name='admin_profile'),
    path('admin/profile/password/', backoffice.change_password, name='admin_profile_password'),
]

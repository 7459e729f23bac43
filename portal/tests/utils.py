"""Shared fixtures for the portal test suite."""

from __future__ import annotations

import json
import shutil
import tempfile
from typing import Any, Optional
from unittest import mock

import requests
from django.contrib.messages import get_messages
from django.test import SimpleTestCase, override_settings

from portal.auth import SESSION_ADMIN_KEY, SESSION_TOKEN_KEY
from portal.services.api_client import ApiClient
from portal.services.resources import (
    Admin,
    Country,
    ExternalCategory,
    Group,
    Network,
    Region,
    TestimonyCategory,
)
from portal.services.wizard import WizardReference

API_BASE = 'http://api.test'


def make_response(
    status_code: int = 200,
    body: Any = None,
    *,
    raw: Optional[bytes] = None,
    url: str = f'{API_BASE}/api',
) -> requests.Response:
    """Build a ``requests.Response`` without touching the network."""

    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.reason = ''
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
    else:
        response._content = b''
    return response


ADMIN = Admin(id='admin-1', email='admin@example.com', name='Ada Admin')

NETWORKS = [
    Network(id='net-1', name='Loveworld Network', is_default=True),
    Network(id='net-2', name='Healing Streams'),
]
EXTERNAL_CATEGORIES = [ExternalCategory(id='ext-1', name='Campus Ministry')]
TESTIMONY_CATEGORIES = [
    TestimonyCategory(id='tc-1', name='Healing'),
    TestimonyCategory(id='tc-2', name='Finances'),
]
GROUPS = [Group(id='grp-1', name='Group One', zone_id='zone-1')]
REGIONS = [
    Region.from_api(
        {
            'id': 'region-1',
            'name': 'Region One',
            'zones': [{'id': 'zone-1', 'name': 'Lagos Zone 1', 'regionId': 'region-1'}],
        }
    )
]
COUNTRIES = [Country(id='ng', name='Nigeria', code='NG', phone_code='+234')]


def reference_data() -> WizardReference:
    return WizardReference(
        networks=list(NETWORKS),
        external_categories=list(EXTERNAL_CATEGORIES),
        testimony_categories=list(TESTIMONY_CATEGORIES),
        regions=list(REGIONS),
        countries=list(COUNTRIES),
    )


class TempUploadRootMixin:
    """Point ``PENDING_UPLOAD_ROOT`` at a throw-away directory."""

    def setUp(self) -> None:
        super().setUp()
        self.upload_root = tempfile.mkdtemp()
        self.addCleanup(lambda: shutil.rmtree(self.upload_root, ignore_errors=True))
        upload_settings = override_settings(PENDING_UPLOAD_ROOT=self.upload_root)
        upload_settings.enable()
        self.addCleanup(upload_settings.disable)


class SignedInAdminMixin:
    """Store remote credentials in the test client's session."""

    def sign_in(self) -> None:
        session = self.client.session
        session[SESSION_TOKEN_KEY] = 'token-123'
        session[SESSION_ADMIN_KEY] = ADMIN.to_session()
        session.save()


class AdminViewTestCase(SignedInAdminMixin, SimpleTestCase):
    """Base class for back-office views with a signed-in admin."""

    def setUp(self) -> None:
        super().setUp()
        patcher = mock.patch.object(ApiClient, 'get_current_admin', return_value=ADMIN)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.sign_in()

    def patch_api(self, name: str, **kwargs):
        patcher = mock.patch.object(ApiClient, name, **kwargs)
        stubbed = patcher.start()
        self.addCleanup(patcher.stop)
        return stubbed

    def messages_for(self, response):
        return [str(message) for message in get_messages(response.wsgi_request)]

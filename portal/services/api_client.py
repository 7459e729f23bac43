"""Thin HTTP wrapper around the remote testimonies API.

Every page in the portal is a consumer of the external service; this module
is the single place that knows its base URL, how request bodies are
encoded and how error responses are unwrapped.  Views never talk to
``requests`` directly.

Errors are reported through :class:`ApiError`.  Its message is the
``error`` field of the JSON body when the service provides one so that the
text can be shown to the user verbatim.  A ``401`` raises
:class:`ApiAuthenticationError` instead, which the admin middleware turns
into a redirect to the login page.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import IO, Any, Dict, List, Optional, Tuple

import requests
from django.conf import settings

from portal.services.resources import (
    Admin,
    Country,
    ExternalCategory,
    Group,
    Network,
    Region,
    StatsResponse,
    StorageOverview,
    StorageSettings,
    Testimony,
    TestimonyCategory,
    TestimonyPage,
)

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT_MESSAGE = 'Upload timed out. Please try a smaller file or check your connection.'
UNREACHABLE_MESSAGE = 'Unable to reach the testimonies service. Please try again later.'

# ``(filename, file object, content type)`` as accepted by ``requests``.
UploadFile = Tuple[str, IO[bytes], str]


class ApiFailure(Exception):
    """Base class for every failure reported by :class:`ApiClient`."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiError(ApiFailure):
    """Raised when the API rejects a request or cannot be reached.

    The message is suitable for showing to the user.
    """


class ApiAuthenticationError(ApiFailure):
    """Raised when the API reports that the admin session is missing or expired.

    Not an :class:`ApiError`: handlers for ordinary failures let it propagate
    to :class:`~portal.auth.ApiSessionMiddleware`.
    """


@dataclass
class LoginResult:
    admin: Admin
    token: Optional[str]
    cookies: Dict[str, str]


def _error_message(response: requests.Response, fallback: str, fallback_with_status: Optional[str] = None) -> str:
    """Extract the ``error`` text from a failed response.

    A body that is not JSON yields ``fallback``; JSON without an ``error``
    key yields ``fallback_with_status`` when given.
    """

    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get('error'):
        return str(body['error'])
    return fallback_with_status or fallback


def build_media_url(url: Optional[str], public_base: Optional[str] = None) -> Optional[str]:
    """Return an absolute URL for media paths returned by the API.

    The API answers with relative paths such as ``/api/media/...``.  Absolute
    ``http``/``https`` URLs are returned unchanged.
    """

    if not url:
        return None
    if url.startswith('http://') or url.startswith('https://'):
        return url
    base = public_base if public_base is not None else getattr(settings, 'TESTIMONY_API_PUBLIC_URL', '')
    return f"{(base or '').rstrip('/')}{url}"


class ApiClient:
    """Client for a single caller of the testimonies API.

    ``token`` and ``cookies`` carry the remote admin session.  Public pages
    construct the client without them.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        token: Optional[str] = None,
        cookies: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if base_url is None:
            base_url = settings.TESTIMONY_API_BASE_URL
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if timeout is not None else getattr(settings, 'TESTIMONY_API_TIMEOUT', 30)
        self.upload_timeout = (
            upload_timeout if upload_timeout is not None else getattr(settings, 'TESTIMONY_UPLOAD_TIMEOUT', 300)
        )
        self.token = token
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if token:
            self.session.headers['Authorization'] = f'Bearer {token}'
        if cookies:
            self.session.cookies.update(cookies)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f'{self.base_url}{endpoint}'
        kwargs.setdefault('timeout', self.timeout)
        logger.debug('API %s %s', method, url)
        try:
            return self.session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            logger.warning('API %s %s timed out: %s', method, url, exc)
            raise ApiError('The testimonies service took too long to respond.') from exc
        except requests.RequestException as exc:
            logger.warning('API %s %s failed: %s', method, url, exc)
            raise ApiError(UNREACHABLE_MESSAGE) from exc

    def _unwrap(
        self,
        response: requests.Response,
        fallback: str = 'Request failed',
        fallback_with_status: Optional[str] = None,
    ) -> Any:
        if not response.ok:
            message = _error_message(response, fallback, fallback_with_status)
            logger.warning('API request to %s failed with %s: %s', response.url, response.status_code, message)
            error_class = ApiAuthenticationError if response.status_code == 401 else ApiError
            raise error_class(message, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError('Unexpected response from the testimonies service.', response.status_code) from exc

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a JSON request and return the decoded body (``None`` if empty)."""

        kwargs: Dict[str, Any] = {}
        if payload is not None:
            kwargs['data'] = json.dumps(payload)
            kwargs['headers'] = {'Content-Type': 'application/json'}
        if params:
            kwargs['params'] = params
        return self._unwrap(self._send(method, endpoint, **kwargs))

    # ------------------------------------------------------------------
    # Public reference data
    # ------------------------------------------------------------------

    def get_networks(self) -> List[Network]:
        data = self.request('GET', '/api/networks')
        return [Network.from_api(item) for item in data.get('networks', [])]

    def get_external_categories(self) -> List[ExternalCategory]:
        data = self.request('GET', '/api/external')
        return [ExternalCategory.from_api(item) for item in data.get('categories', [])]

    def get_testimony_categories(self) -> List[TestimonyCategory]:
        data = self.request('GET', '/api/testimony-categories')
        return [TestimonyCategory.from_api(item) for item in data.get('categories', [])]

    def get_zones(self) -> List[Region]:
        data = self.request('GET', '/api/zones')
        return [Region.from_api(item) for item in data.get('regions', [])]

    def get_countries(self) -> List[Country]:
        data = self.request('GET', '/api/countries')
        return [Country.from_api(item) for item in data.get('countries', [])]

    def get_groups(self, zone_id: str) -> List[Group]:
        data = self.request('GET', '/api/groups', params={'zoneId': zone_id})
        return [Group.from_api(item) for item in data.get('groups', [])]

    def create_group(self, name: str, zone_id: str) -> Group:
        data = self.request('POST', '/api/groups', payload={'name': name, 'zoneId': zone_id})
        return Group.from_api(data['group'])

    def submit_testimony(self, payload: Dict[str, Any], file: Optional[UploadFile] = None) -> Dict[str, Any]:
        """Post a testimony as multipart form data.

        ``payload`` travels JSON-encoded in the ``data`` part and the optional
        media file in the ``file`` part.  The request uses the longer upload
        timeout.
        """

        files: Dict[str, Any] = {'data': (None, json.dumps(payload))}
        if file is not None:
            files['file'] = file
        url = f'{self.base_url}/api/testimonies'
        logger.debug('API POST %s (multipart, file=%s)', url, bool(file))
        try:
            response = self.session.post(url, files=files, timeout=self.upload_timeout)
        except requests.Timeout as exc:
            logger.warning('Testimony upload to %s timed out', url)
            raise ApiError(UPLOAD_TIMEOUT_MESSAGE) from exc
        except requests.RequestException as exc:
            logger.warning('Testimony upload to %s failed: %s', url, exc)
            raise ApiError(UNREACHABLE_MESSAGE) from exc
        return self._unwrap(
            response,
            fallback='Submission failed',
            fallback_with_status=f'Submission failed ({response.status_code})',
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        response = self._send(
            'POST',
            '/api/auth/login',
            data=json.dumps({'email': email, 'password': password}),
            headers={'Content-Type': 'application/json'},
        )
        body = self._unwrap(response) or {}
        cookies = self.session.cookies.get_dict()
        cookies.update(response.cookies.get_dict())
        token = body.get('token')
        if token:
            self.token = token
            self.session.headers['Authorization'] = f'Bearer {token}'
        return LoginResult(admin=Admin.from_api(body.get('admin') or {}), token=token, cookies=cookies)

    def logout(self) -> None:
        self.request('POST', '/api/auth/logout')

    def get_current_admin(self) -> Admin:
        data = self.request('GET', '/api/auth/me')
        return Admin.from_api(data['admin'])

    # ------------------------------------------------------------------
    # Testimonies
    # ------------------------------------------------------------------

    def get_testimonies(
        self,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        category_type: Optional[str] = None,
        content_type: Optional[str] = None,
        testimony_category_id: Optional[str] = None,
        country_id: Optional[str] = None,
        zone_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> TestimonyPage:
        candidates = {
            'page': page,
            'limit': limit,
            'status': status,
            'categoryType': category_type,
            'contentType': content_type,
            'testimonyCategoryId': testimony_category_id,
            'countryId': country_id,
            'zoneId': zone_id,
            'search': search,
        }
        params = {key: str(value) for key, value in candidates.items() if value}
        return TestimonyPage.from_api(self.request('GET', '/api/testimonies', params=params))

    def get_testimony(self, testimony_id: str) -> Testimony:
        data = self.request('GET', f'/api/testimonies/{testimony_id}')
        return Testimony.from_api(data['testimony'])

    def update_testimony_status(self, testimony_id: str, status: str) -> Testimony:
        data = self.request('PATCH', f'/api/testimonies/{testimony_id}', payload={'status': status})
        return Testimony.from_api(data['testimony'])

    def delete_testimony(self, testimony_id: str) -> None:
        self.request('DELETE', f'/api/testimonies/{testimony_id}')

    def get_stats(self) -> StatsResponse:
        return StatsResponse.from_api(self.request('GET', '/api/admin/stats'))

    # ------------------------------------------------------------------
    # Admin catalogues
    # ------------------------------------------------------------------

    def get_admin_networks(self) -> List[Network]:
        data = self.request('GET', '/api/admin/networks')
        return [Network.from_api(item) for item in data.get('networks', [])]

    def create_network(self, name: str) -> Network:
        data = self.request('POST', '/api/admin/networks', payload={'name': name})
        return Network.from_api(data['network'])

    def update_network(self, network_id: str, **changes: Any) -> Network:
        data = self.request('PATCH', f'/api/admin/networks/{network_id}', payload=_camel_changes(changes))
        return Network.from_api(data['network'])

    def delete_network(self, network_id: str) -> None:
        self.request('DELETE', f'/api/admin/networks/{network_id}')

    def get_admin_external_categories(self) -> List[ExternalCategory]:
        data = self.request('GET', '/api/admin/external')
        return [ExternalCategory.from_api(item) for item in data.get('categories', [])]

    def create_external_category(self, name: str) -> ExternalCategory:
        data = self.request('POST', '/api/admin/external', payload={'name': name})
        return ExternalCategory.from_api(data['category'])

    def update_external_category(self, category_id: str, **changes: Any) -> ExternalCategory:
        data = self.request('PATCH', f'/api/admin/external/{category_id}', payload=_camel_changes(changes))
        return ExternalCategory.from_api(data['category'])

    def delete_external_category(self, category_id: str) -> None:
        self.request('DELETE', f'/api/admin/external/{category_id}')

    def get_admin_testimony_categories(self) -> List[TestimonyCategory]:
        data = self.request('GET', '/api/admin/testimony-categories')
        return [TestimonyCategory.from_api(item) for item in data.get('categories', [])]

    def create_testimony_category(self, name: str) -> TestimonyCategory:
        data = self.request('POST', '/api/admin/testimony-categories', payload={'name': name})
        return TestimonyCategory.from_api(data['category'])

    def update_testimony_category(self, category_id: str, **changes: Any) -> TestimonyCategory:
        data = self.request(
            'PATCH', f'/api/admin/testimony-categories/{category_id}', payload=_camel_changes(changes)
        )
        return TestimonyCategory.from_api(data['category'])

    def delete_testimony_category(self, category_id: str) -> None:
        self.request('DELETE', f'/api/admin/testimony-categories/{category_id}')

    # ------------------------------------------------------------------
    # Settings and profile
    # ------------------------------------------------------------------

    def get_storage_settings(self) -> StorageOverview:
        return StorageOverview.from_api(self.request('GET', '/api/admin/settings/storage'))

    def update_storage_settings(self, storage: StorageSettings) -> StorageOverview:
        data = self.request('PUT', '/api/admin/settings/storage', payload=storage.to_api())
        return StorageOverview.from_api(data)

    def get_admin_profile(self) -> Admin:
        data = self.request('GET', '/api/admin/profile')
        return Admin.from_api(data['admin'])

    def update_admin_profile(self, *, name: str, email: str) -> Admin:
        data = self.request('PATCH', '/api/admin/profile', payload={'name': name, 'email': email})
        return Admin.from_api(data['admin'])

    def change_admin_password(self, current_password: str, new_password: str) -> None:
        self.request(
            'POST',
            '/api/admin/profile/password',
            payload={'currentPassword': current_password, 'newPassword': new_password},
        )


def _camel_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Translate ``is_active``-style keyword arguments into API field names."""

    translated: Dict[str, Any] = {}
    for key, value in changes.items():
        head, *rest = key.split('_')
        translated[head + ''.join(part.title() for part in rest)] = value
    return translated


__all__ = [
    'ApiAuthenticationError',
    'ApiClient',
    'ApiError',
    'ApiFailure',
    'LoginResult',
    'UPLOAD_TIMEOUT_MESSAGE',
    'UNREACHABLE_MESSAGE',
    'build_media_url',
]

"""Admin session handling backed by the remote testimonies API.

The portal keeps no user table of its own.  Signing in forwards the
credentials to the API and stores the returned token and cookies in the
Django session; every admin view then confirms the session with
``GET /api/auth/me`` through :func:`admin_required`.  When the API stops
recognising the session mid-request, :class:`ApiSessionMiddleware` clears
the stored credentials and sends the browser back to the login page.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, Optional
from urllib.parse import urlencode

from django.contrib import messages
from django.http import HttpRequest, HttpResponse, HttpResponseRedirect
from django.urls import reverse

from portal.services.api_client import ApiAuthenticationError, ApiClient, ApiFailure, LoginResult
from portal.services.resources import Admin

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'api_token'
SESSION_COOKIES_KEY = 'api_cookies'
SESSION_ADMIN_KEY = 'api_admin'


def get_api_client(request: HttpRequest) -> ApiClient:
    """Build an API client carrying the remote session stored for ``request``."""

    session = getattr(request, 'session', None) or {}
    return ApiClient(
        token=session.get(SESSION_TOKEN_KEY),
        cookies=session.get(SESSION_COOKIES_KEY) or None,
    )


def store_credentials(request: HttpRequest, result: LoginResult) -> None:
    request.session.cycle_key()
    request.session[SESSION_TOKEN_KEY] = result.token
    request.session[SESSION_COOKIES_KEY] = result.cookies
    request.session[SESSION_ADMIN_KEY] = result.admin.to_session()


def clear_credentials(request: HttpRequest) -> None:
    for key in (SESSION_TOKEN_KEY, SESSION_COOKIES_KEY, SESSION_ADMIN_KEY):
        request.session.pop(key, None)


def has_credentials(request: HttpRequest) -> bool:
    return bool(request.session.get(SESSION_TOKEN_KEY) or request.session.get(SESSION_COOKIES_KEY))


def login_redirect(request: HttpRequest) -> HttpResponseRedirect:
    """Redirect to the admin login page, remembering the requested path."""

    url = reverse('admin_login')
    if request.method == 'GET' and request.path != url:
        url = f"{url}?{urlencode({'next': request.get_full_path()})}"
    return HttpResponseRedirect(url)


def admin_required(view: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
    """Only run ``view`` for a session the API still recognises.

    On success ``request.admin`` holds the signed-in :class:`Admin` and
    ``request.api`` the authenticated client.
    """

    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
        if not has_credentials(request):
            return login_redirect(request)
        client = get_api_client(request)
        try:
            admin = client.get_current_admin()
        except ApiFailure as exc:
            logger.info('Admin session rejected by the API: %s', exc.message)
            clear_credentials(request)
            return login_redirect(request)
        request.admin = admin
        request.api = client
        return view(request, *args, **kwargs)

    return wrapper


def current_admin(request: HttpRequest) -> Optional[Admin]:
    admin = getattr(request, 'admin', None)
    if admin is not None:
        return admin
    session = getattr(request, 'session', None)
    stored = session.get(SESSION_ADMIN_KEY) if session is not None else None
    return Admin.from_api(stored) if stored else None


class ApiSessionMiddleware:
    """Turn an expired remote session into a redirect to the login page."""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    def process_exception(self, request: HttpRequest, exception: Exception) -> Optional[HttpResponse]:
        if not isinstance(exception, ApiAuthenticationError):
            return None
        logger.info('API session expired while serving %s', request.path)
        clear_credentials(request)
        messages.warning(request, 'Your session has expired. Please sign in again.')
        return login_redirect(request)

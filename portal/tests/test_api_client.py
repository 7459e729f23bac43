"""Tests for the testimonies API client."""

from __future__ import annotations

import io
import json
from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from portal.services.api_client import (
    UNREACHABLE_MESSAGE,
    UPLOAD_TIMEOUT_MESSAGE,
    ApiAuthenticationError,
    ApiClient,
    ApiError,
    build_media_url,
)
from portal.services.resources import StorageSettings, TestimonyStatus

from .utils import API_BASE, make_response


class ApiClientTestCase(SimpleTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.session = requests.Session()
        self.client_under_test = ApiClient(API_BASE, timeout=5, upload_timeout=60, session=self.session)

    def stub(self, *responses, method: str = 'request'):
        patcher = mock.patch.object(self.session, method, side_effect=list(responses))
        stubbed = patcher.start()
        self.addCleanup(patcher.stop)
        return stubbed


class TransportTests(ApiClientTestCase):
    def test_get_networks_parses_list(self) -> None:
        send = self.stub(make_response(body={'networks': [{'id': 'n1', 'name': 'Loveworld', 'isDefault': True}]}))

        networks = self.client_under_test.get_networks()

        self.assertEqual([network.name for network in networks], ['Loveworld'])
        send.assert_called_once_with('GET', f'{API_BASE}/api/networks', timeout=5)

    def test_error_field_becomes_message(self) -> None:
        self.stub(make_response(400, {'error': 'Name is required'}))

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.create_network('')

        self.assertEqual(ctx.exception.message, 'Name is required')
        self.assertEqual(ctx.exception.status_code, 400)

    def test_non_json_error_uses_fallback(self) -> None:
        self.stub(make_response(502, raw=b'<html>Bad gateway</html>'))

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.get_countries()

        self.assertEqual(ctx.exception.message, 'Request failed')

    def test_unauthorised_raises_authentication_error(self) -> None:
        self.stub(make_response(401, {'error': 'Unauthorized'}))

        with self.assertRaises(ApiAuthenticationError) as ctx:
            self.client_under_test.get_stats()

        self.assertNotIsInstance(ctx.exception, ApiError)
        self.assertEqual(ctx.exception.message, 'Unauthorized')

    def test_connection_failure_is_reported(self) -> None:
        self.stub(requests.ConnectionError('refused'))

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.get_zones()

        self.assertEqual(ctx.exception.message, UNREACHABLE_MESSAGE)

    def test_empty_body_returns_none(self) -> None:
        self.stub(make_response(204))

        self.assertIsNone(self.client_under_test.delete_testimony('t1'))

    def test_token_and_cookies_are_sent(self) -> None:
        client = ApiClient(API_BASE, token='abc', cookies={'auth-token': 'xyz'})

        self.assertEqual(client.session.headers['Authorization'], 'Bearer abc')
        self.assertEqual(client.session.cookies.get('auth-token'), 'xyz')


class TestimonyEndpointTests(ApiClientTestCase):
    def test_only_truthy_filters_are_sent(self) -> None:
        send = self.stub(
            make_response(body={'testimonies': [], 'pagination': {'page': 2, 'limit': 10, 'total': 0, 'totalPages': 0}})
        )

        self.client_under_test.get_testimonies(page=2, limit=10, status='PENDING', search='', zone_id=None)

        params = send.call_args.kwargs['params']
        self.assertEqual(params, {'page': '2', 'limit': '10', 'status': 'PENDING'})

    def test_update_status_sends_json_patch(self) -> None:
        send = self.stub(make_response(body={'testimony': {'id': 't1', 'status': 'APPROVED'}}))

        testimony = self.client_under_test.update_testimony_status('t1', TestimonyStatus.APPROVED)

        self.assertEqual(testimony.status, 'APPROVED')
        method, url = send.call_args.args
        self.assertEqual((method, url), ('PATCH', f'{API_BASE}/api/testimonies/t1'))
        self.assertEqual(json.loads(send.call_args.kwargs['data']), {'status': 'APPROVED'})

    def test_catalogue_update_translates_keywords(self) -> None:
        send = self.stub(make_response(body={'category': {'id': 'c1', 'name': 'Campus', 'isActive': False}}))

        category = self.client_under_test.update_external_category('c1', is_active=False)

        self.assertFalse(category.is_active)
        self.assertEqual(json.loads(send.call_args.kwargs['data']), {'isActive': False})

    def test_storage_settings_are_put_in_bytes(self) -> None:
        send = self.stub(make_response(body={'settings': {'totalStorageLimit': 1}, 'stats': {}}))

        self.client_under_test.update_storage_settings(
            StorageSettings(total_storage_limit=1, max_video_file_size=2, max_audio_file_size=3)
        )

        self.assertEqual(send.call_args.args[0], 'PUT')
        self.assertEqual(
            json.loads(send.call_args.kwargs['data']),
            {'totalStorageLimit': 1, 'maxVideoFileSize': 2, 'maxAudioFileSize': 3},
        )


class SubmitTestimonyTests(ApiClientTestCase):
    def test_multipart_body_carries_json_and_file(self) -> None:
        post = self.stub(make_response(201, {'testimony': {'id': 't9'}}), method='post')
        media = ('clip.mp4', io.BytesIO(b'video'), 'video/mp4')

        result = self.client_under_test.submit_testimony({'name': 'Jane'}, media)

        self.assertEqual(result['testimony']['id'], 't9')
        files = post.call_args.kwargs['files']
        self.assertEqual(files['data'], (None, json.dumps({'name': 'Jane'})))
        self.assertIs(files['file'], media)
        self.assertEqual(post.call_args.kwargs['timeout'], 60)

    def test_upload_timeout_message(self) -> None:
        self.stub(requests.Timeout('slow'), method='post')

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.submit_testimony({'name': 'Jane'})

        self.assertEqual(ctx.exception.message, UPLOAD_TIMEOUT_MESSAGE)

    def test_failure_without_error_reports_status(self) -> None:
        self.stub(make_response(500, {'ok': False}), method='post')

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.submit_testimony({'name': 'Jane'})

        self.assertEqual(ctx.exception.message, 'Submission failed (500)')


class LoginTests(ApiClientTestCase):
    def test_login_collects_token_and_cookies(self) -> None:
        response = make_response(body={'admin': {'id': 'a1', 'email': 'a@example.com', 'name': 'A'}, 'token': 'tok'})
        response.cookies.set('auth-token', 'cookie-value')
        self.stub(response)

        result = self.client_under_test.login('a@example.com', 'secret1')

        self.assertEqual(result.token, 'tok')
        self.assertEqual(result.cookies, {'auth-token': 'cookie-value'})
        self.assertEqual(result.admin.email, 'a@example.com')
        self.assertEqual(self.session.headers['Authorization'], 'Bearer tok')

    def test_invalid_credentials(self) -> None:
        self.stub(make_response(400, {'error': 'Invalid credentials'}))

        with self.assertRaises(ApiError) as ctx:
            self.client_under_test.login('a@example.com', 'wrong-password')

        self.assertEqual(ctx.exception.message, 'Invalid credentials')


class MediaUrlTests(SimpleTestCase):
    @override_settings(TESTIMONY_API_PUBLIC_URL='https://media.example.org/')
    def test_relative_paths_get_public_prefix(self) -> None:
        self.assertEqual(
            build_media_url('/api/media/videos/a.mp4'),
            'https://media.example.org/api/media/videos/a.mp4',
        )

    def test_absolute_and_empty_urls(self) -> None:
        self.assertEqual(build_media_url('https://cdn.example.org/a.mp3'), 'https://cdn.example.org/a.mp3')
        self.assertIsNone(build_media_url(''))
        self.assertEqual(build_media_url('/a.mp3', public_base='http://x'), 'http://x/a.mp3')

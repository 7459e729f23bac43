"""Tests for the network, external category and testimony type pages."""

from __future__ import annotations

from django.urls import reverse

from portal.services.api_client import ApiError
from portal.services.resources import ExternalCategory, Network, TestimonyCategory

from .utils import AdminViewTestCase


class CatalogueListTests(AdminViewTestCase):
    def test_networks_listed_with_counts(self) -> None:
        self.patch_api(
            'get_admin_networks',
            return_value=[Network(id='net-1', name='Loveworld Network', testimony_count=7, is_default=True)],
        )

        response = self.client.get(reverse('admin_catalogue_list', args=['networks']))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Loveworld Network')
        self.assertContains(response, 'Default')
        self.assertEqual(response.context['catalogue'].title, 'Networks')

    def test_unknown_kind_is_not_routed(self) -> None:
        response = self.client.get('/admin/widgets/')

        self.assertEqual(response.status_code, 404)

    def test_create_network(self) -> None:
        self.patch_api('get_admin_networks', return_value=[])
        create = self.patch_api('create_network', return_value=Network(id='net-9', name='New Network'))

        response = self.client.post(reverse('admin_catalogue_create', args=['networks']), {'name': '  New Network '})

        create.assert_called_once_with('New Network')
        self.assertRedirects(response, reverse('admin_catalogue_list', args=['networks']), fetch_redirect_response=False)
        self.assertIn('Network created successfully', self.messages_for(response))

    def test_short_name_rejected_without_api_call(self) -> None:
        self.patch_api('get_admin_testimony_categories', return_value=[])
        create = self.patch_api('create_testimony_category')

        response = self.client.post(reverse('admin_catalogue_create', args=['testimony-types']), {'name': 'A'})

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Category name must be at least 2 characters')
        create.assert_not_called()

    def test_create_failure_shows_api_error(self) -> None:
        self.patch_api('get_admin_external_categories', return_value=[])
        self.patch_api('create_external_category', side_effect=ApiError('Category already exists', 409))

        response = self.client.post(reverse('admin_catalogue_create', args=['categories']), {'name': 'Campus'})

        self.assertEqual(response.status_code, 200)
        self.assertIn('Category already exists', self.messages_for(response))


class CatalogueChangeTests(AdminViewTestCase):
    def test_rename(self) -> None:
        self.patch_api('get_admin_external_categories', return_value=[ExternalCategory(id='ext-1', name='Campus')])
        update = self.patch_api('update_external_category', return_value=ExternalCategory(id='ext-1', name='Campus Ministry'))
        url = reverse('admin_catalogue_edit', args=['categories', 'ext-1'])

        response = self.client.get(url)
        self.assertContains(response, 'value="Campus"')

        response = self.client.post(url, {'name': 'Campus Ministry'})

        update.assert_called_once_with('ext-1', name='Campus Ministry')
        self.assertIn('Category updated successfully', self.messages_for(response))

    def test_edit_missing_item_is_404(self) -> None:
        self.patch_api('get_admin_networks', return_value=[])

        response = self.client.get(reverse('admin_catalogue_edit', args=['networks', 'nope']))

        self.assertEqual(response.status_code, 404)

    def test_toggle_flips_active_flag(self) -> None:
        update = self.patch_api('update_testimony_category', return_value=TestimonyCategory(id='tc-1', name='Healing'))

        response = self.client.post(reverse('admin_catalogue_toggle', args=['testimony-types', 'tc-1']), {'is_active': '1'})

        update.assert_called_once_with('tc-1', is_active=False)
        self.assertIn('Category deactivated', self.messages_for(response))

    def test_toggle_network_activates(self) -> None:
        update = self.patch_api('update_network', return_value=Network(id='net-1', name='Loveworld'))

        response = self.client.post(reverse('admin_catalogue_toggle', args=['networks', 'net-1']), {'is_active': '0'})

        update.assert_called_once_with('net-1', is_active=True)
        self.assertIn('Network activated', self.messages_for(response))

    def test_delete_failure_shows_api_error(self) -> None:
        self.patch_api('delete_network', side_effect=ApiError('Cannot delete network with testimonies', 400))

        response = self.client.post(reverse('admin_catalogue_delete', args=['networks', 'net-1']))

        self.assertRedirects(response, reverse('admin_catalogue_list', args=['networks']), fetch_redirect_response=False)
        self.assertIn('Cannot delete network with testimonies', self.messages_for(response))

    def test_delete(self) -> None:
        delete = self.patch_api('delete_external_category', return_value=None)

        response = self.client.post(reverse('admin_catalogue_delete', args=['categories', 'ext-1']))

        delete.assert_called_once_with('ext-1')
        self.assertIn('Category deleted successfully', self.messages_for(response))


class TestimonyTypeMessageTests(AdminViewTestCase):
    """Testimony types report with the testimony category wording."""

    def test_create_success(self) -> None:
        self.patch_api('create_testimony_category', return_value=TestimonyCategory(id='tc-2', name='Finances'))

        response = self.client.post(reverse('admin_catalogue_create', args=['testimony-types']), {'name': 'Finances'})

        self.assertIn('Testimony category created successfully', self.messages_for(response))

    def test_create_failure_without_api_text(self) -> None:
        self.patch_api('create_testimony_category', side_effect=ApiError(''))
        self.patch_api('get_admin_testimony_categories', return_value=[])

        response = self.client.post(reverse('admin_catalogue_create', args=['testimony-types']), {'name': 'Finances'})

        self.assertIn('Failed to create category', self.messages_for(response))

    def test_load_failure(self) -> None:
        self.patch_api('get_admin_testimony_categories', side_effect=ApiError('boom'))

        response = self.client.get(reverse('admin_catalogue_list', args=['testimony-types']))

        self.assertIn('Failed to load testimony categories', self.messages_for(response))

    def test_delete_success(self) -> None:
        self.patch_api('delete_testimony_category', return_value=None)

        response = self.client.post(reverse('admin_catalogue_delete', args=['testimony-types', 'tc-1']))

        self.assertIn('Category deleted successfully', self.messages_for(response))
        self.assertNotIn('Testimony category deleted successfully', self.messages_for(response))

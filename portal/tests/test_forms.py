"""Tests for the wizard and back-office forms."""

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings

from portal.forms import (
    ContentStepForm,
    DetailsStepForm,
    LoginForm,
    NamedResourceForm,
    PasswordChangeForm,
    PersonalInfoStepForm,
    ProfileForm,
    StorageSettingsForm,
    TestimonyFilterForm,
)
from portal.services.resources import CategoryType, ContentType
from portal.services.storage_units import GB, MB

from .utils import COUNTRIES, EXTERNAL_CATEGORIES, GROUPS, NETWORKS, TESTIMONY_CATEGORIES, reference_data


class LoginFormTests(SimpleTestCase):
    def test_short_password_rejected(self) -> None:
        form = LoginForm(data={'email': 'admin@example.com', 'password': '123'})
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['password'], ['Password must be at least 6 characters'])

    def test_invalid_email_rejected(self) -> None:
        form = LoginForm(data={'email': 'not-an-email', 'password': 'secret1'})
        self.assertEqual(form.errors['email'], ['Invalid email address'])


class DetailsStepFormTests(SimpleTestCase):
    def build(self, category_type, data, **kwargs):
        return DetailsStepForm(
            data,
            category_type=category_type,
            networks=NETWORKS,
            external_categories=EXTERNAL_CATEGORIES,
            zones=reference_data().zones,
            **kwargs,
        )

    def test_other_network_requires_name(self) -> None:
        form = self.build(CategoryType.NETWORK, {'network_id': 'other'})
        self.assertFalse(form.is_valid())
        self.assertIn('custom_network', form.errors)

    def test_network_relevant_data(self) -> None:
        form = self.build(CategoryType.NETWORK, {'network_id': 'net-2', 'church': 'ignored'})
        self.assertTrue(form.is_valid(), form.errors.as_json())
        self.assertEqual(form.relevant_data(), {'network_id': 'net-2', 'custom_network': ''})

    def test_region_requires_church(self) -> None:
        form = self.build(CategoryType.REGION, {'zone_id': 'zone-1', 'group_id': 'grp-1'}, groups=GROUPS)
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['church'], ['Church name is required'])

    def test_region_new_group(self) -> None:
        form = self.build(
            CategoryType.REGION,
            {'zone_id': 'zone-1', 'group_id': 'new', 'new_group_name': 'Youth Group', 'church': 'Christ Embassy'},
        )
        self.assertTrue(form.is_valid(), form.errors.as_json())

    def test_group_error_placeholder(self) -> None:
        form = self.build(CategoryType.REGION, None, groups_error=True)
        self.assertEqual(form.fields['group_id'].choices[0], ('', 'Error loading groups'))


class PersonalInfoStepFormTests(SimpleTestCase):
    def test_country_supplies_phone_code(self) -> None:
        form = PersonalInfoStepForm(
            data={'name': 'Jane', 'email': 'jane@example.com', 'country_id': 'ng', 'phone': '8012345'},
            countries=COUNTRIES,
        )
        self.assertTrue(form.is_valid(), form.errors.as_json())
        self.assertEqual(form.cleaned_data['phone_country_code'], '+234')

    def test_short_name_and_phone(self) -> None:
        form = PersonalInfoStepForm(
            data={'name': 'J', 'email': 'jane@example.com', 'country_id': 'ng', 'phone': '123'},
            countries=COUNTRIES,
        )
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['name'], ['Name must be at least 2 characters'])
        self.assertEqual(form.errors['phone'], ['Invalid phone number'])


@override_settings(TESTIMONY_MAX_VIDEO_MB=1, TESTIMONY_MAX_AUDIO_MB=1)
class ContentStepFormTests(SimpleTestCase):
    def test_text_required(self) -> None:
        form = ContentStepForm(data={'content_type': ContentType.TEXT, 'text_content': '   '})
        self.assertEqual(form.errors['text_content'], ['Please share your testimony'])

    def test_video_requires_file(self) -> None:
        form = ContentStepForm(data={'content_type': ContentType.VIDEO})
        self.assertEqual(form.errors['file'], ['Please upload your video file'])

    def test_pending_upload_of_same_kind_is_enough(self) -> None:
        form = ContentStepForm(
            data={'content_type': ContentType.AUDIO},
            has_pending_upload=True,
            pending_content_type=ContentType.AUDIO,
        )
        self.assertTrue(form.is_valid(), form.errors.as_json())

    def test_oversized_file_rejected(self) -> None:
        upload = SimpleUploadedFile('big.mp4', b'x' * (MB + 1), content_type='video/mp4')
        form = ContentStepForm(data={'content_type': ContentType.VIDEO}, files={'file': upload})
        self.assertEqual(form.errors['file'], ['File too large. Maximum size is 1MB'])

    @override_settings(TESTIMONY_MAX_VIDEO_MB=100, TESTIMONY_MAX_AUDIO_MB=20)
    def test_size_limit_follows_settings(self) -> None:
        self.assertEqual(ContentStepForm.size_limit(ContentType.VIDEO), 100 * MB)
        self.assertEqual(ContentStepForm.size_limit(ContentType.AUDIO), 20 * MB)


class BackofficeFormTests(SimpleTestCase):
    def test_named_resource_trims_and_checks_length(self) -> None:
        form = NamedResourceForm(data={'name': '  A '}, noun='Network name')
        self.assertEqual(form.errors['name'], ['Network name must be at least 2 characters'])
        form = NamedResourceForm(data={'name': '  Alpha '}, noun='Network name')
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['name'], 'Alpha')

    def test_storage_settings_minimums(self) -> None:
        form = StorageSettingsForm(data={'total_storage_gb': '0.05', 'max_video_mb': '0', 'max_audio_mb': '0.5'})
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['total_storage_gb'], ['Total storage limit must be at least 100 MB'])
        self.assertEqual(form.errors['max_video_mb'], ['Max video file size must be at least 1 MB'])
        self.assertEqual(form.errors['max_audio_mb'], ['Max audio file size must be at least 1 MB'])

    def test_storage_settings_converted_to_bytes(self) -> None:
        form = StorageSettingsForm(data={'total_storage_gb': '10', 'max_video_mb': '100', 'max_audio_mb': '20'})
        self.assertTrue(form.is_valid(), form.errors.as_json())
        storage = form.cleaned_data['storage']
        self.assertEqual(storage.total_storage_limit, 10 * GB)
        self.assertEqual(storage.max_video_file_size, 100 * MB)
        self.assertEqual(storage.max_audio_file_size, 20 * MB)

    def test_profile_requires_name(self) -> None:
        form = ProfileForm(data={'name': '   ', 'email': 'bad'})
        self.assertEqual(form.errors['name'], ['Name is required'])
        self.assertEqual(form.errors['email'], ['Valid email is required'])

    def test_password_confirmation_must_match(self) -> None:
        form = PasswordChangeForm(
            data={'current_password': 'old-secret', 'new_password': 'new-secret', 'confirm_password': 'other'}
        )
        self.assertEqual(form.errors['confirm_password'], ['Passwords do not match'])

    def test_filter_form_drops_empty_values(self) -> None:
        form = TestimonyFilterForm(
            data={'search': ' jane ', 'status': 'PENDING', 'content_type': '', 'page': '3'},
            testimony_categories=TESTIMONY_CATEGORIES,
        )
        self.assertEqual(form.filters(), {'search': 'jane', 'status': 'PENDING'})
        self.assertEqual(form.page_number(), 3)

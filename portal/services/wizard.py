"""State handling for the public testimony submission wizard.

The wizard walks a visitor through five steps (category, details, personal
info, testimony content and review).  Answers are kept in the Django session
under :data:`SESSION_KEY` so that forward and backward navigation never
loses input.  This module owns that state: which steps may be entered, how
answers are merged, how the final API payload is assembled and how the
submission itself is performed.  Field validation lives in
:mod:`portal.forms`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from portal.services.api_client import ApiClient, ApiFailure
from portal.services.pending_uploads import PendingUploadError, discard_upload, open_upload
from portal.services.resources import (
    CategoryType,
    ContentType,
    Country,
    ExternalCategory,
    Group,
    Network,
    Region,
    TestimonyCategory,
    Zone,
    flatten_zones,
)

logger = logging.getLogger(__name__)

SESSION_KEY = 'submission_wizard'

STEPS: List[str] = ['Category', 'Details', 'Personal Info', 'Testimony', 'Review']
REVIEW_STEP = len(STEPS) - 1

# Sentinel choices offered next to the API-provided options.
OTHER_CHOICE = 'other'
NEW_GROUP_CHOICE = 'new'

DEFAULT_DATA: Dict[str, str] = {
    'category_type': CategoryType.NETWORK,
    'content_type': ContentType.TEXT,
}


class SubmissionError(Exception):
    """Raised when the final submission cannot be completed.

    ``title`` mirrors the heading shown to the visitor ("Submission failed",
    "Failed to create group") and ``message`` carries the API explanation.
    """

    def __init__(self, title: str, message: str) -> None:
        super().__init__(f'{title}: {message}')
        self.title = title
        self.message = message


@dataclass
class WizardReference:
    """Reference data needed to render the wizard."""

    networks: List[Network] = field(default_factory=list)
    external_categories: List[ExternalCategory] = field(default_factory=list)
    testimony_categories: List[TestimonyCategory] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)
    countries: List[Country] = field(default_factory=list)

    @property
    def zones(self) -> List[Zone]:
        return flatten_zones(self.regions)

    def country(self, country_id: Optional[str]) -> Optional[Country]:
        return _find(self.countries, country_id)

    def zone(self, zone_id: Optional[str]) -> Optional[Zone]:
        return _find(self.zones, zone_id)

    def network(self, network_id: Optional[str]) -> Optional[Network]:
        return _find(self.networks, network_id)

    def external_category(self, category_id: Optional[str]) -> Optional[ExternalCategory]:
        return _find(self.external_categories, category_id)

    def testimony_category(self, category_id: Optional[str]) -> Optional[TestimonyCategory]:
        return _find(self.testimony_categories, category_id)


def _find(items, item_id):
    if not item_id:
        return None
    for item in items:
        if item.id == item_id:
            return item
    return None


def load_reference_data(client: ApiClient) -> WizardReference:
    """Fetch every list the wizard offers as a choice.

    Any :class:`ApiFailure` propagates so the view can offer a retry.
    """

    return WizardReference(
        networks=client.get_networks(),
        external_categories=client.get_external_categories(),
        testimony_categories=client.get_testimony_categories(),
        regions=client.get_zones(),
        countries=client.get_countries(),
    )


@dataclass
class WizardState:
    step: int = 0
    data: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DATA))
    upload: Optional[Dict[str, Any]] = None

    @classmethod
    def load(cls, session) -> 'WizardState':
        raw = session.get(SESSION_KEY) or {}
        data = dict(DEFAULT_DATA)
        data.update(raw.get('data') or {})
        step = raw.get('step', 0)
        if not isinstance(step, int) or not 0 <= step <= REVIEW_STEP:
            step = 0
        return cls(step=step, data=data, upload=raw.get('upload'))

    def save(self, session) -> None:
        session[SESSION_KEY] = {'step': self.step, 'data': self.data, 'upload': self.upload}

    @staticmethod
    def clear(session) -> None:
        session.pop(SESSION_KEY, None)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def get(self, key: str, default: str = '') -> str:
        return self.data.get(key) or default

    @property
    def category_type(self) -> str:
        return self.get('category_type')

    @property
    def content_type(self) -> str:
        return self.get('content_type')

    def update(self, values: Mapping[str, Any]) -> None:
        """Merge cleaned form values into the stored answers.

        Choosing a different zone invalidates the previously chosen group.
        """

        if 'zone_id' in values and (values.get('zone_id') or '') != self.get('zone_id'):
            self.data.pop('group_id', None)
            self.data.pop('new_group_name', None)
        for key, value in values.items():
            if value is None:
                value = ''
            self.data[key] = str(value).strip() if isinstance(value, str) else str(value)

    def set_upload(self, meta: Optional[Dict[str, Any]]) -> None:
        """Replace the parked upload, discarding the previous file."""

        if self.upload and self.upload != meta:
            discard_upload(self.upload)
        self.upload = meta

    def discard(self, session) -> None:
        """Forget every answer and any parked upload."""

        discard_upload(self.upload)
        self.clear(session)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def has_group(self) -> bool:
        group_id = self.get('group_id')
        if group_id == NEW_GROUP_CHOICE:
            return bool(self.get('new_group_name'))
        return bool(group_id)

    def can_proceed(self, step: Optional[int] = None) -> bool:
        """Return True when the answers for ``step`` allow moving on."""

        step = self.step if step is None else step
        if step == 0:
            return bool(self.category_type and self.get('testimony_category_id'))
        if step == 1:
            category_type = self.category_type
            if category_type == CategoryType.NETWORK:
                return _choice_or_custom(self.get('network_id'), self.get('custom_network'))
            if category_type == CategoryType.EXTERNAL:
                return _choice_or_custom(self.get('external_category_id'), self.get('custom_external'))
            if category_type == CategoryType.REGION:
                return bool(self.get('zone_id')) and self.has_group() and bool(self.get('church'))
            return False
        if step == 2:
            return all(self.get(key) for key in ('name', 'email', 'country_id', 'phone_country_code', 'phone'))
        if step == 3:
            if self.content_type == ContentType.TEXT:
                return bool(self.get('text_content'))
            return bool(self.upload)
        return True

    def first_incomplete_step(self) -> int:
        for index in range(REVIEW_STEP):
            if not self.can_proceed(index):
                return index
        return REVIEW_STEP

    def go_to(self, step: int) -> int:
        """Move to ``step`` without skipping past an incomplete step."""

        self.step = max(0, min(step, self.first_incomplete_step(), REVIEW_STEP))
        return self.step

    def advance(self) -> bool:
        if self.step < REVIEW_STEP and self.can_proceed():
            self.step += 1
            return True
        return False

    def go_back(self) -> None:
        if self.step > 0:
            self.step -= 1

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def build_payload(self, group_id: Optional[str] = None) -> Dict[str, Any]:
        """Assemble the ``TestimonyInput`` JSON for the API.

        Only the fields relevant to the chosen category and content type are
        included; empty values are omitted.
        """

        category_type = self.category_type
        content_type = self.content_type
        payload: Dict[str, Any] = {
            'testimonyCategoryId': self.get('testimony_category_id'),
            'categoryType': category_type,
            'name': self.get('name'),
            'email': self.get('email'),
            'phone': self.get('phone'),
            'phoneCountryCode': self.get('phone_country_code'),
            'countryId': self.get('country_id'),
            'kingschatUsername': self.get('kingschat_username'),
            'contentType': content_type,
        }
        if category_type == CategoryType.NETWORK:
            if self.get('network_id') == OTHER_CHOICE:
                payload['customNetwork'] = self.get('custom_network')
            else:
                payload['networkId'] = self.get('network_id')
        elif category_type == CategoryType.EXTERNAL:
            if self.get('external_category_id') == OTHER_CHOICE:
                payload['customExternal'] = self.get('custom_external')
            else:
                payload['externalCategoryId'] = self.get('external_category_id')
        elif category_type == CategoryType.REGION:
            resolved_group = group_id if group_id is not None else self.get('group_id')
            payload['zoneId'] = self.get('zone_id')
            if resolved_group != NEW_GROUP_CHOICE:
                payload['groupId'] = resolved_group
            payload['church'] = self.get('church')
        if content_type == ContentType.TEXT:
            payload['textContent'] = self.get('text_content')
        return {key: value for key, value in payload.items() if value not in (None, '')}

    def review_rows(self, reference: WizardReference, groups: Optional[List[Group]] = None) -> List[Tuple[str, str]]:
        """Return ``(label, value)`` pairs summarising the answers."""

        rows: List[Tuple[str, str]] = []
        testimony_category = reference.testimony_category(self.get('testimony_category_id'))
        rows.append(('Testimony Type', testimony_category.name if testimony_category else ''))
        rows.append(('Category', _CATEGORY_LABELS.get(self.category_type, '')))
        if self.category_type == CategoryType.NETWORK:
            if self.get('network_id') == OTHER_CHOICE:
                value = self.get('custom_network')
            else:
                network = reference.network(self.get('network_id'))
                value = network.name if network else ''
            rows.append(('Network', value))
        elif self.category_type == CategoryType.EXTERNAL:
            if self.get('external_category_id') == OTHER_CHOICE:
                value = self.get('custom_external')
            else:
                category = reference.external_category(self.get('external_category_id'))
                value = category.name if category else ''
            rows.append(('External Category', value))
        elif self.category_type == CategoryType.REGION:
            zone = reference.zone(self.get('zone_id'))
            rows.append(('Zone', zone.name if zone else ''))
            if self.get('group_id') == NEW_GROUP_CHOICE:
                group_name = self.get('new_group_name')
            else:
                group = _find(groups or (zone.groups if zone else []), self.get('group_id'))
                group_name = group.name if group else ''
            rows.append(('Group', group_name))
            rows.append(('Church', self.get('church')))
        rows.append(('Name', self.get('name')))
        rows.append(('Email', self.get('email')))
        country = reference.country(self.get('country_id'))
        if country:
            rows.append(('Country', country.name))
        rows.append(('Phone', f"{self.get('phone_country_code')} {self.get('phone')}".strip()))
        if self.get('kingschat_username'):
            rows.append(('KingsChat Username', self.get('kingschat_username')))
        rows.append(('Content Type', self.content_type))
        if self.content_type == ContentType.TEXT:
            rows.append(('Testimony', self.get('text_content')))
        elif self.upload:
            rows.append(('File', self.upload.get('original_name', '')))
        return rows


_CATEGORY_LABELS = {
    CategoryType.NETWORK: 'Network',
    CategoryType.EXTERNAL: 'External',
    CategoryType.REGION: 'Zone/Group/Church',
}


def _choice_or_custom(choice: str, custom: str) -> bool:
    if choice == OTHER_CHOICE:
        return bool(custom)
    return bool(choice)


def format_bullets(message: str) -> str:
    """Prefix each line of a multi-line API message with a bullet."""

    lines = [line.strip() for line in (message or '').split('\n') if line.strip()]
    return '\n'.join(f'• {line}' for line in lines)


def submit_wizard(client: ApiClient, state: WizardState) -> Dict[str, Any]:
    """Send the collected testimony to the API.

    A group typed in by the visitor is created first and its id replaces the
    ``new`` placeholder in the stored answers, so retrying after a failed
    upload does not create it twice.
    """

    group_id: Optional[str] = None
    if (
        state.category_type == CategoryType.REGION
        and state.get('group_id') == NEW_GROUP_CHOICE
        and state.get('new_group_name')
        and state.get('zone_id')
    ):
        try:
            group = client.create_group(state.get('new_group_name'), state.get('zone_id'))
        except ApiFailure as exc:
            raise SubmissionError('Failed to create group', exc.message or 'Please try again') from exc
        logger.info('Created group %s in zone %s', group.id, group.zone_id)
        group_id = group.id
        state.data['group_id'] = group.id
        state.data.pop('new_group_name', None)

    payload = state.build_payload(group_id)
    try:
        if state.content_type != ContentType.TEXT and state.upload:
            with open_upload(state.upload) as upload:
                result = client.submit_testimony(payload, upload)
        else:
            result = client.submit_testimony(payload)
    except (ApiFailure, PendingUploadError) as exc:
        message = getattr(exc, 'message', None) or str(exc) or 'Please try again'
        raise SubmissionError('Submission failed', format_bullets(message)) from exc
    testimony_id = ((result or {}).get('testimony') or {}).get('id')
    logger.info('Submitted testimony %s (%s, %s)', testimony_id, state.category_type, state.content_type)
    return result or {}


__all__ = [
    'NEW_GROUP_CHOICE',
    'OTHER_CHOICE',
    'REVIEW_STEP',
    'SESSION_KEY',
    'STEPS',
    'SubmissionError',
    'WizardReference',
    'WizardState',
    'format_bullets',
    'load_reference_data',
    'submit_wizard',
]

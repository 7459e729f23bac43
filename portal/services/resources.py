"""Typed mirrors of the resources returned by the testimonies API.

The remote service owns every one of these records.  The classes below only
give the rest of the application attribute access and sensible defaults
instead of passing raw JSON dictionaries around.  Each class exposes a
``from_api`` constructor accepting the camelCase payload exactly as the API
returns it; unknown keys are ignored and missing optional keys fall back to
``None`` or an empty value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class CategoryType:
    NETWORK = 'NETWORK'
    EXTERNAL = 'EXTERNAL'
    REGION = 'REGION'

    CHOICES = [
        (NETWORK, 'Network'),
        (EXTERNAL, 'External Category'),
        (REGION, 'Zone / Group / Church'),
    ]


class ContentType:
    TEXT = 'TEXT'
    VIDEO = 'VIDEO'
    AUDIO = 'AUDIO'

    CHOICES = [
        (TEXT, 'Text'),
        (VIDEO, 'Video'),
        (AUDIO, 'Audio'),
    ]


class TestimonyStatus:
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'

    CHOICES = [
        (PENDING, 'Pending'),
        (APPROVED, 'Approved'),
        (REJECTED, 'Rejected'),
    ]
    # Moderators may only request these transitions.
    MODERATION_TARGETS = (APPROVED, REJECTED)


def _count(payload: Dict[str, Any]) -> Optional[int]:
    counts = payload.get('_count') or {}
    value = counts.get('testimonies')
    return int(value) if value is not None else None


@dataclass(frozen=True)
class Admin:
    id: str
    email: str
    name: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Admin':
        return cls(
            id=str(payload.get('id', '')),
            email=payload.get('email', ''),
            name=payload.get('name', ''),
            created_at=payload.get('createdAt'),
            updated_at=payload.get('updatedAt'),
        )

    def to_session(self) -> Dict[str, Any]:
        """Return a JSON-serialisable copy suitable for the session store."""

        return {'id': self.id, 'email': self.email, 'name': self.name}


@dataclass(frozen=True)
class NamedResource:
    """Shared shape of networks, external categories and testimony types."""

    id: str
    name: str
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    testimony_count: Optional[int] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]):
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            is_active=bool(payload.get('isActive', True)),
            created_at=payload.get('createdAt'),
            updated_at=payload.get('updatedAt'),
            testimony_count=_count(payload),
        )


@dataclass(frozen=True)
class Network(NamedResource):
    is_default: bool = False

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Network':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            is_active=bool(payload.get('isActive', True)),
            created_at=payload.get('createdAt'),
            updated_at=payload.get('updatedAt'),
            testimony_count=_count(payload),
            is_default=bool(payload.get('isDefault', False)),
        )


@dataclass(frozen=True)
class ExternalCategory(NamedResource):
    pass


@dataclass(frozen=True)
class TestimonyCategory(NamedResource):
    pass


@dataclass(frozen=True)
class Group:
    id: str
    name: str
    zone_id: str
    is_custom: bool = False

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Group':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            zone_id=str(payload.get('zoneId', '')),
            is_custom=bool(payload.get('isCustom', False)),
        )


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    region_id: str
    groups: List[Group] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Zone':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            region_id=str(payload.get('regionId', '')),
            groups=[Group.from_api(item) for item in payload.get('groups') or []],
        )


@dataclass(frozen=True)
class Region:
    id: str
    name: str
    zones: List[Zone] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Region':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            zones=[Zone.from_api(item) for item in payload.get('zones') or []],
        )


def flatten_zones(regions: List[Region]) -> List[Zone]:
    """Return every zone across ``regions`` in API order."""

    return [zone for region in regions for zone in region.zones]


@dataclass(frozen=True)
class Country:
    id: str
    name: str
    code: str
    phone_code: str

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Country':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            code=payload.get('code', ''),
            phone_code=payload.get('phoneCode', ''),
        )


@dataclass(frozen=True)
class Ref:
    """A nested ``{id, name}`` reference embedded in a testimony."""

    id: str
    name: str
    code: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Optional[Dict[str, Any]]) -> Optional['Ref']:
        if not payload:
            return None
        return cls(id=str(payload.get('id', '')), name=payload.get('name', ''), code=payload.get('code'))


@dataclass(frozen=True)
class Testimony:
    id: str
    name: str
    email: str
    phone: str
    phone_country_code: str
    category_type: str
    content_type: str
    status: str
    testimony_category_id: Optional[str] = None
    testimony_category: Optional[Ref] = None
    network_id: Optional[str] = None
    network: Optional[Ref] = None
    custom_network: Optional[str] = None
    external_category_id: Optional[str] = None
    external_category: Optional[Ref] = None
    custom_external: Optional[str] = None
    zone_id: Optional[str] = None
    zone: Optional[Ref] = None
    group_id: Optional[str] = None
    group: Optional[Ref] = None
    country_id: Optional[str] = None
    country: Optional[Ref] = None
    user_zone_id: Optional[str] = None
    user_group_id: Optional[str] = None
    church: Optional[str] = None
    kingschat_username: Optional[str] = None
    text_content: Optional[str] = None
    media_url: Optional[str] = None
    media_mime_type: Optional[str] = None
    media_size: Optional[int] = None
    view_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Testimony':
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            email=payload.get('email', ''),
            phone=payload.get('phone', ''),
            phone_country_code=payload.get('phoneCountryCode', ''),
            category_type=payload.get('categoryType', ''),
            content_type=payload.get('contentType', ContentType.TEXT),
            status=payload.get('status', TestimonyStatus.PENDING),
            testimony_category_id=payload.get('testimonyCategoryId'),
            testimony_category=Ref.from_api(payload.get('testimonyCategory')),
            network_id=payload.get('networkId'),
            network=Ref.from_api(payload.get('network')),
            custom_network=payload.get('customNetwork'),
            external_category_id=payload.get('externalCategoryId'),
            external_category=Ref.from_api(payload.get('externalCategory')),
            custom_external=payload.get('customExternal'),
            zone_id=payload.get('zoneId'),
            zone=Ref.from_api(payload.get('zone')),
            group_id=payload.get('groupId'),
            group=Ref.from_api(payload.get('group')),
            country_id=payload.get('countryId'),
            country=Ref.from_api(payload.get('country')),
            user_zone_id=payload.get('userZoneId'),
            user_group_id=payload.get('userGroupId'),
            church=payload.get('church'),
            kingschat_username=payload.get('kingschatUsername'),
            text_content=payload.get('textContent'),
            media_url=payload.get('mediaUrl'),
            media_mime_type=payload.get('mediaMimeType'),
            media_size=payload.get('mediaSize'),
            view_count=int(payload.get('viewCount') or 0),
            created_at=payload.get('createdAt'),
            updated_at=payload.get('updatedAt'),
        )

    @property
    def category_label(self) -> str:
        """Human readable name of whatever the testimony was filed under."""

        if self.category_type == CategoryType.NETWORK:
            return self.network.name if self.network else (self.custom_network or '')
        if self.category_type == CategoryType.EXTERNAL:
            return self.external_category.name if self.external_category else (self.custom_external or '')
        parts = [ref.name for ref in (self.zone, self.group) if ref]
        return ' / '.join(parts)

    @property
    def can_approve(self) -> bool:
        return self.status != TestimonyStatus.APPROVED

    @property
    def can_reject(self) -> bool:
        return self.status != TestimonyStatus.REJECTED


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Pagination':
        return cls(
            page=int(payload.get('page') or 1),
            limit=int(payload.get('limit') or 0),
            total=int(payload.get('total') or 0),
            total_pages=int(payload.get('totalPages') or 0),
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class TestimonyPage:
    testimonies: List[Testimony]
    pagination: Pagination

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'TestimonyPage':
        return cls(
            testimonies=[Testimony.from_api(item) for item in payload.get('testimonies') or []],
            pagination=Pagination.from_api(payload.get('pagination') or {}),
        )


@dataclass(frozen=True)
class RecentTestimony:
    id: str
    name: str
    category_type: str
    content_type: str
    status: str
    created_at: Optional[str] = None
    testimony_category_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'RecentTestimony':
        category = payload.get('testimonyCategory') or {}
        return cls(
            id=str(payload.get('id', '')),
            name=payload.get('name', ''),
            category_type=payload.get('categoryType', ''),
            content_type=payload.get('contentType', ''),
            status=payload.get('status', ''),
            created_at=payload.get('createdAt'),
            testimony_category_name=category.get('name'),
        )


def _counts_by_code(payload: Optional[Dict[str, Any]]) -> Dict[str, int]:
    """Key a breakdown by the upper-case codes used everywhere else."""
    return {str(code).upper(): int(count or 0) for code, count in (payload or {}).items()}


@dataclass(frozen=True)
class Stats:
    total: int
    by_status: Dict[str, int]
    by_content_type: Dict[str, int]
    by_category_type: Dict[str, int]
    top_countries: List[Dict[str, Any]]
    top_zones: List[Dict[str, Any]]
    top_testimony_types: List[Dict[str, Any]]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'Stats':
        return cls(
            total=int(payload.get('total') or 0),
            by_status=_counts_by_code(payload.get('byStatus')),
            by_content_type=_counts_by_code(payload.get('byContentType')),
            by_category_type=_counts_by_code(payload.get('byCategoryType')),
            top_countries=list(payload.get('topCountries') or []),
            top_zones=list(payload.get('topZones') or []),
            top_testimony_types=list(payload.get('topTestimonyTypes') or []),
        )


@dataclass(frozen=True)
class StatsResponse:
    stats: Stats
    recent_testimonies: List[RecentTestimony]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'StatsResponse':
        return cls(
            stats=Stats.from_api(payload.get('stats') or {}),
            recent_testimonies=[RecentTestimony.from_api(item) for item in payload.get('recentTestimonies') or []],
        )


@dataclass(frozen=True)
class StorageSettings:
    total_storage_limit: int
    max_video_file_size: int
    max_audio_file_size: int

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'StorageSettings':
        return cls(
            total_storage_limit=int(payload.get('totalStorageLimit') or 0),
            max_video_file_size=int(payload.get('maxVideoFileSize') or 0),
            max_audio_file_size=int(payload.get('maxAudioFileSize') or 0),
        )

    def to_api(self) -> Dict[str, int]:
        return {
            'totalStorageLimit': self.total_storage_limit,
            'maxVideoFileSize': self.max_video_file_size,
            'maxAudioFileSize': self.max_audio_file_size,
        }


@dataclass(frozen=True)
class MediaUsage:
    count: int
    size: int

    @classmethod
    def from_api(cls, payload: Optional[Dict[str, Any]]) -> 'MediaUsage':
        payload = payload or {}
        return cls(count=int(payload.get('count') or 0), size=int(payload.get('size') or 0))


@dataclass(frozen=True)
class StorageStats:
    total_used: int
    total_limit: int
    usage_percent: float
    videos: MediaUsage
    audios: MediaUsage

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'StorageStats':
        return cls(
            total_used=int(payload.get('totalUsed') or 0),
            total_limit=int(payload.get('totalLimit') or 0),
            usage_percent=float(payload.get('usagePercent') or 0),
            videos=MediaUsage.from_api(payload.get('videos')),
            audios=MediaUsage.from_api(payload.get('audios')),
        )


@dataclass(frozen=True)
class StorageOverview:
    settings: StorageSettings
    stats: StorageStats

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> 'StorageOverview':
        return cls(
            settings=StorageSettings.from_api(payload.get('settings') or {}),
            stats=StorageStats.from_api(payload.get('stats') or {}),
        )


__all__ = [
    'Admin',
    'CategoryType',
    'ContentType',
    'Country',
    'ExternalCategory',
    'Group',
    'MediaUsage',
    'NamedResource',
    'Network',
    'Pagination',
    'RecentTestimony',
    'Ref',
    'Region',
    'Stats',
    'StatsResponse',
    'StorageOverview',
    'StorageSettings',
    'StorageStats',
    'Testimony',
    'TestimonyCategory',
    'TestimonyPage',
    'TestimonyStatus',
    'Zone',
    'flatten_zones',
]

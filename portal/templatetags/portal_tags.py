"""Custom template filters for the portal app."""

from __future__ import annotations

from urllib.parse import urlencode

from django import template

from portal.services.api_client import build_media_url
from portal.services.resources import CategoryType, ContentType, TestimonyStatus
from portal.services.storage_units import bytes_to_unit, format_bytes

register = template.Library()

_STATUS_BADGES = {
    TestimonyStatus.PENDING: 'badge-pending',
    TestimonyStatus.APPROVED: 'badge-approved',
    TestimonyStatus.REJECTED: 'badge-rejected',
}

_LABELS = dict(CategoryType.CHOICES + ContentType.CHOICES + TestimonyStatus.CHOICES)


@register.filter
def get(value, key):
    """Return ``value[key]`` for dictionaries in templates.

    Usage::

        {{ stats.by_status|get:"PENDING" }}

    Missing keys, and values that are not dictionary-like, render as an
    empty string.
    """
    if hasattr(value, 'get'):
        return value.get(key, '')
    return ''


@register.filter(name='format_bytes')
def format_bytes_filter(size) -> str:
    """Render a byte count as ``1.5 MB``."""
    return format_bytes(size)


@register.filter(name='in_unit')
def in_unit(size, unit: str) -> str:
    return bytes_to_unit(size, unit)


@register.filter
def media_url(url) -> str:
    """Turn a media path returned by the API into an absolute URL."""
    return build_media_url(url) or ''


@register.filter
def status_badge(status: str) -> str:
    return _STATUS_BADGES.get(status, 'badge-neutral')


@register.filter
def label(value: str) -> str:
    """Human label for a status, content type or category type code."""
    return _LABELS.get(value, value)


@register.simple_tag
def percent_of(part, whole) -> int:
    try:
        part, whole = float(part or 0), float(whole or 0)
    except (TypeError, ValueError):
        return 0
    if whole <= 0:
        return 0
    return min(100, int(round(part * 100 / whole)))


@register.simple_tag
def page_query(filter_query: str, page: int) -> str:
    """Build the query string for a pagination link, keeping the filters."""
    page_part = urlencode({'page': page})
    return f'?{filter_query}&{page_part}' if filter_query else f'?{page_part}'

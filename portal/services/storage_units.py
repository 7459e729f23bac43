"""Byte-size helpers shared by the storage settings page and templates."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

UNIT_MULTIPLIERS = {
    'MB': MB,
    'GB': GB,
}

_SIZE_LABELS = ['B', 'KB', 'MB', 'GB', 'TB']


def format_bytes(size: Union[int, float, None]) -> str:
    """Render ``size`` with a 1024-based unit, e.g. ``1.5 MB``."""

    if not size:
        return '0 B'
    value = float(size)
    index = 0
    while abs(value) >= KB and index < len(_SIZE_LABELS) - 1:
        value /= KB
        index += 1
    text = f'{value:.2f}'.rstrip('0').rstrip('.')
    return f'{text} {_SIZE_LABELS[index]}'


def parse_size(value: Union[str, int, float, Decimal, None], unit: str) -> int:
    """Convert ``value`` expressed in ``unit`` (``MB``/``GB``) to bytes.

    Unparseable input counts as zero so that the minimum-size checks report
    it instead of raising.
    """

    try:
        number = Decimal(str(value).strip()) if value not in (None, '') else Decimal(0)
    except InvalidOperation:
        number = Decimal(0)
    return int((number * UNIT_MULTIPLIERS.get(unit, 1)).to_integral_value())


def bytes_to_unit(size: Union[int, None], unit: str) -> str:
    """Express ``size`` bytes as a whole number of ``unit``."""

    divisor = UNIT_MULTIPLIERS.get(unit, 1)
    return f'{(size or 0) / divisor:.0f}'


def megabytes(value: int) -> int:
    return value * MB

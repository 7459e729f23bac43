"""Temporary storage for media files attached during the submission wizard.

The wizard collects the testimony over several requests, but the media file
is only sent to the API on the final review step.  In between, uploads are
parked underneath ``PENDING_UPLOAD_ROOT`` and referenced from the session by
a small metadata dictionary.  Parked files are removed once the submission
succeeds, when the visitor replaces them, or by the
``purge_pending_uploads`` management command.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from django.conf import settings
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import UploadedFile
from django.utils import timezone

logger = logging.getLogger(__name__)


class PendingUploadError(Exception):
    """Raised when a parked upload can no longer be found."""


def get_pending_storage() -> FileSystemStorage:
    """Return the storage backend used for parked uploads."""

    root = getattr(settings, 'PENDING_UPLOAD_ROOT', settings.BASE_DIR / 'media' / 'pending_uploads')
    root_path = Path(root)
    root_path.mkdir(parents=True, exist_ok=True)
    return FileSystemStorage(location=str(root_path))


def park_upload(upload: UploadedFile) -> Dict[str, Any]:
    """Persist ``upload`` and return the metadata stored in the session."""

    storage = get_pending_storage()
    suffix = Path(upload.name or '').suffix[:16]
    stored_name = storage.save(f'{uuid.uuid4().hex}{suffix}', upload)
    meta = {
        'stored_name': stored_name,
        'original_name': Path(upload.name or 'upload').name,
        'content_type': upload.content_type or 'application/octet-stream',
        'size': upload.size,
    }
    logger.info('Parked wizard upload %s (%s bytes)', stored_name, upload.size)
    return meta


@contextmanager
def open_upload(meta: Dict[str, Any]) -> Iterator[Tuple[str, Any, str]]:
    """Yield ``(filename, file object, content type)`` for a parked upload."""

    storage = get_pending_storage()
    stored_name = meta.get('stored_name', '')
    if not stored_name or not storage.exists(stored_name):
        raise PendingUploadError('The uploaded file is no longer available. Please upload it again.')
    with storage.open(stored_name, 'rb') as fh:
        yield meta.get('original_name', stored_name), fh, meta.get('content_type', 'application/octet-stream')


def discard_upload(meta: Optional[Dict[str, Any]]) -> None:
    """Delete the parked file described by ``meta`` if it still exists."""

    if not meta:
        return
    stored_name = meta.get('stored_name')
    if not stored_name:
        return
    storage = get_pending_storage()
    if storage.exists(stored_name):
        storage.delete(stored_name)
        logger.info('Discarded wizard upload %s', stored_name)


def purge_stale_uploads(max_age: timedelta, now: Optional[datetime] = None) -> int:
    """Delete parked uploads last modified more than ``max_age`` ago."""

    storage = get_pending_storage()
    cutoff = (now or timezone.now()) - max_age
    _, files = storage.listdir('')
    removed = 0
    for name in files:
        modified = storage.get_modified_time(name)
        if timezone.is_naive(modified):
            modified = timezone.make_aware(modified)
        if modified < cutoff:
            storage.delete(name)
            removed += 1
    if removed:
        logger.info('Purged %s stale wizard uploads', removed)
    return removed


__all__ = [
    'PendingUploadError',
    'discard_upload',
    'get_pending_storage',
    'open_upload',
    'park_upload',
    'purge_stale_uploads',
]

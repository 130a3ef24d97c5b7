"""
Document Library & Photo Gallery
Directory scans over the static content roots. Uploaded files are named
<millis>-<id>-<original_name> (documents) or <millis>-<id>.<ext> (photos);
everything shown to visitors is derived from that name plus a stat().
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from summitdesk.config import config
from summitdesk.models import Document, Photo, Result, FAILURE_INVALID, FAILURE_NOT_FOUND
from summitdesk.bus.events import bus, EVENT_DOCUMENT_DELETED

logger = logging.getLogger(__name__)

DOCUMENT_CATEGORIES = ('panelist-materials', 'summit-docs', 'resources', 'presentations')
GALLERY_CATEGORIES = ('summit', 'networking', 'other')

MIME_TYPES = {
    'pdf': 'application/pdf',
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'ppt': 'application/vnd.ms-powerpoint',
    'pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'xls': 'application/vnd.ms-excel',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'txt': 'text/plain',
    'csv': 'text/csv',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
}
IMAGE_EXTENSIONS = frozenset({'jpg', 'jpeg', 'png', 'gif', 'webp'})

DOCUMENT_ID_PREFIX = 'doc-'
PHOTO_ID_PREFIX = 'local-'

# Upload names start with a millisecond timestamp; shorter digit runs are
# ordinary file names such as 2024-annual-report.pdf
_DOCUMENT_NAME_RE = re.compile(r'^(\d{12,})-([a-z0-9]+)-(.+)$', re.IGNORECASE)
_PHOTO_NAME_RE = re.compile(r'^(\d{12,})-([a-z0-9]+)\.', re.IGNORECASE)


def _extension(path: Path) -> str:
    return path.suffix.lstrip('.').lower()


def _from_millis(millis: str) -> datetime:
    return datetime.fromtimestamp(int(millis) / 1000, tz=timezone.utc)


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def _category_files(root: Path, category: str) -> List[Path]:
    """Regular files directly under root/category; missing directory = none."""
    category_dir = root / category
    if not category_dir.is_dir():
        return []
    return sorted(p for p in category_dir.iterdir() if p.is_file())


def _describe_document(path: Path, category: str) -> Document:
    """
    Build a Document from a stored filename. Names that do not follow the
    upload convention fall back to the file name as id and mtime as upload
    time.
    """
    match = _DOCUMENT_NAME_RE.match(path.name)
    if match:
        millis, file_id, original = match.groups()
        uploaded_at = _from_millis(millis)
        original_name = original.replace('_', ' ')
    else:
        file_id = path.stem
        uploaded_at = _mtime(path)
        original_name = path.name

    return Document(
        id=f"{DOCUMENT_ID_PREFIX}{file_id}",
        name=path.name,
        original_name=original_name,
        url=f"/documents/{category}/{path.name}",
        size=path.stat().st_size,
        type=MIME_TYPES.get(_extension(path), 'application/octet-stream'),
        category=category,
        uploaded_at=uploaded_at,
    )


def _bad_category(category: str, allowed) -> Result:
    return Result.fail(
        f"Unknown category '{category}'. Allowed: {', '.join(allowed)}",
        FAILURE_INVALID,
    )


# =============================================================================
# DOCUMENTS
# =============================================================================

def list_documents(category: Optional[str] = None) -> Result:
    """Library documents newest first, optionally for a single category."""
    if category is not None and category not in DOCUMENT_CATEGORIES:
        return _bad_category(category, DOCUMENT_CATEGORIES)

    categories = (category,) if category else DOCUMENT_CATEGORIES
    documents = []
    try:
        for cat in categories:
            for path in _category_files(config.DOCUMENTS_DIR, cat):
                if _extension(path) in MIME_TYPES:
                    documents.append(_describe_document(path, cat))
    except OSError as e:
        logger.error(f"Failed to scan document library: {e}")
        return Result.fail('Failed to fetch documents.')

    documents.sort(key=lambda d: d.uploaded_at, reverse=True)
    logger.debug(f"list_documents: {len(documents)} documents (category={category})")
    return Result.ok(documents)


def delete_document(category: str, doc_id: str) -> Result:
    """
    Remove the library file whose derived id is doc_id. An unknown id is a
    not-found failure; unlike database records, files are not deleted
    idempotently because the id is only meaningful while the file exists.
    """
    if category not in DOCUMENT_CATEGORIES:
        return _bad_category(category, DOCUMENT_CATEGORIES)

    try:
        for path in _category_files(config.DOCUMENTS_DIR, category):
            if _extension(path) not in MIME_TYPES:
                continue
            if _describe_document(path, category).id != doc_id:
                continue
            path.unlink()
            logger.info(f"Deleted document {doc_id} ({category}/{path.name})")
            bus.emit(EVENT_DOCUMENT_DELETED, {'category': category, 'document_id': doc_id, 'name': path.name})
            return Result.ok(message='Document deleted successfully')
    except OSError as e:
        logger.error(f"Failed to delete document {category}/{doc_id}: {e}")
        return Result.fail('Failed to delete document.')

    logger.warning(f"delete_document: {category}/{doc_id} not found")
    return Result.fail('Document not found', FAILURE_NOT_FOUND)


# =============================================================================
# GALLERY
# =============================================================================

def list_gallery_photos(category: Optional[str] = None) -> Result:
    """Gallery images newest first, optionally for a single category."""
    if category is not None and category not in GALLERY_CATEGORIES:
        return _bad_category(category, GALLERY_CATEGORIES)

    categories = (category,) if category else GALLERY_CATEGORIES
    photos = []
    try:
        for cat in categories:
            for path in _category_files(config.GALLERY_DIR, cat):
                if _extension(path) not in IMAGE_EXTENSIONS:
                    continue
                match = _PHOTO_NAME_RE.match(path.name)
                if match:
                    photo_id, uploaded_at = match.group(2), _from_millis(match.group(1))
                else:
                    photo_id, uploaded_at = path.stem, _mtime(path)
                url = f"/images/gallery/{cat}/{path.name}"
                photos.append(Photo(
                    id=f"{PHOTO_ID_PREFIX}{photo_id}",
                    name=path.stem,
                    url=url,
                    thumbnail_url=url,
                    category=cat,
                    uploaded_at=uploaded_at,
                ))
    except OSError as e:
        logger.error(f"Failed to scan photo gallery: {e}")
        return Result.fail('Failed to fetch photos.')

    photos.sort(key=lambda p: p.uploaded_at, reverse=True)
    logger.debug(f"list_gallery_photos: {len(photos)} photos (category={category})")
    return Result.ok(photos)

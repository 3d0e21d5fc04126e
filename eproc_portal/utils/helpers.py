# eproc_portal/utils/helpers.py

import logging
import re
import time
from typing import Iterable, Optional

from starlette.responses import Response

from eproc_portal.core.config import settings
from eproc_portal.models.auth import CookieUpdate

logger = logging.getLogger(__name__)

# --- Cookies ---

def apply_cookie_updates(response: Response, updates: Iterable[CookieUpdate]) -> None:
    """Writes (or expires, when max_age is 0) session cookies on a response."""
    for update in updates:
        if update.max_age <= 0:
            response.delete_cookie(update.name, path="/")
            continue
        response.set_cookie(
            update.name,
            update.value,
            max_age=update.max_age,
            path="/",
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )

# --- Text Processing ---

def slugify(text: Optional[str]) -> str:
    """
    Reduces a file name to lowercase letters, digits and single hyphens.

    >>> slugify("Pliego de Condiciones (v2)")
    'pliego-de-condiciones-v2'
    """
    if not text:
        return ""
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def timestamped_object_key(prefix: str, filename: str, extension: str = "pdf", now_ms: Optional[int] = None) -> str:
    """
    Builds a unique storage key: `<prefix>/<epoch-ms>-<slug>.<ext>`.

    Args:
        prefix: Folder inside the bucket (e.g. "rfps").
        filename: The original upload name; its extension is dropped.
        extension: Extension for the stored object.
        now_ms: Override for the timestamp (tests).
    """
    stem = re.sub(rf"\.{re.escape(extension)}$", "", filename or "", flags=re.IGNORECASE)
    slug = slugify(stem) or "document"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{prefix}/{stamp}-{slug}.{extension}"

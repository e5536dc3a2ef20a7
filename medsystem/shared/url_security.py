"""Link hygiene for URLs rendered back to the frontend (WhatsApp links, file links)"""

import logging
from typing import Optional
from urllib.parse import quote, urlparse

from .validators import only_digits

logger = logging.getLogger(__name__)

SAFE_SCHEMES = {"http", "https", "mailto", "tel", "blob"}
BLOCKED_PREFIXES = ("javascript:", "vbscript:", "data:")
WHATSAPP_BASE_URL = "https://wa.me/55"
# Characters encodeURIComponent leaves untouched on the browser side
URI_COMPONENT_SAFE = "!*'()"


def is_safe_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False

    normalized = url.strip().lower()

    if normalized.startswith(BLOCKED_PREFIXES):
        return False

    scheme = urlparse(normalized).scheme
    if not scheme:
        return True  # relative URL

    return scheme in SAFE_SCHEMES


def sanitize_url(url: Optional[str]) -> str:
    """Return the URL when it is safe to put in an href, otherwise '#'."""
    if is_safe_url(url):
        return url
    logger.warning(f"⚠️ Blocked potentially unsafe URL: {(url or '')[:50]}")
    return "#"


def create_whatsapp_url(phone: Optional[str], message: Optional[str] = None) -> str:
    """
    Build a wa.me link for a Brazilian number.

    Returns '#' when the phone has fewer than 10 digits.
    """
    digits = only_digits(phone)
    if len(digits) < 10:
        return "#"

    url = f"{WHATSAPP_BASE_URL}{digits}"
    if message:
        return f"{url}?text={quote(message, safe=URI_COMPONENT_SAFE)}"
    return url

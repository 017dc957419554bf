"""Shared utility functions."""
import math
import re
import uuid
from datetime import datetime, timezone
from urllib.parse import urlparse, urlunparse

SLUG_MAX_LENGTH = 50
WORDS_PER_MINUTE = 200


def generate_run_id() -> str:
    """Generate a unique aggregation run ID."""
    return f"run_{uuid.uuid4().hex[:12]}"


def generate_id(prefix: str) -> str:
    """Generate a unique document ID with the given prefix."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_url(url: str) -> str:
    """
    Canonicalize a URL for deduplication.

    Scheme and host are lowercased, the fragment is dropped and a trailing
    slash on the path is removed. Path and query keep their case.
    """
    parsed = urlparse(url.strip())
    path = parsed.path.rstrip("/")
    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        parsed.query,
        "",
    ))


def validate_url(url: str) -> bool:
    """Validate that a URL is properly formatted."""
    try:
        result = urlparse(url)
        return all([result.scheme in ('http', 'https'), result.netloc])
    except Exception:
        return False


def create_slug(title: str) -> str:
    """Build a URL slug from an article title."""
    slug = title.lower()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("- ")[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or "article"


def slug_candidate(base: str, attempt: int) -> str:
    """Return the slug to try on the given attempt (1 = the base slug itself)."""
    if attempt <= 1:
        return base
    suffix = f"-{attempt}"
    return base[:SLUG_MAX_LENGTH - len(suffix)].rstrip("-") + suffix


def calculate_read_time(content: str) -> int:
    """Estimated minutes to read content, never less than one."""
    word_count = len(content.split())
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))

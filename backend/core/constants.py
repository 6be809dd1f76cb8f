"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any rule that references one of these values should import it from here
instead of hardcoding.  Settings in ``REVIEW_WORKFLOW`` override the
defaults at runtime (see ``reviews.services.get_coordinator``).
"""

# ── Review workflow ────────────────────────────────────────────────
# Compare-and-swap attempts per update before a StorageConflict is
# reported to the caller.
DEFAULT_MAX_ATTEMPTS: int = 3

# Priority stamped on every review notification.
DEFAULT_NOTICE_PRIORITY: str = "important"

# ── Identifiers ────────────────────────────────────────────────────
# Notices are numbered N<YYYYmmddHHMMSS><NNN><hex>; case prefixes are
# declared per case type in ``reviews.domain.stages``.
NOTICE_ID_PREFIX: str = "N"

# Random hex characters appended to every notice ID (fits max_length=32).
NOTICE_ID_SUFFIX_LENGTH: int = 8

# Characters allowed in a case ID, both in URLs and in client-chosen IDs.
CASE_ID_PATTERN: str = r"[A-Za-z0-9_-]+"

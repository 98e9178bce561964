"""Assessment number generation for bankability scoring runs"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional

DEFAULT_PREFIX = "ABFI-BANK"
TOKEN_LENGTH = 10

_TOKEN_PATTERN = re.compile(r"^[A-Z0-9]{1,32}$")


def generate_assessment_number(
    now: Optional[datetime] = None,
    token: Optional[str] = None,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    """
    Build a human-readable assessment identifier.

    Format: ``{prefix}-{YYYY}-{TOKEN}``, e.g. ``ABFI-BANK-2026-3F9A0C71BE``.

    The token is 10 hex characters drawn from uuid4 (40 random bits), so two
    numbers generated back-to-back in the same process do not collide.
    Callers that need reproducible numbers (imports, tests) pass their own
    token.

    Args:
        now: Timestamp whose year is embedded (default: current UTC time)
        token: Caller-supplied disambiguator (upper-case alphanumeric)
        prefix: Identifier prefix

    Raises:
        ValueError: If the supplied token is not upper-case alphanumeric
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if token is None:
        token = uuid.uuid4().hex[:TOKEN_LENGTH].upper()
    elif not _TOKEN_PATTERN.match(token):
        raise ValueError(f"Assessment token must be 1-32 upper-case alphanumerics, got {token!r}")

    return f"{prefix}-{now.year}-{token}"

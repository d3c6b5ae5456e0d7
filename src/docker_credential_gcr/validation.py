"""Token usability checks shared by the token sources."""

from datetime import datetime, timedelta

from .consts import TOKEN_EXPIRY_SKEW_SECONDS
from .models import Token
from .utils import as_utc, utcnow

EXPIRY_SKEW = timedelta(seconds=TOKEN_EXPIRY_SKEW_SECONDS)


def is_valid_token(token: Token | None, now: datetime | None = None) -> bool:
    """Check that a token is non-empty and will not expire in the next 10 seconds.

    This is looser than google-auth's own refresh threshold, so nearly expired
    metadata server tokens are still accepted. A token without a known expiry
    is not usable.

    Args:
        token: Token to check; None is never valid.
        now: Reference time, defaults to the current UTC time.

    Returns:
        True if the token can be used right now.
    """
    if token is None or not token.value or token.expiry is None:
        return False

    now = as_utc(now) if now is not None else utcnow()
    # expiring exactly at now + skew is already too late
    return as_utc(token.expiry) > now + EXPIRY_SKEW


def is_live_oauth_token(token: Token | None, now: datetime | None = None) -> bool:
    """OAuth2 validity: like is_valid_token, but no expiry means it never expires."""
    if token is not None and token.value and token.expiry is None:
        return True
    return is_valid_token(token, now)

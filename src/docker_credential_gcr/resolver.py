"""Ordered multi-source token resolution."""

import logging
from collections.abc import Mapping, Sequence

from .exceptions import TokenSourceError, UnknownSourceKindError
from .models import TokenSourceKind
from .protocols import TokenSource

logger = logging.getLogger("docker-credential-gcr.resolver")


class TokenResolver:
    """Tries configured token sources in order; the first success wins.

    Stateless between calls, so one instance may be shared.
    """

    def __init__(self, sources: Mapping[TokenSourceKind, TokenSource]):
        """Initialize TokenResolver.

        Args:
            sources: One adapter per source kind.
        """
        self.sources = dict(sources)

    def resolve(self, ordered_sources: Sequence[str]) -> str | None:
        """Resolve a token from the first source that yields one.

        Args:
            ordered_sources: Configured source identifiers, in priority order.

        Returns:
            The token, or None if ``ordered_sources`` is empty.

        Raises:
            UnknownSourceKindError: As soon as an unrecognised identifier is
                reached; later sources are not attempted.
            TokenSourceError: The error of the last source, if all failed.
        """
        last_error: TokenSourceError | None = None

        for identifier in ordered_sources:
            kind = TokenSourceKind.parse(identifier)
            source = self.sources.get(kind)
            if source is None:
                raise UnknownSourceKindError(
                    identifier, context={"configured": sorted(self.sources)}
                )

            logger.debug(f"Trying token source '{identifier}'")
            try:
                token = source.resolve()
            except TokenSourceError as e:
                logger.debug(f"Token source '{identifier}' failed: {e.detail}")
                last_error = e
                continue

            logger.info(f"Token obtained from source '{identifier}'")
            return token

        if last_error is not None:
            raise last_error
        return None

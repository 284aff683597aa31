# pokematchup/errors.py
# Failures surfaced to callers. Unknown type names are not errors (skipped),
# and stale results are discarded, so neither has a class here.


class PokeAPIError(Exception):
    """Base class: one human-readable failure per failed operation."""


class NotFoundError(PokeAPIError):
    """Upstream has no record for the requested id/name (HTTP 404)."""

    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} found for '{key}'")


class UpstreamError(PokeAPIError):
    """Transport failure or non-404 HTTP error after retries."""


class MalformedResponseError(PokeAPIError):
    """Payload is missing a field a domain record cannot do without."""

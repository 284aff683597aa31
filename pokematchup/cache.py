# pokematchup/cache.py
# Session-lifetime memo for upstream records (append-only, never evicted)

from pokematchup import config
from pokematchup.logger import log_action

# --------------------------------------------------------------------------- #
# Kinds
# --------------------------------------------------------------------------- #

TYPE_LIST = "type_list"          # singleton
SPECIES_LIST = "species_list"    # singleton
SPECIES = "species"              # keyed by numeric id
POKEMON = "pokemon"              # keyed by variant name
MOVE = "move"                    # keyed by move name
EVOLUTION = "evolution"          # keyed by chain url

KINDS = (TYPE_LIST, SPECIES_LIST, SPECIES, POKEMON, MOVE, EVOLUTION)
SINGLETONS = (TYPE_LIST, SPECIES_LIST)

_MISSING = object()


class ResourceCache:
    """
    Memoizes normalized records by (kind, key). Upstream data is treated as
    immutable for the session, so there is no TTL and no invalidation.

    Concurrent misses for the same key are not deduplicated: both callers
    fetch and the last put wins, which is harmless for immutable data.
    """

    def __init__(self, verbose: bool | None = None):
        self._buckets = {k: {} for k in KINDS}
        self.verbose = config.VERBOSE_CACHE if verbose is None else bool(verbose)

    def _bucket(self, kind: str) -> dict:
        try:
            return self._buckets[kind]
        except KeyError:
            raise ValueError(f"unknown cache kind: {kind}") from None

    @staticmethod
    def _norm(kind, key):
        if kind in SINGLETONS:
            return None
        if kind in (POKEMON, MOVE):
            return str(key).lower()
        return key

    def get(self, kind: str, key=None, default=None):
        bucket = self._bucket(kind)
        value = bucket.get(self._norm(kind, key), _MISSING)
        if value is _MISSING:
            return default
        if self.verbose:
            log_action(f"CACHE HIT: {kind}" + ("" if key is None else f" {key}"))
        return value

    def put(self, kind: str, key, record):
        self._bucket(kind)[self._norm(kind, key)] = record
        return record

    def contains(self, kind: str, key=None) -> bool:
        return self._norm(kind, key) in self._bucket(kind)

    def get_or_fetch(self, kind: str, key, fetch_fn):
        """Return the cached record, or call fetch_fn() and remember its result."""
        value = self.get(kind, key, _MISSING)
        if value is not _MISSING:
            return value
        label = kind if key is None else f"{kind} {key}"
        log_action(f"CACHE MISS: {label} - Fetching from API")
        return self.put(kind, key, fetch_fn())

    def stats(self) -> dict:
        return {k: len(v) for k, v in self._buckets.items()}

    def set_verbose(self, on: bool):
        """Enable/disable verbose cache logs."""
        self.verbose = bool(on)

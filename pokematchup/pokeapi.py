# pokematchup/pokeapi.py
# PokeAPI access: shared HTTP session (retries + timeout), cache-first lookups,
# and batched fetches on a small thread pool.

import logging
from concurrent.futures import ThreadPoolExecutor

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pokematchup import config
from pokematchup import cache as kinds
from pokematchup.cache import ResourceCache
from pokematchup.errors import NotFoundError, PokeAPIError, UpstreamError
from pokematchup.evolution import resolve_evolution_neighbors
from pokematchup.logger import log_action
from pokematchup.models import MoveSummary
from pokematchup.normalize import (
    type_relations_from_raw, species_list_from_raw, species_from_raw,
    form_from_raw, move_from_raw, evolution_chain_from_raw,
    latest_version_group_moves,
)
from pokematchup.type_effectiveness import TYPES


def build_session(retries: int = config.HTTP_RETRIES, backoff: float = config.HTTP_BACKOFF) -> requests.Session:
    session = requests.Session()
    retry = Retry(total=retries, backoff_factor=backoff, status_forcelist=(429, 500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _key(id_or_name):
    return str(id_or_name).strip().lower()


class PokeAPIClient:
    """
    Everything the panels need from PokeAPI, already normalized.
    One instance (and one ResourceCache) per process.
    """

    def __init__(self, cache: ResourceCache | None = None, session=None,
                 base_url: str = config.API_BASE, timeout: float = config.HTTP_TIMEOUT,
                 max_workers: int = config.MAX_WORKERS):
        self.cache = cache if cache is not None else ResourceCache()
        self.session = session if session is not None else build_session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_workers = max_workers

    # ---- HTTP ------------------------------------------------------------ #

    def _json_fetch(self, url: str, kind: str, key):
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"Failed to fetch {kind} '{key}': {e}") from e
        if r.status_code == 404:
            raise NotFoundError(kind, key)
        try:
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            raise UpstreamError(f"Failed to fetch {kind} '{key}': {e}") from e

    def _get(self, path: str, kind: str, key):
        return self._json_fetch(f"{self.base_url}/{path}", kind, key)

    def _batch(self, fn, items) -> list:
        """fn over items concurrently; results come back in input order."""
        items = list(items)
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as pool:
            return list(pool.map(fn, items))

    # ---- Types ----------------------------------------------------------- #

    def list_all_type_relations(self) -> list:
        """The 18 canonical types with their defensive relations, by name."""
        def fetch():
            data = self._get("type?limit=100", "type list", "all")
            wanted = [t for t in data.get("results", []) if t.get("name") in TYPES]
            raws = self._batch(lambda t: self._json_fetch(t["url"], "type", t["name"]), wanted)
            relations = sorted((type_relations_from_raw(r) for r in raws), key=lambda r: r.name)
            log_action(f"Primed type relations ({len(relations)})")
            return relations
        return self.cache.get_or_fetch(kinds.TYPE_LIST, None, fetch)

    # ---- Species --------------------------------------------------------- #

    def list_all_species(self) -> list:
        def fetch():
            data = self._get("pokemon-species?limit=20000", "species list", "all")
            items = species_list_from_raw(data)
            log_action(f"Primed species list ({len(items)})")
            return items
        return self.cache.get_or_fetch(kinds.SPECIES_LIST, None, fetch)

    def resolve_species(self, id_or_name):
        key = _key(id_or_name)
        if key.isdigit() and self.cache.contains(kinds.SPECIES, int(key)):
            return self.cache.get(kinds.SPECIES, int(key))
        species = species_from_raw(self._get(f"pokemon-species/{key}/", "species", key))
        return self.cache.put(kinds.SPECIES, species.id, species)

    # ---- Pokemon forms --------------------------------------------------- #

    def resolve_form(self, variant_name):
        key = _key(variant_name)
        return self.cache.get_or_fetch(
            kinds.POKEMON, key,
            lambda: form_from_raw(self._get(f"pokemon/{key}/", "pokemon", key)),
        )

    # ---- Evolution ------------------------------------------------------- #

    def fetch_evolution_chain(self, url: str):
        return self.cache.get_or_fetch(
            kinds.EVOLUTION, url,
            lambda: evolution_chain_from_raw(self._json_fetch(url, "evolution chain", url)),
        )

    def resolve_evolution(self, species):
        """Species -> EvolutionNeighbors (empty when it has no chain)."""
        if not species.evolution_chain_url:
            return resolve_evolution_neighbors(None, species.name)
        chain = self.fetch_evolution_chain(species.evolution_chain_url)
        return resolve_evolution_neighbors(chain, species.name)

    # ---- Moves ----------------------------------------------------------- #

    def fetch_move(self, move_name):
        key = _key(move_name)
        return self.cache.get_or_fetch(
            kinds.MOVE, key,
            lambda: move_from_raw(self._get(f"move/{key}/", "move", key)),
        )

    def _move_summary(self, move_name) -> MoveSummary:
        try:
            return self.fetch_move(move_name).summary()
        except PokeAPIError as e:
            log_action(f"move {move_name} unavailable, treating as status: {e}", logging.WARNING)
            return MoveSummary(move_name, None, "normal")

    def load_moves(self, form) -> list:
        """Move summaries for the newest version group the form appears in, learn order."""
        names = latest_version_group_moves(form.moves)
        return self._batch(self._move_summary, names)

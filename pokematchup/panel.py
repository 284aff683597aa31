# pokematchup/panel.py
# Two side-by-side selection panels. Each selection gets a token; results
# that come back for an older token are dropped instead of applied.

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from pokematchup.errors import PokeAPIError
from pokematchup.logger import log_action
from pokematchup.models import to_jsonable
from pokematchup.normalize import pick_variant, labelize
from pokematchup.type_effectiveness import compute_type_effectiveness, rank_moves, summarize


class PanelState:
    """Selection state for one side. Species, form and moves fail independently."""

    def __init__(self, client, side: str = "left"):
        self.client = client
        self.side = side
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()
        self.active_token = 0
        self._reset()

    def _reset(self):
        self.species = None
        self.variants = []
        self.selected_variant = None
        self.evolution = None
        self.form = None
        self.moves = []
        self.species_error = None
        self.form_error = None
        self.moves_error = None

    def _reset_form(self):
        self.form = None
        self.moves = []
        self.form_error = None
        self.moves_error = None

    # ---- tokens ---------------------------------------------------------- #

    def _issue(self, reset=None) -> int:
        """Take a new token and clear the state it owns in one locked step."""
        with self._lock:
            self.active_token = next(self._tokens)
            if reset:
                reset()
            return self.active_token

    def is_current(self, token: int) -> bool:
        return token == self.active_token

    def _apply(self, token: int, what: str, **fields) -> bool:
        """Set fields only while token is still the active one."""
        with self._lock:
            active = self.active_token
            if token == active:
                for name, value in fields.items():
                    setattr(self, name, value)
                return True
        log_action(f"[{self.side}] dropped stale {what} (token {token}, active {active})")
        return False

    # ---- selection flows ------------------------------------------------- #

    def clear(self) -> int:
        return self._issue(self._reset)

    def select(self, species_key, query_hint: str | None = None) -> int:
        """Load a species, pick its form (regional hint aware), then the form itself."""
        token = self._issue(self._reset)
        try:
            species = self.client.resolve_species(species_key)
        except PokeAPIError as e:
            if self._apply(token, "species error", species_error=str(e)):
                log_action(f"[{self.side}] species load failed: {e}", logging.WARNING)
            return token
        if not self._apply(token, f"species {species.name}",
                           species=species, variants=list(species.varieties)):
            return token

        initial = pick_variant(species.varieties, query_hint if query_hint else species.name)

        try:
            evolution = self.client.resolve_evolution(species)
        except PokeAPIError as e:
            evolution = None
            self._apply(token, "evolution error", species_error=str(e))
        if not self._apply(token, "evolution", evolution=evolution):
            return token

        if initial:
            self._load_variant(token, initial)
        return token

    def select_evolution(self, species_name: str) -> int:
        """Jump to a previous/next evolution by species name."""
        return self.select(species_name)

    def select_variant(self, variant_name: str) -> int:
        token = self._issue(self._reset_form)
        self._load_variant(token, variant_name)
        return token

    def _load_variant(self, token: int, variant_name: str):
        if not self._apply(token, f"variant {variant_name}", selected_variant=variant_name):
            return
        try:
            form = self.client.resolve_form(variant_name)
        except PokeAPIError as e:
            if self._apply(token, "form error", form_error=str(e)):
                log_action(f"[{self.side}] form load failed: {e}", logging.WARNING)
            return
        if not self._apply(token, f"form {form.name}", form=form):
            return

        try:
            moves = self.client.load_moves(form)
        except PokeAPIError as e:
            self._apply(token, "moves error", moves_error=str(e), moves=[])
            return
        self._apply(token, f"moves for {form.name}", moves=moves)

    # ---- derived --------------------------------------------------------- #

    @property
    def defending_types(self) -> list:
        return list(self.form.types) if self.form else []

    def ranked_moves(self, opponent_multipliers=None) -> list:
        return rank_moves(self.moves, opponent_multipliers)

    def to_dict(self, type_relations, opponent_types=None, types_error=None) -> dict:
        """
        type_relations=None means the type chart could not be loaded: the
        form is still reported, without multipliers, and moves keep learn order.
        """
        have_chart = type_relations is not None
        multipliers = (compute_type_effectiveness(self.defending_types, type_relations)
                       if self.form and have_chart else None)
        opponent = (compute_type_effectiveness(opponent_types, type_relations)
                    if opponent_types and have_chart else None)
        out = {
            "side": self.side,
            "species": to_jsonable(self.species) if self.species else None,
            "selected_variant": self.selected_variant,
            "evolution": to_jsonable(self.evolution) if self.evolution else None,
            "form": None,
            "moves": [to_jsonable(m) for m in self.ranked_moves(opponent)],
            "errors": {
                "species": self.species_error,
                "form": self.form_error,
                "moves": self.moves_error,
                "types": types_error,
            },
        }
        if self.form:
            buckets = (summarize(multipliers) if multipliers is not None else
                       dict.fromkeys(("weaknesses", "resistances", "immunities", "neutral")))
            out["form"] = {
                "id": self.form.id,
                "name": self.form.name,
                "types": list(self.form.types),
                "artwork": self.form.artwork,
                "stats": [{"name": s.name, "label": labelize(s.name), "value": s.value}
                          for s in self.form.stats],
                "multipliers": multipliers,
                **buckets,
            }
        return out


class Matchup:
    """Left and right panels, each ranking its moves against the other's types."""

    def __init__(self, client):
        self.client = client
        self.left = PanelState(client, "left")
        self.right = PanelState(client, "right")

    def panel(self, side: str) -> PanelState:
        if side not in ("left", "right"):
            raise ValueError(f"unknown side: {side}")
        return self.left if side == "left" else self.right

    def opponent_of(self, side: str) -> PanelState:
        return self.right if side == "left" else self.left

    def load(self, left=None, right=None, left_hint=None, right_hint=None,
             left_form=None, right_form=None):
        """Run both selection flows side by side; they share nothing but the cache."""
        def run(panel, key, hint, form):
            if key:
                panel.select(key, hint)
                if form and panel.selected_variant != form:
                    panel.select_variant(form)
            elif form:
                panel.select_variant(form)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(run, self.left, left, left_hint, left_form),
                pool.submit(run, self.right, right, right_hint, right_form),
            ]
            for f in futures:
                f.result()
        return self

    def clear(self):
        self.left.clear()
        self.right.clear()

    def to_dict(self) -> dict:
        try:
            relations, types_error = self.client.list_all_type_relations(), None
        except PokeAPIError as e:
            relations, types_error = None, str(e)
            log_action(f"type chart unavailable: {e}", logging.WARNING)
        return {
            side: self.panel(side).to_dict(relations, self.opponent_of(side).defending_types,
                                           types_error)
            for side in ("left", "right")
        }

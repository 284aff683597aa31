# pokematchup/normalize.py
# Raw PokeAPI payloads -> domain records. This is the only module that
# touches the nested upstream shapes.

import functools
import re
from typing import Optional

from pokematchup.errors import MalformedResponseError
from pokematchup.models import (
    TypeRelations, SpeciesListItem, Variant, Species, Stat, MoveLearn,
    CreatureForm, MoveDetail, EvolutionNode,
)
from pokematchup.type_effectiveness import TYPES

_ID_RE = re.compile(r"/(\d+)/?$")

# checked in this order against the query and the form label; last match wins
REGIONAL_QUALIFIERS = ["hisui", "alola", "galar", "paldea"]

# preferred artwork, first present wins
ARTWORK_PRIORITY = ["home", "showdown", "official-artwork"]


def extract_id_from_url(url) -> int:
    """'.../pokemon-species/25/' -> 25; 0 when there is no trailing id."""
    m = _ID_RE.search(url or "")
    return int(m.group(1)) if m else 0


def _parse_step(what: str):
    """Re-raise shape errors from a parser as MalformedResponseError."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(raw, *args, **kwargs):
            try:
                return fn(raw, *args, **kwargs)
            except (TypeError, ValueError, AttributeError, KeyError) as e:
                raise MalformedResponseError(f"bad {what} payload: {e}") from e
        return wrapper
    return decorator


def _require(raw: dict, key: str, what: str):
    if not isinstance(raw, dict) or raw.get(key) in (None, ""):
        raise MalformedResponseError(f"{what} payload has no '{key}'")
    return raw[key]


def _names(entries) -> set:
    out = set()
    for e in entries or []:
        n = e.get("name") if isinstance(e, dict) else e
        if n:
            out.add(n)
    return out


def labelize(s: str) -> str:
    """helper: consistent labels for stats/types"""
    s = (s or "").replace("-", " ")
    overrides = {"hp": "HP", "sp atk": "Sp. Atk", "sp def": "Sp. Def",
                 "special attack": "Sp. Atk", "special defense": "Sp. Def"}
    t = s.strip().title()
    return overrides.get(s.strip().lower(), t)


def variant_label(name: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), (name or "").replace("-", " "))


# --------------------------------------------------------------------------- #
# Types
# --------------------------------------------------------------------------- #

@_parse_step("type")
def type_relations_from_raw(raw: dict) -> TypeRelations:
    """
    Keep only canonical attacker names. A pair listed in more than one
    bucket keeps the strongest claim: no-damage, then double, then half.
    """
    name = _require(raw, "name", "type")
    rel = raw.get("damage_relations") or {}
    valid = set(TYPES)
    no = _names(rel.get("no_damage_from")) & valid
    double = (_names(rel.get("double_damage_from")) & valid) - no
    half = (_names(rel.get("half_damage_from")) & valid) - no - double
    return TypeRelations(name, frozenset(double), frozenset(half), frozenset(no))


# --------------------------------------------------------------------------- #
# Species
# --------------------------------------------------------------------------- #

@_parse_step("species list")
def species_list_from_raw(raw: dict) -> list[SpeciesListItem]:
    items = []
    for r in (raw or {}).get("results", []):
        sid = extract_id_from_url(r.get("url"))
        if sid > 0 and r.get("name"):
            items.append(SpeciesListItem(sid, r["name"]))
    items.sort(key=lambda s: s.id)
    return items


def order_variants(variants) -> list[Variant]:
    """Default form first, the rest alphabetically by label."""
    return sorted(variants, key=lambda v: (not v.is_default, v.label.casefold(), v.label))


@_parse_step("species")
def species_from_raw(raw: dict) -> Species:
    sid = _require(raw, "id", "species")
    name = _require(raw, "name", "species")
    variants = []
    for v in raw.get("varieties") or []:
        pname = (v.get("pokemon") or {}).get("name")
        if not pname:
            continue
        variants.append(Variant(pname, variant_label(pname), bool(v.get("is_default"))))
    chain_url = (raw.get("evolution_chain") or {}).get("url")
    return Species(int(sid), name, tuple(order_variants(variants)), chain_url or None)


def pick_variant(variants, hint: str = "") -> Optional[str]:
    """
    Auto-select a form: the default one, unless the search text names a
    regional form the species has. Every qualifier is checked, so with
    several in the text the last one checked wins.
    """
    if not variants:
        return None
    default = next((v for v in variants if v.is_default), variants[0])
    chosen = default.name
    hint = (hint or "").lower()
    for qualifier in REGIONAL_QUALIFIERS:
        if qualifier in hint:
            match = next((v for v in variants if qualifier in v.label.lower()), None)
            if match:
                chosen = match.name
    return chosen


def search_species(query: str, species_list) -> list[SpeciesListItem]:
    """Numeric query: id prefix match. Otherwise substring match on name."""
    q = (query or "").strip().lower()
    if not q:
        return []
    if q.isdigit():
        prefix = str(int(q))
        return [s for s in species_list if str(s.id).startswith(prefix)]
    return [s for s in species_list if q in s.name]


# --------------------------------------------------------------------------- #
# Pokemon forms
# --------------------------------------------------------------------------- #

def artwork_from_raw(sprites: dict) -> Optional[str]:
    sprites = sprites or {}
    other = sprites.get("other") or {}
    for key in ARTWORK_PRIORITY:
        url = (other.get(key) or {}).get("front_default")
        if url:
            return url
    return sprites.get("front_default") or None


@_parse_step("move list")
def move_list_from_raw(raw: dict) -> list[MoveLearn]:
    """One (move, version group id) pair per learn entry, in source order."""
    out = []
    for m in (raw or {}).get("moves") or []:
        mname = (m.get("move") or {}).get("name")
        if not mname:
            continue
        for d in m.get("version_group_details") or []:
            vg = extract_id_from_url((d.get("version_group") or {}).get("url"))
            out.append(MoveLearn(mname, vg))
    return out


@_parse_step("pokemon")
def form_from_raw(raw: dict) -> CreatureForm:
    pid = _require(raw, "id", "pokemon")
    name = _require(raw, "name", "pokemon")
    slots = sorted(raw.get("types") or [], key=lambda t: t.get("slot", 0))
    types = tuple(t["type"]["name"] for t in slots if (t.get("type") or {}).get("name"))
    stats = tuple(
        Stat(s["stat"]["name"], int(s.get("base_stat") or 0))
        for s in raw.get("stats") or []
        if (s.get("stat") or {}).get("name")
    )
    return CreatureForm(
        id=int(pid),
        name=name,
        types=types,
        stats=stats,
        artwork=artwork_from_raw(raw.get("sprites")),
        moves=tuple(move_list_from_raw(raw)),
    )


def latest_version_group_moves(learns) -> list[str]:
    """Names of moves learnable in the newest version group seen, learn order."""
    latest = max((m.version_group_id for m in learns), default=0)
    seen, names = set(), []
    for m in learns:
        if m.version_group_id == latest and m.name not in seen:
            seen.add(m.name)
            names.append(m.name)
    return names


# --------------------------------------------------------------------------- #
# Moves
# --------------------------------------------------------------------------- #

def _english(entries, field_name):
    for e in entries or []:
        if (e.get("language") or {}).get("name") == "en" and e.get(field_name):
            return e[field_name]
    return None


@_parse_step("move")
def move_from_raw(raw: dict) -> MoveDetail:
    name = _require(raw, "name", "move")
    power = raw.get("power")
    desc = _english(raw.get("effect_entries"), "short_effect")
    if not desc:
        flavor = _english(raw.get("flavor_text_entries"), "flavor_text")
        desc = re.sub(r"\s+", " ", flavor).strip() if flavor else "—"
    return MoveDetail(
        id=int(raw.get("id") or 0),
        name=name,
        power=int(power) if power is not None else None,
        type=(raw.get("type") or {}).get("name") or "normal",
        description=desc,
    )


# --------------------------------------------------------------------------- #
# Evolution chains
# --------------------------------------------------------------------------- #

@_parse_step("evolution chain")
def evolution_chain_from_raw(raw: dict) -> EvolutionNode:
    """Chain payload -> EvolutionNode tree (built iteratively)."""
    root_raw = _require(raw, "chain", "evolution chain")

    def species_name(link):
        return ((link or {}).get("species") or {}).get("name") or ""

    # post-order so children exist before their parent node is frozen
    order, stack = [], [root_raw]
    while stack:
        link = stack.pop()
        order.append(link)
        stack.extend(link.get("evolves_to") or [])
    built = {}
    for link in reversed(order):
        kids = tuple(built[id(c)] for c in link.get("evolves_to") or [] if id(c) in built)
        built[id(link)] = EvolutionNode(species_name(link), kids)
    return built[id(root_raw)]

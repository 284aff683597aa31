"""Shared fixtures: a canned PokeAPI served by a fake requests session."""
import threading

import pytest
import requests

from pokematchup.cache import ResourceCache
from pokematchup.normalize import type_relations_from_raw
from pokematchup.pokeapi import PokeAPIClient
from pokematchup.type_effectiveness import TYPES

BASE = "https://pokeapi.test/api/v2"

# attacker -> defender -> multiplier (only non-neutral entries)
ATTACK_CHART = {
    "normal":   {"rock": .5, "ghost": 0, "steel": .5},
    "fire":     {"fire": .5, "water": .5, "grass": 2, "ice": 2, "bug": 2, "rock": .5, "dragon": .5, "steel": 2},
    "water":    {"fire": 2, "water": .5, "grass": .5, "ground": 2, "rock": 2, "dragon": .5},
    "electric": {"water": 2, "electric": .5, "grass": .5, "ground": 0, "flying": 2, "dragon": .5},
    "grass":    {"fire": .5, "water": 2, "grass": .5, "poison": .5, "ground": 2, "flying": .5, "bug": .5,
                 "rock": 2, "dragon": .5, "steel": .5},
    "ice":      {"fire": .5, "water": .5, "grass": 2, "ice": .5, "ground": 2, "flying": 2, "dragon": 2, "steel": .5},
    "fighting": {"normal": 2, "ice": 2, "poison": .5, "flying": .5, "psychic": .5, "bug": .5, "rock": 2,
                 "ghost": 0, "dark": 2, "steel": 2, "fairy": .5},
    "poison":   {"grass": 2, "poison": .5, "ground": .5, "rock": .5, "ghost": .5, "steel": 0, "fairy": 2},
    "ground":   {"fire": 2, "electric": 2, "grass": .5, "poison": 2, "flying": 0, "bug": .5, "rock": 2, "steel": 2},
    "flying":   {"electric": .5, "grass": 2, "fighting": 2, "bug": 2, "rock": .5, "steel": .5},
    "psychic":  {"fighting": 2, "poison": 2, "psychic": .5, "dark": 0, "steel": .5},
    "bug":      {"fire": .5, "grass": 2, "fighting": .5, "poison": .5, "flying": .5, "psychic": 2, "ghost": .5,
                 "dark": 2, "steel": .5, "fairy": .5},
    "rock":     {"fire": 2, "ice": 2, "fighting": .5, "ground": .5, "flying": 2, "bug": 2, "steel": .5},
    "ghost":    {"normal": 0, "psychic": 2, "ghost": 2, "dark": .5},
    "dragon":   {"dragon": 2, "steel": .5, "fairy": 0},
    "dark":     {"fighting": .5, "psychic": 2, "ghost": 2, "dark": .5, "fairy": .5},
    "steel":    {"fire": .5, "water": .5, "electric": .5, "ice": 2, "rock": 2, "steel": .5, "fairy": 2},
    "fairy":    {"fire": .5, "fighting": 2, "poison": .5, "dragon": 2, "dark": 2, "steel": .5},
}


def ref(kind, name, ident):
    return {"name": name, "url": f"{BASE}/{kind}/{ident}/"}


def type_payload(defender):
    def attackers(mult):
        return [ref("type", a, TYPES.index(a) + 1) for a in TYPES
                if ATTACK_CHART[a].get(defender, 1) == mult]
    return {
        "id": TYPES.index(defender) + 1,
        "name": defender,
        "damage_relations": {
            "double_damage_from": attackers(2),
            "half_damage_from": attackers(.5),
            "no_damage_from": attackers(0),
        },
    }


def species_payload(sid, name, varieties, chain_id=None):
    return {
        "id": sid,
        "name": name,
        "varieties": [{"is_default": d, "pokemon": ref("pokemon", v, 0)} for v, d in varieties],
        "evolution_chain": {"url": f"{BASE}/evolution-chain/{chain_id}/"} if chain_id else None,
    }


def pokemon_payload(pid, name, types, moves, sprites=None):
    """types: list of (slot, name); moves: list of (move, [version group ids])"""
    return {
        "id": pid,
        "name": name,
        "types": [{"slot": s, "type": ref("type", t, TYPES.index(t) + 1)} for s, t in types],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": ref("stat", "hp", 1)},
            {"base_stat": 65, "effort": 1, "stat": ref("stat", "special-attack", 4)},
        ],
        "sprites": sprites or {"front_default": f"https://img.test/{pid}.png", "other": {}},
        "moves": [
            {"move": ref("move", m, 0),
             "version_group_details": [
                 {"level_learned_at": 1,
                  "move_learn_method": ref("move-learn-method", "level-up", 1),
                  "version_group": ref("version-group", f"vg{vg}", vg)}
                 for vg in vgs
             ]}
            for m, vgs in moves
        ],
    }


def move_payload(mid, name, power, mtype, short_effect=None):
    return {
        "id": mid,
        "name": name,
        "power": power,
        "type": ref("type", mtype, TYPES.index(mtype) + 1),
        "effect_entries": ([{"effect": short_effect, "short_effect": short_effect,
                             "language": ref("language", "en", 9)}] if short_effect else []),
        "flavor_text_entries": [],
    }


def chain_payload(cid, link):
    return {"id": cid, "chain": link}


def link(name, *children):
    return {"species": ref("pokemon-species", name, 0), "evolves_to": list(children)}


def build_routes():
    routes = {}
    type_results = [ref("type", t, i + 1) for i, t in enumerate(TYPES)]
    type_results += [ref("type", "stellar", 19), ref("type", "unknown", 10001)]
    routes[f"{BASE}/type?limit=100"] = {"count": 20, "results": type_results}
    for i, t in enumerate(TYPES):
        routes[f"{BASE}/type/{i + 1}/"] = type_payload(t)

    routes[f"{BASE}/pokemon-species?limit=20000"] = {"results": [
        ref("pokemon-species", "raichu", 26),
        ref("pokemon-species", "bulbasaur", 1),
        ref("pokemon-species", "pikachu", 25),
        ref("pokemon-species", "ivysaur", 2),
        {"name": "missingno", "url": f"{BASE}/pokemon-species/"},
        ref("pokemon-species", "charmander", 4),
    ]}

    species = [
        species_payload(1, "bulbasaur", [("bulbasaur", True)], chain_id=1),
        species_payload(2, "ivysaur", [("ivysaur", True)], chain_id=1),
        species_payload(4, "charmander", [("charmander", True)]),
        species_payload(26, "raichu", [("raichu-alola", False), ("raichu", True)], chain_id=10),
    ]
    for sp in species:
        routes[f"{BASE}/pokemon-species/{sp['id']}/"] = sp
        routes[f"{BASE}/pokemon-species/{sp['name']}/"] = sp

    routes[f"{BASE}/evolution-chain/1/"] = chain_payload(
        1, link("bulbasaur", link("ivysaur", link("venusaur"))))
    routes[f"{BASE}/evolution-chain/10/"] = chain_payload(
        10, link("pichu", link("pikachu", link("raichu"))))

    pokemon = [
        pokemon_payload(1, "bulbasaur", [(2, "poison"), (1, "grass")], [
            ("tackle", [1, 20]),
            ("growl", [20]),
            ("razor-leaf", [5]),
            ("vine-whip", [20]),
            ("broken-move", [20]),
        ], sprites={"front_default": "https://img.test/1.png",
                    "other": {"official-artwork": {"front_default": "https://img.test/art/1.png"},
                              "home": {"front_default": None}}}),
        pokemon_payload(2, "ivysaur", [(1, "grass"), (2, "poison")], [("vine-whip", [20])]),
        pokemon_payload(4, "charmander", [(1, "fire")], [("scratch", [20]), ("ember", [20])]),
        pokemon_payload(26, "raichu", [(1, "electric")], [("thunderbolt", [20])]),
        pokemon_payload(10100, "raichu-alola", [(1, "electric"), (2, "psychic")],
                        [("thunderbolt", [20]), ("psychic", [20])]),
    ]
    for p in pokemon:
        routes[f"{BASE}/pokemon/{p['name']}/"] = p

    for m in [
        move_payload(33, "tackle", 40, "normal", "Inflicts regular damage."),
        move_payload(45, "growl", None, "normal", "Lowers the target's Attack by one stage."),
        move_payload(22, "vine-whip", 45, "grass"),
        move_payload(75, "razor-leaf", 55, "grass"),
        move_payload(10, "scratch", 40, "normal"),
        move_payload(52, "ember", 40, "fire"),
        move_payload(85, "thunderbolt", 90, "electric"),
        move_payload(94, "psychic", 90, "psychic"),
    ]:
        routes[f"{BASE}/move/{m['name']}/"] = m

    routes[f"{BASE}/move/broken-move/"] = 500
    return routes


class FakeResponse:
    def __init__(self, url, status_code, payload=None):
        self.url = url
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}", response=self)

    def json(self):
        return self._payload


class FakeSession:
    """Stands in for requests.Session; unknown URLs answer 404."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
        body = self.routes.get(url)
        if body is None:
            return FakeResponse(url, 404)
        if isinstance(body, int):
            return FakeResponse(url, body)
        return FakeResponse(url, 200, body)

    def count(self, url):
        return self.calls.count(url)


@pytest.fixture
def routes():
    return build_routes()


@pytest.fixture
def session(routes):
    return FakeSession(routes)


@pytest.fixture
def client(session):
    return PokeAPIClient(ResourceCache(), session=session, base_url=BASE, max_workers=4)


@pytest.fixture(scope="session")
def relations():
    return [type_relations_from_raw(type_payload(t)) for t in TYPES]

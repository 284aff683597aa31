# pokematchup/type_effectiveness.py
# Pure type math: no HTTP, no cache. Callers pass the relations in.
from typing import Dict, Iterable, List, Optional, Tuple

TYPES = [
    "normal","fire","water","electric","grass","ice","fighting","poison","ground",
    "flying","psychic","bug","rock","ghost","dragon","dark","steel","fairy"
]

MultiplierMap = Dict[str, float]


def compute_type_effectiveness(defending_types: Iterable[str], all_type_relations) -> MultiplierMap:
    """incoming attack type -> multiplier vs a creature with these defending types"""
    by_name = {r.name: r for r in all_type_relations or []}
    defense = {atk: 1.0 for atk in TYPES}
    for dtype in defending_types or []:
        rel = by_name.get(dtype)
        if rel is None:
            continue  # unknown / missing relations count as neutral
        for atk in TYPES:
            if atk in rel.no_damage_from:
                defense[atk] *= 0.0
            elif atk in rel.double_damage_from:
                defense[atk] *= 2.0
            elif atk in rel.half_damage_from:
                defense[atk] *= 0.5
    return defense


def _entries(multipliers: MultiplierMap) -> List[Tuple[str, float]]:
    return [(t, float(multipliers.get(t, 1.0))) for t in TYPES]


def weaknesses(multipliers: MultiplierMap) -> List[Tuple[str, float]]:
    """multiplier > 1, strongest first, then by name"""
    out = [(t, m) for t, m in _entries(multipliers) if m > 1]
    return sorted(out, key=lambda x: (-x[1], x[0]))


def resistances(multipliers: MultiplierMap) -> List[Tuple[str, float]]:
    """0 < multiplier < 1, strongest resistance first, then by name"""
    out = [(t, m) for t, m in _entries(multipliers) if 0 < m < 1]
    return sorted(out, key=lambda x: (x[1], x[0]))


def immunities(multipliers: MultiplierMap) -> List[Tuple[str, float]]:
    return sorted((t, m) for t, m in _entries(multipliers) if m == 0)


def neutral(multipliers: MultiplierMap) -> List[str]:
    return sorted(t for t, m in _entries(multipliers) if m == 1)


def summarize(multipliers: MultiplierMap) -> Dict[str, list]:
    """Buckets as JSON-friendly lists of {type, multiplier}."""
    def rows(pairs):
        return [{"type": t, "multiplier": m} for t, m in pairs]
    return {
        "weaknesses": rows(weaknesses(multipliers)),
        "resistances": rows(resistances(multipliers)),
        "immunities": rows(immunities(multipliers)),
        "neutral": neutral(multipliers),
    }


def move_score(move, multipliers: MultiplierMap) -> float:
    return (move.power or 0) * multipliers.get(move.type, 1.0)


def rank_moves(moves, opponent_multipliers: Optional[MultiplierMap] = None) -> list:
    """
    Best moves against the opponent first: score = power * multiplier,
    then higher raw power (status moves count as -1), then name.
    Without an opponent the input (learn) order is kept.
    """
    moves = list(moves or [])
    if opponent_multipliers is None:
        return moves

    def key(mv):
        power = mv.power if mv.power is not None else -1
        return (-move_score(mv, opponent_multipliers), -power, mv.name)

    return sorted(moves, key=key)

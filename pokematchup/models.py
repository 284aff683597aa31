# pokematchup/models.py
# Flat domain records produced by normalize.py; nothing raw gets past it

from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass(frozen=True)
class TypeRelations:
    """Defensive relations of one type: which attackers hit it for 2x / 0.5x / 0x."""
    name: str
    double_damage_from: frozenset = frozenset()
    half_damage_from: frozenset = frozenset()
    no_damage_from: frozenset = frozenset()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "double_damage_from": sorted(self.double_damage_from),
            "half_damage_from": sorted(self.half_damage_from),
            "no_damage_from": sorted(self.no_damage_from),
        }


@dataclass(frozen=True)
class SpeciesListItem:
    id: int
    name: str


@dataclass(frozen=True)
class Variant:
    name: str            # pokemon resource name, e.g. "raichu-alola"
    label: str           # "Raichu Alola"
    is_default: bool = False


@dataclass(frozen=True)
class Species:
    id: int
    name: str
    varieties: tuple = ()
    evolution_chain_url: Optional[str] = None


@dataclass(frozen=True)
class Stat:
    name: str
    value: int


@dataclass(frozen=True)
class MoveLearn:
    name: str
    version_group_id: int


@dataclass(frozen=True)
class CreatureForm:
    id: int
    name: str
    types: tuple            # 1-2 type names in slot order
    stats: tuple = ()
    artwork: Optional[str] = None
    moves: tuple = ()       # MoveLearn entries, source order


@dataclass(frozen=True)
class MoveSummary:
    name: str
    power: Optional[int]    # None = status move
    type: str


@dataclass(frozen=True)
class MoveDetail:
    id: int
    name: str
    power: Optional[int]
    type: str
    description: str = "—"

    def summary(self) -> MoveSummary:
        return MoveSummary(self.name, self.power, self.type)


@dataclass(frozen=True)
class EvolutionNode:
    species: str
    evolves_to: tuple = ()


@dataclass(frozen=True)
class EvolutionNeighbors:
    previous: list = field(default_factory=list)
    next: list = field(default_factory=list)


def to_jsonable(record):
    """dataclass (or list of them) -> plain dict/list for jsonify."""
    if isinstance(record, (list, tuple)):
        return [to_jsonable(r) for r in record]
    if hasattr(record, "to_dict"):
        return record.to_dict()
    return asdict(record)

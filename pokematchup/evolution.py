# pokematchup/evolution.py
# Immediate neighbors of a species inside one evolution chain tree

from pokematchup.models import EvolutionNeighbors


def build_lookups(root):
    """One walk over the chain -> (parents_by_name, children_by_name)."""
    parents, children = {}, {}
    if root is None:
        return parents, children
    seen = set()
    stack = [(root, None)]
    while stack:
        node, parent = stack.pop()
        if id(node) in seen:
            continue  # malformed data could link a node twice
        seen.add(id(node))
        if parent is not None:
            parents.setdefault(node.species, []).append(parent.species)
            children.setdefault(parent.species, []).append(node.species)
        # reversed so siblings come out in source order
        for child in reversed(node.evolves_to):
            stack.append((child, node))
    return parents, children


def resolve_evolution_neighbors(chain, species_name: str) -> EvolutionNeighbors:
    parents, children = build_lookups(chain)
    return EvolutionNeighbors(
        previous=list(parents.get(species_name, [])),
        next=list(children.get(species_name, [])),
    )

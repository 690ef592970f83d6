"""
Content fingerprints and molecular formulas.

Two kinds of key are produced here:

- Structure fingerprints, ``"<formula>:<hash>"``, where the hash is the
  Weisfeiler-Lehman hash of the bond graph labelled with element symbols and
  bond orders. The hash only sees topology and labels, so it is unchanged by
  any renumbering of atoms or bonds and by moving the structure around.
  It is not a canonical form: ``same_structure`` settles collisions, and the
  catalogue suffixes ``:1``, ``:2`` ... onto a key already held by a
  different structure.
- Template fingerprints, a canonical join of sorted
  ``role:reference:threshold:count`` tuples. Templates that declare the same
  requirements collide no matter how their roles are ordered.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import networkx as nx
from networkx.algorithms.isomorphism import categorical_edge_match, categorical_node_match

# Weisfeiler-Lehman refinement rounds
WL_ITERATIONS = 3

_FORMULA_RE = re.compile(r"([A-Z][a-z]?)(\d*)")

BondTriple = Tuple[Hashable, Hashable, int]


# =============================================================================
# FORMULAS
# =============================================================================

def _hill_key(symbol: str) -> Tuple[int, str]:
    if symbol == "C":
        return (0, "")
    if symbol == "H":
        return (1, "")
    return (2, symbol)


def formula_from_counts(counts: Mapping[str, int]) -> str:
    """Hill-ordered formula: C, then H, then the rest alphabetically."""
    parts = []
    for symbol in sorted(counts, key=_hill_key):
        n = counts[symbol]
        if n <= 0:
            continue
        parts.append(symbol if n == 1 else f"{symbol}{n}")
    return "".join(parts)


def formula_of(symbols: Iterable[str]) -> str:
    """Formula of a bag of element symbols, e.g. ``["O", "H", "H"] -> "H2O"``."""
    return formula_from_counts(Counter(symbols))


def parse_formula(formula: str) -> Counter:
    """Element counts of a written formula. Repeated symbols are summed."""
    counts: Counter = Counter()
    for symbol, num in _FORMULA_RE.findall(formula or ""):
        counts[symbol] += int(num) if num else 1
    return counts


def normalize_formula(formula: str) -> str:
    """
    Canonical spelling of a formula.

    ``"OH2"``, ``"HOH"`` and ``"H2O"`` all normalize to ``"H2O"``; records
    written by older versions with a different element order compare equal
    after this.
    """
    return formula_from_counts(parse_formula(formula))


# =============================================================================
# STRUCTURE FINGERPRINTS
# =============================================================================

def build_bond_graph(
    symbols: Mapping[Hashable, str],
    bonds: Iterable[BondTriple],
) -> nx.Graph:
    """
    Labelled networkx graph of a structure.

    Args:
        symbols: Atom key -> element symbol.
        bonds: ``(atom_key_1, atom_key_2, order)`` triples. Bonds touching
            keys absent from ``symbols`` are skipped.

    Returns:
        Graph with a ``symbol`` node attribute and an ``order`` edge attribute.
    """
    G = nx.Graph()
    for key, symbol in symbols.items():
        G.add_node(key, symbol=symbol)
    for a, b, order in bonds:
        if a in symbols and b in symbols:
            G.add_edge(a, b, order=str(int(order)))
    return G


def structure_fingerprint(
    symbols: Mapping[Hashable, str],
    bonds: Iterable[BondTriple],
) -> str:
    """
    Order- and translation-invariant fingerprint of an atom/bond graph.

    Water given as ``({0: "O", 1: "H", 2: "H"}, [(0, 1, 1), (0, 2, 1)])``
    yields a key starting with ``"H2O:"``.
    """
    G = build_bond_graph(symbols, bonds)
    digest = nx.weisfeiler_lehman_graph_hash(
        G, node_attr="symbol", edge_attr="order", iterations=WL_ITERATIONS
    )
    return f"{formula_of(symbols.values())}:{digest}"


def same_structure(first: nx.Graph, second: nx.Graph) -> bool:
    """
    Exact test that two labelled bond graphs are the same molecule.

    The hash in a structure fingerprint can collide for graphs that are not
    isomorphic (decalin and bicyclopentyl share one), so a fingerprint match
    is confirmed here before two structures are treated as one.
    """
    if first.number_of_nodes() != second.number_of_nodes():
        return False
    if first.number_of_edges() != second.number_of_edges():
        return False
    return nx.is_isomorphic(
        first,
        second,
        node_match=categorical_node_match("symbol", None),
        edge_match=categorical_edge_match("order", None),
    )


def fingerprint_formula(fingerprint: str) -> Optional[str]:
    """Formula prefix of a structure fingerprint, None for template keys."""
    head, sep, _ = fingerprint.partition(":")
    if not sep or head in ("cell", "polymer"):
        return None
    return head


# =============================================================================
# TEMPLATE FINGERPRINTS
# =============================================================================

def requirement_key(role: str, reference: str, threshold: int, count: int) -> str:
    return f"{role}:{reference}:{int(threshold)}:{int(count)}"


def template_fingerprint(
    kind: str,
    requirements: Sequence[Tuple[str, str, int, int]],
    qualifier: Optional[str] = None,
) -> str:
    """
    Fingerprint of a declarative template.

    Args:
        kind: Namespace prefix (``"cell"`` or ``"polymer"``).
        requirements: ``(role, reference_id, threshold, count)`` tuples.
        qualifier: Extra discriminator placed after the prefix, e.g. the
            declared polymer type.

    Returns:
        ``"<kind>[:<qualifier>]:<sorted tuples joined by '|'>"``
    """
    parts: List[str] = sorted(
        requirement_key(role, ref, threshold, count)
        for role, ref, threshold, count in requirements
    )
    prefix = kind if qualifier is None else f"{kind}:{qualifier}"
    return f"{prefix}:{'|'.join(parts)}"

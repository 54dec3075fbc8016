# Copyright Rand Arete @ Ananke 2025
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
"""Nearest common ancestors and descendants of parameterized types.

Unification here is the lattice kind: given N types, find the most specific
types that all of them fulfill (NCA) or the most general types that fulfill
all of them (NCD). With multiple inheritance both are sets of mutually
incomparable types, possibly empty.

Algorithm (NCA; NCD is the dual):
    1. Intersect the ancestor closures of the head names and keep the
       minimal elements. Only these nearest heads are considered.
    2. For each nearest head, re-map every input onto it and combine the
       parameters position by position:
           co      NCA of the column
           contra  NCD of the column
           inv     the column's common value, or no candidate at all
    3. Expand the Cartesian product of the per-position options, merge the
       candidates of every head, deduplicate, and filter to the nearest
       elements once at the end.

For NCD the descendant's parameters are recovered by matching its ancestor
templates against the inputs. Positions no input constrains become "*", and
every candidate is checked to fulfill all inputs before filtering.

"*" is the universal element: it is ignored as an input unless every input
is "*", and a candidate containing fewer "*" wins over an otherwise
equivalent one.

References:
    - Aït-Kaci, H. et al. (1989). "Efficient Implementation of Lattice
      Operations", ACM TOPLAS 11(1)
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence

from .structure import STANDARD_GENERIC, STANDARD_GENERIC_NAME, TypeStructure
from .subtyping import is_subtype, types_match
from .variance import Variance

if TYPE_CHECKING:
    from .hierarchy import TypeHierarchy


# =============================================================================
# Head names
# =============================================================================


def nearest_common_ancestor_names(hierarchy: TypeHierarchy, names: Sequence[str]) -> List[str]:
    """Minimal common ancestors of declared type names, in declaration order."""
    if not names:
        return []
    defs = [hierarchy.get_def(name) for name in names]
    common = [n for n in hierarchy.type_names if all(d.fulfills_name(n) for d in defs)]
    return [
        n for n in common
        if not any(other != n and hierarchy.get_def(other).has_ancestor(n) for other in common)
    ]


def nearest_common_descendant_names(hierarchy: TypeHierarchy, names: Sequence[str]) -> List[str]:
    """Maximal common descendants of declared type names, in declaration order."""
    if not names:
        return []
    common = [
        n for n in hierarchy.type_names
        if all(hierarchy.get_def(n).fulfills_name(name) for name in names)
    ]
    return [
        n for n in common
        if not any(other != n and hierarchy.get_def(other).has_descendant(n) for other in common)
    ]


# =============================================================================
# Parameterized types
# =============================================================================


def nearest_common_ancestors(
    hierarchy: TypeHierarchy, types: Sequence[TypeStructure]
) -> List[TypeStructure]:
    """Compute the nearest common ancestors of validated types.

    Args:
        hierarchy: Registry the types are declared in
        types: The types to unify

    Returns:
        Mutually incomparable common ancestors; empty if there are none or
        if `types` is empty, ["*"] if every input is "*"
    """
    concrete = _concrete(types)
    if concrete is None:
        return []
    if len(concrete) <= 1:
        return list(concrete) or [STANDARD_GENERIC]

    candidates: List[TypeStructure] = []
    for name in nearest_common_ancestor_names(hierarchy, [t.name for t in concrete]):
        param_lists = [hierarchy.get_params_for_ancestor(t, name) for t in concrete]
        options = []
        for i, param_def in enumerate(hierarchy.get_def(name).params):
            column = [params[i] for params in param_lists]
            if param_def.variance is Variance.CO:
                position = nearest_common_ancestors(hierarchy, column)
            elif param_def.variance is Variance.CONTRA:
                position = nearest_common_descendants(hierarchy, column)
            else:
                position = _invariant_options(column)
            if not position:
                break
            options.append(position)
        else:
            candidates.extend(
                TypeStructure(name, combo) for combo in itertools.product(*options)
            )

    return filter_nearest(
        dedupe(candidates), lambda a, b: is_subtype(hierarchy, a, b)
    )


def nearest_common_descendants(
    hierarchy: TypeHierarchy, types: Sequence[TypeStructure]
) -> List[TypeStructure]:
    """Compute the nearest common descendants of validated types.

    Args:
        hierarchy: Registry the types are declared in
        types: The types to unify

    Returns:
        Mutually incomparable common descendants; empty if there are none or
        if `types` is empty, ["*"] if every input is "*"
    """
    concrete = _concrete(types)
    if concrete is None:
        return []
    if len(concrete) <= 1:
        return list(concrete) or [STANDARD_GENERIC]

    candidates: List[TypeStructure] = []
    for name in nearest_common_descendant_names(hierarchy, [t.name for t in concrete]):
        param_maps = [
            hierarchy.get_params_for_descendant(t.name, name, t.params) for t in concrete
        ]
        options = []
        for i, param_def in enumerate(hierarchy.get_def(name).params):
            column = [params[i] for params in param_maps if params[i] is not None]
            if not column:
                position = [STANDARD_GENERIC]
            elif param_def.variance is Variance.CO:
                position = dedupe(nearest_common_descendants(hierarchy, column) + column)
            elif param_def.variance is Variance.CONTRA:
                position = dedupe(nearest_common_ancestors(hierarchy, column) + column)
            else:
                position = dedupe(column)
            options.append(position)

        for combo in itertools.product(*options):
            candidate = TypeStructure(name, combo)
            # Columns gathered through different ancestors may disagree
            if all(is_subtype(hierarchy, candidate, t) for t in concrete):
                candidates.append(candidate)

    return filter_nearest(
        dedupe(candidates), lambda a, b: is_subtype(hierarchy, b, a)
    )


# =============================================================================
# Helpers
# =============================================================================


def dedupe(types: Iterable[TypeStructure]) -> List[TypeStructure]:
    """Remove structural duplicates, keeping first occurrences."""
    return list(dict.fromkeys(types))


def filter_nearest(
    candidates: Sequence[TypeStructure],
    nearer: Callable[[TypeStructure, TypeStructure], bool],
) -> List[TypeStructure]:
    """Keep the candidates no other candidate is nearer than.

    Args:
        candidates: Deduplicated candidates
        nearer: nearer(a, b) is True when `a` is at least as near as `b`

    When two candidates are each at least as near as the other (possible
    only through "*"), the one with fewer "*" survives, then the earlier one.
    """
    kept = []
    for i, candidate in enumerate(candidates):
        for j, other in enumerate(candidates):
            if i == j or not nearer(other, candidate):
                continue
            if not nearer(candidate, other):
                break
            if (_generic_count(other), j) < (_generic_count(candidate), i):
                break
        else:
            kept.append(candidate)
    return kept


def _concrete(types: Sequence[TypeStructure]) -> Optional[List[TypeStructure]]:
    """Drop "*" inputs. Returns None for no inputs at all."""
    if not types:
        return None
    return [t for t in types if not t.is_standard_generic]


def _invariant_options(column: Sequence[TypeStructure]) -> List[TypeStructure]:
    """The single value every entry of an invariant column agrees on."""
    concrete = [t for t in column if not t.is_standard_generic]
    if not concrete:
        return [STANDARD_GENERIC]
    best = min(concrete, key=_generic_count)
    if all(types_match(best, t) for t in concrete):
        return [best]
    return []


def _generic_count(struct: TypeStructure) -> int:
    return struct.count_name(STANDARD_GENERIC_NAME)

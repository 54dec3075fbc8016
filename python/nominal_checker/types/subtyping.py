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
"""Variance-aware subtype relation.

`is_subtype(h, sub, sup)` decides `sub <: sup`:

1. "*" on either side is compatible with anything.
2. `sub` is re-mapped onto `sup`'s head through the precomputed ancestor
   templates. If `sup`'s head is not an ancestor of `sub`'s head the
   answer is False. When several paths reach it, one must pass step 3.
3. Parameters are compared position by position using the variance
   declared by `sup`'s head:
       co      sub_i <: sup_i
       contra  sup_i <: sub_i
       inv     sub_i and sup_i are structurally identical

Invariant positions compare structurally all the way down, whatever the
variance of the nested parameters. Within that comparison "*" still matches
anything.

References:
    - Pierce, B.C. (2002). "Types and Programming Languages", Chapter 15
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .structure import TypeStructure
from .variance import Variance

if TYPE_CHECKING:
    from .hierarchy import ParamDef, TypeHierarchy


def is_subtype(hierarchy: TypeHierarchy, sub: TypeStructure, sup: TypeStructure) -> bool:
    """Check `sub <: sup` for already validated types.

    Args:
        hierarchy: Registry the types are declared in
        sub: Candidate subtype
        sup: Candidate supertype

    Returns:
        True if `sub` fulfills `sup`
    """
    if sub.is_standard_generic or sup.is_standard_generic:
        return True

    sup_def = hierarchy.get_def(sup.name)
    # Any fulfills path reaching sup's head may witness the relation
    return any(
        _params_fit(hierarchy, sup_def.params, params, sup.params)
        for params in hierarchy.get_all_params_for_ancestor(sub, sup.name)
    )


def _params_fit(
    hierarchy: TypeHierarchy,
    param_defs: Sequence[ParamDef],
    sub_params: Sequence[TypeStructure],
    sup_params: Sequence[TypeStructure],
) -> bool:
    for param_def, sub_param, sup_param in zip(param_defs, sub_params, sup_params):
        if param_def.variance is Variance.CO:
            ok = is_subtype(hierarchy, sub_param, sup_param)
        elif param_def.variance is Variance.CONTRA:
            ok = is_subtype(hierarchy, sup_param, sub_param)
        else:
            ok = types_match(sub_param, sup_param)
        if not ok:
            return False
    return True


def types_match(a: TypeStructure, b: TypeStructure) -> bool:
    """Structural equality where "*" matches any subtree."""
    if a.is_standard_generic or b.is_standard_generic:
        return True
    if a.name != b.name or len(a.params) != len(b.params):
        return False
    return all(types_match(x, y) for x, y in zip(a.params, b.params))


def is_strict_subtype(hierarchy: TypeHierarchy, sub: TypeStructure, sup: TypeStructure) -> bool:
    """Check `sub <: sup` without `sup <: sub`."""
    return is_subtype(hierarchy, sub, sup) and not is_subtype(hierarchy, sup, sub)

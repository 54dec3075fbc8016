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
"""Nominal type system: grammar, registry, subtyping and unification."""

from .structure import (
    STANDARD_GENERIC,
    STANDARD_GENERIC_NAME,
    TypeStructure,
    is_identifier,
    parse_type,
    render_type,
)
from .variance import Variance, string_to_variance
from .hierarchy import ParamDef, TypeDef, TypeHierarchy
from .subtyping import is_strict_subtype, is_subtype, types_match
from .unification import (
    nearest_common_ancestor_names,
    nearest_common_ancestors,
    nearest_common_descendant_names,
    nearest_common_descendants,
)
from .loader import load_hierarchy_def, validate_hierarchy_def

__all__ = [
    # Grammar
    "TypeStructure",
    "STANDARD_GENERIC",
    "STANDARD_GENERIC_NAME",
    "parse_type",
    "render_type",
    "is_identifier",
    # Registry
    "Variance",
    "string_to_variance",
    "ParamDef",
    "TypeDef",
    "TypeHierarchy",
    # Subtyping
    "is_subtype",
    "is_strict_subtype",
    "types_match",
    # Unification
    "nearest_common_ancestor_names",
    "nearest_common_descendant_names",
    "nearest_common_ancestors",
    "nearest_common_descendants",
    # Loading
    "load_hierarchy_def",
    "validate_hierarchy_def",
]

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
"""Nominal connection checker for block-based editors.

Types are declared in a hierarchy with parameters, per-parameter variance
and multiple inheritance. The checker uses that hierarchy to decide which
block connections may be linked and to propagate explicit types through
generic blocks.

Example:
    >>> from nominal_checker import NominalConnectionChecker, Workspace
    >>> checker = NominalConnectionChecker()
    >>> checker.init({
    ...     "animal": {},
    ...     "dog": {"fulfills": ["animal"]},
    ... })
    >>> workspace = Workspace(checker)
    >>> holder = workspace.new_block("holder", inputs=[("VALUE", "animal")])
    >>> dog = workspace.new_block("dog", output="dog")
    >>> workspace.connect(holder.get_input("VALUE"), dog.output_connection)
    True
"""

from .core import (
    DEFAULT_CONFIG,
    ActualParamsCountError,
    BadTypeError,
    CheckerConfig,
    ConnectionCheckError,
    CyclicHierarchyError,
    DuplicateTypeError,
    HierarchyError,
    HierarchySchemaError,
    InvalidBindingError,
    NominalCheckerError,
    NotInitializedError,
    ParentParamsCountError,
    UndefinedParentError,
    UndefinedTypeError,
    UnknownParamReferenceError,
    VarianceError,
)
from .types import (
    STANDARD_GENERIC,
    STANDARD_GENERIC_NAME,
    ParamDef,
    TypeDef,
    TypeHierarchy,
    TypeStructure,
    Variance,
    load_hierarchy_def,
    parse_type,
    render_type,
)
from .checker import (
    Block,
    Connection,
    ConnectionKind,
    NominalConnectionChecker,
    Workspace,
)

__version__ = "0.1.0"

__all__ = [
    # Checker
    "NominalConnectionChecker",
    "CheckerConfig",
    "DEFAULT_CONFIG",
    "Workspace",
    "Block",
    "Connection",
    "ConnectionKind",
    # Types
    "TypeHierarchy",
    "TypeDef",
    "ParamDef",
    "TypeStructure",
    "Variance",
    "STANDARD_GENERIC",
    "STANDARD_GENERIC_NAME",
    "parse_type",
    "render_type",
    "load_hierarchy_def",
    # Errors
    "NominalCheckerError",
    "BadTypeError",
    "UndefinedTypeError",
    "ActualParamsCountError",
    "NotInitializedError",
    "InvalidBindingError",
    "HierarchyError",
    "DuplicateTypeError",
    "UndefinedParentError",
    "ParentParamsCountError",
    "UnknownParamReferenceError",
    "CyclicHierarchyError",
    "VarianceError",
    "HierarchySchemaError",
    "ConnectionCheckError",
]

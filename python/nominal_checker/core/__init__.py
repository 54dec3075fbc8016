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
"""Errors and configuration shared by every layer of the checker."""

from .config import DEFAULT_CONFIG, CheckerConfig
from .errors import (
    ActualParamsCountError,
    BadTypeError,
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

__all__ = [
    # Configuration
    "CheckerConfig",
    "DEFAULT_CONFIG",
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

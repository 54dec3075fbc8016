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
"""Exception hierarchy for the nominal connection checker.

Every error raised by the package derives from NominalCheckerError. The
classes carry structured attributes so callers can react to the failure
without parsing the message.

Hierarchy:
    NominalCheckerError
    ├── BadTypeError                 (malformed or unresolvable type expression)
    │   ├── UndefinedTypeError
    │   └── ActualParamsCountError
    ├── NotInitializedError
    ├── InvalidBindingError
    ├── HierarchyError               (raised while building a TypeHierarchy)
    │   ├── DuplicateTypeError
    │   ├── UndefinedParentError
    │   ├── ParentParamsCountError
    │   ├── UnknownParamReferenceError
    │   ├── CyclicHierarchyError
    │   ├── VarianceError
    │   └── HierarchySchemaError
    └── ConnectionCheckError         (wraps any of the above for connection calls)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple


class NominalCheckerError(Exception):
    """Base class for all nominal checker errors."""


# =============================================================================
# Type expression errors
# =============================================================================


class BadTypeError(NominalCheckerError):
    """A type expression could not be parsed or resolved.

    Attributes:
        type_string: The offending type expression (or the part of it that failed)
        message: Description of what is wrong with it
    """

    def __init__(self, type_string: str, message: str):
        self.type_string = type_string
        self.message = message
        super().__init__(f"Bad type '{type_string}': {message}")


class UndefinedTypeError(BadTypeError):
    """An explicit type name is not declared in the hierarchy."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(type_name, "the type is not defined in the hierarchy")


class ActualParamsCountError(BadTypeError):
    """A type was applied to the wrong number of parameters.

    Attributes:
        type_name: Name of the applied type
        actual_count: Number of parameters it was given
        expected_count: Number of parameters it declares
    """

    def __init__(self, type_name: str, actual_count: int, expected_count: int):
        self.type_name = type_name
        self.actual_count = actual_count
        self.expected_count = expected_count
        super().__init__(
            type_name,
            f"the type {type_name} got {actual_count} parameter(s) "
            f"but declares {expected_count}",
        )


# =============================================================================
# Checker state errors
# =============================================================================


class NotInitializedError(NominalCheckerError):
    """The checker was queried before init() loaded a hierarchy."""

    def __init__(self, message: str = "The checker has not been initialized with a type hierarchy"):
        super().__init__(message)


class InvalidBindingError(NominalCheckerError):
    """A generic was bound to something that is not a fully explicit type."""

    def __init__(self, generic: str, explicit_type: str, reason: str):
        self.generic = generic
        self.explicit_type = explicit_type
        self.reason = reason
        super().__init__(
            f"Cannot bind generic '{generic}' to '{explicit_type}': {reason}"
        )


# =============================================================================
# Hierarchy definition errors
# =============================================================================


class HierarchyError(NominalCheckerError):
    """The hierarchy definition is invalid.

    Attributes:
        type_name: The declared type where the problem was found, if any
        message: Description of the problem
    """

    def __init__(self, type_name: Optional[str], message: str):
        self.type_name = type_name
        self.message = message
        super().__init__(message)


class DuplicateTypeError(HierarchyError):
    """Two declarations name the same type once case is ignored."""

    def __init__(self, type_name: str):
        super().__init__(
            type_name, f"The type {type_name} is declared more than once"
        )


class UndefinedParentError(HierarchyError):
    """A fulfills entry names a type that is not declared."""

    def __init__(self, type_name: str, parent_name: str):
        self.parent_name = parent_name
        super().__init__(
            type_name,
            f"The type {type_name} says it fulfills the type {parent_name}, "
            f"but that type is not defined",
        )


class ParentParamsCountError(HierarchyError):
    """A fulfills entry applies a type to the wrong number of parameters."""

    def __init__(
        self, type_name: str, parent_name: str, actual_count: int, expected_count: int
    ):
        self.parent_name = parent_name
        self.actual_count = actual_count
        self.expected_count = expected_count
        super().__init__(
            type_name,
            f"The type {type_name} fulfills {parent_name} with {actual_count} "
            f"parameter(s), but {parent_name} declares {expected_count}",
        )


class UnknownParamReferenceError(HierarchyError):
    """A fulfills argument is neither a formal parameter nor a declared type."""

    def __init__(self, type_name: str, parent: str, reference: str):
        self.parent = parent
        self.reference = reference
        super().__init__(
            type_name,
            f"The type {type_name} fulfills {parent}, but '{reference}' is "
            f"neither one of its parameters nor a defined type",
        )


class CyclicHierarchyError(HierarchyError):
    """The fulfills relation contains a cycle."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        super().__init__(
            self.cycle[0] if self.cycle else None,
            f"The fulfills relation is cyclic: {' -> '.join(self.cycle)}",
        )


class VarianceError(HierarchyError):
    """A parameter declares a variance that is not co, contra or inv."""

    def __init__(
        self,
        variance: Any,
        type_name: Optional[str] = None,
        param_name: Optional[str] = None,
    ):
        self.variance = variance
        self.param_name = param_name
        where = f" on {type_name}[{param_name}]" if type_name and param_name else ""
        super().__init__(
            type_name,
            f"The variance '{variance}'{where} is not valid. Use one of "
            f"'co', 'contra' or 'inv'",
        )


class HierarchySchemaError(HierarchyError):
    """The raw definition does not match the hierarchy JSON schema.

    Attributes:
        errors: One dict per violation with "pointer", "message" and "validator"
    """

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        details = "; ".join(f"{e['pointer'] or '/'}: {e['message']}" for e in errors)
        super().__init__(None, f"Invalid hierarchy definition: {details}")


# =============================================================================
# Connection-level errors
# =============================================================================


class ConnectionCheckError(NominalCheckerError):
    """An error raised while servicing a connection-level checker call.

    Attributes:
        connections: The connections involved in the call
        blocks: The source blocks of those connections
        wrapped_error: The underlying error (also chained as __cause__)
    """

    def __init__(
        self,
        message: str,
        connections: Tuple[Any, ...] = (),
        blocks: Tuple[Any, ...] = (),
        wrapped_error: Optional[BaseException] = None,
    ):
        self.connections = connections
        self.blocks = blocks
        self.wrapped_error = wrapped_error
        super().__init__(message)

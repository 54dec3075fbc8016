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
"""Declared variance of type parameters."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from ..core.errors import VarianceError


class Variance(Enum):
    """How a parameter's subtyping feeds the subtyping of its container.

    CO:     A[X] <: A[Y] when X <: Y
    CONTRA: A[X] <: A[Y] when Y <: X
    INV:    A[X] <: A[Y] only when X and Y are the same type
    """

    CO = "co"
    CONTRA = "contra"
    INV = "inv"


def string_to_variance(
    value: Any,
    type_name: Optional[str] = None,
    param_name: Optional[str] = None,
) -> Variance:
    """Convert a variance spelling to a Variance.

    Any spelling starting with "inv", "contra" or "co" is accepted, so
    "covariant" and "Invariant" work as well as the short forms.

    Raises:
        VarianceError: If the value is not a recognised spelling
    """
    if isinstance(value, Variance):
        return value
    if not isinstance(value, str):
        raise VarianceError(value, type_name, param_name)

    lowered = value.lower()
    if lowered.startswith("inv"):
        return Variance.INV
    # "contra" must be tried before "co"
    if lowered.startswith("contra"):
        return Variance.CONTRA
    if lowered.startswith("co"):
        return Variance.CO
    raise VarianceError(value, type_name, param_name)

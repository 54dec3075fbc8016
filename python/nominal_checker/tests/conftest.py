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
"""Shared hierarchies and fixtures for the nominal checker tests.

Type names are written in mixed case on purpose: the registry lowercases
them, and every test queries them in whatever case reads best.
"""

import pytest

from nominal_checker import NominalConnectionChecker, TypeHierarchy, Workspace


# =============================================================================
# Hierarchy definitions
# =============================================================================

ANIMAL_HIERARCHY = {
    "Animal": {},
    "Mammal": {"fulfills": ["Animal"]},
    "Dog": {"fulfills": ["Mammal"]},
    "Cat": {"fulfills": ["Mammal"]},
    "Reptile": {"fulfills": ["Animal"]},
    "FlyingAnimal": {"fulfills": ["Animal"]},
    "Bat": {"fulfills": ["Mammal", "FlyingAnimal"]},
}

VARIANCE_HIERARCHY = {
    **ANIMAL_HIERARCHY,
    "GetterList": {"params": [{"name": "A", "variance": "co"}]},
    "AdderList": {"params": [{"name": "A", "variance": "contra"}]},
    "List": {
        "params": [{"name": "A", "variance": "inv"}],
        "fulfills": ["GetterList[A]", "AdderList[A]"],
    },
}

FULL_HIERARCHY = {
    "Random": {},
    **VARIANCE_HIERARCHY,
    "Dict": {
        "params": [
            {"name": "K", "variance": "inv"},
            {"name": "V", "variance": "inv"},
        ],
    },
}

SIBLING_HIERARCHY = {
    "typeA": {},
    "typeB": {},
    "typeC": {"fulfills": ["typeB", "typeA"]},
    "typeD": {"fulfills": ["typeB", "typeA"]},
    "typeE": {},
    "typeF": {},
    "typeG": {"fulfills": ["typeE", "typeF"]},
    "typeH": {"fulfills": ["typeE", "typeF"]},
}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def animal_hierarchy():
    """The plain animal hierarchy."""
    return TypeHierarchy(ANIMAL_HIERARCHY)


@pytest.fixture
def variance_hierarchy():
    """Animals plus getter, adder and invariant lists."""
    return TypeHierarchy(VARIANCE_HIERARCHY)


@pytest.fixture
def full_hierarchy():
    """Everything, including an unrelated type and an invariant dict."""
    return TypeHierarchy(FULL_HIERARCHY)


@pytest.fixture
def checker():
    """A checker initialized with the full hierarchy."""
    instance = NominalConnectionChecker()
    instance.init(FULL_HIERARCHY)
    return instance


@pytest.fixture
def workspace(checker):
    """An empty workspace vetted by the full-hierarchy checker."""
    return Workspace(checker)


@pytest.fixture
def sibling_workspace():
    """An empty workspace over the multi-parent sibling hierarchy."""
    instance = NominalConnectionChecker()
    instance.init(SIBLING_HIERARCHY)
    return Workspace(instance)


@pytest.fixture
def sibling_hierarchy():
    """Two pairs of types that each fulfill two unrelated parents."""
    return TypeHierarchy(SIBLING_HIERARCHY)

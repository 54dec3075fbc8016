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
"""Unit tests for the variance-aware subtype relation."""

import pytest

from nominal_checker.core.errors import ActualParamsCountError, BadTypeError, UndefinedTypeError
from nominal_checker.types.hierarchy import TypeHierarchy
from nominal_checker.types.structure import parse_type
from nominal_checker.types.subtyping import is_strict_subtype, types_match


class TestSimpleSubtyping:
    """Subtyping without parameters."""

    @pytest.mark.parametrize(
        "sub, sup, expected",
        [
            ("dog", "mammal", True),
            ("dog", "animal", True),
            ("mammal", "dog", False),
            ("dog", "cat", False),
            ("bat", "flyinganimal", True),
            ("bat", "mammal", True),
            ("reptile", "mammal", False),
            ("Dog", "DOG", True),
        ],
    )
    def test_animals(self, animal_hierarchy, sub, sup, expected):
        """Nominal subtyping follows fulfills transitively."""
        assert animal_hierarchy.type_fulfills_type(sub, sup) is expected

    def test_star_fits_everything(self, animal_hierarchy):
        """'*' is compatible in both directions."""
        assert animal_hierarchy.type_fulfills_type("*", "dog")
        assert animal_hierarchy.type_fulfills_type("dog", "*")

    def test_undefined_is_error(self, animal_hierarchy):
        """Undeclared names are an error, not a False verdict."""
        with pytest.raises(UndefinedTypeError):
            animal_hierarchy.type_fulfills_type("unicorn", "animal")

    def test_malformed_is_error(self, animal_hierarchy):
        """Malformed expressions are an error."""
        with pytest.raises(BadTypeError):
            animal_hierarchy.type_fulfills_type("dog ", "animal")


class TestVarianceSubtyping:
    """Subtyping of parameterized types."""

    @pytest.mark.parametrize(
        "sub, sup, expected",
        [
            ("list[dog]", "getterlist[mammal]", True),
            ("list[dog]", "adderlist[cat]", False),
            ("adderlist[mammal]", "adderlist[dog]", True),
            ("adderlist[dog]", "adderlist[mammal]", False),
            ("getterlist[dog]", "getterlist[mammal]", True),
            ("getterlist[mammal]", "getterlist[dog]", False),
            ("list[dog]", "list[mammal]", False),
            ("list[dog]", "list[dog]", True),
            ("list[dog]", "adderlist[dog]", True),
            ("list[mammal]", "adderlist[dog]", True),
            ("getterlist[list[dog]]", "getterlist[getterlist[animal]]", True),
            ("list[getterlist[dog]]", "list[getterlist[mammal]]", False),
            ("list[*]", "list[dog]", True),
            ("list[dog]", "getterlist[*]", True),
        ],
    )
    def test_lists(self, variance_hierarchy, sub, sup, expected):
        """The parent's declared variance governs each position."""
        assert variance_hierarchy.type_fulfills_type(sub, sup) is expected

    def test_arity_mismatch_is_error(self, variance_hierarchy):
        """Wrong parameter counts raise instead of answering."""
        with pytest.raises(ActualParamsCountError):
            variance_hierarchy.type_fulfills_type("list", "getterlist[dog]")
        with pytest.raises(ActualParamsCountError):
            variance_hierarchy.type_fulfills_type("list[dog]", "getterlist[dog, dog]")

    def test_reordered_params(self):
        """Re-mapping applies before the variance check."""
        hierarchy = TypeHierarchy({
            "animal": {},
            "dog": {"fulfills": ["animal"]},
            "pair": {"params": [
                {"name": "a", "variance": "co"},
                {"name": "b", "variance": "contra"},
            ]},
            "flipped": {
                "params": [
                    {"name": "x", "variance": "co"},
                    {"name": "y", "variance": "co"},
                ],
                "fulfills": ["pair[y, x]"],
            },
        })
        assert hierarchy.type_fulfills_type("flipped[animal, dog]", "pair[animal, dog]")
        assert not hierarchy.type_fulfills_type("flipped[dog, animal]", "pair[dog, animal]")

    @pytest.mark.parametrize(
        "sub, sup, expected",
        [
            ("weird", "box[dog]", True),
            ("weird", "box[cat]", True),
            ("weird", "box[mammal]", True),
            ("weird", "box[reptile]", False),
            ("weirder", "box[cat]", True),
            ("dogbox", "box[cat]", False),
            ("weird", "cell[dog]", True),
            ("weird", "cell[cat]", True),
            ("weird", "cell[mammal]", False),
        ],
    )
    def test_several_paths(self, sub, sup, expected):
        """Any path reaching the ancestor can satisfy the check."""
        hierarchy = TypeHierarchy({
            "mammal": {},
            "dog": {"fulfills": ["mammal"]},
            "cat": {"fulfills": ["mammal"]},
            "reptile": {},
            "box": {"params": [{"name": "a", "variance": "co"}]},
            "cell": {"params": [{"name": "a", "variance": "inv"}]},
            "dogbox": {"fulfills": ["box[dog]", "cell[dog]"]},
            "catbox": {"fulfills": ["box[cat]", "cell[cat]"]},
            "weird": {"fulfills": ["dogbox", "catbox"]},
            "weirder": {"fulfills": ["weird"]},
        })
        assert hierarchy.type_fulfills_type(sub, sup) is expected


class TestHelpers:
    """Tests for structural matching helpers."""

    def test_types_match_wildcards(self):
        """'*' matches any subtree."""
        assert types_match(parse_type("dict[*, dog]"), parse_type("dict[list[cat], dog]"))
        assert not types_match(parse_type("dict[cat, dog]"), parse_type("dict[dog, dog]"))

    def test_strict_subtype(self, animal_hierarchy):
        """Strict subtyping excludes equal types."""
        dog, mammal = parse_type("dog"), parse_type("mammal")
        assert is_strict_subtype(animal_hierarchy, dog, mammal)
        assert not is_strict_subtype(animal_hierarchy, dog, dog)

    def test_type_is_exactly_type(self, variance_hierarchy):
        """Exact equality is structural and case-insensitive."""
        assert variance_hierarchy.type_is_exactly_type("List[Dog]", "list[dog]")
        assert not variance_hierarchy.type_is_exactly_type("list[dog]", "getterlist[dog]")

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
"""Unit tests for loading hierarchy definitions and the JSON schema."""

import json

import pytest

from nominal_checker.core.errors import HierarchyError, HierarchySchemaError
from nominal_checker.types.hierarchy import TypeHierarchy
from nominal_checker.types.loader import (
    join_pointer,
    load_hierarchy_def,
    load_schema,
    validate_hierarchy_def,
)

from conftest import FULL_HIERARCHY


class TestSchema:
    """Tests for the bundled hierarchy schema."""

    def test_schema_loads(self):
        """The schema ships with the package."""
        schema = load_schema()
        assert schema["type"] == "object"
        assert "typeDef" in schema["$defs"]

    def test_valid_definition(self):
        """The full test hierarchy is valid."""
        assert validate_hierarchy_def(FULL_HIERARCHY) == []

    def test_long_variance_spelling(self):
        """Variances only need the right prefix."""
        definition = {"box": {"params": [{"name": "a", "variance": "Covariant"}]}}
        assert validate_hierarchy_def(definition) == []

    def test_reports_every_error_with_pointer(self):
        """All violations are reported, ordered by location."""
        definition = {
            "box": {"params": [{"name": "a"}]},
            "crate": {"fulfils": ["box[a]"]},
        }
        errors = validate_hierarchy_def(definition)
        pointers = [e["pointer"] for e in errors]
        assert pointers == ["/box/params/0", "/crate"]
        assert errors[0]["validator"] == "required"
        assert errors[1]["validator"] == "additionalProperties"

    def test_bad_names(self):
        """Type names must be identifiers and not '*'."""
        assert validate_hierarchy_def({"bad name": {}})
        assert validate_hierarchy_def({"*": {}})

    def test_bad_variance(self):
        """Unknown variances fail the schema."""
        definition = {"box": {"params": [{"name": "a", "variance": "sideways"}]}}
        errors = validate_hierarchy_def(definition)
        assert [e["pointer"] for e in errors] == ["/box/params/0/variance"]

    def test_join_pointer_escapes(self):
        """Pointer segments are escaped per RFC 6901."""
        assert join_pointer([]) == ""
        assert join_pointer(["a/b", "c~d", 0]) == "/a~1b/c~0d/0"


class TestLoadHierarchyDef:
    """Tests for load_hierarchy_def and TypeHierarchy.from_json."""

    def test_from_mapping(self):
        """Mappings are copied and validated."""
        data = load_hierarchy_def({"animal": {}})
        assert data == {"animal": {}}

    def test_from_string(self):
        """JSON text is decoded."""
        data = load_hierarchy_def(json.dumps(FULL_HIERARCHY))
        assert data == FULL_HIERARCHY

    def test_from_path(self, tmp_path):
        """JSON files are read."""
        path = tmp_path / "hierarchy.json"
        path.write_text(json.dumps(FULL_HIERARCHY), encoding="utf-8")
        hierarchy = TypeHierarchy.from_json(path)
        assert hierarchy.type_fulfills_type("list[dog]", "getterlist[animal]")

    def test_missing_file(self, tmp_path):
        """Unreadable files are hierarchy errors."""
        with pytest.raises(HierarchyError):
            load_hierarchy_def(tmp_path / "missing.json")

    def test_invalid_json(self):
        """Undecodable text is a hierarchy error."""
        with pytest.raises(HierarchyError):
            load_hierarchy_def("{not json")

    def test_schema_error(self):
        """Shape errors raise HierarchySchemaError with the details."""
        with pytest.raises(HierarchySchemaError) as exc_info:
            load_hierarchy_def({"box": {"params": "a"}})
        assert exc_info.value.errors[0]["pointer"] == "/box/params"
        assert "/box/params" in str(exc_info.value)

    def test_validation_can_be_skipped(self):
        """validate=False hands the raw data through."""
        data = load_hierarchy_def({"box": {"extra": True}}, validate=False)
        assert data == {"box": {"extra": True}}

    def test_unsupported_source(self):
        """Other source types are rejected."""
        with pytest.raises(HierarchyError):
            load_hierarchy_def(42)

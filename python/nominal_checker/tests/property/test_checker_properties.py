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
"""Property-based tests for the connection checker.

- Explicit connections are accepted exactly when subtyping holds
- Binding keeps exactly the links the bound type admits
- Unbinding restores type flow
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from nominal_checker import NominalConnectionChecker, Workspace
from nominal_checker.types.structure import TypeStructure
from nominal_checker.types.subtyping import is_subtype

from conftest import FULL_HIERARCHY


# =============================================================================
# Strategy Definitions
# =============================================================================

LEAF_NAMES = ["random", "animal", "mammal", "dog", "cat", "reptile", "flyinganimal", "bat"]


@st.composite
def explicit_type(draw, depth=1):
    """Generate explicit types with at most `depth` levels of nesting."""
    if depth == 0 or draw(st.booleans()):
        return TypeStructure(draw(st.sampled_from(LEAF_NAMES)))
    head = draw(st.sampled_from(["getterlist", "adderlist", "list"]))
    return TypeStructure(head, (draw(explicit_type(depth=depth - 1)),))


_SETTINGS = dict(max_examples=75, suppress_health_check=[HealthCheck.function_scoped_fixture])


@pytest.fixture
def workspace():
    checker = NominalConnectionChecker()
    checker.init(FULL_HIERARCHY)
    return Workspace(checker)


class TestCheckerAgreesWithSubtyping:
    """do_type_checks on explicit checks is subtyping."""

    @given(explicit_type(), explicit_type())
    @settings(**_SETTINGS)
    def test_explicit_pair(self, workspace, child_type, parent_type):
        """A child fits a parent iff its type fulfills the parent's."""
        checker = workspace.checker
        parent = workspace.new_block("parent", inputs=[("IN", str(parent_type))])
        child = workspace.new_block("child", output=str(child_type))
        expected = is_subtype(checker.hierarchy, child_type, parent_type)
        assert checker.do_type_checks(parent.get_input("IN"), child.output_connection) == expected
        assert checker.do_type_checks(child.output_connection, parent.get_input("IN")) == expected

    @given(explicit_type(), explicit_type())
    @settings(**_SETTINGS)
    def test_through_identity(self, workspace, child_type, parent_type):
        """A generic block in between does not change the verdict."""
        checker = workspace.checker
        parent = workspace.new_block("parent", inputs=[("IN", str(parent_type))])
        identity = workspace.new_block("identity", output="t", inputs=[("IN", "t")])
        child = workspace.new_block("child", output=str(child_type))
        assert workspace.connect(identity.get_input("IN"), child.output_connection)
        expected = is_subtype(checker.hierarchy, child_type, parent_type)
        assert workspace.connect(parent.get_input("IN"), identity.output_connection) == expected


class TestBindingProperties:
    """bind_type and unbind_type."""

    @given(explicit_type())
    @settings(**_SETTINGS)
    def test_bind_then_unbind(self, workspace, bound):
        """A binding is reported while it exists and nothing remains after."""
        checker = workspace.checker
        block = workspace.new_block("identity", output="t", inputs=[("IN", "t")])
        checker.bind_type(block, "t", str(bound))
        assert checker.get_explicit_types(block, "t") == [str(bound)]
        assert checker.get_explicit_types_of_connection(block.output_connection) == [str(bound)]
        assert checker.unbind_type(block, "t")
        assert checker.get_explicit_types(block, "t") == []

    @given(explicit_type(), explicit_type())
    @settings(**_SETTINGS)
    def test_bind_keeps_admitted_links(self, workspace, leaf_type, bound):
        """An input link survives binding iff the leaf fulfills the binding."""
        checker = workspace.checker
        block = workspace.new_block("identity", output="t", inputs=[("IN", "t")])
        leaf = workspace.new_block("leaf", output=str(leaf_type))
        assert workspace.connect(block.get_input("IN"), leaf.output_connection)

        checker.bind_type(block, "t", str(bound))
        kept = block.get_input("IN").target_connection is leaf.output_connection
        assert kept == is_subtype(checker.hierarchy, leaf_type, bound)

        checker.unbind_type(block, "t")
        assert checker.get_explicit_types(block, "t") == ([str(leaf_type)] if kept else [])

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
"""Unit tests for the in-memory block and connection model."""

import pytest

from nominal_checker.checker.workspace import Block, ConnectionKind


class TestConnection:
    """Tests for Connection linking."""

    def test_superior_kinds(self):
        """Inputs and next connections are the parent side."""
        block = Block("b")
        assert block.append_input("IN", "dog").is_superior()
        assert block.set_next("dog").is_superior()
        assert not block.set_output("dog").is_superior()
        assert not block.set_previous("dog").is_superior()

    def test_connect_links_both_sides(self):
        """connect sets both targets."""
        parent = Block("parent")
        child = Block("child")
        a = parent.append_input("IN", "dog")
        b = child.set_output("dog")
        a.connect(b)
        assert a.target_connection is b
        assert b.target_connection is a
        assert a.target_block is child

    def test_connect_replaces_existing(self):
        """Connecting drops the previous links of both connections."""
        parent = Block("parent")
        first = Block("first").set_output("dog")
        second = Block("second").set_output("dog")
        socket = parent.append_input("IN", "dog")
        socket.connect(first)
        socket.connect(second)
        assert first.target_connection is None
        assert socket.target_connection is second

    def test_disconnect(self):
        """disconnect clears both sides and is idempotent."""
        a = Block("parent").append_input("IN", "dog")
        b = Block("child").set_output("dog")
        a.connect(b)
        b.disconnect()
        assert not a.is_connected()
        assert not b.is_connected()
        b.disconnect()


class TestBlock:
    """Tests for Block."""

    def test_connection_order(self):
        """Connections come out as output, previous, inputs, next."""
        block = Block("b")
        nxt = block.set_next("n")
        in2 = block.append_input("B", "x")
        out = block.set_output("o")
        in1 = block.append_input("C", "y")
        prev = block.set_previous("p")
        assert list(block.connections()) == [out, prev, in2, in1, nxt]

    def test_duplicate_input(self):
        """Input names are unique per block."""
        block = Block("b")
        block.append_input("IN", "dog")
        with pytest.raises(ValueError):
            block.append_input("IN", "cat")

    def test_get_input(self):
        """Inputs are found by name."""
        block = Block("b")
        conn = block.append_input("IN", "dog")
        assert block.get_input("IN") is conn
        assert block.get_input("OTHER") is None
        assert conn.kind is ConnectionKind.INPUT
        assert conn.input_name == "IN"


class TestWorkspace:
    """Tests for Workspace."""

    def test_new_block(self, workspace):
        """new_block creates the requested connections."""
        block = workspace.new_block(
            "b", output="t", inputs=[("A", "t"), ("B", "dog")], rendered=True
        )
        assert block.output_connection.check == "t"
        assert block.previous_connection is None
        assert [c.input_name for c in block.inputs] == ["A", "B"]
        assert block.rendered
        assert workspace.blocks == [block]

    def test_connect_checks_types(self, workspace):
        """connect only links compatible connections."""
        parent = workspace.new_block("parent", inputs=[("IN", "mammal")])
        dog = workspace.new_block("dog", output="dog")
        reptile = workspace.new_block("reptile", output="reptile")
        assert not workspace.connect(parent.get_input("IN"), reptile.output_connection)
        assert workspace.connect(parent.get_input("IN"), dog.output_connection)
        assert parent.get_input("IN").target_block is dog

    def test_connect_checks_kinds(self, workspace):
        """Connection kinds must pair up."""
        a = workspace.new_block("a", output="dog", next_="dog")
        b = workspace.new_block("b", output="dog", previous="dog")
        assert not workspace.connect(a.output_connection, b.output_connection)
        assert not workspace.connect(a.next_connection, b.output_connection)
        assert workspace.connect(a.next_connection, b.previous_connection)

    def test_no_self_connection(self, workspace):
        """A block cannot be linked to itself."""
        block = workspace.new_block("b", output="dog", inputs=[("IN", "dog")])
        assert not workspace.connect(block.get_input("IN"), block.output_connection)

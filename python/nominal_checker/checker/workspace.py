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
"""Block and connection model consumed by the connection checker.

The checker only reads the workspace: it walks a block's connections, follows
links to peers, and reads each connection's check. The one mutation it makes
is through connect/disconnect when bind_type drops links a new binding makes
invalid. BlockLike and ConnectionLike describe that surface so an editor can
hand its own objects to the checker.

Block, Connection and Workspace are a small in-memory implementation of the
same surface for callers without an editor.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Protocol, Sequence, Tuple

if TYPE_CHECKING:
    from .connection_checker import NominalConnectionChecker

logger = logging.getLogger(__name__)


class ConnectionKind(Enum):
    """Where a connection sits on its block."""

    OUTPUT = "output"
    PREVIOUS = "previous"
    INPUT = "input"
    NEXT = "next"

    @property
    def is_superior(self) -> bool:
        """Inputs and next connections are on the parent side of a link."""
        return self in (ConnectionKind.INPUT, ConnectionKind.NEXT)


# Kinds that may be linked, as (superior, inferior)
_COMPATIBLE_KINDS = {
    (ConnectionKind.INPUT, ConnectionKind.OUTPUT),
    (ConnectionKind.INPUT, ConnectionKind.PREVIOUS),
    (ConnectionKind.NEXT, ConnectionKind.PREVIOUS),
}


# =============================================================================
# Protocols
# =============================================================================


class ConnectionLike(Protocol):
    """What the checker needs from a connection."""

    source_block: "BlockLike"
    target_connection: Optional["ConnectionLike"]
    check: Optional[str]
    kind: ConnectionKind
    input_name: Optional[str]

    def is_superior(self) -> bool: ...

    def connect(self, other: "ConnectionLike") -> None: ...

    def disconnect(self) -> None: ...


class BlockLike(Protocol):
    """What the checker needs from a block.

    Blocks are also weakly referenced as keys for external bindings, so they
    must be hashable and support weak references. `rendered` and
    `bump_neighbours` are optional.
    """

    def connections(self) -> Iterator[ConnectionLike]: ...


# =============================================================================
# In-memory implementation
# =============================================================================


class Connection:
    """A typed attachment point on a Block.

    Attributes:
        source_block: The block the connection belongs to
        kind: Output, previous, input or next
        check: Textual type expression, or None to accept anything
        input_name: Name of the input, for input connections
        target_connection: The linked peer, if any
    """

    def __init__(
        self,
        source_block: Block,
        kind: ConnectionKind,
        check: Optional[str] = None,
        input_name: Optional[str] = None,
    ):
        self.source_block = source_block
        self.kind = kind
        self.check = check
        self.input_name = input_name
        self.target_connection: Optional[Connection] = None

    def is_superior(self) -> bool:
        return self.kind.is_superior

    def is_connected(self) -> bool:
        return self.target_connection is not None

    @property
    def target_block(self) -> Optional[Block]:
        return self.target_connection.source_block if self.target_connection else None

    def connect(self, other: Connection) -> None:
        """Link both connections, dropping any links they already have."""
        if self.target_connection is other:
            return
        self.disconnect()
        other.disconnect()
        self.target_connection = other
        other.target_connection = self

    def disconnect(self) -> None:
        """Unlink this connection and its peer."""
        peer = self.target_connection
        if peer is None:
            return
        self.target_connection = None
        if peer.target_connection is self:
            peer.target_connection = None

    def __repr__(self) -> str:
        where = self.input_name if self.kind is ConnectionKind.INPUT else self.kind.value
        return f"Connection({self.source_block.block_type}.{where}, check={self.check!r})"


class Block:
    """A block with optional output, previous, next and any number of inputs.

    Attributes:
        block_type: Label used in reprs and error messages
        rendered: Whether the block is shown in an editor
        bump_count: How many times bump_neighbours() was called
    """

    def __init__(self, block_type: str = "block", rendered: bool = False):
        self.block_type = block_type
        self.rendered = rendered
        self.bump_count = 0
        self.output_connection: Optional[Connection] = None
        self.previous_connection: Optional[Connection] = None
        self.next_connection: Optional[Connection] = None
        self._inputs: List[Connection] = []

    def set_output(self, check: Optional[str]) -> Connection:
        self.output_connection = Connection(self, ConnectionKind.OUTPUT, check)
        return self.output_connection

    def set_previous(self, check: Optional[str]) -> Connection:
        self.previous_connection = Connection(self, ConnectionKind.PREVIOUS, check)
        return self.previous_connection

    def set_next(self, check: Optional[str]) -> Connection:
        self.next_connection = Connection(self, ConnectionKind.NEXT, check)
        return self.next_connection

    def append_input(self, name: str, check: Optional[str]) -> Connection:
        if self.get_input(name) is not None:
            raise ValueError(f"Block {self.block_type} already has an input named {name}")
        connection = Connection(self, ConnectionKind.INPUT, check, input_name=name)
        self._inputs.append(connection)
        return connection

    def get_input(self, name: str) -> Optional[Connection]:
        for connection in self._inputs:
            if connection.input_name == name:
                return connection
        return None

    @property
    def inputs(self) -> List[Connection]:
        return list(self._inputs)

    def connections(self) -> Iterator[Connection]:
        """Yield connections in order: output, previous, inputs, next."""
        if self.output_connection is not None:
            yield self.output_connection
        if self.previous_connection is not None:
            yield self.previous_connection
        yield from self._inputs
        if self.next_connection is not None:
            yield self.next_connection

    def bump_neighbours(self) -> None:
        self.bump_count += 1

    def __repr__(self) -> str:
        return f"Block({self.block_type!r})"


class Workspace:
    """A set of blocks whose links are vetted by a connection checker.

    Example:
        >>> workspace = Workspace(checker)
        >>> parent = workspace.new_block("print", inputs=[("VALUE", "animal")])
        >>> child = workspace.new_block("dog", output="dog")
        >>> workspace.connect(parent.get_input("VALUE"), child.output_connection)
        True
    """

    def __init__(self, checker: NominalConnectionChecker):
        self.checker = checker
        self.blocks: List[Block] = []

    def new_block(
        self,
        block_type: str = "block",
        output: Optional[str] = None,
        previous: Optional[str] = None,
        inputs: Sequence[Tuple[str, Optional[str]]] = (),
        next_: Optional[str] = None,
        rendered: bool = False,
    ) -> Block:
        """Create a block. Connections whose check is None are not created."""
        block = Block(block_type, rendered=rendered)
        if output is not None:
            block.set_output(output)
        if previous is not None:
            block.set_previous(previous)
        for name, check in inputs:
            block.append_input(name, check)
        if next_ is not None:
            block.set_next(next_)
        self.blocks.append(block)
        return block

    def can_connect(self, a: Connection, b: Connection) -> bool:
        """Check that the kinds pair up and the checker accepts the types."""
        if a.source_block is b.source_block:
            return False
        superior, inferior = (a, b) if a.is_superior() else (b, a)
        if (superior.kind, inferior.kind) not in _COMPATIBLE_KINDS:
            return False
        return self.checker.do_type_checks(a, b)

    def connect(self, a: Connection, b: Connection) -> bool:
        """Link `a` and `b` if they are compatible.

        Returns:
            True if the link was made
        """
        if not self.can_connect(a, b):
            logger.debug(f"Refused to connect {a} to {b}")
            return False
        a.connect(b)
        return True

    def disconnect(self, connection: Connection) -> None:
        connection.disconnect()

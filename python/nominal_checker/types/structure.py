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
r"""Type expressions and their textual grammar.

A type expression is a name optionally applied to parameters:

    type  := IDENT ( '[' type (',' type)* ']' )?
    IDENT := [^ \t,\[\]]+

Identifiers are case-insensitive and are lowercased on ingest, so two
TypeStructures compare equal exactly when their canonical text is equal.
Whitespace is tolerated next to commas and nowhere else.

The reserved identifier "*" stands for an unbound generic: a type that is
compatible with anything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from ..core.errors import BadTypeError

STANDARD_GENERIC_NAME = "*"

_IDENT_RE = re.compile(r"[^\s,\[\]]+")


@dataclass(frozen=True, slots=True)
class TypeStructure:
    """A parsed type expression.

    Attributes:
        name: Lowercased identifier of the head type
        params: Parameters the head is applied to, in order
    """

    name: str
    params: Tuple["TypeStructure", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.lower())
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def is_standard_generic(self) -> bool:
        """True for the bare unbound generic "*"."""
        return self.name == STANDARD_GENERIC_NAME and not self.params

    def walk(self) -> Iterator[TypeStructure]:
        """Yield this node and every nested parameter, depth first."""
        yield self
        for param in self.params:
            yield from param.walk()

    def contains_name(self, name: str) -> bool:
        """Check whether any node of the expression is named `name`."""
        name = name.lower()
        return any(node.name == name for node in self.walk())

    def count_name(self, name: str) -> int:
        return sum(1 for node in self.walk() if node.name == name)

    def substitute(self, mapping: Dict[str, TypeStructure]) -> TypeStructure:
        """Replace parameterless leaves whose name is in `mapping`.

        Args:
            mapping: Leaf name to replacement expression

        Returns:
            A new expression with every matching leaf replaced
        """
        if not self.params:
            return mapping.get(self.name, self)
        return TypeStructure(self.name, tuple(p.substitute(mapping) for p in self.params))

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}[{', '.join(str(p) for p in self.params)}]"


# Singleton for the unbound generic
STANDARD_GENERIC = TypeStructure(STANDARD_GENERIC_NAME)


def is_identifier(text: str) -> bool:
    """Check whether `text` is a single well-formed identifier."""
    return bool(_IDENT_RE.fullmatch(text))


def parse_type(text: str) -> TypeStructure:
    """Parse a textual type expression.

    Args:
        text: Type expression such as "dict[K, list[Dog]]"

    Returns:
        The canonical (lowercased) TypeStructure

    Raises:
        BadTypeError: On an empty identifier, mismatched brackets, a
            whitespace-padded identifier, or trailing garbage
    """
    if not isinstance(text, str):
        raise BadTypeError(repr(text), "type expressions must be strings")
    return _parse_type(text, text)


def render_type(struct: TypeStructure) -> str:
    """Render a TypeStructure back to its canonical text."""
    return str(struct)


def _parse_type(s: str, source: str) -> TypeStructure:
    """Parse one type expression occupying all of `s`."""
    if not s:
        raise BadTypeError(source, "empty identifier")
    if s != s.strip():
        raise BadTypeError(source, f"whitespace around '{s.strip()}'")

    if "[" not in s:
        if not is_identifier(s):
            raise BadTypeError(source, f"invalid identifier '{s}'")
        return TypeStructure(s)

    bracket_pos = s.index("[")
    base = s[:bracket_pos]
    if not base:
        raise BadTypeError(source, "empty identifier before '['")
    if not is_identifier(base):
        raise BadTypeError(source, f"invalid identifier '{base}'")
    if not s.endswith("]"):
        if s.count("[") > s.count("]"):
            raise BadTypeError(source, "mismatched '['")
        raise BadTypeError(source, f"unexpected trailing text after '{base}[...]'")

    args = _split_args(s[bracket_pos + 1 : -1], source)
    last = len(args) - 1
    params = []
    for i, arg in enumerate(args):
        # Whitespace is only allowed on the comma side of an argument
        if i > 0:
            arg = arg.lstrip()
        if i < last:
            arg = arg.rstrip()
        params.append(_parse_type(arg, source))
    return TypeStructure(base, tuple(params))


def _split_args(s: str, source: str) -> List[str]:
    """Split type arguments by comma, respecting nested brackets."""
    args = []
    current = []
    bracket_count = 0

    for c in s:
        if c == "[":
            bracket_count += 1
            current.append(c)
        elif c == "]":
            bracket_count -= 1
            if bracket_count < 0:
                raise BadTypeError(source, "mismatched ']'")
            current.append(c)
        elif c == "," and bracket_count == 0:
            args.append("".join(current))
            current = []
        else:
            current.append(c)

    if bracket_count != 0:
        raise BadTypeError(source, "mismatched '['")
    args.append("".join(current))
    return args

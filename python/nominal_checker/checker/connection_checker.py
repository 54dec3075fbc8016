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
"""Nominal connection checker.

Decides whether two typed connections may be linked, and resolves what
explicit types the generics of a block currently stand for.

Type flow:
    A generic on a block is resolved from, in order of precedence:
    1. an external binding made with bind_type();
    2. every linked connection of the block whose check mentions the
       generic. The peer's own types are resolved first (recursively, with
       the peer excluded so the walk never comes back over the same link),
       aligned with the positions where the generic occurs in this block's
       check, and the contributions of all connections are unified with
       nearest common ancestors.
    With nothing to go on the generic resolves to "*".
    Within one call each (block, generic, excluded link) is resolved once,
    so the cost stays linear in the number of links.

    Types therefore flow both ways along chains of generic blocks: from an
    explicit input up through every block above it, and from an explicit
    parent input down to every block below it.

Compatibility:
    A child connection fits a parent connection when some resolved child
    type fulfills some resolved parent type. A parent whose generic is only
    constrained by sibling inputs is more lenient: the child just has to be
    unifiable with the siblings, so inputs can be filled in any order.
"""

from __future__ import annotations

import itertools
import logging
import re
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..core.config import DEFAULT_CONFIG, CheckerConfig
from ..core.errors import (
    ActualParamsCountError,
    BadTypeError,
    ConnectionCheckError,
    InvalidBindingError,
    NominalCheckerError,
    NotInitializedError,
    UndefinedTypeError,
)
from ..types.hierarchy import TypeHierarchy
from ..types.loader import load_hierarchy_def
from ..types.structure import (
    STANDARD_GENERIC,
    STANDARD_GENERIC_NAME,
    TypeStructure,
    parse_type,
)
from ..types.subtyping import is_subtype
from ..types.unification import dedupe, filter_nearest, nearest_common_ancestors
from .workspace import BlockLike, ConnectionKind, ConnectionLike

logger = logging.getLogger(__name__)

# Connections that attach a block to whatever contains it
_OUTER_KINDS = (ConnectionKind.OUTPUT, ConnectionKind.PREVIOUS)


class NominalConnectionChecker:
    """Connection checker backed by a nominal type hierarchy.

    Example:
        >>> checker = NominalConnectionChecker()
        >>> checker.init({"animal": {}, "dog": {"fulfills": ["animal"]}})
        >>> checker.do_type_checks(print_block.get_input("VALUE"), dog_block.output_connection)
        True
    """

    def __init__(self, config: Optional[CheckerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._generic_re = (
            re.compile(self.config.generic_pattern, re.IGNORECASE)
            if self.config.generic_pattern is not None
            else None
        )
        self._hierarchy: Optional[TypeHierarchy] = None
        self._check_cache: Dict[str, TypeStructure] = {}
        self._bindings: "weakref.WeakKeyDictionary[Any, Dict[str, TypeStructure]]" = (
            weakref.WeakKeyDictionary()
        )
        # Resolutions valid while the workspace is unchanged, keyed by
        # (id(block), generic, id(skip)); None outside a resolution scope
        self._resolved: Optional[Dict[Tuple[int, str, int], List[TypeStructure]]] = None

    # =========================================================================
    # Initialization
    # =========================================================================

    def init(self, hierarchy_def: Union[TypeHierarchy, Mapping[str, Any], str, Path]) -> None:
        """Load the type hierarchy, replacing any previous one.

        Args:
            hierarchy_def: A built TypeHierarchy, or a definition mapping,
                JSON text, or JSON file path

        Raises:
            HierarchyError: If the definition is invalid
        """
        if isinstance(hierarchy_def, TypeHierarchy):
            hierarchy = hierarchy_def
        else:
            hierarchy = TypeHierarchy(
                load_hierarchy_def(hierarchy_def, validate=self.config.validate_schema)
            )
        self._hierarchy = hierarchy
        self._check_cache.clear()
        logger.debug(f"Connection checker initialized with {len(hierarchy)} types")

    @property
    def is_initialized(self) -> bool:
        return self._hierarchy is not None

    @property
    def hierarchy(self) -> TypeHierarchy:
        if self._hierarchy is None:
            raise NotInitializedError()
        return self._hierarchy

    def _ensure_initialized(self) -> None:
        if self._hierarchy is None:
            raise NotInitializedError()

    # =========================================================================
    # Public API
    # =========================================================================

    def do_type_checks(self, a: ConnectionLike, b: ConnectionLike) -> bool:
        """Check whether two connections may be linked.

        Raises:
            ConnectionCheckError: Wrapping any error met along the way
        """
        try:
            with self._resolution_scope():
                return self._do_type_checks(a, b)
        except NominalCheckerError as e:
            raise self._connection_error(e, a, b) from e

    def get_explicit_types(self, block: BlockLike, generic: str) -> List[str]:
        """Explicit types the generic currently resolves to on `block`.

        Returns:
            Rendered types; empty when the generic is unbound or its
            constraints conflict

        Raises:
            ConnectionCheckError: Wrapping any error met along the way
        """
        try:
            self._ensure_initialized()
            with self._resolution_scope():
                types = self._get_bound_types(block, generic.lower(), None)
        except NominalCheckerError as e:
            raise ConnectionCheckError(
                f"Error while resolving '{generic}' on {block!r}: {e}",
                blocks=(block,),
                wrapped_error=e,
            ) from e
        return [str(t) for t in types if not t.is_standard_generic]

    def get_explicit_types_of_connection(self, connection: ConnectionLike) -> List[str]:
        """The connection's check with every generic replaced by its resolution.

        Unresolved generics render as "*"; multi-valued generics expand to
        every combination.

        Raises:
            ConnectionCheckError: Wrapping any error met along the way
        """
        try:
            if connection.check is None:
                return [STANDARD_GENERIC_NAME]
            check = self._parse_check(connection.check)
            with self._resolution_scope():
                types = self._explicit_versions(connection.source_block, check, None)
        except NominalCheckerError as e:
            raise self._connection_error(e, connection) from e
        return [str(t) for t in types]

    def bind_type(self, block: BlockLike, generic: str, explicit_type: str) -> None:
        """Bind a generic on `block` to an explicit type.

        Links that the binding makes invalid are dropped; see
        CheckerConfig for the reconnect and bump behaviour.

        Raises:
            InvalidBindingError: If `generic` is not a generic name or
                `explicit_type` mentions a generic
            BadTypeError: If `explicit_type` is malformed or not declared
            NotInitializedError: If init() has not been called
        """
        generic = generic.lower()
        if generic == STANDARD_GENERIC_NAME or not self._is_generic_name(generic):
            raise InvalidBindingError(generic, explicit_type, f"'{generic}' is not a generic")
        struct = self._parse_binding(generic, explicit_type)

        self._bindings.setdefault(block, {})[generic] = struct
        logger.debug(f"Bound {generic} to {struct} on {block!r}")
        self._revalidate_links(block)

    def unbind_type(self, block: BlockLike, generic: str) -> bool:
        """Remove a binding.

        Links are left alone; resolution falls back to type flow.

        Returns:
            True if a binding existed

        Raises:
            NotInitializedError: If init() has not been called
        """
        self._ensure_initialized()
        generic = generic.lower()
        bindings = self._bindings.get(block)
        if not bindings or generic not in bindings:
            return False
        del bindings[generic]
        if not bindings:
            del self._bindings[block]
        logger.debug(f"Unbound {generic} on {block!r}")
        return True

    def get_binding(self, block: BlockLike, generic: str) -> Optional[str]:
        """The type `generic` is externally bound to on `block`, if any."""
        self._ensure_initialized()
        bound = self._binding_of(block, generic.lower())
        return None if bound is None else str(bound)

    # =========================================================================
    # Compatibility
    # =========================================================================

    def _do_type_checks(self, a: ConnectionLike, b: ConnectionLike) -> bool:
        hierarchy = self.hierarchy
        parent, child = (a, b) if a.is_superior() else (b, a)
        if parent.check is None or child.check is None:
            return True

        parent_check = self._parse_check(parent.check)
        child_check = self._parse_check(child.check)
        # Each side excludes its own connection so an existing link between
        # the pair does not vouch for itself
        parent_types = self._explicit_versions(parent.source_block, parent_check, parent)
        child_types = self._explicit_versions(child.source_block, child_check, child)

        if STANDARD_GENERIC in parent_types or STANDARD_GENERIC in child_types:
            return True
        if not parent_types or not child_types:
            return False

        if self._is_generic_leaf(parent_check) and self._is_only_bound_by_inputs(
            parent.source_block, parent_check.name
        ):
            return any(
                nearest_common_ancestors(hierarchy, [c, p])
                for c in child_types
                for p in parent_types
            )
        return any(is_subtype(hierarchy, c, p) for c in child_types for p in parent_types)

    def _is_only_bound_by_inputs(self, block: BlockLike, generic: str) -> bool:
        """True when no binding and no outer connection constrains `generic`."""
        if self._binding_of(block, generic) is not None:
            return False
        for connection in block.connections():
            if connection.kind not in _OUTER_KINDS:
                continue
            if self._connection_contribution(connection, generic) is not None:
                return False
        return True

    # =========================================================================
    # Type flow
    # =========================================================================

    @contextmanager
    def _resolution_scope(self) -> Iterator[None]:
        """Memoise resolutions until the outermost scope exits."""
        if self._resolved is not None:
            yield
            return
        self._resolved = {}
        try:
            yield
        finally:
            self._resolved = None

    def _explicit_versions(
        self,
        block: BlockLike,
        struct: TypeStructure,
        skip: Optional[ConnectionLike],
    ) -> List[TypeStructure]:
        """Replace the generics in `struct` by what they resolve to on `block`."""
        if struct.is_standard_generic:
            return [STANDARD_GENERIC]
        if self._is_generic_name(struct.name):
            return self._get_bound_types(block, struct.name, skip)
        if not struct.params:
            return [struct]
        options = [self._explicit_versions(block, p, skip) for p in struct.params]
        return dedupe(TypeStructure(struct.name, combo) for combo in itertools.product(*options))

    def _get_bound_types(
        self,
        block: BlockLike,
        generic: str,
        skip: Optional[ConnectionLike],
    ) -> List[TypeStructure]:
        """Resolve `generic` on `block`, ignoring the connection `skip`."""
        bound = self._binding_of(block, generic)
        if bound is not None:
            return [bound]

        key = (id(block), generic, id(skip))
        if self._resolved is not None and key in self._resolved:
            return self._resolved[key]
        types = self._resolve_from_links(block, generic, skip)
        if self._resolved is not None:
            self._resolved[key] = types
        return types

    def _resolve_from_links(
        self,
        block: BlockLike,
        generic: str,
        skip: Optional[ConnectionLike],
    ) -> List[TypeStructure]:
        contributions = []
        for connection in block.connections():
            if connection is skip:
                continue
            contribution = self._connection_contribution(connection, generic)
            if contribution is not None:
                contributions.append(contribution)

        if not contributions:
            return [STANDARD_GENERIC]
        return self._unify_contributions(contributions)

    def _connection_contribution(
        self, connection: ConnectionLike, generic: str
    ) -> Optional[List[TypeStructure]]:
        """What the peer of `connection` says about `generic`.

        Returns:
            None when the connection says nothing (unlinked, no mention of
            the generic, or the peer is unbound there), otherwise the
            alternatives the peer allows, empty if they conflict
        """
        peer = connection.target_connection
        if peer is None or connection.check is None or peer.check is None:
            return None
        check = self._parse_check(connection.check)
        if not check.contains_name(generic):
            return None

        peer_check = self._parse_check(peer.check)
        peer_types = self._explicit_versions(peer.source_block, peer_check, peer)

        found = False
        alternatives: List[TypeStructure] = []
        for peer_type in peer_types:
            matches = [
                m for m in self._find_generic(check, generic, peer_type)
                if not m.is_standard_generic
            ]
            if not matches:
                continue
            found = True
            # Several occurrences of the generic must agree
            alternatives.extend(nearest_common_ancestors(self.hierarchy, matches))
        if not found:
            return None
        return dedupe(alternatives)

    def _unify_contributions(
        self, contributions: List[List[TypeStructure]]
    ) -> List[TypeStructure]:
        hierarchy = self.hierarchy
        result = contributions[0]
        for alternatives in contributions[1:]:
            result = dedupe(
                ancestor
                for r in result
                for t in alternatives
                for ancestor in nearest_common_ancestors(hierarchy, [r, t])
            )
            if not result:
                return []
        return filter_nearest(result, lambda a, b: is_subtype(hierarchy, a, b))

    def _find_generic(
        self, pattern: TypeStructure, generic: str, actual: TypeStructure
    ) -> List[TypeStructure]:
        """Collect the parts of `actual` sitting where `pattern` has `generic`."""
        if not pattern.params:
            return [actual] if pattern.name == generic else []
        if not pattern.contains_name(generic):
            return []
        if actual.is_standard_generic:
            return [STANDARD_GENERIC]

        params = self._align(pattern.name, actual)
        if params is None:
            logger.debug(f"Ignoring {actual}: it is unrelated to {pattern.name}")
            return []
        found = []
        for sub_pattern, sub_actual in zip(pattern.params, params):
            found.extend(self._find_generic(sub_pattern, generic, sub_actual))
        return found

    def _align(self, head: str, actual: TypeStructure) -> Optional[List[TypeStructure]]:
        """Express `actual`'s parameters as parameters of `head`."""
        hierarchy = self.hierarchy
        if actual.name == head:
            return list(actual.params)
        params = hierarchy.get_params_for_ancestor(actual, head)
        if params is not None:
            return params
        if hierarchy.get_def(head).has_ancestor(actual.name):
            mapped = hierarchy.get_params_for_descendant(actual.name, head, actual.params)
            return [STANDARD_GENERIC if p is None else p for p in mapped]
        return None

    # =========================================================================
    # Bindings
    # =========================================================================

    def _binding_of(self, block: BlockLike, generic: str) -> Optional[TypeStructure]:
        bindings = self._bindings.get(block)
        return bindings.get(generic) if bindings else None

    def _parse_binding(self, generic: str, explicit_type: str) -> TypeStructure:
        struct = parse_type(explicit_type)
        for node in struct.walk():
            if node.name == STANDARD_GENERIC_NAME or self._is_generic_name(node.name):
                raise InvalidBindingError(
                    generic, explicit_type, f"'{node.name}' is a generic, not an explicit type"
                )
        self.hierarchy.validate(struct)
        return struct

    def _revalidate_links(self, block: BlockLike) -> None:
        """Drop links of `block` that no longer type check, then re-link the rest."""
        linked = [
            (connection, connection.target_connection)
            for connection in block.connections()
            if connection.target_connection is not None
        ]

        survivors = []
        for connection, peer in linked:
            if self._check_linked(connection, peer):
                survivors.append((connection, peer))
            else:
                connection.disconnect()
                logger.debug(f"Disconnected {connection!r} from {peer!r} after binding")

        if self.config.reconnect_on_bind:
            for connection, _ in survivors:
                connection.disconnect()
            for connection, peer in survivors:
                if self._check_linked(connection, peer):
                    connection.connect(peer)
                else:
                    logger.debug(f"Could not reconnect {connection!r} to {peer!r}")

        if self.config.bump_neighbours_on_bind and getattr(block, "rendered", False):
            bump = getattr(block, "bump_neighbours", None)
            if bump is not None:
                bump()

    def _check_linked(self, a: ConnectionLike, b: ConnectionLike) -> bool:
        """Re-check a pair while links are being changed around it."""
        with self._resolution_scope():
            return self._do_type_checks(a, b)

    # =========================================================================
    # Checks
    # =========================================================================

    def _is_generic_name(self, name: str) -> bool:
        if name == STANDARD_GENERIC_NAME:
            return True
        hierarchy = self.hierarchy
        if hierarchy.type_exists(name):
            return False
        if self._generic_re is not None:
            return self._generic_re.fullmatch(name) is not None
        return True

    def _is_generic_leaf(self, struct: TypeStructure) -> bool:
        return (
            not struct.params
            and not struct.is_standard_generic
            and self._is_generic_name(struct.name)
        )

    def _parse_check(self, check: str) -> TypeStructure:
        """Parse and validate a connection check, caching by text."""
        struct = self._check_cache.get(check)
        if struct is None:
            struct = parse_type(check)
            self._validate_check(struct)
            self._check_cache[check] = struct
        return struct

    def _validate_check(self, struct: TypeStructure) -> None:
        hierarchy = self.hierarchy
        for node in struct.walk():
            if self._is_generic_name(node.name):
                if node.params:
                    raise BadTypeError(
                        str(struct), f"the generic '{node.name}' cannot take parameters"
                    )
                continue
            if not hierarchy.type_exists(node.name):
                raise UndefinedTypeError(node.name)
            expected = hierarchy.get_def(node.name).arity
            if len(node.params) != expected:
                raise ActualParamsCountError(node.name, len(node.params), expected)

    # =========================================================================
    # Errors
    # =========================================================================

    @staticmethod
    def _connection_name(connection: ConnectionLike) -> str:
        if connection.kind is ConnectionKind.INPUT:
            return connection.input_name or "input"
        return connection.kind.value

    def _connection_error(
        self, error: NominalCheckerError, *connections: ConnectionLike
    ) -> ConnectionCheckError:
        names = ", ".join(self._connection_name(c) for c in connections)
        blocks = tuple(c.source_block for c in connections)
        return ConnectionCheckError(
            f"Error while checking connection(s) {names} on "
            f"{', '.join(repr(b) for b in blocks)}: {error}",
            connections=tuple(connections),
            blocks=blocks,
            wrapped_error=error,
        )

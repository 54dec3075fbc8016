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
"""Type-definition registry and parameter re-mapping.

The registry holds every declared type together with its formal parameters
and its `fulfills` parents. It is built once from a hierarchy definition:

    {
        "list": {
            "params": [{"name": "A", "variance": "inv"}],
            "fulfills": ["getterlist[A]", "adderlist[A]"],
        },
        ...
    }

and is immutable afterwards.

Parameter re-mapping:
    Each declared type precomputes, for every ancestor (itself included), a
    template of that ancestor's parameters written in terms of its own formal
    parameters. Formal parameters appear in templates as positional slots, so
    `typeb[C, D] fulfills typea[D, C]` records typea applied to slot 1 and
    then slot 0.
    Filling the slots with actual parameters answers "what is typeb[x, y]
    when seen as a typea", and matching a template against actual ancestor
    parameters answers the inverse question.

    A type may reach one ancestor along several paths with different
    parameters, e.g. both box[dog] and box[cat]. Every distinct template is
    kept. Re-mapping uses the first in declaration order; subtyping accepts
    any of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.errors import (
    ActualParamsCountError,
    BadTypeError,
    CyclicHierarchyError,
    DuplicateTypeError,
    HierarchyError,
    ParentParamsCountError,
    UndefinedParentError,
    UndefinedTypeError,
    UnknownParamReferenceError,
)
from . import subtyping, unification
from .loader import load_hierarchy_def
from .structure import (
    STANDARD_GENERIC,
    STANDARD_GENERIC_NAME,
    TypeStructure,
    is_identifier,
    parse_type,
)
from .variance import Variance, string_to_variance

logger = logging.getLogger(__name__)

TypeLike = Union[str, TypeStructure]


def _slot(index: int) -> TypeStructure:
    """Placeholder leaf for a formal parameter. The parser can never produce it."""
    return TypeStructure(f"[{index}]")


def _fill_slots(template: TypeStructure, actuals: Sequence[TypeStructure]) -> TypeStructure:
    """Substitute actual parameters into a template's slots."""
    return template.substitute({_slot(i).name: actual for i, actual in enumerate(actuals)})


def _slot_index(node: TypeStructure) -> Optional[int]:
    if node.params or not node.name.startswith("["):
        return None
    return int(node.name[1:-1])


@dataclass(frozen=True, slots=True)
class ParamDef:
    """A formal type parameter.

    Attributes:
        name: Lowercased parameter name
        variance: Declared variance of the parameter
    """

    name: str
    variance: Variance


class TypeDef:
    """A declared type and its position in the hierarchy.

    Attributes:
        name: Lowercased type name
        params: Formal parameters, in declaration order
        fulfills: Parent expressions as declared, lowercased
    """

    def __init__(
        self,
        name: str,
        params: Sequence[ParamDef],
        fulfills: Sequence[TypeStructure],
    ):
        self.name = name
        self.params: Tuple[ParamDef, ...] = tuple(params)
        self.fulfills: Tuple[TypeStructure, ...] = tuple(fulfills)
        # Populated by TypeHierarchy while it links the definitions
        self._parents: List[TypeStructure] = []
        self._subs: List[str] = []
        self._ancestor_templates: Dict[str, List[TypeStructure]] = {}
        self._descendants: List[str] = []

    @property
    def arity(self) -> int:
        return len(self.params)

    def supers(self) -> List[TypeStructure]:
        """Direct parents, as declared."""
        return list(self.fulfills)

    def subs(self) -> List[str]:
        """Names of the types that directly fulfill this one."""
        return list(self._subs)

    def ancestors(self) -> List[str]:
        """Names of all strict ancestors, in declaration order."""
        return [name for name in self._ancestor_templates if name != self.name]

    def descendants(self) -> List[str]:
        """Names of all strict descendants, in declaration order."""
        return list(self._descendants)

    def has_ancestor(self, name: str) -> bool:
        name = name.lower()
        return name != self.name and name in self._ancestor_templates

    def has_descendant(self, name: str) -> bool:
        return name.lower() in self._descendants

    def fulfills_name(self, name: str) -> bool:
        """Check whether `name` is this type or one of its ancestors."""
        return name.lower() in self._ancestor_templates

    def ancestor_template(self, name: str) -> Optional[TypeStructure]:
        """The ancestor `name` written over this type's parameter slots.

        When several fulfills paths reach `name` with different parameters,
        this is the one met first in declaration order.
        """
        templates = self._ancestor_templates.get(name.lower())
        return templates[0] if templates else None

    def ancestor_templates(self, name: str) -> List[TypeStructure]:
        """Every distinct template through which `name` is reached."""
        return list(self._ancestor_templates.get(name.lower(), ()))

    def get_index_of_param(self, name: str) -> Optional[int]:
        name = name.lower()
        for i, param in enumerate(self.params):
            if param.name == name:
                return i
        return None

    def get_param_for_index(self, index: int) -> ParamDef:
        return self.params[index]

    def get_param_with_name(self, name: str) -> Optional[ParamDef]:
        index = self.get_index_of_param(name)
        return None if index is None else self.params[index]

    def render_template(self, template: TypeStructure) -> str:
        """Render a slot template using this type's formal parameter names."""
        return str(_fill_slots(template, [TypeStructure(p.name) for p in self.params]))

    def __repr__(self) -> str:
        params = ", ".join(f"{p.name}:{p.variance.value}" for p in self.params)
        head = f"{self.name}[{params}]" if params else self.name
        return f"TypeDef({head}, fulfills={[str(f) for f in self.fulfills]})"


class TypeHierarchy:
    """Registry of declared types.

    Validates the definition eagerly: every problem with names, parents,
    parameter counts, parameter references, variances, or cycles is raised
    from the constructor as a HierarchyError subclass.

    Example:
        >>> hierarchy = TypeHierarchy({
        ...     "animal": {},
        ...     "dog": {"fulfills": ["animal"]},
        ... })
        >>> hierarchy.type_fulfills_type("dog", "animal")
        True
    """

    def __init__(self, hierarchy_def: Mapping[str, Any]):
        if not isinstance(hierarchy_def, Mapping):
            raise HierarchyError(None, "The hierarchy definition must be a mapping")

        self._defs: Dict[str, TypeDef] = {}
        self._order: Dict[str, int] = {}

        for raw_name, raw_def in hierarchy_def.items():
            name = self._read_type_name(raw_name)
            if name in self._defs:
                raise DuplicateTypeError(name)
            raw_def = raw_def or {}
            if not isinstance(raw_def, Mapping):
                raise HierarchyError(name, f"The definition of {name} must be a mapping")
            params = self._read_params(name, raw_def.get("params") or [])
            fulfills = self._read_fulfills(name, raw_def.get("fulfills") or [])
            self._order[name] = len(self._order)
            self._defs[name] = TypeDef(name, params, fulfills)

        for tdef in self._defs.values():
            tdef._parents = [self._parent_template(tdef, parent) for parent in tdef.fulfills]

        for name in self._topological_order():
            self._link(self._defs[name])

        logger.debug(f"Built type hierarchy with {len(self._defs)} types")

    @classmethod
    def from_json(
        cls, source: Union[str, Path, Mapping[str, Any]], validate: bool = True
    ) -> TypeHierarchy:
        """Build a hierarchy from JSON text, a JSON file, or a mapping."""
        return cls(load_hierarchy_def(source, validate=validate))

    # =========================================================================
    # Construction
    # =========================================================================

    def _read_type_name(self, raw_name: Any) -> str:
        if not isinstance(raw_name, str) or not is_identifier(raw_name):
            raise HierarchyError(None, f"Invalid type name {raw_name!r}")
        if raw_name == STANDARD_GENERIC_NAME:
            raise HierarchyError(raw_name, "The name '*' is reserved for the unbound generic")
        return raw_name.lower()

    def _read_params(self, type_name: str, raw_params: Any) -> List[ParamDef]:
        if not isinstance(raw_params, list):
            raise HierarchyError(type_name, f"The params of {type_name} must be a list")
        params: List[ParamDef] = []
        seen = set()
        for raw_param in raw_params:
            if not isinstance(raw_param, Mapping):
                raise HierarchyError(type_name, f"Invalid parameter {raw_param!r} on {type_name}")
            raw_param_name = raw_param.get("name")
            if not isinstance(raw_param_name, str) or not is_identifier(raw_param_name):
                raise HierarchyError(
                    type_name, f"Invalid parameter name {raw_param_name!r} on {type_name}"
                )
            param_name = raw_param_name.lower()
            if param_name == STANDARD_GENERIC_NAME:
                raise HierarchyError(type_name, "The name '*' cannot be used as a parameter")
            if param_name in seen:
                raise HierarchyError(
                    type_name, f"The parameter {param_name} is declared twice on {type_name}"
                )
            seen.add(param_name)
            variance = string_to_variance(raw_param.get("variance"), type_name, param_name)
            params.append(ParamDef(param_name, variance))
        return params

    def _read_fulfills(self, type_name: str, raw_fulfills: Any) -> List[TypeStructure]:
        if not isinstance(raw_fulfills, list):
            raise HierarchyError(type_name, f"The fulfills of {type_name} must be a list")
        fulfills = []
        for raw in raw_fulfills:
            try:
                fulfills.append(parse_type(raw))
            except BadTypeError as e:
                raise HierarchyError(
                    type_name, f"The type {type_name} has an invalid parent: {e}"
                ) from e
        return fulfills

    def _parent_template(self, tdef: TypeDef, parent: TypeStructure) -> TypeStructure:
        """Rewrite a declared parent over `tdef`'s parameter slots."""
        parent_def = self._defs.get(parent.name)
        if parent_def is None:
            raise UndefinedParentError(tdef.name, parent.name)
        if len(parent.params) != parent_def.arity:
            raise ParentParamsCountError(
                tdef.name, parent.name, len(parent.params), parent_def.arity
            )
        return TypeStructure(
            parent.name,
            tuple(self._argument_template(tdef, parent, arg) for arg in parent.params),
        )

    def _argument_template(
        self, tdef: TypeDef, parent: TypeStructure, arg: TypeStructure
    ) -> TypeStructure:
        # Formal parameters shadow declared types of the same name
        index = tdef.get_index_of_param(arg.name)
        if index is not None:
            if arg.params:
                raise HierarchyError(
                    tdef.name,
                    f"The type {tdef.name} applies its parameter {arg.name} "
                    f"to parameters in {parent}",
                )
            return _slot(index)

        arg_def = self._defs.get(arg.name)
        if arg_def is None:
            raise UnknownParamReferenceError(tdef.name, str(parent), arg.name)
        if len(arg.params) != arg_def.arity:
            raise ParentParamsCountError(tdef.name, arg.name, len(arg.params), arg_def.arity)
        return TypeStructure(
            arg.name, tuple(self._argument_template(tdef, parent, p) for p in arg.params)
        )

    def _topological_order(self) -> List[str]:
        """Order the types so every parent precedes its children.

        Raises:
            CyclicHierarchyError: If some type (transitively) fulfills itself
        """
        order: List[str] = []
        done = set()
        visiting: List[str] = []

        def visit(name: str) -> None:
            if name in done:
                return
            if name in visiting:
                cycle = visiting[visiting.index(name):] + [name]
                raise CyclicHierarchyError(cycle)
            visiting.append(name)
            for parent in self._defs[name]._parents:
                visit(parent.name)
            visiting.pop()
            done.add(name)
            order.append(name)

        for name in self._defs:
            visit(name)
        return order

    def _link(self, tdef: TypeDef) -> None:
        """Compute ancestor templates for `tdef`; its parents are already linked."""
        templates: Dict[str, List[TypeStructure]] = {
            tdef.name: [TypeStructure(tdef.name, tuple(_slot(i) for i in range(tdef.arity)))]
        }
        for parent in tdef._parents:
            parent_def = self._defs[parent.name]
            if tdef.name not in parent_def._subs:
                parent_def._subs.append(tdef.name)
            for ancestor, parent_templates in parent_def._ancestor_templates.items():
                paths = templates.setdefault(ancestor, [])
                for template in parent_templates:
                    expr = _fill_slots(template, parent.params)
                    if expr not in paths:
                        paths.append(expr)

        for ancestor, paths in templates.items():
            if len(paths) > 1:
                logger.debug(
                    f"{tdef.name} reaches {ancestor} as "
                    f"{', '.join(tdef.render_template(p) for p in paths)}"
                )
        tdef._ancestor_templates = {
            name: templates[name] for name in sorted(templates, key=self._order.__getitem__)
        }
        for ancestor in tdef.ancestors():
            descendants = self._defs[ancestor]._descendants
            descendants.append(tdef.name)
            descendants.sort(key=self._order.__getitem__)

    # =========================================================================
    # Lookup and validation
    # =========================================================================

    @property
    def type_names(self) -> List[str]:
        """Declared type names, in declaration order."""
        return list(self._defs)

    def type_exists(self, name: str) -> bool:
        """Case-insensitive check for a declared type."""
        return isinstance(name, str) and name.lower() in self._defs

    def get_def(self, name: str) -> TypeDef:
        """Return the definition of `name`.

        Raises:
            UndefinedTypeError: If no such type is declared
        """
        tdef = self._defs.get(name.lower())
        if tdef is None:
            raise UndefinedTypeError(name.lower())
        return tdef

    def validate(self, struct: TypeStructure) -> None:
        """Check that every name is declared and applied to the right arity.

        The unbound generic "*" is accepted anywhere as a leaf.

        Raises:
            UndefinedTypeError: On an undeclared name
            ActualParamsCountError: On an arity mismatch
        """
        for node in struct.walk():
            if node.name == STANDARD_GENERIC_NAME:
                if node.params:
                    raise ActualParamsCountError(node.name, len(node.params), 0)
                continue
            tdef = self.get_def(node.name)
            if len(node.params) != tdef.arity:
                raise ActualParamsCountError(node.name, len(node.params), tdef.arity)

    def parse(self, text: str) -> TypeStructure:
        """Parse and validate a fully explicit type expression."""
        struct = parse_type(text)
        self.validate(struct)
        return struct

    def _coerce(self, value: TypeLike) -> TypeStructure:
        if isinstance(value, TypeStructure):
            self.validate(value)
            return value
        return self.parse(value)

    # =========================================================================
    # Parameter re-mapping
    # =========================================================================

    def get_params_for_ancestor(
        self, sub: TypeStructure, ancestor_name: str
    ) -> Optional[List[TypeStructure]]:
        """Express `ancestor_name`'s parameters in `sub`'s parameter space.

        Args:
            sub: An applied type, e.g. typeb[x, y]
            ancestor_name: Name of `sub`'s head or one of its ancestors

        Returns:
            The ancestor's parameters along the first fulfills path, or None
            when `ancestor_name` is not an ancestor of `sub`
        """
        template = self.get_def(sub.name).ancestor_template(ancestor_name)
        if template is None:
            return None
        return list(_fill_slots(template, sub.params).params)

    def get_all_params_for_ancestor(
        self, sub: TypeStructure, ancestor_name: str
    ) -> List[List[TypeStructure]]:
        """Like get_params_for_ancestor, once per distinct fulfills path.

        Returns:
            One parameter list per path, first path first; empty when
            `ancestor_name` is not an ancestor of `sub`
        """
        templates = self.get_def(sub.name).ancestor_templates(ancestor_name)
        return [list(_fill_slots(t, sub.params).params) for t in templates]

    def reorganize_for_ancestor(
        self, sub: TypeStructure, ancestor_name: str
    ) -> Optional[TypeStructure]:
        """View `sub` as an instance of `ancestor_name`, e.g. typeb[x, y] -> typea[y, x]."""
        params = self.get_params_for_ancestor(sub, ancestor_name)
        if params is None:
            return None
        return TypeStructure(ancestor_name, tuple(params))

    def get_params_for_descendant(
        self,
        ancestor_name: str,
        descendant_name: str,
        actual_params: Optional[Sequence[TypeStructure]] = None,
    ) -> Optional[List[Optional[TypeStructure]]]:
        """Express a descendant's parameters in terms of an ancestor's.

        Each descendant slot that the ancestor determines is filled from the
        ancestor's parameters. Without `actual_params` the ancestor's formal
        parameter names are used, so typeb[a, b] fulfills typea[b] gives
        [None, a]. With `actual_params` the actual types are used instead.

        Args:
            ancestor_name: Name of the ancestor
            descendant_name: Name of a type that fulfills the ancestor
            actual_params: Optional explicit parameters of the ancestor

        Returns:
            One entry per descendant parameter, None where the ancestor does
            not constrain it, or None overall if there is no such relation
        """
        ancestor_def = self.get_def(ancestor_name)
        descendant_def = self.get_def(descendant_name)
        template = descendant_def.ancestor_template(ancestor_def.name)
        if template is None:
            return None
        if actual_params is None:
            actual_params = [TypeStructure(p.name) for p in ancestor_def.params]

        bindings: List[Optional[TypeStructure]] = [None] * descendant_def.arity
        for pattern, actual in zip(template.params, actual_params):
            _match_template(pattern, actual, bindings)
        return bindings

    # =========================================================================
    # Subtyping and unification
    # =========================================================================

    def type_fulfills_type(self, sub: TypeLike, sup: TypeLike) -> bool:
        """Check whether `sub` is a subtype of `sup` (see subtyping)."""
        return subtyping.is_subtype(self, self._coerce(sub), self._coerce(sup))

    def type_is_exactly_type(self, a: TypeLike, b: TypeLike) -> bool:
        """Check structural equality of two validated types."""
        return self._coerce(a) == self._coerce(b)

    def nearest_common_ancestors(self, *types: TypeLike) -> List[TypeStructure]:
        """Minimal set of common ancestors of `types` (see unification)."""
        return unification.nearest_common_ancestors(self, [self._coerce(t) for t in types])

    def nearest_common_descendants(self, *types: TypeLike) -> List[TypeStructure]:
        """Maximal set of common descendants of `types` (see unification)."""
        return unification.nearest_common_descendants(self, [self._coerce(t) for t in types])

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.type_exists(name)

    def __len__(self) -> int:
        return len(self._defs)

    def __repr__(self) -> str:
        return f"TypeHierarchy({len(self._defs)} types)"


def _match_template(
    pattern: TypeStructure,
    actual: TypeStructure,
    bindings: List[Optional[TypeStructure]],
) -> None:
    """Bind the slots of `pattern` to the matching parts of `actual`.

    The first binding of a slot wins. Parts that do not line up, and "*"
    actuals, leave slots unbound.
    """
    if actual == STANDARD_GENERIC:
        return
    index = _slot_index(pattern)
    if index is not None:
        if bindings[index] is None:
            bindings[index] = actual
        return
    if pattern.name != actual.name or len(pattern.params) != len(actual.params):
        return
    for sub_pattern, sub_actual in zip(pattern.params, actual.params):
        _match_template(sub_pattern, sub_actual, bindings)

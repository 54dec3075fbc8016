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
"""Loading and schema validation of hierarchy definitions.

A hierarchy definition can come from a mapping, a JSON string, or a JSON
file. Before it reaches TypeHierarchy it is checked against the bundled
JSON schema, so shape errors (a misspelled key, a parameter without a
variance) are reported together and with their JSON pointer.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Union

import jsonschema

from ..core.errors import HierarchyError, HierarchySchemaError
from ..schema import SCHEMA_FILE

logger = logging.getLogger(__name__)

_schema_cache: Dict[str, Any] = {}


def load_schema_text() -> str:
    with resources.files("nominal_checker.schema").joinpath(SCHEMA_FILE).open(
        "r", encoding="utf-8"
    ) as f:
        return f.read()


def load_schema() -> Dict[str, Any]:
    """Return the hierarchy JSON schema, parsed once per process."""
    if "schema" not in _schema_cache:
        _schema_cache["schema"] = json.loads(load_schema_text())
    return _schema_cache["schema"]


def join_pointer(parts: Sequence[Any]) -> str:
    """Build an RFC 6901 JSON pointer from path segments."""
    if not parts:
        return ""
    escaped = (str(p).replace("~", "~0").replace("/", "~1") for p in parts)
    return "/" + "/".join(escaped)


def validate_hierarchy_def(hierarchy_def: Any) -> List[Dict[str, Any]]:
    """Validate a raw definition against the schema.

    Args:
        hierarchy_def: Decoded JSON value

    Returns:
        One dict per violation with "pointer", "message" and "validator",
        ordered by location. Empty when the definition is valid.
    """
    validator = jsonschema.Draft202012Validator(load_schema())
    errors: List[Dict[str, Any]] = []
    for err in sorted(validator.iter_errors(hierarchy_def), key=lambda e: list(map(str, e.absolute_path))):
        errors.append(
            {
                "pointer": join_pointer(list(err.absolute_path)),
                "message": err.message,
                "validator": err.validator,
            }
        )
    return errors


def load_hierarchy_def(
    source: Union[str, Path, Mapping[str, Any]], validate: bool = True
) -> Dict[str, Any]:
    """Load a hierarchy definition.

    Args:
        source: A mapping, JSON text, or path to a JSON file
        validate: Check the definition against the hierarchy schema

    Returns:
        The definition as a plain dict

    Raises:
        HierarchyError: If the source cannot be read or decoded
        HierarchySchemaError: If the definition does not match the schema
    """
    if isinstance(source, Path):
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise HierarchyError(None, f"Cannot read hierarchy file {source}: {e}") from e
        data = _decode(text, str(source))
    elif isinstance(source, str):
        data = _decode(source, "<string>")
    elif isinstance(source, Mapping):
        data = dict(source)
    else:
        raise HierarchyError(
            None, f"Unsupported hierarchy source of type {type(source).__name__}"
        )

    if validate:
        errors = validate_hierarchy_def(data)
        if errors:
            logger.debug(f"Hierarchy definition has {len(errors)} schema error(s)")
            raise HierarchySchemaError(errors)
    return data


def _decode(text: str, origin: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise HierarchyError(None, f"Invalid JSON in {origin}: {e}") from e

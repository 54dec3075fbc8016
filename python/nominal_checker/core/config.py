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
"""Runtime configuration for the connection checker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CheckerConfig:
    """Configuration for NominalConnectionChecker.

    Attributes:
        generic_pattern: Regular expression deciding which identifiers are
            generics. When None, any identifier not declared in the hierarchy
            is a generic. When set, an undeclared identifier is a generic iff
            it fully matches the pattern (ignoring case), and other undeclared
            identifiers are errors. Declared types are never generics.

        reconnect_on_bind: After bind_type drops incompatible links, detach
            and re-attach the surviving ones so each is re-checked against
            the final state of the block.

        bump_neighbours_on_bind: Call bump_neighbours() on rendered blocks
            after bind_type has changed their links.

        validate_schema: Validate the raw hierarchy definition against the
            bundled JSON schema before building the hierarchy.

    Example:
        >>> config = CheckerConfig(generic_pattern=r"[a-z]")
        >>> checker = NominalConnectionChecker(config)
    """

    generic_pattern: Optional[str] = None
    reconnect_on_bind: bool = True
    bump_neighbours_on_bind: bool = True
    validate_schema: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "generic_pattern": self.generic_pattern,
            "reconnect_on_bind": self.reconnect_on_bind,
            "bump_neighbours_on_bind": self.bump_neighbours_on_bind,
            "validate_schema": self.validate_schema,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CheckerConfig":
        """Create from dictionary."""
        return cls(
            generic_pattern=d.get("generic_pattern"),
            reconnect_on_bind=d.get("reconnect_on_bind", True),
            bump_neighbours_on_bind=d.get("bump_neighbours_on_bind", True),
            validate_schema=d.get("validate_schema", True),
        )


# Default configuration singleton
DEFAULT_CONFIG = CheckerConfig()

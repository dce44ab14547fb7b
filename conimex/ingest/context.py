"""
Read-only context shared by every step of an import.
"""

from dataclasses import dataclass, field
from typing import Tuple

from ..schema import SchemaRegistry


@dataclass(frozen=True)
class ImportContext:
    """
    Configuration an import runs against. Built once and never mutated.
    """
    registry: SchemaRegistry
    available_locales: Tuple[str, ...] = field(default_factory=tuple)
    clear_interval: int = 3
    skip_users: bool = False
    default_user_locale: str = "en"
    default_backend_theme: str = "default"

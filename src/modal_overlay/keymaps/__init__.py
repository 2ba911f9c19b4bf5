"""Key contexts, sequence matching, and declarative bindings."""

from .models import Action, Binding, BindingTable, BlockedKeys, KeyContext, WhenClause
from .matcher import Resolution, has_longer_binding, resolve
from .registry import KeymapConflictError, KeymapRegistry, RegistryStats

__all__ = [
    "Action",
    "Binding",
    "BindingTable",
    "BlockedKeys",
    "KeyContext",
    "WhenClause",
    "Resolution",
    "has_longer_binding",
    "resolve",
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]

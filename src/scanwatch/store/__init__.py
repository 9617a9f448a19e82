"""Identity store adapters."""

from .base import IdentityStore
from .memory import DuplicateCredential, MemoryIdentityStore
from .yaml_store import StoreError, YamlIdentityStore

__all__ = [
    "DuplicateCredential",
    "IdentityStore",
    "MemoryIdentityStore",
    "StoreError",
    "YamlIdentityStore",
]

"""Ephemeral artifact cache and its key-value store backends."""

from .artifacts import (
    ArtifactCache,
    StoredArtifact,
    generate_artifact_id,
    meta_key,
    data_key,
)
from .storage import (
    KeyValueStore,
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    StoreUnavailableError,
    create_store,
)

__all__ = [
    "ArtifactCache",
    "StoredArtifact",
    "generate_artifact_id",
    "meta_key",
    "data_key",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "StoreUnavailableError",
    "create_store",
]

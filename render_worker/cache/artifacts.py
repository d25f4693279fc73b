"""Ephemeral artifact cache.

Each artifact is stored as two co-expiring records in a flat key-value
namespace:

    {id}:meta   JSON-encoded ArtifactMetadata
    {id}:data   base64-encoded payload

The store offers no multi-key transaction, so the two writes are issued
concurrently and the pair is only treated as a unit when reading: an
artifact is found only if both records are present. The cache never deletes
or scans; records disappear through the store's own expiry.
"""

import asyncio
import base64
import binascii
import logging
import secrets
import string
import time
from dataclasses import dataclass

from pydantic import ValidationError

from ..errors import ArtifactNotFoundError, CacheUnavailableError
from ..models.capture import ArtifactMetadata
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_RANDOM_LENGTH = 11


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(ID_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_artifact_id() -> str:
    """Generate a collision-free artifact identifier.

    Millisecond timestamp in base36 followed by a random base36 suffix, so
    identifiers are lowercase alphanumeric and roughly time-ordered.
    """
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_RANDOM_LENGTH))
    return _base36(int(time.time() * 1000)) + suffix


def meta_key(artifact_id: str) -> str:
    return f"{artifact_id}:meta"


def data_key(artifact_id: str) -> str:
    return f"{artifact_id}:data"


@dataclass
class StoredArtifact:
    """An artifact read back from the cache."""
    id: str
    metadata: ArtifactMetadata
    payload: bytes


class ArtifactCache:
    """Write-once, read-many artifact storage with TTL expiry."""

    def __init__(self, store: KeyValueStore, ttl_seconds: int = 3600):
        """Initialize artifact cache.

        Args:
            store: Backing key-value store
            ttl_seconds: Lifetime shared by both records of an artifact
        """
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def put(self, artifact_id: str, payload: bytes, metadata: ArtifactMetadata) -> None:
        """Write the metadata and payload records with the same expiry.

        Raises:
            CacheUnavailableError: If either write fails
        """
        encoded = base64.b64encode(payload).decode('ascii')

        try:
            await asyncio.gather(
                self.store.put(meta_key(artifact_id), metadata.to_json(), self.ttl_seconds),
                self.store.put(data_key(artifact_id), encoded, self.ttl_seconds),
            )
        except CacheUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Failed to store artifact {artifact_id}: {e}")
            raise CacheUnavailableError(f"Cache unavailable: {e}")

        logger.info(f"Stored artifact {artifact_id} ({len(payload)} bytes, ttl={self.ttl_seconds}s)")

    async def get(self, artifact_id: str) -> StoredArtifact:
        """Read both records of an artifact.

        Raises:
            ArtifactNotFoundError: If either record is absent, expired or unreadable
        """
        raw_meta = await self.store.get(meta_key(artifact_id))
        if not raw_meta:
            logger.warning(f"Artifact metadata not found: {artifact_id}")
            raise ArtifactNotFoundError("Image not found")

        try:
            metadata = ArtifactMetadata.model_validate_json(raw_meta)
        except ValidationError as e:
            logger.error(f"Corrupt metadata for artifact {artifact_id}: {e}")
            raise ArtifactNotFoundError("Image not found")

        raw_data = await self.store.get(data_key(artifact_id))
        if not raw_data:
            logger.warning(f"Artifact data not found: {artifact_id}")
            raise ArtifactNotFoundError("Image data not found")

        try:
            payload = base64.b64decode(raw_data, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Corrupt payload for artifact {artifact_id}: {e}")
            raise ArtifactNotFoundError("Image data not found")

        return StoredArtifact(id=artifact_id, metadata=metadata, payload=payload)

    def remaining_ttl(self, metadata: ArtifactMetadata) -> int:
        """Seconds left before an artifact created at ``metadata.timestamp`` expires."""
        age = time.time() - metadata.timestamp / 1000
        return max(int(self.ttl_seconds - age), 0)

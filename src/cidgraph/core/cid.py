"""Content hash value object and CIDv1 encoding."""

from __future__ import annotations

import base64
import re
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidHashLengthError

DIGEST_LENGTH = 32

# multihash header: sha2-256, 32-byte digest
MULTIHASH_PREFIX = bytes([0x12, DIGEST_LENGTH])
# CID header: version 1, raw binary codec
CID_V1_RAW_PREFIX = bytes([0x01, 0x55])
# multibase marker for lowercase base32 without padding
MULTIBASE_BASE32 = "b"

_CIDV1_BASE32_RE = re.compile(r"^b[a-z2-7]{10,}$")


class ContentHash(BaseModel):
    """A 32-byte sha2-256 digest as emitted by the submission contract."""

    model_config = ConfigDict(frozen=True)

    digest: bytes = Field(..., description="Raw 32-byte digest")

    HEX_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^(?:[0-9a-fA-F]{2})*$")

    @field_validator("digest")
    @classmethod
    def check_length(cls, v: bytes) -> bytes:
        if len(v) != DIGEST_LENGTH:
            raise InvalidHashLengthError(
                f"Content hash must be {DIGEST_LENGTH} bytes, got {len(v)}",
                length=len(v),
            )
        return v

    @classmethod
    def parse(cls, value: str) -> ContentHash:
        """Parse a hex string with an optional ``0x`` prefix."""
        clean = value.strip()
        if clean[:2].lower() == "0x":
            clean = clean[2:]
        if not cls.HEX_PATTERN.match(clean):
            raise InvalidHashLengthError(
                f"Content hash is not an even-length hex string: {value!r}",
            )
        digest = bytes.fromhex(clean)
        if len(digest) != DIGEST_LENGTH:
            raise InvalidHashLengthError(
                f"Content hash must be {DIGEST_LENGTH} bytes, got {len(digest)}",
                length=len(digest),
            )
        return cls(digest=digest)

    @property
    def multihash(self) -> bytes:
        return MULTIHASH_PREFIX + self.digest

    def to_cid(self) -> str:
        """Encode as a CIDv1 (raw codec) in lowercase base32 multibase."""
        envelope = CID_V1_RAW_PREFIX + self.multihash
        encoded = base64.b32encode(envelope).decode("ascii").lower().rstrip("=")
        return MULTIBASE_BASE32 + encoded

    def __str__(self) -> str:
        return "0x" + self.digest.hex()


def encode_content_identifier(content_hash: str | bytes | ContentHash) -> str:
    """
    Convert a content hash into its content identifier.

    Accepts a hex string (``0x`` optional), raw digest bytes or a parsed
    ContentHash. Raises InvalidHashLengthError unless the input is exactly
    32 bytes.
    """
    if isinstance(content_hash, ContentHash):
        return content_hash.to_cid()
    if isinstance(content_hash, bytes):
        if len(content_hash) != DIGEST_LENGTH:
            raise InvalidHashLengthError(
                f"Content hash must be {DIGEST_LENGTH} bytes, got {len(content_hash)}",
                length=len(content_hash),
            )
        return ContentHash(digest=content_hash).to_cid()
    return ContentHash.parse(content_hash).to_cid()


def is_content_identifier(value: str | None, *, max_len: int = 128) -> bool:
    """Cheap shape check for a CIDv1 base32 string; not a multiformats parser."""
    if not value or len(value) > max_len:
        return False
    return bool(_CIDV1_BASE32_RE.match(value))

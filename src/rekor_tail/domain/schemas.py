"""
Wire schemas — typed decode of the log API's JSON at the boundary.

Each model covers only the fields the pipeline reads; everything else in the
payload is ignored. A ValidationError from any of these models is the single
signal that a response or entry body does not have the expected shape, which
the adapters turn into SCHEMA_ERROR (API responses) or MALFORMED_ENTRY
(entry bodies).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter

# ─────────────────────── GET /api/v1/log ───────────────────────


class InactiveShard(BaseModel):
    """A closed, historical partition of the log."""

    model_config = ConfigDict(extra="ignore")

    tree_size: StrictInt = Field(alias="treeSize", ge=0)


class LogInfo(BaseModel):
    """Log metadata: active tree size plus any inactive shards."""

    model_config = ConfigDict(extra="ignore")

    tree_size: StrictInt = Field(alias="treeSize", ge=0)
    inactive_shards: list[InactiveShard] | None = Field(default=None, alias="inactiveShards")

    @property
    def total_size(self) -> int:
        """Committed entries across the active tree and every inactive shard."""
        return self.tree_size + sum(shard.tree_size for shard in self.inactive_shards or ())


# ─────────────────────── POST /api/v1/log/entries/retrieve ───────────────────────

ENVELOPE_LIST = TypeAdapter(list[dict[str, Any]])


class LogEntryValue(BaseModel):
    """The value under the single uuid key of an entry envelope."""

    model_config = ConfigDict(extra="ignore")

    log_index: StrictInt = Field(alias="logIndex", ge=0)
    body: StrictStr


# ─────────────────────── Decoded entry body ───────────────────────
# /spec/data/hash/{algorithm,value} and /spec/signature/publicKey/content


class _Hash(BaseModel):
    model_config = ConfigDict(extra="ignore")

    algorithm: StrictStr
    value: StrictStr


class _Data(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hash: _Hash


class _PublicKey(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: StrictStr


class _Signature(BaseModel):
    model_config = ConfigDict(extra="ignore")

    public_key: _PublicKey = Field(alias="publicKey")


class _Spec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: _Data
    signature: _Signature


class DecodedBody(BaseModel):
    """Base64-decoded entry body, reduced to the hash and the signing material."""

    model_config = ConfigDict(extra="ignore")

    spec: _Spec

    @property
    def hash_algorithm(self) -> str:
        return self.spec.data.hash.algorithm

    @property
    def hash_value(self) -> str:
        return self.spec.data.hash.value

    @property
    def certificate_base64(self) -> str:
        return self.spec.signature.public_key.content

    @property
    def formatted_hash(self) -> str:
        return f"{self.hash_algorithm}:{self.hash_value}"

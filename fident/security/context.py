"""Security context and related models for fident."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..request import wire_bytes


class VerificationOutcome(str, Enum):
    """Why a verification attempt succeeded or failed."""

    VALID = "valid"
    KEY_MISSING = "key_missing"
    MISSING_SIGNATURE = "missing_signature"
    MALFORMED_SIGNATURE = "malformed_signature"
    AMBIGUOUS_HEADER = "ambiguous_header"
    DIGEST_MISMATCH = "digest_mismatch"


class CanonicalMessage(BaseModel):
    """Canonical representation of a request used for signing.

    ``entries`` holds the selected ``(name, value)`` pairs already sorted by
    name; :meth:`to_bytes` concatenates them after the target with no
    delimiter. Text decoded from the wire with surrogate escapes
    encodes back to the original bytes.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    entries: Tuple[Tuple[str, str], ...] = Field(default_factory=tuple)

    def to_text(self) -> str:
        return self.target + "".join(name + value for name, value in self.entries)

    def to_bytes(self) -> bytes:
        return wire_bytes(self.to_text())


class VerificationResult(BaseModel):
    """Tagged outcome of a single verification attempt."""

    model_config = ConfigDict(frozen=True)

    outcome: VerificationOutcome
    target: str = ""
    digest: Optional[str] = Field(default=None, description="Hex SHA-256 of the canonical message")
    detail: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.outcome is VerificationOutcome.VALID

    def __bool__(self) -> bool:
        return self.valid


class IdentityContext(BaseModel):
    """Carries the identity state of one request through a host handler.

    ``authenticated`` only reports that a claim is attached; ``verified``
    reports that the trusted signer produced it. Hosts needing trust must
    check ``verified``.
    """

    identity_id: str = Field(default="", description="Raw identity claim")
    authenticated: bool = False
    verified: bool = False
    outcome: Optional[VerificationOutcome] = None

    @property
    def anonymous(self) -> bool:
        return not self.authenticated

"""Exception hierarchy for fident."""

from __future__ import annotations


class FidentError(Exception):
    """Base class for all fident errors."""


class KeyStoreError(FidentError):
    """Raised when a trusted key cannot be provisioned."""


class KeyIOError(KeyStoreError, OSError):
    """The key file could not be read."""


class KeyFormatError(KeyStoreError):
    """The key file holds no parseable PEM/DER public key."""


class KeyTypeError(KeyStoreError):
    """The decoded key is not of the expected algorithm."""


class UntrustedRequestError(FidentError):
    """A request carried an identity claim that failed verification."""

    def __init__(self, identity_id: str, outcome: str) -> None:
        super().__init__(
            f"Identity claim {identity_id!r} failed verification: {outcome}"
        )
        self.identity_id = identity_id
        self.outcome = outcome

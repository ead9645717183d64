"""Signature verification for requests signed by the identity service."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, utils

from ..config import FidentConfig
from ..request import RequestView, as_request_view
from .canonical import AmbiguousHeaderError, build_canonical_message, message_digest
from .context import VerificationOutcome, VerificationResult
from .keys import KeyStore, default_key_store

logger = logging.getLogger(__name__)

_URLSAFE_B64 = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def decode_signature(encoded: str) -> bytes:
    """Decode URL-safe base64, with or without padding.

    Raises:
        ValueError: if ``encoded`` contains characters outside the URL-safe
            alphabet or has an impossible length.
    """
    if not _URLSAFE_B64.fullmatch(encoded):
        raise ValueError("Signature is not URL-safe base64")
    stripped = encoded.rstrip("=")
    if len(stripped) % 4 == 1:
        raise ValueError("Signature has an invalid base64 length")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except binascii.Error as exc:
        raise ValueError("Signature is not URL-safe base64") from exc


class FidentVerifier:
    """Checks identity claims and signatures against a :class:`KeyStore`.

    The verifier holds no mutable state of its own. Every check reads the
    store's current key, so it is safe to share one instance across threads.
    """

    def __init__(
        self,
        key_store: Optional[KeyStore] = None,
        config: Optional[FidentConfig] = None,
    ) -> None:
        self.key_store = key_store if key_store is not None else default_key_store
        self.config = config or FidentConfig()

    def has_identity_claim(self, request: Any) -> bool:
        """Return ``True`` if an identity claim is attached.

        This is a presence check only; it proves nothing about authenticity.
        """
        return self.identity_claim(request) != ""

    def identity_claim(self, request: Any) -> str:
        view = as_request_view(request)
        return view.get(self.config.identity_header)

    def verify_signature(self, request: Any) -> bool:
        return self.verify(request).valid

    def verify(self, request: Any) -> VerificationResult:
        """Verify the request signature and report the tagged outcome."""
        view = as_request_view(request)
        result = self._verify_view(view)
        if result.valid:
            logger.debug(f"Signature valid for {view.target} (digest={result.digest})")
        elif result.outcome is VerificationOutcome.KEY_MISSING:
            logger.warning("Signature verification attempted without a trusted key")
        else:
            logger.info(
                f"Signature rejected for {view.target}: {result.outcome.value}"
                + (f" ({result.detail})" if result.detail else "")
            )
        return result

    def _verify_view(self, view: RequestView) -> VerificationResult:
        public_key = self.key_store.public_key
        if public_key is None:
            return VerificationResult(
                outcome=VerificationOutcome.KEY_MISSING, target=view.target
            )

        try:
            message = build_canonical_message(
                view, self.config.header_prefix, self.config.signature_header
            )
        except AmbiguousHeaderError as exc:
            return VerificationResult(
                outcome=VerificationOutcome.AMBIGUOUS_HEADER,
                target=view.target,
                detail=str(exc),
            )
        digest = message_digest(message)
        digest_hex = digest.hex()

        encoded = view.values(self.config.signature_header)
        if len(encoded) > 1:
            return VerificationResult(
                outcome=VerificationOutcome.AMBIGUOUS_HEADER,
                target=view.target,
                digest=digest_hex,
                detail=f"{len(encoded)} signature headers",
            )
        if not encoded or not encoded[0]:
            return VerificationResult(
                outcome=VerificationOutcome.MISSING_SIGNATURE,
                target=view.target,
                digest=digest_hex,
            )

        try:
            signature = decode_signature(encoded[0])
        except ValueError as exc:
            return VerificationResult(
                outcome=VerificationOutcome.MALFORMED_SIGNATURE,
                target=view.target,
                digest=digest_hex,
                detail=str(exc),
            )

        try:
            public_key.verify(
                signature,
                digest,
                padding.PKCS1v15(),
                utils.Prehashed(hashes.SHA256()),
            )
        except (InvalidSignature, ValueError):
            return VerificationResult(
                outcome=VerificationOutcome.DIGEST_MISMATCH,
                target=view.target,
                digest=digest_hex,
            )
        return VerificationResult(
            outcome=VerificationOutcome.VALID, target=view.target, digest=digest_hex
        )


default_verifier = FidentVerifier()


def get_auth_status(request: Any) -> bool:
    """Return ``True`` if the request carries an identity claim."""
    return default_verifier.has_identity_claim(request)


def get_identity_id(request: Any) -> str:
    """Return the identity claim attached to ``request``, or ``""``."""
    return default_verifier.identity_claim(request)


def verify(request: Any) -> bool:
    """Verify ``request`` against the process-wide trusted key."""
    return default_verifier.verify_signature(request)

"""Signature verification, key management and signing."""

from .canonical import AmbiguousHeaderError, build_canonical_message, signed_header_names
from .context import CanonicalMessage, IdentityContext, VerificationOutcome, VerificationResult
from .keys import (
    DecodedKey,
    KeyAlgorithm,
    KeyStore,
    decode_public_key,
    default_key_store,
    init_with_pub_key_path,
)
from .middleware import resolve_identity, with_identity
from .signer import RequestSigner
from .verifier import FidentVerifier, default_verifier, get_auth_status, get_identity_id, verify

__all__ = [
    "AmbiguousHeaderError",
    "CanonicalMessage",
    "DecodedKey",
    "FidentVerifier",
    "IdentityContext",
    "KeyAlgorithm",
    "KeyStore",
    "RequestSigner",
    "VerificationOutcome",
    "VerificationResult",
    "build_canonical_message",
    "decode_public_key",
    "default_key_store",
    "default_verifier",
    "get_auth_status",
    "get_identity_id",
    "init_with_pub_key_path",
    "resolve_identity",
    "signed_header_names",
    "verify",
    "with_identity",
]

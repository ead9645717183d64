"""Trusted key management for signature verification."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import threading
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import (
    dsa,
    ec,
    ed448,
    ed25519,
    rsa,
    x448,
    x25519,
)

from ..exceptions import KeyFormatError, KeyIOError, KeyTypeError

logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[^-\r\n]*)-----\r?\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)


class KeyAlgorithm(str, Enum):
    RSA = "rsa"
    EC = "ec"
    ED25519 = "ed25519"
    ED448 = "ed448"
    DSA = "dsa"
    X25519 = "x25519"
    X448 = "x448"
    UNKNOWN = "unknown"


_KEY_CLASSES = (
    (rsa.RSAPublicKey, KeyAlgorithm.RSA),
    (ec.EllipticCurvePublicKey, KeyAlgorithm.EC),
    (ed25519.Ed25519PublicKey, KeyAlgorithm.ED25519),
    (ed448.Ed448PublicKey, KeyAlgorithm.ED448),
    (dsa.DSAPublicKey, KeyAlgorithm.DSA),
    (x25519.X25519PublicKey, KeyAlgorithm.X25519),
    (x448.X448PublicKey, KeyAlgorithm.X448),
)


class DecodedKey(NamedTuple):
    """A decoded public key tagged with its algorithm family."""

    algorithm: KeyAlgorithm
    key: Any

    @property
    def key_size(self) -> Optional[int]:
        return getattr(self.key, "key_size", None)


def extract_pem_payload(data: bytes) -> bytes:
    """Return the DER payload of the first PEM block in ``data``.

    The block label is ignored and RFC 1421 ``Name: value`` header lines at
    the start of the body are skipped.
    """
    match = _PEM_BLOCK.search(data)
    if match is None:
        raise KeyFormatError("No PEM block found")

    lines = match.group("body").splitlines()
    if any(b":" in line for line in lines):
        while lines and lines[0].strip():
            lines.pop(0)
    body = b"".join(line.strip() for line in lines)
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise KeyFormatError("PEM block body is not valid base64") from exc


def decode_public_key(der: bytes) -> DecodedKey:
    """Parse a SubjectPublicKeyInfo structure into a :class:`DecodedKey`."""
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyFormatError("Failed to parse public key") from exc

    if isinstance(key, rsa.RSAPublicKey) and der == key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.PKCS1
    ):
        raise KeyFormatError("Expected SubjectPublicKeyInfo, got a PKCS#1 RSA key")

    for key_class, algorithm in _KEY_CLASSES:
        if isinstance(key, key_class):
            return DecodedKey(algorithm, key)
    return DecodedKey(KeyAlgorithm.UNKNOWN, key)


def read_key_file(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise KeyIOError(exc.errno, f"Cannot read key file: {exc.strerror}", str(path)) from exc


def load_rsa_public_key(data: bytes) -> rsa.RSAPublicKey:
    """Decode PEM ``data`` and require an RSA public key."""
    decoded = decode_public_key(extract_pem_payload(data))
    if decoded.algorithm is not KeyAlgorithm.RSA:
        raise KeyTypeError(
            f"Expected an RSA public key, got {decoded.algorithm.value}"
        )
    return decoded.key


class KeyStore:
    """Holds the single trusted public key used for verification.

    A store starts empty; verification against an empty store always fails.
    Replacing the key is atomic with respect to readers, and a failed load
    leaves the previous key in place.
    """

    def __init__(self, public_key: Optional[rsa.RSAPublicKey] = None) -> None:
        self._lock = threading.RLock()
        self._public_key = public_key

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "KeyStore":
        store = cls()
        store.initialize(path)
        return store

    def initialize(self, path: Union[str, Path]) -> rsa.RSAPublicKey:
        """Load the PEM file at ``path`` as the trusted key."""
        key = load_rsa_public_key(read_key_file(path))
        self._set(key)
        logger.info(f"Loaded trusted RSA key ({key.key_size} bits) from {path}")
        return key

    def load_pem(self, data: Union[str, bytes]) -> rsa.RSAPublicKey:
        """Load in-memory PEM ``data`` as the trusted key."""
        if isinstance(data, str):
            try:
                data = data.encode("ascii")
            except UnicodeEncodeError as exc:
                raise KeyFormatError("PEM text must be ASCII") from exc
        key = load_rsa_public_key(data)
        self._set(key)
        logger.info(f"Loaded trusted RSA key ({key.key_size} bits) from memory")
        return key

    def _set(self, key: Optional[rsa.RSAPublicKey]) -> None:
        with self._lock:
            self._public_key = key

    @property
    def public_key(self) -> Optional[rsa.RSAPublicKey]:
        with self._lock:
            return self._public_key

    def has_key(self) -> bool:
        return self.public_key is not None

    def clear(self) -> None:
        self._set(None)


default_key_store = KeyStore()


def init_with_pub_key_path(path: Union[str, Path]) -> rsa.RSAPublicKey:
    """Initialise the process-wide key store from ``path``."""
    return default_key_store.initialize(path)

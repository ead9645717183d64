"""Request signing, the counterpart of :mod:`fident.security.verifier`."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from ..config import FidentConfig
from ..exceptions import KeyFormatError, KeyTypeError
from ..request import HeaderInput, RequestView, as_request_view
from .canonical import build_canonical_message, message_digest
from .keys import read_key_file

logger = logging.getLogger(__name__)


class RequestSigner:
    """Signs canonical request messages with an RSA private key."""

    def __init__(
        self, private_key: rsa.RSAPrivateKey, config: Optional[FidentConfig] = None
    ) -> None:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyTypeError("RequestSigner requires an RSA private key")
        self.private_key = private_key
        self.config = config or FidentConfig()

    @classmethod
    def from_pem(
        cls,
        data: bytes,
        password: Optional[bytes] = None,
        config: Optional[FidentConfig] = None,
    ) -> "RequestSigner":
        try:
            key = serialization.load_pem_private_key(data, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyFormatError("Failed to parse private key") from exc
        return cls(key, config)

    @classmethod
    def from_pem_file(
        cls,
        path: Union[str, Path],
        password: Optional[bytes] = None,
        config: Optional[FidentConfig] = None,
    ) -> "RequestSigner":
        return cls.from_pem(read_key_file(path), password=password, config=config)

    def sign(self, request: Any) -> str:
        """Return the URL-safe base64 signature for ``request``."""
        view = as_request_view(request)
        message = build_canonical_message(
            view, self.config.header_prefix, self.config.signature_header
        )
        signature = self.private_key.sign(
            message_digest(message),
            padding.PKCS1v15(),
            utils.Prehashed(hashes.SHA256()),
        )
        logger.debug(f"Signed {view.target} over {len(message.entries)} headers")
        return base64.urlsafe_b64encode(signature).decode("ascii")

    def sign_headers(self, target: str, headers: Optional[HeaderInput] = None) -> Dict[str, str]:
        """Return ``headers`` with the signature header added.

        Raises:
            AmbiguousHeaderError: if a signed header repeats.
        """
        view = RequestView.from_headers(target, headers)
        signed = {name: value for name, value in view.headers}
        signed[self.config.signature_header] = self.sign(view)
        return signed

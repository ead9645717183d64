"""fident: verify requests signed by a trusted identity service."""

from .config import FidentConfig, load_config
from .exceptions import (
    FidentError,
    KeyFormatError,
    KeyIOError,
    KeyStoreError,
    KeyTypeError,
    UntrustedRequestError,
)
from .request import RequestView, as_request_view
from .security import (
    FidentVerifier,
    IdentityContext,
    KeyStore,
    RequestSigner,
    VerificationOutcome,
    VerificationResult,
    default_key_store,
    get_auth_status,
    get_identity_id,
    init_with_pub_key_path,
    verify,
    with_identity,
)

__version__ = "0.1.0"
__all__ = [
    "FidentConfig",
    "FidentError",
    "FidentVerifier",
    "IdentityContext",
    "KeyFormatError",
    "KeyIOError",
    "KeyStore",
    "KeyStoreError",
    "KeyTypeError",
    "RequestSigner",
    "RequestView",
    "UntrustedRequestError",
    "VerificationOutcome",
    "VerificationResult",
    "as_request_view",
    "default_key_store",
    "get_auth_status",
    "get_identity_id",
    "init_with_pub_key_path",
    "load_config",
    "verify",
    "with_identity",
]

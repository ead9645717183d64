import base64

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from fident import FidentVerifier, KeyStore, RequestSigner, default_key_store


def public_pem(key) -> bytes:
    return key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def private_pem(key) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def raw_sign(key, message: str) -> str:
    """Sign ``message`` directly, bypassing fident's canonicalisation."""
    signature = key.sign(message.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    return base64.urlsafe_b64encode(signature).decode("ascii")


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def public_key_path(tmp_path, rsa_key):
    path = tmp_path / "fident_pub.pem"
    path.write_bytes(public_pem(rsa_key))
    return path


@pytest.fixture
def private_key_path(tmp_path, rsa_key):
    path = tmp_path / "fident_priv.pem"
    path.write_bytes(private_pem(rsa_key))
    return path


@pytest.fixture
def key_store(public_key_path):
    return KeyStore.from_path(public_key_path)


@pytest.fixture
def verifier(key_store):
    return FidentVerifier(key_store)


@pytest.fixture
def signer(rsa_key):
    return RequestSigner(rsa_key)


@pytest.fixture
def clean_default_store():
    default_key_store.clear()
    yield default_key_store
    default_key_store.clear()


@pytest.fixture
def sign_message(rsa_key):
    """Return a callable producing raw signatures over plain messages."""

    def _sign(message: str, key=None) -> str:
        return raw_sign(key or rsa_key, message)

    return _sign


@pytest.fixture
def ec_public_pem(ec_key):
    return public_pem(ec_key)

"""Tests for trusted key loading."""

import base64

import pytest

from fident.exceptions import KeyFormatError, KeyIOError, KeyStoreError, KeyTypeError
from fident.security.keys import (
    KeyAlgorithm,
    KeyStore,
    decode_public_key,
    default_key_store,
    extract_pem_payload,
    init_with_pub_key_path,
)


def _der_body(pem: bytes) -> bytes:
    lines = pem.strip().splitlines()[1:-1]
    return b"\n".join(lines)


def test_initialize_loads_rsa_key(public_key_path, rsa_key):
    store = KeyStore()
    assert not store.has_key()
    key = store.initialize(public_key_path)
    assert store.has_key()
    assert store.public_key is key
    assert key.public_numbers() == rsa_key.public_key().public_numbers()


def test_initialize_accepts_str_path(public_key_path):
    store = KeyStore()
    store.initialize(str(public_key_path))
    assert store.has_key()


def test_missing_file_raises_io_error(tmp_path):
    store = KeyStore()
    with pytest.raises(KeyIOError) as excinfo:
        store.initialize(tmp_path / "missing.pem")
    assert isinstance(excinfo.value, OSError)
    assert isinstance(excinfo.value, KeyStoreError)
    assert not store.has_key()


def test_directory_raises_io_error(tmp_path):
    with pytest.raises(KeyIOError):
        KeyStore().initialize(tmp_path)


def test_file_without_pem_block(tmp_path):
    path = tmp_path / "key.pem"
    path.write_text("not a key at all\n")
    with pytest.raises(KeyFormatError, match="No PEM block"):
        KeyStore().initialize(path)


def test_pem_block_with_invalid_base64(tmp_path):
    path = tmp_path / "key.pem"
    path.write_text("-----BEGIN PUBLIC KEY-----\n!!!!\n-----END PUBLIC KEY-----\n")
    with pytest.raises(KeyFormatError):
        KeyStore().initialize(path)


def test_pem_block_with_non_key_payload(tmp_path):
    body = base64.b64encode(b"definitely not DER").decode()
    path = tmp_path / "key.pem"
    path.write_text(f"-----BEGIN PUBLIC KEY-----\n{body}\n-----END PUBLIC KEY-----\n")
    with pytest.raises(KeyFormatError, match="Failed to parse public key"):
        KeyStore().initialize(path)


def test_non_rsa_key_raises_key_type_error(tmp_path, ec_public_pem):
    path = tmp_path / "ec.pem"
    path.write_bytes(ec_public_pem)
    with pytest.raises(KeyTypeError, match="ec"):
        KeyStore().initialize(path)


def test_failed_initialize_keeps_previous_key(tmp_path, public_key_path, ec_public_pem):
    store = KeyStore.from_path(public_key_path)
    previous = store.public_key

    bad = tmp_path / "ec.pem"
    bad.write_bytes(ec_public_pem)
    with pytest.raises(KeyTypeError):
        store.initialize(bad)
    with pytest.raises(KeyIOError):
        store.initialize(tmp_path / "missing.pem")
    assert store.public_key is previous


def test_reinitialize_replaces_key(tmp_path, public_key_path, other_rsa_key):
    from cryptography.hazmat.primitives import serialization

    store = KeyStore.from_path(public_key_path)
    other = tmp_path / "other.pem"
    other.write_bytes(
        other_rsa_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    store.initialize(other)
    assert store.public_key.public_numbers() == other_rsa_key.public_key().public_numbers()


def test_pem_label_is_irrelevant(public_key_path):
    pem = public_key_path.read_bytes()
    relabelled = (
        b"leading text\n-----BEGIN FIDENT KEY-----\n"
        + _der_body(pem)
        + b"\n-----END FIDENT KEY-----\ntrailing\n"
    )
    store = KeyStore()
    store.load_pem(relabelled)
    assert store.has_key()


def test_pem_header_lines_are_skipped(public_key_path):
    pem = public_key_path.read_bytes()
    with_headers = (
        b"-----BEGIN PUBLIC KEY-----\nComment: fident\n\n"
        + _der_body(pem)
        + b"\n-----END PUBLIC KEY-----\n"
    )
    assert extract_pem_payload(with_headers) == extract_pem_payload(pem)


def test_load_pem_accepts_text(public_key_path):
    store = KeyStore()
    store.load_pem(public_key_path.read_text())
    assert store.has_key()


def test_decode_public_key_tags_algorithm(public_key_path, ec_public_pem):
    rsa_decoded = decode_public_key(extract_pem_payload(public_key_path.read_bytes()))
    assert rsa_decoded.algorithm is KeyAlgorithm.RSA
    assert rsa_decoded.key_size == 2048

    ec_decoded = decode_public_key(extract_pem_payload(ec_public_pem))
    assert ec_decoded.algorithm is KeyAlgorithm.EC


def test_clear_drops_key(key_store):
    key_store.clear()
    assert not key_store.has_key()
    assert key_store.public_key is None


def test_init_with_pub_key_path_sets_default_store(clean_default_store, public_key_path):
    init_with_pub_key_path(public_key_path)
    assert default_key_store.has_key()


def test_pkcs1_rsa_public_key_rejected(tmp_path, rsa_key):
    from cryptography.hazmat.primitives import serialization

    path = tmp_path / "pkcs1.pem"
    path.write_bytes(
        rsa_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.PKCS1,
        )
    )
    store = KeyStore()
    with pytest.raises(KeyFormatError, match="SubjectPublicKeyInfo"):
        store.initialize(path)
    assert not store.has_key()


def test_load_pem_non_ascii_text(public_key_path):
    text = public_key_path.read_text() + "é"
    with pytest.raises(KeyFormatError, match="ASCII"):
        KeyStore().load_pem(text)

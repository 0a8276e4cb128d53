"""AES-CTR encryption helpers and SHA-256 digests."""

from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

_BLOCK_SIZE = 16
_KEY_SIZES = (16, 24, 32)


def _ctr_apply(key: bytes, nonce: bytes, data: bytes) -> bytes:
    if len(key) not in _KEY_SIZES:
        raise ValueError(f"failed to create cipher: invalid key size {len(key)}")
    if len(nonce) != _BLOCK_SIZE:
        raise ValueError(
            f"nonce length must equal the block size {_BLOCK_SIZE}, got {len(nonce)}"
        )
    cipher = Cipher(algorithms.AES(bytes(key)), modes.CTR(bytes(nonce)))
    transform = cipher.encryptor()
    return transform.update(bytes(data)) + transform.finalize()


def aes_ctr_encrypt(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """Encrypt with AES in counter mode; ``nonce`` is the 16-byte initial counter."""
    return _ctr_apply(key, nonce, plaintext)


def aes_ctr_decrypt(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Decrypt data produced by :func:`aes_ctr_encrypt`."""
    return _ctr_apply(key, nonce, ciphertext)


def sha256_digest(data: bytes) -> str:
    """Return the lowercase hex SHA-256 of ``data``."""
    return hashlib.sha256(data).hexdigest()
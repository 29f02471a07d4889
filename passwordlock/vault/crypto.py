"""
Vault Crypto Core — Passphrase encryption of vault secrets.

Cipher text format (OpenSSL ``enc`` compatible, base64 encoded):
    b"Salted__" [salt 8B] [AES-256-CBC payload, PKCS#7 padded]

The AES key and IV are derived from the passphrase and salt with
EVP_BytesToKey (MD5, one iteration).

Security Note:
    Never log plaintext or ciphertext values.
    There is no integrity check: decrypting with the wrong key returns a
    garbled string instead of raising. Callers cannot tell a wrong key
    from corrupted data from the correct key.
"""
import os
import base64
import binascii
import logging

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger("passwordlock.vault")

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
KEY_LENGTH = 32  # AES-256
BLOCK_SIZE = 16  # AES block / CBC IV


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """Derive an AES-256 key and CBC IV with EVP_BytesToKey (MD5).

    Args:
        passphrase: Encryption key as bytes.
        salt: 8 random bytes stored alongside the cipher text.

    Returns:
        Tuple of (32-byte key, 16-byte iv).
    """
    derived = b""
    block = b""
    while len(derived) < KEY_LENGTH + BLOCK_SIZE:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + passphrase + salt)
        block = digest.finalize()
        derived += block
    return derived[:KEY_LENGTH], derived[KEY_LENGTH:KEY_LENGTH + BLOCK_SIZE]


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, key: str) -> str:
    """Encrypt ``plaintext`` under passphrase ``key``.

    A fresh random salt is used on every call, so encrypting the same
    plaintext twice gives two different cipher texts.

    Returns:
        Base64 cipher text.
    """
    salt = os.urandom(SALT_SIZE)
    aes_key, iv = derive_key(key.encode("utf-8"), salt)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(SALT_MAGIC + salt + ct).decode("ascii")


def decrypt(cipher_text: str, key: str) -> str:
    """Decrypt ``cipher_text`` with passphrase ``key``.

    Never raises. Malformed input yields an empty string; a wrong key
    yields garbled text (invalid UTF-8 is replaced, invalid padding is
    left in place).
    """
    try:
        raw = base64.b64decode(cipher_text, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Vault decrypt: cipher text is not base64")
        return ""
    header = len(SALT_MAGIC) + SALT_SIZE
    if (
        not raw.startswith(SALT_MAGIC)
        or len(raw) <= header
        or (len(raw) - header) % BLOCK_SIZE
    ):
        logger.debug("Vault decrypt: unexpected cipher text layout")
        return ""
    salt = raw[len(SALT_MAGIC):header]
    aes_key, iv = derive_key(key.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(raw[header:]) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        data = unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        data = padded
    return data.decode("utf-8", errors="replace")


class CryptoEngine:
    """Encrypts and decrypts vault secrets under one configured key.

    The key is injected at construction and shared by every entry of
    every owner.
    """

    def __init__(self, key: str):
        if not key:
            raise ValueError("Encryption key cannot be empty")
        self._key = key

    def __repr__(self) -> str:
        return "<CryptoEngine key=***>"

    def encrypt(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key)

    def decrypt(self, cipher_text: str) -> str:
        return decrypt(cipher_text, self._key)

"""Vault — Encrypted password entries synced with a persistence service.

Security Note (Threat Model):
    Every entry of every owner is encrypted under one configured key with
    an unauthenticated cipher. Decrypted passwords live in process memory
    for as long as the vault collection is loaded. Both are accepted
    limitations of the current design; a real deployment needs per-user
    key derivation and authenticated encryption.
"""

from .store import VaultStore
from .crypto import CryptoEngine, encrypt, decrypt
from .config import VaultConfig, load_encryption_key, generate_encryption_key

__all__ = [
    "VaultStore",
    "CryptoEngine",
    "encrypt",
    "decrypt",
    "VaultConfig",
    "load_encryption_key",
    "generate_encryption_key",
]

"""
Login authentication data.

Three schemes, chosen per login:
- TOKEN:   AUTH_TOKEN property is set; the token is sent as-is.
- ENCRYPT: the handshake ack carried a 32-byte X25519 server key. The
           password is sealed with ChaCha20-Poly1305 under SHA-256 of the
           X25519 shared secret of a fresh ephemeral key and the server key.
           auth_data = ephemeral_public (32) || ciphertext.
- PLAIN:   the password bytes.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Callable, Optional

from dissononce.cipher.chachapoly import ChaChaPolyCipher
from dissononce.dh.keypair import KeyPair
from dissononce.dh.x25519.public import PublicKey
from dissononce.dh.x25519.x25519 import X25519DH
from dissononce.hash.sha256 import SHA256Hash


KEY_LEN = 32
_NONCE = 0


class AuthType(IntEnum):
    """auth_type field of the Login frame."""

    PLAIN = 0x0000
    TOKEN = 0x0001
    ENCRYPT = 0x0004


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _session_key(keypair: KeyPair, peer: PublicKey) -> bytes:
    shared = X25519DH().dh(keypair, peer)
    return SHA256Hash().hash(shared)


def encrypt_password(password: bytes, server_key: bytes) -> bytes:
    """Seal password for the holder of server_key's private half."""
    if len(server_key) != KEY_LEN:
        raise ValueError(f"Server key must be {KEY_LEN} bytes")

    ephemeral = X25519DH().generate_keypair()
    key = _session_key(ephemeral, PublicKey(server_key))
    ephemeral_pub = ephemeral.public.data
    ciphertext = ChaChaPolyCipher().encrypt(key, _NONCE, ephemeral_pub, password)
    return ephemeral_pub + ciphertext


def decrypt_password(auth_data: bytes, server_keypair: KeyPair) -> bytes:
    """Server-side counterpart of encrypt_password()."""
    if len(auth_data) <= KEY_LEN:
        raise ValueError("auth data too short")

    ephemeral_pub, ciphertext = auth_data[:KEY_LEN], auth_data[KEY_LEN:]
    key = _session_key(server_keypair, PublicKey(ephemeral_pub))
    return ChaChaPolyCipher().decrypt(key, _NONCE, ephemeral_pub, ciphertext)


class LoginAuthenticator:
    """Picks the auth scheme for a login and produces its auth data."""

    def __init__(self, encrypt: bool = True,
                 debug_callback: Optional[Callable[[str], None]] = None):
        self.encrypt = encrypt
        self.debug = debug_callback or (lambda *a, **k: None)

    def auth_data(self, password: str | bytes | None,
                  token: str | bytes | None = None,
                  server_key: bytes = b"") -> tuple[AuthType, bytes]:
        if token:
            self.debug("[Auth] using token")
            return (AuthType.TOKEN, _as_bytes(token))

        secret = _as_bytes(password or b"")

        if self.encrypt and len(server_key) == KEY_LEN:
            self.debug("[Auth] encrypting password with server key")
            return (AuthType.ENCRYPT, encrypt_password(secret, server_key))

        if server_key and self.encrypt:
            self.debug(f"[Auth] ignoring {len(server_key)}-byte server key, sending plain")
        return (AuthType.PLAIN, secret)

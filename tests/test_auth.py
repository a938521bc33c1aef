"""
Tests for login auth data.
"""
import pytest

from mwsession.crypto import AuthType, LoginAuthenticator, decrypt_password, encrypt_password


class TestEncryptPassword:

    def test_server_recovers_password(self, server_keypair):
        sealed = encrypt_password(b"hunter2", server_keypair.public.data)
        assert decrypt_password(sealed, server_keypair) == b"hunter2"

    def test_fresh_ephemeral_key_per_call(self, server_keypair):
        key = server_keypair.public.data
        assert encrypt_password(b"pw", key) != encrypt_password(b"pw", key)

    def test_rejects_short_key(self):
        with pytest.raises(ValueError, match="32 bytes"):
            encrypt_password(b"pw", b"\x01" * 16)

    def test_tampered_data_fails(self, server_keypair):
        sealed = bytearray(encrypt_password(b"pw", server_keypair.public.data))
        sealed[-1] ^= 0x01
        with pytest.raises(Exception):
            decrypt_password(bytes(sealed), server_keypair)

    def test_short_auth_data(self, server_keypair):
        with pytest.raises(ValueError):
            decrypt_password(b"\x00" * 32, server_keypair)


class TestLoginAuthenticator:

    def test_plain_without_server_key(self):
        assert LoginAuthenticator().auth_data("pw") == (AuthType.PLAIN, b"pw")

    def test_plain_when_encryption_disabled(self, server_keypair):
        auth = LoginAuthenticator(encrypt=False)
        assert auth.auth_data("pw", server_key=server_keypair.public.data) == (AuthType.PLAIN, b"pw")

    def test_encrypt_with_server_key(self, server_keypair):
        auth_type, data = LoginAuthenticator().auth_data("pw", server_key=server_keypair.public.data)
        assert auth_type == AuthType.ENCRYPT
        assert decrypt_password(data, server_keypair) == b"pw"

    def test_token_wins(self, server_keypair):
        auth = LoginAuthenticator()
        result = auth.auth_data("pw", token="tok", server_key=server_keypair.public.data)
        assert result == (AuthType.TOKEN, b"tok")

    def test_wrong_size_key_falls_back_to_plain(self):
        messages = []
        auth = LoginAuthenticator(debug_callback=messages.append)
        assert auth.auth_data(b"pw", server_key=b"\x02" * 8) == (AuthType.PLAIN, b"pw")
        assert any("8-byte" in m for m in messages)

    def test_missing_password(self):
        assert LoginAuthenticator().auth_data(None) == (AuthType.PLAIN, b"")

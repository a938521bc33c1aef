from .auth import AuthType, LoginAuthenticator, decrypt_password, encrypt_password

__all__ = [
    "AuthType",
    "LoginAuthenticator",
    "encrypt_password",
    "decrypt_password",
]

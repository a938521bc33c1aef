"""
Session property keys.

Auth keys must be set before Session.start(). Client keys default from the
SessionConfig when unset. Server keys are filled in by the session as the
server reports them.
"""

AUTH_USER_ID = "session.auth.user"
AUTH_PASSWORD = "session.auth.password"
AUTH_TOKEN = "session.auth.token"

CLIENT_HOST = "client.host"
CLIENT_VER_MAJOR = "client.version.major"
CLIENT_VER_MINOR = "client.version.minor"
CLIENT_TYPE_ID = "client.id"

SERVER_VER_MAJOR = "server.version.major"
SERVER_VER_MINOR = "server.version.minor"
SERVER_LOGIN_ID = "server.login.id"

# never written to logs
SENSITIVE = frozenset({AUTH_PASSWORD, AUTH_TOKEN})

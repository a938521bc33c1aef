"""
Session Transport Layer.

Carries the session's bytes; knows nothing about frames.
"""
from .interface import ITransport
from .tcp import TcpTransport

__all__ = [
    "ITransport",
    "TcpTransport",
]

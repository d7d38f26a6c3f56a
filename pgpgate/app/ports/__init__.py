"""Port interfaces for pgpgate application layer.

These protocol interfaces define contracts for adapters.
Application logic depends on these ports, never on concrete implementations.
"""

__all__ = [
    "CryptoEnginePort",
    "Status",
]

from pgpgate.app.ports.engine import CryptoEnginePort, Status

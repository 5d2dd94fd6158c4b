"""Deterministic stand-ins for sockets and draw sources.

They follow the ``DatagramSocket`` and ``SocketFactory`` protocols so the
transport can be tested without touching the network.
"""

from tests.mocks.socket_mocks import (
    MockSocket,
    MockSocketFactory,
    SequenceDraw,
)

__all__ = [
    "MockSocket",
    "MockSocketFactory",
    "SequenceDraw",
]

"""UDP transport for metricwire.

The transport owns at most one connected datagram socket. UDP ``connect``
only sets the default destination; no handshake happens.

Socket lifecycle:
    Absent --first write--> Connected
    Connected --address change--> Absent (next use connects again)
    Connected --send/connect fault--> Absent

There is no retry state: a fault only guarantees the next, separately
triggered write starts from a fresh socket.
"""

from __future__ import annotations

import socket
import threading
from typing import Callable, Protocol, runtime_checkable

from metricwire.config import BackendConfig


class TransportError(Exception):
    """Connecting or sending a datagram failed."""

    def __init__(self, message: str, address: tuple[str, int] | None = None) -> None:
        self.address = address
        super().__init__(message)


@runtime_checkable
class DatagramSocket(Protocol):
    """The part of a UDP socket the transport uses."""

    def connect(self, address: tuple[str, int]) -> None: ...

    def send(self, data: bytes) -> int: ...

    def close(self) -> None: ...


SocketFactory = Callable[[], DatagramSocket]


def udp_socket_factory() -> DatagramSocket:
    """Create an IPv4 UDP socket."""
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


class TransportSocket:
    """Lazily connected UDP socket bound to the config's current address."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        socket_factory: SocketFactory | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            config: Config providing the target host and port.
            socket_factory: Creates unconnected datagram sockets.
        """
        self._config = config
        self._factory = socket_factory or udp_socket_factory
        self._socket: DatagramSocket | None = None
        self._address: tuple[str, int] | None = None
        self._lock = threading.RLock()

    @property
    def connected(self) -> bool:
        """Whether a socket for the current address is cached."""
        with self._lock:
            return self._socket is not None and self._address == self._config.address

    @property
    def address(self) -> tuple[str, int] | None:
        """Address the cached socket is connected to, if any."""
        return self._address

    @property
    def socket(self) -> DatagramSocket:
        """Socket connected to the current address, created on demand.

        Raises:
            TransportError: If the socket cannot be created or connected.
        """
        with self._lock:
            target = self._config.address
            if self._socket is not None and self._address == target:
                return self._socket

            self._discard()
            sock = None
            try:
                sock = self._factory()
                sock.connect(target)
            except OSError as e:
                if sock is not None:
                    self._close_quietly(sock)
                raise TransportError(
                    f"Failed to connect to {target[0]}:{target[1]}: {e!r}", target
                ) from e

            self._socket = sock
            self._address = target
            return sock

    def write(self, data: bytes) -> int:
        """Send one datagram.

        Raises:
            TransportError: On connect or send failure. The socket is
                discarded either way.
        """
        with self._lock:
            sock = self.socket
            try:
                return sock.send(data)
            except OSError as e:
                address = self._address
                self._discard()
                raise TransportError(f"Failed to send datagram: {e!r}", address) from e

    def close(self) -> None:
        """Close and forget the cached socket."""
        with self._lock:
            self._discard()

    def _discard(self) -> None:
        if self._socket is not None:
            self._close_quietly(self._socket)
        self._socket = None
        self._address = None

    @staticmethod
    def _close_quietly(sock: DatagramSocket) -> None:
        try:
            sock.close()
        except OSError:
            pass

"""Background UDP receiver for NeuroGuide reward datagrams.

The receiver owns the datagram socket and a single daemon thread that
blocks on ``recvfrom``. Each datagram is decoded and written into the
shared :class:`~neuroguide.hardware.mailbox.Mailbox`; nothing is queued,
so only the most recent sample survives until the next tick.

Shutdown is a hard barrier: ``stop()`` flags the loop, shuts the socket
down so the pending receive returns, waits for the thread to exit and
only then closes the socket. No mailbox write can happen after
``stop()`` returns.
"""

from __future__ import annotations

import errno
import logging
import socket
import threading
from dataclasses import dataclass
from typing import Optional

from .codec import PAYLOAD_SIZE, decode
from .exceptions import (
    AlreadyRunningError,
    BindError,
    DecodeError,
    TransientReceiveError,
)
from .mailbox import Mailbox


logger = logging.getLogger(__name__)


@dataclass
class ReceiverStats:
    """Counters maintained by the receiver thread."""

    datagrams_received: int = 0
    samples_published: int = 0
    decode_errors: int = 0
    receive_errors: int = 0


@dataclass(frozen=True)
class ReceiverHandle:
    """Identifies a running receiver.

    Attributes:
        address: Address the socket is bound to
        port: Port the socket is bound to (resolved when 0 was requested)
        thread_name: Name of the background thread
    """

    address: str
    port: int
    thread_name: str


class UdpReceiver:
    """Listens for NeuroGuide datagrams on a background thread.

    Example:
        mailbox = Mailbox()
        receiver = UdpReceiver(mailbox)
        handle = receiver.start("127.0.0.1", 50000)
        ...
        receiver.stop()
    """

    def __init__(
        self,
        mailbox: Mailbox,
        *,
        receive_buffer_size: int = 1024,
        poll_interval_seconds: float = 0.25,
    ) -> None:
        """Initialize the receiver.

        Args:
            mailbox: Mailbox that receives decoded samples
            receive_buffer_size: Maximum datagram size read per receive
            poll_interval_seconds: Upper bound on how long a single
                receive call blocks before the stop flag is re-checked
        """
        self._mailbox = mailbox
        self._buffer_size = receive_buffer_size
        self._poll_interval = poll_interval_seconds
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._stats_lock = threading.Lock()
        self._stats = ReceiverStats()
        self._handle: Optional[ReceiverHandle] = None

    @property
    def handle(self) -> Optional[ReceiverHandle]:
        return self._handle

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, address: str, port: int) -> ReceiverHandle:
        """Bind the socket and spawn the receive loop.

        Args:
            address: Local address to bind
            port: Local UDP port (0 selects an ephemeral port)

        Returns:
            Handle describing the bound socket

        Raises:
            AlreadyRunningError: If this receiver is already running
            BindError: If the socket cannot be opened or bound
        """
        if self._handle is not None:
            raise AlreadyRunningError(
                f"Receiver already listening on {self._handle.address}:{self._handle.port}"
            )

        sock = self._bind(address, port)
        bound_address, bound_port = sock.getsockname()[:2]

        self._socket = sock
        self._stop_event.clear()
        with self._stats_lock:
            self._stats = ReceiverStats()

        thread_name = f"neuroguide-receiver-{bound_port}"
        self._thread = threading.Thread(
            target=self._run,
            args=(sock,),
            name=thread_name,
            daemon=True,
        )
        self._handle = ReceiverHandle(
            address=bound_address,
            port=bound_port,
            thread_name=thread_name,
        )
        self._thread.start()

        logger.info(
            "NeuroGuide receiver started",
            extra={"address": bound_address, "port": bound_port},
        )
        return self._handle

    def stop(self, handle: Optional[ReceiverHandle] = None) -> None:
        """Stop the receive loop and wait for the thread to exit.

        Calling ``stop`` on a receiver that is not running is a no-op.

        Args:
            handle: Optional handle returned by ``start``; when given it
                must match the running receiver
        """
        if self._handle is None:
            return
        if handle is not None and handle != self._handle:
            raise ValueError(f"Handle {handle} does not belong to this receiver")

        self._stop_event.set()
        sock = self._socket
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Unconnected datagram sockets report ENOTCONN on some
                # platforms; the poll interval still bounds the wait.
                pass

        if self._thread is not None:
            self._thread.join()

        if sock is not None:
            sock.close()

        logger.info(
            "NeuroGuide receiver stopped",
            extra={"address": self._handle.address, "port": self._handle.port},
        )
        self._socket = None
        self._thread = None
        self._handle = None

    def stats(self) -> ReceiverStats:
        """Return a copy of the current counters."""
        with self._stats_lock:
            return ReceiverStats(**vars(self._stats))

    def _bind(self, address: str, port: int) -> socket.socket:
        try:
            infos = socket.getaddrinfo(address, port, type=socket.SOCK_DGRAM)
        except socket.gaierror as exc:
            raise BindError(address, port, str(exc)) from exc

        family, socktype, proto, _, sockaddr = infos[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.bind(sockaddr)
        except OSError as exc:
            sock.close()
            logger.error(
                "Failed to bind NeuroGuide receiver",
                extra={"address": address, "port": port, "error": str(exc)},
            )
            raise BindError(address, port, str(exc)) from exc

        sock.settimeout(self._poll_interval)
        return sock

    def _record(self, field_name: str) -> None:
        with self._stats_lock:
            setattr(self._stats, field_name, getattr(self._stats, field_name) + 1)

    def _run(self, sock: socket.socket) -> None:
        while not self._stop_event.is_set():
            try:
                payload, sender = sock.recvfrom(self._buffer_size)
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stop_event.is_set():
                    break
                if exc.errno == errno.EBADF or sock.fileno() == -1:
                    logger.debug(
                        "NeuroGuide receiver socket closed",
                        extra={"errno": exc.errno},
                    )
                    break
                self._record("receive_errors")
                error = TransientReceiveError(exc)
                logger.warning(str(error), extra={"errno": exc.errno})
                continue

            # shutdown() wakes the receive with an empty read on Linux
            if self._stop_event.is_set():
                break

            self._record("datagrams_received")
            if len(payload) > PAYLOAD_SIZE:
                logger.debug(
                    "Ignoring trailing datagram bytes",
                    extra={"sender": str(sender), "size": len(payload)},
                )
            try:
                sample = decode(payload)
            except DecodeError as exc:
                self._record("decode_errors")
                logger.debug(
                    "Dropped undecodable datagram",
                    extra={"sender": str(sender), "error": str(exc)},
                )
                continue

            self._mailbox.put(sample)
            self._record("samples_published")

        logger.debug("NeuroGuide receive loop exited")


__all__ = ["ReceiverHandle", "ReceiverStats", "UdpReceiver"]

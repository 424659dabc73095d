"""
Local-forward sink: hands batches to a collection agent on this host.

Lines use the same layout as the text dump and travel over UDP, packed into
datagrams no larger than ``max_datagram_bytes``. The agent adds nothing and
acknowledges nothing; a failed ``sendto`` is a transport failure.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterator, Mapping, Sequence

from ..errors import SinkError
from ..points import DataPoint
from ..sanitize import DEFAULT_SANITIZER, Sanitizer

logger = logging.getLogger(__name__)

DEFAULT_FORWARDER_HOST = "127.0.0.1"
DEFAULT_FORWARDER_PORT = 8953
MAX_DATAGRAM_BYTES = 8192


class ForwarderSink:
    """UDP text-line forwarder to a local agent."""

    def __init__(
        self,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer = DEFAULT_SANITIZER,
        host: str = DEFAULT_FORWARDER_HOST,
        port: int = DEFAULT_FORWARDER_PORT,
        max_datagram_bytes: int = MAX_DATAGRAM_BYTES,
    ) -> None:
        self.global_tags = dict(global_tags or {})
        self.sanitizer = sanitizer
        self.address = (host, port)
        self.max_datagram_bytes = max_datagram_bytes
        self._socket: socket.socket | None = None

    def _get_socket(self) -> socket.socket:
        """Lazy initialize the UDP socket."""
        if self._socket is None:
            self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        return self._socket

    def encode(self, data_points: Sequence[DataPoint]) -> list[bytes]:
        """Pack rendered lines into datagrams."""
        return list(self._packets(data_points))

    def _packets(self, data_points: Sequence[DataPoint]) -> Iterator[bytes]:
        buffer = bytearray()
        for point in data_points:
            try:
                line = (point.to_text_line(self.global_tags, self.sanitizer) + "\n").encode()
            except Exception:
                logger.warning("Cannot render data point %r", point, exc_info=True)
                continue
            if len(line) > self.max_datagram_bytes:
                logger.warning("Dropping oversized line for %s", point.metric)
                continue
            if len(buffer) + len(line) > self.max_datagram_bytes:
                yield bytes(buffer)
                buffer.clear()
            buffer.extend(line)
        if buffer:
            yield bytes(buffer)

    def put(self, data_points: Sequence[DataPoint]) -> None:
        packets = self.encode(data_points)
        if not packets:
            return
        sock = self._get_socket()
        try:
            for packet in packets:
                sock.sendto(packet, self.address)
        except OSError as e:
            raise SinkError(f"Forwarding to {self.address[0]}:{self.address[1]} failed: {e}") from e
        logger.debug("Forwarded %d points in %d datagrams", len(data_points), len(packets))

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

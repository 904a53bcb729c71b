from __future__ import annotations

import threading
from typing import BinaryIO, Protocol


class OutputSink(Protocol):
    def write(self, chunk: bytes) -> None:
        """Consume one chunk of child output.

        Example:
            ```python
            sink.write(b"ok\\n")
            ```
        """
        ...


class StreamSink:
    """Echo chunks to a binary stream as soon as they arrive.

    Example:
        ```python
        sink = StreamSink(sys.stdout.buffer)
        ```
    """

    def __init__(self, stream: BinaryIO) -> None:
        """Wrap the target stream.

        Example:
            ```python
            sink = StreamSink(io.BytesIO())
            ```
        """
        self._stream = stream

    def write(self, chunk: bytes) -> None:
        """Write and flush one chunk.

        Example:
            ```python
            sink.write(b"line\\n")
            ```
        """
        self._stream.write(chunk)
        self._stream.flush()


class BufferSink:
    """Accumulate every chunk in arrival order.

    Example:
        ```python
        buffer = BufferSink()
        ```
    """

    def __init__(self) -> None:
        """Start with an empty buffer.

        Example:
            ```python
            buffer = BufferSink()
            ```
        """
        self._chunks = bytearray()
        self._lock = threading.Lock()

    def write(self, chunk: bytes) -> None:
        """Append one chunk.

        Example:
            ```python
            buffer.write(b"A")
            ```
        """
        with self._lock:
            self._chunks.extend(chunk)

    def getvalue(self) -> bytes:
        """Return everything written so far.

        Example:
            ```python
            data = buffer.getvalue()
            ```
        """
        with self._lock:
            return bytes(self._chunks)

    def text(self) -> str:
        """Return the buffer decoded as UTF-8, replacing invalid bytes.

        Example:
            ```python
            output = buffer.text()
            ```
        """
        return self.getvalue().decode("utf-8", errors="replace")


class OutputTee:
    """Fan each chunk out to several sinks, in order.

    Example:
        ```python
        tee = OutputTee(StreamSink(sys.stdout.buffer), BufferSink())
        ```
    """

    def __init__(self, *sinks: OutputSink) -> None:
        """Store the sinks that receive every chunk.

        Example:
            ```python
            tee = OutputTee(BufferSink())
            ```
        """
        self._sinks = sinks

    def write(self, chunk: bytes) -> None:
        """Forward one chunk to every sink.

        Example:
            ```python
            tee.write(b"ok\\n")
            ```
        """
        for sink in self._sinks:
            sink.write(chunk)

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple

lgr = logging.getLogger('gitexec.runners')


# TODO: Could be `StrEnum`, came with PY3.11
class OutputStream(Enum):
    """Output streams of a process"""

    stdout = 'stdout'
    stderr = 'stderr'


class CollectedOutput(NamedTuple):
    stdout: str
    stderr: str
    stdout_overflow: bool
    stderr_overflow: bool


class OutputCollector:
    """Bounded, incremental capture of process output

    Chunks of each :class:`OutputStream` are accumulated independently.
    Once a stream would grow beyond ``max_buffer`` bytes, its buffer is
    filled up to exactly the limit, the stream is flagged as overflowed,
    and any further chunks of that stream are discarded.

    Each stream must only be appended to by a single thread.
    """

    def __init__(self, max_buffer: int):
        self.max_buffer = max_buffer
        self._buffers = {s: bytearray() for s in OutputStream}
        self._overflow = dict.fromkeys(OutputStream, False)

    def append(self, stream: OutputStream, chunk: bytes) -> bool:
        """Add a chunk of output of a stream

        Returns ``False`` if the stream has overflowed (now or before),
        ``True`` otherwise.
        """
        if self._overflow[stream]:
            return False
        buf = self._buffers[stream]
        room = self.max_buffer - len(buf)
        if len(chunk) > room:
            buf.extend(chunk[:room])
            self._overflow[stream] = True
            lgr.debug(
                '%s exceeded the buffer limit of %i bytes', stream.value, self.max_buffer
            )
            return False
        buf.extend(chunk)
        return True

    def overflowed(self, stream: OutputStream | None = None) -> bool:
        """Whether the given stream, or any stream if ``None``, overflowed"""
        if stream is None:
            return any(self._overflow.values())
        return self._overflow[stream]

    def finalize(self, encoding: str) -> CollectedOutput:
        """Return the decoded output and overflow flags of both streams

        A truncation may split a multi-byte character, undecodable bytes
        are replaced.
        """
        return CollectedOutput(
            stdout=self._buffers[OutputStream.stdout].decode(encoding, errors='replace'),
            stderr=self._buffers[OutputStream.stderr].decode(encoding, errors='replace'),
            stdout_overflow=self._overflow[OutputStream.stdout],
            stderr_overflow=self._overflow[OutputStream.stderr],
        )

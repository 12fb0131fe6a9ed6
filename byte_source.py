"""Byte sources the GIF reader pulls from.

A ``ByteSource`` only moves forward. A ``SeekableSource`` can also jump to an
absolute offset, which is what frame decoding needs. ``MemorySource`` wraps a
bytes object in a bitstring ``ConstBitStream``; ``StreamSource`` wraps a binary
file object and keeps a spill buffer so a classifier can peek at the
header and hand the stream back untouched.
"""

import logging
from abc import ABC, abstractmethod

from bitstring import ConstBitStream, ReadError

from gif_constants import DEFAULT_MARK_LIMIT
from gif_errors import EndOfStream, GifError

logger = logging.getLogger(__name__)

SKIP_CHUNK = 64 * 1024


class ByteSource(ABC):

    supports_mark = False

    @abstractmethod
    def read_upto(self, n):
        """Read at most n bytes; fewer only at end of data."""

    @abstractmethod
    def position(self):
        pass

    def read_exact(self, n):
        data = self.read_upto(n)
        if len(data) != n:
            raise EndOfStream(n, len(data))
        return data

    def read_u8(self):
        return self.read_exact(1)[0]

    def read_u16_le(self):
        b = self.read_exact(2)
        return b[0] | (b[1] << 8)

    def skip(self, n):
        while n > 0:
            step = min(n, SKIP_CHUNK)
            self.read_exact(step)
            n -= step

    def read_all(self):
        chunks = []
        while True:
            chunk = self.read_upto(SKIP_CHUNK)
            if not chunk:
                break
            chunks.append(chunk)
        return b''.join(chunks)

    def mark(self, limit=DEFAULT_MARK_LIMIT):
        raise GifError(f'{type(self).__name__} does not support mark/reset')

    def reset(self):
        raise GifError(f'{type(self).__name__} does not support mark/reset')


class SeekableSource(ByteSource):

    supports_mark = True

    @abstractmethod
    def seek(self, offset):
        pass

    @abstractmethod
    def size(self):
        pass

    def mark(self, limit=DEFAULT_MARK_LIMIT):
        self._mark = self.position()

    def reset(self):
        mark = getattr(self, '_mark', None)
        if mark is None:
            raise GifError('reset() without mark()')
        self.seek(mark)


class MemorySource(SeekableSource):
    """Random access over an in-memory buffer."""

    def __init__(self, data):
        self._bits = ConstBitStream(bytes(data))
        self._size = len(self._bits) // 8
        self._mark = None

    def size(self):
        return self._size

    def position(self):
        return self._bits.bytepos

    def remaining(self):
        return self._size - self._bits.bytepos

    def seek(self, offset):
        if offset < 0 or offset > self._size:
            raise EndOfStream(offset, self._size)
        self._bits.bytepos = offset

    def read_upto(self, n):
        n = min(n, self.remaining())
        if n <= 0:
            return b''
        return self._bits.read(f'bytes:{n}')

    def read_exact(self, n):
        try:
            return self._bits.read(f'bytes:{n}') if n else b''
        except ReadError:
            raise EndOfStream(n, self.remaining()) from None

    def read_u8(self):
        try:
            return self._bits.read('uint:8')
        except ReadError:
            raise EndOfStream(1, self.remaining()) from None

    def read_u16_le(self):
        try:
            return self._bits.read('uintle:16')
        except ReadError:
            raise EndOfStream(2, self.remaining()) from None

    def skip(self, n):
        if n > self.remaining():
            got = self.remaining()
            self._bits.bytepos = self._size
            raise EndOfStream(n, got)
        self._bits.bytepos += n

    def read_all(self):
        return self.read_upto(self.remaining())


class StreamSource(ByteSource):
    """Forward-only reader over a binary file object."""

    supports_mark = True

    def __init__(self, fileobj):
        self._file = fileobj
        self._pos = 0
        self._pending = bytearray()  # replayed bytes after reset()
        self._spill = None
        self._mark_pos = None
        self._mark_limit = 0

    def position(self):
        return self._pos

    def read_upto(self, n):
        out = bytearray()
        if self._pending:
            out += self._pending[:n]
            del self._pending[:len(out)]
        while len(out) < n:
            chunk = self._file.read(n - len(out))
            if not chunk:
                break
            out += chunk
        self._pos += len(out)
        if self._spill is not None:
            self._spill += out
            if self._mark_limit is not None and len(self._spill) > self._mark_limit:
                logger.debug('mark invalidated after %d bytes', len(self._spill))
                self._spill = None
        return bytes(out)

    def mark(self, limit=DEFAULT_MARK_LIMIT):
        """Start recording; limit=None keeps every byte until reset()."""
        self._spill = bytearray()
        self._mark_pos = self._pos
        self._mark_limit = limit

    def reset(self):
        """Replay everything read since mark(). The mark is used up."""
        if self._spill is None:
            raise GifError('reset() without a valid mark')
        self._pending[:0] = self._spill
        self._pos = self._mark_pos
        self._spill = None


def as_seekable(source):
    """Return source itself if it can seek, else its remaining bytes in memory."""
    if isinstance(source, SeekableSource):
        return source
    logger.debug('materializing %s into memory', type(source).__name__)
    return MemorySource(source.read_all())

"""Frame cursor over a parsed GIF, decoding frames on demand."""

import logging
from collections import namedtuple

from gif_constants import MIN_FRAME_DELAY_MS
from gif_errors import FrameOutOfBounds, MalformedGif
from gif_header import parse
from gif_lzw import LzwDecoder

logger = logging.getLogger(__name__)


FrameIndices = namedtuple('FrameIndices', [
    'width', 'height', 'indices', 'palette', 'transparent_index', 'delay_ms',
    'disposal', 'left', 'top'])


def clamp_delay(delay_ms, floor=MIN_FRAME_DELAY_MS):
    """Raise a frame delay to a scheduler's minimum; parsing never does this."""
    return max(delay_ms, floor)


def _check_index(document, index):
    if not 0 <= index < len(document.frames):
        raise FrameOutOfBounds(index, len(document.frames))


def decode_frame(document, index, decoder=None, deinterlace_rows=True):
    """Decode frame `index` of a parsed document into palette indices."""
    _check_index(document, index)
    frame = document.frames[index]
    palette = document.palette_for(frame)
    if palette is None:
        raise MalformedGif(f'frame {index} has no local or global color table')
    if decoder is None:
        decoder = LzwDecoder()
    logger.debug('decoding frame %d (%dx%d)', index, frame.width, frame.height)
    indices = decoder.decode(document.source, frame, deinterlace_rows)
    return FrameIndices(frame.width, frame.height, bytes(indices), palette,
                        frame.transparent_index, frame.delay_millis,
                        frame.disposal_method, frame.left, frame.top)


class DecoderSession:
    """Pull-style playback cursor.

    The caller decides when to move on: ``advance()`` steps the frame pointer
    (wrapping around) and ``decode_current()`` expands the frame under it.
    Not thread-safe; use one session per thread.
    """

    def __init__(self, document):
        self.document = document
        self.frame_pointer = 0
        self._decoder = LzwDecoder()

    @classmethod
    def open(cls, source):
        return cls(parse(source))

    @property
    def frame_count(self):
        return len(self.document.frames)

    @property
    def loop_count(self):
        return self.document.loop_count

    @property
    def width(self):
        return self.document.screen.width

    @property
    def height(self):
        return self.document.screen.height

    def delay_millis(self, index):
        _check_index(self.document, index)
        return self.document.frames[index].delay_millis

    @property
    def current_frame(self):
        _check_index(self.document, self.frame_pointer)
        return self.document.frames[self.frame_pointer]

    def advance(self):
        if not self.frame_count:
            raise FrameOutOfBounds(0, 0)
        self.frame_pointer = (self.frame_pointer + 1) % self.frame_count
        return self.frame_pointer

    def rewind(self):
        self.frame_pointer = 0

    def decode_current(self):
        return decode_frame(self.document, self.frame_pointer, self._decoder)

    def __iter__(self):
        """Decode every frame once, in order, without moving the cursor."""
        for index in range(self.frame_count):
            yield index, decode_frame(self.document, index, self._decoder)

    def __repr__(self):
        return f'DecoderSession({self.document!r}, frame_pointer={self.frame_pointer})'

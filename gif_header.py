"""GIF structure parser: screen descriptor, color tables, extensions and frames.

Raster data is not decoded here. Each frame records where its LZW stream
starts so that ``gif_lzw`` can expand it later.
"""

import enum
import logging
from collections import namedtuple

from byte_source import as_seekable
from gif_constants import (
    APPLICATION_LABEL, COMMENT_LABEL, DEFAULT_LOOP_COUNT, EXTENSION_INTRODUCER,
    GRAPHIC_CONTROL_LABEL, IMAGE_SEPARATOR, MAX_LZW_CODE_SIZE,
    MIN_LZW_CODE_SIZE, NETSCAPE_APP_ID, PLAIN_TEXT_LABEL, TRAILER)
from gif_errors import EndOfStream, MalformedGif
from gif_scanner import (
    GRAPHIC_CONTROL_FLAGS, IMAGE_FLAGS, SCREEN_FLAGS, read_netscape_loop,
    read_signature, read_sub_block, skip_sub_blocks, table_size, unpack_flags)

logger = logging.getLogger(__name__)


class DisposalMethod(enum.Enum):
    UNSPECIFIED = 0
    DO_NOT_DISPOSE = 1
    RESTORE_BACKGROUND = 2
    RESTORE_PREVIOUS = 3

    @classmethod
    def from_field(cls, value):
        # 4-7 are reserved
        return cls(value) if value <= 3 else cls.UNSPECIFIED


class ParserState(enum.Enum):
    HEADER = 1
    AFTER_LSD = 2
    BLOCK_LOOP = 3
    READING_GCE = 4
    READING_IMAGE = 5
    TERMINATED = 6


LogicalScreen = namedtuple('LogicalScreen', [
    'width', 'height', 'has_global_color_table', 'gct_size',
    'color_resolution', 'sorted', 'background_index', 'pixel_aspect_ratio'])


GraphicControl = namedtuple('GraphicControl', [
    'disposal_method', 'user_input', 'transparent_index', 'delay_centiseconds'])

NO_GRAPHIC_CONTROL = GraphicControl(DisposalMethod.UNSPECIFIED, False, None, 0)


class ColorTable(tuple):
    """Palette of (r, g, b) triples."""

    __slots__ = ()

    @classmethod
    def from_bytes(cls, data):
        return cls(tuple(data[i:i + 3]) for i in range(0, len(data) - 2, 3))

    def to_bytes(self):
        return bytes(c for rgb in self for c in rgb)

    def __repr__(self):
        return f'ColorTable({len(self)} colors)'


class Frame(namedtuple('Frame', [
        'left', 'top', 'width', 'height', 'local_color_table', 'interlaced',
        'transparent_index', 'disposal_method', 'delay_centiseconds',
        'raster_offset', 'min_code_size'])):
    __slots__ = ()

    @property
    def delay_millis(self):
        return self.delay_centiseconds * 10

    @property
    def pixel_count(self):
        return self.width * self.height


class GifDocument:
    """Everything known about a GIF short of its pixels.

    ``source`` is the seekable source the frames' raster offsets point into.
    """

    def __init__(self, source, version, screen, global_color_table, frames,
                 loop_count=DEFAULT_LOOP_COUNT, comments=()):
        self.source = source
        self.version = version
        self.screen = screen
        self.global_color_table = global_color_table
        self.frames = list(frames)
        self.loop_count = loop_count
        self.comments = list(comments)

    @property
    def frame_count(self):
        return len(self.frames)

    def palette_for(self, frame):
        if frame.local_color_table is not None:
            return frame.local_color_table
        return self.global_color_table

    def _key(self):
        return (self.version, self.screen, self.global_color_table,
                self.frames, self.loop_count, self.comments)

    def __eq__(self, other):
        if not isinstance(other, GifDocument):
            return NotImplemented
        return self._key() == other._key()

    def __repr__(self):
        return (f'GifDocument(GIF{self.version}, {self.screen.width}x{self.screen.height}, '
                f'{len(self.frames)} frames, loop_count={self.loop_count})')


class GifHeaderReader:
    """Walks the block structure of one GIF and collects its frames."""

    def __init__(self, source):
        self.source = source
        self.state = ParserState.HEADER
        self.pending_control = None
        self.version = None
        self.screen = None
        self.global_color_table = None
        self.frames = []
        self.loop_count = DEFAULT_LOOP_COUNT
        self.comments = []

    def read(self):
        self.read_header()
        self.read_screen_descriptor()
        self.read_blocks()
        return GifDocument(self.source, self.version, self.screen,
                           self.global_color_table, self.frames,
                           self.loop_count, self.comments)

    def read_header(self):
        self.version = read_signature(self.source)
        if self.version is None:
            raise MalformedGif('not a GIF87a/GIF89a stream')

    def read_screen_descriptor(self):
        src = self.source
        width = src.read_u16_le()
        height = src.read_u16_le()
        has_palette, color_bits, is_sorted, size_bits = unpack_flags(src.read_u8(), SCREEN_FLAGS)
        background = src.read_u8()
        aspect = src.read_u8()
        self.screen = LogicalScreen(width, height, has_palette, table_size(size_bits),
                                    color_bits + 1, is_sorted, background, aspect)
        if has_palette:
            self.global_color_table = self.read_color_table(self.screen.gct_size)
        self.state = ParserState.AFTER_LSD

    def read_color_table(self, size):
        return ColorTable.from_bytes(self.source.read_exact(3 * size))

    def read_blocks(self):
        self.state = ParserState.BLOCK_LOOP
        while self.state is not ParserState.TERMINATED:
            try:
                block_type = self.source.read_u8()
            except EndOfStream:
                self.stop_early('stream ends without a trailer')
                break
            if block_type == IMAGE_SEPARATOR:
                self.state = ParserState.READING_IMAGE
                self.frames.append(self.read_image())
                self.state = ParserState.BLOCK_LOOP
            elif block_type == EXTENSION_INTRODUCER:
                self.read_extension()
            elif block_type == TRAILER:
                self.state = ParserState.TERMINATED
            else:
                self.stop_early(f'unexpected byte 0x{block_type:02x} at offset '
                                f'{self.source.position() - 1}')

    def stop_early(self, reason):
        if not self.frames:
            raise MalformedGif(reason)
        logger.warning('%s; keeping %d frames', reason, len(self.frames))
        self.state = ParserState.TERMINATED

    def read_extension(self):
        label = self.source.read_u8()
        if label == GRAPHIC_CONTROL_LABEL:
            self.state = ParserState.READING_GCE
            if self.pending_control is not None:
                logger.debug('graphic control extension replaces an unused one')
            self.pending_control = self.read_graphic_control()
            self.state = ParserState.BLOCK_LOOP
        elif label == APPLICATION_LABEL:
            app_id = read_sub_block(self.source)
            if app_id == NETSCAPE_APP_ID:
                self.loop_count = read_netscape_loop(self.source)
            elif app_id:
                logger.debug('skipping application extension %r', app_id)
                skip_sub_blocks(self.source)
        elif label == COMMENT_LABEL:
            self.comments.append(self.read_comment())
        else:
            if label != PLAIN_TEXT_LABEL:
                logger.debug('skipping unknown extension 0x%02x', label)
            skip_sub_blocks(self.source)

    def read_graphic_control(self):
        block = read_sub_block(self.source)
        if len(block) < 4:
            raise MalformedGif(f'graphic control block is {len(block)} bytes, expected 4')
        disposal, user_input, has_transparency = unpack_flags(block[0], GRAPHIC_CONTROL_FLAGS)
        delay = block[1] | (block[2] << 8)
        transparent = block[3] if has_transparency else None
        skip_sub_blocks(self.source)
        return GraphicControl(DisposalMethod.from_field(disposal), user_input,
                              transparent, delay)

    def read_comment(self):
        chunks = []
        while True:
            block = read_sub_block(self.source)
            if not block:
                break
            chunks.append(block)
        return b''.join(chunks).decode('latin-1')

    def read_image(self):
        src = self.source
        left = src.read_u16_le()
        top = src.read_u16_le()
        width = src.read_u16_le()
        height = src.read_u16_le()
        has_palette, interlaced, _, size_bits = unpack_flags(src.read_u8(), IMAGE_FLAGS)

        if left + width > self.screen.width or top + height > self.screen.height:
            raise MalformedGif(f'frame {len(self.frames)} at ({left}, {top}) size '
                               f'{width}x{height} exceeds the '
                               f'{self.screen.width}x{self.screen.height} screen')

        palette = self.read_color_table(table_size(size_bits)) if has_palette else None

        raster_offset = src.position()
        min_code_size = src.read_u8()
        if not MIN_LZW_CODE_SIZE <= min_code_size <= MAX_LZW_CODE_SIZE:
            raise MalformedGif(f'invalid LZW minimum code size {min_code_size}')
        skip_sub_blocks(src)

        control = self.pending_control or NO_GRAPHIC_CONTROL
        self.pending_control = None
        logger.debug('frame %d: %dx%d at (%d, %d), raster at %d',
                     len(self.frames), width, height, left, top, raster_offset)
        return Frame(left, top, width, height, palette, interlaced,
                     control.transparent_index, control.disposal_method,
                     control.delay_centiseconds, raster_offset, min_code_size)


def parse(source):
    """Parse a whole GIF into a GifDocument.

    Forward-only sources are read into memory first, since frame decoding
    has to seek back to each raster.
    """
    return GifHeaderReader(as_seekable(source)).read()

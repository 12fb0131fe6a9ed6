"""Quick GIF classification: not a GIF, a still GIF, or an animated one."""

import enum
import logging
from collections import namedtuple

from bitstring import Bits

from gif_constants import (
    APPLICATION_LABEL, DEFAULT_LOOP_COUNT, EXTENSION_INTRODUCER,
    GRAPHIC_CONTROL_LABEL, IMAGE_SEPARATOR, LOOP_FOREVER, NETSCAPE_APP_ID,
    NETSCAPE_LOOP_SUB_BLOCK, SCREEN_DESCRIPTOR_LEN, SIGNATURE_LEN, SIGNATURES,
    TRAILER)
from gif_errors import EndOfStream

logger = logging.getLogger(__name__)

# Packed-field layouts, most significant bit first
SCREEN_FLAGS = 'bool, uint:3, bool, uint:3'
IMAGE_FLAGS = 'bool, bool, bool, pad:2, uint:3'
GRAPHIC_CONTROL_FLAGS = 'pad:3, uint:3, bool, bool'


class ImageKind(enum.Enum):
    NOT_GIF = 0
    STATIC_GIF = 1
    ANIMATED_GIF = 2


class Classification(namedtuple('Classification', 'kind loop_count')):
    __slots__ = ()

    @property
    def is_gif(self):
        return self.kind is not ImageKind.NOT_GIF

    @property
    def is_animated(self):
        return self.kind is ImageKind.ANIMATED_GIF


NOT_GIF = Classification(ImageKind.NOT_GIF, DEFAULT_LOOP_COUNT)


def unpack_flags(value, layout):
    return Bits(uint=value, length=8).unpack(layout)


def table_size(size_bits):
    return 1 << (size_bits + 1)


def read_signature(source):
    """Return the version ('87a' or '89a'), or None for anything else.

    Never consumes more than the six signature bytes.
    """
    sig = source.read_upto(SIGNATURE_LEN)
    if sig not in SIGNATURES:
        return None
    return sig[3:].decode('ascii')


def read_sub_block(source):
    """Read one length-prefixed sub-block; b'' is the chain terminator."""
    n = source.read_u8()
    return source.read_exact(n) if n else b''


def skip_sub_blocks(source):
    skipped = 0
    while True:
        n = source.read_u8()
        if n == 0:
            return skipped
        source.skip(n)
        skipped += n + 1


def read_netscape_loop(source):
    """Consume a NETSCAPE2.0 data chain and return its loop count.

    0 means loop forever, which is also what a chain without a loop
    sub-block reports.
    """
    loop_count = None
    while True:
        block = read_sub_block(source)
        if not block:
            break
        if loop_count is None and len(block) >= 3 and block[0] == NETSCAPE_LOOP_SUB_BLOCK:
            loop_count = block[1] | (block[2] << 8)
    return LOOP_FOREVER if loop_count is None else loop_count


def skip_screen_descriptor(source):
    descriptor = source.read_exact(SCREEN_DESCRIPTOR_LEN)
    has_palette, _, _, size_bits = unpack_flags(descriptor[4], SCREEN_FLAGS)
    if has_palette:
        source.skip(3 * table_size(size_bits))


def classify(source):
    """Classify a byte source without decoding any image data.

    Any graphic control or application extension ahead of the first image
    descriptor marks the GIF as animated.
    """
    if read_signature(source) is None:
        return NOT_GIF
    skip_screen_descriptor(source)

    animated = False
    while True:
        try:
            block_type = source.read_u8()
        except EndOfStream:
            if animated:
                logger.debug('no trailer; stopping scan')
                break
            raise
        if block_type == IMAGE_SEPARATOR:
            break
        if block_type != EXTENSION_INTRODUCER:
            if block_type != TRAILER:
                logger.debug('stray byte 0x%02x at %d, stopping scan',
                             block_type, source.position() - 1)
            break

        label = source.read_u8()
        if label == GRAPHIC_CONTROL_LABEL:
            animated = True
            skip_sub_blocks(source)
        elif label == APPLICATION_LABEL:
            animated = True
            app_id = read_sub_block(source)
            if app_id == NETSCAPE_APP_ID:
                return Classification(ImageKind.ANIMATED_GIF, read_netscape_loop(source))
            if app_id:
                skip_sub_blocks(source)
        else:
            skip_sub_blocks(source)

    kind = ImageKind.ANIMATED_GIF if animated else ImageKind.STATIC_GIF
    return Classification(kind, DEFAULT_LOOP_COUNT)

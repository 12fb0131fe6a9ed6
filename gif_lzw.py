"""GIF-flavoured variable-width LZW expansion of frame rasters."""

import logging

from gif_constants import (
    INTERLACE_PASSES, MAX_CODE_LEN, MAX_DICT_ENTRIES, MAX_LZW_CODE_SIZE,
    MAX_SUB_BLOCK_LEN, MIN_LZW_CODE_SIZE)
from gif_errors import MalformedGif

logger = logging.getLogger(__name__)

NO_CODE = -1


class SubBlockReader:
    """Serves the bytes of a sub-block chain one at a time.

    Block boundaries are invisible to the caller; None marks the end of the
    chain.
    """

    def __init__(self, source):
        self.source = source
        self.block = bytearray(MAX_SUB_BLOCK_LEN + 1)
        self.count = 0
        self.index = 0
        self.finished = False

    def next_byte(self):
        if self.index >= self.count:
            if self.finished:
                return None
            n = self.source.read_u8()
            if n == 0:
                self.finished = True
                return None
            self.block[:n] = self.source.read_exact(n)
            self.count = n
            self.index = 0
        b = self.block[self.index]
        self.index += 1
        return b


class LzwDecoder:
    """Expands one frame at a time; the tables are reused between frames."""

    def __init__(self):
        self.prefix = [0] * MAX_DICT_ENTRIES
        self.suffix = bytearray(MAX_DICT_ENTRIES)
        self.stack = bytearray(MAX_DICT_ENTRIES + 1)
        self.min_code_size = 0
        self.clear_code = 0
        self.end_code = 0
        self.code_size = 0
        self.code_mask = 0
        self.next_code = 0
        self.previous_code = NO_CODE
        self.first_char = 0
        self.bit_buffer = 0
        self.bits_loaded = 0

    def start(self, min_code_size):
        if not MIN_LZW_CODE_SIZE <= min_code_size <= MAX_LZW_CODE_SIZE:
            raise MalformedGif(f'invalid LZW minimum code size {min_code_size}')
        self.min_code_size = min_code_size
        self.clear_code = 1 << min_code_size
        self.end_code = self.clear_code + 1
        for i in range(self.clear_code):
            self.prefix[i] = 0
            self.suffix[i] = i
        self.bit_buffer = 0
        self.bits_loaded = 0
        self.reset()

    def reset(self):
        self.code_size = self.min_code_size + 1
        self.code_mask = (1 << self.code_size) - 1
        self.next_code = self.end_code + 1
        self.previous_code = NO_CODE

    def read_code(self, reader):
        while self.bits_loaded < self.code_size:
            byte = reader.next_byte()
            if byte is None:
                return None
            self.bit_buffer |= byte << self.bits_loaded
            self.bits_loaded += 8
        code = self.bit_buffer & self.code_mask
        self.bit_buffer >>= self.code_size
        self.bits_loaded -= self.code_size
        return code

    def expand(self, reader, pixel_count):
        """Decode codes from reader into exactly pixel_count indices.

        The buffer grows with the decoded data, so a forged frame size can't
        force a large allocation up front.
        """
        out = bytearray()
        prefix, suffix, stack = self.prefix, self.suffix, self.stack
        i = 0
        while i < pixel_count:
            code = self.read_code(reader)
            if code is None:
                raise MalformedGif(f'raster data ends after {i} of {pixel_count} pixels')
            if code == self.clear_code:
                self.reset()
                continue
            if code == self.end_code:
                logger.warning('end code after %d of %d pixels', i, pixel_count)
                out += bytes(pixel_count - i)
                break

            if self.previous_code == NO_CODE:
                if code > self.clear_code:
                    raise MalformedGif(f'code {code} before any dictionary entry')
                out.append(code)
                i += 1
                self.previous_code = code
                self.first_char = code
                continue

            in_code = code
            top = 0
            if code > self.next_code:
                raise MalformedGif(f'code {code} beyond next dictionary entry {self.next_code}')
            if code == self.next_code:
                # KwKwK: previous string plus its own first character
                stack[top] = self.first_char
                top += 1
                code = self.previous_code
            while code >= self.clear_code:
                stack[top] = suffix[code]
                top += 1
                code = prefix[code]
            first = code
            stack[top] = first
            top += 1

            n = min(top, pixel_count - i)
            out += stack[top - 1::-1][:n]
            i += n

            if self.next_code < MAX_DICT_ENTRIES:
                prefix[self.next_code] = self.previous_code
                suffix[self.next_code] = first
                self.next_code += 1
                if self.next_code == 1 << self.code_size and self.code_size < MAX_CODE_LEN:
                    self.code_size += 1
                    self.code_mask = (1 << self.code_size) - 1
            self.previous_code = in_code
            self.first_char = first
        return out

    def decode(self, source, frame, deinterlace_rows=True):
        """Decode a frame's raster from a seekable source into palette indices.

        Interlaced frames come back in row-major order unless deinterlace_rows
        is False, in which case rows are left in the order they were stored.
        """
        source.seek(frame.raster_offset)
        min_code_size = source.read_u8()
        if min_code_size != frame.min_code_size:
            raise MalformedGif(f'raster at {frame.raster_offset} changed: code size '
                               f'{min_code_size}, expected {frame.min_code_size}')
        self.start(min_code_size)
        pixels = self.expand(SubBlockReader(source), frame.width * frame.height)
        if frame.interlaced and deinterlace_rows:
            pixels = deinterlace(pixels, frame.width, frame.height)
        return pixels


def interlaced_rows(height):
    """Yield row numbers in the order an interlaced image stores them."""
    for start, step in INTERLACE_PASSES:
        yield from range(start, height, step)


def deinterlace(pixels, width, height):
    out = bytearray(len(pixels))
    for stored, row in enumerate(interlaced_rows(height)):
        out[row * width:(row + 1) * width] = pixels[stored * width:(stored + 1) * width]
    return out

"""Exceptions raised while reading GIF data."""


class GifError(Exception):
    pass


class MalformedGif(GifError, ValueError):
    """The byte stream violates the GIF block structure."""


class EndOfStream(MalformedGif, EOFError):
    """A required read ran past the end of the source."""

    def __init__(self, wanted, got=0):
        super().__init__(f'unexpected end of data: wanted {wanted} bytes, got {got}')
        self.wanted = wanted
        self.got = got


class FrameOutOfBounds(GifError, IndexError):
    def __init__(self, index, frame_count):
        super().__init__(f'frame {index} out of range (frame count {frame_count})')
        self.index = index
        self.frame_count = frame_count


class UnsupportedImage(GifError):
    """Raised by the static image path when the data can't be decoded."""

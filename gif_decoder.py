"""GIF reader entry points: classify, parse, decode frames, or hand off."""

import logging

from byte_source import ByteSource, MemorySource, StreamSource
from gif_header import parse as _parse
from gif_scanner import classify as _classify
from gif_session import DecoderSession, decode_frame
from static_image import PillowStaticDecoder

__all__ = ['classify', 'parse', 'decode_frame', 'open_session', 'decode_image',
           'make_source']

logger = logging.getLogger(__name__)


def make_source(data):
    """Wrap bytes or a binary file object in a ByteSource."""
    if isinstance(data, ByteSource):
        return data
    if isinstance(data, (bytes, bytearray, memoryview)):
        return MemorySource(data)
    if hasattr(data, 'read'):
        return StreamSource(data)
    raise TypeError(f'cannot read image data from {type(data).__name__}')


def classify(data):
    return _classify(make_source(data))


def parse(data):
    return _parse(make_source(data))


def open_session(data):
    return DecoderSession.open(make_source(data))


def decode_image(data, static_decoder=None, mark_limit=None):
    """Open an animated GIF as a DecoderSession; anything else goes to the static decoder.

    The source is marked before classification and reset afterwards, so the
    chosen decoder sees the data from the start. By default the mark has no
    limit, however large the extensions ahead of the first image are.
    """
    source = make_source(data)
    source.mark(mark_limit)
    kind = _classify(source)
    source.reset()
    if kind.is_animated:
        logger.debug('animated GIF, loop count %d', kind.loop_count)
        return DecoderSession.open(source)
    if static_decoder is None:
        static_decoder = PillowStaticDecoder()
    return static_decoder.decode_static(source)


################################################################################

if __name__ == '__main__':
    # Show the first frame of a GIF, for testing
    import sys
    from PIL import Image

    logging.basicConfig(level=logging.DEBUG)
    with open(sys.argv[1], 'rb') as f:
        source = MemorySource(f.read())

    print(classify(source))
    source.seek(0)
    session = DecoderSession.open(source)
    print(session.document)
    for i in range(session.frame_count):
        print(f'frame {i}: {session.document.frames[i]}')

    frame = session.decode_current()
    image = Image.frombytes('P', (frame.width, frame.height), frame.indices)
    image.putpalette(frame.palette.to_bytes())
    image.show()

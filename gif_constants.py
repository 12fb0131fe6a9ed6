"""Block markers, limits and defaults for the GIF reader."""

SIGNATURES = (b'GIF87a', b'GIF89a')
SIGNATURE_LEN = 6
SCREEN_DESCRIPTOR_LEN = 7

IMAGE_SEPARATOR = 0x2C
EXTENSION_INTRODUCER = 0x21
TRAILER = 0x3B

GRAPHIC_CONTROL_LABEL = 0xF9
APPLICATION_LABEL = 0xFF
COMMENT_LABEL = 0xFE
PLAIN_TEXT_LABEL = 0x01

NETSCAPE_APP_ID = b'NETSCAPE2.0'
NETSCAPE_LOOP_SUB_BLOCK = 0x01

MAX_CODE_LEN = 12
MAX_DICT_ENTRIES = 2**MAX_CODE_LEN
MIN_LZW_CODE_SIZE = 2
MAX_LZW_CODE_SIZE = 8
MAX_SUB_BLOCK_LEN = 255

DEFAULT_LOOP_COUNT = 1   # no NETSCAPE2.0 block: play once
LOOP_FOREVER = 0
MIN_FRAME_DELAY_MS = 10

DEFAULT_MARK_LIMIT = 64 * 1024

# (first row, row step) for each of the four interlace passes
INTERLACE_PASSES = ((0, 8), (4, 8), (2, 4), (1, 2))

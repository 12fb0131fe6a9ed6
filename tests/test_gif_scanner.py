import io

import pytest

import gif_builder as gb
from byte_source import MemorySource, StreamSource
from gif_errors import MalformedGif
from gif_scanner import (
    ImageKind, classify, read_netscape_loop, read_signature, skip_sub_blocks)


def classify_bytes(data):
    return classify(MemorySource(data))


def test_static_gif():
    # Single image, no extensions: the W3C logo case
    result = classify_bytes(gb.gif(gb.image(4, 4)))
    assert result.kind is ImageKind.STATIC_GIF
    assert result.loop_count == 1
    assert result.is_gif and not result.is_animated


def test_static_gif87a():
    result = classify_bytes(gb.gif(gb.image(4, 4), version=b'GIF87a'))
    assert result.kind is ImageKind.STATIC_GIF


def test_loop_once_animation():
    data = gb.gif(gb.netscape(1), gb.graphic_control(delay=5), gb.image(4, 4),
                  gb.graphic_control(delay=5), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 1)


def test_looping_animation():
    data = gb.gif(gb.netscape(0), gb.graphic_control(delay=10), gb.image(4, 4),
                  gb.graphic_control(delay=10), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 0)


def test_netscape_after_graphic_control():
    data = gb.gif(gb.graphic_control(delay=10), gb.netscape(7), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 7)


def test_graphic_control_without_netscape_defaults_to_one_loop():
    data = gb.gif(gb.graphic_control(delay=10), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 1)


def test_any_graphic_control_counts_as_animated():
    assert classify_bytes(gb.SAMPLE_GIF).kind is ImageKind.ANIMATED_GIF


def test_other_application_extension_is_skipped():
    data = gb.gif(gb.application(b'XMP DataXMP', b'<x/>' * 100), gb.netscape(3),
                  gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 3)


def test_unknown_extension_before_image():
    data = gb.gif(gb.extension(0x05, b'whatever'), gb.comment('hi'), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.STATIC_GIF, 1)

    data = gb.gif(gb.extension(0x05, b'whatever'), gb.netscape(0), gb.image(4, 4))
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 0)


def test_trailer_only():
    assert classify_bytes(gb.gif()).kind is ImageKind.STATIC_GIF


@pytest.mark.parametrize('data', [
    b'', b'GIF', b'GIF89', b'GIF88a', b'\x89PNG\r\n\x1a\n' + bytes(100),
    b'gif89a' + bytes(20), b'GIF8\x00a' + bytes(20)])
def test_not_gif_reads_at_most_six_bytes(data):
    src = MemorySource(data)
    result = classify(src)
    assert result.kind is ImageKind.NOT_GIF
    assert src.position() <= 6


def test_truncated_after_screen_descriptor():
    data = gb.header(4, 4, palette=None)
    with pytest.raises(MalformedGif):
        classify_bytes(data)


def test_truncated_global_color_table():
    with pytest.raises(MalformedGif):
        classify_bytes(gb.header(4, 4)[:-3])


def test_truncated_extension_chain():
    data = gb.gif(gb.comment('x' * 300))[:-40]
    with pytest.raises(MalformedGif):
        classify_bytes(data)


def test_animated_without_trailer_still_classifies():
    data = gb.header(4, 4) + gb.graphic_control(delay=3)
    assert classify_bytes(data) == (ImageKind.ANIMATED_GIF, 1)


def test_classify_forward_only_stream():
    data = gb.gif(gb.netscape(2), gb.graphic_control(), gb.image(4, 4))
    assert classify(StreamSource(io.BytesIO(data))) == (ImageKind.ANIMATED_GIF, 2)


def test_read_signature():
    assert read_signature(MemorySource(b'GIF87a')) == '87a'
    assert read_signature(MemorySource(b'GIF89a')) == '89a'
    assert read_signature(MemorySource(b'GIF90a')) is None


def test_skip_sub_blocks_stops_at_terminator():
    src = MemorySource(b'\x02ab\x01c\x00rest')
    assert skip_sub_blocks(src) == 5
    assert src.read_exact(4) == b'rest'


def test_read_netscape_loop():
    assert read_netscape_loop(MemorySource(b'\x03\x01\x05\x01\x00')) == 0x0105
    # no loop sub-block: loop forever
    assert read_netscape_loop(MemorySource(b'\x03\x02\x00\x10\x00')) == 0
    assert read_netscape_loop(MemorySource(b'\x00')) == 0
    with pytest.raises(MalformedGif):
        read_netscape_loop(MemorySource(b'\x03\x01\x05'))

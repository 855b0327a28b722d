import pytest

from knowledge_core_api.ingestion.chunker import chunk_text, decode_text
from knowledge_core_lib.errors import InvalidInputError


def test_windows_advance_by_size_minus_overlap():
    text = "abcdefghijklmnopqrstuvwxy"

    windows = chunk_text(text, chunk_size=10, overlap=3)

    assert [window.start for window in windows] == [0, 7, 14, 21]
    assert [window.position for window in windows] == [0, 1, 2, 3]
    assert windows[-1].text == "vwxy"
    assert all(window.text == text[window.start : window.end] for window in windows)


@pytest.mark.parametrize("chunk_size,overlap", [(10, 3), (5, 0), (7, 6), (1, 0), (50, 10)])
def test_leading_segments_reconstruct_text(chunk_size, overlap):
    text = "The quick brown fox jumps over the lazy dog, twice: the quick brown fox."
    windows = chunk_text(text, chunk_size, overlap)
    step = chunk_size - overlap

    rebuilt = "".join(window.text[:step] for window in windows[:-1]) + windows[-1].text

    assert rebuilt == text


def test_short_text_yields_single_window():
    assert [window.text for window in chunk_text("short", 100, 10)] == ["short"]


def test_empty_text_yields_no_windows():
    assert chunk_text("", 10, 3) == []


@pytest.mark.parametrize("chunk_size,overlap", [(0, 0), (-5, 0), (10, 10), (10, 11), (10, -1)])
def test_invalid_parameters_are_rejected(chunk_size, overlap):
    with pytest.raises(InvalidInputError):
        chunk_text("some text", chunk_size, overlap)


def test_decode_text_drops_nul_characters():
    assert decode_text(b"ab\x00cd") == "abcd"

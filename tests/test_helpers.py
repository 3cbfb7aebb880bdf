"""
Tests for transcript chunking and the small text helpers.
"""

import pytest

from video_recap.models.schemas import TextChunk
from video_recap.utils.helpers import truncate_text, unique_temp_path


def long_text(sentence_count: int = 120) -> str:
    return " ".join(f"Sentence number {i} talks about topic {i % 7}." for i in range(sentence_count))


def texts(chunks):
    return [chunk.text for chunk in chunks]


@pytest.mark.parametrize("text", [
    "A short transcript.",
    "  padded with spaces and no terminator  ",
    "x" * 3000,
    "One. Two! Three? " * 10,
])
def test_short_text_is_one_chunk_equal_to_trimmed_input(text):
    assert texts(TextChunk.split(text, 3000)) == [text.strip()]


def test_empty_text_has_no_chunks():
    assert TextChunk.split("   ", 3000) == []


def test_long_text_chunks_respect_budget():
    text = long_text()
    assert len(text) > 3000

    chunks = TextChunk.split(text, 3000)

    assert len(chunks) > 1
    assert all(len(chunk.text) <= 3000 for chunk in chunks)


def test_long_text_chunks_reproduce_the_text_in_order():
    text = long_text()

    chunks = TextChunk.split(text, 3000)

    assert " ".join(texts(chunks)) == text
    assert all(chunk.text.endswith(".") for chunk in chunks)


def test_chunks_keep_their_punctuation():
    chunks = TextChunk.split("Is it done? Yes! It is done. Really.", 14)
    assert texts(chunks) == ["Is it done?", "Yes!", "It is done.", "Really."]


def test_packing_is_greedy():
    text = "aaaa. bbbb. cccc. dddd."
    # each sentence counts its trailing space, so two sentences fill 12 characters
    assert texts(TextChunk.split(text, 12)) == ["aaaa. bbbb.", "cccc. dddd."]


def test_oversized_sentence_is_split_on_words():
    giant = "word " * 50 + "end."
    text = f"Intro. {giant} Outro."

    chunks = texts(TextChunk.split(text, 40))

    assert chunks[0] == "Intro."
    assert chunks[-1] == "Outro."
    assert all(len(chunk) <= 40 for chunk in chunks)
    assert " ".join(chunks).split() == text.split()


def test_text_chunk_split_indexes_are_dense():
    chunks = TextChunk.split(long_text(), 3000)
    assert [chunk.index for chunk in chunks] == list(range(len(chunks)))


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "aaaaaaa..."


def test_unique_temp_path_never_repeats(tmp_path):
    paths = {unique_temp_path(tmp_path, "chunk", "wav") for _ in range(50)}
    assert len(paths) == 50
    assert all(path.suffix == ".wav" for path in paths)

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from backend.app.services.extraction_rules import DEFAULT_CHUNK_BUDGET
from backend.app.services.structural_renderer import FENCED_BLOCK_PATTERN

LOGGER = logging.getLogger("article_translator.chunking")

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "
# a sentence ends at terminal punctuation followed by whitespace, or at a line break
SENTENCE_BOUNDARY_PATTERN = re.compile(r"((?<=[.!?])[ \t]+|[ \t]*\n\s*)")


@dataclass(frozen=True)
class Chunk:
    index: int
    first_paragraph: int
    last_paragraph: int
    text: str
    oversized: bool = False


@dataclass
class _RunningChunk:
    text: str = ""
    first_paragraph: int = 0
    last_paragraph: int = 0

    @property
    def empty(self) -> bool:
        return not self.text


def split_text(text: str, budget: int = DEFAULT_CHUNK_BUDGET) -> list[str]:
    return [chunk.text for chunk in split_into_chunks(text, budget)]


def split_into_chunks(text: str, budget: int = DEFAULT_CHUNK_BUDGET) -> list[Chunk]:
    """
    Split structured text into ordered chunks of at most `budget` characters.

    Paragraphs are packed greedily; a paragraph that cannot fit on its own is
    re-split at sentence boundaries. A single sentence longer than the budget
    becomes its own oversized chunk rather than being cut mid-sentence.
    """
    if budget <= 0:
        raise ValueError("Chunk budget must be a positive number of characters.")

    paragraphs = [paragraph for paragraph in text.split(PARAGRAPH_SEPARATOR) if paragraph.strip()]
    emitted: list[tuple[str, int, int]] = []
    running = _RunningChunk()

    def emit(piece: str, first: int, last: int) -> None:
        stripped = piece.strip()
        if stripped:
            emitted.append((stripped, first, last))

    for position, paragraph in enumerate(paragraphs):
        paragraph = paragraph.strip()
        if running.empty:
            running = _RunningChunk(
                text=paragraph, first_paragraph=position, last_paragraph=position
            )
        elif _joined_length(running.text, paragraph, PARAGRAPH_SEPARATOR) > budget:
            emit(running.text, running.first_paragraph, running.last_paragraph)
            running = _RunningChunk(
                text=paragraph, first_paragraph=position, last_paragraph=position
            )
        else:
            running.text = f"{running.text}{PARAGRAPH_SEPARATOR}{paragraph}"
            running.last_paragraph = position

        if len(running.text) > budget:
            pieces = _pack_sentences(running.text, budget)
            for piece in pieces[:-1]:
                emit(piece, running.first_paragraph, running.last_paragraph)
            running = _RunningChunk(
                text=pieces[-1] if pieces else "",
                first_paragraph=running.last_paragraph,
                last_paragraph=running.last_paragraph,
            )

    if not running.empty:
        emit(running.text, running.first_paragraph, running.last_paragraph)

    chunks: list[Chunk] = []
    for index, (piece, first, last) in enumerate(emitted):
        oversized = len(piece) > budget
        if oversized:
            LOGGER.debug(
                "chunk exceeds budget with a single sentence index=%s length=%s budget=%s",
                index,
                len(piece),
                budget,
            )
        chunks.append(
            Chunk(
                index=index,
                first_paragraph=first,
                last_paragraph=last,
                text=piece,
                oversized=oversized,
            )
        )
    return chunks


def split_sentences(text: str) -> list[str]:
    return [sentence for _, sentence in _sentence_units(text)]


def join_chunks(chunks: list[str]) -> str:
    return PARAGRAPH_SEPARATOR.join(chunk.strip() for chunk in chunks if chunk.strip())


def _sentence_units(text: str) -> list[tuple[str, str]]:
    """Pair each sentence with the separator that preceded it in `text`."""
    units: list[tuple[str, str]] = []
    separator = ""
    for position, part in enumerate(SENTENCE_BOUNDARY_PATTERN.split(text.strip())):
        if position % 2 == 1:
            if "\n" in part or "\n" not in separator:
                separator = "\n" if "\n" in part else part
            continue
        sentence = part.strip()
        if sentence:
            units.append((separator if units else "", sentence))
            separator = ""
    return units


def _pack_sentences(text: str, budget: int) -> list[str]:
    if FENCED_BLOCK_PATTERN.fullmatch(text):
        return [text]
    pieces: list[str] = []
    current = ""
    for separator, sentence in _sentence_units(text):
        joiner = separator or SENTENCE_SEPARATOR
        if current and _joined_length(current, sentence, joiner) > budget:
            pieces.append(current)
            current = sentence
        elif current:
            current = f"{current}{joiner}{sentence}"
        else:
            current = sentence
    if current:
        pieces.append(current)
    return pieces


def _joined_length(current: str, addition: str, separator: str) -> int:
    return len(current) + len(separator) + len(addition)

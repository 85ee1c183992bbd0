"""
Prompt budget handling for long documents

Text that fits PROMPT_CHAR_BUDGET is sent whole. Longer text is split on
paragraph boundaries, each chunk is condensed by the model (map) and the
joined notes are used as the prompt content (reduce). The result is cut to
the budget as a last guard.
"""
import logging
import re
from typing import Callable, List, Optional

from learnsphere.config import settings

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_into_chunks(text: str, chunk_chars: int) -> List[str]:
    """Pack paragraphs into chunks of at most chunk_chars characters"""
    chunks: List[str] = []
    current: List[str] = []
    size = 0

    for paragraph in PARAGRAPH_BREAK.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        # Oversized paragraphs are hard-split
        pieces = [paragraph[i:i + chunk_chars] for i in range(0, len(paragraph), chunk_chars)]
        for piece in pieces:
            added = len(piece) + (2 if current else 0)
            if current and size + added > chunk_chars:
                chunks.append("\n\n".join(current))
                current, size = [], 0
                added = len(piece)
            current.append(piece)
            size += added

    if current:
        chunks.append("\n\n".join(current))
    return chunks


def truncate(text: str, budget: int) -> str:
    if len(text) <= budget:
        return text
    cut = text[:budget]
    # Prefer ending on a paragraph or sentence boundary
    boundary = max(cut.rfind("\n\n"), cut.rfind(". "))
    if boundary > budget // 2:
        cut = cut[:boundary + 1]
    return cut.rstrip()


def fit_to_budget(
    text: str,
    condense: Callable[[str, int, int], str],
    budget: Optional[int] = None,
    chunk_chars: Optional[int] = None,
    max_chunks: Optional[int] = None,
) -> str:
    """
    Return prompt content no longer than the character budget

    Args:
        text: Extracted document text
        condense: fn(chunk, index, total) -> condensed notes (one model call)
        budget: Character budget for the prompt content
        chunk_chars: Target chunk size for the map step
        max_chunks: Chunks beyond this are dropped before the map step
    """
    budget = budget or settings.PROMPT_CHAR_BUDGET
    chunk_chars = chunk_chars or settings.CHUNK_CHARS
    max_chunks = max_chunks or settings.MAX_MAP_CHUNKS

    text = text.strip()
    if len(text) <= budget:
        return text

    chunks = split_into_chunks(text, chunk_chars)
    if len(chunks) > max_chunks:
        logger.warning(f"Document has {len(chunks)} chunks, condensing the first {max_chunks} only")
        chunks = chunks[:max_chunks]

    logger.info(f"Document exceeds prompt budget ({len(text)} > {budget} chars), condensing {len(chunks)} chunks")
    notes = [condense(chunk, index, len(chunks)) for index, chunk in enumerate(chunks, start=1)]

    return truncate("\n\n".join(note.strip() for note in notes if note.strip()), budget)

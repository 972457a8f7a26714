"""
Splitting long source text into sentence-aligned chunks and sharing a
question quota between them
"""
from typing import List, Optional, Sequence

from models import TextChunk

# A sentence break is only used when it leaves the chunk at least this full
SENTENCE_BREAK_MIN_FILL = 0.6


def chunk_text(text: str, max_chars: int = 12000) -> List[TextChunk]:
    """
    Partition text into ordered, non-overlapping chunks of at most max_chars.

    A window that ends before the end of the text is cut just after the last
    period inside the window, provided that period lies more than
    60% of max_chars into the window; otherwise it is hard-cut at max_chars.
    Concatenating the chunk texts reproduces the input exactly.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    if not text:
        return []

    chunks = []
    min_break = int(max_chars * SENTENCE_BREAK_MIN_FILL)
    start = 0
    length = len(text)

    while start < length:
        end = min(start + max_chars, length)
        slice_end = end
        if end < length:
            # The character at `end` starts the next window, so a period there
            # would overflow the chunk by one; search strictly inside it
            period_idx = text.rfind(".", start, end)
            if period_idx > start + min_break:
                slice_end = period_idx + 1
        chunks.append(TextChunk(text=text[start:slice_end], start=start, end=slice_end))
        start = slice_end

    return chunks


def distribute_counts(total: int, parts: int, weights: Optional[Sequence[float]] = None) -> List[int]:
    """
    Split `total` into `parts` non-negative integers proportional to `weights`.

    Floor-proportional allocation first, then the remainder is handed out one
    unit at a time round-robin from part 0. Missing or mismatched weights
    fall back to uniform weights.
    """
    if parts <= 0:
        return []
    if total <= 0:
        return [0] * parts
    if not weights or len(weights) != parts:
        weights = [1] * parts

    weight_sum = sum(weights) or 1
    counts = [int((w / weight_sum) * total) for w in weights]

    assigned = sum(counts)
    i = 0
    while assigned < total:
        counts[i % parts] += 1
        assigned += 1
        i += 1

    return counts

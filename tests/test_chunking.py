"""
Tests for prompt budget handling
"""
from learnsphere.services.chunking import fit_to_budget, split_into_chunks, truncate


def test_split_packs_paragraphs():
    text = "\n\n".join(["a" * 40, "b" * 40, "c" * 40])
    chunks = split_into_chunks(text, 90)

    assert chunks == ["a" * 40 + "\n\n" + "b" * 40, "c" * 40]


def test_split_hard_splits_oversized_paragraphs():
    chunks = split_into_chunks("x" * 250, 100)
    assert [len(chunk) for chunk in chunks] == [100, 100, 50]


def test_truncate_prefers_sentence_boundary():
    text = "First sentence here. Second sentence is a bit longer. Third."
    assert truncate(text, 36) == "First sentence here."
    assert truncate("short", 40) == "short"


def test_text_within_budget_is_untouched():
    calls = []
    result = fit_to_budget("  small document  ", lambda *args: calls.append(args), budget=100)
    assert result == "small document"
    assert calls == []


def test_long_text_is_condensed_and_capped():
    calls = []

    def condense(chunk, index, total):
        calls.append((index, total))
        return f"notes {index}"

    text = "\n\n".join(f"paragraph {i} " + "word " * 30 for i in range(10))
    result = fit_to_budget(text, condense, budget=200, chunk_chars=200, max_chunks=3)

    assert calls == [(1, 3), (2, 3), (3, 3)]
    assert result == "notes 1\n\nnotes 2\n\nnotes 3"
    assert len(result) <= 200

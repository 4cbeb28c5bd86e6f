import numpy as np
import pytest

from llamatok.tokenizer import MergeTable, VocabularyError, VocabularyStore


def test_vocab_lookup_both_directions(vocab, vocab_tokens):
    assert len(vocab) == len(vocab_tokens)
    assert vocab.id_of("<s>") == 1
    assert vocab.string_of(1) == "<s>"
    assert vocab.id_of("<0x0A>") == 3 + 0x0A
    for token_id, token in enumerate(vocab_tokens):
        assert vocab.id_of(token) == token_id
        assert vocab.string_of(token_id) == token


def test_vocab_missing_string_is_none(vocab):
    assert vocab.id_of("zzz") is None
    assert "zzz" not in vocab
    assert "▁hello" in vocab


def test_vocab_rejects_out_of_range_id(vocab):
    with pytest.raises(ValueError):
        vocab.string_of(len(vocab))
    with pytest.raises(ValueError):
        vocab.string_of(-1)


def test_vocab_rejects_duplicates():
    with pytest.raises(VocabularyError):
        VocabularyStore(["<unk>", "a", "a"])


def test_merge_ranks_follow_training_order(vocab, merges):
    space = vocab.id_of("▁")
    two = vocab.id_of("▁▁")
    assert merges.rank_of(space, space) == 1
    assert merges.rank_of(two, space) == 2
    assert merges.rank_of(two, two) == 3
    assert merges.lookup(space, space) == (1, two)


def test_merge_pair_is_ordered(vocab, merges):
    h, e = vocab.id_of("h"), vocab.id_of("e")
    assert merges.rank_of(h, e) is not None
    assert merges.rank_of(e, h) is None
    assert (h, e) in merges
    assert (e, h) not in merges


def test_merge_table_accepts_numpy(vocab, merge_ids):
    table = MergeTable(vocab, np.asarray(merge_ids, dtype=np.uint16))
    assert len(table) == len(merge_ids) // 2
    assert table.flat_ids() == merge_ids


def test_merge_table_rejects_odd_length(vocab, merge_ids):
    with pytest.raises(VocabularyError):
        MergeTable(vocab, merge_ids[:-1])


def test_merge_table_rejects_unknown_result(vocab):
    # "a" + "d" = "ad" is not a token
    with pytest.raises(VocabularyError, match="not in the vocabulary"):
        MergeTable(vocab, [vocab.id_of("a"), vocab.id_of("d")])


def test_merge_table_rejects_out_of_range_ids(vocab):
    with pytest.raises(VocabularyError):
        MergeTable(vocab, [vocab.id_of("a"), len(vocab) + 5])


def test_duplicate_merge_keeps_first_rank(vocab):
    a, b = vocab.id_of("a"), vocab.id_of("b")
    h, e = vocab.id_of("h"), vocab.id_of("e")
    table = MergeTable(vocab, [a, b, h, e, a, b])
    assert table.rank_of(a, b) == 1
    assert table.rank_of(h, e) == 2
    assert len(table) == 3

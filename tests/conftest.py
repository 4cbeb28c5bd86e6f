"""
Shared fixtures: a small LLaMA-shaped vocabulary.

Layout mirrors the real table: <unk>, <s>, </s>, then the 256 byte tokens,
then single characters, then one token per merge result.
"""

import pytest

from llamatok.config import TokenizerConfig
from llamatok.tokenizer import LlamaTokenizer, MergeTable, VocabularyStore


SPACE = "▁"

SPECIAL_TOKENS = ["<unk>", "<s>", "</s>"]
BYTE_TOKENS = [f"<0x{value:02X}>" for value in range(256)]
CHAR_TOKENS = [SPACE] + list("abcdehlorwH!,.") + ["é"]

# Training order: rank 1 first
MERGE_PAIRS = [
    (SPACE, SPACE),
    (SPACE * 2, SPACE),
    (SPACE * 2, SPACE * 2),
    ("l", "l"),
    ("h", "e"),
    ("he", "ll"),
    ("hell", "o"),
    (SPACE, "hello"),
    ("o", "r"),
    (SPACE, "w"),
    (SPACE + "w", "or"),
    ("l", "d"),
    (SPACE + "wor", "ld"),
    ("H", "e"),
    ("a", "b"),
    ("ab", "c"),
    ("c", "a"),
    ("b", "c"),
]


def build_vocab_tokens(merge_pairs=MERGE_PAIRS):
    tokens = SPECIAL_TOKENS + BYTE_TOKENS + CHAR_TOKENS
    for left, right in merge_pairs:
        if left + right not in tokens:
            tokens.append(left + right)
    return tokens


def build_merge_ids(tokens, merge_pairs=MERGE_PAIRS):
    index = {token: token_id for token_id, token in enumerate(tokens)}
    flat = []
    for left, right in merge_pairs:
        flat.extend([index[left], index[right]])
    return flat


@pytest.fixture
def vocab_tokens():
    return build_vocab_tokens()


@pytest.fixture
def merge_ids(vocab_tokens):
    return build_merge_ids(vocab_tokens)


@pytest.fixture
def vocab(vocab_tokens):
    return VocabularyStore(vocab_tokens)


@pytest.fixture
def merges(vocab, merge_ids):
    return MergeTable(vocab, merge_ids)


@pytest.fixture
def config():
    return TokenizerConfig()


@pytest.fixture
def tokenizer(vocab_tokens, merge_ids, config):
    return LlamaTokenizer(vocab=vocab_tokens, merges=merge_ids, config=config)


def naive_merge(token_ids, merges):
    """Reference BPE: rescan for the lowest-ranked, leftmost pair after every merge."""
    ids = list(token_ids)
    while True:
        best = None
        for i in range(len(ids) - 1):
            rank = merges.rank_of(ids[i], ids[i + 1])
            if rank is not None and (best is None or rank < best[0]):
                best = (rank, i)
        if best is None:
            return ids
        _, i = best
        _, merged_id = merges.lookup(ids[i], ids[i + 1])
        ids[i:i + 2] = [merged_id]


@pytest.fixture
def reference_merge():
    return naive_merge

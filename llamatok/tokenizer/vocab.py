"""
Vocabulary Store and Merge Rule Table
=====================================
Read-only lookup tables built once from already-decoded data.

- VocabularyStore: token id <-> token string, both directions O(1)
- MergeTable: (left_id, right_id) -> (rank, merged_id)

Ranks follow training order: the i-th pair in the flat id sequence has
rank i + 1, so a lower rank is merged earlier and rank 0 never occurs.

Usage:
    vocab = VocabularyStore(["<unk>", "<s>", "</s>", ..., "▁t", "er"])
    merges = MergeTable(vocab, [id_a, id_b, id_c, id_d, ...])
    merges.rank_of(id_a, id_b)  # 1
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


class VocabularyError(ValueError):
    """The vocabulary or merge data is internally inconsistent."""


class VocabularyStore:
    """
    Bidirectional mapping between token ids and token strings.

    Attributes:
        tokens: List where index is the token id and value the token string
    """

    def __init__(self, tokens: Sequence[str]):
        self.tokens: List[str] = list(tokens)
        self._ids: Dict[str, int] = {}
        for token_id, token in enumerate(self.tokens):
            if token in self._ids:
                raise VocabularyError(
                    f"Duplicate token {token!r} at ids {self._ids[token]} and {token_id}"
                )
            self._ids[token] = token_id

    def string_of(self, token_id: int) -> str:
        """Token string for an id. Raises ValueError for ids outside the vocabulary."""
        if not 0 <= token_id < len(self.tokens):
            raise ValueError(f"Unknown token ID: {token_id}")
        return self.tokens[token_id]

    def id_of(self, token: str) -> Optional[int]:
        """Token id for a string, or None if the string is not a token."""
        return self._ids.get(token)

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, token: str) -> bool:
        return token in self._ids


class MergeTable:
    """
    Merge priorities keyed by ordered token-id pairs.

    Each entry also carries the id of the merged token, resolved once here
    so the merge engine never has to build strings on its hot path.
    """

    def __init__(self, vocab: VocabularyStore, merge_ids: Sequence[int]):
        """
        Build the table from a flat sequence of token ids.

        Args:
            vocab: Vocabulary the ids refer to
            merge_ids: Flat ids, taken two at a time as (left, right), in training order

        Raises:
            VocabularyError: odd-length input, ids outside the vocabulary, or a
                merge whose concatenated string is not itself a token
        """
        flat = np.asarray(merge_ids, dtype=np.int64).reshape(-1)
        if flat.size % 2:
            raise VocabularyError(f"Merge data has an odd number of ids ({flat.size})")

        self._merges: Dict[Tuple[int, int], Tuple[int, int]] = {}
        # Kept in rank order for persistence and hashing
        self.merge_list: List[Tuple[int, int]] = []

        for index, (left, right) in enumerate(flat.reshape(-1, 2).tolist()):
            rank = index + 1
            if not (0 <= left < len(vocab) and 0 <= right < len(vocab)):
                raise VocabularyError(
                    f"Merge rank {rank} references ids outside the vocabulary: ({left}, {right})"
                )
            merged = vocab.string_of(left) + vocab.string_of(right)
            merged_id = vocab.id_of(merged)
            if merged_id is None:
                raise VocabularyError(
                    f"Merge rank {rank} ({vocab.string_of(left)!r} + {vocab.string_of(right)!r}) "
                    f"produces {merged!r}, which is not in the vocabulary"
                )
            self.merge_list.append((left, right))
            # First occurrence keeps the lowest rank
            self._merges.setdefault((left, right), (rank, merged_id))

    def rank_of(self, left_id: int, right_id: int) -> Optional[int]:
        """Merge rank of an adjacent pair, or None if the pair never merges."""
        entry = self._merges.get((left_id, right_id))
        return entry[0] if entry is not None else None

    def lookup(self, left_id: int, right_id: int) -> Optional[Tuple[int, int]]:
        """(rank, merged_id) of an adjacent pair, or None if the pair never merges."""
        return self._merges.get((left_id, right_id))

    def flat_ids(self) -> List[int]:
        """Merges as the flat id sequence they were built from."""
        return [token_id for pair in self.merge_list for token_id in pair]

    def __len__(self) -> int:
        return len(self.merge_list)

    def __contains__(self, pair: Tuple[int, int]) -> bool:
        return pair in self._merges

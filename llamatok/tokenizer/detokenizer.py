"""
Detokenizer
===========
Inverse of segmentation + merging: token ids back to text.

All bytes are collected first and decoded once, so a multi-byte character
split across several byte-level tokens reassembles correctly. The preceding
space is removed at string level, after decoding, because a run of spaces
may have been merged into a single token.
"""

from typing import Dict, Sequence

from ..config import TokenizerConfig
from .vocab import VocabularyStore


class Detokenizer:
    """Token ids -> text."""

    def __init__(self, vocab: VocabularyStore, config: TokenizerConfig):
        self.vocab = vocab
        self.space_token = config.space_token
        self.unk_id = vocab.id_of(config.unk_token)

        # Byte-level token id -> raw byte value
        self._byte_values: Dict[int, int] = {}
        for value in range(256):
            token_id = vocab.id_of(config.byte_token(value))
            if token_id is not None:
                self._byte_values[token_id] = value

    def detokenize(
        self,
        token_ids: Sequence[int],
        had_bos_token: bool = True,
        had_preceding_space: bool = True
    ) -> str:
        """
        Decode token ids back to text.

        Args:
            token_ids: Token ids produced by encoding
            had_bos_token: The first id is a begin token and carries no text
            had_preceding_space: Drop the space that encoding prepended

        Returns:
            Decoded text string
        """
        start = 1 if had_bos_token else 0
        utf8_bytes = bytearray()
        for token_id in token_ids[start:]:
            token_id = int(token_id)
            if token_id == self.unk_id:
                continue
            byte_value = self._byte_values.get(token_id)
            if byte_value is not None:
                utf8_bytes.append(byte_value)
            else:
                utf8_bytes += self.vocab.string_of(token_id).encode("utf-8")

        text = bytes(utf8_bytes).decode("utf-8", errors="replace")
        text = text.replace(self.space_token, " ")
        return text[1:] if had_preceding_space else text

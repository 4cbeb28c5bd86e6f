"""
Initial Segmenter
=================
Maps raw text to the per-character token ids that the merge engine starts from.

Spaces become the vocabulary's space glyph before iteration, so a run of
spaces is an ordinary run of repeated characters for the merge engine.
Characters without a vocabulary entry fall back to one byte-level token per
UTF-8 byte.
"""

from typing import List, Optional

from ..config import TokenizerConfig
from .vocab import VocabularyStore, VocabularyError


class InitialSegmenter:
    """
    Character-level segmentation with byte fallback.

    Attributes:
        bos_id: Id of the begin-of-text token
        unk_id: Id substituted for a byte with no byte-level token
        space_token: Glyph replacing every literal space
    """

    def __init__(self, vocab: VocabularyStore, config: TokenizerConfig):
        self.vocab = vocab
        self.space_token = config.space_token

        bos_id = vocab.id_of(config.bos_token)
        unk_id = vocab.id_of(config.unk_token)
        if bos_id is None or unk_id is None:
            raise VocabularyError(
                f"Vocabulary is missing reserved tokens {config.bos_token!r} / {config.unk_token!r}"
            )
        self.bos_id: int = bos_id
        self.unk_id: int = unk_id

        # Byte value (0-255) -> byte-level token id
        self._byte_ids: List[Optional[int]] = [
            vocab.id_of(config.byte_token(value)) for value in range(256)
        ]

    def segment(
        self,
        text: str,
        add_bos_token: bool = True,
        add_preceding_space: bool = True
    ) -> List[int]:
        """
        Convert text to its initial token ids (before any merges).

        Args:
            text: Input text
            add_bos_token: Emit the begin token first
            add_preceding_space: Prepend a single space to the text

        Returns:
            List of token ids, empty for empty text regardless of flags
        """
        if not text:
            return []

        token_ids = []
        if add_bos_token:
            token_ids.append(self.bos_id)
        if add_preceding_space:
            text = " " + text
        text = text.replace(" ", self.space_token)

        for char in text:
            token_id = self.vocab.id_of(char)
            if token_id is not None:
                token_ids.append(token_id)
                continue

            # Byte fallback: one byte-level token per UTF-8 byte
            for value in char.encode("utf-8", errors="surrogatepass"):
                byte_id = self._byte_ids[value]
                if byte_id is None:
                    print(f"[Tokenizer] Encountered unknown character {char!r} "
                          f"(UTF-8 byte 0x{value:02X} has no byte token), using unknown token")
                    byte_id = self.unk_id
                token_ids.append(byte_id)

        return token_ids

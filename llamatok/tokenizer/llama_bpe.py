"""
LLaMA BPE Tokenizer
===================
Exact reimplementation of the LLaMA SentencePiece-BPE tokenization over a
fixed, pre-trained vocabulary and merge table.

Key concepts:
- Vocabulary: 32000 token strings; "▁" stands for a space, "<0xHH>" for a raw byte
- Merges: ordered token pairs; earlier pairs are merged first
- Encoding: characters -> initial tokens (byte fallback) -> priority-queue merges
- Decoding: tokens -> bytes -> text, then undo the space glyph and preceding space

Usage:
    # From packaged tables
    tokenizer = LlamaTokenizer.load("data/llama_tokenizer")
    ids = tokenizer.encode("Hello, world!")
    text = tokenizer.decode(ids)

    # From already-decoded tables
    tokenizer = LlamaTokenizer(vocab=tokens, merges=merge_ids)
"""

import json
import hashlib
from typing import List, Optional, Sequence

from ..config import TokenizerConfig
from .vocab import VocabularyStore, MergeTable, VocabularyError
from .segmenter import InitialSegmenter
from .merge_engine import merge_tokens
from .detokenizer import Detokenizer
from .loader import decode_vocabulary, decode_merges, save_tokenizer_files, load_tokenizer_files


class TokenizerNotInitializedError(RuntimeError):
    """encode/decode was called before the vocabulary and merges were loaded."""


class LlamaTokenizer:
    """
    LLaMA-compatible BPE tokenizer.

    Tables are built once in the constructor and never modified afterwards,
    so one instance can be shared freely between callers.

    Attributes:
        config: Reserved tokens and default flags
        vocab: VocabularyStore (None if uninitialized)
        merges: MergeTable (None if uninitialized)
    """

    def __init__(
        self,
        vocab: Optional[Sequence[str]] = None,
        merges: Optional[Sequence[int]] = None,
        config: Optional[TokenizerConfig] = None
    ):
        """
        Initialize tokenizer.

        Args:
            vocab: Token strings, index = token id
            merges: Flat merge id sequence in training order
            config: Tokenizer configuration (defaults to TokenizerConfig())
        """
        self.config = config or TokenizerConfig()
        self.vocab: Optional[VocabularyStore] = None
        self.merges: Optional[MergeTable] = None
        self._segmenter: Optional[InitialSegmenter] = None
        self._detokenizer: Optional[Detokenizer] = None

        if vocab is None and merges is None:
            return
        if vocab is None or merges is None:
            raise ValueError("vocab and merges must be given together")

        store = VocabularyStore(vocab)
        if self.config.vocab_size is not None and len(store) != self.config.vocab_size:
            raise VocabularyError(
                f"Expected {self.config.vocab_size} tokens, got {len(store)}"
            )
        self.vocab = store
        self.merges = MergeTable(store, merges)
        self._segmenter = InitialSegmenter(store, self.config)
        self._detokenizer = Detokenizer(store, self.config)

    @property
    def is_initialized(self) -> bool:
        return self.vocab is not None and self.merges is not None

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise TokenizerNotInitializedError(
                "Tokenizer not initialized: load a vocabulary and merge table first"
            )

    @property
    def vocab_size(self) -> int:
        """Total vocabulary size."""
        self._require_initialized()
        return len(self.vocab)

    @property
    def bos_id(self) -> int:
        self._require_initialized()
        return self._segmenter.bos_id

    @property
    def unk_id(self) -> int:
        self._require_initialized()
        return self._segmenter.unk_id

    @property
    def eos_id(self) -> Optional[int]:
        self._require_initialized()
        return self.vocab.id_of(self.config.eos_token)

    # ========================================
    # Encoding
    # ========================================

    def encode(
        self,
        text: str,
        add_bos_token: Optional[bool] = None,
        add_preceding_space: Optional[bool] = None
    ) -> List[int]:
        """
        Encode text to token IDs.

        Args:
            text: Input text string
            add_bos_token: Prepend the begin token (default from config)
            add_preceding_space: Prepend a space before tokenizing (default from config)

        Returns:
            List of token IDs; empty text always gives an empty list
        """
        self._require_initialized()
        if add_bos_token is None:
            add_bos_token = self.config.add_bos_token
        if add_preceding_space is None:
            add_preceding_space = self.config.add_preceding_space

        if not text:
            return []

        initial_ids = self._segmenter.segment(text, add_bos_token, add_preceding_space)
        return merge_tokens(initial_ids, self.merges, prompt_length=len(text))

    def encode_batch(self, texts: List[str], **kwargs) -> List[List[int]]:
        """Encode multiple texts."""
        return [self.encode(text, **kwargs) for text in texts]

    # ========================================
    # Decoding
    # ========================================

    def decode(
        self,
        ids: Sequence[int],
        add_bos_token: Optional[bool] = None,
        add_preceding_space: Optional[bool] = None
    ) -> str:
        """
        Decode token IDs back to text.

        The flags must match the ones used for encoding.

        Args:
            ids: List of token IDs
            add_bos_token: The first id is a begin token (default from config)
            add_preceding_space: Encoding prepended a space (default from config)

        Returns:
            Decoded text string
        """
        self._require_initialized()
        if add_bos_token is None:
            add_bos_token = self.config.add_bos_token
        if add_preceding_space is None:
            add_preceding_space = self.config.add_preceding_space

        return self._detokenizer.detokenize(ids, add_bos_token, add_preceding_space)

    def decode_batch(self, batch_ids: List[List[int]], **kwargs) -> List[str]:
        """Decode multiple sequences."""
        return [self.decode(ids, **kwargs) for ids in batch_ids]

    # ========================================
    # Save / Load
    # ========================================

    @classmethod
    def from_base64(
        cls,
        vocab_base64: str,
        merges_base64: str,
        config: Optional[TokenizerConfig] = None
    ) -> "LlamaTokenizer":
        """Build a tokenizer from the packaged base64 vocabulary and merge blobs."""
        return cls(
            vocab=decode_vocabulary(vocab_base64),
            merges=decode_merges(merges_base64),
            config=config,
        )

    def save(self, path: str) -> None:
        """
        Save tokenizer to directory.

        Saves:
            - vocab.b64: Token strings
            - merges.b64: Merge id pairs (uint16)
            - config.json: Reserved tokens and defaults
        """
        self._require_initialized()
        save_tokenizer_files(path, self.vocab.tokens, self.merges.flat_ids(), self.config)
        print(f"[Tokenizer] Saved to {path}/")

    @classmethod
    def load(cls, path: str, verbose: bool = True) -> "LlamaTokenizer":
        """
        Load tokenizer from directory.

        Args:
            path: Directory containing vocab.b64, merges.b64, config.json
            verbose: Print a one-line summary

        Returns:
            Loaded tokenizer
        """
        tokens, merge_ids, config = load_tokenizer_files(path)
        tokenizer = cls(vocab=tokens, merges=merge_ids, config=config)
        if verbose:
            print(f"[Tokenizer] Loaded from {path}/ (vocab_size={tokenizer.vocab_size}, "
                  f"merges={len(tokenizer.merges)})")
        return tokenizer

    def get_vocab_hash(self) -> str:
        """Get a hash of the vocabulary and merges for verification."""
        self._require_initialized()
        # Create a deterministic string representation
        vocab_str = json.dumps({
            "vocab": self.vocab.tokens,
            "merges": self.merges.flat_ids(),
        }, ensure_ascii=False)
        return hashlib.md5(vocab_str.encode("utf-8")).hexdigest()[:8]

    # ========================================
    # Utility Methods
    # ========================================

    def get_token_str(self, token_id: int) -> str:
        """Get the vocabulary string of a token."""
        self._require_initialized()
        return self.vocab.string_of(token_id)

    def __repr__(self) -> str:
        if not self.is_initialized:
            return "LlamaTokenizer(uninitialized)"
        return f"LlamaTokenizer(vocab_size={self.vocab_size}, merges={len(self.merges)})"

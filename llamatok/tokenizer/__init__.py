# llamatok Tokenizer Module
"""
LLaMA-compatible BPE tokenizer.

Classes:
    LlamaTokenizer: Main tokenizer class for encoding/decoding text.
    VocabularyStore, MergeTable: Read-only lookup tables.

Usage:
    from llamatok.tokenizer import LlamaTokenizer
    tokenizer = LlamaTokenizer.load("data/llama_tokenizer")
    tokens = tokenizer.encode("Hello, world!")
    text = tokenizer.decode(tokens)
"""

from .vocab import VocabularyStore, MergeTable, VocabularyError
from .segmenter import InitialSegmenter
from .merge_engine import merge_tokens
from .detokenizer import Detokenizer
from .llama_bpe import LlamaTokenizer, TokenizerNotInitializedError

__all__ = [
    "LlamaTokenizer",
    "TokenizerNotInitializedError",
    "VocabularyStore",
    "MergeTable",
    "VocabularyError",
    "InitialSegmenter",
    "Detokenizer",
    "merge_tokens",
]

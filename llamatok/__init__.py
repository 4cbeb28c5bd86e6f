"""
llamatok: LLaMA-compatible BPE tokenization.

Usage:
    from llamatok import LlamaTokenizer, TokenizerConfig
    tokenizer = LlamaTokenizer.load("data/llama_tokenizer")
    ids = tokenizer.encode("Hello, world!")
"""

from .config import TokenizerConfig
from .tokenizer import LlamaTokenizer

__version__ = "0.1.0"
__all__ = ["LlamaTokenizer", "TokenizerConfig"]

"""
Tokenizer Table Loader
======================
Decode and encode the packaged vocabulary and merge tables.

Formats:
    vocab.b64:   base64 of UTF-8 text, one token string per line (line number = token id)
    merges.b64:  base64 of a little-endian uint16 id stream; consecutive ids form
                 one merge (left, right), in training order
    config.json: TokenizerConfig

The vocabulary's newline token is the byte token "<0x0A>", so "\\n" can
safely delimit entries.
"""

import base64
import os
from typing import List, Sequence, Tuple

import numpy as np

from ..config import TokenizerConfig


VOCAB_FILE = "vocab.b64"
MERGES_FILE = "merges.b64"
CONFIG_FILE = "config.json"

# Merge ids are stored as uint16 (vocab up to 65535)
MERGE_DTYPE = np.dtype("<u2")


def decode_vocabulary(vocab_base64: str) -> List[str]:
    """
    Decode the base64 vocabulary blob.

    Returns:
        List where index is the token id and value the token string
    """
    text = base64.b64decode(vocab_base64).decode("utf-8")
    tokens = text.split("\n")
    # Tolerate a trailing newline; "" is never a real token
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def encode_vocabulary(tokens: Sequence[str]) -> str:
    """Encode a vocabulary list as a base64 blob."""
    for token_id, token in enumerate(tokens):
        if "\n" in token:
            raise ValueError(f"Token {token_id} contains a newline: {token!r}")
    return base64.b64encode("\n".join(tokens).encode("utf-8")).decode("ascii")


def decode_merges(merges_base64: str) -> np.ndarray:
    """
    Decode the base64 merge blob.

    Returns:
        Flat array of token ids; ids 2k and 2k+1 form the merge of rank k+1
    """
    raw = base64.b64decode(merges_base64)
    if len(raw) % MERGE_DTYPE.itemsize:
        raise ValueError(f"Merge data length {len(raw)} is not a multiple of {MERGE_DTYPE.itemsize}")
    return np.frombuffer(raw, dtype=MERGE_DTYPE)


def encode_merges(merge_ids: Sequence[int]) -> str:
    """Encode a flat merge id sequence as a base64 blob."""
    ids = np.asarray(merge_ids, dtype=np.int64).reshape(-1)
    if ids.size and (ids.min() < 0 or ids.max() > np.iinfo(MERGE_DTYPE).max):
        raise ValueError(f"Merge ids must fit in uint16, got range [{ids.min()}, {ids.max()}]")
    return base64.b64encode(ids.astype(MERGE_DTYPE).tobytes()).decode("ascii")


def save_tokenizer_files(
    path: str,
    tokens: Sequence[str],
    merge_ids: Sequence[int],
    config: TokenizerConfig
) -> None:
    """
    Save tokenizer tables to a directory.

    Saves:
        - vocab.b64: Vocabulary blob
        - merges.b64: Merge blob
        - config.json: Reserved tokens and defaults
    """
    os.makedirs(path, exist_ok=True)

    config.to_json(os.path.join(path, CONFIG_FILE))

    with open(os.path.join(path, VOCAB_FILE), "w", encoding="ascii") as f:
        f.write(encode_vocabulary(tokens))

    with open(os.path.join(path, MERGES_FILE), "w", encoding="ascii") as f:
        f.write(encode_merges(merge_ids))


def load_tokenizer_files(path: str) -> Tuple[List[str], np.ndarray, TokenizerConfig]:
    """
    Load tokenizer tables from a directory.

    Args:
        path: Directory containing vocab.b64, merges.b64 and (optionally) config.json

    Returns:
        (tokens, merge_ids, config); config falls back to defaults if config.json is absent
    """
    config_path = os.path.join(path, CONFIG_FILE)
    if os.path.exists(config_path):
        config = TokenizerConfig.from_json(config_path)
    else:
        config = TokenizerConfig()

    with open(os.path.join(path, VOCAB_FILE), "r", encoding="ascii") as f:
        tokens = decode_vocabulary(f.read().strip())

    with open(os.path.join(path, MERGES_FILE), "r", encoding="ascii") as f:
        merge_ids = decode_merges(f.read().strip())

    return tokens, merge_ids, config

"""
Token File Module
=================
Binary token storage using numpy for encoded corpora.

Key features:
- Binary storage: raw uint16 token ids (LLaMA's 32000-token vocab fits)
- Line-by-line encoding: every line is its own bounded prompt
- Memory-mapped reading: loads only the chunks that are touched

Usage:
    # Encoding a text file
    from llamatok.dataset import encode_file
    encode_file("data/raw/input.txt", "data/tokens/input.bin", tokenizer)

    # Reading it back
    from llamatok.dataset import read_tokens, split_on_bos
    ids = read_tokens("data/tokens/input.bin")
    lines = tokenizer.decode_batch(split_on_bos(ids, tokenizer.bos_id))
"""

import os
import json
import numpy as np
from typing import List, Iterator, Optional, Sequence


# Use uint16 for token IDs (supports vocab up to 65535)
TOKEN_DTYPE = np.uint16


class TokenDatasetWriter:
    """
    Write token ids to a binary file.

    The file format is simple: raw array of token IDs (uint16).
    Metadata is stored in a separate _meta.json file.
    """

    def __init__(self, output_path: str, dtype=TOKEN_DTYPE):
        """
        Initialize writer.

        Args:
            output_path: Path to output .bin file
            dtype: NumPy dtype for tokens (default: uint16)
        """
        self.output_path = output_path
        self.dtype = dtype
        self.tokens_written = 0
        self.sequences_written = 0

        # Create output directory
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)

        self.file = open(output_path, "wb")

    def add_tokens(self, tokens: Sequence[int]) -> None:
        """
        Add one token sequence to the file.

        Args:
            tokens: List of token IDs
        """
        if len(tokens) == 0:
            return

        arr = np.asarray(tokens, dtype=np.int64)
        if arr.min() < 0 or arr.max() > np.iinfo(self.dtype).max:
            raise ValueError(f"Token ids out of range for {np.dtype(self.dtype)}: "
                             f"[{arr.min()}, {arr.max()}]")
        arr.astype(self.dtype).tofile(self.file)
        self.tokens_written += len(arr)
        self.sequences_written += 1

    def add_tokens_batch(self, token_batches: Iterator[Sequence[int]]) -> None:
        """
        Add multiple token sequences.

        Args:
            token_batches: Iterator of token lists
        """
        for tokens in token_batches:
            self.add_tokens(tokens)

    def close(self, extra_metadata: Optional[dict] = None, verbose: bool = True) -> dict:
        """
        Close the writer and save metadata.

        Args:
            extra_metadata: Additional fields for the _meta.json sidecar
            verbose: Print a summary

        Returns:
            Metadata dictionary
        """
        self.file.close()

        file_size = os.path.getsize(self.output_path)

        metadata = {
            "num_tokens": self.tokens_written,
            "num_sequences": self.sequences_written,
            "dtype": str(np.dtype(self.dtype)),
            "file_size_bytes": file_size,
        }
        if extra_metadata:
            metadata.update(extra_metadata)

        with open(meta_path_for(self.output_path), "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2)

        if verbose:
            print(f"[Dataset] Wrote {self.tokens_written:,} tokens to {self.output_path}")
            print(f"[Dataset] File size: {file_size / 1024 / 1024:.2f} MB")

        return metadata


def meta_path_for(bin_path: str) -> str:
    """Path of the _meta.json sidecar for a .bin file."""
    root, _ = os.path.splitext(bin_path)
    return root + "_meta.json"


def read_tokens(path: str, dtype=TOKEN_DTYPE) -> np.ndarray:
    """
    Memory-map a token file.

    Args:
        path: Path to .bin file containing tokens
        dtype: NumPy dtype of stored tokens

    Returns:
        Read-only array of token ids (empty for an empty file)
    """
    if os.path.getsize(path) == 0:
        # np.memmap refuses empty files
        return np.zeros(0, dtype=dtype)
    return np.memmap(path, dtype=dtype, mode="r")


def split_on_bos(ids: Sequence[int], bos_id: int) -> List[List[int]]:
    """
    Split a stored token stream into sequences, each starting at a begin token.

    Tokens before the first begin token (if any) form their own sequence.
    """
    sequences: List[List[int]] = []
    current: List[int] = []
    for token_id in ids:
        token_id = int(token_id)
        if token_id == bos_id and current:
            sequences.append(current)
            current = []
        current.append(token_id)
    if current:
        sequences.append(current)
    return sequences


def strip_line_break(line: str) -> str:
    """Drop a trailing LF or CRLF line break (and nothing else) from a line."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def encode_file(
    input_path: str,
    output_path: str,
    tokenizer,
    add_bos_token: bool = True,
    add_preceding_space: bool = True,
    max_lines: int = None,
    verbose: bool = True
) -> dict:
    """
    Encode a text file line by line and write the ids to a binary file.

    Each line (without its LF or CRLF line break) is encoded as a separate
    prompt. A lone CR is part of the line. Empty lines are skipped.

    Args:
        input_path: Path to input text file
        output_path: Path to output .bin file
        tokenizer: Tokenizer instance with encode() method
        add_bos_token: Prepend the begin token to every line
        add_preceding_space: Prepend a space to every line
        max_lines: Maximum lines to process (for testing)
        verbose: Print progress

    Returns:
        Metadata dictionary
    """
    from tqdm import tqdm

    # Lines end at "\n" only, so a lone "\r" stays inside its line
    with open(input_path, "r", encoding="utf-8", errors="replace", newline="\n") as f:
        total_lines = sum(1 for _ in f)
    if max_lines:
        total_lines = min(total_lines, max_lines)

    if verbose:
        print(f"[Dataset] Encoding {total_lines:,} lines from {input_path}")

    writer = TokenDatasetWriter(output_path)
    line_count = 0

    try:
        with open(input_path, "r", encoding="utf-8", errors="replace", newline="\n") as f:
            pbar = tqdm(f, total=total_lines, desc="Tokenizing", disable=not verbose)
            for line in pbar:
                if max_lines and line_count >= max_lines:
                    break
                line_count += 1

                line = strip_line_break(line)
                if not line:
                    continue

                tokens = tokenizer.encode(
                    line,
                    add_bos_token=add_bos_token,
                    add_preceding_space=add_preceding_space,
                )
                writer.add_tokens(tokens)

                if line_count % 10000 == 0:
                    pbar.set_postfix({"tokens": f"{writer.tokens_written:,}"})
    except BaseException:
        # No sidecar for a partial file
        writer.file.close()
        raise

    metadata = writer.close(
        extra_metadata={
            "input_file": input_path,
            "vocab_size": tokenizer.vocab_size,
            "vocab_hash": tokenizer.get_vocab_hash(),
            "add_bos_token": add_bos_token,
            "add_preceding_space": add_preceding_space,
            "total_lines": line_count,
        },
        verbose=verbose,
    )
    return metadata

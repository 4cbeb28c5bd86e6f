#!/usr/bin/env python3
"""
Tokenize / Detokenize Script
============================
Encode and decode text with a LLaMA tokenizer from the command line.

Usage:
    # Show ids and pieces for a string
    python -m llamatok.tokenize_text --tokenizer data/llama_tokenizer --text "Hello, world!"

    # Decode ids
    python -m llamatok.tokenize_text -t data/llama_tokenizer --ids "1 15043 29892 3186 29991"

    # Encode a text file line by line into a .bin token file
    python -m llamatok.tokenize_text -t data/llama_tokenizer --input corpus.txt --output corpus.bin

    # Decode a .bin token file back to lines
    python -m llamatok.tokenize_text -t data/llama_tokenizer --decode_file corpus.bin
"""

import os
import sys
import argparse

from llamatok.tokenizer import LlamaTokenizer
from llamatok.dataset import encode_file, read_tokens, split_on_bos


def show_encoding(tokenizer: LlamaTokenizer, text: str, add_bos_token: bool, add_preceding_space: bool) -> None:
    """Print the ids and token strings of one text."""
    ids = tokenizer.encode(text, add_bos_token=add_bos_token, add_preceding_space=add_preceding_space)
    pieces = [tokenizer.get_token_str(token_id) for token_id in ids]
    decoded = tokenizer.decode(ids, add_bos_token=add_bos_token, add_preceding_space=add_preceding_space)

    print(f"Input:   {text!r}")
    print(f"Tokens:  {ids}")
    print(f"Pieces:  {pieces}")
    print(f"Count:   {len(ids)}")
    print(f"Decoded: {decoded!r}")
    print(f"Match:   {text == decoded}")


def parse_ids(value: str):
    """Parse a whitespace- or comma-separated list of ids."""
    try:
        return [int(part) for part in value.replace(",", " ").split()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid token id list: {value!r}")


def main():
    parser = argparse.ArgumentParser(
        description="Encode and decode text with a LLaMA BPE tokenizer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--tokenizer", "-t",
        type=str,
        default="data/llama_tokenizer",
        help="Directory containing vocab.b64, merges.b64, config.json"
    )

    # Input
    parser.add_argument(
        "--text",
        type=str,
        default=None,
        help="Text to encode"
    )
    parser.add_argument(
        "--ids",
        type=parse_ids,
        default=None,
        help="Token ids to decode (space or comma separated)"
    )
    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Text file to encode line by line"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output .bin file for --input (default: input path with .bin suffix)"
    )
    parser.add_argument(
        "--decode_file",
        type=str,
        default=None,
        help=".bin token file to decode back to lines"
    )
    parser.add_argument(
        "--max_lines",
        type=int,
        default=None,
        help="Maximum lines to process (for testing)"
    )

    # Flags
    parser.add_argument(
        "--no_bos",
        action="store_true",
        help="Do not prepend the begin-of-text token"
    )
    parser.add_argument(
        "--no_preceding_space",
        action="store_true",
        help="Do not prepend a space before tokenizing"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress output"
    )

    args = parser.parse_args()

    # Validate
    if not os.path.isdir(args.tokenizer):
        print(f"Error: Tokenizer not found: {args.tokenizer}")
        sys.exit(1)
    for path in (args.input, args.decode_file):
        if path is not None and not os.path.exists(path):
            print(f"Error: File not found: {path}")
            sys.exit(1)

    add_bos_token = not args.no_bos
    add_preceding_space = not args.no_preceding_space

    # --ids and --decode_file print decoded text only, so stdout stays pipeable
    decoding = args.text is None and (args.ids is not None or args.decode_file is not None)
    tokenizer = LlamaTokenizer.load(args.tokenizer, verbose=not (decoding or args.quiet))

    if args.text is not None:
        show_encoding(tokenizer, args.text, add_bos_token, add_preceding_space)

    elif args.ids is not None:
        print(tokenizer.decode(args.ids, add_bos_token=add_bos_token, add_preceding_space=add_preceding_space))

    elif args.input:
        output = args.output or os.path.splitext(args.input)[0] + ".bin"
        encode_file(
            args.input,
            output,
            tokenizer,
            add_bos_token=add_bos_token,
            add_preceding_space=add_preceding_space,
            max_lines=args.max_lines,
            verbose=not args.quiet
        )

    elif args.decode_file:
        if not add_bos_token:
            print("Error: --decode_file splits lines on the begin token; --no_bos is not supported")
            sys.exit(1)
        ids = read_tokens(args.decode_file)
        sequences = split_on_bos(ids, tokenizer.bos_id)
        if args.max_lines:
            sequences = sequences[:args.max_lines]
        for line in tokenizer.decode_batch(sequences, add_bos_token=True, add_preceding_space=add_preceding_space):
            print(line)

    else:
        print("Error: Provide --text, --ids, --input, or --decode_file")
        sys.exit(1)


if __name__ == "__main__":
    main()

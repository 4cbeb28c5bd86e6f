import base64
import os

import numpy as np
import pytest

from llamatok.config import TokenizerConfig
from llamatok.tokenizer import LlamaTokenizer
from llamatok.tokenizer.loader import (
    decode_merges,
    decode_vocabulary,
    encode_merges,
    encode_vocabulary,
    load_tokenizer_files,
)


def test_decode_vocabulary_splits_lines():
    blob = base64.b64encode("<unk>\n<s>\n</s>\n▁t\ner".encode("utf-8")).decode("ascii")
    assert decode_vocabulary(blob) == ["<unk>", "<s>", "</s>", "▁t", "er"]


def test_decode_vocabulary_ignores_trailing_newline():
    blob = base64.b64encode(b"a\nb\n").decode("ascii")
    assert decode_vocabulary(blob) == ["a", "b"]


def test_encode_vocabulary_rejects_newlines():
    with pytest.raises(ValueError):
        encode_vocabulary(["a", "b\nc"])


def test_decode_merges_is_little_endian_uint16():
    blob = base64.b64encode(bytes([0x05, 0x01, 0x06, 0x00, 0x00, 0x01, 0x7D, 0x00])).decode("ascii")
    assert decode_merges(blob).tolist() == [261, 6, 256, 125]


def test_decode_merges_rejects_odd_byte_count():
    blob = base64.b64encode(b"\x01\x02\x03").decode("ascii")
    with pytest.raises(ValueError):
        decode_merges(blob)


def test_encode_merges_range_check():
    assert decode_merges(encode_merges([1, 65535])).tolist() == [1, 65535]
    with pytest.raises(ValueError):
        encode_merges([65536])
    with pytest.raises(ValueError):
        encode_merges([-1])


def test_from_base64(vocab_tokens, merge_ids, tokenizer):
    loaded = LlamaTokenizer.from_base64(encode_vocabulary(vocab_tokens), encode_merges(merge_ids))
    assert loaded.vocab.tokens == vocab_tokens
    assert loaded.encode("hello world") == tokenizer.encode("hello world")


def test_save_and_load(tmp_path, tokenizer):
    path = str(tmp_path / "tokenizer")
    tokenizer.save(path)

    for name in ("vocab.b64", "merges.b64", "config.json"):
        assert os.path.exists(os.path.join(path, name))

    loaded = LlamaTokenizer.load(path)
    assert loaded.get_vocab_hash() == tokenizer.get_vocab_hash()
    text = "Hello,   world! ß€😀"
    assert loaded.encode(text) == tokenizer.encode(text)


def test_load_keeps_config(tmp_path, vocab_tokens, merge_ids):
    config = TokenizerConfig(add_bos_token=False)
    LlamaTokenizer(vocab=vocab_tokens, merges=merge_ids, config=config).save(str(tmp_path))

    tokens, ids, loaded_config = load_tokenizer_files(str(tmp_path))

    assert tokens == vocab_tokens
    assert isinstance(ids, np.ndarray)
    assert ids.tolist() == merge_ids
    assert loaded_config == config


def test_load_without_config_uses_defaults(tmp_path, vocab_tokens, merge_ids):
    LlamaTokenizer(vocab=vocab_tokens, merges=merge_ids).save(str(tmp_path))
    os.remove(tmp_path / "config.json")

    _, _, config = load_tokenizer_files(str(tmp_path))
    assert config == TokenizerConfig()


def test_load_quietly(tmp_path, tokenizer, capsys):
    tokenizer.save(str(tmp_path))
    capsys.readouterr()

    LlamaTokenizer.load(str(tmp_path), verbose=False)
    assert capsys.readouterr().out == ""

    LlamaTokenizer.load(str(tmp_path))
    assert "[Tokenizer] Loaded from" in capsys.readouterr().out

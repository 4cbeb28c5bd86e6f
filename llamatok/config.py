"""
Tokenizer Configuration Module
==============================
Handles the reserved token strings and default encode/decode flags.
Supports presets (llama) and custom configurations.

Usage:
    from llamatok.config import TokenizerConfig
    config = TokenizerConfig.from_preset("llama")
    config.byte_token(0x0A)  # "<0x0A>"
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import json
import os


# ============================================
# Tokenizer Configuration
# ============================================

@dataclass
class TokenizerConfig:
    """
    Tokenizer Configuration.

    Attributes:
        bos_token: Reserved beginning-of-text token string
        eos_token: Reserved end-of-text token string
        unk_token: Reserved unknown token string (byte fallback of last resort)
        space_token: Single glyph standing in for a literal space
        byte_token_format: Format string for byte-level tokens (one per byte value)
        add_bos_token: Default for prepending the begin token on encode/decode
        add_preceding_space: Default for prepending a space on encode/decode
        vocab_size: Expected vocabulary size (None to accept any size)
    """
    bos_token: str = "<s>"
    eos_token: str = "</s>"
    unk_token: str = "<unk>"
    space_token: str = "▁"  # U+2581 LOWER ONE EIGHTH BLOCK
    byte_token_format: str = "<0x{:02X}>"
    add_bos_token: bool = True
    add_preceding_space: bool = True
    vocab_size: Optional[int] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        assert len(self.space_token) == 1, \
            f"space_token must be a single character, got {self.space_token!r}"
        assert self.byte_token(0) != self.byte_token(255), \
            f"byte_token_format must depend on the byte value: {self.byte_token_format!r}"
        assert self.vocab_size is None or self.vocab_size > 0, "vocab_size must be positive"

    @classmethod
    def from_preset(cls, preset: str) -> "TokenizerConfig":
        """
        Load a preset configuration.

        Presets:
            - "llama": LLaMA / LLaMA-2 SentencePiece vocabulary (32000 tokens)
        """
        presets = {
            "llama": {
                "bos_token": "<s>",
                "eos_token": "</s>",
                "unk_token": "<unk>",
                "space_token": "▁",
                "byte_token_format": "<0x{:02X}>",
                "vocab_size": 32000,
            },
        }
        if preset not in presets:
            raise ValueError(f"Unknown preset: {preset}. Available: {list(presets.keys())}")
        return cls(**presets[preset])

    @classmethod
    def from_json(cls, path: str) -> "TokenizerConfig":
        """Load configuration from JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, path: str) -> None:
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def byte_token(self, value: int) -> str:
        """Token string of the byte-level token for a raw byte value (0-255)."""
        return self.byte_token_format.format(value)


# ============================================
# Example Usage / Self-Test
# ============================================

if __name__ == "__main__":
    print("=== Testing TokenizerConfig ===")
    llama = TokenizerConfig.from_preset("llama")
    print(f"LLaMA preset: {llama}")
    print(f"  Byte token for '\\n': {llama.byte_token(0x0A)}")
    print(f"  Space glyph: {llama.space_token!r}")

    print("\n[OK] Config module working correctly!")

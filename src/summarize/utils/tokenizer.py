# src/summarize/utils/tokenizer.py
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

import tiktoken

from summarize.config import OUTPUT_TOKEN_RATIO
from summarize.models import TokenizerModel


class TokenizerFamily(str, Enum):
    CL100K_BASE = "cl100k_base"
    P50K_BASE = "p50k_base"


# Used for any model missing from MODEL_TABLE
FALLBACK_FAMILY = TokenizerFamily.P50K_BASE


@dataclass(frozen=True)
class ModelInfo:
    display_name: str
    family: TokenizerFamily
    # USD per 1,000 tokens
    input_cost_per_1k: float
    output_cost_per_1k: float


# Gemini and Claude have no public tiktoken encoding; cl100k_base / p50k_base stand in for them.
MODEL_TABLE: Dict[TokenizerModel, ModelInfo] = {
    TokenizerModel.GEMINI_15_PRO: ModelInfo("Gemini 1.5 Pro", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_15_FLASH: ModelInfo("Gemini 1.5 Flash", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_FLASH: ModelInfo("Gemini 2.0 Flash", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_FLASH_LITE: ModelInfo("Gemini 2.0 Flash-Lite", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_PRO: ModelInfo("Gemini 2.0 Pro", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_PRO_EXP: ModelInfo("Gemini 2.0 Pro Exp", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_PRO_EXP_0205: ModelInfo("Gemini 2.0 Pro Exp 02-05", TokenizerFamily.CL100K_BASE, 0.0, 0.0),
    TokenizerModel.GEMINI_20_FLASH_THINKING_EXP: ModelInfo(
        "Gemini 2.0 Flash Thinking Exp", TokenizerFamily.CL100K_BASE, 0.0, 0.0
    ),
    TokenizerModel.GPT_35_TURBO: ModelInfo("GPT-3.5 Turbo", TokenizerFamily.CL100K_BASE, 0.0010, 0.0020),
    TokenizerModel.GPT_4: ModelInfo("GPT-4", TokenizerFamily.CL100K_BASE, 0.03, 0.06),
    TokenizerModel.GPT_4_TURBO: ModelInfo("GPT-4 Turbo", TokenizerFamily.CL100K_BASE, 0.01, 0.03),
    TokenizerModel.CLAUDE_3_SONNET: ModelInfo("Claude 3 Sonnet", TokenizerFamily.P50K_BASE, 0.003, 0.015),
    TokenizerModel.CLAUDE_3_OPUS: ModelInfo("Claude 3 Opus", TokenizerFamily.P50K_BASE, 0.015, 0.075),
}


def get_tokenizer_family(model: TokenizerModel) -> TokenizerFamily:
    info = MODEL_TABLE.get(TokenizerModel(model))
    return info.family if info is not None else FALLBACK_FAMILY


def get_token_cost(model: TokenizerModel) -> Tuple[float, float]:
    """(input cost, output cost) per 1,000 tokens."""
    info = MODEL_TABLE[TokenizerModel(model)]
    return info.input_cost_per_1k, info.output_cost_per_1k


def display_name(model: TokenizerModel) -> str:
    return MODEL_TABLE[TokenizerModel(model)].display_name


class Tokenizer:
    _encodings: Dict[TokenizerFamily, "tiktoken.Encoding"] = {}
    _lock = threading.Lock()

    @classmethod
    def get_encoding(cls, family: TokenizerFamily) -> "tiktoken.Encoding":
        # Loading an encoding is expensive and may download its BPE ranks, so do it once per family
        with cls._lock:
            encoding = cls._encodings.get(family)
            if encoding is None:
                encoding = tiktoken.get_encoding(TokenizerFamily(family).value)
                cls._encodings[family] = encoding
            return encoding

    @staticmethod
    def count(text: str, model: TokenizerModel) -> int:
        """Number of tokens `text` encodes to for the given model's tokenizer family."""
        encoding = Tokenizer.get_encoding(get_tokenizer_family(model))
        return len(encoding.encode_ordinary(text))


def count_tokens(text: str, model: TokenizerModel) -> int:
    return Tokenizer.count(text, model)


@dataclass(frozen=True)
class CostEstimate:
    input_tokens: int
    output_tokens: int
    input_cost_per_1k: float
    output_cost_per_1k: float

    @property
    def input_cost(self) -> float:
        return self.input_tokens / 1000 * self.input_cost_per_1k

    @property
    def output_cost(self) -> float:
        return self.output_tokens / 1000 * self.output_cost_per_1k

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost


def estimate_cost(model: TokenizerModel, input_tokens: int) -> CostEstimate:
    """
    Estimated price of sending `input_tokens` to the model.
    The reply is not measured: it is assumed to be OUTPUT_TOKEN_RATIO of the input, rounded half up.
    """
    input_cost, output_cost = get_token_cost(model)
    output_tokens = int(input_tokens * OUTPUT_TOKEN_RATIO + 0.5)
    return CostEstimate(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        input_cost_per_1k=input_cost,
        output_cost_per_1k=output_cost,
    )

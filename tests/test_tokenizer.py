# tests/test_tokenizer.py
import pytest
import tiktoken

from summarize.models import TokenizerModel
from summarize.utils.tokenizer import (
    FALLBACK_FAMILY,
    MODEL_TABLE,
    TokenizerFamily,
    count_tokens,
    estimate_cost,
    get_token_cost,
    get_tokenizer_family,
)


@pytest.fixture(scope="module")
def cl100k():
    # tiktoken fetches its BPE ranks on first use; without network access there is nothing to test against
    try:
        return tiktoken.get_encoding("cl100k_base")
    except Exception as e:
        pytest.skip(f"cl100k_base encoding unavailable: {e}")


# --- Test 1: Static tables ---


def test_every_model_has_an_entry():
    assert set(MODEL_TABLE) == set(TokenizerModel)


def test_tokenizer_family():
    assert get_tokenizer_family(TokenizerModel.GPT_35_TURBO) is TokenizerFamily.CL100K_BASE
    assert get_tokenizer_family(TokenizerModel.GEMINI_20_FLASH) is TokenizerFamily.CL100K_BASE
    assert get_tokenizer_family(TokenizerModel.CLAUDE_3_SONNET) is TokenizerFamily.P50K_BASE
    assert FALLBACK_FAMILY is TokenizerFamily.P50K_BASE


def test_token_cost():
    assert get_token_cost(TokenizerModel.GPT_35_TURBO) == (0.0010, 0.0020)
    assert get_token_cost(TokenizerModel.CLAUDE_3_OPUS) == (0.015, 0.075)
    assert get_token_cost(TokenizerModel.GEMINI_15_FLASH) == (0.0, 0.0)


def test_model_lookup_accepts_identifiers():
    assert get_token_cost("gpt-4") == (0.03, 0.06)


# --- Test 2: Cost estimates ---


def test_estimate_cost_assumes_output_is_a_fifth_of_input():
    cost = estimate_cost(TokenizerModel.GPT_4, 10_000)

    assert cost.output_tokens == 2_000
    assert cost.input_cost == pytest.approx(0.30)
    assert cost.output_cost == pytest.approx(0.12)
    assert cost.total_cost == pytest.approx(0.42)


def test_estimate_cost_rounds_half_up():
    assert estimate_cost(TokenizerModel.GPT_4, 12).output_tokens == 2
    assert estimate_cost(TokenizerModel.GPT_4, 13).output_tokens == 3
    assert estimate_cost(TokenizerModel.GPT_4, 0).output_tokens == 0


# --- Test 3: Counting ---


def test_token_counting(cl100k):
    text = "Hello, world! This is a test."
    token_count = count_tokens(text, TokenizerModel.GPT_35_TURBO)

    assert token_count > 0
    assert token_count == len(cl100k.encode_ordinary(text))
    assert count_tokens(text * 10, TokenizerModel.GPT_35_TURBO) > token_count


def test_token_counting_is_deterministic(cl100k):
    text = "def main():\n    return 42\n"
    assert count_tokens(text, TokenizerModel.GPT_4) == count_tokens(text, TokenizerModel.GPT_4)


def test_special_tokens_counted_as_text(cl100k):
    # encode() would reject this; ordinary encoding just counts it
    assert count_tokens("<|endoftext|>", TokenizerModel.GPT_4) > 1


def test_empty_text(cl100k):
    assert count_tokens("", TokenizerModel.GPT_4) == 0

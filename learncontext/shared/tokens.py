"""
Token counting utilities: tiktoken for exact counts, a character heuristic
for cheap estimates.
"""

import math
from typing import Optional
import tiktoken

from learncontext.shared.config import settings


def get_encoding(model: Optional[str] = None) -> tiktoken.Encoding:
    """
    Get tiktoken encoding for a model.

    Args:
        model: Model name (e.g., "gpt-4o-mini")
               If None, uses default from settings

    Returns:
        tiktoken Encoding object
    """
    model = model or settings.llm.default_model

    try:
        encoding = tiktoken.encoding_for_model(model)
    except KeyError:
        # Fallback to cl100k_base for unknown models
        encoding = tiktoken.get_encoding("cl100k_base")

    return encoding


def count_tokens(text: str, model: Optional[str] = None) -> int:
    """
    Count tokens in text.

    Args:
        text: Text to count
        model: Model name for encoding selection

    Returns:
        Number of tokens
    """
    encoding = get_encoding(model)
    return len(encoding.encode(text))


def estimate_tokens(text: str) -> int:
    """
    Quick token estimation (4 chars per token, rounded up).
    Order-of-magnitude only; never use it for billing or window limits.
    """
    return math.ceil(len(text) / 4)

"""
Match a free-text caption (e.g. a social media post) to a product page.

Pure functions with no database dependencies for easy testing.
"""

import unicodedata
from typing import Iterable, Optional

EXACT_NAME_BONUS = 100
MIN_TOKEN_LENGTH = 3


def normalize_text(text: str) -> str:
    """Lowercase and strip accents so "Dragón" matches "dragon"."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def score_product(normalized_text: str, tokens: list[str], name: str) -> int:
    normalized_name = normalize_text(name)
    score = sum(1 for token in tokens if token in normalized_name)
    if normalized_name and normalized_name in normalized_text:
        score += EXACT_NAME_BONUS
    return score


def best_match(
    text: str, products: Iterable[tuple[int, str]]
) -> Optional[tuple[int, str, int]]:
    """
    Return (product_id, name, score) of the best-scoring product, or None.

    Each caption token longer than two characters found in a product name adds
    one point; a product name appearing verbatim in the caption adds 100.
    Ties keep the earlier product.
    """
    normalized = normalize_text(text)
    tokens = [t for t in normalized.split() if len(t) >= MIN_TOKEN_LENGTH]

    best: Optional[tuple[int, str, int]] = None
    for product_id, name in products:
        score = score_product(normalized, tokens, name or "")
        if score > (best[2] if best else 0):
            best = (product_id, name, score)
    return best


def product_url(base_url: str, product_id: int) -> str:
    return f"{base_url.rstrip('/')}/product/{product_id}"


def home_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/"

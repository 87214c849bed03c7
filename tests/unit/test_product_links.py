"""Unit tests for caption-to-product matching."""

from services.store_service.services.product_links import (
    best_match,
    home_url,
    normalize_text,
    product_url,
)

PRODUCTS = [
    (1, "Dragón Articulado"),
    (2, "Maceta Geométrica"),
    (3, "Lámpara Luna"),
]


def test_normalize_strips_accents_and_case():
    assert normalize_text("Dragón ÁRBOL") == "dragon arbol"


def test_exact_name_in_caption_scores_bonus():
    match = best_match("Mirá este dragon articulado recién salido!", PRODUCTS)

    assert match is not None
    product_id, name, score = match
    assert product_id == 1
    assert name == "Dragón Articulado"
    assert score >= 100


def test_keyword_match():
    match = best_match("nueva maceta para tus plantas", PRODUCTS)

    assert match == (2, "Maceta Geométrica", 1)


def test_short_tokens_ignored():
    assert best_match("la de un", [(1, "Lámpara de mesa")]) is None


def test_no_match():
    assert best_match("hola a todos", PRODUCTS) is None


def test_ties_keep_earlier_product():
    products = [(10, "Maceta Roja"), (11, "Maceta Azul")]
    assert best_match("maceta nueva", products)[0] == 10


def test_urls():
    assert product_url("https://shop.example.com/", 5) == "https://shop.example.com/product/5"
    assert home_url("https://shop.example.com") == "https://shop.example.com/"

"""Local resolution rules: catalog dump, single product, policy, miss."""

import pytest

from chatbot.resolver import CATALOG_HEADER, format_product, resolve


def test_dell_example(kb):
    answer = resolve("What are the specs of the Dell XPS 15?", kb)
    assert answer.startswith(
        "Here are the specifications for Dell XPS 15:\n"
        "specs: 15.6-inch display, Intel i9, 32GB RAM, 1TB SSD\n"
        "price: ₹1,79,990\n"
        "warranty: 1 year standard warranty"
    )


@pytest.mark.parametrize("name", ["iPhone 15 Pro", "Samsung Galaxy S24", "MacBook Pro M3", "Dell XPS 15"])
@pytest.mark.parametrize("transform", [str.lower, str.upper, str.title])
def test_product_match_regardless_of_case(kb, name, transform):
    product = kb.lookup_product(name)
    assert resolve(f"info on {transform(name)} please", kb) == format_product(product)


def test_return_policy_example(kb):
    assert resolve("What is your return policy?", kb) == (
        "30-day return policy for unused items in original packaging"
    )


def test_policy_text_returned_verbatim(kb):
    for policy in kb.policies():
        assert resolve(f"tell me about {policy.name}", kb) == policy.text


def test_product_rule_beats_policy_rule(kb):
    answer = resolve("What is the warranty on the MacBook Air M2?", kb)
    assert answer.startswith("Here are the specifications for MacBook Air M2:")


@pytest.mark.parametrize(
    "utterance",
    [
        "Show me the latest products",
        "list ALL PRODUCTS",
        "what are all your products",
        "What are the specifications of your products?",
        "What are the specifications of your latest products?",
    ],
)
def test_catalog_dump_triggers(kb, utterance):
    assert resolve(utterance, kb).startswith(CATALOG_HEADER)


def test_catalog_dump_beats_product_match(kb):
    assert resolve("all products like the Dell XPS 15", kb).startswith(CATALOG_HEADER)


def test_catalog_dump_lists_every_product_once_in_order(kb):
    answer = resolve("show me all products", kb)
    blocks = answer[len(CATALOG_HEADER):].strip("\n").split("\n\n")

    assert len(blocks) == len(kb.all_products())
    for block, product in zip(blocks, kb.all_products()):
        lines = block.split("\n")
        assert lines[0] == f"**{product.name}**"
        assert lines[1:] == [f"{k}: {v}" for k, v in product.attributes]


@pytest.mark.parametrize(
    "utterance",
    ["Can you recommend a good toaster?", "hello", "how do I track my order?", "products"],
)
def test_miss_returns_none(kb, utterance):
    assert resolve(utterance, kb) is None

"""Catalog loading, invariants and first-match lookups."""

import json

import pytest

from chatbot.errors import CatalogError
from chatbot.resolver import resolve
from knowledge_base import KnowledgeBase, get_knowledge_base
from models import PolicyEntry, ProductEntry


def test_default_catalog_declaration_order(kb):
    assert kb.categories() == ["smartphones", "laptops"]
    assert [p.name for p in kb.all_products()] == [
        "iPhone 15 Pro",
        "iPhone 15 Pro Max",
        "Samsung Galaxy S24",
        "MacBook Air M2",
        "MacBook Pro M3",
        "Dell XPS 15",
    ]
    assert [p.key for p in kb.policies()] == ["returnPolicy", "paymentMethods", "shipping", "warranty"]


def test_attributes_keep_order(kb):
    dell = kb.products_in("laptops")[-1]
    assert [k for k, _ in dell.attributes] == ["specs", "price", "warranty"]
    assert dell.attribute_lines().startswith("specs: 15.6-inch display")


def test_lookup_product_case_insensitive(kb):
    assert kb.lookup_product("tell me about the SAMSUNG galaxy s24 please").name == "Samsung Galaxy S24"
    assert kb.lookup_product("macbook air m2?").name == "MacBook Air M2"


def test_lookup_product_prefix_name_resolved_by_declaration_order(kb):
    # "iPhone 15 Pro" is declared first and is contained in "iPhone 15 Pro Max".
    assert kb.lookup_product("price of the iPhone 15 Pro Max").name == "iPhone 15 Pro"


def test_lookup_misses_return_none(kb):
    assert kb.lookup_product("do you sell toasters") is None
    assert kb.lookup_policy("do you sell toasters") is None


def test_lookup_policy(kb):
    policy = kb.lookup_policy("What is your Return Policy?")
    assert policy.key == "returnPolicy"
    assert policy.text == "30-day return policy for unused items in original packaging"


def test_duplicate_product_names_rejected():
    products = {
        "phones": {"Pixel 8": {"price": "1"}},
        "other": {"pixel 8": {"price": "2"}},
    }
    with pytest.raises(CatalogError):
        KnowledgeBase.from_mappings(products, [])


def test_from_json_preserves_file_order(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "products": {
                    "tablets": {
                        "Tab B": {"specs": "10-inch", "price": "₹20,000"},
                        "Tab A": {"specs": "8-inch", "price": "₹15,000"},
                    }
                },
                "policies": {"shipping": "Ships in a week"},
            }
        ),
        encoding="utf-8",
    )
    kb = KnowledgeBase.from_json(path)
    assert [p.name for p in kb.all_products()] == ["Tab B", "Tab A"]
    assert kb.lookup_policy("shipping time?").text == "Ships in a week"


def test_from_json_policy_list_form(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "products": {},
                "policies": [{"name": "return policy", "key": "returnPolicy", "text": "No returns"}],
            }
        ),
        encoding="utf-8",
    )
    policy = KnowledgeBase.from_json(path).policies()[0]
    assert (policy.name, policy.key, policy.text) == ("return policy", "returnPolicy", "No returns")


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps(["a", "list"]),
        json.dumps({"products": {"phones": {"X": {}}}}),
        json.dumps({"products": {}, "policies": [{"name": "missing text"}]}),
        json.dumps({"policies": [{"name": 5, "text": "x"}]}),
        json.dumps({"policies": [{"name": "shipping", "text": 42}]}),
        json.dumps({"policies": [{"name": "shipping", "key": ["k"], "text": "x"}]}),
        json.dumps({"policies": {"": "EMPTY-NAME POLICY"}}),
        json.dumps({"policies": {"shipping": None}}),
        json.dumps({"policies": [{"name": "   ", "text": "x"}]}),
        json.dumps({"products": {"phones": {"": {"price": "1"}}}}),
        json.dumps({"policies": "shipping"}),
    ],
)
def test_from_json_rejects_malformed(tmp_path, content):
    path = tmp_path / "catalog.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CatalogError):
        KnowledgeBase.from_json(path)


def test_from_json_missing_file(tmp_path):
    with pytest.raises(CatalogError):
        KnowledgeBase.from_json(tmp_path / "nope.json")


def test_get_knowledge_base_defaults_to_builtin(monkeypatch):
    import config

    monkeypatch.setattr(config, "CATALOG_PATH", None)
    get_knowledge_base.cache_clear()
    try:
        assert len(get_knowledge_base().all_products()) == 6
    finally:
        get_knowledge_base.cache_clear()


@pytest.mark.parametrize("name", ["", "  ", None, 5])
def test_constructor_rejects_unusable_policy_names(name):
    with pytest.raises(CatalogError):
        KnowledgeBase([], [PolicyEntry(name=name, text="x")])


@pytest.mark.parametrize("name", ["", "\t"])
def test_constructor_rejects_empty_product_names(name):
    with pytest.raises(CatalogError):
        KnowledgeBase([ProductEntry(name=name, category="phones", attributes=(("price", "1"),))], [])


def test_loaded_catalog_still_misses_unrelated_questions(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"policies": {"shipping": "Ships in a week"}}), encoding="utf-8")
    kb = KnowledgeBase.from_json(path)
    assert resolve("Can you recommend a good toaster?", kb) is None

"""
knowledge_base.py - Static product + policy catalog with first-match substring lookup.

The catalog is loaded once at process start (built-in data, or a JSON file named
by CATALOG_PATH) and never mutated afterwards.

Usage (interactive test):
    python knowledge_base.py "what are the specs of the dell xps 15"
    python knowledge_base.py --path data/catalog.json "return policy"
    python knowledge_base.py --list
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

import config
from chatbot.errors import CatalogError
from models import PolicyEntry, ProductEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Built-in catalog (declaration order is significant for matching)
# ---------------------------------------------------------------------------

DEFAULT_PRODUCTS: dict[str, dict[str, dict[str, str]]] = {
    "smartphones": {
        "iPhone 15 Pro": {
            "specs": "6.1-inch display, A17 Pro chip, 48MP camera, 256GB storage",
            "price": "₹1,29,900",
            "warranty": "1 year standard warranty",
        },
        "iPhone 15 Pro Max": {
            "specs": "6.7-inch display, A17 Pro chip, 48MP camera, 256GB storage, Titanium design",
            "price": "₹1,59,900",
            "warranty": "1 year standard warranty",
        },
        "Samsung Galaxy S24": {
            "specs": "6.2-inch display, Snapdragon 8 Gen 3, 50MP camera, 256GB storage",
            "price": "₹79,999",
            "warranty": "1 year standard warranty",
        },
    },
    "laptops": {
        "MacBook Air M2": {
            "specs": "13.6-inch display, M2 chip, 8GB RAM, 256GB SSD",
            "price": "₹1,14,900",
            "warranty": "1 year standard warranty",
        },
        "MacBook Pro M3": {
            "specs": "14-inch display, M3 chip, 16GB RAM, 512GB SSD",
            "price": "₹1,99,900",
            "warranty": "1 year standard warranty",
        },
        "Dell XPS 15": {
            "specs": "15.6-inch display, Intel i9, 32GB RAM, 1TB SSD",
            "price": "₹1,79,990",
            "warranty": "1 year standard warranty",
        },
    },
}

# (display name matched against utterances, catalog key, text)
DEFAULT_POLICIES: list[tuple[str, str, str]] = [
    (
        "return policy",
        "returnPolicy",
        "30-day return policy for unused items in original packaging",
    ),
    (
        "payment methods",
        "paymentMethods",
        "We accept UPI, debit/credit cards, net banking, and popular wallets like Paytm and PhonePe.",
    ),
    (
        "shipping",
        "shipping",
        "Free shipping on orders over ₹2,000, 2-3 business days delivery",
    ),
    (
        "warranty",
        "warranty",
        "1 year standard warranty on all products, extendable up to 3 years",
    ),
]


# ---------------------------------------------------------------------------
# KnowledgeBase
# ---------------------------------------------------------------------------


def _valid_name(name) -> bool:
    # "" is a substring of every utterance and would shadow every later rule.
    return isinstance(name, str) and bool(name.strip())


class KnowledgeBase:
    """
    Read-only catalog of products (grouped by category) and company policies.

    Lookups are case-insensitive substring containment of an identifier in the
    utterance. Identifiers are scanned in declaration order and the first hit
    wins, so a name that is a prefix of another ("iPhone 15 Pro" vs
    "iPhone 15 Pro Max") shadows it when declared first.
    """

    def __init__(self, products: Iterable[ProductEntry], policies: Iterable[PolicyEntry]) -> None:
        self._products: tuple[ProductEntry, ...] = tuple(products)
        self._policies: tuple[PolicyEntry, ...] = tuple(policies)

        for entry in self._products + self._policies:
            if not _valid_name(entry.name):
                raise CatalogError(f"Catalog identifiers must be non-empty strings, got {entry.name!r}")

        seen: set[str] = set()
        for product in self._products:
            key = product.name.lower()
            if key in seen:
                raise CatalogError(f"Duplicate product name in catalog: {product.name!r}")
            seen.add(key)

        # dict preserves first-seen order of categories
        self._categories: dict[str, tuple[ProductEntry, ...]] = {}
        for product in self._products:
            self._categories.setdefault(product.category, ())
            self._categories[product.category] += (product,)

    # -- construction --------------------------------------------------------

    @classmethod
    def from_mappings(
        cls,
        products: dict[str, dict[str, dict[str, str]]],
        policies: Iterable[tuple[str, str, str]],
    ) -> "KnowledgeBase":
        entries = [
            ProductEntry(
                name=name,
                category=category,
                attributes=tuple((str(k), str(v)) for k, v in attrs.items()),
            )
            for category, items in products.items()
            for name, attrs in items.items()
        ]
        policy_entries = [PolicyEntry(name=name, key=key, text=text) for name, key, text in policies]
        return cls(entries, policy_entries)

    @classmethod
    def default(cls) -> "KnowledgeBase":
        return cls.from_mappings(DEFAULT_PRODUCTS, DEFAULT_POLICIES)

    @classmethod
    def from_json(cls, path: Path) -> "KnowledgeBase":
        """
        Load a catalog file shaped like::

            {"products": {category: {name: {attr: value}}},
             "policies": {name: text} | [{"name", "key"?, "text"}]}

        Raises CatalogError on unreadable or malformed input.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise CatalogError(f"Catalog {path} must be a JSON object")

        products = data.get("products", {})
        errors: list[str] = []
        if not isinstance(products, dict):
            raise CatalogError("'products' must map category -> {name: attributes}")
        for category, items in products.items():
            if not isinstance(items, dict):
                errors.append(f"Category {category!r} is not an object")
                continue
            for name, attrs in items.items():
                if not _valid_name(name):
                    errors.append(f"Product name {name!r} in {category!r} is empty")
                if not isinstance(attrs, dict) or not attrs:
                    errors.append(f"Product {name!r} has no attributes")

        raw_policies = data.get("policies", {})
        if isinstance(raw_policies, dict):
            raw_items = [{"name": name, "key": name, "text": text} for name, text in raw_policies.items()]
        elif isinstance(raw_policies, list):
            raw_items = raw_policies
        else:
            raw_items = []
            errors.append("'policies' must be an object or a list")

        policies: list[tuple[str, str, str]] = []
        for item in raw_items:
            missing = [k for k in ("name", "text") if not isinstance(item, dict) or k not in item]
            if missing:
                errors.append(f"Policy {item!r} missing fields: {missing}")
                continue
            name, text = item["name"], item["text"]
            key = item.get("key", name)
            if not _valid_name(name):
                errors.append(f"Policy name {name!r} must be a non-empty string")
            elif not isinstance(text, str):
                errors.append(f"Policy {name!r} text must be a string")
            elif not isinstance(key, str):
                errors.append(f"Policy {name!r} key must be a string")
            else:
                policies.append((name, key, text))

        if errors:
            for e in errors:
                logger.error("Catalog validation error: %s", e)
            raise CatalogError(f"{len(errors)} validation error(s) in {path}")

        kb = cls.from_mappings(products, policies)
        logger.info(
            "Loaded catalog from %s (%d products, %d policies)",
            path,
            len(kb.all_products()),
            len(kb.policies()),
        )
        return kb

    # -- accessors -----------------------------------------------------------

    def categories(self) -> list[str]:
        return list(self._categories)

    def products_in(self, category: str) -> list[ProductEntry]:
        return list(self._categories.get(category, ()))

    def all_products(self) -> list[ProductEntry]:
        """Every product, category by category, in declaration order."""
        return [p for products in self._categories.values() for p in products]

    def policies(self) -> list[PolicyEntry]:
        return list(self._policies)

    # -- lookups -------------------------------------------------------------

    def lookup_product(self, utterance: str) -> Optional[ProductEntry]:
        lowered = utterance.lower()
        for product in self.all_products():
            if product.name.lower() in lowered:
                return product
        return None

    def lookup_policy(self, utterance: str) -> Optional[PolicyEntry]:
        lowered = utterance.lower()
        for policy in self._policies:
            if policy.name.lower() in lowered:
                return policy
        return None


@lru_cache(maxsize=1)
def get_knowledge_base() -> KnowledgeBase:
    """Return the process-wide catalog, loading it on first call."""
    if config.CATALOG_PATH:
        return KnowledgeBase.from_json(Path(config.CATALOG_PATH))
    kb = KnowledgeBase.default()
    logger.info("Built-in catalog loaded (%d products, %d policies)", len(kb.all_products()), len(kb.policies()))
    return kb


# ---------------------------------------------------------------------------
# CLI test harness
# ---------------------------------------------------------------------------


def _print_answer(kb: KnowledgeBase, query: str) -> None:
    from chatbot.resolver import resolve  # noqa: PLC0415

    answer = resolve(query, kb)
    if answer is None:
        print("No local match (would fall back to the remote assistant).")
    else:
        print(answer)


def _print_catalog(kb: KnowledgeBase) -> None:
    for category in kb.categories():
        print(f"\n[{category}]")
        for product in kb.products_in(category):
            print(f"  {product.name}")
            for key, value in product.attributes:
                print(f"      {key:<9}: {value}")
    print("\n[policies]")
    for policy in kb.policies():
        print(f"  {policy.name} ({policy.key}): {policy.text}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")

    parser = argparse.ArgumentParser(description="Query the ProductBot knowledge base")
    parser.add_argument("query", nargs="?", default=None, help="Utterance to resolve locally")
    parser.add_argument("--path", type=Path, default=None, help="Catalog JSON file (default: built-in)")
    parser.add_argument("--list", action="store_true", help="Print the whole catalog and exit")
    args = parser.parse_args()

    try:
        kb = KnowledgeBase.from_json(args.path) if args.path else get_knowledge_base()
    except CatalogError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    if args.list:
        _print_catalog(kb)
        return

    if args.query is None:
        print("ProductBot local resolver  (Ctrl-C to exit)\n")
        while True:
            try:
                query = input("Ask> ").strip()
            except (KeyboardInterrupt, EOFError):
                break
            if not query:
                continue
            _print_answer(kb, query)
    else:
        _print_answer(kb, args.query)


if __name__ == "__main__":
    main()

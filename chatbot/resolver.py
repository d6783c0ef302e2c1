"""
Local resolver: answer an utterance from the knowledge base alone.

resolve() returns the answer text, or None when nothing in the catalog applies
(the caller then goes to the remote fallback). Substring matching only; no
scoring, first rule and first identifier win.
"""

from __future__ import annotations

from typing import Optional

from knowledge_base import KnowledgeBase
from models import ProductEntry

# Any of these (lowercased) in the utterance means "show me everything".
CATALOG_DUMP_PHRASES: tuple[str, ...] = (
    "latest products",
    "all products",
    "all your products",
    "specifications of your products",
)

CATALOG_HEADER = "Here are the specifications for our latest products:\n"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_product(product: ProductEntry) -> str:
    return f"Here are the specifications for {product.name}:\n{product.attribute_lines()}"


def format_catalog(kb: KnowledgeBase) -> str:
    """Every product as a bold heading followed by its attribute lines."""
    response = CATALOG_HEADER
    for product in kb.all_products():
        response += f"\n**{product.name}**\n"
        response += product.attribute_lines()
        response += "\n"
    return response


def wants_catalog(utterance: str) -> bool:
    lowered = utterance.lower()
    return any(phrase in lowered for phrase in CATALOG_DUMP_PHRASES)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(utterance: str, kb: KnowledgeBase) -> Optional[str]:
    """
    Rules (evaluated in priority order):
    1. Catalog-dump phrase        → listing of every product.
    2. Product name in utterance  → that product's specifications.
    3. Policy name in utterance   → the policy text, verbatim.
    4. Otherwise                  → None.
    """
    if wants_catalog(utterance):
        return format_catalog(kb)

    product = kb.lookup_product(utterance)
    if product is not None:
        return format_product(product)

    policy = kb.lookup_policy(utterance)
    if policy is not None:
        return policy.text

    return None

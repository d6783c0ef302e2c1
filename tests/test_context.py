"""Keyword-driven context updates."""

import pytest

from chatbot.context import update_context
from models import ConversationContext, ProductType, Topic


@pytest.mark.parametrize(
    "utterance, expected",
    [
        ("Is the iPhone any good?", ProductType.SMARTPHONES),
        ("samsung or apple", ProductType.SMARTPHONES),
        ("MacBook battery life", ProductType.LAPTOPS),
        ("Dell support", ProductType.LAPTOPS),
    ],
)
def test_product_family(utterance, expected):
    assert update_context(utterance, ConversationContext()).product_type is expected


@pytest.mark.parametrize(
    "utterance, expected",
    [
        ("How do I return this?", Topic.RETURN_POLICY),
        ("I want a refund", Topic.RETURN_POLICY),
        ("Which payment options?", Topic.PAYMENT_METHODS),
        ("can I pay later", Topic.PAYMENT_METHODS),
        ("what about warranty", Topic.WARRANTY),
    ],
)
def test_topic(utterance, expected):
    assert update_context(utterance, ConversationContext()).last_topic is expected


def test_smartphones_checked_before_laptops():
    ctx = update_context("iphone vs macbook", ConversationContext())
    assert ctx.product_type is ProductType.SMARTPHONES


def test_return_checked_before_warranty():
    ctx = update_context("return under warranty", ConversationContext())
    assert ctx.last_topic is Topic.RETURN_POLICY


def test_repeated_keyword_is_idempotent():
    first = update_context("iphone price", ConversationContext())
    second = update_context("another iphone question", first)
    assert first.product_type is ProductType.SMARTPHONES
    assert second.product_type is ProductType.SMARTPHONES


def test_absent_keywords_keep_prior_values():
    ctx = ConversationContext(last_topic=Topic.WARRANTY, product_type=ProductType.LAPTOPS)
    assert update_context("hello there", ctx) == ctx


def test_families_update_independently():
    ctx = ConversationContext(last_topic=Topic.WARRANTY, product_type=ProductType.LAPTOPS)
    updated = update_context("samsung deals", ctx)
    assert updated.product_type is ProductType.SMARTPHONES
    assert updated.last_topic is Topic.WARRANTY


def test_input_context_not_mutated():
    ctx = ConversationContext()
    update_context("iphone refund", ctx)
    assert ctx == ConversationContext()

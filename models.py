"""Dataclasses and enums for the ProductBot resolution engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class Topic(str, Enum):
    SPECS = "specs"
    ORDER = "order"
    RETURN = "return"
    PAYMENT = "payment"
    RETURN_POLICY = "returnPolicy"
    PAYMENT_METHODS = "paymentMethods"
    WARRANTY = "warranty"


class ProductType(str, Enum):
    SMARTPHONES = "smartphones"
    LAPTOPS = "laptops"


@dataclass(frozen=True)
class ProductEntry:
    name: str                       # unique across the whole catalog
    category: str                   # e.g. "smartphones"
    attributes: tuple[tuple[str, str], ...]   # ordered (key, value) pairs

    def attribute_lines(self) -> str:
        """Attributes rendered as ``key: value`` lines in declaration order."""
        return "\n".join(f"{key}: {value}" for key, value in self.attributes)


@dataclass(frozen=True)
class PolicyEntry:
    name: str                       # matched against utterances, e.g. "return policy"
    text: str
    key: str = ""                   # catalog key, e.g. "returnPolicy"


@dataclass(frozen=True)
class ConversationContext:
    last_topic: Optional[Topic] = None
    product_type: Optional[ProductType] = None

    def with_updates(
        self,
        last_topic: Optional[Topic] = None,
        product_type: Optional[ProductType] = None,
    ) -> "ConversationContext":
        """Return a copy with the given fields set; ``None`` keeps the prior value."""
        return replace(
            self,
            last_topic=last_topic if last_topic is not None else self.last_topic,
            product_type=product_type if product_type is not None else self.product_type,
        )

    def to_dict(self) -> dict:
        return {
            "last_topic": self.last_topic.value if self.last_topic else None,
            "product_type": self.product_type.value if self.product_type else None,
        }


class TurnKind(str, Enum):
    QUESTION = "question"
    ANSWER = "answer"


@dataclass(frozen=True)
class ChatTurn:
    kind: TurnKind
    content: str

    @classmethod
    def question(cls, text: str) -> "ChatTurn":
        return cls(TurnKind.QUESTION, text)

    @classmethod
    def answer(cls, text: str) -> "ChatTurn":
        return cls(TurnKind.ANSWER, text)

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "content": self.content}


"""Media request and image buffer models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class AcquisitionMethod(str, Enum):
    DIRECT = "direct"
    RENDERED = "rendered"
    TEMPLATED = "templated"


class ContentKind(str, Enum):
    """Probe classification of a remote URL."""

    IMAGE = "image"
    HTML = "html"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class UrlMediaRequest:
    url: str
    caption: str | None = None


@dataclass(frozen=True)
class PosterRequest:
    """Template poster fields. quantity/amount are already resolved."""

    name: str
    quantity: int
    amount: int
    caption: str | None = None

    @classmethod
    def create(
        cls,
        name: str,
        *,
        unit_price: int,
        quantity: int | None = None,
        amount: int | None = None,
        caption: str | None = None,
    ) -> "PosterRequest":
        """Apply the defaults: quantity 1, amount = quantity x unit price."""
        resolved_quantity = 1 if quantity is None else quantity
        resolved_amount = resolved_quantity * unit_price if amount is None else amount
        return cls(name=name, quantity=resolved_quantity, amount=resolved_amount, caption=caption)


MediaRequest = Union[UrlMediaRequest, PosterRequest]


@dataclass(frozen=True)
class ImageBuffer:
    """An acquired image, sent once and then dropped."""

    data: bytes = field(repr=False)
    method: AcquisitionMethod
    mimetype: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.data)

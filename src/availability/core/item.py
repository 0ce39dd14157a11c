"""
Item model.

Represents a single product availability update handed over by the caller.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Mapping


JAN_PATTERN = re.compile(r"^\d{13}$")
EZ_CODE_PATTERN = re.compile(r"^EZ\d{8}$")
URL_PATTERN = re.compile(r"^https?://.+")


def is_valid_code(code: Any) -> bool:
    """Check that a code is a 13 digit JAN or an EZ code (EZ + 8 digits)."""
    if not isinstance(code, str):
        return False
    return bool(JAN_PATTERN.match(code) or EZ_CODE_PATTERN.match(code))


@dataclass(frozen=True)
class Item:
    """
    One product update request.

    Attributes:
        code: JAN code or EZ code identifying the product
        available: New availability flag
        price: Price, passed through to the vendor unmodified
        url: Product page URL
        title: Product title (used for logs and export only)
        vendor: Product vendor/brand (used for logs and export only)

    Fields are typed for well-formed input, but instances built from
    untrusted data may carry anything; `validate_item` reports what is wrong.
    """

    code: str
    available: bool
    price: int
    url: str
    title: str = ""
    vendor: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Item":
        """
        Build an Item from a mapping without validating it.

        Accepts either `jan` or `code` for the product code.
        """
        code = data.get("jan", data.get("code"))
        return cls(
            code=code if code is not None else "",
            available=data.get("available"),
            price=data.get("price"),
            url=data.get("url") or "",
            title=data.get("title") or "",
            vendor=data.get("vendor") or "",
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "jan": self.code,
            "price": self.price,
            "vendor": self.vendor,
            "url": self.url,
            "available": self.available,
        }


def validate_item(item: Item) -> List[str]:
    """
    Minimal pre-flight validation of an item.

    Returns:
        List of problems, empty if the item can be submitted
    """
    problems = []

    if not item.code or not isinstance(item.code, str):
        problems.append("code is empty")
    elif not is_valid_code(item.code):
        problems.append("code must be 13 digits or EZ followed by 8 digits")

    if not isinstance(item.available, bool):
        problems.append("available must be a boolean")

    # bool is an int subclass, so exclude it explicitly
    if isinstance(item.price, bool) or not isinstance(item.price, int) or item.price <= 0:
        problems.append("price must be a positive integer")

    if not item.url or not isinstance(item.url, str):
        problems.append("url is empty")
    elif not URL_PATTERN.match(item.url):
        problems.append("url must be an http(s) URL")

    return problems

"""Data structures describing the target of a generated plan."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

DEFAULT_SITE_URL = "https://www.saucedemo.com"


@dataclass(frozen=True)
class Credentials:
    """Login used by the generated steps."""

    username: str = "standard_user"
    password: str = "secret_sauce"


@dataclass(frozen=True)
class RunContext:
    """Site the description is run against."""

    base_url: str = DEFAULT_SITE_URL
    credentials: Credentials = field(default_factory=Credentials)
    selector_hints: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "credentials": {
                "username": self.credentials.username,
                "password": self.credentials.password,
            },
            "selector_hints": dict(self.selector_hints),
        }


SAUCEDEMO_SELECTOR_HINTS: Dict[str, str] = {
    "Username": '[data-test="username"]',
    "Password": '[data-test="password"]',
    "Login button": '[data-test="login-button"]',
    "Inventory": ".inventory_list",
    "Product items": ".inventory_item",
    "Add to cart buttons": '[data-test^="add-to-cart"]',
    "Cart icon": ".shopping_cart_link",
    "Cart badge": ".shopping_cart_badge",
    "Checkout button": '[data-test="checkout"]',
    "First name": '[data-test="firstName"]',
    "Last name": '[data-test="lastName"]',
    "Postal code": '[data-test="postalCode"]',
    "Continue button": '[data-test="continue"]',
    "Finish button": '[data-test="finish"]',
    "Menu button": "#react-burger-menu-btn",
    "Logout link": "#logout_sidebar_link",
}

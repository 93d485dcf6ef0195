"""Unit tests for website -> domain normalization."""

import pytest

from backend.app.db.companies import extract_domain


@pytest.mark.parametrize(
    ("website", "expected"),
    [
        ("https://www.Acme.com/about", "acme.com"),
        ("http://acme.com", "acme.com"),
        ("acme.com:8080", "acme.com"),
        ("WWW.ACME.COM?ref=x", "acme.com"),
        ("  shop.acme.co.uk/#top ", "shop.acme.co.uk"),
    ],
)
def test_extract_domain(website: str, expected: str) -> None:
    assert extract_domain(website) == expected


@pytest.mark.parametrize("website", [None, "", "   ", "https://"])
def test_extract_domain_empty(website: str | None) -> None:
    assert extract_domain(website) is None

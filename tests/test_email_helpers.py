import pytest

from lgl_sync.core.email import is_valid_email, normalize_address


@pytest.mark.parametrize("value", ["member@example.org", "a.b+renewal@mail.example.co.uk"])
def test_valid_addresses(value) -> None:
    assert is_valid_email(value) is True


@pytest.mark.parametrize("value", [None, "", "not-an-address", "two words@example.org", "member@localhost"])
def test_invalid_addresses(value) -> None:
    assert is_valid_email(value) is False


def test_normalize_address() -> None:
    assert normalize_address("  Member@Example.ORG ") == "member@example.org"

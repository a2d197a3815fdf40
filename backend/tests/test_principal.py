import pytest

from storefront.auth.principal import Principal


def test_anonymous_has_no_id() -> None:
    principal = Principal.anonymous()

    assert principal.authenticated is False
    assert principal.principal_id() is None


def test_unauthenticated_claims_are_ignored() -> None:
    principal = Principal(claims={"sub": "7"}, authenticated=False)

    assert principal.principal_id() is None


@pytest.mark.parametrize("raw, expected", [("42", 42), (" 42 ", 42), (42, 42), ("007", 7)])
def test_numeric_ids_resolve(raw: object, expected: int) -> None:
    assert Principal.from_claims({"sub": raw}).principal_id() == expected


@pytest.mark.parametrize(
    "raw",
    [None, "", "abc", "4.2", 4.2, True, "-3", -5, 0, "0", "٤٢", ["1"], "2147483648", 2**40, "99999999999"],
)
def test_malformed_ids_do_not_resolve(raw: object) -> None:
    assert Principal.from_claims({"sub": raw}).principal_id() is None


def test_missing_claim_does_not_resolve() -> None:
    assert Principal.from_claims({"email": "a@example.com"}).principal_id() is None


def test_custom_claim_name() -> None:
    principal = Principal.from_claims({"sub": "x", "uid": "9"})

    assert principal.principal_id("uid") == 9
    assert principal.principal_id() is None


def test_claims_are_read_only_copy() -> None:
    source = {"sub": "1"}
    principal = Principal.from_claims(source)
    source["sub"] = "2"

    assert principal.principal_id() == 1
    with pytest.raises(TypeError):
        principal.claims["sub"] = "3"  # type: ignore[index]


@pytest.mark.parametrize("raw", [1, "1", 2**31 - 1, str(2**31 - 1)])
def test_id_range_bounds_resolve(raw: object) -> None:
    assert Principal.from_claims({"sub": raw}).principal_id() == int(raw)

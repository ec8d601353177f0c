"""Unit tests for query normalization."""

import pytest

from kol_trust.entities import NormalizedQuery, QueryMode, Rejection
from kol_trust.services import QueryNormalizer

strict = QueryNormalizer(mode=QueryMode.STRICT, max_length=50)
permissive = QueryNormalizer(mode=QueryMode.PERMISSIVE, max_length=50)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("pentosh1", "pentosh1"),
        ("@Pentosh1", "pentosh1"),
        ("  @CryptoKaleo  ", "cryptokaleo"),
        ("@ spaced_handle", "spaced_handle"),
        ("A" * 50, "a" * 50),
    ],
)
def test_strict_accepts_handles(raw, expected):
    result = strict.normalize(raw)
    assert result == NormalizedQuery(key=expected, display=expected)


@pytest.mark.parametrize(
    "raw",
    ["", "   ", "@", "A" * 51, "two words", "bad-handle", "@@double", "<script>", "名前", None, 42],
)
def test_strict_rejects(raw):
    assert isinstance(strict.normalize(raw), Rejection)


def test_only_one_leading_at_is_stripped_in_strict_mode():
    result = strict.normalize("@@pentosh1")
    assert isinstance(result, Rejection)


def test_permissive_keeps_display_casing_and_folds_key():
    result = permissive.normalize("  @Vitalik   Buterin ")
    assert result == NormalizedQuery(key="vitalik buterin", display="Vitalik Buterin")


def test_permissive_allows_unicode():
    result = permissive.normalize("幣圈 大V")
    assert isinstance(result, NormalizedQuery)
    assert result.display == "幣圈 大V"
    assert result.key == "幣圈 大v"


@pytest.mark.parametrize("char", list("<>{}()[];`$\\|&"))
def test_permissive_blocks_denylisted_characters(char):
    assert isinstance(permissive.normalize(f"name{char}x"), Rejection)


def test_permissive_blocks_fullwidth_lookalikes():
    # NFKC maps the fullwidth parenthesis to "("
    assert isinstance(permissive.normalize("name（x"), Rejection)


def test_permissive_blocks_control_characters():
    assert isinstance(permissive.normalize("name\u200bx"), Rejection)
    assert isinstance(permissive.normalize("name\x07x"), Rejection)


def test_permissive_rejects_second_leading_at():
    assert isinstance(permissive.normalize("@@name"), Rejection)


def test_length_limit_counts_code_points():
    assert isinstance(permissive.normalize("\u00e9" * 50), NormalizedQuery)
    assert isinstance(permissive.normalize("\u00e9" * 51), Rejection)


@pytest.mark.parametrize(
    "normalizer, raw",
    [
        (strict, "@Pentosh1"),
        (strict, "  CryptoKaleo "),
        (strict, "cobie"),
        (strict, "@ Ansem_"),
        (permissive, "@Pentosh1"),
        (permissive, "  CryptoKaleo "),
        (permissive, "Straße_Trader"),
        (permissive, "@ Vitalik   Buterin"),
        (permissive, "ｆｕｌｌｗｉｄｔｈ"),
    ],
)
def test_renormalizing_display_is_a_no_op(normalizer, raw):
    first = normalizer.normalize(raw)
    assert isinstance(first, NormalizedQuery)

    second = normalizer.normalize(first.display)
    assert second == first


def test_normalization_is_deterministic():
    assert permissive.normalize("ÀBC def") == permissive.normalize("ÀBC def")


def test_mode_comes_from_configuration():
    assert QueryNormalizer(mode="permissive").mode is QueryMode.PERMISSIVE

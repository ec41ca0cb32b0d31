from decimal import Decimal

import pytest

from ratebook.enums import ParityStatus
from ratebook.errors import ValidationError
from ratebook.services.pricing.parity import compare_rates


def test_within_threshold_is_parity():
    result = compare_rates(Decimal("200"), Decimal("205"), 5)
    assert result.status is ParityStatus.PARITY
    assert result.pct_difference == Decimal("2.50")
    assert not result.is_violation


def test_cheaper_channel_undercuts():
    result = compare_rates(Decimal("200"), Decimal("180"), 5)
    assert result.status is ParityStatus.UNDERCUT
    assert result.difference == Decimal("-20")
    assert result.pct_difference == Decimal("-10.00")
    assert result.is_violation


def test_dearer_channel_is_overpriced():
    assert compare_rates(Decimal("100"), Decimal("112"), 5).status is ParityStatus.OVERPRICED


def test_our_rate_must_be_positive():
    with pytest.raises(ValidationError):
        compare_rates(Decimal("0"), Decimal("100"), 5)

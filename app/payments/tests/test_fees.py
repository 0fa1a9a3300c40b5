"""
Tests for the platform fee split.
"""

import pytest
from django.test import override_settings

from payments.exceptions import FeeSplitMismatchError
from payments.fees import FeeSplit, calculate_fee_split


class TestCalculateFeeSplit:
    @pytest.mark.parametrize(
        "amount,fee,seller",
        [
            (5000, 400, 4600),
            (20000, 1600, 18400),
            (1, 0, 1),
            (99_999_900, 7_999_992, 91_999_908),
        ],
    )
    def test_default_eight_percent(self, amount, fee, seller):
        split = calculate_fee_split(amount)

        assert split.platform_fee_cents == fee
        assert split.seller_amount_cents == seller

    def test_rounds_half_up_to_the_cent(self):
        # 8% of 1031 cents is 82.48, of 1069 cents 85.52
        assert calculate_fee_split(1031).platform_fee_cents == 82
        assert calculate_fee_split(1069).platform_fee_cents == 86

    def test_parts_always_add_up(self):
        for amount in range(1, 2000, 7):
            split = calculate_fee_split(amount)
            assert split.platform_fee_cents + split.seller_amount_cents == amount

    @override_settings(PLATFORM_FEE_PERCENT=10)
    def test_uses_configured_percent(self):
        assert calculate_fee_split(5000).platform_fee_cents == 500

    def test_rejects_non_positive_amount(self):
        with pytest.raises(ValueError):
            calculate_fee_split(0)

    def test_rejects_out_of_range_percent(self):
        with pytest.raises(ValueError):
            calculate_fee_split(5000, fee_percent=101)


class TestFeeSplit:
    def test_mismatched_parts_raise(self):
        with pytest.raises(FeeSplitMismatchError):
            FeeSplit(amount_cents=5000, platform_fee_cents=400, seller_amount_cents=4500)

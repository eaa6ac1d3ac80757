"""
Derived amounts and transaction ID formatting.
"""
from datetime import date
from decimal import Decimal

import pytest

from ozifin.utils.finance import derive_amounts, next_transaction_id, parse_sequence, round_amount


class TestDeriveAmounts:

    def test_profit_is_customer_leg_minus_pos_leg(self):
        derived = derive_amounts(Decimal("1000000"), Decimal("1.1"), Decimal("1.5"))
        assert derived.pos_amt == Decimal("11000")
        assert derived.cust_amt == Decimal("15000")
        assert derived.profit == Decimal("4000")

    @pytest.mark.parametrize(
        "amount,pos_fee,cust_fee",
        [
            (0, 0, 0),
            (150, 1, 2),
            (999999, "1.25", "1.75"),
            (12345678, "0.8", "1.35"),
        ],
    )
    def test_profit_matches_rounded_legs(self, amount, pos_fee, cust_fee):
        derived = derive_amounts(amount, pos_fee, cust_fee)
        a, p, c = Decimal(str(amount)), Decimal(str(pos_fee)), Decimal(str(cust_fee))
        assert derived.profit == round_amount(a * c / 100) - round_amount(a * p / 100)

    def test_half_rounds_up(self):
        assert round_amount(Decimal("0.5")) == Decimal("1")
        assert round_amount(Decimal("2.5")) == Decimal("3")
        assert round_amount(Decimal("2.49")) == Decimal("2")

    def test_missing_inputs_are_zero(self):
        derived = derive_amounts(None, "", "abc")
        assert derived == (Decimal("0"), Decimal("0"), Decimal("0"))


class TestTransactionIds:

    def test_first_id_of_month(self):
        assert next_transaction_id(date(2025, 3, 10), []) == "Ozi-2025-03-001"

    def test_next_is_max_plus_one(self):
        existing = ["Ozi-2025-03-001", "Ozi-2025-03-007", "Ozi-2025-03-003"]
        assert next_transaction_id(date(2025, 3, 31), existing) == "Ozi-2025-03-008"

    def test_other_months_and_malformed_suffixes_ignored(self):
        existing = ["Ozi-2025-02-050", "Ozi-2025-03-abc", "Ozi-2025-03-002"]
        assert next_transaction_id(date(2025, 3, 1), existing) == "Ozi-2025-03-003"

    def test_sequence_grows_past_three_digits(self):
        assert next_transaction_id(date(2025, 3, 1), ["Ozi-2025-03-999"]) == "Ozi-2025-03-1000"

    def test_parse_sequence(self):
        assert parse_sequence("Ozi-2025-03-012", "Ozi-2025-03-") == 12
        assert parse_sequence("Ozi-2025-04-012", "Ozi-2025-03-") is None

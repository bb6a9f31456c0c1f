from __future__ import annotations

import unittest
from decimal import Decimal

from domain.errors import AmountParseError
from domain.models import Currency
from parsing.amount import parse_amount


class ParseAmountTests(unittest.TestCase):
    def test_leading_naira_symbol(self) -> None:
        money = parse_amount("₦45000")
        self.assertEqual(money.amount, Decimal("45000"))
        self.assertEqual(money.currency, Currency.NGN)

    def test_trailing_currency_code(self) -> None:
        money = parse_amount("45", "GBP")
        self.assertEqual(money.amount, Decimal("45"))
        self.assertEqual(money.currency, Currency.GBP)

    def test_trailing_code_is_case_insensitive(self) -> None:
        self.assertEqual(parse_amount("400", "gbp").currency, Currency.GBP)

    def test_bare_number_uses_business_default(self) -> None:
        money = parse_amount("45", None, Currency.NGN)
        self.assertEqual(money.amount, Decimal("45"))
        self.assertEqual(money.currency, Currency.NGN)

        self.assertEqual(parse_amount("45", None, Currency.USD).currency, Currency.USD)

    def test_bare_number_without_default_falls_back_to_naira(self) -> None:
        self.assertEqual(parse_amount("45").currency, Currency.NGN)

    def test_unrecognized_second_token_is_ignored(self) -> None:
        money = parse_amount("45", "EUR", Currency.USD)
        self.assertEqual(money.currency, Currency.USD)

    def test_thousands_separators_are_stripped(self) -> None:
        self.assertEqual(parse_amount("£1,250.50").amount, Decimal("1250.50"))
        self.assertEqual(parse_amount("1,000,000", "USD").amount, Decimal("1000000"))

    def test_symbol_wins_over_second_token(self) -> None:
        money = parse_amount("$12", "GBP")
        self.assertEqual(money.currency, Currency.USD)

    def test_rejects_non_numeric(self) -> None:
        with self.assertRaises(AmountParseError):
            parse_amount("abc")

    def test_rejects_symbol_without_number(self) -> None:
        with self.assertRaises(AmountParseError):
            parse_amount("£")

    def test_rejects_non_finite_and_negative(self) -> None:
        for token in ("NaN", "Infinity", "-5"):
            with self.subTest(token=token):
                with self.assertRaises(AmountParseError):
                    parse_amount(token)

    def test_rounds_to_cents(self) -> None:
        self.assertEqual(parse_amount("0.004").amount, Decimal("0.00"))
        self.assertEqual(parse_amount("12.345").amount, Decimal("12.35"))
        self.assertEqual(str(parse_amount("£30").amount), "30.00")

    def test_rejects_amounts_too_large_to_store(self) -> None:
        self.assertEqual(parse_amount("9999999999999999.99").amount, Decimal("9999999999999999.99"))
        for token in ("1e400", "10000000000000000", "9999999999999999.999"):
            with self.subTest(token=token):
                with self.assertRaises(AmountParseError):
                    parse_amount(token)


if __name__ == "__main__":
    unittest.main()

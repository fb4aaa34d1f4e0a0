from __future__ import annotations

import pytest

from shared.config.settings import NumericLocale
from sheetlens.services.cell_normalizer import CellNormalizer


class TestCellNormalizer:
    """셀 정규화 (통화, 퍼센트, 공백)"""

    def setup_method(self) -> None:
        self.normalizer = CellNormalizer()

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("  R$ 1.234,56 ", "1234.56"),
            ("R$ 1,234.56", "1234.56"),
            ("R$1.234", "1234"),
            ("R$ 12,50", "12.5"),
            ("-R$ 50,00", "-50"),
            ("R$ -150,00", "-150"),
        ],
    )
    def test_currency_is_reemitted_as_plain_decimal(self, raw: str, expected: str) -> None:
        assert self.normalizer.normalize(raw) == expected

    def test_currency_round_trip_parses_as_float(self) -> None:
        assert float(self.normalizer.normalize("R$ 1.234,56")) == pytest.approx(1234.56)

    def test_unparseable_currency_falls_back_to_zero(self) -> None:
        assert self.normalizer.normalize("R$ -") == "0"
        assert self.normalizer.normalize("R$ 1,2,3") == "0"

    def test_percent_suffix_is_stripped_only(self) -> None:
        assert self.normalizer.normalize("+12%") == "+12"
        assert self.normalizer.normalize("45,5%") == "45,5"
        assert self.normalizer.normalize("12 %") == "12 %"

    def test_plain_text_is_trimmed(self) -> None:
        assert self.normalizer.normalize("  Aluguel  ") == "Aluguel"
        assert self.normalizer.normalize(None) == ""
        assert self.normalizer.normalize("   ") == ""

    def test_parse_number_resolves_separators(self) -> None:
        parse = self.normalizer.parse_number
        assert parse("1,234,567") == 1234567.0
        assert parse("1.234.567") == 1234567.0
        assert parse("12.5") == 12.5
        assert parse("1,5") == 1.5
        assert parse("1e3") == 1000.0
        assert parse("-7") == -7.0
        assert parse(3) == 3.0

    def test_parse_number_rejects_non_numbers(self) -> None:
        parse = self.normalizer.parse_number
        for value in ("abc", "nan", "inf", "", None, "1.2.3", "2024-01-01", "30%", True):
            assert parse(value) is None, value

    def test_single_comma_group_is_decimal_in_auto_locale(self) -> None:
        assert self.normalizer.parse_number("1,234") == pytest.approx(1.234)

    def test_explicit_locales(self) -> None:
        dot = CellNormalizer(numeric_locale=NumericLocale.DOT_DECIMAL)
        comma = CellNormalizer(numeric_locale=NumericLocale.COMMA_DECIMAL)

        assert dot.parse_number("1,234") == 1234.0
        assert dot.parse_number("1,234.5") == 1234.5
        assert comma.parse_number("1.234,5") == 1234.5
        assert comma.parse_number("1,5") == 1.5

    def test_currency_symbol_is_configurable(self) -> None:
        euro = CellNormalizer(currency_symbol="€")

        assert euro.is_monetary("€ 9,99")
        assert euro.normalize("€ 9,99") == "9.99"
        assert not euro.is_monetary("R$ 5")
        assert euro.normalize("R$ 5") == "R$ 5"

    def test_to_float_defaults_for_non_numeric(self) -> None:
        assert self.normalizer.to_float("abc") == 0.0
        assert self.normalizer.to_float("R$ 2,50") == 2.5
        assert self.normalizer.to_float(None, default=-1.0) == -1.0

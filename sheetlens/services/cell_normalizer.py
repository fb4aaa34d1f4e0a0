"""
Cell normalizer.

Turns raw cell text into its canonical string form: currency amounts become
plain decimals ("R$ 1.234,56" -> "1234.56"), trailing percent signs are dropped
("+12%" -> "+12") and everything else is trimmed.
"""

import math
import re
from typing import Any, Optional

from shared.config.settings import IngestionSettings, NumericLocale


class CellNormalizer:
    """Currency/locale aware cell cleaning and number parsing"""

    PERCENT_PATTERN = re.compile(r"^\+?\d+(?:[.,]\d+)?%$")

    _PLAIN_NUMBER = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
    _SCIENTIFIC = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)[eE][+-]?\d+$")
    _SEPARATED = re.compile(r"^[\d.,]+$")
    _COMMA_THOUSANDS = re.compile(r"^\d{1,3}(?:,\d{3}){2,}$")
    _DOT_THOUSANDS = re.compile(r"^\d{1,3}(?:\.\d{3})+$")
    _WHITESPACE = re.compile(r"\s+")

    def __init__(
        self,
        currency_symbol: str = "R$",
        numeric_locale: NumericLocale = NumericLocale.AUTO,
    ):
        self.currency_symbol = currency_symbol
        self.numeric_locale = NumericLocale(numeric_locale)
        symbol = re.escape(currency_symbol)
        self.currency_pattern = re.compile(rf"^-?\s*{symbol}\s*[\d,.\-]+$")

    @classmethod
    def from_settings(cls, ingestion: IngestionSettings) -> "CellNormalizer":
        return cls(currency_symbol=ingestion.currency_symbol, numeric_locale=ingestion.numeric_locale)

    # ---------------------------
    # Classification
    # ---------------------------

    def is_monetary(self, value: Any) -> bool:
        if value is None:
            return False
        return bool(self.currency_pattern.match(str(value).strip()))

    def is_percent(self, value: Any) -> bool:
        if value is None:
            return False
        return bool(self.PERCENT_PATTERN.match(str(value).strip()))

    def is_numeric(self, value: Any) -> bool:
        """True for plain numbers and currency amounts (not for percentages)."""
        return self.parse_number(value) is not None

    # ---------------------------
    # Normalization
    # ---------------------------

    def normalize(self, raw: Any) -> str:
        text = "" if raw is None else str(raw).strip()
        if not text:
            return ""

        if self.is_monetary(text):
            number = self.parse_number(text, monetary=True)
            return "0" if number is None else self.format_number(number)

        if self.PERCENT_PATTERN.match(text):
            return text[:-1]

        return text

    @staticmethod
    def format_number(number: float) -> str:
        if number == int(number) and abs(number) < 1e15:
            return str(int(number))
        return ("%.10f" % number).rstrip("0").rstrip(".")

    # ---------------------------
    # Parsing
    # ---------------------------

    def parse_number(self, value: Any, *, monetary: Optional[bool] = None) -> Optional[float]:
        """
        Parse a plain or currency-formatted number; None when it is not one.

        Separators are resolved by `numeric_locale`. Under AUTO the last of
        "," and "." is the decimal mark when both occur; a lone comma is a
        decimal mark unless it groups thousands more than once ("1,234,567");
        a lone dot is a decimal mark unless it groups thousands more than once
        or the value is monetary ("R$ 1.234" == 1234).
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value) if math.isfinite(value) else None

        text = str(value).strip()
        if not text:
            return None
        if monetary is None:
            monetary = self.is_monetary(text)

        if self.currency_symbol and self.currency_symbol in text:
            text = text.replace(self.currency_symbol, "")
        text = self._WHITESPACE.sub("", text)

        sign = ""
        if text[:1] in ("-", "+"):
            sign, text = text[0], text[1:]
        if sign == "+":
            sign = ""
        if not text:
            return None

        if self._SCIENTIFIC.match(text):
            return self._to_float(sign + text)
        if not self._SEPARATED.match(text) or not any(ch.isdigit() for ch in text):
            return None

        resolved = self._resolve_separators(text, monetary=monetary)
        if resolved is None or not self._PLAIN_NUMBER.match(resolved):
            return None
        return self._to_float(sign + resolved)

    def to_float(self, value: Any, default: float = 0.0) -> float:
        number = self.parse_number(value)
        return default if number is None else number

    def _resolve_separators(self, text: str, *, monetary: bool) -> Optional[str]:
        if self.numeric_locale == NumericLocale.DOT_DECIMAL:
            return text.replace(",", "")
        if self.numeric_locale == NumericLocale.COMMA_DECIMAL:
            return text.replace(".", "").replace(",", ".")

        has_comma = "," in text
        has_dot = "." in text

        if has_comma and has_dot:
            if text.rfind(",") > text.rfind("."):
                return text.replace(".", "").replace(",", ".")
            return text.replace(",", "")

        if has_comma:
            if self._COMMA_THOUSANDS.match(text):
                return text.replace(",", "")
            if text.count(",") > 1:
                return None
            return text.replace(",", ".")

        if has_dot:
            if self._DOT_THOUSANDS.match(text) and (text.count(".") > 1 or monetary):
                return text.replace(".", "")
            if text.count(".") > 1:
                return None
        return text

    @staticmethod
    def _to_float(text: str) -> Optional[float]:
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None

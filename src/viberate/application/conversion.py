# src/viberate/application/conversion.py
"""
Conversion Engine - Pivot-Based Currency Conversion

Converts an amount between two currencies of one rate table by normalizing
to the pivot currency first: amount / rate[from] * rate[to]. Arithmetic uses
Decimal at full precision; only format_amount rounds (half-up, 2 places).

Files that USE this module:
- viberate.application.rates_service (convert against the current table)
- viberate.adapters.formatting.formatter (format_amount for replies)
- tests.test_conversion (unit tests)

Files that this module USES:
- viberate.domain.models (RateTable)
- viberate.domain.errors (UnknownCurrencyError for strict mode)
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

from viberate.domain.errors import UnknownCurrencyError
from viberate.domain.models import RateTable

Number = Union[Decimal, int, str, float]

DISPLAY_QUANT = Decimal("0.01")
INTERNAL_PRECISION = 28


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, avoiding binary float noise
        return Decimal(str(value))
    return Decimal(value)


class ConversionEngine:
    """Pure conversion functions over a RateTable."""

    def convert(
        self,
        amount: Number,
        from_code: str,
        to_code: str,
        table: RateTable,
        strict: bool = False,
    ) -> Decimal:
        """
        Convert amount from one currency to another.

        Args:
            amount: Amount in from_code units
            from_code: Source currency code
            to_code: Target currency code
            table: Rate table both codes are looked up in
            strict: Raise instead of returning 0 when a code is missing

        Returns:
            Converted amount at full precision; Decimal(0) if either code is
            absent from the table and strict is False

        Raises:
            UnknownCurrencyError: If strict and a code is absent
        """
        from_rate = table.rate_for(from_code)
        to_rate = table.rate_for(to_code)
        if from_rate is None or to_rate is None:
            if strict:
                raise UnknownCurrencyError(from_code if from_rate is None else to_code)
            return Decimal(0)

        with localcontext() as ctx:
            ctx.prec = INTERNAL_PRECISION
            pivot_amount = _to_decimal(amount) / from_rate
            return pivot_amount * to_rate

    def cross_rate(self, from_code: str, to_code: str, table: RateTable) -> Decimal:
        """Units of to_code per 1 unit of from_code (0 if either is missing)."""
        return self.convert(Decimal(1), from_code, to_code, table)


def round_display(value: Decimal) -> Decimal:
    return value.quantize(DISPLAY_QUANT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Human-facing amount: grouping separators and exactly two decimals ("1,234.57")."""
    return f"{round_display(value):,.2f}"

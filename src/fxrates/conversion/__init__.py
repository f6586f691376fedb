"""Conversion fee model."""

from fxrates.conversion.fee_calculator import ConversionFeeCalculator

__all__ = ["ConversionFeeCalculator"]

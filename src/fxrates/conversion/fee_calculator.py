"""Fee computation for currency conversions.

All calculations use Decimal arithmetic exclusively. The fee model is a flat
percentage of the converted amount (0.1% by default, from FeeSettings); there
are no tiers or minimums.

  fees       = converted_amount * conversion_rate
  total_cost = converted_amount + fees
"""

from decimal import Decimal

from fxrates.config import FeeSettings


class ConversionFeeCalculator:
    """Calculates the fee and total cost of a conversion.

    Methods return Decimal values with full precision -- no rounding is
    applied, so ``total_cost - converted_amount == fees`` holds exactly.

    Args:
        fee_settings: Conversion fee rate configuration.
    """

    def __init__(self, fee_settings: FeeSettings) -> None:
        self._fees = fee_settings

    @property
    def rate(self) -> Decimal:
        return self._fees.conversion_rate

    def calculate_fee(self, converted_amount: Decimal) -> Decimal:
        """Fee charged on a converted amount.

        Args:
            converted_amount: Amount in the target currency.

        Returns:
            Fee in the target currency.
        """
        return converted_amount * self._fees.conversion_rate

    def calculate_total_cost(self, converted_amount: Decimal) -> tuple[Decimal, Decimal]:
        """Return ``(fees, total_cost)`` for a converted amount."""
        fees = self.calculate_fee(converted_amount)
        return fees, converted_amount + fees

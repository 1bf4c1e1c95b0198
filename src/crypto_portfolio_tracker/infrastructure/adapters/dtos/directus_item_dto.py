from decimal import Decimal

from pydantic import BaseModel, field_serializer

from crypto_portfolio_tracker.commons.constants import REFERENCE_UNIT_DECIMAL_PLACES, VALUE_DECIMAL_PLACES
from crypto_portfolio_tracker.commons.utils import format_decimal


class DirectusCoinValueDto(BaseModel):
    token: str
    balance: float
    price: float
    value: float
    source: str
    btc_value: float


class DirectusTotalBalanceDto(BaseModel):
    value: Decimal
    btc_value: Decimal

    @field_serializer("value")
    def _serialize_value(self, value: Decimal) -> str:
        return format_decimal(value, ndigits=VALUE_DECIMAL_PLACES)

    @field_serializer("btc_value")
    def _serialize_btc_value(self, btc_value: Decimal) -> str:
        return format_decimal(btc_value, ndigits=REFERENCE_UNIT_DECIMAL_PLACES)

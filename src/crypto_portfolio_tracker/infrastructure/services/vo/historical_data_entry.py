from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, kw_only=True)
class HistoricalDataEntry:
    timestamp: datetime
    asset: str
    balance: Decimal
    price: Decimal
    value: Decimal
    fiat_value: Decimal
    reference_unit_value: Decimal
    source: str

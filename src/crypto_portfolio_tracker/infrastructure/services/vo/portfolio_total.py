from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, kw_only=True)
class PortfolioTotal:
    timestamp: datetime
    total_value: Decimal
    total_fiat_value: Decimal
    total_reference_unit_value: Decimal

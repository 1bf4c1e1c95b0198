from decimal import Decimal

from pydantic import RootModel


class CoinGeckoSimplePriceDto(RootModel[dict[str, dict[str, Decimal]]]):
    """
    /simple/price response, e.g. {"bitcoin": {"usd": 67187.34}}
    """

    def get_price(self, coingecko_id: str, vs_currency: str = "usd") -> Decimal | None:
        prices = self.root.get(coingecko_id.lower(), {})
        return prices.get(vs_currency.lower())

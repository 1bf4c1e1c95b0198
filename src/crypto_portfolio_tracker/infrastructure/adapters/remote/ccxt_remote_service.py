import logging
from decimal import Decimal

import ccxt.async_support as ccxt

from crypto_portfolio_tracker.commons.utils import to_decimal
from crypto_portfolio_tracker.config.configuration_properties import ConfigurationProperties

logger = logging.getLogger(__name__)


class CcxtRemoteService:
    def __init__(self, configuration_properties: ConfigurationProperties) -> None:
        self._configuration_properties = configuration_properties

    async def fetch_total_balances(self, *, exchange: ccxt.Exchange | None = None) -> dict[str, Decimal]:
        """Fetches the total (free + used) spot balance per asset, skipping empty ones.

        Args:
            exchange (ccxt.Exchange | None, optional): Exchange client. Defaults to None.

        Returns:
            dict[str, Decimal]: total balance by asset
        """
        if exchange:
            balance = await exchange.fetch_balance()
        else:
            async with self.get_exchange() as exchange:
                balance = await exchange.fetch_balance()
        ret = {
            str(asset).upper(): to_decimal(amount)
            for asset, amount in (balance.get("total") or {}).items()
            if amount is not None and to_decimal(amount) > 0
        }
        logger.info(f"Fetched {len(ret)} non-empty spot balances")
        return ret

    async def fetch_last_prices(
        self, assets: list[str], quote_currency: str, *, exchange: ccxt.Exchange | None = None
    ) -> dict[str, Decimal]:
        """Fetches the last traded price of every asset against the quote currency.
        The quote currency itself is priced at 1, assets with no market are left out.

        Args:
            assets (list[str]): assets to price (e.g. ['BTC', 'ETH'])
            quote_currency (str): quote currency (e.g. 'USDT')
            exchange (ccxt.Exchange | None, optional): Exchange client. Defaults to None.

        Returns:
            dict[str, Decimal]: last price by asset
        """
        if exchange:
            ret = await self._fetch_last_prices(assets, quote_currency, exchange)
        else:
            async with self.get_exchange(authenticated=False) as exchange:
                ret = await self._fetch_last_prices(assets, quote_currency, exchange)
        return ret

    async def _fetch_last_prices(
        self, assets: list[str], quote_currency: str, exchange: ccxt.Exchange
    ) -> dict[str, Decimal]:
        quote_currency = quote_currency.upper()
        ret: dict[str, Decimal] = {}
        markets = await exchange.load_markets()
        symbols_by_asset: dict[str, str] = {}
        for asset in {asset.upper() for asset in assets}:
            if asset == quote_currency:
                ret[asset] = Decimal(1)
            elif (symbol := f"{asset}/{quote_currency}") in markets:
                symbols_by_asset[asset] = symbol
            else:
                logger.warning(f"There is no {quote_currency} market for {asset}. It will not be priced")
        if symbols_by_asset:
            tickers = await exchange.fetch_tickers(list(symbols_by_asset.values()))
            for asset, symbol in symbols_by_asset.items():
                ticker = tickers.get(symbol) or {}
                last_price = ticker.get("last") or ticker.get("close")
                if last_price is not None:
                    ret[asset] = to_decimal(last_price)
        return ret

    def get_exchange(self, *, authenticated: bool = True) -> ccxt.Exchange:
        params = {"enableRateLimit": True}
        if (
            authenticated
            and self._configuration_properties.binance_api_key
            and self._configuration_properties.binance_api_secret
        ):
            params |= {
                "apiKey": self._configuration_properties.binance_api_key,
                "secret": self._configuration_properties.binance_api_secret,
            }
        exchange = ccxt.binance(params)
        return exchange

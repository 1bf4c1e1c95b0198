COINGECKO_API_BASE_URL = "https://api.coingecko.com/api/v3"
EXCHANGE_RATE_API_URL = "https://open.er-api.com/v6/latest/USD"

DEFAULT_UPDATE_INTERVAL_MINUTES = 5
DEFAULT_BASE_CURRENCY = "USDT"
DEFAULT_REFERENCE_ASSET = "BTC"
DEFAULT_FIAT_CURRENCY = "NOK"
DEFAULT_EXCHANGE_RATE_CACHE_TTL_IN_SECONDS = 86_400  # 1 day
# Source fetch retry policy
DEFAULT_FETCH_MAX_ATTEMPTS = 3
DEFAULT_FETCH_INITIAL_DELAY_SECONDS = 1.0
# Source tags
BINANCE_SOURCE_NAME = "Binance"
MANUAL_SOURCE_NAME = "Manual"
COINGECKO_SOURCE_NAME = "CoinGecko"
DEMO_SOURCE_NAME = "Demo"
DEMO_COINS = ["BTC", "ETH", "BNB", "SOL", "AVAX", "DOGE", "XRP", "LINK", "ADA", "XLM", "TRX", "IO", "ETC", "SHIB"]
# Export defaults
DEFAULT_EXPORT_VALUES_FILENAME = "crypto-portfolio-values"
DEFAULT_EXPORT_TOTALS_FILENAME = "crypto-portfolio-totals"
DEFAULT_EXPORT_OUTPUT_PATH = "exports"
# Fixed decimal places per kind of figure
QUANTITY_DECIMAL_PLACES = 3
VALUE_DECIMAL_PLACES = 2
REFERENCE_UNIT_DECIMAL_PLACES = 8
CSV_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# Delimited-text schemas
VALUES_COLUMNS = ["Timestamp", "Asset", "Balance", "Price", "Value", "FiatValue", "ReferenceUnitValue", "Source"]
TOTALS_COLUMNS = ["Timestamp", "TotalValue", "TotalFiatValue", "TotalReferenceUnitValue"]
# Spreadsheet layout
XLSX_VALUES_SHEET_NAME = "Values"
XLSX_TOTALS_SHEET_NAME = "Totals"
XLSX_VALUES_CHART_DATA_SHEET_NAME = "ValuesChartData"
XLSX_VALUES_TABLE_NAME = "PortfolioValues"
XLSX_TOTALS_TABLE_NAME = "PortfolioTotals"
XLSX_VALUES_CHART_TITLE = "Portfolio Values"
XLSX_TOTALS_CHART_TITLE = "Portfolio Totals"
XLSX_TIMESTAMP_NUMBER_FORMAT = "yyyy-mm-dd hh:mm:ss"
# Historical inspection
DEFAULT_HISTORICAL_VIEW_LIMIT = 100

"""Protocol-wide numeric constants."""

from perpstats.numeric.fixed_point import expand

USD_DECIMALS = 30  # prices and USD values from the vault
TOKEN_DECIMALS = 18  # governance token (MYC)
INDEX_TOKEN_DECIMALS = 18  # pool index token (MLP)
USDG_DECIMALS = 18  # internal accounting unit

BASIS_POINTS_DIVISOR = 10000

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY

DEFAULT_MAX_USDG_AMOUNT = expand(200 * 1000 * 1000, USDG_DECIMALS)

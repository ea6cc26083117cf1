"""Index pool composition."""

from perpstats.pool.composition import (
    PoolComposition,
    PoolShare,
    TokenRow,
    adjusted_usdg_supply,
    pool_composition,
    token_rows,
)

__all__ = [
    "PoolComposition",
    "PoolShare",
    "TokenRow",
    "adjusted_usdg_supply",
    "pool_composition",
    "token_rows",
]

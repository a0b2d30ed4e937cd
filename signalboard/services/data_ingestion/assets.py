"""
Asset Catalogue

Instruments offered on the dashboard, keyed by the tick provider's symbol.
"""

from typing import Optional

from signalboard.schemas.market import Asset, AssetCategory

ASSETS: list[Asset] = [
    # Forex
    Asset(id="frxEURUSD", name="EUR/USD", icon="🇪🇺", precision=5, timezone="Europe/Berlin", category=AssetCategory.FOREX),
    Asset(id="frxGBPUSD", name="GBP/USD", icon="🇬🇧", precision=5, timezone="Europe/London", category=AssetCategory.FOREX),
    Asset(id="frxAUDUSD", name="AUD/USD", icon="🇦🇺", precision=5, timezone="Australia/Sydney", category=AssetCategory.FOREX),
    Asset(id="frxUSDJPY", name="USD/JPY", icon="🇯🇵", precision=3, timezone="Asia/Tokyo", category=AssetCategory.FOREX),
    # Crypto
    Asset(id="cryBTCUSD", name="BITCOIN", icon="₿", precision=2, timezone="UTC", category=AssetCategory.CRYPTO),
    Asset(id="cryETHUSD", name="ETHEREUM", icon="💎", precision=2, timezone="UTC", category=AssetCategory.CRYPTO),
    Asset(id="crySOLUSD", name="SOLANA", icon="☀️", precision=3, timezone="UTC", category=AssetCategory.CRYPTO),
    # Synthetic indices
    Asset(id="R_100", name="V-100 INDEX", icon="⚡", precision=2, timezone="UTC", category=AssetCategory.SYNTHETIC),
    Asset(id="R_50", name="V-50 INDEX", icon="📉", precision=2, timezone="UTC", category=AssetCategory.SYNTHETIC),
    # Stocks / Indices
    Asset(id="WLDAUD", name="AUD INDEX", icon="🇦🇺", precision=4, timezone="Australia/Sydney", category=AssetCategory.STOCKS),
]

_ASSET_MAP = {asset.id: asset for asset in ASSETS}


def get_all_assets() -> list[Asset]:
    """Get the full catalogue in display order."""
    return list(ASSETS)


def get_asset(asset_id: str) -> Optional[Asset]:
    """Look up an asset by provider symbol."""
    return _ASSET_MAP.get(asset_id)


def resolve_asset(asset_id: Optional[str]) -> Asset:
    """Get an asset by id, falling back to the first catalogue entry."""
    if asset_id:
        asset = _ASSET_MAP.get(asset_id)
        if asset:
            return asset
    return ASSETS[0]


def get_assets_by_category(category: AssetCategory) -> list[Asset]:
    """Get all assets in a category."""
    return [a for a in ASSETS if a.category == category]

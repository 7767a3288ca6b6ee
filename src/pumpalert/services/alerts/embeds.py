"""Discord embed builders for token alerts."""

from datetime import datetime
from typing import Any

from pumpalert.constants.polling import PHOTON_PAIR_URL
from pumpalert.models.tier import Tier
from pumpalert.services.dexscreener.models import MarketSnapshot

TIER_COLORS: dict[Tier, int] = {
    Tier.MID: 0x00FFCC,
    Tier.HIGH: 0xFF8C00,
}
LISTING_COLOR = 0x00B0F4


def _field(name: str, value: str, inline: bool = True) -> dict[str, Any]:
    return {"name": name, "value": value, "inline": inline}


def _photon_link(pair_address: str) -> str:
    return f"[View]({PHOTON_PAIR_URL.format(pair_address=pair_address)})"


def _format_price(price_usd: str | None, decimals: int | None = None) -> str:
    if price_usd is None:
        return "n/a"
    if decimals is None:
        return f"${price_usd}"
    try:
        return f"${float(price_usd):.{decimals}f}"
    except ValueError:
        return f"${price_usd}"


def build_tier_embed(snapshot: MarketSnapshot, tier: Tier, now: datetime) -> dict[str, Any]:
    """Embed for a mid or high tier alert."""
    token = snapshot.base_token
    embed: dict[str, Any] = {
        "title": f"🚀 {token.name or 'Unknown'} (${token.symbol or '?'})",
        "color": TIER_COLORS.get(tier, TIER_COLORS[Tier.MID]),
        "fields": [
            _field("💰 Market Cap", f"${snapshot.market_cap:,.0f}"),
            _field("💸 Price", _format_price(snapshot.price_usd)),
            _field("📊 Volume (1h)", f"${snapshot.volume.h1 or 0:,.0f}"),
            _field("🛒 Buys (5m)", str(snapshot.txns.m5.buys)),
            _field("📈 Change (5m)", f"{snapshot.price_change.m5 or 0}%"),
            _field("🔗 Photon", _photon_link(snapshot.pair_address)),
            _field("📜 Contract", f"`{token.address}`", inline=False),
        ],
        "footer": {"text": f"🚨 PumpFun {tier.value.title()} Tier Alert"},
        "timestamp": now.isoformat(),
    }
    if snapshot.url:
        embed["url"] = snapshot.url
    if snapshot.image_url:
        embed["thumbnail"] = {"url": snapshot.image_url}
    return embed


def build_listing_embed(pair: MarketSnapshot, now: datetime) -> dict[str, Any]:
    """Embed for a token listed on a venue outside the pump.fun venues."""
    token = pair.base_token
    embed: dict[str, Any] = {
        "title": f"{token.symbol or token.address[:8]} listed on {pair.dex_id.upper()}",
        "color": LISTING_COLOR,
        "fields": [
            _field("💵 Price", _format_price(pair.price_usd, decimals=6)),
            _field("🛒 Buys (5m)", str(pair.txns.m5.buys)),
            _field("🧯 Sells (5m)", str(pair.txns.m5.sells)),
            _field("📊 Volume (5m)", f"${round(pair.volume.m5 or 0)}"),
            _field("📉 Change (5m)", f"{pair.price_change.m5 or 0}%"),
            _field("🔗 Photon", _photon_link(pair.pair_address)),
            _field("📜 Contract", f"`{token.address}`", inline=False),
        ],
        "timestamp": now.isoformat(),
    }
    if pair.url:
        embed["url"] = pair.url
    if pair.image_url:
        embed["thumbnail"] = {"url": pair.image_url}
    return embed

"""
Live feed check script.
Run with: python check_feed.py [ASSET_ID]

Connects to the Deriv WebSocket API, loads candle history, prints the
indicator snapshot and (when an LLM key is configured) asks for a signal.
"""

import asyncio
import os
import sys

# Set working directory
root_dir = os.path.dirname(os.path.abspath(__file__))
os.chdir(root_dir)
sys.path.insert(0, root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(root_dir, ".env"))


async def check_feed(asset_id: str):
    """Check history fetch, indicators and the signal service end to end."""
    print("\n" + "=" * 60)
    print("SIGNALBOARD - LIVE FEED CHECK")
    print("=" * 60)

    from signalboard.core.market_clock import get_candle_clock
    from signalboard.services.data_ingestion import DerivClient, resolve_asset
    from signalboard.services.indicators import calculate_premium_indicators
    from signalboard.services.llm import get_llm_client, get_signal_service

    asset = resolve_asset(asset_id)

    # Check 1: Market clock
    print(f"\n[1] Market Clock ({asset.timezone})...")
    print("-" * 40)
    clock = get_candle_clock(asset.timezone)
    print(f"Market time: {clock.market_time}  countdown: {clock.countdown}s")

    # Check 2: Candle history
    print(f"\n[2] Fetching History for {asset.id}...")
    print("-" * 40)
    client = DerivClient()
    try:
        candles = await client.fetch_history(asset.id)
    finally:
        await client.close()

    print(f"Candles: {len(candles)}")
    if candles:
        latest = candles[-1]
        print(f"Latest OHLC: O={latest.open} H={latest.high} L={latest.low} C={latest.close}")

    # Check 3: Indicators
    print("\n[3] Premium Indicators...")
    print("-" * 40)
    indicators = calculate_premium_indicators(candles)
    if indicators is None:
        print("Warming up (not enough candles)")
    else:
        print(f"Trend: {indicators.trend.value}  Pattern: {indicators.detected_pattern.value}")
        print(f"RSI: {indicators.rsi:.2f}  StochK: {indicators.stoch_k:.2f}  W%R: {indicators.williams_r:.2f}")
        print(f"ATR: {indicators.atr:.5f}  Trend strength: {indicators.trend_strength:.2f}")

    # Check 4: Signal
    print("\n[4] AI Signal...")
    print("-" * 40)
    if not get_llm_client().is_configured:
        print("Skipped (no LLM API key)")
    else:
        signal = await get_signal_service().analyze_market(candles, asset.name, indicators)
        print(f"{signal.type.value} {signal.confidence:.0f}% - {signal.pattern}")
        print(f"  {signal.description}")

    print("\n" + "=" * 60)
    print("FEED CHECK COMPLETE")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(check_feed(sys.argv[1] if len(sys.argv) > 1 else "frxEURUSD"))

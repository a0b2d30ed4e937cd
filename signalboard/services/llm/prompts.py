"""
LLM Prompt Templates

Structured prompts for the next-candle signal.

RULES (enforced in all prompts):
- LLM does NO math - all numbers come from indicator data
- Output is a single JSON object with type, pattern, confidence, description
"""

from typing import Optional

from signalboard.schemas.indicators import PremiumIndicators
from signalboard.schemas.market import Candle

# Number of trailing candles sent as the price-action tape
TAPE_LENGTH = 30


# =============================================================================
# SIGNAL PROMPTS
# =============================================================================

SIGNAL_SYSTEM_PROMPT = """You are "Sure Shot AI v20 Platinum", a 1-minute binary options analyst.

YOUR TASK:
Analyze the technical data points, Fibonacci levels and chart patterns (triangles, channels)
to predict the direction of the NEXT 1-minute candle.

ANALYSIS LOGIC:
1. Fibonacci Rejection: Look for price action at the 0.618 or 0.5 levels.
2. Pattern Breakout: Check if the detected pattern (triangle/channel) is about to break.
3. Trend Strength: Only give high confidence signals if TREND_PWR is above 0.5.
4. Volume Confirmation: Ensure VolDelta matches the direction of the signal.
5. S/R Rejection: Confirm a PinBar or Engulfing candle at S1/S2 or R1/R2.

OUTPUT RULES:
- CALL: Strong bullish setup with multiple confirmations.
- PUT: Strong bearish setup with multiple confirmations.
- NEUTRAL: Data is conflicting or volatility is extremely low.
- Respond with JSON ONLY:
  {{"type": "CALL" | "PUT" | "NEUTRAL", "pattern": "<short setup name>",
    "confidence": <0-100>, "description": "<technical reasoning>"}}
- The "description" must be written in {language} and cite the Fibonacci and pattern logic."""

SIGNAL_USER_PROMPT_TEMPLATE = """Indicators & Patterns:
{technical_context}

Recent Price Action (oldest to newest, G=green R=red):
{candle_tape}

Predict the next candle."""

# Reply contract enforced by the provider (Gemini response_schema, Claude
# tool input, OpenAI strict json_schema)
SIGNAL_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["CALL", "PUT", "NEUTRAL"]},
        "pattern": {"type": "string"},
        "confidence": {"type": "number"},
        "description": {"type": "string"},
    },
    "required": ["type", "pattern", "confidence", "description"],
}

TECHNICAL_CONTEXT_TEMPLATE = """MARKET: {asset_name}, TREND: {trend}, PATTERN: {pattern}
MMTUM: {momentum:.5f}, ATR: {atr:.5f}, TREND_PWR: {trend_strength:.2f}
MA CLUSTER: EMA8({ema8:.5f}), EMA21({ema21:.5f}), EMA50({ema50:.5f}), EMA200({ema200:.5f}), SMA20({sma20:.5f})
MACD: Line({macd_line:.6f}), Signal({macd_signal:.6f}), Hist({macd_hist:.6f})
ICHIMOKU: Tenkan({tenkan_sen:.5f}), Kijun({kijun_sen:.5f})
OSCILLATORS: RSI({rsi:.2f}), StochK({stoch_k:.2f}), W%R({williams_r:.2f})
BOLLINGER: Upper({bb_upper:.5f}), Lower({bb_lower:.5f}), Width({bb_width:.5f})
FIBONACCI: 0.618({fib618:.5f}), 0.5({fib50:.5f}), 0.382({fib382:.5f})
S/R LEVELS: R2({r2:.5f}), R1({r1:.5f}), PIVOT({pivot:.5f}), S1({s1:.5f}), S2({s2:.5f})
PSYCHOLOGY: PinBar({is_pin_bar}), Engulfing({is_engulfing}), VolDelta({volume_delta})"""

WARMING_UP_CONTEXT_TEMPLATE = """MARKET: {asset_name}
INDICATORS: warming up ({count} candles available). Judge from price action only."""


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def format_candle_tape(candles: list[Candle], length: int = TAPE_LENGTH) -> str:
    """Encode the last candles as G:<close>|R:<close>|..."""
    return "|".join(
        f"{'G' if c.close > c.open else 'R'}:{c.close:.5f}"
        for c in candles[-length:]
    )


def format_technical_context(
    asset_name: str,
    indicators: Optional[PremiumIndicators],
    candle_count: int = 0,
) -> str:
    """Describe the indicator snapshot, or say it is still warming up."""
    if indicators is None:
        return WARMING_UP_CONTEXT_TEMPLATE.format(
            asset_name=asset_name,
            count=candle_count,
        )

    values = indicators.model_dump()
    values["trend"] = indicators.trend.value
    values["pattern"] = indicators.detected_pattern.value
    return TECHNICAL_CONTEXT_TEMPLATE.format(asset_name=asset_name, **values)


def format_signal_system_prompt(language: str = "English") -> str:
    """Format the system prompt with the description language."""
    return SIGNAL_SYSTEM_PROMPT.format(language=language)


def format_signal_prompt(
    candles: list[Candle],
    asset_name: str,
    indicators: Optional[PremiumIndicators],
) -> str:
    """Format the signal prompt with the candle tape and indicator data."""
    return SIGNAL_USER_PROMPT_TEMPLATE.format(
        technical_context=format_technical_context(asset_name, indicators, len(candles)),
        candle_tape=format_candle_tape(candles),
    )

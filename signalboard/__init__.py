"""SignalBoard: 1-minute candle dashboard with AI next-candle signals."""

__version__ = "0.1.0"

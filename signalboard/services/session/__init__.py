"""
Dashboard Session

CONTRACT:
    Input:  User actions (select asset, analyze, vote, scan) + clock ticks
    Output: DashboardSnapshot

RESPONSIBILITIES:
    - Own the selected asset and its candle feed
    - Run analyses through the signal lifecycle
    - Keep and persist accuracy stats and preferences
"""

from signalboard.services.session.dashboard import (
    DashboardSession,
    get_dashboard_session,
    SELECTED_ASSET_KEY,
)

__all__ = [
    "DashboardSession",
    "get_dashboard_session",
    "SELECTED_ASSET_KEY",
]

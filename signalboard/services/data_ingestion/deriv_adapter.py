"""
Deriv (binary.com) WebSocket API Adapter

Candle history and live 1-minute OHLC updates.

Protocol:
    Request:  {"ticks_history": <symbol>, "count": N, "end": "latest",
               "granularity": 60, "style": "candles", "subscribe": 1}
    Replies:  msg_type "candles" - history snapshot
              msg_type "ohlc"    - forming/new candle update (subscription)
              any reply with an "error" object - request failed
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import aiohttp

from signalboard.core.config import settings
from signalboard.schemas.market import Candle
from signalboard.services.base import FeedError
from signalboard.services.data_ingestion.candles import (
    parse_history_candle,
    parse_ohlc_update,
)

logger = logging.getLogger(__name__)

HistoryCallback = Callable[[list[Candle]], Union[None, Awaitable[None]]]
UpdateCallback = Callable[[Candle], Union[None, Awaitable[None]]]

MSG_CANDLES = "candles"
MSG_OHLC = "ohlc"


def build_history_request(
    asset_id: str,
    count: int,
    granularity: int = 60,
    subscribe: bool = True,
) -> dict[str, Any]:
    """Build a ticks_history request in candle style."""
    request = {
        "ticks_history": asset_id,
        "count": count,
        "end": "latest",
        "granularity": granularity,
        "style": "candles",
    }
    if subscribe:
        request["subscribe"] = 1
    return request


def parse_message(data: dict[str, Any]) -> tuple[str, Any]:
    """
    Normalize a provider reply.

    Returns:
        ("candles", list[Candle]) for history snapshots
        ("ohlc", Candle) for live updates
        (msg_type, raw dict) for anything else

    Raises:
        FeedError: if the reply carries an error object
    """
    if data.get("error"):
        error = data["error"]
        raise FeedError(
            "DerivFeed",
            error.get("message", "Unknown provider error"),
            details={"code": error.get("code"), "msg_type": data.get("msg_type")},
        )

    msg_type = data.get("msg_type", "unknown")

    if msg_type == MSG_CANDLES:
        return MSG_CANDLES, [parse_history_candle(c) for c in data.get("candles", [])]

    if msg_type == MSG_OHLC:
        return MSG_OHLC, parse_ohlc_update(data["ohlc"])

    return msg_type, data


async def _dispatch(callback: Optional[Callable], payload: Any) -> None:
    if callback is None:
        return
    result = callback(payload)
    if asyncio.iscoroutine(result):
        await result


class DerivClient:
    """
    Deriv WebSocket API client.

    One instance holds at most one socket. The socket carries a single
    candle subscription; switching instruments means closing it and
    subscribing again on a fresh connection.
    """

    def __init__(
        self,
        ws_url: Optional[str] = None,
        app_id: Optional[int] = None,
        granularity: Optional[int] = None,
    ):
        self._ws_url = ws_url or settings.feed_ws_url
        self._app_id = app_id or settings.feed_app_id
        self.granularity = granularity or settings.candle_granularity
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def url(self) -> str:
        return f"{self._ws_url}?app_id={self._app_id}"

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def connect(self) -> bool:
        """Open the WebSocket connection."""
        if self.is_connected:
            return True

        try:
            session = await self._ensure_session()
            self._ws = await session.ws_connect(self.url, heartbeat=30)
            logger.info(f"Deriv WebSocket connected: {self._ws_url}")
            return True
        except Exception as e:
            logger.error(f"Deriv WebSocket connection error: {e}")
            return False

    async def subscribe_candles(self, asset_id: str, count: int) -> bool:
        """Request history and subscribe to live candle updates."""
        if not self.is_connected:
            if not await self.connect():
                return False

        try:
            await self._ws.send_json(
                build_history_request(asset_id, count, self.granularity, subscribe=True)
            )
            logger.info(f"Subscribed to {asset_id} candles ({count} history)")
            return True
        except Exception as e:
            logger.error(f"Deriv subscribe error: {e}")
            return False

    async def listen(
        self,
        on_history: Optional[HistoryCallback] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        """
        Read messages until the socket closes.

        Provider error replies are logged and skipped; the subscription stays
        open. Returns when the connection ends.
        """
        if not self.is_connected:
            logger.error("WebSocket not connected")
            return

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    kind, payload = parse_message(json.loads(msg.data))
                except FeedError as e:
                    logger.error(f"Deriv feed error: {e} {e.details}")
                    continue
                except (ValueError, KeyError) as e:
                    logger.debug(f"Deriv message parse error: {e}")
                    continue

                if kind == MSG_CANDLES:
                    await _dispatch(on_history, payload)
                elif kind == MSG_OHLC:
                    await _dispatch(on_update, payload)

            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error(f"Deriv WebSocket error: {self._ws.exception()}")
                break
            elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED):
                logger.warning("Deriv WebSocket closed")
                break

    async def fetch_history(
        self,
        asset_id: str,
        count: Optional[int] = None,
        timeout: float = 10.0,
    ) -> list[Candle]:
        """
        One-shot history request on a dedicated connection.

        Raises:
            FeedError: on provider error, timeout, or connection failure
        """
        count = count or settings.history_count
        session = await self._ensure_session()

        try:
            async with session.ws_connect(self.url) as ws:
                await ws.send_json(
                    build_history_request(asset_id, count, self.granularity, subscribe=False)
                )
                async with asyncio.timeout(timeout):
                    async for msg in ws:
                        if msg.type != aiohttp.WSMsgType.TEXT:
                            break
                        kind, payload = parse_message(json.loads(msg.data))
                        if kind == MSG_CANDLES:
                            return payload
        except FeedError:
            raise
        except TimeoutError:
            raise FeedError("DerivFeed", f"History request timed out for {asset_id}")
        except aiohttp.ClientError as e:
            raise FeedError("DerivFeed", f"History request failed for {asset_id}: {e}")

        raise FeedError("DerivFeed", f"No history returned for {asset_id}")

    async def close(self) -> None:
        """Close all connections."""
        if self._ws and not self._ws.closed:
            await self._ws.close()
        self._ws = None
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

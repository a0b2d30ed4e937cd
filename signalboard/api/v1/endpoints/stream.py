"""
Server-Sent Events (SSE) endpoint for the live dashboard.

Provides push-based dashboard updates to the frontend without polling.
"""

import asyncio
import logging

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from signalboard.services.session import get_dashboard_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard")
async def stream_dashboard(
    interval: int = Query(default=500, ge=100, le=5000, description="Update interval in ms"),
):
    """
    Stream the dashboard snapshot via SSE.

    Each event carries the asset, price, market clock, current signal,
    stats and scanner recommendations.

    Usage (JavaScript):
    ```js
    const eventSource = new EventSource('/api/v1/stream/dashboard');
    eventSource.onmessage = (event) => {
      const data = JSON.parse(event.data);
      console.log(data.clock.countdown, data.signal);
    };
    ```
    """
    interval_seconds = interval / 1000.0

    async def event_generator():
        session = get_dashboard_session()
        last_payload = None

        try:
            while True:
                payload = session.snapshot().model_dump_json()

                if payload != last_payload:
                    yield f"data: {payload}\n\n"
                    last_payload = payload
                else:
                    # Send heartbeat to keep connection alive
                    yield ": heartbeat\n\n"

                await asyncio.sleep(interval_seconds)

        except asyncio.CancelledError:
            logger.debug("Dashboard stream closed")
            raise

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        },
    )

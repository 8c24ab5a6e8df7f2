"""Real-time emergency alert routes (SSE stream, history and statistics)."""
import json

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..dependencies import get_alert_queue
from ..services.alert_queue import AlertQueue

router = APIRouter(prefix="/api/vitals/alerts", tags=["Alerts"])


@router.get("/stream")
async def stream_emergency_alerts(
    include_history: bool = Query(True, description="Include recent alerts on connect"),
    history_count: int = Query(10, ge=0, le=50, description="Number of historical alerts"),
    alerts: AlertQueue = Depends(get_alert_queue),
):
    """
    Stream emergency alerts via Server-Sent Events (SSE).

    Alerts are published when an emergency is triggered, acknowledged or
    resolved, when an escalation step is executed, and when critical
    vitals call for an immediate prompt.

    The stream never closes - clients should handle reconnection.

    Usage with curl:
        curl -N http://localhost:8083/api/vitals/alerts/stream
    """
    async def event_generator():
        async for alert in alerts.subscribe(
            include_history=include_history,
            history_count=history_count
        ):
            data = json.dumps(alert.to_dict())
            yield f"event: alert\ndata: {data}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/history")
async def get_alert_history(
    count: int = Query(50, ge=1, le=100, description="Number of alerts to return"),
    alerts: AlertQueue = Depends(get_alert_queue),
):
    """Recent emergency alerts, newest first."""
    return [alert.to_dict() for alert in alerts.get_history(count)]


@router.get("/stats")
async def get_alert_stats(alerts: AlertQueue = Depends(get_alert_queue)):
    """Counts of alerts by type and severity, and current subscribers."""
    return alerts.get_stats()

"""Vitals check, emergency response and monitoring session routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from vitals_monitor import (
    ActionType,
    AlreadyMonitoringError,
    InvalidInputError,
    NoSuchResponseError,
    NoSuchSessionError,
    SeverityTier,
    VitalsMonitor,
    VitalsSeverityEngine,
    VitalsSnapshot,
    require_vitals_snapshot,
)
from vitals_monitor.thresholds import ACTION_PLANS

from ..config import Settings
from ..dependencies import get_alert_queue, get_app_settings, get_engine, get_monitor
from ..models.vitals import (
    ActionOut,
    EmergencyResponseOut,
    EmergencyStats,
    MonitoredCheckResult,
    MonitoringSessionOut,
    SeverityCheckResult,
)
from ..services.alert_queue import AlertQueue, AlertType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vitals", tags=["Vitals"])


async def _read_snapshot(request: Request) -> VitalsSnapshot:
    """Decode and validate a vitals body, raising 400 on any problem."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"error": "Malformed JSON body", "reasons": ["body: invalid JSON"]},
        )

    try:
        return require_vitals_snapshot(body)
    except InvalidInputError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid vitals snapshot", "reasons": e.reasons},
        )


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


# ============================================================================
# Stateless check
# ============================================================================


@router.post("/check", response_model=SeverityCheckResult)
async def check_vitals(
    request: Request,
    engine: VitalsSeverityEngine = Depends(get_engine),
):
    """
    Classify a vitals snapshot without storing anything.

    Returns the severity (normal, warning, urgent or critical) and the
    ordered escalation actions for that tier.
    """
    snapshot = await _read_snapshot(request)

    try:
        severity = engine.classify(snapshot)
    except Exception as e:
        logger.error(f"[API] Vitals check failed: {e}")
        raise HTTPException(status_code=500, detail=f"Vitals check failed: {str(e)}")

    if severity is None:
        return SeverityCheckResult(severity=SeverityTier.NORMAL.value, actions=[])

    return SeverityCheckResult(
        severity=severity.value,
        actions=[action.value for action in ACTION_PLANS[severity]],
    )


# ============================================================================
# Emergency responses
# ============================================================================


@router.get("/emergencies", response_model=EmergencyStats)
async def get_emergency_stats(engine: VitalsSeverityEngine = Depends(get_engine)):
    """Counts of emergency responses in the last 24 hours and overall."""
    return EmergencyStats(**engine.emergency_stats())


@router.get("/emergencies/{response_id}", response_model=EmergencyResponseOut)
async def get_emergency(
    response_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
):
    """Get one stored emergency response."""
    response = engine.get_emergency_response(response_id)
    if response is None:
        raise _not_found(NoSuchResponseError(response_id))
    return EmergencyResponseOut.from_response(response)


@router.post("/emergencies/{response_id}/acknowledge", response_model=EmergencyResponseOut)
async def acknowledge_emergency(
    response_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
    alerts: AlertQueue = Depends(get_alert_queue),
):
    """Acknowledge an emergency response. The record stays queryable."""
    try:
        response = engine.acknowledge_emergency(response_id)
    except NoSuchResponseError as e:
        raise _not_found(e)

    alerts.publish_response(response, AlertType.EMERGENCY_ACKNOWLEDGED)
    return EmergencyResponseOut.from_response(response)


@router.post("/emergencies/{response_id}/resolve", response_model=EmergencyResponseOut)
async def resolve_emergency(
    response_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
    alerts: AlertQueue = Depends(get_alert_queue),
):
    """Mark an emergency response as resolved."""
    try:
        response = engine.resolve_emergency(response_id)
    except NoSuchResponseError as e:
        raise _not_found(e)

    alerts.publish_response(response, AlertType.EMERGENCY_RESOLVED)
    return EmergencyResponseOut.from_response(response)


@router.post(
    "/emergencies/{response_id}/actions/{action}/execute",
    response_model=ActionOut,
)
async def execute_action(
    response_id: str,
    action: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
    alerts: AlertQueue = Depends(get_alert_queue),
):
    """
    Record that an escalation step was carried out.

    The step must be one of call_120, call_doctor or alert_family and
    must be part of the response's plan.
    """
    try:
        action_type = ActionType(action)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown action: {action}")

    try:
        executed = engine.mark_action_executed(response_id, action_type)
    except NoSuchResponseError as e:
        raise _not_found(e)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = engine.get_emergency_response(response_id)
    alerts.publish_response(response, AlertType.ACTION_EXECUTED, action=action_type.value)
    return ActionOut.from_action(executed)


@router.get("/users/{user_id}/emergencies", response_model=list[EmergencyResponseOut])
async def get_user_emergencies(
    user_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
):
    """All emergency responses for a user, oldest first."""
    return [
        EmergencyResponseOut.from_response(r)
        for r in engine.get_user_emergency_responses(user_id)
    ]


# ============================================================================
# Monitoring sessions
# ============================================================================


@router.post("/monitoring/{user_id}/start", response_model=MonitoringSessionOut)
async def start_monitoring(
    user_id: str,
    simulate: bool = Query(
        False, description="Also run periodic checks against mock vitals"
    ),
    engine: VitalsSeverityEngine = Depends(get_engine),
    monitor: VitalsMonitor = Depends(get_monitor),
):
    """Start monitoring a user. Fails with 409 if already monitored."""
    try:
        if simulate:
            monitor.start(user_id)
        else:
            engine.start_monitoring(user_id)
    except AlreadyMonitoringError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return MonitoringSessionOut.from_session(
        engine.get_monitoring_status(user_id),
        periodic_checks=monitor.is_running(user_id),
    )


@router.post("/monitoring/{user_id}/stop", response_model=MonitoringSessionOut)
async def stop_monitoring(
    user_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
    monitor: VitalsMonitor = Depends(get_monitor),
):
    """Stop monitoring a user. Fails with 404 if never started."""
    try:
        monitor.stop(user_id)
    except NoSuchSessionError as e:
        raise _not_found(e)

    return MonitoringSessionOut.from_session(engine.get_monitoring_status(user_id))


@router.get("/monitoring/{user_id}", response_model=MonitoringSessionOut)
async def get_monitoring_status(
    user_id: str,
    engine: VitalsSeverityEngine = Depends(get_engine),
    monitor: VitalsMonitor = Depends(get_monitor),
):
    """Current monitoring session for a user."""
    session = engine.get_monitoring_status(user_id)
    if session is None:
        raise _not_found(NoSuchSessionError(user_id))
    return MonitoringSessionOut.from_session(
        session, periodic_checks=monitor.is_running(user_id)
    )


@router.post("/monitoring/{user_id}/check", response_model=MonitoredCheckResult)
async def check_user_vitals(
    user_id: str,
    request: Request,
    monitor: VitalsMonitor = Depends(get_monitor),
    settings: Settings = Depends(get_app_settings),
):
    """
    Check a snapshot for a user and store any emergency response.

    Abnormal snapshots are published to the alert stream; critical ones
    also raise a critical prompt unless one was shown recently. A
    triggered result includes the alert dialog countdown.
    """
    snapshot = await _read_snapshot(request)

    try:
        response = monitor.process(snapshot, user_id)
    except Exception as e:
        logger.error(f"[API] Vitals check failed for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Vitals check failed: {str(e)}")

    if response is None:
        return MonitoredCheckResult(triggered=False)

    return MonitoredCheckResult(
        triggered=True,
        response=EmergencyResponseOut.from_response(response),
        countdown_seconds=settings.alert_countdown_seconds,
    )

"""Debate session commands, queries, event streams and WebSocket endpoint."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from aidebate.debate_engine.core import DebateEngine
from aidebate.debate_engine.exceptions import SessionNotFoundError
from aidebate.debate_engine.scoring import ArgumentScore, CumulativeScores, RoundResult
from aidebate.debate_engine.types import PlaybackSpeed
from aidebate.web.debate_manager import DebateManager
from aidebate.web.dependencies import get_debate_manager, get_engine
from aidebate.web.errors import translate_engine_errors
from aidebate.web.message_response import ArgumentResponse, MessageResponse
from aidebate.web.session_response import SessionResponse
from aidebate.web.session_setup_request import SessionSetupRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions")
ws_router = APIRouter()


def _round_payload(result: RoundResult) -> dict[str, Any]:
    return {
        "round": result.round_number,
        "affirmativeAverage": float(result.affirmative_average),
        "negativeAverage": float(result.negative_average),
        "scores": [
            {
                "judgeNumber": record.judge_number,
                "side": record.side.value,
                "score": float(record.score),
                "feedback": record.feedback,
                "isFallback": record.is_fallback,
            }
            for record in result.records
        ],
    }


def _cumulative_payload(totals: CumulativeScores) -> dict[str, Any]:
    return {**totals.to_event(), "rounds": [_round_payload(r) for r in totals.rounds]}


def _argument_score_payload(score: ArgumentScore) -> dict[str, Any]:
    return {
        "argumentId": score.argument_id,
        "total": float(score.total),
        "criteria": [
            {
                "criterion": c.criterion,
                "weight": float(c.weight),
                "averageScore": float(c.average_score),
                "weightedScore": float(c.weighted_score),
                "judgeScores": {str(n): float(s) for n, s in c.judge_scores.items()},
                "feedback": c.feedback,
            }
            for c in score.criteria
        ],
    }


# ---------------------------------------------------------------- commands


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(setup: SessionSetupRequest, engine: DebateEngine = Depends(get_engine)):
    """Initialise a session with its roles and scoring rules."""
    with translate_engine_errors():
        session = engine.initialize_session(
            setup.topic_id,
            affirmative_persona=setup.affirmative_persona,
            negative_persona=setup.negative_persona,
            playback_speed=PlaybackSpeed(setup.playback_speed) if setup.playback_speed else None,
            language=setup.language,
            round_count=setup.round_count,
            judge_count=setup.judge_count,
        )
    return SessionResponse.from_session(session)


@router.post("/{session_id}/start", response_model=SessionResponse)
async def start_session(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return SessionResponse.from_session(engine.start_session(session_id))


@router.post("/{session_id}/stream", status_code=202)
async def stream_session(session_id: int, manager: DebateManager = Depends(get_debate_manager)):
    """Begin or continue the debate in the background; events go to WebSocket observers."""
    with translate_engine_errors():
        manager.engine.get_session(session_id)
        manager.start_stream(session_id)
    return {"status": "streaming", "sessionId": session_id}


@router.get("/{session_id}/events")
async def session_events(session_id: int, manager: DebateManager = Depends(get_debate_manager)):
    """Server-Sent Events: begin or continue the debate and relay its events."""
    with translate_engine_errors():
        manager.engine.get_session(session_id)

    queue = manager.subscribe(session_id)
    if not manager.is_running(session_id):
        try:
            with translate_engine_errors():
                manager.start_stream(session_id)
        except HTTPException:
            manager.unsubscribe(session_id, queue)
            raise

    async def event_source():
        try:
            while True:
                message = await queue.get()
                if message is None:
                    break
                yield f"event: {message['type']}\ndata: {json.dumps(message)}\n\n"
        finally:
            manager.unsubscribe(session_id, queue)

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/{session_id}/pause")
async def pause_session(session_id: int, engine: DebateEngine = Depends(get_engine)):
    """Pause now, or at the next sub-step boundary when the debate is streaming."""
    with translate_engine_errors():
        checkpoint = engine.request_pause(session_id)
    if checkpoint is None:
        return {"sessionId": session_id, "status": "pause_requested", "checkpoint": None}
    return {"sessionId": session_id, "status": "paused", "checkpoint": checkpoint}


@router.post("/{session_id}/resume", response_model=SessionResponse)
async def resume_session(
    session_id: int, stream: bool = True, manager: DebateManager = Depends(get_debate_manager)
):
    """Resume a paused session and, unless ``stream=false``, continue streaming it."""
    with translate_engine_errors():
        session = manager.engine.resume_session(session_id)
        if stream:
            manager.start_stream(session_id)
    return SessionResponse.from_session(session)


@router.post("/{session_id}/skip-to-end")
async def skip_to_end(session_id: int, engine: DebateEngine = Depends(get_engine)):
    """Finalise immediately with the current cumulative totals."""
    with translate_engine_errors():
        return engine.skip_to_end(session_id).to_event()


@router.post("/{session_id}/complete")
async def complete_session(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return engine.complete_session(session_id).to_event()


@router.post("/{session_id}/abort", response_model=SessionResponse)
async def abort_session(session_id: int, manager: DebateManager = Depends(get_debate_manager)):
    """Cancel any running stream and mark the session aborted."""
    with translate_engine_errors():
        manager.engine.get_session(session_id)
        session = await manager.abort_session(session_id)
    return SessionResponse.from_session(session)


# ----------------------------------------------------------------- queries


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return SessionResponse.from_session(engine.get_session(session_id))


@router.get("/{session_id}/state")
async def get_session_state(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return engine.session_state(session_id)


@router.get("/{session_id}/scores")
async def get_cumulative_scores(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        return _cumulative_payload(engine.cumulative_scores(session_id))


@router.get("/{session_id}/rounds/{round_number}/scores")
async def get_round_scores(
    session_id: int, round_number: int, engine: DebateEngine = Depends(get_engine)
):
    with translate_engine_errors():
        result = engine.round_result(session_id, round_number)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Round {round_number} has not been scored")
    return _round_payload(result)


@router.get("/{session_id}/arguments", response_model=list[ArgumentResponse])
async def list_arguments(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        engine.get_session(session_id)
    return [ArgumentResponse.from_argument(a) for a in engine.db.list_arguments(session_id)]


@router.get("/{session_id}/messages", response_model=list[MessageResponse])
async def list_messages(session_id: int, engine: DebateEngine = Depends(get_engine)):
    with translate_engine_errors():
        engine.get_session(session_id)
    return [MessageResponse.from_message(m) for m in engine.db.list_moderator_messages(session_id)]


@router.post("/{session_id}/arguments/{argument_id}/score")
async def score_argument(
    session_id: int, argument_id: int, engine: DebateEngine = Depends(get_engine)
):
    """Run the weighted-criteria judges over one argument."""
    with translate_engine_errors():
        return _argument_score_payload(await engine.score_argument(session_id, argument_id))


@router.get("/{session_id}/arguments/{argument_id}/score-breakdown")
async def get_score_breakdown(
    session_id: int, argument_id: int, engine: DebateEngine = Depends(get_engine)
):
    with translate_engine_errors():
        return _argument_score_payload(engine.argument_score_breakdown(session_id, argument_id))


# --------------------------------------------------------------- websocket


@ws_router.websocket("/ws/sessions/{session_id}")
async def websocket_endpoint(websocket: WebSocket, session_id: int):
    """WebSocket endpoint for real-time debate events."""
    await websocket.accept()
    manager: DebateManager = websocket.app.state.debate_manager
    manager.add_connection(session_id, websocket)

    try:
        try:
            session = manager.engine.get_session(session_id)
            await websocket.send_json(
                {"type": "connected", "sessionId": session_id, "status": session.status.value}
            )
        except SessionNotFoundError as e:
            await websocket.send_json({"type": "error", "sessionId": session_id, "message": str(e)})

        # Keep connection alive
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Observer of session {session_id} disconnected")
    finally:
        manager.remove_connection(session_id, websocket)

"""Socket.IO designer playback handlers.

Events:
    - designer_play: Advance a session and stream its events;
        payload { session_id, steps? }. ``steps`` defaults to (and is capped
        at) DESIGNER_MAX_STEPS_PER_REQUEST.
    - designer_overlay: Fetch the current overlay; payload { session_id }

Emits:
    - designer_step: { session_id, stage, event } once per generator step
    - designer_done: { session_id, event, session } when the generator reaches done
    - designer_overlay: { session_id, overlay }
    - error: { message, field, code } for invalid payloads or unknown sessions
"""

from flask_socketio import emit

from dungeon_designer import settings, socketio
from dungeon_designer.logging_utils import get_logger
from dungeon_designer.routes.designer_api import get_session

from .validation import DESIGNER_OVERLAY, DESIGNER_PLAY, validate

_log = get_logger("dungeon_designer.ws")


def _invalid(event_name, result):
    emit("error", {"message": f"Invalid {event_name}: {result['error']}", "field": result["field"], "code": result["code"]})


def _lookup(event_name, session_id):
    designer = get_session(session_id)
    if designer is None:
        emit(
            "error",
            {"message": f"Invalid {event_name}: unknown session", "field": "session_id", "code": "not_found"},
        )
    return designer


@socketio.on("designer_play")
def handle_designer_play(data):
    ok, result = validate(data or {}, DESIGNER_PLAY)
    if not ok:
        _invalid("designer_play", result)
        return
    session_id = result["session_id"]
    designer = _lookup("designer_play", session_id)
    if designer is None:
        return
    limit = settings.max_steps_per_request()
    steps = min(result.get("steps", limit), limit)
    gen = designer.generator
    played = 0
    last = None
    with designer.lock:
        while played < steps and not gen.is_done():
            for ev in designer.step(1):
                emit("designer_step", {"session_id": session_id, "stage": gen.stage.value, "event": ev.to_dict()})
                last = ev
            played += 1
        if gen.is_done():
            # already finished before this call: report the terminal event without counting a step
            if last is None:
                last = gen.next_step()
            emit("designer_done", {"session_id": session_id, "event": last.to_dict(), "session": designer.summary()})
        stage = gen.stage.value
    _log.info(event="designer_play", session_id=session_id, steps=played, stage=stage)


@socketio.on("designer_overlay")
def handle_designer_overlay(data):
    ok, result = validate(data or {}, DESIGNER_OVERLAY)
    if not ok:
        _invalid("designer_overlay", result)
        return
    session_id = result["session_id"]
    designer = _lookup("designer_overlay", session_id)
    if designer is None:
        return
    with designer.lock:
        overlay = designer.generator.get_overlay()
    emit("designer_overlay", {"session_id": session_id, "overlay": overlay.to_dict()})

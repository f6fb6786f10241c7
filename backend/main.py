import json
import logging
import os
from typing import Any, Dict, List, Optional

import uvicorn
import uvloop
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from exercises import EXERCISE_REGISTRY, analyze_frame, list_exercises, resolve_exercise
from pose_sources import MediaPipeLayout, build_keypoint_layout, get_available_layouts
from session import ExerciseFamily, SessionState, reset_session_state
from settings import get_settings
from workout import ExerciseSession

# Install and use uvloop as the default event loop
uvloop.install()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    exercise: str
    family: Optional[str] = None
    keypoints: List[Dict[str, Any]] = []
    layout: Optional[str] = None
    image_width: Optional[float] = None
    image_height: Optional[float] = None
    state: Optional[Dict[str, Any]] = None
    timestamp: Optional[float] = None

    class Config:
        extra = "ignore"


class ResetRequest(BaseModel):
    state: Optional[Dict[str, Any]] = None


def _layout(name: Optional[str], width: Optional[float] = None, height: Optional[float] = None):
    name = name or get_settings().keypoint_layout
    kwargs = {}
    # Only index-ordered layouts report normalized coordinates.
    if name == MediaPipeLayout.name and width and height:
        kwargs = {"image_width": width, "image_height": height}
    return build_keypoint_layout(name, **kwargs)


@app.get("/")
def read_root():
    return {
        "message": "Welcome to RepCoach - Real-Time Exercise Rep Counting API",
        "exercises": sorted(EXERCISE_REGISTRY.keys()),
        "keypoint_layouts": get_available_layouts(),
    }


@app.get("/exercises")
def get_exercises():
    return {"exercises": list_exercises()}


@app.post("/analyze")
async def analyze(request: AnalyzeRequest):
    try:
        layout = _layout(request.layout, request.image_width, request.image_height)
    except ValueError as e:
        return {"status": "error", "message": str(e)}

    descriptor = {"name": request.exercise, "family": request.family}
    dispatch = resolve_exercise(descriptor)
    frame = layout.normalize(request.keypoints, timestamp=request.timestamp)
    previous = SessionState.from_dict(request.state) if request.state else None
    state = analyze_frame(frame, dispatch, previous, now=request.timestamp)
    return {"status": "success", "dispatch": dispatch.to_dict(), "state": state.to_dict()}


@app.post("/reset")
async def reset(request: ResetRequest):
    previous = SessionState.from_dict(request.state) if request.state else None
    return {"status": "success", "state": reset_session_state(previous).to_dict()}


def handle_command(session: ExerciseSession, command_data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a WebSocket control command to the connection's session."""
    command = command_data.get("command")
    if command == "select_exercise":
        dispatch = session.select_exercise(
            str(command_data.get("exercise", "")), ExerciseFamily.parse(command_data.get("family"))
        )
        return {"event": "exercise_selected", "dispatch": dispatch.to_dict(), "state": session.state.to_dict()}
    if command == "reset":
        return {"event": "reset", "state": session.reset().to_dict()}
    if command == "add_rep":
        state = session.add_rep(int(command_data.get("count", 1)))
        return {"event": "rep_added", "state": state.to_dict()}
    if command == "summary":
        return {"event": "summary", "summary": session.summary()}
    return {"event": "error", "message": f"Unknown command '{command}'"}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    logger.info("WebSocket connection attempt received.")
    await websocket.accept()
    logger.info("WebSocket connection accepted.")

    session = ExerciseSession(websocket.query_params.get("exercise", "squat"))

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Received malformed data packet")
                continue
            if not isinstance(message, dict):
                logger.warning("Received malformed data packet")
                continue

            try:
                if "command" in message:
                    await websocket.send_json(handle_command(session, message))
                    continue

                frame_timestamp = message.get("ts")
                state = session.process(message.get("keypoints") or [], frame_timestamp, message.get("layout"))
                payload = state.to_dict()
                if frame_timestamp is not None:
                    payload["client_ts"] = frame_timestamp
                await websocket.send_json(payload)
            except (TypeError, ValueError) as processing_error:
                logger.error("Error processing message: %s", processing_error)
                await websocket.send_json({"event": "error", "message": str(processing_error)})

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    finally:
        logger.info("Client connection closed")


def run():
    """Serve the app with uvicorn; ``REPCOACH_HOST``/``REPCOACH_PORT`` pick the bind address."""
    uvicorn.run(app, host=os.getenv("REPCOACH_HOST", "0.0.0.0"), port=int(os.getenv("REPCOACH_PORT", "8000")))


if __name__ == "__main__":
    run()

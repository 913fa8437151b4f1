#!/usr/bin/env python3
"""
Session API
===========

FastAPI server exposing one in-memory production session over REST.
A thin presentation layer: every endpoint maps onto a ProductionSession
operation and returns its result or the session snapshot.

Usage:
    uvicorn examples.session_api:app --reload --port 8080
"""

from pathlib import Path
from typing import Optional, Dict, Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

# Add the repository root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from storyflow import GenerationClient, ProductionSession, OperationStatus, get_config
from storyflow.core.exceptions import ValidationError


class AnalyzeRequest(BaseModel):
    """Script analysis request; the stored script is used when text is omitted."""
    text: Optional[str] = None


class CharacterRequest(BaseModel):
    name: str
    description: str = ""


class FieldEdit(BaseModel):
    field: str
    value: str


class ScenePreferencesRequest(BaseModel):
    genre: Optional[str] = None
    style: Optional[str] = None
    tone: Optional[str] = None
    pacing: Optional[str] = None


class AudioPreferencesRequest(BaseModel):
    engine: Optional[str] = None
    language_code: Optional[str] = None
    voice_id: Optional[str] = None
    sample_rate: Optional[int] = None
    speech_rate: Optional[int] = None
    ssml: Optional[bool] = None


class SynthesizeRequest(BaseModel):
    text: Optional[str] = None


# HTTP status for each non-success outcome
STATUS_CODES = {
    OperationStatus.FAILED: 502,
    OperationStatus.DISCARDED: 409,
    OperationStatus.REJECTED_IN_PROGRESS: 409,
    OperationStatus.REJECTED_QUOTA: 429,
    OperationStatus.REJECTED_INVALID: 422,
}


def respond(result) -> Dict[str, Any]:
    """Return a successful result or raise the matching HTTP error."""
    if result.ok:
        return result.to_dict()
    raise HTTPException(status_code=STATUS_CODES[result.status], detail=result.to_dict())


def invalid(error: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=error.to_dict())


def create_app(session: Optional[ProductionSession] = None) -> FastAPI:
    """
    Build the API around a session.

    Args:
        session: Session to serve (created from the global config on first use when omitted)
    """
    app = FastAPI(
        title="Storyflow Session API",
        description="REST API for a guided content production session",
        version="0.1.0",
    )
    app.state.session = session

    def current() -> ProductionSession:
        if app.state.session is None:
            config = get_config()
            app.state.session = ProductionSession(GenerationClient.from_config(config), config=config)
        return app.state.session

    @app.on_event("shutdown")
    async def shutdown():
        """Cleanup on shutdown."""
        if app.state.session is not None:
            await app.state.session.close()

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Storyflow Session API",
            "version": "0.1.0",
            "endpoints": {
                "session": "GET /session",
                "stages": "GET /stages",
                "analyze": "POST /script/analyze",
                "scenes": "POST /scenes/generate",
                "images": "POST /scenes/{index}/images",
                "audio": "POST /audio/synthesize",
                "captions": "GET /captions",
                "project": "GET /project",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "session_ready": app.state.session is not None,
        }

    @app.get("/session")
    async def snapshot():
        return current().to_dict()

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    @app.get("/stages")
    async def list_stages():
        stages = current().stages
        return {
            "stages": [{"id": stage_id, "title": title} for stage_id, title in stages.stages()],
            **stages.to_dict(),
        }

    @app.post("/stages/advance")
    async def advance():
        session = current()
        return {"moved": session.advance(), **session.stages.to_dict()}

    @app.post("/stages/retreat")
    async def retreat():
        session = current()
        return {"moved": session.retreat(), **session.stages.to_dict()}

    @app.post("/stages/{stage_id}")
    async def go_to(stage_id: int):
        session = current()
        try:
            moved = session.go_to(stage_id)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unknown stage: {stage_id}")
        return {"moved": moved, **session.stages.to_dict()}

    # -------------------------------------------------------------------------
    # Script
    # -------------------------------------------------------------------------

    @app.post("/script/analyze")
    async def analyze(request: AnalyzeRequest):
        return respond(await current().analyze_script(request.text))

    @app.post("/characters")
    async def add_character(request: CharacterRequest):
        session = current()
        try:
            index = session.character_editor.add(request.name, request.description)
        except ValidationError as e:
            raise invalid(e)
        return {"index": index, "character": session.store.characters[index].to_dict()}

    @app.patch("/characters/{index}")
    async def edit_character(index: int, request: FieldEdit):
        try:
            character = current().character_editor.edit_field(index, request.field, request.value)
        except ValidationError as e:
            raise invalid(e)
        return character.to_dict()

    # -------------------------------------------------------------------------
    # Scenes
    # -------------------------------------------------------------------------

    @app.put("/scenes/preferences")
    async def scene_preferences(request: ScenePreferencesRequest):
        return respond(current().update_scene_preferences(**request.model_dump(exclude_none=True)))

    @app.post("/scenes/generate")
    async def generate_scenes():
        return respond(await current().generate_scenes())

    @app.patch("/scenes/{index}")
    async def edit_scene(index: int, request: FieldEdit):
        try:
            scene = current().scene_editor.edit_field(index, request.field, request.value)
        except ValidationError as e:
            raise invalid(e)
        return scene.to_dict()

    @app.post("/scenes/{index}/images")
    async def generate_image(index: int):
        return respond(await current().generate_scene_image(index))

    # -------------------------------------------------------------------------
    # Audio and captions
    # -------------------------------------------------------------------------

    @app.put("/audio/preferences")
    async def audio_preferences(request: AudioPreferencesRequest):
        return respond(current().update_audio_preferences(**request.model_dump(exclude_none=True)))

    @app.post("/audio/synthesize")
    async def synthesize(request: SynthesizeRequest):
        return respond(await current().synthesize_audio(request.text))

    @app.put("/captions/{section}")
    async def update_captions(section: str, values: Dict[str, Any]):
        return respond(current().update_captions(section, **values))

    @app.get("/captions", response_class=PlainTextResponse)
    async def captions():
        return current().render_captions()

    @app.get("/project")
    async def project():
        return current().project_summary()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)

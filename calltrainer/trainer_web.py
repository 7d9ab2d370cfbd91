"""
calltrainer/trainer_web.py

The web API for the call trainer.

One POST per spoken staff line: the trainee's audio comes in with the whole
transcript so far, the clinic profile and the mode; the updated transcript and
the patient's spoken reply go back out. Nothing is kept between requests.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from pydantic import TypeAdapter, ValidationError

from calltrainer import config
from calltrainer.errors import ClientInputError, ServiceError
from calltrainer.models import ClinicProfile, Mode, Turn
from calltrainer.services.turn_pipeline import advance_turn
from calltrainer.voice.llm import OllamaReplyGenerator
from calltrainer.voice.synthesizer import EdgeSpeechSynthesizer
from calltrainer.voice.transcriber import WhisperTranscriber

logger = logging.getLogger(__name__)

# ---------------------------------------------------
# FastAPI app
# ---------------------------------------------------

app = FastAPI(title="Call Trainer")

MISSING_FIELDS_MSG = "Missing audio, clinicConfig, or turns"
SERVER_ERROR_MSG = "Server error"

_turns_adapter = TypeAdapter(List[Turn])

# ----- external services -----

def _services(request: Request):
    """
    Transcriber, generator and synthesizer for this app.
    Tests put fakes on app.state before the first request.
    """
    state = request.app.state
    if getattr(state, "transcriber", None) is None:
        state.transcriber = WhisperTranscriber()
    if getattr(state, "generator", None) is None:
        state.generator = OllamaReplyGenerator()
    if getattr(state, "synthesizer", None) is None:
        state.synthesizer = EdgeSpeechSynthesizer()
    return state.transcriber, state.generator, state.synthesizer

# ----- form payload parsing -----

def parse_clinic_config(raw: str) -> ClinicProfile:
    try:
        return ClinicProfile.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise ClientInputError("Invalid clinicConfig") from e


def parse_turns(raw: str) -> List[Turn]:
    try:
        return _turns_adapter.validate_python(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise ClientInputError("Invalid turns") from e

# -------------------------------------------------------------------------
# API endpoints
# -------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/modes")
async def list_modes():
    # mode picker content
    return [{"id": m.value, "label": m.label, "description": m.description} for m in Mode]


@app.post("/voice_turn")
async def voice_turn(
    request: Request,
    audio: Optional[UploadFile] = File(None),
    mode: Optional[str] = Form(None),
    clinicConfig: Optional[str] = Form(None),
    turns: Optional[str] = Form(None),
):
    """
    Voice turn for browser and CLI clients:

    - Transcribe the staff clip with Whisper
    - Generate the patient's reply for the given clinic + mode
    - Synthesize the reply with Edge TTS (MP3, base64)
    - Return {staffText, patientText, audioBase64, turns}
    """
    # -------- Validate the form before touching any service --------
    if audio is None or not clinicConfig or turns is None:
        raise HTTPException(status_code=400, detail=MISSING_FIELDS_MSG)

    staff_audio = await audio.read()
    if not staff_audio:
        raise HTTPException(status_code=400, detail=MISSING_FIELDS_MSG)

    try:
        profile = parse_clinic_config(clinicConfig)
        history = parse_turns(turns)
    except ClientInputError as e:
        logger.info("Rejected voice_turn payload: %s (%s)", e, e.__cause__)
        raise HTTPException(status_code=400, detail=str(e))

    transcriber, generator, synthesizer = _services(request)

    # -------- Run the turn --------
    try:
        result = await advance_turn(
            staff_audio,
            history,
            profile,
            Mode.coerce(mode),
            transcriber=transcriber,
            generator=generator,
            synthesizer=synthesizer,
            timeout=config.STAGE_TIMEOUT_SECONDS,
        )
    except ServiceError as e:
        # stage detail is already logged by the pipeline
        logger.error("voice_turn failed at %s stage (%d prior turns)", e.stage, len(history))
        raise HTTPException(status_code=500, detail=SERVER_ERROR_MSG)
    except Exception:
        logger.exception("voice_turn failed unexpectedly")
        raise HTTPException(status_code=500, detail=SERVER_ERROR_MSG)

    return result.model_dump(by_alias=True)


def serve() -> None:
    """Entry point: run the API with uvicorn."""
    config.configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)

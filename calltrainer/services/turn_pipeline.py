# calltrainer/services/turn_pipeline.py
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from calltrainer import config
from calltrainer.errors import ClientInputError, ServiceError
from calltrainer.models import ClinicProfile, Mode, PipelineResult, Turn
from calltrainer.voice.llm import FILLER_REPLY, build_patient_system_prompt, to_chat_messages

logger = logging.getLogger(__name__)

# ---------------------------------------------------
# External capabilities (one method each, swapped for fakes in tests)
# ---------------------------------------------------

class Transcriber(Protocol):
    def transcribe(self, audio: bytes) -> str: ...


class ReplyGenerator(Protocol):
    def generate(self, messages: List[Dict[str, str]]) -> str: ...


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str) -> bytes: ...


# ---------------------------------------------------
# One staff -> patient exchange
# ---------------------------------------------------

async def _run_stage(stage: str, awaitable, timeout: Optional[float]):
    """Await one external call, turning any failure into a ServiceError for `stage`."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error("[%s] timed out after %ss", stage, timeout)
        raise ServiceError(stage, f"{stage} timed out") from e
    except Exception as e:
        logger.exception("[%s] external call failed: %s", stage, e)
        raise ServiceError(stage) from e


async def advance_turn(
    staff_audio: bytes,
    history: Sequence[Turn],
    clinic_profile: ClinicProfile,
    mode,
    *,
    transcriber: Transcriber,
    generator: ReplyGenerator,
    synthesizer: SpeechSynthesizer,
    timeout: Optional[float] = config.STAGE_TIMEOUT_SECONDS,
) -> PipelineResult:
    """
    Advance the call by exactly one exchange.

    Transcribes the staff audio, asks the LLM for the patient's next line and
    synthesizes it. The three calls run strictly in order. Any failure raises
    ServiceError and nothing is returned, `history` itself is never modified.

    Raises:
        ClientInputError: no audio.
        ServiceError: transcription, generation or synthesis failed.
    """
    if not staff_audio:
        raise ClientInputError("Missing audio")

    mode = Mode.coerce(mode.value if isinstance(mode, Mode) else mode)
    turns: List[Turn] = list(history)

    # 1) staff speech -> text
    raw_text = await _run_stage("STT", asyncio.to_thread(transcriber.transcribe, staff_audio), timeout)
    if not isinstance(raw_text, str):
        logger.error("[STT] unusable transcription of type %s", type(raw_text).__name__)
        raise ServiceError("STT", "unusable transcription")
    staff_text = raw_text.strip()
    turns.append(Turn(speaker="staff", text=staff_text))

    # 2) patient reply
    system_prompt = build_patient_system_prompt(clinic_profile, mode)
    messages = to_chat_messages(system_prompt, turns)
    raw_reply = await _run_stage("LLM", asyncio.to_thread(generator.generate, messages), timeout)
    if raw_reply is not None and not isinstance(raw_reply, str):
        logger.error("[LLM] unusable reply of type %s", type(raw_reply).__name__)
        raise ServiceError("LLM", "unusable reply")
    patient_text = (raw_reply or "").strip() or FILLER_REPLY
    turns.append(Turn(speaker="patient", text=patient_text))

    # 3) patient text -> speech
    audio = await _run_stage("TTS", synthesizer.synthesize(patient_text), timeout)
    if not isinstance(audio, (bytes, bytearray)) or not audio:
        logger.error("[TTS] synthesizer returned no audio")
        raise ServiceError("TTS", "no audio")
    audio_b64 = base64.b64encode(bytes(audio)).decode("ascii")

    logger.info("[Turn] mode=%s turns=%d staff=%r patient=%r", mode.value, len(turns), staff_text, patient_text)

    return PipelineResult(
        staff_text=staff_text,
        patient_text=patient_text,
        audio_base64=audio_b64,
        turns=turns,
    )

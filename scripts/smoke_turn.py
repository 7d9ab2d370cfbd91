# scripts/smoke_turn.py
# Run one real turn (Whisper -> Ollama -> Edge TTS) on a recorded clip, no web server involved.
import asyncio
import base64
import sys

from calltrainer import config
from calltrainer.models import ClinicProfile, Mode
from calltrainer.services.turn_pipeline import advance_turn
from calltrainer.voice.llm import OllamaReplyGenerator
from calltrainer.voice.synthesizer import EdgeSpeechSynthesizer
from calltrainer.voice.transcriber import WhisperTranscriber

def main():
    if len(sys.argv) < 2:
        print("usage: python scripts/smoke_turn.py CLIP.wav [mode]")
        return
    config.configure_logging()

    with open(sys.argv[1], "rb") as f:
        audio = f.read()
    mode = Mode.coerce(sys.argv[2] if len(sys.argv) > 2 else None)

    profile = ClinicProfile(
        clinic_name="Summit Spine & Wellness",
        doctor_name="Dr. Patel",
        first_visit_cost=75,
        address="42 Oak Ave, Boise, ID",
        office_hours="Mon-Fri 8am-6pm",
    )

    result = asyncio.run(advance_turn(
        audio, [], profile, mode,
        transcriber=WhisperTranscriber(),
        generator=OllamaReplyGenerator(),
        synthesizer=EdgeSpeechSynthesizer(),
    ))
    print("Staff:", result.staff_text)
    print("Patient:", result.patient_text)

    with open("patient_reply.mp3", "wb") as f:
        f.write(base64.b64decode(result.audio_base64))
    print("Saved patient_reply.mp3")

if __name__ == "__main__":
    main()

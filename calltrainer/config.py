# config.py
import logging
import os
from dotenv import load_dotenv

# Load .env before reading any setting
load_dotenv()

# ----- Speech-to-text (faster-whisper) -----
WHISPER_MODEL_SIZE = os.getenv("WHISPER_MODEL_SIZE", "small")
WHISPER_DEVICE = os.getenv("WHISPER_DEVICE", "cpu")
WHISPER_COMPUTE_TYPE = os.getenv("WHISPER_COMPUTE_TYPE", "int8")

# ----- Patient reply generation (ollama) -----
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://127.0.0.1:11434")
LLM_MODEL = os.getenv("LLM_MODEL", "llama3.1:8b")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))

# ----- Patient voice (edge-tts) -----
PATIENT_VOICE = os.getenv("PATIENT_VOICE", "en-US-BrianNeural")
TTS_RATE = os.getenv("TTS_RATE", "+0%")

# hard cap for each external call in one turn
STAGE_TIMEOUT_SECONDS = float(os.getenv("STAGE_TIMEOUT_SECONDS", "60"))

# ----- Client side -----
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///calltrainer.db")
TRAINER_API_URL = os.getenv("TRAINER_API_URL", "http://127.0.0.1:8000")
MIC_SAMPLE_RATE = int(os.getenv("MIC_SAMPLE_RATE", "16000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Console logging for the server and client entry points."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

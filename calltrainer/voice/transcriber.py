"""
transcriber.py

Whisper speech-to-text for uploaded staff audio.

- Browser/CLI uploads arrive as one encoded clip (WAV, WebM/Opus, ...).
- faster-whisper decodes the bytes itself, no temp files or ffmpeg needed.
- The model is loaded on first use and shared by every request.
"""

import io
import logging
import threading
from typing import Optional

from faster_whisper import WhisperModel

from calltrainer import config

logger = logging.getLogger(__name__)


def _seg_conf(seg):
    # handle both spellings just in case
    return getattr(seg, "avg_logprob", getattr(seg, "avg_log_prob", -10.0))

# returns average confidence score and joined text for transcribed audio
def _avg_conf_and_text(segments):
    segs = list(segments)  # generator -> list
    if not segs:
        return -10.0, ""
    text = " ".join(s.text.strip() for s in segs).strip()
    conf = sum(_seg_conf(s) for s in segs) / max(len(segs), 1)
    return conf, text


class WhisperTranscriber:
    """
    Wrapper around faster-whisper for one-shot clip transcription.
    """

    def __init__(
        self,
        model_size: str = config.WHISPER_MODEL_SIZE,
        device: str = config.WHISPER_DEVICE,
        compute_type: str = config.WHISPER_COMPUTE_TYPE,
        language: str = "en",
    ):
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self._model: Optional[WhisperModel] = None
        self._lock = threading.Lock()

    def _load(self) -> WhisperModel:
        with self._lock:
            if self._model is None:
                logger.info("[STT] Loading Whisper model %s on %s...", self.model_size, self.device)
                self._model = WhisperModel(self.model_size, device=self.device, compute_type=self.compute_type)
        return self._model

    def transcribe(self, audio: bytes) -> str:
        model = self._load()
        segments_iter, _ = model.transcribe(
            io.BytesIO(audio),
            language=self.language,
            beam_size=1,
            word_timestamps=False,
        )
        # force materialization, decoding happens lazily
        avg_conf, text = _avg_conf_and_text(segments_iter)
        logger.info("[STT] text=%r avg_conf=%.2f", text, avg_conf)
        return text

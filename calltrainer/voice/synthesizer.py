"""
synthesizer.py

Text-to-Speech for the simulated patient.

- Microsoft Edge TTS (natural voices, async).
- Audio is streamed into memory as MP3 and handed back as bytes;
  playback happens on the client.
"""

import io
import logging

import edge_tts

from calltrainer import config

logger = logging.getLogger(__name__)


async def tts_to_mp3_bytes(text: str, voice: str, rate: str = config.TTS_RATE) -> bytes:
    """
    Use Edge TTS to synthesize `text` into MP3 bytes (in-memory),
    without playing locally.
    """
    mp3_fp = io.BytesIO()
    communicate = edge_tts.Communicate(text, voice=voice, rate=rate)

    # Stream audio chunks into memory
    async for chunk in communicate.stream():
        if chunk["type"] == "audio":
            mp3_fp.write(chunk["data"])

    return mp3_fp.getvalue()


class EdgeSpeechSynthesizer:
    """
    Fixed-voice patient speech. One instance serves every session.
    """

    def __init__(self, voice: str = config.PATIENT_VOICE, rate: str = config.TTS_RATE):
        self.voice = voice
        self.rate = rate

    async def synthesize(self, text: str) -> bytes:
        audio = await tts_to_mp3_bytes(text, voice=self.voice, rate=self.rate)
        if not audio:
            raise RuntimeError(f"Edge TTS returned no audio for voice {self.voice}")
        logger.debug("[TTS] voice=%s bytes=%d", self.voice, len(audio))
        return audio

"""
microphone.py

Push-to-talk microphone capture.

- Uses sounddevice to grab 16-bit mono audio from the default input.
- The stream is opened once and left running; frames are only kept
  between start_capture() and stop_capture().
- stop_capture() hands back one WAV clip ready for upload.
"""

import io
import logging
import threading
import wave

import numpy as np
import sounddevice as sd

from calltrainer import config
from calltrainer.errors import ClientEnvironmentError

logger = logging.getLogger(__name__)

MIC_HELP = (
    "Could not access microphone. Check that an input device is connected "
    "and that this terminal is allowed to use it."
)


def rms_int16(buf_bytes: bytes) -> float:
    # Quick RMS volume check to tell if someone's talking
    a = np.frombuffer(buf_bytes, dtype=np.int16)
    if a.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((a.astype(np.float32)) ** 2)))


def pcm_to_wav(pcm: bytes, sample_rate: int) -> bytes:
    wav_fp = io.BytesIO()
    with wave.open(wav_fp, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)  # int16
        w.setframerate(sample_rate)
        w.writeframes(pcm)
    return wav_fp.getvalue()


class SoundDeviceMicrophone:

    def __init__(self, sample_rate: int = config.MIC_SAMPLE_RATE, blocksize: int = 4000):
        self.sample_rate = sample_rate
        self._frames = bytearray()
        self._capturing = False
        self._lock = threading.Lock()

        def callback(indata, frames, time, status):
            if status:
                logger.debug("[MIC] %s", status)
            with self._lock:
                if self._capturing:
                    self._frames.extend(bytes(indata))

        try:
            self.stream = sd.RawInputStream(
                samplerate=sample_rate, blocksize=blocksize, dtype="int16",
                channels=1, callback=callback,
            )
            self.stream.start()
        except (sd.PortAudioError, OSError) as e:
            logger.error("Error accessing microphone: %s", e)
            raise ClientEnvironmentError(MIC_HELP) from e

    def start_capture(self) -> None:
        with self._lock:
            self._frames = bytearray()
            self._capturing = True

    def stop_capture(self) -> bytes:
        with self._lock:
            self._capturing = False
            pcm = bytes(self._frames)
            self._frames = bytearray()

        if not pcm:
            return b""
        logger.debug("[MIC] captured %.1fs rms=%.0f", len(pcm) / 2 / self.sample_rate, rms_int16(pcm))
        return pcm_to_wav(pcm, self.sample_rate)

    def close(self) -> None:
        self.stream.stop()
        self.stream.close()

"""
recorder.py

Microphone capture lifecycle for one training call.

    idle --begin--> recording --end--> busy --reply--> idle
                                        |
                                        +--failure--> error --> idle

Without a saved clinic profile the session is `blocked` and asks to be
redirected to setup instead of touching the microphone. The profile read
by the first capture stays fixed until the call ends. While `busy` the
capture control does nothing, so only one turn is ever in flight.
"""

from __future__ import annotations

import base64
import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol

from calltrainer.errors import ClientEnvironmentError, TrainerError
from calltrainer.models import ClinicProfile, Mode, PipelineResult, Turn, DEFAULT_MODE
from calltrainer.services.profile_store import ProfileProvider

logger = logging.getLogger(__name__)

SETUP_MISSING_MSG = "Clinic setup is missing. Go back and fill out Setup first."
EMPTY_CAPTURE_MSG = "Didn't catch any audio. Hold to talk a little longer."
TURN_FAILED_MSG = "The patient couldn't reply. Try that line again."
MIC_STOP_FAILED_MSG = "Recording stopped unexpectedly. Check the microphone and try again."


class RecorderState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    BUSY = "busy"
    ERROR = "error"
    BLOCKED = "blocked"


class Microphone(Protocol):
    def start_capture(self) -> None: ...
    def stop_capture(self) -> bytes: ...
    def close(self) -> None: ...


class TurnSubmitter(Protocol):
    def submit(self, audio: bytes, turns: List[Turn], profile: ClinicProfile, mode: Mode) -> PipelineResult: ...


class AudioPlayer(Protocol):
    def play(self, audio: bytes) -> None: ...


class RecordingSession:

    def __init__(
        self,
        profiles: ProfileProvider,
        client: TurnSubmitter,
        open_microphone: Callable[[], Microphone],
        player: AudioPlayer,
        mode: Mode = DEFAULT_MODE,
        on_redirect: Optional[Callable[[], None]] = None,
        on_state: Optional[Callable[[RecorderState], None]] = None,
    ):
        self.profiles = profiles
        self.client = client
        self.open_microphone = open_microphone
        self.player = player
        self.mode = mode
        self.on_redirect = on_redirect
        self.on_state = on_state

        self.turns: List[Turn] = []
        self.state = RecorderState.IDLE
        self.error: Optional[str] = None
        self.profile: Optional[ClinicProfile] = None
        self.mic: Optional[Microphone] = None  # opened once, reused every turn

    def _set_state(self, state: RecorderState) -> None:
        self.state = state
        if self.on_state:
            self.on_state(state)

    # ---------- capture controls ----------

    def begin_capture(self) -> RecorderState:
        # don't let them talk while the patient is replying
        if self.state in (RecorderState.BUSY, RecorderState.RECORDING):
            logger.debug("begin_capture ignored while %s", self.state.value)
            return self.state

        self.error = None
        # the profile is fixed for the whole call once it has been read
        if self.profile is None:
            self.profile = self.profiles.get_profile()
        if self.profile is None:
            self.error = SETUP_MISSING_MSG
            self._set_state(RecorderState.BLOCKED)
            if self.on_redirect:
                self.on_redirect()
            return self.state

        try:
            if self.mic is None:
                self.mic = self.open_microphone()
            self.mic.start_capture()
        except ClientEnvironmentError as e:
            self.error = str(e)
            self._set_state(RecorderState.IDLE)
            raise

        self._set_state(RecorderState.RECORDING)
        return self.state

    def cancel_capture(self) -> RecorderState:
        """Stop recording and throw the clip away."""
        if self.state == RecorderState.RECORDING:
            self._stop_mic()
            self._set_state(RecorderState.IDLE)
        return self.state

    def _stop_mic(self) -> bytes:
        try:
            return self.mic.stop_capture()
        except Exception as e:
            logger.error("Error stopping microphone capture: %s", e)
            self.error = MIC_STOP_FAILED_MSG
            self._set_state(RecorderState.IDLE)
            raise ClientEnvironmentError(MIC_STOP_FAILED_MSG) from e

    def end_capture(self) -> RecorderState:
        """
        Stop recording and send the clip off as the next staff turn.

        Returns the outcome of this turn (IDLE on success, ERROR on failure);
        either way the session is idle again afterwards.
        """
        if self.state != RecorderState.RECORDING:
            return self.state

        audio = self._stop_mic()
        if not audio:
            self.error = EMPTY_CAPTURE_MSG
            self._set_state(RecorderState.IDLE)
            return self.state

        self._set_state(RecorderState.BUSY)
        try:
            result = self.client.submit(audio, list(self.turns), self.profile, self.mode)
        except TrainerError as e:
            logger.warning("Turn failed, transcript left as is: %s", e)
            self.error = TURN_FAILED_MSG
            self._set_state(RecorderState.ERROR)
            self._set_state(RecorderState.IDLE)
            return RecorderState.ERROR
        except Exception:
            # never leave the control stuck on busy
            self._set_state(RecorderState.IDLE)
            raise

        self.turns = list(result.turns)
        self._play(result.audio_base64)
        self._set_state(RecorderState.IDLE)
        return self.state

    def _play(self, audio_b64: str) -> None:
        if not audio_b64:
            return
        try:
            self.player.play(base64.b64decode(audio_b64))
        except Exception as e:
            # the turn still counts, only playback is lost
            logger.error("Error playing patient audio: %s", e)

    # ---------- call lifecycle ----------

    def end_call(self) -> List[Turn]:
        """Finish the call. Returns the transcript and forgets it, along with the profile."""
        if self.state == RecorderState.RECORDING:
            self.cancel_capture()
        turns, self.turns = self.turns, []
        self.profile = None
        self.error = None
        if self.state != RecorderState.BUSY:
            self._set_state(RecorderState.IDLE)
        return turns

    def close(self) -> None:
        # release the microphone on teardown
        if self.mic is not None:
            self.mic.close()
            self.mic = None

import asyncio
import time

import pytest

from calltrainer.models import ClinicProfile


class FakeTranscriber:
    def __init__(self, text="Hi, we'd love to get you scheduled", error=None, delay=0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    def transcribe(self, audio: bytes) -> str:
        self.calls.append(audio)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.text


class FakeGenerator:
    def __init__(self, reply="How much is the first visit?", error=None):
        self.reply = reply
        self.error = error
        self.messages = None

    def generate(self, messages):
        self.messages = messages
        if self.error:
            raise self.error
        return self.reply


class FakeSynthesizer:
    def __init__(self, audio=b"ID3fake-mp3", error=None):
        self.audio = audio
        self.error = error
        self.texts = []

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.audio


class FakeProfiles:
    def __init__(self, profile=None):
        self.profile = profile

    def get_profile(self):
        return self.profile


class FakeMic:
    def __init__(self, clip=b"RIFFclip"):
        self.clip = clip
        self.started = 0
        self.closed = False
        self.stop_error = None

    def start_capture(self):
        self.started += 1

    def stop_capture(self):
        if self.stop_error:
            raise self.stop_error
        return self.clip

    def close(self):
        self.closed = True


class FakePlayer:
    def __init__(self, error=None):
        self.error = error
        self.played = []

    def play(self, audio):
        self.played.append(audio)
        if self.error:
            raise self.error


def make_profile(**overrides) -> ClinicProfile:
    data = {
        "clinicName": "Summit Spine & Wellness",
        "doctorName": "Dr. Patel",
        "firstVisitCost": 75,
        "address": "42 Oak Ave, Boise, ID",
        "officeHours": "Mon-Fri 8am-6pm",
        "services": {"decompression": True, "classIVLaser": False, "shockwave": False},
    }
    data.update(overrides)
    return ClinicProfile.model_validate(data)


@pytest.fixture
def profile() -> ClinicProfile:
    return make_profile()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()

import asyncio
import base64

import pytest

from conftest import FakeGenerator, FakeSynthesizer, FakeTranscriber

from calltrainer.errors import ClientInputError, ServiceError
from calltrainer.models import Mode, Turn
from calltrainer.services.turn_pipeline import advance_turn
from calltrainer.voice.llm import FILLER_REPLY


def _run(audio, history, profile, mode, transcriber, generator, synthesizer, timeout=5.0):
    return asyncio.run(
        advance_turn(
            audio,
            history,
            profile,
            mode,
            transcriber=transcriber,
            generator=generator,
            synthesizer=synthesizer,
            timeout=timeout,
        )
    )


def test_first_exchange_scenario(profile, generator, synthesizer) -> None:
    transcriber = FakeTranscriber(text="  Hi, we'd love to get you scheduled \n")
    result = _run(b"RIFF....", [], profile, "skeptical", transcriber, generator, synthesizer)

    assert result.staff_text == "Hi, we'd love to get you scheduled"
    assert len(result.turns) == 2
    assert result.turns[0] == Turn(speaker="staff", text="Hi, we'd love to get you scheduled")
    assert result.turns[1].speaker == "patient"

    system_prompt = generator.messages[0]["content"]
    assert generator.messages[0]["role"] == "system"
    assert "$75" in system_prompt
    assert "decompression" in system_prompt
    assert "laser" not in system_prompt.lower()
    assert "shockwave" not in system_prompt.lower()
    assert "skeptical" in system_prompt


def test_history_grows_by_exactly_two(profile, transcriber, generator, synthesizer) -> None:
    history = [
        Turn(speaker="staff", text="Good morning, Summit Spine."),
        Turn(speaker="patient", text="Hi, I saw your ad."),
    ]
    result = _run(b"audio", history, profile, Mode.EASY, transcriber, generator, synthesizer)

    assert len(result.turns) == 4
    assert result.turns[:2] == history
    assert [t.speaker for t in result.turns[-2:]] == ["staff", "patient"]
    # caller's list is untouched
    assert len(history) == 2


def test_history_alternation_is_not_enforced(profile, transcriber, generator, synthesizer) -> None:
    history = [Turn(speaker="patient", text="Hello?"), Turn(speaker="patient", text="Anyone there?")]
    result = _run(b"audio", history, profile, Mode.EASY, transcriber, generator, synthesizer)
    assert [t.speaker for t in result.turns] == ["patient", "patient", "staff", "patient"]


def test_generator_sees_full_history_with_new_staff_line(profile, transcriber, generator, synthesizer) -> None:
    history = [Turn(speaker="staff", text="Hello!"), Turn(speaker="patient", text="Hi.")]
    _run(b"audio", history, profile, Mode.EASY, transcriber, generator, synthesizer)

    assert [m["role"] for m in generator.messages] == ["system", "user", "assistant", "user"]
    assert generator.messages[-1]["content"] == "Hi, we'd love to get you scheduled"


def test_reply_is_trimmed_and_synthesized(profile, transcriber, synthesizer) -> None:
    generator = FakeGenerator(reply="\n  Do you take insurance?  ")
    result = _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer)

    assert result.patient_text == "Do you take insurance?"
    assert synthesizer.texts == ["Do you take insurance?"]
    assert base64.b64decode(result.audio_base64) == b"ID3fake-mp3"


@pytest.mark.parametrize("empty_reply", ["", "   ", None])
def test_empty_reply_uses_filler(profile, transcriber, synthesizer, empty_reply) -> None:
    generator = FakeGenerator(reply=empty_reply)
    result = _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer)

    assert result.patient_text == FILLER_REPLY
    assert result.turns[-1].text == FILLER_REPLY


def test_missing_audio_is_client_error(profile, transcriber, generator, synthesizer) -> None:
    with pytest.raises(ClientInputError):
        _run(b"", [], profile, Mode.EASY, transcriber, generator, synthesizer)
    assert transcriber.calls == []


@pytest.mark.parametrize("failing_stage", ["STT", "LLM", "TTS"])
def test_stage_failure_raises_service_error_without_partial_history(profile, failing_stage) -> None:
    boom = RuntimeError("quota exceeded")
    transcriber = FakeTranscriber(error=boom if failing_stage == "STT" else None)
    generator = FakeGenerator(error=boom if failing_stage == "LLM" else None)
    synthesizer = FakeSynthesizer(error=boom if failing_stage == "TTS" else None)
    history = [Turn(speaker="staff", text="Hello!"), Turn(speaker="patient", text="Hi.")]
    before = list(history)

    with pytest.raises(ServiceError) as exc_info:
        _run(b"audio", history, profile, Mode.EASY, transcriber, generator, synthesizer)

    assert exc_info.value.stage == failing_stage
    assert history == before


def test_later_stages_skipped_after_failure(profile, synthesizer) -> None:
    transcriber = FakeTranscriber(error=ConnectionError("whisper down"))
    generator = FakeGenerator()
    with pytest.raises(ServiceError):
        _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer)
    assert generator.messages is None
    assert synthesizer.texts == []


def test_slow_stage_times_out(profile, generator, synthesizer) -> None:
    transcriber = FakeTranscriber(delay=0.3)
    with pytest.raises(ServiceError) as exc_info:
        _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer, timeout=0.05)
    assert exc_info.value.stage == "STT"
    assert synthesizer.texts == []


def test_unusable_generator_output_is_service_error(profile, transcriber, synthesizer) -> None:
    generator = FakeGenerator(reply={"content": "not a string"})
    with pytest.raises(ServiceError) as exc_info:
        _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer)
    assert exc_info.value.stage == "LLM"


def test_empty_synthesized_audio_is_service_error(profile, transcriber, generator) -> None:
    synthesizer = FakeSynthesizer(audio=b"")
    with pytest.raises(ServiceError) as exc_info:
        _run(b"audio", [], profile, Mode.EASY, transcriber, generator, synthesizer)
    assert exc_info.value.stage == "TTS"


def test_unknown_mode_behaves_like_default(profile, transcriber, synthesizer) -> None:
    default_gen = FakeGenerator()
    odd_gen = FakeGenerator()
    _run(b"audio", [], profile, Mode.EASY, transcriber, default_gen, synthesizer)
    _run(b"audio", [], profile, "ultra-hard", transcriber, odd_gen, synthesizer)
    assert odd_gen.messages == default_gen.messages

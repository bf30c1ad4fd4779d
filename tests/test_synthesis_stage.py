from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from conftest import OUTPUT_BUCKET, FakeSpeechService
from mindspace.pipelines.voice import LocalAudioStore, SynthesisError, SynthesisStage
from mindspace.services import SpeechResult


def _stage(speech, store, local_audio, *, slot_mode="single") -> SynthesisStage:
    return SynthesisStage(
        speech,
        store,
        local_audio,
        output_bucket=OUTPUT_BUCKET,
        slot_mode=slot_mode,
        max_chars=2500,
    )


@pytest.mark.asyncio
async def test_single_slot_keeps_only_the_latest_audio(speech, store, local_audio) -> None:
    stage = _stage(speech, store, local_audio)

    first = await stage.run("First reply.", run_id="run-a")
    second = await stage.run("Second reply.", run_id="run-b")

    files = sorted(p.name for p in local_audio.directory.iterdir())
    assert files == ["current_audio.mp3"]
    assert (local_audio.directory / "current_audio.mp3").read_bytes() == b"audio-2"
    assert first.local_path == second.local_path
    assert second.public_path == "aud_op/current_audio.mp3"


@pytest.mark.asyncio
async def test_storage_keys_are_unique_per_call(speech, store, local_audio) -> None:
    stage = _stage(speech, store, local_audio)

    first = await stage.run("First reply.", run_id="run-a")
    second = await stage.run("Second reply.", run_id="run-b")

    assert first.storage.key != second.storage.key
    assert first.storage.key.startswith("polly-output-")
    assert first.storage.key.endswith(".mp3")
    assert store.objects[(OUTPUT_BUCKET, first.storage.key)] == (b"audio-1", "audio/mpeg")
    assert store.objects[(OUTPUT_BUCKET, second.storage.key)] == (b"audio-2", "audio/mpeg")


@pytest.mark.asyncio
async def test_single_slot_clears_stale_audio_but_not_other_files(speech, store, local_audio) -> None:
    local_audio.ensure_directory()
    (local_audio.directory / "old-run.mp3").write_bytes(b"stale")
    (local_audio.directory / "notes.txt").write_text("keep me")

    await _stage(speech, store, local_audio).run("Reply.", run_id="run-a")

    assert sorted(p.name for p in local_audio.directory.iterdir()) == [
        "current_audio.mp3",
        "notes.txt",
    ]


@pytest.mark.asyncio
async def test_per_run_files_do_not_overwrite_each_other(speech, store, local_audio) -> None:
    stage = _stage(speech, store, local_audio, slot_mode="per_run")

    first = await stage.run("First reply.", run_id="run-a")
    second = await stage.run("Second reply.", run_id="run-b")

    assert first.local_path.name == "run-a.mp3"
    assert second.local_path.name == "run-b.mp3"
    assert first.local_path.read_bytes() == b"audio-1"
    assert second.local_path.read_bytes() == b"audio-2"


@pytest.mark.asyncio
async def test_local_write_failure_still_uploads(speech, store, tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("file in the way")
    local_audio = LocalAudioStore(blocker / "aud_op")

    with pytest.raises(SynthesisError) as excinfo:
        await _stage(speech, store, local_audio).run("Reply.", run_id="run-a")

    error = excinfo.value
    assert error.kind == "local_write"
    assert error.artifact.local_path is None
    assert error.artifact.storage is not None
    assert store.objects[(OUTPUT_BUCKET, error.artifact.storage.key)][0] == b"audio-1"


@pytest.mark.asyncio
async def test_both_writes_failing_is_reported_once(speech, store, tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("file in the way")
    store.fail_puts_to.add(OUTPUT_BUCKET)

    with pytest.raises(SynthesisError) as excinfo:
        await _stage(speech, store, LocalAudioStore(blocker / "aud_op")).run("Reply.", run_id="r")

    assert excinfo.value.kind == "local_and_storage_write"
    assert excinfo.value.artifact.audio_bytes == b"audio-1"


@pytest.mark.asyncio
async def test_service_failure_writes_nothing(store, local_audio) -> None:
    from mindspace.services import SpeechServiceError

    speech = FakeSpeechService(error=SpeechServiceError("Polly returned no audio stream."))

    with pytest.raises(SynthesisError) as excinfo:
        await _stage(speech, store, local_audio).run("Reply.", run_id="run-a")

    assert excinfo.value.kind == "service"
    assert not local_audio.directory.exists()
    assert store.keys(OUTPUT_BUCKET) == []


class OggSpeechService(FakeSpeechService):
    async def synthesize(self, text, *, voice_id=None, output_format=None) -> SpeechResult:
        result = await super().synthesize(text, voice_id=voice_id, output_format="ogg_vorbis")
        return replace(result, media_type="audio/ogg", extension=".ogg")


@pytest.mark.asyncio
async def test_single_slot_is_named_after_the_audio_format(store, local_audio) -> None:
    local_audio.ensure_directory()
    (local_audio.directory / "current_audio.mp3").write_bytes(b"stale mp3")

    artifact = await _stage(OggSpeechService(), store, local_audio).run("Reply.", run_id="run-a")

    assert artifact.public_path == "aud_op/current_audio.ogg"
    assert [p.name for p in local_audio.directory.iterdir()] == ["current_audio.ogg"]
    assert artifact.storage.key.endswith(".ogg")


@pytest.mark.asyncio
async def test_per_run_directory_stays_bounded(speech, store, tmp_path: Path) -> None:
    local_audio = LocalAudioStore(tmp_path / "public" / "aud_op", max_files=2)
    stage = _stage(speech, store, local_audio, slot_mode="per_run")

    artifacts = [await stage.run(f"Reply {i}.", run_id=f"run-{i}") for i in range(5)]

    files = list(local_audio.directory.iterdir())
    assert len(files) == 2
    assert artifacts[-1].local_path in files
    assert len(store.keys(OUTPUT_BUCKET)) == 5

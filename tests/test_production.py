import asyncio
import json

import httpx

from storyflow.core.config import Config, AudioConfig, ImageConfig
from storyflow.models.stage import Stage
from storyflow.session import AudioState, FailureKind
from storyflow.workflow.production import OperationStatus, ProductionSession

STORY = "The storm rolled in over the island. Mara climbed the tower and lit the lamp."


def image_response(url):
    return httpx.Response(200, json={"status": "success", "image_url": url})


async def prepared(session):
    """Analyze the story and generate scenes."""
    assert (await session.analyze_script(STORY)).ok
    assert (await session.generate_scenes()).ok
    return session


def gated(body_factory):
    """Responder that blocks until released, and signals when reached."""
    started = asyncio.Event()
    release = asyncio.Event()

    async def responder(request):
        started.set()
        await release.wait()
        return body_factory()

    return responder, started, release


# ----------------------------------------------------------------------------
# Script analysis
# ----------------------------------------------------------------------------


def test_empty_script_is_rejected_without_a_request(session, services):
    result = asyncio.run(session.analyze_script(""))

    assert result.status == OperationStatus.REJECTED_INVALID
    assert result.failure.kind == FailureKind.VALIDATION
    assert services.calls == []
    assert session.store.error("script").kind == FailureKind.VALIDATION
    assert session.store.analysis is None


def test_analysis_success_clears_previous_error(session, services):
    async def scenario():
        services.responders[services.SCRIPT] = lambda request: httpx.Response(
            422, json={"detail": "Story must be in English"}
        )
        failed = await session.analyze_script(STORY)
        services.responders[services.SCRIPT] = lambda request: httpx.Response(
            200, json={"story_title": "Storm"}
        )
        succeeded = await session.analyze_script()
        return failed, succeeded

    failed, succeeded = asyncio.run(scenario())

    assert failed.status == OperationStatus.FAILED
    assert failed.failure.kind == FailureKind.SERVER_REJECTED
    assert failed.failure.message == "Story must be in English"
    assert succeeded.ok
    assert succeeded.value.title == "Storm"
    assert session.store.error("script") is None
    assert services.calls_to(services.SCRIPT)[1] == {"story": STORY}


def test_failed_analysis_keeps_previous_analysis(session, services):
    def refuse(request):
        raise httpx.ConnectError("no route to host", request=request)

    async def scenario():
        await session.analyze_script(STORY)
        services.responders[services.SCRIPT] = refuse
        return await session.analyze_script("A different story")

    result = asyncio.run(scenario())

    assert result.status == OperationStatus.FAILED
    assert result.failure.kind == FailureKind.TRANSPORT
    assert result.failure.message == "Failed to analyze script. Please try again."
    assert session.store.analysis.title == "The Lighthouse Keeper"


def test_second_trigger_while_in_flight_is_rejected(session, services):
    async def scenario():
        responder, started, release = gated(lambda: httpx.Response(200, json={"story_title": "Storm"}))
        services.responders[services.SCRIPT] = responder

        first = asyncio.create_task(session.analyze_script(STORY))
        await started.wait()
        assert session.gate.is_in_flight("script")
        second = await session.analyze_script(STORY)
        release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.ok
    assert second.status == OperationStatus.REJECTED_IN_PROGRESS
    assert len(services.calls_to(services.SCRIPT)) == 1
    assert not session.gate.in_flight()
    assert session.store.error("script") is None


def test_rejected_trigger_keeps_script_text(session, services):
    async def scenario():
        responder, started, release = gated(lambda: httpx.Response(200, json={"story_title": "Storm"}))
        services.responders[services.SCRIPT] = responder

        first = asyncio.create_task(session.analyze_script("Story A"))
        await started.wait()
        second = await session.analyze_script("Story B")
        text_while_in_flight = session.store.script_text
        release.set()
        return await first, second, text_while_in_flight

    first, second, text_while_in_flight = asyncio.run(scenario())

    assert first.ok
    assert second.status == OperationStatus.REJECTED_IN_PROGRESS
    assert text_while_in_flight == "Story A"
    assert session.store.script_text == "Story A"
    assert services.calls_to(services.SCRIPT) == [{"story": "Story A"}]


# ----------------------------------------------------------------------------
# Scenes
# ----------------------------------------------------------------------------


def test_generate_scenes_requires_analysis(session, services):
    session.store.set_script_text(STORY)
    result = asyncio.run(session.generate_scenes())
    assert result.status == OperationStatus.REJECTED_INVALID
    assert services.calls == []


def test_regeneration_discards_scene_edits(session, services):
    async def scenario():
        await prepared(session)
        session.scene_editor.edit_field(1, "mood", "Hopeful")
        return await session.generate_scenes()

    result = asyncio.run(scenario())

    assert result.ok
    assert result.discarded_edits is True
    assert session.store.scene(1).mood == "Tense"
    assert len(session.store.scenes) == 3


def test_scene_preferences_are_frozen_while_generating(session, services):
    async def scenario():
        await session.analyze_script(STORY)
        assert session.update_scene_preferences(genre="comedy").ok

        responder, started, release = gated(lambda: httpx.Response(200, json=[{"scene": "Only"}]))
        services.responders[services.SCENES] = responder
        task = asyncio.create_task(session.generate_scenes())
        await started.wait()
        during = session.update_scene_preferences(genre="thriller")
        release.set()
        await task
        after = session.update_scene_preferences(tone="dark")
        return during, after

    during, after = asyncio.run(scenario())

    assert during.status == OperationStatus.REJECTED_IN_PROGRESS
    assert after.ok
    assert session.store.scene_preferences.genre.value == "comedy"
    assert services.calls_to(services.SCENES)[0]["preferences"]["genre"] == "comedy"


def test_invalid_scene_preference(session):
    result = session.update_scene_preferences(style="watercolor")
    assert result.status == OperationStatus.REJECTED_INVALID
    assert session.store.scene_preferences.style.value == "realistic"


# ----------------------------------------------------------------------------
# Scene images
# ----------------------------------------------------------------------------


def test_image_quota_stops_at_three(session, services):
    async def scenario():
        await prepared(session)
        return [await session.generate_scene_image(0) for _ in range(4)]

    results = asyncio.run(scenario())

    assert [r.status for r in results] == [OperationStatus.SUCCEEDED] * 3 + [OperationStatus.REJECTED_QUOTA]
    assert results[3].failure.kind == FailureKind.QUOTA_EXCEEDED
    assert len(services.calls_to(services.IMAGE)) == 3
    scene = session.store.scene(0)
    assert scene.generated_image_count == len(scene.image_urls) == 3


def test_concurrent_triggers_for_one_scene(session, services):
    async def scenario():
        await prepared(session)
        responder, started, release = gated(lambda: image_response("https://cdn.example.com/one.png"))
        services.responders[services.IMAGE] = responder

        first = asyncio.create_task(session.generate_scene_image(2))
        await started.wait()
        others = await asyncio.gather(*(session.generate_scene_image(2) for _ in range(4)))
        release.set()
        return await first, others

    first, others = asyncio.run(scenario())

    assert first.ok
    assert all(r.status == OperationStatus.REJECTED_IN_PROGRESS for r in others)
    assert session.store.scene(2).image_urls == ("https://cdn.example.com/one.png",)
    assert session.quota.pending(2) == 0


def test_results_for_different_scenes_land_by_index(session, services):
    async def scenario():
        await prepared(session)

        async def out_of_order(request):
            index = int(json.loads(request.content)["scene"].split()[-1])
            # Later scenes answer first
            await asyncio.sleep(0.01 * (4 - index))
            return image_response(f"https://cdn.example.com/scene-{index}.png")

        services.responders[services.IMAGE] = out_of_order
        return await asyncio.gather(*(session.generate_scene_image(i) for i in range(3)))

    results = asyncio.run(scenario())

    assert all(r.ok for r in results)
    for i, scene in enumerate(session.store.scenes):
        assert scene.image_urls == (f"https://cdn.example.com/scene-{i + 1}.png",)


def test_image_failure_releases_reservation(session, services):
    async def scenario():
        await prepared(session)
        services.responders[services.IMAGE] = lambda request: httpx.Response(
            200, json={"status": "failed", "error": "Prompt rejected by safety filter"}
        )
        failed = await session.generate_scene_image(0)
        services.responders[services.IMAGE] = lambda request: image_response("https://cdn.example.com/ok.png")
        succeeded = await session.generate_scene_image(0)
        return failed, succeeded

    failed, succeeded = asyncio.run(scenario())

    assert failed.status == OperationStatus.FAILED
    assert failed.failure.message == "Prompt rejected by safety filter"
    assert succeeded.ok
    assert session.store.scene(0).image_urls == ("https://cdn.example.com/ok.png",)
    assert session.store.error("scenes:0") is None
    assert session.quota.pending(0) == 0


def test_image_for_replaced_scenes_is_discarded(session, services):
    async def scenario():
        await prepared(session)
        responder, started, release = gated(lambda: image_response("https://cdn.example.com/late.png"))
        services.responders[services.IMAGE] = responder

        image = asyncio.create_task(session.generate_scene_image(0))
        await started.wait()
        regenerated = await session.generate_scenes()
        release.set()
        return await image, regenerated

    image, regenerated = asyncio.run(scenario())

    assert regenerated.ok
    assert image.status == OperationStatus.DISCARDED
    assert all(scene.generated_image_count == 0 for scene in session.store.scenes)
    assert session.quota.pending(0) == 0
    assert not session.gate.in_flight()


def test_image_for_unknown_scene(session, services):
    result = asyncio.run(session.generate_scene_image(0))
    assert result.status == OperationStatus.REJECTED_INVALID
    assert services.calls == []


def test_download_scene_image(session, downloads):
    async def scenario():
        await prepared(session)
        await session.generate_scene_image(1)
        ok = await session.download_scene_image(1, 0, "scene-2.png")
        missing = await session.download_scene_image(1, 1, "scene-2b.png")
        return ok, missing

    ok, missing = asyncio.run(scenario())

    assert ok.ok and ok.value == "scene-2.png"
    assert downloads.saved == [("https://cdn.example.com/image-1.png", "scene-2.png")]
    assert missing.status == OperationStatus.REJECTED_INVALID


# ----------------------------------------------------------------------------
# Audio
# ----------------------------------------------------------------------------


def test_synthesize_script_narration(session, services):
    async def scenario():
        await session.analyze_script(STORY)
        return await session.synthesize_audio()

    result = asyncio.run(scenario())

    assert result.ok
    assert session.audio.state == AudioState.READY
    assert session.audio.audio.url == "https://cdn.example.com/narration.mp3"
    payload = services.calls_to(services.SPEECH)[0]
    assert payload["text"] == STORY
    assert payload["voice_settings"]["voice_id"] == "Ruth"


def test_long_narration_is_cut_before_sending(session, services):
    asyncio.run(session.synthesize_audio("z" * 1500))
    assert services.calls_to(services.SPEECH)[0]["text"] == "z" * 1000


def test_failed_synthesis_releases_previous_audio(session, services):
    async def scenario():
        first = await session.synthesize_audio("Hello there")
        services.responders[services.SPEECH] = lambda request: httpx.Response(200, json={})
        second = await session.synthesize_audio("Hello again")
        return first, second

    first, second = asyncio.run(scenario())

    assert first.ok
    assert second.status == OperationStatus.FAILED
    assert second.failure.kind == FailureKind.MALFORMED_RESPONSE
    assert second.failure.message == "Failed to generate audio. Please try again."
    assert session.audio.state == AudioState.FAILED
    assert session.audio.audio is None
    assert session.store.error("audio") is not None


def test_blank_narration_is_rejected(session, services):
    result = asyncio.run(session.synthesize_audio("  "))
    assert result.status == OperationStatus.REJECTED_INVALID
    assert session.audio.state == AudioState.IDLE
    assert services.calls == []


def test_unspeakable_narration_keeps_previous_track(session, services):
    async def scenario():
        first = await session.synthesize_audio("Hello there")
        second = await session.synthesize_audio("\x00\x01\x02")
        return first, second

    first, second = asyncio.run(scenario())

    assert first.ok
    assert second.status == OperationStatus.REJECTED_INVALID
    assert session.audio.state == AudioState.READY
    assert session.audio.audio.url == "https://cdn.example.com/narration.mp3"
    assert len(services.calls_to(services.SPEECH)) == 1


def test_engine_switch_resets_voice(session):
    result = session.update_audio_preferences(engine="standard")
    assert result.ok
    prefs = session.store.audio_preferences
    assert (prefs.language_code, prefs.voice_id) == ("en-US", "Joanna")


def test_invalid_audio_preferences_leave_selection_unchanged(session):
    result = session.update_audio_preferences(engine="neural", voice_id="Ruth")
    assert result.status == OperationStatus.REJECTED_INVALID
    assert session.store.audio_preferences.engine.value == "generative"
    assert session.store.audio_preferences.voice_id == "Ruth"


def test_download_audio(session, downloads):
    async def scenario():
        before = await session.download_audio("narration.mp3")
        await session.synthesize_audio("Hello")
        after = await session.download_audio("narration.mp3")
        return before, after

    before, after = asyncio.run(scenario())

    assert before.status == OperationStatus.FAILED
    assert after.ok
    assert downloads.saved == [("https://cdn.example.com/narration.mp3", "narration.mp3")]


# ----------------------------------------------------------------------------
# Whole workflow
# ----------------------------------------------------------------------------


def test_full_workflow(session, services):
    async def scenario():
        assert not session.advance()
        assert (await session.analyze_script(STORY)).ok
        assert session.advance()
        assert session.current_stage == Stage.SCENES
        assert not session.advance()

        assert (await session.generate_scenes()).ok
        assert (await session.generate_scene_image(0)).ok
        assert session.advance()

        assert (await session.synthesize_audio()).ok
        assert session.advance()
        assert session.update_captions("format", type="VTT").ok
        assert session.advance()
        assert not session.advance()

    asyncio.run(scenario())

    assert session.current_stage == Stage.RENDER
    summary = session.project_summary()
    assert summary["title"] == "The Lighthouse Keeper"
    assert summary["description"] == STORY[:100] + "..."
    assert summary["status"] == "active"
    assert summary["scene_count"] == 3
    assert summary["image_count"] == 1
    assert summary["has_audio"] is True
    assert session.render_captions().startswith("WEBVTT")

    snapshot = session.to_dict()
    assert snapshot["stage"]["current"] == 5
    assert snapshot["audio"]["state"] == "ready"
    assert snapshot["in_flight"] == []


def test_project_summary_defaults(session):
    session.store.set_script_text("Short")
    summary = session.project_summary()
    assert summary["title"] == "New Script"
    assert summary["description"] == "Short..."


def test_session_uses_config(client):
    config = Config(
        images=ImageConfig(width=640, height=360, engine="turbo", max_per_scene=1),
        audio=AudioConfig(engine="standard", sample_rate=16000),
    )
    session = ProductionSession(client, config=config)

    assert session.quota.limit == 1
    assert session.image_settings.to_dict() == {"width": 640, "height": 360, "engine": "turbo"}
    prefs = session.store.audio_preferences
    assert (prefs.engine.value, prefs.voice_id, prefs.sample_rate) == ("standard", "Joanna", 16000)


def test_invalid_caption_update(session):
    result = session.update_captions("format", split_strategy="paragraph")
    assert result.status == OperationStatus.REJECTED_INVALID
    assert session.store.caption_settings.format.split_strategy == "sentence"


def test_close_releases_everything(session):
    asyncio.run(session.close())
    assert session.audio.state == AudioState.IDLE

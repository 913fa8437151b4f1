import pytest

from storyflow.core.exceptions import ValidationError, MalformedResponseError
from storyflow.models.audio import AudioPreferences
from storyflow.models.captions import CaptionSettings
from storyflow.models.scene import (
    Genre,
    ImageSettings,
    Pacing,
    Scene,
    ScenePreferences,
    SceneStyle,
    Tone,
)
from storyflow.models.script import Character, ScriptAnalysis
from storyflow.models.stage import Stage
from storyflow.models.voices import (
    AudioEngine,
    default_selection,
    engine_voices,
    is_valid_selection,
    language_codes,
)


# ----------------------------------------------------------------------------
# Script
# ----------------------------------------------------------------------------


def test_script_analysis_from_response():
    analysis = ScriptAnalysis.from_response({
        "story_title": "Night Shift",
        "characters": [{"name": "Ana", "description": "Nurse"}, "not a character"],
        "setting": {"location": "Hospital", "time": "2am"},
        "plot": ["Alarm", "Rescue"],
        "moral": "Stay calm",
    })
    assert analysis.title == "Night Shift"
    assert analysis.characters == (Character("Ana", "Nurse"),)
    assert analysis.setting.location == "Hospital"
    assert analysis.plot == ("Alarm", "Rescue")
    assert analysis.to_dict()["story_title"] == "Night Shift"


@pytest.mark.parametrize("body", [None, [], "text", {"characters": []}, {"story_title": ""}])
def test_script_analysis_malformed(body):
    with pytest.raises(MalformedResponseError):
        ScriptAnalysis.from_response(body)


def test_character_validation_and_edit():
    with pytest.raises(ValidationError):
        Character(name="   ").validate()
    character = Character("Ana", "Nurse")
    assert character.with_field("description", "Doctor") == Character("Ana", "Doctor")
    with pytest.raises(ValidationError):
        character.with_field("age", "40")


# ----------------------------------------------------------------------------
# Scenes
# ----------------------------------------------------------------------------


def test_scene_wire_mapping():
    scene = Scene.from_response({"scene": "A dark pier", "mood": "Eerie", "timeline": None})
    assert scene.description == "A dark pier"
    assert scene.timeline == ""
    assert scene.generated_image_count == 0

    payload = scene.to_payload()
    assert payload["scene"] == "A dark pier"
    assert "description" not in payload
    assert "image_urls" not in payload


def test_scene_from_response_rejects_non_objects():
    with pytest.raises(MalformedResponseError):
        Scene.from_response(["scene"])


def test_scene_images_are_capped_at_three():
    scene = Scene(description="x")
    for i in range(3):
        scene = scene.with_image(f"https://cdn.example.com/{i}.png")
    assert scene.generated_image_count == len(scene.image_urls) == 3
    assert not scene.can_generate_image
    with pytest.raises(ValidationError):
        scene.with_image("https://cdn.example.com/4.png")


def test_scene_with_field():
    scene = Scene(description="x", mood="calm")
    edited = scene.with_field("mood", "angry")
    assert edited.mood == "angry"
    assert scene.mood == "calm"
    with pytest.raises(ValidationError):
        scene.with_field("image_urls", "nope")


def test_scene_preferences():
    prefs = ScenePreferences()
    assert (prefs.genre, prefs.style, prefs.tone, prefs.pacing) == (
        Genre.DRAMA, SceneStyle.REALISTIC, Tone.NEUTRAL, Pacing.MODERATE,
    )
    updated = prefs.with_values(genre="comedy", pacing=Pacing.FAST)
    assert updated.to_dict() == {"genre": "comedy", "style": "realistic", "tone": "neutral", "pacing": "fast"}
    with pytest.raises(ValidationError):
        prefs.with_values(genre="western")
    with pytest.raises(ValidationError):
        prefs.with_values(color="blue")


def test_image_settings_engine_takes_priority():
    assert ImageSettings(512, 512, engine="fast", resolution="512x512").to_dict() == {
        "width": 512, "height": 512, "engine": "fast",
    }
    assert ImageSettings(512, 512, resolution="512x512").to_dict()["resolution"] == "512x512"


# ----------------------------------------------------------------------------
# Voices and audio preferences
# ----------------------------------------------------------------------------


def test_default_selections():
    assert default_selection(AudioEngine.GENERATIVE) == ("en-US", "Ruth")
    assert default_selection(AudioEngine.STANDARD) == ("en-US", "Joanna")
    assert default_selection("long-form") == ("en-US", "Patrick")
    assert default_selection("neural") == ("en-US", "Joanna")


def test_voice_catalog_lookups():
    assert language_codes("standard") == ["en-US"]
    assert [v.voice_id for v in engine_voices("generative", "fr-FR")] == ["Léa", "Rémi"]
    assert is_valid_selection("neural", "hi-IN", "Aditi")
    assert not is_valid_selection("standard", "es-ES", "Lucia")
    with pytest.raises(ValidationError):
        engine_voices("standard", "fr-FR")
    with pytest.raises(ValidationError):
        AudioEngine.parse("robotic")


def test_engine_switch_resets_language_and_voice():
    prefs = AudioPreferences().with_language("es-ES").with_voice("Sergio")
    switched = prefs.with_engine("standard")
    assert switched.engine == AudioEngine.STANDARD
    assert (switched.language_code, switched.voice_id) == ("en-US", "Joanna")


def test_language_switch_resets_voice():
    prefs = AudioPreferences().with_voice("Matthew").with_language("es-ES")
    assert prefs.voice_id == "Pedro"


def test_audio_preferences_validation():
    with pytest.raises(ValidationError):
        AudioPreferences(voice_id="Pedro")
    with pytest.raises(ValidationError):
        AudioPreferences().with_voice("Pedro")
    with pytest.raises(ValidationError):
        AudioPreferences(sample_rate=44100)
    with pytest.raises(ValidationError):
        AudioPreferences(speech_rate=201)
    with pytest.raises(ValidationError):
        AudioPreferences().with_options(volume=3)
    assert AudioPreferences().with_options(speech_rate=20, ssml=True).ssml is True


def test_audio_request_settings():
    prefs = AudioPreferences.for_engine("neural", sample_rate=16000, speech_rate=120)
    assert prefs.voice_settings() == {
        "language_code": "en-US",
        "voice_id": "Joanna",
        "engine": "neural",
        "speech_rate": 120,
    }
    assert prefs.audio_settings() == {"sample_rate": 16000}


# ----------------------------------------------------------------------------
# Captions and stages
# ----------------------------------------------------------------------------


def test_caption_defaults_and_updates():
    settings = CaptionSettings()
    assert settings.format.type == "SRT"
    assert settings.timing.word_duration == 0.3

    updated = settings.updated("format", type="VTT", max_characters_per_line=32)
    assert updated.format.type == "VTT"
    assert settings.format.type == "SRT"

    with pytest.raises(ValidationError):
        settings.updated("format", type="ASS")
    with pytest.raises(ValidationError):
        settings.updated("sparkle", enabled=True)
    with pytest.raises(ValidationError):
        settings.updated("font", kerning=2)
    with pytest.raises(ValidationError):
        settings.updated("timing", min_duration=8.0)


def test_caption_settings_from_dict():
    settings = CaptionSettings.from_dict({"position": {"vertical": "top"}})
    assert settings.position.vertical == "top"
    assert settings.to_dict()["position"]["horizontal"] == "center"
    with pytest.raises(ValidationError):
        CaptionSettings.from_dict({"font": {"unknown": 1}})


def test_stage_order_and_titles():
    assert [s.value for s in Stage] == [1, 2, 3, 4, 5]
    assert Stage.first() is Stage.SCRIPT
    assert Stage.last() is Stage.RENDER
    assert Stage.CAPTIONS.title == "Captions"

import json

import pytest

from settings import EngineSettings, ThresholdStore, configure, get_settings, get_threshold_store


def test_defaults():
    settings = EngineSettings()
    assert settings.min_confidence == 0.4
    assert settings.max_hold_gap_seconds == 0.5
    assert settings.keypoint_layout == "movenet"


def test_from_env():
    settings = EngineSettings.from_env(
        {
            "REPCOACH_MIN_CONFIDENCE": "0.6",
            "REPCOACH_MAX_HOLD_GAP_MS": "250",
            "REPCOACH_KEYPOINT_LAYOUT": "mediapipe",
        }
    )
    assert settings.min_confidence == 0.6
    assert settings.side_confidence == 0.5
    assert settings.max_hold_gap_seconds == pytest.approx(0.25)
    assert settings.keypoint_layout == "mediapipe"
    assert settings.thresholds_file is None


@pytest.mark.parametrize(
    "environ",
    [
        {"REPCOACH_MIN_CONFIDENCE": "high"},
        {"REPCOACH_SIDE_CONFIDENCE": "1.5"},
        {"REPCOACH_MAX_HOLD_GAP_MS": "0"},
    ],
)
def test_invalid_env_values_raise(environ):
    with pytest.raises(ValueError):
        EngineSettings.from_env(environ)


def test_threshold_store_round_trip(tmp_path):
    path = tmp_path / "thresholds.json"
    store = ThresholdStore(path)
    assert store.overrides_for("squat") == {}

    store.set_override("squat", contracted_threshold=110, form_limits={"knee_over_ankle": 40})
    store.set_override("squat", form_limits={"other": 1})
    store.save()

    reloaded = ThresholdStore(path)
    assert reloaded.overrides_for("squat") == {
        "contracted_threshold": 110,
        "form_limits": {"knee_over_ankle": 40, "other": 1},
    }
    assert reloaded.clear("squat")
    assert not reloaded.clear("squat")


def test_threshold_store_skips_malformed_entries(tmp_path):
    path = tmp_path / "thresholds.json"
    path.write_text(json.dumps({"exercises": {"squat": 5, "plank": {"form_limits": {"body_line": 40}}}}))
    store = ThresholdStore(path)
    assert store.overrides_for("squat") == {}
    assert store.overrides_for("plank") == {"form_limits": {"body_line": 40}}


def test_unreadable_store_raises(tmp_path):
    path = tmp_path / "thresholds.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        ThresholdStore(path)


def test_store_without_file_cannot_save():
    with pytest.raises(ValueError):
        ThresholdStore().save()


def test_overrides_apply_to_config():
    from exercises import EXERCISE_REGISTRY

    squat = EXERCISE_REGISTRY["squat"]
    tuned = squat.with_overrides({"contracted_threshold": 100, "form_limits": {"knee_over_ankle": 40}, "bogus": 1})
    assert tuned.contracted_threshold == 100.0
    assert tuned.form_limits == {"knee_over_ankle": 40.0}
    assert squat.contracted_threshold == 120
    assert squat.with_overrides({}) is squat


def test_configure_replaces_process_settings():
    custom = EngineSettings(min_confidence=0.7)
    store = ThresholdStore()
    configure(custom, store)
    assert get_settings() is custom
    assert get_threshold_store() is store

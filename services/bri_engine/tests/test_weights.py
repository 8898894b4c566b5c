import pytest

from bri_engine.errors import ConfigurationError
from bri_engine.models import WeightConfigVersion
from bri_engine.weights import (
    default_config,
    ensure_default_config,
    get_active_config,
    list_config_versions,
    save_config,
    validate_weight_config,
)


def test_default_config_is_valid() -> None:
    config = default_config()
    validate_weight_config(config)
    assert config.weights() == {"attendance": 0.25, "marks": 0.25, "assignments": 0.20, "sentiment": 0.30}
    assert (config.low_risk_threshold, config.high_risk_threshold) == (0.33, 0.66)


def test_weight_sum_tolerance() -> None:
    near = default_config().model_copy(update={"sentiment_weight": 0.305})
    validate_weight_config(near)

    off = default_config().model_copy(update={"sentiment_weight": 0.35})
    with pytest.raises(ConfigurationError, match="sum to 1.0"):
        validate_weight_config(off)


@pytest.mark.parametrize(("low", "high"), [(0.5, 0.5), (0.7, 0.4)])
def test_thresholds_must_be_strictly_ordered(low: float, high: float) -> None:
    config = default_config().model_copy(update={"low_risk_threshold": low, "high_risk_threshold": high})
    with pytest.raises(ConfigurationError, match="strictly below"):
        validate_weight_config(config)


def test_seeding_happens_once(db) -> None:
    first = ensure_default_config(db)
    second = ensure_default_config(db)

    assert first.id == second.id
    assert first.version == 1
    assert db.query(WeightConfigVersion).count() == 1


def test_save_appends_new_active_version(db) -> None:
    ensure_default_config(db)
    update = default_config().model_copy(update={"attendance_weight": 0.40, "sentiment_weight": 0.15})

    row = save_config(db, update, updated_by="admin-1")

    assert row.version == 2
    assert row.updated_by == "admin-1"
    active = get_active_config(db)
    assert active.version == 2
    assert active.attendance_weight == 0.40
    assert [r.version for r in list_config_versions(db)] == [2, 1]


def test_rejected_config_leaves_previous_active(db) -> None:
    ensure_default_config(db)
    bad = default_config().model_copy(update={"low_risk_threshold": 0.8})

    with pytest.raises(ConfigurationError):
        save_config(db, bad, updated_by="admin-1")

    assert get_active_config(db).version == 1
    assert db.query(WeightConfigVersion).count() == 1

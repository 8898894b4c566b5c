import pytest

from bri_engine.schemas import SentimentLabel
from bri_engine.sentiment import label_for, score_text


def test_empty_text_is_neutral_baseline() -> None:
    assert score_text("") == (0.5, "Neutral")
    assert score_text("   \n\t ") == (0.5, SentimentLabel.NEUTRAL)
    assert score_text(None) == (0.5, SentimentLabel.NEUTRAL)


def test_stress_words_weigh_more_than_generic_negativity() -> None:
    score, label = score_text("I am stressed and overwhelmed")
    assert score == pytest.approx(0.10)
    assert label == SentimentLabel.NEGATIVE

    generic, _ = score_text("I am sad and angry")
    assert generic == pytest.approx(0.20)
    assert score < generic


def test_positive_words_lift_score() -> None:
    score, label = score_text("Great class, the lab was AMAZING")
    # "class," не совпадает со словарём: пунктуация не отрезается
    assert score == pytest.approx(0.7)
    assert label == SentimentLabel.POSITIVE


def test_tokens_with_punctuation_do_not_match() -> None:
    assert score_text("stressed.") == (0.5, SentimentLabel.NEUTRAL)


def test_clamping_happens_once_at_the_end() -> None:
    # 0.5 + 0.8 - 0.2 = 1.1 → 1.0: промежуточная сумма не ограничивается
    text = " ".join(["great"] * 8 + ["tired"])
    score, label = score_text(text)
    assert score == pytest.approx(1.0)
    assert label == SentimentLabel.POSITIVE

    score, label = score_text("exhausted " * 10)
    assert score == 0.0
    assert label == SentimentLabel.NEGATIVE


@pytest.mark.parametrize(
    ("score", "label"),
    [
        (0.6, SentimentLabel.POSITIVE),
        (0.59, SentimentLabel.NEUTRAL),
        (0.4, SentimentLabel.NEUTRAL),
        (0.39, SentimentLabel.NEGATIVE),
    ],
)
def test_label_thresholds(score: float, label: SentimentLabel) -> None:
    assert label_for(score) == label

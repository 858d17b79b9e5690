"""Tests for the schedule state machine, clock helpers and interval previews."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from cardwise.application.scheduler import (
    add_minutes,
    calculate_next_review,
    create_initial_schedule,
    format_interval,
    is_due,
    preview_intervals,
    study_day_start,
    update_ease_factor,
)
from cardwise.domain.errors import InvalidEaseError
from cardwise.domain.scheduling.models import CardSchedule, CardState, Ease


def _zone(name: str):
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        pytest.skip(f"tz database has no {name}")


class TestClockHelpers:
    def test_initial_schedule(self, now):
        schedule = create_initial_schedule(now)
        assert schedule == CardSchedule(due=now)

    def test_is_due(self, new_schedule, now):
        assert is_due(replace(new_schedule, due=now - timedelta(days=1)), now)
        assert is_due(new_schedule, now)
        assert not is_due(replace(new_schedule, due=now + timedelta(days=1)), now)

    def test_study_day_start_after_reset(self):
        start = study_day_start(datetime(2024, 1, 15, 10, 0))
        assert start == datetime(2024, 1, 15, 4, 0)

    def test_study_day_start_before_reset(self):
        start = study_day_start(datetime(2024, 1, 15, 3, 0))
        assert start == datetime(2024, 1, 14, 4, 0)

    def test_study_day_start_custom_hour(self):
        start = study_day_start(datetime(2024, 3, 1, 5, 59, 30), reset_hour=6)
        assert start == datetime(2024, 2, 29, 6, 0)

    def test_review_days_keep_wall_time_across_dst(self):
        tz = _zone("America/New_York")
        now = datetime(2024, 3, 9, 10, 0, tzinfo=tz)

        result = calculate_next_review(CardSchedule(due=now), Ease.EASY, now)

        assert result.due.date() == datetime(2024, 3, 13).date()
        assert result.due.hour == 10

    def test_learning_minutes_are_absolute_across_dst(self):
        tz = _zone("America/New_York")
        moment = datetime(2024, 3, 10, 1, 30, tzinfo=tz)

        later = add_minutes(moment, 60)

        assert (later.hour, later.minute) == (3, 30)
        assert later.astimezone(timezone.utc) - moment.astimezone(timezone.utc) == timedelta(minutes=60)


class TestNewCard:
    def test_again_enters_learning(self, new_schedule, now):
        result = calculate_next_review(new_schedule, Ease.AGAIN, now)
        assert result.state == CardState.LEARNING
        assert result.learning_step == 0
        assert result.due == now + timedelta(minutes=1)

    def test_hard_repeats_first_step(self, new_schedule, now):
        result = calculate_next_review(new_schedule, Ease.HARD, now)
        assert result.state == CardState.LEARNING
        assert result.learning_step == 0
        assert result.due == now + timedelta(minutes=1)

    def test_good_advances_step(self, new_schedule, now):
        result = calculate_next_review(new_schedule, Ease.GOOD, now)
        assert result.state == CardState.LEARNING
        assert result.learning_step == 1
        assert result.due == now + timedelta(minutes=10)

    def test_easy_graduates_immediately(self, new_schedule, now):
        result = calculate_next_review(new_schedule, Ease.EASY, now)
        assert result.state == CardState.REVIEW
        assert result.interval == 4
        assert result.repetitions == 1
        assert result.learning_step == 0
        assert result.due == now + timedelta(days=4)

    @pytest.mark.parametrize("steps", [[1], [1, 10], [2, 20, 60, 1440]])
    def test_easy_ignores_step_table(self, new_schedule, now, steps):
        result = calculate_next_review(new_schedule, Ease.EASY, now, {"learning_steps": steps})
        assert result.state == CardState.REVIEW
        assert result.interval == 4
        assert result.repetitions == 1


class TestLearningCard:
    def test_again_resets_to_first_step(self, learning_schedule, now):
        result = calculate_next_review(learning_schedule, Ease.AGAIN, now)
        assert result.state == CardState.LEARNING
        assert result.learning_step == 0

    def test_good_on_last_step_graduates(self, learning_schedule, now):
        result = calculate_next_review(learning_schedule, Ease.GOOD, now)
        assert result.state == CardState.REVIEW
        assert result.interval == 1
        assert result.repetitions == 1
        assert result.due == now + timedelta(days=1)

    def test_hard_stays_on_step(self, learning_schedule, now):
        result = calculate_next_review(learning_schedule, Ease.HARD, now)
        assert result.state == CardState.LEARNING
        assert result.learning_step == 1
        assert result.due == now + timedelta(minutes=10)

    def test_custom_learning_steps(self, new_schedule, now):
        settings = {"learning_steps": [1, 5, 15]}

        first = calculate_next_review(new_schedule, Ease.GOOD, now, settings)
        assert first.learning_step == 1
        assert first.due == now + timedelta(minutes=5)

        second = calculate_next_review(first, Ease.GOOD, now, settings)
        assert second.learning_step == 2
        assert second.due == now + timedelta(minutes=15)

        third = calculate_next_review(second, Ease.GOOD, now, settings)
        assert third.state == CardState.REVIEW

    def test_custom_graduating_interval(self, learning_schedule, now):
        result = calculate_next_review(
            learning_schedule, Ease.GOOD, now, {"graduating_interval": 3}
        )
        assert result.interval == 3

    def test_custom_easy_interval(self, learning_schedule, now):
        result = calculate_next_review(learning_schedule, Ease.EASY, now, {"easy_interval": 7})
        assert result.interval == 7


class TestReviewCard:
    def test_again_lapses_into_relearning(self, review_schedule, now):
        result = calculate_next_review(review_schedule, Ease.AGAIN, now)
        assert result.state == CardState.RELEARNING
        assert result.learning_step == 0
        assert result.interval == 5
        assert result.lapses == 1
        assert result.due == now + timedelta(minutes=10)

    def test_hard(self, review_schedule, now):
        result = calculate_next_review(review_schedule, Ease.HARD, now)
        assert result.state == CardState.REVIEW
        assert result.interval == 12
        assert result.ease_factor < 2.5
        assert result.repetitions == 4

    def test_good(self, review_schedule, now):
        result = calculate_next_review(review_schedule, Ease.GOOD, now)
        assert result.state == CardState.REVIEW
        assert result.interval == 25
        assert result.ease_factor == pytest.approx(2.5)
        assert result.repetitions == 4
        assert result.due == now + timedelta(days=25)

    def test_easy_uses_updated_ease_factor(self, review_schedule, now):
        result = calculate_next_review(review_schedule, Ease.EASY, now)
        assert result.ease_factor == pytest.approx(2.6)
        assert result.interval == 34

    @pytest.mark.parametrize("interval", [1, 3, 7, 10, 33, 250])
    def test_good_interval_rule(self, review_schedule, now, interval):
        schedule = replace(review_schedule, interval=interval, ease_factor=2.1)
        result = calculate_next_review(schedule, Ease.GOOD, now)
        expected = max(1, int(interval * result.ease_factor + 0.5))
        assert result.interval == expected
        assert result.repetitions == schedule.repetitions + 1

    @pytest.mark.parametrize("lapses", [0, 1, 5])
    def test_again_increments_lapses_by_one(self, review_schedule, now, lapses):
        result = calculate_next_review(replace(review_schedule, lapses=lapses), Ease.AGAIN, now)
        assert result.lapses == lapses + 1
        assert result.state == CardState.RELEARNING
        assert result.learning_step == 0

    def test_interval_modifier(self, review_schedule, now):
        half = calculate_next_review(review_schedule, Ease.GOOD, now, {"interval_modifier": 0.5})
        double = calculate_next_review(
            review_schedule, Ease.GOOD, now, {"interval_modifier": 2.0}
        )
        # 12.5 rounds half up
        assert half.interval == 13
        assert double.interval == 50

    def test_max_interval_caps(self, review_schedule, now):
        schedule = replace(review_schedule, interval=500)
        result = calculate_next_review(schedule, Ease.GOOD, now, {"max_interval": 365})
        assert result.interval == 365

    def test_easy_bonus(self, review_schedule, now):
        result = calculate_next_review(review_schedule, Ease.EASY, now, {"easy_bonus": 2.0})
        assert result.interval == 52

    def test_hard_interval_modifier(self, review_schedule, now):
        result = calculate_next_review(
            review_schedule, Ease.HARD, now, {"hard_interval_modifier": 0.8}
        )
        assert result.interval == 8

    def test_lapse_new_interval(self, review_schedule, now):
        schedule = replace(review_schedule, interval=20, lapses=2)
        result = calculate_next_review(schedule, Ease.AGAIN, now, {"lapse_new_interval": 0.2})
        assert result.interval == 4
        assert result.lapses == 3

    def test_lapse_min_interval(self, review_schedule, now):
        schedule = replace(review_schedule, interval=20)
        result = calculate_next_review(
            schedule, Ease.AGAIN, now, {"lapse_new_interval": 0.0, "lapse_min_interval": 3}
        )
        assert result.interval == 3

    def test_custom_relearning_steps(self, review_schedule, now):
        result = calculate_next_review(
            review_schedule, Ease.AGAIN, now, {"relearning_steps": [5, 30]}
        )
        assert result.state == CardState.RELEARNING
        assert result.due == now + timedelta(minutes=5)


class TestRelearningCard:
    @pytest.fixture
    def relearning(self, review_schedule, now):
        return calculate_next_review(review_schedule, Ease.AGAIN, now)

    def test_good_graduates_with_graduating_interval(self, relearning, now):
        assert relearning.interval == 5

        result = calculate_next_review(relearning, Ease.GOOD, now)

        # The halved lapse interval is not reused
        assert result.state == CardState.REVIEW
        assert result.interval == 1
        assert result.repetitions == 1

    def test_again_stays_relearning_without_new_lapse(self, relearning, now):
        result = calculate_next_review(relearning, Ease.AGAIN, now)
        assert result.state == CardState.RELEARNING
        assert result.learning_step == 0
        assert result.lapses == relearning.lapses

    def test_hard_repeats_step(self, relearning, now):
        result = calculate_next_review(relearning, Ease.HARD, now)
        assert result.state == CardState.RELEARNING
        assert result.due == now + timedelta(minutes=10)

    def test_relearning_steps_walk(self, review_schedule, now):
        settings = {"relearning_steps": [5, 30]}
        lapsed = calculate_next_review(review_schedule, Ease.AGAIN, now, settings)

        step = calculate_next_review(lapsed, Ease.GOOD, now, settings)
        assert step.state == CardState.RELEARNING
        assert step.learning_step == 1
        assert step.due == now + timedelta(minutes=30)

        done = calculate_next_review(step, Ease.GOOD, now, settings)
        assert done.state == CardState.REVIEW


class TestEaseFactor:
    def test_update_rule(self):
        assert update_ease_factor(2.5, Ease.AGAIN) == pytest.approx(2.18)
        assert update_ease_factor(2.5, Ease.HARD) == pytest.approx(2.36)
        assert update_ease_factor(2.5, Ease.GOOD) == pytest.approx(2.5)
        assert update_ease_factor(2.5, Ease.EASY) == pytest.approx(2.6)

    def test_floor(self, review_schedule, now):
        result = calculate_next_review(
            replace(review_schedule, ease_factor=1.35), Ease.AGAIN, now
        )
        assert result.ease_factor == 1.3

    @pytest.mark.parametrize("state", list(CardState))
    @pytest.mark.parametrize("ease", list(Ease))
    def test_never_below_floor(self, now, state, ease):
        schedule = CardSchedule(
            due=now,
            interval=0 if state in (CardState.NEW, CardState.LEARNING) else 4,
            ease_factor=1.3,
            state=state,
        )
        assert calculate_next_review(schedule, ease, now).ease_factor >= 1.3


class TestInvalidInput:
    @pytest.mark.parametrize("ease", [0, 5, -1, True, "good", None, 2.0, 3.5])
    def test_rejects_unknown_ease(self, review_schedule, now, ease):
        with pytest.raises(InvalidEaseError):
            calculate_next_review(review_schedule, ease, now)

    def test_invalid_ease_is_value_error(self, review_schedule, now):
        with pytest.raises(ValueError):
            calculate_next_review(review_schedule, 9, now)

    def test_accepts_plain_ints(self, review_schedule, now):
        assert calculate_next_review(review_schedule, 3, now).interval == 25

    def test_input_not_mutated(self, review_schedule, now):
        snapshot = replace(review_schedule)
        calculate_next_review(review_schedule, Ease.AGAIN, now)
        assert review_schedule == snapshot


class TestPreview:
    def test_review_card(self, review_schedule, now):
        previews = preview_intervals(review_schedule, now)
        assert previews == {
            Ease.AGAIN: "10m",
            Ease.HARD: "12d",
            Ease.GOOD: "25d",
            Ease.EASY: "1mo",
        }
        assert len(set(previews.values())) == 4

    def test_new_card(self, new_schedule, now):
        previews = preview_intervals(new_schedule, now)
        assert previews[Ease.AGAIN] == "1m"
        assert previews[Ease.GOOD] == "10m"
        assert previews[Ease.EASY] == "4d"
        assert all(previews.values())

    def test_respects_settings(self, review_schedule, now):
        previews = preview_intervals(review_schedule, now, {"max_interval": 15})
        assert previews[Ease.GOOD] == "15d"

    def test_does_not_mutate(self, review_schedule, now):
        snapshot = replace(review_schedule)
        first = preview_intervals(review_schedule, now)
        second = preview_intervals(review_schedule, now)
        assert first == second
        assert review_schedule == snapshot


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(minutes=1), "1m"),
        (timedelta(minutes=59), "59m"),
        (timedelta(minutes=60), "1h"),
        (timedelta(hours=5), "5h"),
        (timedelta(days=1), "1d"),
        (timedelta(days=29), "29d"),
        (timedelta(days=30), "1mo"),
        (timedelta(days=200), "7mo"),
        (timedelta(days=365), "1y"),
        (timedelta(days=800), "2y"),
    ],
)
def test_format_interval_buckets(delta, expected):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert format_interval(now + delta, now) == expected

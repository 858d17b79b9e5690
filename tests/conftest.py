import os
from datetime import datetime, timedelta, timezone

import pytest

from cardwise.domain.scheduling.models import CardSchedule, CardState, StudyCard

FIXED_NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and CARDWISE_* variables out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("CARDWISE_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def new_schedule(now):
    return CardSchedule(due=now)


@pytest.fixture
def learning_schedule(now):
    return CardSchedule(due=now, state=CardState.LEARNING, learning_step=1)


@pytest.fixture
def review_schedule(now):
    return CardSchedule(
        due=now,
        interval=10,
        ease_factor=2.5,
        repetitions=3,
        state=CardState.REVIEW,
        learning_step=0,
        lapses=0,
    )


def make_review_card(card_id: str, due: datetime) -> StudyCard:
    return StudyCard(
        card_id=card_id,
        schedule=CardSchedule(due=due, interval=3, state=CardState.REVIEW, repetitions=1),
    )


def make_new_card(card_id: str) -> StudyCard:
    return StudyCard(card_id=card_id)


@pytest.fixture
def review_card():
    return make_review_card


@pytest.fixture
def due_pool(now):
    """Eight review cards, due one hour apart, listed newest first."""
    return [make_review_card(f"r{i}", now - timedelta(hours=i)) for i in range(1, 9)]


@pytest.fixture
def new_pool():
    return [make_new_card("n1"), make_new_card("n2")]

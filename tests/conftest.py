import pytest

from pingpongclub.app import ClubApplication
from pingpongclub.events import EventBus
from pingpongclub.storage import MemoryStorage

CITIES = ["Hà Nội", "Đà Nẵng", "Huế", "Cần Thơ"]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def app(storage, events):
    return ClubApplication(storage=storage, events=events)


@pytest.fixture
def recorded(events):
    """Every event published on the bus, in order."""
    seen = []
    events.subscribe(None, seen.append)
    return seen


def make_players(app, count, rank="Beginner"):
    return [
        app.players.create(
            name=f"Người chơi {i + 1:02d}",
            email=f"player{i + 1:02d}@pingpong.example",
            address=f"{i + 1} Phố Bóng Bàn, {CITIES[i % len(CITIES)]}",
            rank=rank,
        )
        for i in range(count)
    ]


def play_sets(app, match_id, scores):
    """Feed set scores into a started match through the controller."""
    updates = []
    for score1, score2 in scores:
        updates.append(app.matches.update_score(match_id, score1, score2))
    return updates

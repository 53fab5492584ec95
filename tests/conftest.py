from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from goalcounter.host import EventDispatcher, ScriptedGameState
from goalcounter.plugin import GoalPercentageCounter
from goalcounter.storage.stat_file_reader import StatFileReader
from goalcounter.track.shot_distribution import ShotDistributionTracker

SEPARATOR = "-" * 40

BASE_DEFAULTS: Dict[str, object] = {
    "Attempts": 10,
    "Goals": 4,
    "Initial Hits": 9,
    "Current Goal Streak": 1,
    "Current Miss Streak": 0,
    "Longest Goal Streak": 2,
    "Longest Miss Streak": 3,
    "Last 50 Shots": "0010110001",
    "Latest Goal Speed": "85.2",
    "Max Goal Speed": "101.4",
    "Min Goal Speed": "60.0",
    "Median Goal Speed": "80.1",
    "Mean Goal Speed": "82.0",
    "Initial Hit Percentage": "90.00",
    "Success Percentage": "40.00",
    "Peak Success Percentage": "50.00",
    "Peak Shot Number": 2,
}

V11_DEFAULTS: Dict[str, object] = {
    "Max Air Dribble Touches": 3,
    "Max Air Dribble Time": "2.5",
    "Max Ground Dribble Time": "4.25",
    "Double Tap Goals": 1,
    "Double Tap Goal Percentage": "25.00",
    "Max Flip Resets": 2,
    "Total Flip Resets": 5,
    "Average Flip Resets Per Attempt": "0.50",
    "Flip Reset Goal Percentage": "50.00",
    "Close Misses": 2,
    "Close Miss Percentage": "20.00",
}


def encode_impacts(vectors: Sequence[Tuple[float, float, float]]) -> str:
    return f"{len(vectors)}|" + "".join(f"{x},{y},{z}|" for x, y, z in vectors)


def block_lines(version: str, overrides: Optional[Dict[str, object]] = None,
                impacts: Sequence[Tuple[float, float, float]] = ()) -> List[str]:
    values = dict(BASE_DEFAULTS)
    if version in ("1.1", "1.2"):
        values.update(V11_DEFAULTS)
    values.update(overrides or {})

    lines = [SEPARATOR] + [f"{key}\t{value}" for key, value in values.items()]
    if version == "1.2":
        lines.append(f"Impact Locations\t{encode_impacts(impacts)}")
    return lines


def stat_text(version: str = "1.0", shots: int = 2,
              header: Optional[Dict[str, object]] = None,
              per_shot: Optional[List[Dict[str, object]]] = None,
              impacts: Optional[List[Sequence[Tuple[float, float, float]]]] = None) -> str:
    """Stat file content: header block followed by `shots` shot blocks."""
    per_shot = per_shot or [{} for _ in range(shots)]
    impacts = impacts or [() for _ in range(shots + 1)]

    lines = [f"Version\t{version}", f"Number of Shots\t{shots}"]
    lines += block_lines(version, header, impacts[0])
    for idx in range(shots):
        lines += block_lines(version, per_shot[idx], impacts[idx + 1])
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_stat_text():
    return stat_text


@pytest.fixture
def tracker() -> ShotDistributionTracker:
    return ShotDistributionTracker(bins_x=4, bins_z=2)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "CustomTrainingStatistics"


@pytest.fixture
def reader(tracker, data_dir) -> StatFileReader:
    return StatFileReader(tracker, data_dir=str(data_dir))


@pytest.fixture
def write_session(data_dir):
    def _write(pack_code: str, file_name: str, text: str):
        folder = data_dir / pack_code
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / file_name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def game() -> ScriptedGameState:
    return ScriptedGameState(total_rounds=3, training_pack_code="A1B2-C3D4-E5F6-G7H8")


@pytest.fixture
def hub() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def plugin(hub, game) -> GoalPercentageCounter:
    p = GoalPercentageCounter(hub, game, enabled=True)
    p.on_load()
    return p

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from goalcounter import config
from goalcounter.stats.player_stats import ShotStats, StatSnapshot, make_last_shots
from goalcounter.storage import stat_file_defs as defs
from goalcounter.storage.stat_file_defs import Vector

logger = logging.getLogger(__name__)


class StatFileFormatError(ValueError):
    """Structural or numeric violation in a stat file. Never leaves the reader."""


class ImpactLocationSink(Protocol):
    def register_impact_location(self, location: Vector) -> None: ...


# --------------------------------------------------------------------
# Line level helpers
# --------------------------------------------------------------------
class _LineCursor:
    """Sequential access to the lines of a file; running out of lines is a format error."""

    def __init__(self, text: str):
        self._lines = [line.rstrip("\r") for line in text.split("\n")]
        # a final newline does not start another line
        if self._lines and self._lines[-1] == "":
            self._lines.pop()
        self._pos = 0

    @property
    def line_number(self) -> int:
        return self._pos

    def next_line(self) -> str:
        if self._pos >= len(self._lines):
            raise StatFileFormatError(f"unexpected end of file after line {self._pos}")
        line = self._lines[self._pos]
        self._pos += 1
        return line


def split_line(line: str) -> Tuple[str, str]:
    """Split 'key<TAB>value'. A missing delimiter is a format error."""
    key, sep, value = line.partition(defs.KEY_VALUE_SEPARATOR)
    if not sep:
        raise StatFileFormatError(f"missing key/value delimiter in {line!r}")
    return key, value


def parse_non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise StatFileFormatError(f"not an integer: {value!r}") from None
    if number < 0:
        raise StatFileFormatError(f"negative value: {number}")
    return number


def parse_non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise StatFileFormatError(f"not a number: {value!r}") from None
    if not math.isfinite(number) or number < 0.0:
        raise StatFileFormatError(f"invalid value: {number}")
    return number


def _read_value(cursor: _LineCursor) -> str:
    line = cursor.next_line()
    key, value = split_line(line)
    if not key or not value:
        raise StatFileFormatError(f"empty key or value in line {cursor.line_number}")
    return value


def read_int(cursor: _LineCursor) -> int:
    return parse_non_negative_int(_read_value(cursor))


def read_float(cursor: _LineCursor) -> float:
    return parse_non_negative_float(_read_value(cursor))


def parse_last_shots(value: str) -> List[bool]:
    """'0101' -> [False, True, False, True]. An empty string is valid."""
    shots = []
    for char in value:
        if char not in "01":
            raise StatFileFormatError(f"unexpected shot marker {char!r}")
        shots.append(char == "1")
    return shots


def parse_impact_locations(value: str) -> List[Vector]:
    """
    Decode 'count|x,y,z|x,y,z|' into a list of vectors.

    Every vector is terminated by the separator, so count=0 is written as '0|'.
    Anything after the announced vectors is ignored.
    """
    parts = value.split(defs.VECTOR_SEPARATOR)
    if len(parts) < 2:
        raise StatFileFormatError("missing vector count separator")

    count = parse_non_negative_int(parts[0])
    # count vectors, each followed by a separator
    if len(parts) < count + 2:
        raise StatFileFormatError(f"expected {count} impact locations, got {len(parts) - 2}")

    vectors: List[Vector] = []
    for raw in parts[1:count + 1]:
        components = raw.split(defs.COMPONENT_SEPARATOR)
        if len(components) != 3:
            raise StatFileFormatError(f"malformed vector {raw!r}")
        try:
            x, y, z = (float(c) for c in components)
        except ValueError:
            raise StatFileFormatError(f"malformed vector {raw!r}") from None
        vectors.append((x, y, z))
    return vectors


# --------------------------------------------------------------------
# Version blocks
# --------------------------------------------------------------------
def read_version_1_0(cursor: _LineCursor, snap: StatSnapshot) -> None:
    snap.attempts = read_int(cursor)
    snap.goals = read_int(cursor)
    snap.initial_hits = read_int(cursor)
    snap.goal_streak = read_int(cursor)
    snap.miss_streak = read_int(cursor)
    snap.longest_goal_streak = read_int(cursor)
    snap.longest_miss_streak = read_int(cursor)

    # Might be empty if the session did not include this shot
    _, shots = split_line(cursor.next_line())
    snap.last_50_shots = make_last_shots(parse_last_shots(shots))

    # Goal speeds: only aggregated values were written, they cannot be restored
    for _ in range(defs.LEGACY_SPEED_LINES):
        cursor.next_line()

    snap.initial_hit_percentage = read_float(cursor)
    snap.success_percentage = read_float(cursor)
    snap.peak_success_percentage = read_float(cursor)
    snap.peak_shot_number = read_int(cursor)


def read_version_1_1_additions(cursor: _LineCursor, snap: StatSnapshot) -> None:
    snap.max_air_dribble_touches = read_int(cursor)
    snap.max_air_dribble_time = read_float(cursor)
    snap.max_ground_dribble_time = read_float(cursor)
    snap.double_tap_goals = read_int(cursor)
    snap.double_tap_goal_percentage = read_float(cursor)
    snap.max_flip_resets = read_int(cursor)
    snap.total_flip_resets = read_int(cursor)
    snap.average_flip_resets_per_attempt = read_float(cursor)
    snap.flip_reset_goal_percentage = read_float(cursor)
    snap.close_misses = read_int(cursor)
    snap.close_miss_percentage = read_float(cursor)


def read_version_1_2_additions(cursor: _LineCursor) -> List[Vector]:
    key, value = split_line(cursor.next_line())
    if key != defs.IMPACT_LOCATIONS:
        raise StatFileFormatError(f"expected {defs.IMPACT_LOCATIONS!r}, got {key!r}")
    if not value:
        raise StatFileFormatError("empty impact location list")
    return parse_impact_locations(value)


def parse_stat_text(text: str) -> Tuple[ShotStats, List[Vector]]:
    """
    Parse the full content of a stat file.

    Returns the statistics and the impact locations in file order.
    Raises StatFileFormatError on any violation.
    """
    cursor = _LineCursor(text)

    tag, version_number = split_line(cursor.next_line())
    version_idx = defs.version_index(version_number)
    if tag != defs.VERSION or version_idx < 0:
        raise StatFileFormatError(f"unsupported version line {tag!r}={version_number!r}")

    tag, value = split_line(cursor.next_line())
    if tag != defs.NUMBER_OF_SHOTS:
        raise StatFileFormatError(f"expected {defs.NUMBER_OF_SHOTS!r}, got {tag!r}")
    number_of_shots = parse_non_negative_int(value)
    if number_of_shots <= 0:
        raise StatFileFormatError("a stat file needs at least one shot")

    stats = ShotStats.for_rounds(number_of_shots)
    impacts: List[Vector] = []

    # The "all shots" block first, then one block per shot
    for snap in [stats.all_shots] + stats.per_shot:
        cursor.next_line()  # separator
        read_version_1_0(cursor, snap)
        if version_idx >= defs.VERSION_1_1:
            read_version_1_1_additions(cursor, snap)
        if version_idx >= defs.VERSION_1_2:
            impacts.extend(read_version_1_2_additions(cursor))

    return stats, impacts


# --------------------------------------------------------------------
# Reader
# --------------------------------------------------------------------
class StatFileReader:
    """
    Reads stat files written at the end of training sessions.

    Results are all-or-nothing: a file either yields complete ShotStats or None.
    Impact locations of a successfully parsed file are replayed, in file order,
    into the shot distribution tracker (which rebuilds its heatmap from them).
    """

    def __init__(
        self,
        shot_distribution_tracker: Optional[ImpactLocationSink] = None,
        data_dir: Optional[str] = None,
    ):
        self.shot_distribution_tracker = shot_distribution_tracker
        self.data_dir = Path(data_dir if data_dir is not None else config.DATA_DIR)

    def get_available_resource_paths(self, training_pack_code: str) -> List[str]:
        """Files of a training pack, most recent first (file names start with a timestamp)."""
        folder = self.data_dir / training_pack_code
        paths: List[str] = []
        try:
            if folder.is_dir():
                paths = [str(entry) for entry in folder.iterdir() if entry.is_file()]
        except OSError as exc:
            logger.info("Cannot list stat files in %s: %s", folder, exc)
            return []
        return sorted(paths, reverse=True)

    @staticmethod
    def _load_text(resource_path: str) -> Optional[str]:
        try:
            return Path(resource_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.info("Cannot read stat file %s: %s", resource_path, exc)
            return None

    def peek_attempt_amount(self, resource_path: str) -> int:
        """Attempts of the whole session without parsing the file; 0 for invalid files."""
        text = self._load_text(resource_path)
        if text is None:
            return 0

        try:
            cursor = _LineCursor(text)
            tag, version_number = split_line(cursor.next_line())
            if tag != defs.VERSION or defs.version_index(version_number) < 0:
                return 0

            # number of shots, separator, then the attempts of the "all shots" block
            cursor.next_line()
            cursor.next_line()
            tag, value = split_line(cursor.next_line())
            if tag != defs.ATTEMPTS:
                return 0
            return parse_non_negative_int(value)
        except StatFileFormatError as exc:
            logger.debug("Invalid stat file %s: %s", resource_path, exc)
            return 0

    def read_stats(self, resource_path: str, replay_impacts: bool = True) -> Optional[ShotStats]:
        text = self._load_text(resource_path)
        if text is None:
            return None

        try:
            stats, impacts = parse_stat_text(text)
        except StatFileFormatError as exc:
            logger.info("Ignoring invalid stat file %s: %s", resource_path, exc)
            return None

        if replay_impacts and self.shot_distribution_tracker is not None:
            for location in impacts:
                self.shot_distribution_tracker.register_impact_location(location)

        return stats

    def read_latest_stats(self, training_pack_code: str) -> Optional[Tuple[str, ShotStats]]:
        """Most recent file of a pack which can be read, as (path, stats)."""
        for path in self.get_available_resource_paths(training_pack_code):
            stats = self.read_stats(path)
            if stats is not None:
                return path, stats
        return None

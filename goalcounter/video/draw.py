from __future__ import annotations

from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

from goalcounter.track.shot_distribution import ShotDistributionTracker


def draw_heatmap(
    tracker: ShotDistributionTracker,
    cell_px: int = 16,
    colormap: int = cv2.COLORMAP_JET,
    frame_color: Tuple[int, int, int] = (255, 255, 255),
    show_count: bool = True,
):
    """
    Render the tracker's heatmap as a BGR image of the goal mouth.

    Empty cells are drawn black so the distribution stands out; the goal frame
    is drawn on top.
    """
    cell_px = max(1, int(cell_px))
    norm = tracker.normalized_heatmap()
    gray = (norm * 255.0).astype(np.uint8)

    h = tracker.bins_z * cell_px
    w = tracker.bins_x * cell_px
    gray = cv2.resize(gray, (w, h), interpolation=cv2.INTER_NEAREST)

    frame = cv2.applyColorMap(gray, colormap)
    frame[gray == 0] = (0, 0, 0)

    cv2.rectangle(frame, (0, 0), (w - 1, h - 1), frame_color, 2)

    if show_count:
        label = f"impacts: {len(tracker.impact_locations)}"
        cv2.putText(
            frame,
            label,
            (8, 22),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            frame_color,
            1,
            cv2.LINE_AA,
        )
    return frame


def write_heatmap(output_path: str, tracker: ShotDistributionTracker, cell_px: int = 16) -> str:
    """
    Write the heatmap image to disk.

    Fails fast if OpenCV cannot write the file, which avoids silently missing outputs.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    frame = draw_heatmap(tracker, cell_px=cell_px)
    if not cv2.imwrite(str(output_path), frame):
        raise RuntimeError(f"Cannot write heatmap: {output_path}")
    return str(output_path)

"""
Render-mode selection and panel layout for the clone view.

Both are pure functions of their inputs and are recomputed every tick.
"""

import math
from typing import List

from core.types import Panel, PanelRole, PanelSide, RenderMode

DEFAULT_PANEL_CAP = 6
DEFAULT_MAX_VISIBLE_PANELS = 5
DEFAULT_MAIN_WIDTH_RATIO = 0.42
DEFAULT_PANEL_GAP = 4


def select_render_mode(active: bool, count: int, mask_available: bool) -> RenderMode:
    """(active, count, mask_available) -> RenderMode."""
    if not active or count <= 0:
        return RenderMode.IDLE
    if mask_available:
        return RenderMode.SEGMENTATION
    return RenderMode.PANEL


def compute_panel_layout(count: int, width: int, height: int,
                         cap: int = DEFAULT_PANEL_CAP,
                         max_visible: int = DEFAULT_MAX_VISIBLE_PANELS,
                         main_ratio: float = DEFAULT_MAIN_WIDTH_RATIO,
                         gap: int = DEFAULT_PANEL_GAP) -> List[Panel]:
    """Lay out one main panel between left and right clone groups.

    Returned in draw order: left clones, right clones, main last (on top).
    Callers must only use this with count > 0; the layout then always has
    at least one clone panel.
    """
    if count <= 0:
        raise ValueError("panel layout requires a positive clone count")

    total_panels = min(count, cap) + 1
    visible_panels = max(2, min(total_panels, max_visible))
    clone_panels = visible_panels - 1

    main_width = int(math.floor(width * main_ratio))
    remaining = width - main_width - gap * clone_panels
    clone_width = max(0, int(math.floor(remaining / clone_panels)))

    left_clones = int(math.ceil(clone_panels / 2))
    right_clones = clone_panels // 2

    panels = []
    for i in range(left_clones):
        x = (left_clones - 1 - i) * (clone_width + gap)
        panels.append(Panel(x, clone_width, height, PanelRole.CLONE, PanelSide.LEFT))

    for i in range(right_clones):
        x = width - (i + 1) * (clone_width + gap) + gap
        panels.append(Panel(x, clone_width, height, PanelRole.CLONE, PanelSide.RIGHT))

    main_x = left_clones * (clone_width + gap)
    panels.append(Panel(main_x, main_width, height, PanelRole.MAIN, PanelSide.CENTER))
    return panels

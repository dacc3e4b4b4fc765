"""Pure geometry and focus rules for the pane layout.

Nothing here touches terminals, the display or locks, so every rule can be
unit-tested with plain values.
"""

from __future__ import annotations

from typing import Callable

from paneweave.config.schema import LayoutConfig
from paneweave.layout.region import (
    SLOT_COUNT,
    TERMINAL_SLOTS,
    FocusSlot,
    Region,
    RegionSet,
    VisibilityState,
)

NAV_BAR_HEIGHT = 1
PLACEHOLDER_BOX_HEIGHT = 5
PLACEHOLDER_GAP = 2


def left_is_expanded(visibility: VisibilityState, focus: int) -> bool:
    """Return True when the left pane should use its wider width."""
    if not visibility.left:
        return False
    if focus == FocusSlot.LEFT:
        return True
    count = visibility.terminal_count
    if visibility.editor and count == 0:
        return True
    return not visibility.editor and count == 1


def left_width(width: int, visibility: VisibilityState, focus: int, config: LayoutConfig) -> int:
    if not visibility.left:
        return 0
    value = config.tree_width_expanded if left_is_expanded(visibility, focus) else config.tree_width
    return max(0, min(value, width))


def terminal_space(width: int, visibility: VisibilityState, focus: int, config: LayoutConfig) -> int:
    """Total columns shared by all visible terminals."""
    if visibility.terminal_count == 0:
        return 0
    left = left_width(width, visibility, focus, config)
    if not visibility.editor:
        return max(0, width - left)
    space = width * config.term_width_percent // 100
    if left_is_expanded(visibility, focus):
        space -= config.tree_width_expanded - config.tree_width
    return max(0, min(space, width - left))


def terminal_widths(width: int, visibility: VisibilityState, focus: int, config: LayoutConfig) -> list[int]:
    """Per-slot widths; the last visible terminal absorbs the division remainder."""
    widths = [0] * TERMINAL_SLOTS
    count = visibility.terminal_count
    if count == 0:
        return widths
    total = terminal_space(width, visibility, focus, config)
    share = total // count
    visible = [i for i, flag in enumerate(visibility.terminals) if flag]
    for i in visible:
        widths[i] = share
    widths[visible[-1]] += total - share * count
    return widths


def compute_geometry(
    width: int,
    height: int,
    visibility: VisibilityState,
    focus: int,
    config: LayoutConfig,
) -> RegionSet:
    """Lay out every pane left to right below the nav bar."""
    width = max(0, width)
    top = NAV_BAR_HEIGHT
    pane_height = max(0, height - top)

    left_w = left_width(width, visibility, focus, config)
    term_ws = terminal_widths(width, visibility, focus, config)
    term_total = sum(term_ws)
    editor_w = max(0, width - left_w - term_total) if visibility.editor else 0

    x = 0
    left = Region(x, top, left_w, pane_height)
    x += left_w
    editor = Region(x, top, editor_w, pane_height)
    x += editor_w
    terminals = []
    for term_w in term_ws:
        terminals.append(Region(x, top, term_w, pane_height))
        x += term_w

    placeholder = None
    if not visibility.editor and term_total == 0:
        placeholder = Region(x, top, max(0, width - x), pane_height)

    return RegionSet(
        screen_width=width,
        screen_height=height,
        left=left,
        editor=editor,
        terminals=(terminals[0], terminals[1], terminals[2]),
        placeholder=placeholder,
        left_expanded=left_is_expanded(visibility, focus),
    )


def placeholder_boxes(area: Region, box_width: int) -> tuple[Region, Region]:
    """Two boxes side by side, centered inside the placeholder area."""
    box_width = max(0, min(box_width, (area.width - PLACEHOLDER_GAP) // 2))
    total_width = box_width * 2 + PLACEHOLDER_GAP
    x = area.x + max(0, (area.width - total_width) // 2)
    y = area.y + max(0, (area.height - PLACEHOLDER_BOX_HEIGHT) // 2)
    first = Region(x, y, box_width, PLACEHOLDER_BOX_HEIGHT)
    second = Region(x + box_width + PLACEHOLDER_GAP, y, box_width, PLACEHOLDER_BOX_HEIGHT)
    return first, second


def is_eligible(
    slot: int,
    visibility: VisibilityState,
    has_session: Callable[[int], bool],
) -> bool:
    """Whether focus may rest on ``slot``."""
    if slot == FocusSlot.LEFT:
        return visibility.left
    if slot == FocusSlot.EDITOR:
        return visibility.editor
    index = FocusSlot(slot).terminal_index
    return visibility.terminals[index] and has_session(index)


def next_focus(
    current: int,
    visibility: VisibilityState,
    has_session: Callable[[int], bool],
) -> int:
    """Forward scan from ``current`` for the next eligible slot.

    Returns the editor slot when nothing qualifies.
    """
    for step in range(1, SLOT_COUNT + 1):
        candidate = (current + step) % SLOT_COUNT
        if is_eligible(candidate, visibility, has_session):
            return candidate
    return int(FocusSlot.EDITOR)

"""Value types shared by the layout code."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

TERMINAL_SLOTS = 3


class FocusSlot(IntEnum):
    """Focusable slot order used by focus cycling."""

    LEFT = 0
    EDITOR = 1
    TERMINAL_1 = 2
    TERMINAL_2 = 3
    TERMINAL_3 = 4

    @classmethod
    def for_terminal(cls, index: int) -> "FocusSlot":
        """Map a zero-based terminal index to its focus slot."""
        return cls(cls.TERMINAL_1 + index)

    @property
    def terminal_index(self) -> int | None:
        """Zero-based terminal index, or None for non-terminal slots."""
        if self >= FocusSlot.TERMINAL_1:
            return int(self) - int(FocusSlot.TERMINAL_1)
        return None


SLOT_COUNT = len(FocusSlot)


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in screen cells."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom

    def inset(self, amount: int = 1) -> "Region":
        """Shrink on every side, never below zero size."""
        return Region(
            self.x + amount,
            self.y + amount,
            max(0, self.width - 2 * amount),
            max(0, self.height - 2 * amount),
        )


@dataclass
class VisibilityState:
    """One flag per pane slot; tree and source control share the left region."""

    tree: bool = True
    source_control: bool = False
    editor: bool = True
    terminals: list[bool] = field(default_factory=lambda: [True, False, False])

    @property
    def left(self) -> bool:
        return self.tree or self.source_control

    @property
    def terminal_count(self) -> int:
        return sum(1 for flag in self.terminals if flag)

    def copy(self) -> "VisibilityState":
        return VisibilityState(
            tree=self.tree,
            source_control=self.source_control,
            editor=self.editor,
            terminals=list(self.terminals),
        )


@dataclass(frozen=True)
class RegionSet:
    """Result of one geometry pass."""

    screen_width: int
    screen_height: int
    left: Region
    editor: Region
    terminals: tuple[Region, Region, Region]
    placeholder: Region | None = None
    left_expanded: bool = False

    @property
    def total_width(self) -> int:
        """Sum of all pane widths on the content row."""
        total = self.left.width + self.editor.width + sum(r.width for r in self.terminals)
        if self.placeholder is not None:
            total += self.placeholder.width
        return total

    def slot_region(self, slot: FocusSlot) -> Region:
        if slot == FocusSlot.LEFT:
            return self.left
        if slot == FocusSlot.EDITOR:
            return self.editor
        return self.terminals[slot.terminal_index]

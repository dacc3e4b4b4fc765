"""Modal dialogs and the priority order that decides which one gets input."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from rich.style import Style

from paneweave.display import Canvas, bg, draw_box, draw_centered, fg
from paneweave.events import InputEvent, KeyEvent
from paneweave.layout import shortcuts

BLACK_BG = bg(0)
TEXT_STYLE = Style(color="white", bgcolor="color(0)")
HINT_STYLE = Style(color="color(243)", bgcolor="color(0)")
OPTION_STYLE = Style(color="color(51)", bgcolor="color(0)")
DANGER_STYLE = Style(color="color(196)", bgcolor="color(0)")
ACCENT_STYLE = Style(color="color(205)", bgcolor="color(0)")
TEAL_STYLE = Style(color="color(30)", bgcolor="color(0)")


class Modal:
    """Base class: an inactive modal ignores events, an active one eats them all."""

    name = "modal"

    def __init__(self) -> None:
        self.active = False
        self.screen_w = 0
        self.screen_h = 0

    def open(self, screen_w: int, screen_h: int) -> None:
        self.active = True
        self.screen_w = screen_w
        self.screen_h = screen_h

    def hide(self) -> None:
        self.active = False

    def handle_event(self, event: InputEvent) -> bool:
        if not self.active:
            return False
        if isinstance(event, KeyEvent):
            self.on_key(event)
        return True

    def on_key(self, event: KeyEvent) -> None:
        """Handle a key while active."""

    def render(self, canvas: Canvas) -> None:
        """Draw the dialog when active."""

    def _frame(
        self,
        canvas: Canvas,
        width: int,
        height: int,
        border: Style,
        double: bool = True,
        region_x: int = 0,
        region_w: int | None = None,
    ) -> tuple[int, int, int, int]:
        """Clear and outline a centered box; returns ``(x, y, w, h)``."""
        region_w = self.screen_w if region_w is None else region_w
        width = max(4, min(width, region_w - 2, self.screen_w - 2))
        height = max(3, min(height, self.screen_h - 2))
        x = region_x + max(0, (region_w - width) // 2)
        y = max(0, (self.screen_h - height) // 2)
        canvas.fill(x, y, width, height, " ", BLACK_BG)
        draw_box(canvas, x, y, width, height, border, double=double)
        return x, y, width, height


class ConfirmModal(Modal):
    """Red destructive-action confirmation."""

    name = "confirm"
    OPTIONS = "(y)es  (n)o  (esc)ape"

    def __init__(self) -> None:
        super().__init__()
        self.title = ""
        self.message = ""
        self.warning = ""
        self._callback: Optional[Callable[[bool], None]] = None

    def show(
        self,
        title: str,
        message: str,
        warning: str,
        screen_w: int,
        screen_h: int,
        callback: Callable[[bool], None],
    ) -> None:
        self.title = title
        self.message = message
        self.warning = warning
        self._callback = callback
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None

    def _finish(self, confirmed: bool) -> None:
        callback = self._callback
        self.hide()
        if callback is not None:
            callback(confirmed)

    def on_key(self, event: KeyEvent) -> None:
        if event.key == "escape":
            self._finish(False)
        elif event.char in ("y", "Y"):
            self._finish(True)
        elif event.char in ("n", "N"):
            self._finish(False)

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        content = max(len(self.title), len(self.message), len(self.warning), len(self.OPTIONS))
        x, y, w, _ = self._frame(canvas, max(45, content + 6), 9, DANGER_STYLE)
        draw_centered(canvas, x, w, y + 1, self.title, DANGER_STYLE + Style(bold=True))
        canvas.draw_text(x + 1, y + 2, "─" * (w - 2), DANGER_STYLE)
        draw_centered(canvas, x, w, y + 4, self.message, TEXT_STYLE)
        if self.warning:
            draw_centered(canvas, x, w, y + 5, self.warning, DANGER_STYLE)
        draw_centered(canvas, x, w, y + 7, self.OPTIONS, OPTION_STYLE)


class YesNoModal(Modal):
    """Yes/no/cancel prompt, e.g. discarding a modified tab."""

    name = "yes_no"

    def __init__(self) -> None:
        super().__init__()
        self.title = ""
        self.message = ""
        self.options = "(y,n,esc)"
        self._callback: Optional[Callable[[bool, bool], None]] = None

    def show(
        self,
        title: str,
        message: str,
        options: str,
        screen_w: int,
        screen_h: int,
        callback: Callable[[bool, bool], None],
    ) -> None:
        """``callback(yes, canceled)``."""
        self.title = title
        self.message = message
        self.options = options or "(y,n,esc)"
        self._callback = callback
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None

    def _finish(self, yes: bool, canceled: bool) -> None:
        callback = self._callback
        self.hide()
        if callback is not None:
            callback(yes, canceled)

    def on_key(self, event: KeyEvent) -> None:
        if event.key == "escape":
            self._finish(False, True)
        elif event.char in ("y", "Y"):
            self._finish(True, False)
        elif event.char in ("n", "N"):
            self._finish(False, False)

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        content = max(len(self.title), len(self.message), len(self.options))
        x, y, w, _ = self._frame(canvas, max(40, content + 6), 7, ACCENT_STYLE)
        draw_centered(canvas, x, w, y + 1, self.title, ACCENT_STYLE + Style(bold=True))
        draw_centered(canvas, x, w, y + 3, self.message, TEXT_STYLE)
        draw_centered(canvas, x, w, y + 5, self.options, OPTION_STYLE)


class InputModal(Modal):
    """Single-line text prompt."""

    name = "input"

    def __init__(self) -> None:
        super().__init__()
        self.title = ""
        self.prompt = ""
        self.value = ""
        self.cursor = 0
        self._callback: Optional[Callable[[str, bool], None]] = None

    def show(
        self,
        title: str,
        prompt: str,
        default: str,
        screen_w: int,
        screen_h: int,
        callback: Callable[[str, bool], None],
    ) -> None:
        """``callback(value, canceled)``."""
        self.title = title
        self.prompt = prompt
        self.value = default
        self.cursor = len(default)
        self._callback = callback
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None
        self.value = ""
        self.cursor = 0

    def _finish(self, value: str, canceled: bool) -> None:
        callback = self._callback
        self.hide()
        if callback is not None:
            callback(value, canceled)

    def on_key(self, event: KeyEvent) -> None:
        key = event.key
        if key == "escape":
            self._finish("", True)
        elif key == "enter":
            self._finish(self.value, False)
        elif key == "backspace":
            if self.cursor > 0:
                self.value = self.value[: self.cursor - 1] + self.value[self.cursor:]
                self.cursor -= 1
        elif key == "delete":
            self.value = self.value[: self.cursor] + self.value[self.cursor + 1:]
        elif key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.value), self.cursor + 1)
        elif key == "home" or event.combo == "ctrl+a":
            self.cursor = 0
        elif key == "end" or event.combo == "ctrl+e":
            self.cursor = len(self.value)
        elif event.is_printable:
            self.insert(event.char)

    def insert(self, text: str) -> None:
        text = text.replace("\n", "").replace("\r", "")
        self.value = self.value[: self.cursor] + text + self.value[self.cursor:]
        self.cursor += len(text)

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        x, y, w, _ = self._frame(canvas, max(50, len(self.prompt) + 6), 8, ACCENT_STYLE)
        draw_centered(canvas, x, w, y + 1, self.title, ACCENT_STYLE + Style(bold=True))
        canvas.draw_text(x + 2, y + 3, self.prompt, TEXT_STYLE, max_x=x + w - 1)
        field_w = w - 4
        start = max(0, self.cursor - field_w + 1)
        visible = self.value[start: start + field_w]
        canvas.fill(x + 2, y + 4, field_w, 1, " ", Style(bgcolor="color(236)"))
        canvas.draw_text(x + 2, y + 4, visible, Style(color="white", bgcolor="color(236)"), max_x=x + w - 2)
        cursor_x = x + 2 + self.cursor - start
        under = self.value[self.cursor] if self.cursor < len(self.value) else " "
        canvas.set_cell(cursor_x, y + 4, under, Style(reverse=True))
        draw_centered(canvas, x, w, y + 6, "Enter:OK  Esc:Cancel", HINT_STYLE)


class ShortcutsModal(Modal):
    """Keyboard shortcut reference."""

    name = "shortcuts"

    def show(self, screen_w: int, screen_h: int) -> None:
        self.open(screen_w, screen_h)

    def on_key(self, event: KeyEvent) -> None:
        if event.key == "escape" or event.combo in shortcuts.SHORTCUTS_HELP or event.char == "?":
            self.hide()

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        sections = shortcuts.HELP_SECTIONS
        key_w = max(len(k) for _, entries in sections for k, _ in entries)
        desc_w = max(len(d) for _, entries in sections for _, d in entries)
        rows = sum(len(entries) + 2 for _, entries in sections)
        x, y, w, h = self._frame(canvas, max(45, key_w + desc_w + 9), rows + 4, ACCENT_STYLE)
        draw_centered(canvas, x, w, y + 1, "Keyboard Shortcuts", ACCENT_STYLE + Style(bold=True))
        canvas.draw_text(x + 1, y + 2, "─" * (w - 2), ACCENT_STYLE)
        row = y + 3
        limit = y + h - 2
        for title, entries in sections:
            if row >= limit:
                break
            canvas.draw_text(x + 3, row, title, OPTION_STYLE + Style(bold=True), max_x=x + w - 1)
            row += 1
            for key, desc in entries:
                if row >= limit:
                    break
                canvas.draw_text(x + 3, row, key, TEXT_STYLE + Style(bold=True), max_x=x + w - 1)
                canvas.draw_text(x + 4 + key_w, row, ": " + desc, HINT_STYLE, max_x=x + w - 1)
                row += 1
            row += 1
        draw_centered(canvas, x, w, y + h - 2, "Press Esc to close", HINT_STYLE)


class LoadingOverlay:
    """Full-screen message shown while a background job runs."""

    def __init__(self) -> None:
        self.active = False
        self.message = ""

    def show(self, message: str) -> None:
        self.active = True
        self.message = message

    def hide(self) -> None:
        self.active = False

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        canvas.fill(0, 0, canvas.width, canvas.height, " ", BLACK_BG)
        draw_centered(canvas, 0, canvas.width, canvas.height // 2, self.message, TEXT_STYLE + Style(bold=True))


class ModalStack:
    """Modals in priority order; the first active one owns the input."""

    def __init__(self, modals: Iterable[Modal]) -> None:
        self._modals = list(modals)

    def __iter__(self):
        return iter(self._modals)

    def active(self) -> Modal | None:
        for modal in self._modals:
            if modal.active:
                return modal
        return None

    def any_active(self) -> bool:
        return self.active() is not None

    def handle_event(self, event: InputEvent) -> bool:
        modal = self.active()
        return modal.handle_event(event) if modal is not None else False

    def render(self, canvas: Canvas) -> None:
        # Lowest priority first so the winner paints on top.
        for modal in reversed(self._modals):
            if modal.active:
                modal.render(canvas)

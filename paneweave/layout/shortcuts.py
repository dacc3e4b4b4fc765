"""Keyboard shortcut surface of the workspace."""

from __future__ import annotations

from paneweave.events import KeyEvent

QUIT = "ctrl+q"
SAVE = "ctrl+s"
QUICK_FIND = "ctrl+p"
PROJECT_PICKER = "ctrl+o"
NEW_FILE = "ctrl+n"
NEW_FOLDER = "ctrl+shift+n"
DELETE = "ctrl+d"
RENAME = "ctrl+r"
CLOSE_TAB = "ctrl+w"
NEW_TERMINAL = "ctrl+t"
CYCLE_FOCUS = "ctrl+space"
COMMAND_PREFIX = "ctrl+\\"
NEXT_TAB = ("ctrl+]", "alt+right")
PREV_TAB = ("ctrl+[", "alt+left")
SHORTCUTS_HELP = ("ctrl+/", "ctrl+_")

# Pane keys match the labels on the nav bar.
PANE_TREE = "1"
PANE_EDITOR = "2"
PANE_TERMINAL_1 = "3"
PANE_TERMINAL_2 = "4"
PANE_TERMINAL_3 = "5"
PANE_SOURCE_CONTROL = "a"
PANE_KEYS = (PANE_TREE, PANE_EDITOR, PANE_TERMINAL_1, PANE_TERMINAL_2, PANE_TERMINAL_3, PANE_SOURCE_CONTROL)

TOGGLE_COMBOS = {f"alt+{key}": key for key in PANE_KEYS}

# Some terminals send Alt+N as ESC N without a modifier flag.
RAW_TOGGLE_SEQUENCES = {f"\x1b{key}": key for key in PANE_KEYS}

# macOS Option+key produces these glyphs when "Option as Meta" is off.
MAC_OPTION_TOGGLES = {
    "¡": PANE_TREE,
    "™": PANE_EDITOR,
    "£": PANE_TERMINAL_1,
    "¢": PANE_TERMINAL_2,
    "∞": PANE_TERMINAL_3,
    "å": PANE_SOURCE_CONTROL,
}

# Keys a focused terminal does not swallow.
TERMINAL_GLOBALS = frozenset(
    {
        QUIT,
        NEW_TERMINAL,
        CLOSE_TAB,
        CYCLE_FOCUS,
        COMMAND_PREFIX,
        QUICK_FIND,
        *NEXT_TAB,
        *PREV_TAB,
        *TOGGLE_COMBOS,
        *SHORTCUTS_HELP,
    }
)

# Second key after the Ctrl+\ prefix.
PREFIX_COMMANDS = {
    "q": "quit",
    "w": "close_tab",
    "space": "cycle_focus",
    "s": "save",
    "n": "new_file",
    "f": "new_folder",
    "d": "delete",
    "r": "rename",
    "p": "passthrough",
}

HELP_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Pane Visibility",
        (
            ("Alt+1", "Toggle tree"),
            ("Alt+a", "Toggle source control"),
            ("Alt+2", "Toggle editor"),
            ("Alt+3", "Toggle terminal"),
            ("Alt+4", "Toggle terminal 2"),
            ("Alt+5", "Toggle terminal 3"),
        ),
    ),
    (
        "Navigation",
        (
            ("Ctrl+Space", "Cycle focus"),
            ("Tab", "Tree to editor"),
            ("Shift+Tab", "Editor to tree"),
            ("Ctrl+P", "Quick find"),
            ("Ctrl+O", "Open project"),
        ),
    ),
    (
        "Editor Tabs",
        (
            ("Ctrl+]", "Next tab"),
            ("Ctrl+[", "Previous tab"),
            ("Ctrl+W", "Close tab"),
        ),
    ),
    (
        "Files",
        (
            ("Ctrl+N", "New file"),
            ("Ctrl+Shift+N", "New folder"),
            ("Ctrl+S", "Save"),
            ("Ctrl+D", "Delete"),
            ("Ctrl+R", "Rename"),
        ),
    ),
    (
        "Terminal",
        (
            ("Ctrl+\\ p", "Toggle passthrough"),
            ("Ctrl+\\ Ctrl+\\", "Leave passthrough"),
            ("Shift+PgUp/PgDn", "Scroll history"),
        ),
    ),
    (
        "Application",
        (
            ("Ctrl+Q", "Quit"),
            ("Ctrl+/", "This help"),
        ),
    ),
)


def toggle_target(event: KeyEvent) -> str | None:
    """Pane key for an Alt+N toggle chord, including macOS Option glyphs."""
    target = TOGGLE_COMBOS.get(event.combo)
    if target is not None:
        return target
    if event.char and not event.ctrl and event.char in MAC_OPTION_TOGGLES:
        return MAC_OPTION_TOGGLES[event.char]
    return None


def matches(event: KeyEvent, *combos: str) -> bool:
    return event.combo in combos


def is_terminal_global(event: KeyEvent) -> bool:
    return event.combo in TERMINAL_GLOBALS or toggle_target(event) is not None

"""Registry of assistant tools a terminal pane can launch."""

from __future__ import annotations

import os
import shlex
import shutil
from dataclasses import dataclass, field

SHELL_KEY = "shell"


def default_shell(override: str = "") -> str:
    """Resolve the user's shell from config, $SHELL, then /bin/bash."""
    if override.strip():
        return override.strip()
    shell = os.getenv("SHELL", "").strip()
    return shell or "/bin/bash"


@dataclass(frozen=True)
class AssistantTool:
    """Command-line assistant metadata."""

    key: str
    name: str
    command: str
    args: tuple[str, ...] = ()
    description: str = ""
    install_command: str = ""
    process_names: tuple[str, ...] = field(default_factory=tuple)
    env_override: str = ""

    def resolve_command(self) -> str:
        value = os.getenv(self.env_override, "").strip() if self.env_override else ""
        return value or self.command

    def command_line(self) -> str:
        return " ".join([self.resolve_command(), *(shlex.quote(arg) for arg in self.args)])

    def is_available(self) -> bool:
        if self.key == SHELL_KEY:
            return True
        try:
            head = shlex.split(self.resolve_command())[0]
        except (ValueError, IndexError):
            return False
        return shutil.which(head) is not None

    def matches_process(self, name: str) -> bool:
        base = os.path.basename(name or "")
        if not base:
            return False
        names = self.process_names or (os.path.basename(self.command),)
        return base in names


def _npm_install(package: str) -> str:
    return f"npm install -g {package}"


TOOLS: dict[str, AssistantTool] = {
    "claude": AssistantTool(
        key="claude",
        name="Claude Code",
        command="claude",
        description="Anthropic's Claude Code CLI",
        install_command=_npm_install("@anthropic-ai/claude-code"),
        process_names=("claude",),
        env_override="PANEWEAVE_CLAUDE_CMD",
    ),
    "claude-yolo": AssistantTool(
        key="claude-yolo",
        name="Claude Code (YOLO)",
        command="claude",
        args=("--dangerously-skip-permissions",),
        description="Claude Code with auto-accept permissions",
        process_names=("claude",),
        env_override="PANEWEAVE_CLAUDE_CMD",
    ),
    "gemini": AssistantTool(
        key="gemini",
        name="Gemini CLI",
        command="gemini",
        description="Google's Gemini CLI",
        install_command=_npm_install("@google/gemini-cli"),
        process_names=("gemini",),
        env_override="PANEWEAVE_GEMINI_CMD",
    ),
    "codex": AssistantTool(
        key="codex",
        name="Codex CLI",
        command="codex",
        description="OpenAI Codex CLI",
        install_command=_npm_install("@openai/codex"),
        process_names=("codex",),
        env_override="PANEWEAVE_CODEX_CMD",
    ),
    "opencode": AssistantTool(
        key="opencode",
        name="OpenCode",
        command="opencode",
        description="OpenCode AI coding assistant",
        process_names=("opencode",),
    ),
    "aider": AssistantTool(
        key="aider",
        name="Aider",
        command="aider",
        description="AI pair programming in your terminal",
        process_names=("aider",),
    ),
    "copilot": AssistantTool(
        key="copilot",
        name="GitHub Copilot",
        command="copilot",
        description="GitHub Copilot CLI",
        install_command=_npm_install("@github/copilot"),
        process_names=("copilot",),
    ),
    "ollama": AssistantTool(
        key="ollama",
        name="Ollama",
        command="ollama",
        description="Run LLMs locally",
        process_names=("ollama",),
    ),
    "kiro": AssistantTool(
        key="kiro",
        name="Kiro CLI",
        command="kiro-cli",
        description="AI coding assistant",
        process_names=("kiro-cli",),
    ),
}

SHELL_TOOL = AssistantTool(
    key=SHELL_KEY,
    name="Shell (default)",
    command="",
    description="Your default shell",
)


def get_tool(key: str) -> AssistantTool:
    """Look up a tool by key."""
    name = (key or "").strip().lower()
    if name == SHELL_KEY:
        return SHELL_TOOL
    if name not in TOOLS:
        choices = ", ".join(sorted([*TOOLS, SHELL_KEY]))
        raise ValueError(f"Unknown tool '{key}'. Expected one of: {choices}")
    return TOOLS[name]


def available_tools() -> list[AssistantTool]:
    """Installed tools, with the plain shell first."""
    return [SHELL_TOOL, *(tool for tool in TOOLS.values() if tool.is_available())]


def installable_tools() -> list[AssistantTool]:
    """Tools that are missing but have a known install command."""
    return [tool for tool in TOOLS.values() if tool.install_command and not tool.is_available()]


def tool_for_process(name: str) -> AssistantTool | None:
    """First registered tool whose process name matches ``name``."""
    for tool in TOOLS.values():
        if tool.matches_process(name):
            return tool
    return None


def tool_for_command(command: str | None) -> AssistantTool | None:
    """Tool whose command line starts ``command``, None for a shell."""
    if not command:
        return None
    try:
        head = os.path.basename(shlex.split(command)[0])
    except (ValueError, IndexError):
        return None
    for tool in TOOLS.values():
        try:
            tool_head = shlex.split(tool.resolve_command())[0]
        except (ValueError, IndexError):
            continue
        if os.path.basename(tool_head) == head:
            return tool
    return None

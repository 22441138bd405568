"""Log sink for script output and VM status messages.

The virtual machine writes to any object implementing :class:`LogSink`.
:class:`Terminal` is the reference sink: an in-memory scrollback that
formats numbers the way the flight terminal shows them.

Example:
    >>> from autopilot.terminal import LogLevel, Terminal
    >>>
    >>> term = Terminal()
    >>> term.emit(1234.5678, LogLevel.INFO)
    >>> term.lines[-1].text
    '> 1234.57'
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

# =============================================================================
# Levels and Protocol
# =============================================================================


class LogLevel(Enum):
    """Severity of a terminal message."""

    INFO = "info"
    SYS = "sys"
    WARN = "warn"
    ERR = "err"


@runtime_checkable
class LogSink(Protocol):
    """Protocol for VM output sinks."""

    def emit(
        self,
        value: object,
        level: LogLevel = LogLevel.INFO,
        position: tuple[float, float] | None = None,
    ) -> None:
        """Write one message."""
        ...

    def clear(self) -> None:
        """Clear the screen."""
        ...


# =============================================================================
# Terminal
# =============================================================================


@dataclass(frozen=True)
class TerminalLine:
    """A rendered terminal line.

    Attributes:
        text: Display text, prefixed with "> "
        level: Message level
        position: Optional PRINT AT position hint
    """
    text: str
    level: LogLevel
    position: tuple[float, float] | None = None


@dataclass
class Terminal:
    """In-memory terminal with bounded scrollback.

    Attributes:
        max_lines: Scrollback length; oldest lines are dropped first
        lines: Rendered lines, oldest first
    """
    max_lines: int = 200
    lines: list[TerminalLine] = field(default_factory=list)

    def emit(
        self,
        value: object,
        level: LogLevel = LogLevel.INFO,
        position: tuple[float, float] | None = None,
    ) -> None:
        if value is None:
            return
        if isinstance(value, float):
            text = f"{value:.2f}"
        else:
            text = str(value)
        self.lines.append(TerminalLine(f"> {text}", level, position))
        if len(self.lines) > self.max_lines:
            del self.lines[: len(self.lines) - self.max_lines]

    def clear(self) -> None:
        self.lines.clear()

    def texts(self) -> list[str]:
        """Line texts without the prompt prefix."""
        return [line.text[2:] for line in self.lines]

    def render(self) -> str:
        return "\n".join(line.text for line in self.lines)

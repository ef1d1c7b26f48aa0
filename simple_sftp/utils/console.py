"""Colorful console logging for scripts driving simple_sftp."""

import logging
import re
import sys
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "green": "\033[32m",
    "cyan": "\033[36m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "simple_sftp.client": COLORS["bright_cyan"],
    "simple_sftp.services.connection": COLORS["bright_magenta"],
    "simple_sftp.services.session": COLORS["bright_magenta"],
    "simple_sftp.services.transfer": COLORS["bright_blue"],
    "simple_sftp.config": COLORS["green"],
    "default": COLORS["white"],
}

_SSH_TARGET = re.compile(r"([\w.\-]+@[\w.\-]+:\d+)")
_FILE_COUNT = re.compile(r"(\d+ file\(s\))")

NOISY_LOGGERS = ("asyncssh", "asyncssh.sftp")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt:%H:%M:%S}.{int(record.msecs):03d} {dt:%m/%d}"

    def _format_level(self, record: logging.LogRecord) -> str:
        """Format log level with color and fixed width."""
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name.removeprefix("simple_sftp.")
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def _highlight_message(self, message: str) -> str:
        """Highlight user@host:port targets and file counts."""
        if not self.use_colors:
            return message

        message = _SSH_TARGET.sub(
            f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
        )
        return _FILE_COUNT.sub(f"{COLORS['cyan']}\\1{COLORS['reset']}", message)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str = "INFO", use_colors: bool = True) -> logging.Logger:
    """Attach a stderr handler to the simple_sftp logger.

    Safe to call more than once; the handler is only added the first time.
    Colors are disabled when stderr is not a TTY.

    Args:
        level: Log level name
        use_colors: Whether to use ANSI colors

    Returns:
        The configured simple_sftp logger
    """
    if not sys.stderr.isatty():
        use_colors = False

    package_logger = logging.getLogger("simple_sftp")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    return package_logger

"""httpdconf Exceptions

Errors raised while loading and querying configuration files.
"""


class ConfigFileError(Exception):
    """Base exception for all httpdconf errors."""

    kind = "error"


class ConfigIOError(ConfigFileError, OSError):
    """Raised when the top-level or an included file cannot be read."""

    kind = "io_error"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot read '{path}': {reason} (did you define ServerRoot first?)"
        )


class ConfigParseError(ConfigFileError):
    """Base class for errors tied to one source line."""

    kind = "parse_error"

    def __init__(self, message: str, file: str = "", line_number: int = 0):
        self.file = file
        self.line_number = line_number
        self.detail = message
        super().__init__(f"{file} line {line_number}: {message}")


class MalformedLineError(ConfigParseError):
    """Raised when a line is neither a block marker nor a directive."""

    kind = "malformed_line"


class MismatchedCloseError(ConfigParseError):
    """Raised when a closing tag does not match the open block."""

    kind = "mismatched_close"


class UnclosedBlockError(ConfigParseError):
    """Raised when input ends with blocks still open."""

    kind = "unclosed_block"

    def __init__(self, tag: str, file: str = "", line_number: int = 0):
        self.tag = tag
        super().__init__(f"Unclosed block '<{tag}>'", file, line_number)


class UnsupportedQueryError(ConfigFileError, ValueError):
    """Raised when a context query carries more than one search criterion."""

    kind = "unsupported_query"

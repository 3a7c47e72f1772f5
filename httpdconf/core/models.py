"""
httpdconf Data Models
Core data structures shared by the loader, parser and navigator.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple


DEFAULT_CONFIG_FILE = "/usr/local/apache/conf/httpd.conf"

# One directive line's worth of tokens
Row = Tuple[str, ...]


@dataclass(frozen=True)
class ConfigNode:
    """One parse scope: the root, or the body of one block instance."""
    directives: Mapping[str, Tuple[Row, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    blocks: Mapping[str, "BlockGroup"] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def to_dict(self) -> dict:
        """Plain nested dict/list form, for dumping."""
        return {
            "directives": {
                name: [list(row) for row in rows]
                for name, rows in self.directives.items()
            },
            "blocks": {
                tag: {
                    param: [node.to_dict() for node in instances]
                    for param, instances in group.items()
                }
                for tag, group in self.blocks.items()
            },
        }


# Block parameter -> instances, in source order
BlockGroup = Mapping[str, Tuple[ConfigNode, ...]]


class SourceLine(NamedTuple):
    """A raw line with its provenance."""
    text: str
    file: str
    line_number: int


class LineKind(Enum):
    BLANK = "blank"
    BLOCK_OPEN = "block_open"
    BLOCK_CLOSE = "block_close"
    DIRECTIVE = "directive"


@dataclass(frozen=True)
class ClassifiedLine:
    """Result of tokenizing one line."""
    kind: LineKind
    tag: str = ""           # BLOCK_OPEN / BLOCK_CLOSE
    param: str = ""         # BLOCK_OPEN only
    name: str = ""          # DIRECTIVE only
    raw_value: str = ""     # DIRECTIVE only, unsplit value text


@dataclass(frozen=True)
class ConfigOptions:
    """Options given to the constructing call."""
    file: str = DEFAULT_CONFIG_FILE
    ignore_case: bool = False
    fix_booleans: bool = False
    expand_vars: bool = False
    raise_error: bool = False
    inherit_from: Optional[str] = None       # accepted, not implemented
    server_root: Optional[str] = None        # seeds the root directory
    allowed_root: Optional[str] = None       # included files must lie below this
    root_directive: str = "ServerRoot"
    set_var_directive: str = "PerlSetVar"

    @classmethod
    def from_kwargs(cls, **kwargs) -> "ConfigOptions":
        """Build options, rejecting names that are not options."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(
                f"Unknown configuration option(s): {', '.join(unknown)}. "
                f"Valid options: {sorted(known)}"
            )
        if kwargs.get("file") is None:
            kwargs.pop("file", None)
        return cls(**kwargs)


@dataclass
class RootDirectory:
    """Root directory seen so far while scanning; threaded through includes."""
    value: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem found while loading."""
    kind: str               # io_error | malformed_line | mismatched_close | unclosed_block
    message: str
    file: str = ""
    line_number: int = 0


@dataclass
class ParseResult:
    """Completed tree plus whatever was skipped to build it."""
    root: ConfigNode
    diagnostics: list = field(default_factory=list)   # list[Diagnostic]

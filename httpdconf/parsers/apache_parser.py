"""
Apache Configuration Parser
Tokenizes httpd.conf-style lines and builds the nested directive tree,
with XML-style <Block param> ... </Block> sections.
"""

import re
import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from httpdconf.core.exceptions import (
    ConfigParseError,
    MalformedLineError,
    MismatchedCloseError,
    UnclosedBlockError,
)
from httpdconf.core.models import (
    ClassifiedLine,
    ConfigNode,
    Diagnostic,
    LineKind,
    ParseResult,
    Row,
    SourceLine,
)
from httpdconf.core.normalizer import Normalizer
from httpdconf.core.variable_expander import VariableExpander


logger = logging.getLogger("httpdconf.parser")

# Everything up to the first '#' that is not inside a double-quoted run
CODE_RE = re.compile(r'^(?:[^"#]|"[^"]*"?)*')
BLOCK_CLOSE_RE = re.compile(r'^\s*</([^\s<>]+)\s*>\s*$')
BLOCK_OPEN_RE = re.compile(r'^\s*<([^\s/<>][^\s<>]*)(?:\s+([^<>]*?))?\s*>\s*$')
DIRECTIVE_RE = re.compile(r'^\s*(\w+)(?:\s+(.*))?$')
TOKEN_RE = re.compile(r'"([^"]*)"|([^\s,]+)')


def strip_comment(text: str) -> str:
    """Drop a trailing comment, keeping the directive text before it."""
    return CODE_RE.match(text).group(0).rstrip()


def split_tokens(raw_value: str) -> List[str]:
    """
    Split a directive's value text into tokens.

    A double-quoted run is one token (quotes removed, no escapes);
    otherwise tokens are runs of characters other than whitespace and
    commas.

        '"a b" c'   ->  ['a b', 'c']
        'a,b  c'    ->  ['a', 'b', 'c']
    """
    tokens = []
    for match in TOKEN_RE.finditer(raw_value):
        quoted, bare = match.groups()
        tokens.append(quoted if quoted is not None else bare)
    return tokens


def classify_line(text: str) -> ClassifiedLine:
    """
    Classify one raw line.

    Raises:
        MalformedLineError: If the line is neither blank, a block marker
            nor a directive. File/line are filled in by the caller.
    """
    code = strip_comment(text)
    if not code.strip():
        return ClassifiedLine(LineKind.BLANK)

    close_match = BLOCK_CLOSE_RE.match(code)
    if close_match:
        return ClassifiedLine(LineKind.BLOCK_CLOSE, tag=close_match.group(1))

    open_match = BLOCK_OPEN_RE.match(code)
    if open_match:
        return ClassifiedLine(
            LineKind.BLOCK_OPEN,
            tag=open_match.group(1),
            param=_unquote(open_match.group(2) or ""),
        )

    directive_match = DIRECTIVE_RE.match(code)
    if directive_match:
        return ClassifiedLine(
            LineKind.DIRECTIVE,
            name=directive_match.group(1),
            raw_value=directive_match.group(2) or "",
        )

    raise MalformedLineError(f"Unrecognized line '{code.strip()}'")


def _unquote(param: str) -> str:
    param = param.strip()
    if len(param) >= 2 and param[0] == param[-1] and param[0] in ('"', "'"):
        return param[1:-1]
    return param


class _Scope:
    """Mutable scope used only while building; frozen into a ConfigNode."""

    def __init__(self):
        self.directives: Dict[str, List[Row]] = {}
        self.blocks: Dict[str, Dict[str, List["_Scope"]]] = {}

    def freeze(self) -> ConfigNode:
        return ConfigNode(
            directives=MappingProxyType(
                {name: tuple(rows) for name, rows in self.directives.items()}
            ),
            blocks=MappingProxyType({
                tag: MappingProxyType({
                    param: tuple(scope.freeze() for scope in scopes)
                    for param, scopes in group.items()
                })
                for tag, group in self.blocks.items()
            }),
        )


class ApacheParser:
    """Builds the directive tree for Apache httpd configuration files."""

    def __init__(
        self,
        normalizer: Optional[Normalizer] = None,
        expand_vars: bool = False,
        raise_error: bool = False,
    ):
        self.normalizer = normalizer or Normalizer()
        self.expand_vars = expand_vars
        self.raise_error = raise_error

    def parse(self, lines: Iterable[SourceLine]) -> ParseResult:
        """
        Parse a flattened line stream into a frozen tree.

        Args:
            lines: Lines from the SourceLoader (includes already inlined).

        Returns:
            ParseResult holding the root ConfigNode and any diagnostics.

        Raises:
            ConfigParseError: On structural errors, if raise_error is set.
        """
        diagnostics: List[Diagnostic] = []
        root = _Scope()
        current = root
        # (parent scope, tag the child was opened with, opening line)
        stack: List[Tuple[_Scope, str, SourceLine]] = []
        expander = VariableExpander(root.directives, self.normalizer.normalize_key)

        for line in lines:
            try:
                classified = classify_line(line.text)
            except MalformedLineError as e:
                self._error(MalformedLineError(e.detail, line.file, line.line_number), diagnostics)
                continue

            if classified.kind == LineKind.BLANK:
                continue

            if classified.kind == LineKind.BLOCK_CLOSE:
                tag = self.normalizer.normalize_key(classified.tag)
                if not stack or stack[-1][1] != tag:
                    expected = f", expected '</{stack[-1][1]}>'" if stack else ""
                    self._error(MismatchedCloseError(
                        f"Mismatched closing tag '{classified.tag}'{expected}",
                        line.file, line.line_number,
                    ), diagnostics)
                    continue
                current = stack.pop()[0]
                continue

            if classified.kind == LineKind.BLOCK_OPEN:
                tag = self.normalizer.normalize_key(classified.tag)
                stack.append((current, tag, line))
                child = _Scope()
                current.blocks.setdefault(tag, {}).setdefault(classified.param, []).append(child)
                current = child
                continue

            raw_value = classified.raw_value
            if self.expand_vars:
                raw_value = expander.expand(raw_value)
            row = self.normalizer.normalize_row(split_tokens(raw_value))
            name = self.normalizer.normalize_key(classified.name)
            current.directives.setdefault(name, []).append(row)

        if stack:
            _, tag, opened = stack[0]
            self._error(UnclosedBlockError(tag, opened.file, opened.line_number), diagnostics)

        logger.debug(f"Parsed tree with {len(root.directives)} top-level directives, "
                     f"{len(root.blocks)} top-level block tags")
        return ParseResult(root=root.freeze(), diagnostics=diagnostics)

    def _error(self, error: ConfigParseError, diagnostics: List[Diagnostic]):
        if self.raise_error:
            raise error
        logger.warning(str(error))
        diagnostics.append(Diagnostic(
            kind=error.kind,
            message=str(error),
            file=error.file,
            line_number=error.line_number,
        ))

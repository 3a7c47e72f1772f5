"""
Module 3 - Parser Engine
Runs the load pipeline (source loader -> parser -> frozen tree) and owns
the currently active tree of a configuration file.
"""

import logging
from typing import Dict, Iterator, List, Optional

from httpdconf.core.input_handler import SourceLoader
from httpdconf.core.models import ConfigNode, ConfigOptions, Diagnostic, ParseResult, RootDirectory
from httpdconf.core.navigator import ContextHandle
from httpdconf.core.normalizer import Normalizer
from httpdconf.parsers.apache_parser import ApacheParser


logger = logging.getLogger("httpdconf.engine")


def build_tree(options: ConfigOptions, file_path: Optional[str] = None) -> ParseResult:
    """
    Load and parse a configuration file into a new, frozen tree.

    Args:
        options: Parsing options.
        file_path: File to read (defaults to options.file).

    Returns:
        ParseResult with loader and parser diagnostics combined.

    Raises:
        ConfigIOError, ConfigParseError: If raise_error is set.
    """
    file_path = file_path or options.file
    diagnostics: List[Diagnostic] = []

    loader = SourceLoader(
        raise_error=options.raise_error,
        root_directive=options.root_directive,
        diagnostics=diagnostics,
        allowed_root=options.allowed_root,
    )
    lines = loader.load(file_path, RootDirectory(options.server_root or ""))

    parser = ApacheParser(
        normalizer=Normalizer(options.ignore_case, options.fix_booleans),
        expand_vars=options.expand_vars,
        raise_error=options.raise_error,
    )
    result = parser.parse(lines)
    result.diagnostics = diagnostics + result.diagnostics
    return result


class ConfigFile:
    """
    A parsed Apache-style configuration file.

    The active tree is replaced as a whole on reread(); handles obtained
    earlier keep pointing at the tree they were created from.
    """

    def __init__(self, file: Optional[str] = None, **options):
        self.options = ConfigOptions.from_kwargs(file=file, **options)
        if self.options.inherit_from:
            logger.warning(
                f"inherit_from={self.options.inherit_from!r} ignored: "
                f"context inheritance is not supported"
            )
        self._tree: ConfigNode = ConfigNode()
        self._diagnostics: List[Diagnostic] = []
        self.reread()

    def reread(self, file: Optional[str] = None) -> ConfigNode:
        """
        Re-read the configuration and swap in the new tree.

        If the load fails under raise_error, the previous tree stays active.
        """
        file_path = file or self.options.file
        result = build_tree(self.options, file_path)

        self._tree, self._diagnostics = result.root, result.diagnostics
        logger.info(
            f"Loaded {file_path}: {len(result.root.directives)} top-level directives, "
            f"{len(result.root.blocks)} block tags, {len(result.diagnostics)} problems"
        )
        return self._tree

    @property
    def tree(self) -> ConfigNode:
        return self._tree

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def context(self) -> ContextHandle:
        """Handle on the top level of the current tree."""
        return ContextHandle(self._tree, self.options)

    def write(self, file: Optional[str] = None):
        raise NotImplementedError("Writing configuration files is not supported")

    # --- Root-context queries ---

    def resolve(self, tag: str = "", param: str = "", *criteria):
        return self.context().resolve(tag, param, *criteria)

    def contexts(self, tag: str, param: str = "", *criteria) -> List[ContextHandle]:
        return self.context().contexts(tag, param, *criteria)

    def block_params(self, tag: str) -> List[str]:
        return self.context().block_params(tag)

    def directive_values(self, name: str = "") -> List[str]:
        return self.context().directive_values(name)

    def first(self, name: str) -> Optional[str]:
        return self.context().first(name)

    def all(self, name: str = "") -> List[str]:
        return self.context().all(name)

    def get(self, name: str, default=None):
        return self.context().get(name, default)

    def rows(self, name: str) -> Iterator[List[str]]:
        return self.context().rows(name)

    def all_rows(self, name: str) -> List[List[str]]:
        return self.context().all_rows(name)

    def rows_as_map(self, name: str) -> Dict[str, List[str]]:
        return self.context().rows_as_map(name)

    def dir_config(self, name: str) -> Optional[str]:
        return self.context().dir_config(name)


def read(file: Optional[str] = None, **options) -> ConfigFile:
    """Read a configuration file; see ConfigOptions for the options."""
    return ConfigFile(file, **options)

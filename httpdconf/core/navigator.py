"""
Module 5 - Context Navigator
Read-only query layer over a parsed tree. Every navigation step returns
a new ContextHandle; the tree itself is never touched.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Union

from httpdconf.core.exceptions import UnsupportedQueryError
from httpdconf.core.models import ConfigNode, ConfigOptions, Row
from httpdconf.core.normalizer import Normalizer


logger = logging.getLogger("httpdconf.navigator")


class ContextHandle:
    """
    A view of one scope of a parsed configuration.

    Handles are immutable and cheap: a reference to one ConfigNode, the
    root of its tree (for context resets) and the options the tree was
    built with.
    """

    __slots__ = ("_node", "_root", "_options", "_normalizer")

    def __init__(self, node: ConfigNode, options: ConfigOptions, root: Optional[ConfigNode] = None):
        self._node = node
        self._root = root if root is not None else node
        self._options = options
        self._normalizer = Normalizer(options.ignore_case, options.fix_booleans)

    def __repr__(self) -> str:
        return (f"ContextHandle(directives={len(self._node.directives)}, "
                f"blocks={len(self._node.blocks)})")

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContextHandle):
            return NotImplemented
        return self._node is other._node and self._options == other._options

    def __hash__(self) -> int:
        return hash(id(self._node))

    @property
    def options(self) -> ConfigOptions:
        return self._options

    def _key(self, name: str) -> str:
        return self._normalizer.normalize_key(name)

    def _handle(self, node: ConfigNode) -> "ContextHandle":
        return ContextHandle(node, self._options, self._root)

    # --- Block navigation ---

    def resolve(self, tag: str = "", param: str = "", *criteria) -> Union["ContextHandle", List[str], List["ContextHandle"]]:
        """
        Navigate to block instances.

        - no tag: the root context
        - tag only: the distinct parameter keys of that tag
        - tag and param: every matching instance, narrowed by at most one
          criterion, either an instance index or a (directive, value) pair

        Args:
            tag: Block tag, e.g. "VirtualHost".
            param: Block parameter, e.g. "10.1.1.2"; "" for bare blocks
                like <Limit> is reached through contexts().
            criteria: Optional single search criterion.

        Returns:
            ContextHandle, list of parameter keys, or list of ContextHandles
            (empty when nothing matches).

        Raises:
            UnsupportedQueryError: If more than one criterion is given.
        """
        if not tag:
            return self.root()
        if not param and not criteria:
            return self.block_params(tag)
        return self.contexts(tag, param, *criteria)

    def root(self) -> "ContextHandle":
        """Reset to the top level of the configuration."""
        return ContextHandle(self._root, self._options)

    def block_params(self, tag: str) -> List[str]:
        """Parameter keys present for a block tag, in first-seen order."""
        return list(self._node.blocks.get(self._key(tag), {}).keys())

    def contexts(self, tag: str, param: str = "", *criteria) -> List["ContextHandle"]:
        """All instances of <tag param> matching the optional criterion."""
        if len(criteria) > 1:
            raise UnsupportedQueryError(
                f"Only one additional search criterion is supported, got {len(criteria)}"
            )

        instances = self._node.blocks.get(self._key(tag), {}).get(param)
        if not instances:
            logger.debug(f"No <{tag} {param}> block in this context")
            return []

        if not criteria:
            return [self._handle(node) for node in instances]

        criterion = criteria[0]
        if isinstance(criterion, int) and not isinstance(criterion, bool):
            if not 0 <= criterion < len(instances):
                logger.debug(f"<{tag} {param}> has no instance {criterion} "
                             f"({len(instances)} present)")
                return []
            return [self._handle(instances[criterion])]

        if isinstance(criterion, (tuple, list)) and len(criterion) == 2:
            directive, value = criterion
            directive = self._key(directive)
            if value is None:
                return []
            return [
                self._handle(node) for node in instances
                if _first_token(node.directives.get(directive)) == str(value)
            ]

        raise UnsupportedQueryError(
            f"Unsupported search criterion {criterion!r}: "
            f"expected an index or a (directive, value) pair"
        )

    def context(self, tag: str, param: str = "", *criteria) -> Optional["ContextHandle"]:
        """First instance of <tag param> matching the criterion, or None."""
        found = self.contexts(tag, param, *criteria)
        return found[0] if found else None

    # --- Directive access ---

    def directive_values(self, name: str = "") -> List[str]:
        """
        Values of a directive in this context.

        With no name, lists the directive names and block tags present.
        A block tag yields that block's parameter keys instead of values.
        Otherwise returns every token of every row, in order.
        """
        if not name:
            return list(self._node.directives.keys()) + list(self._node.blocks.keys())
        key = self._key(name)
        if key in self._node.blocks:
            return list(self._node.blocks[key].keys())
        return [token for row in self._node.directives.get(key, ()) for token in row]

    def all(self, name: str = "") -> List[str]:
        """Plural access: same as directive_values()."""
        return self.directive_values(name)

    def first(self, name: str) -> Optional[str]:
        """Singular access: first token of the first row, or None."""
        key = self._key(name)
        if key in self._node.blocks:
            params = list(self._node.blocks[key].keys())
            return params[0] if params else None
        return _first_token(self._node.directives.get(key))

    def get(self, name: str, default: Any = None) -> Any:
        """first() with a default, for attribute-style lookups."""
        value = self.first(name)
        return default if value is None else value

    def rows(self, name: str) -> Iterator[List[str]]:
        """Iterate the rows of a repeated directive one at a time."""
        for row in self._node.directives.get(self._key(name), ()):
            yield list(row)

    def all_rows(self, name: str) -> List[List[str]]:
        """Every row of a directive, unflattened."""
        return list(self.rows(name))

    def rows_as_map(self, name: str) -> Dict[str, List[str]]:
        """
        Map each row's first token to the rest of the row.

        When a first token repeats, the later row wins.
        """
        mapping: Dict[str, List[str]] = {}
        for row in self.rows(name):
            if row:
                mapping[row[0]] = row[1:]
        return mapping

    def dir_config(self, name: str) -> Optional[str]:
        """
        Value of a variable set through the set-variable directive
        (PerlSetVar by default) in this context.
        """
        if not name:
            return None
        key = self._key(name)
        value = None
        for row in self.rows(self._options.set_var_directive):
            if row and self._key(row[0]) == key:
                value = row[1] if len(row) > 1 else ""
        return value

    # --- Raw access ---

    def data(self) -> ConfigNode:
        """The underlying node, read-only."""
        return self._node

    def to_dict(self) -> dict:
        return self._node.to_dict()


def _first_token(rows: Optional[tuple]) -> Optional[str]:
    if not rows or not rows[0]:
        return None
    row: Row = rows[0]
    return row[0]

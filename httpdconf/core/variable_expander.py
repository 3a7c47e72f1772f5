"""
Variable Expander
Substitutes $name / ${name} references in a directive's value text with
values of directives defined at the top level of the file.
"""

import re
import logging
from typing import Callable, Mapping, Sequence

from httpdconf.core.models import Row


logger = logging.getLogger("httpdconf.expander")

VARIABLE_RE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")


class VariableExpander:
    """
    Single-pass textual substitution.

    Only directives stored at the root scope are visible, whatever the
    depth of the line being expanded. The value of a variable is the first
    token of its most recently appended row; names that do not resolve
    expand to the empty string.
    """

    def __init__(
        self,
        root_directives: Mapping[str, Sequence[Row]],
        normalize_key: Callable[[str], str],
    ):
        self._root_directives = root_directives
        self._normalize_key = normalize_key

    def expand(self, text: str) -> str:
        return VARIABLE_RE.sub(self._substitute, text)

    def lookup(self, name: str) -> str:
        rows = self._root_directives.get(self._normalize_key(name))
        if not rows or not rows[-1]:
            logger.debug(f"Variable ${name} is not defined at the top level")
            return ""
        return rows[-1][0]

    def _substitute(self, match) -> str:
        return self.lookup(match.group(1) or match.group(2))

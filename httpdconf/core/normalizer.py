"""
Module 4 - Normalizer
Case policy for directive/block names, boolean-literal fixing and
attribute-style name mangling.
"""

import re
from typing import Tuple

from httpdconf.core.models import Row


BOOL_TRUE = {"yes", "true", "on"}
BOOL_FALSE = {"no", "false", "off"}


class Normalizer:
    """Normalizes names and values according to the configured options."""

    def __init__(self, ignore_case: bool = False, fix_booleans: bool = False):
        self.ignore_case = ignore_case
        self.fix_booleans = fix_booleans

    def normalize_key(self, key: str) -> str:
        """
        Normalize a directive or block name.

        The same function runs at insertion and at lookup, so a tree built
        with ignore_case is always queried case-insensitively.
        """
        if not key:
            return key
        return key.lower() if self.ignore_case else key

    def normalize_row(self, tokens) -> Row:
        """Apply boolean fixing to the first token of a row."""
        row = tuple(tokens)
        if not self.fix_booleans or not row:
            return row
        return (fix_boolean(row[0]),) + row[1:]


def fix_boolean(value: str) -> str:
    """Map yes/true/on to "1" and no/false/off to "0"; leave anything else."""
    value_lower = value.lower()
    if value_lower in BOOL_TRUE:
        return "1"
    elif value_lower in BOOL_FALSE:
        return "0"
    return value


def mangle_name(name: str) -> str:
    """
    Turn an attribute-style name into a directive name.

    Each underscore is dropped and the letter after it capitalized, then the
    first letter is capitalized:

        server_root   -> ServerRoot
        document_root -> DocumentRoot
        DocumentRoot  -> DocumentRoot
    """
    name = re.sub(r"_(\w)", lambda m: m.group(1).upper(), name)
    return name[:1].upper() + name[1:]


def split_option_pair(text: str) -> Tuple[str, str]:
    """Split "Tag=Param" (or "Tag") as used by the CLI and web layer."""
    tag, _, param = text.partition("=")
    return tag.strip(), param.strip()

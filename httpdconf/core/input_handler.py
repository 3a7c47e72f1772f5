"""
Module 1 - Source Loader
Reads the top-level configuration file and expands Include-style
directives in place, producing one flat list of lines with provenance.
"""

import os
import re
import logging
from typing import List, Optional

from httpdconf.core.exceptions import ConfigIOError
from httpdconf.core.models import Diagnostic, RootDirectory, SourceLine


logger = logging.getLogger("httpdconf.loader")


class SourceLoader:
    """Flattens a configuration file and everything it includes."""

    INCLUDE_DIRECTIVES = ("Include", "AccessConfig", "ResourceConfig")
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB limit

    def __init__(
        self,
        raise_error: bool = False,
        root_directive: str = "ServerRoot",
        diagnostics: Optional[List[Diagnostic]] = None,
        allowed_root: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        self.raise_error = raise_error
        self.allowed_root = os.path.realpath(allowed_root) if allowed_root else None
        if max_file_size is not None:
            self.MAX_FILE_SIZE = max_file_size
        self.diagnostics = diagnostics if diagnostics is not None else []
        self._root_re = re.compile(
            rf'^\s*{re.escape(root_directive)}\s+(?:"([^"]*)"|([^\s"#]+))', re.IGNORECASE
        )
        self._include_re = re.compile(
            rf'^\s*(?:{"|".join(self.INCLUDE_DIRECTIVES)})\s+(?:"([^"]*)"|([^\s"#]+))',
            re.IGNORECASE,
        )

    def load(self, file_path: str, root: Optional[RootDirectory] = None) -> List[SourceLine]:
        """
        Load a file, recursively inlining included files.

        Args:
            file_path: Path to the top-level configuration file.
            root: Root-directory accumulator. Updated whenever a root
                directive is scanned and used to resolve relative include
                paths from then on, across files.

        Returns:
            Ordered list of SourceLine objects.

        Raises:
            ConfigIOError: If a file cannot be read and raise_error is set.
        """
        if root is None:
            root = RootDirectory()
        lines = self._include(file_path, root, [])
        logger.debug(f"Loaded {len(lines)} lines starting from {file_path}")
        return lines

    def _include(self, file_path: str, root: RootDirectory, stack: List[str]) -> List[SourceLine]:
        """Read one file and splice its includes in where they occur."""
        file_path = self._resolve(file_path, root)

        real_path = os.path.realpath(file_path)
        if real_path in stack:
            self._error(ConfigIOError(file_path, "Recursive include"))
            return []

        reason = self._check(real_path)
        if reason:
            self._error(ConfigIOError(file_path, reason))
            return []

        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            self._error(ConfigIOError(file_path, reason))
            return []

        result: List[SourceLine] = []
        texts = content.split('\n')
        if texts and texts[-1] == '':
            texts.pop()

        for number, text in enumerate(texts, start=1):
            text = text.rstrip('\r')
            root_match = self._root_re.match(text)
            if root_match:
                root.value = _argument(root_match)
                logger.debug(f"{file_path} line {number}: root directory is now {root.value}")
            else:
                include_match = self._include_re.match(text)
                if include_match:
                    target = _argument(include_match)
                    logger.debug(f"{file_path} line {number}: including {target}")
                    result.extend(self._include(target, root, stack + [real_path]))
                    continue
            result.append(SourceLine(text, file_path, number))

        return result

    def _check(self, real_path: str) -> Optional[str]:
        """Reason a resolved path may not be read, or None if it may."""
        if self.allowed_root and os.path.commonpath([self.allowed_root, real_path]) != self.allowed_root:
            return f"Outside of the allowed directory {self.allowed_root}"
        if not os.path.exists(real_path):
            return None  # open() reports the missing file
        if not os.path.isfile(real_path):
            return "Not a regular file"
        if os.path.getsize(real_path) > self.MAX_FILE_SIZE:
            return f"File exceeds maximum size ({self.MAX_FILE_SIZE} bytes)"
        return None

    @staticmethod
    def _resolve(file_path: str, root: RootDirectory) -> str:
        """Join a relative path to the current root directory, if one is set."""
        if not os.path.isabs(file_path) and root.value:
            return os.path.join(root.value, file_path)
        return file_path

    def _error(self, error: ConfigIOError):
        if self.raise_error:
            raise error
        logger.warning(str(error))
        self.diagnostics.append(Diagnostic(kind=error.kind, message=str(error), file=error.path))


def _argument(match) -> str:
    """The quoted or bare path argument of a root/include directive."""
    quoted, bare = match.groups()
    return (quoted if quoted is not None else bare).strip()

"""
Module 8 - Report Generator
Debug dumps of a parsed configuration: JSON for programs, indented text
(rendered with Jinja2 templates) for people.
"""

import os
import json
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from httpdconf.core.models import ConfigNode
from httpdconf.core.navigator import ContextHandle


class ReportGenerator:
    """Renders read-only dumps of a configuration tree."""

    INDENT = "    "

    def __init__(self, templates_dir: Optional[str] = None):
        self.templates_dir = templates_dir or os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "templates"
        )
        self._env = Environment(loader=FileSystemLoader(self.templates_dir))

    def generate_json(self, handle: ContextHandle, output_path: Optional[str] = None) -> str:
        """
        Dump the tree under a context as JSON.

        Args:
            handle: Context to dump (the root handle dumps everything).
            output_path: Optional file to write the JSON to.

        Returns:
            The JSON text.
        """
        content = json.dumps(handle.to_dict(), indent=2)
        if output_path:
            self._write(output_path, content)
        return content

    def generate_text(
        self,
        handle: ContextHandle,
        output_path: Optional[str] = None,
        source: str = "",
    ) -> str:
        """Dump the tree under a context as indented text."""
        lines: List[Tuple[int, str]] = []
        self._walk(handle.data(), 0, lines)

        template = self._env.get_template("dump.txt")
        content = template.render(
            source=source,
            lines=lines,
            indent=self.INDENT,
            directive_count=sum(1 for _, text in lines if not text.startswith("<")),
            block_count=sum(1 for _, text in lines if text.startswith("<")),
        )
        if output_path:
            self._write(output_path, content)
        return content

    def _walk(self, node: ConfigNode, depth: int, lines: List[Tuple[int, str]]):
        for name, rows in node.directives.items():
            for row in rows:
                lines.append((depth, f"{name}: {list(row)!r}"))
        for tag, group in node.blocks.items():
            for param, instances in group.items():
                for index, child in enumerate(instances):
                    label = f"<{tag} {json.dumps(param)}>" if param else f"<{tag}>"
                    lines.append((depth, f"{label} #{index}"))
                    self._walk(child, depth + 1, lines)

    @staticmethod
    def _write(output_path: str, content: str):
        os.makedirs(os.path.dirname(output_path) if os.path.dirname(output_path) else '.', exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)

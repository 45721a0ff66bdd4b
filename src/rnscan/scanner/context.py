"""Source classification and per-file rule context."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import PurePath

from rnscan.config import ScanConfig
from rnscan.scanner.heuristics import extract_snippet, line_number
from rnscan.scanner.syntax.nodes import Node, SyntaxTree
from rnscan.scanner.syntax.parser import CodeParser, parse_json

logger = logging.getLogger(__name__)


class FileKind(enum.Enum):
    """Structural category of a source file."""

    CODE = "code"
    JSON = "json"
    MANIFEST = "manifest"
    PROPERTY_LIST = "plist"
    TEXT = "text"


CODE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")


def classify(file_path: str) -> FileKind:
    suffix = PurePath(file_path).suffix.lower()
    if suffix in CODE_EXTENSIONS:
        return FileKind.CODE
    if suffix == ".json":
        return FileKind.JSON
    if suffix == ".xml":
        return FileKind.MANIFEST
    if suffix in (".plist", ".entitlements"):
        return FileKind.PROPERTY_LIST
    return FileKind.TEXT


@dataclass
class RuleContext:
    """Everything a rule may inspect for one file.

    Only the representation matching the file's kind is populated: ``tree``
    for code, ``json_data`` for JSON, ``xml`` for manifests and ``plist`` for
    property lists. ``content`` is always present.

    ``project_path`` is the file's location inside the scanned project as
    ``/src/...``; path-based heuristics match against it so the directory the
    project is checked out under never matters. It defaults to ``file_path``.
    """

    file_path: str
    content: str
    project_path: str = ""
    kind: FileKind = FileKind.TEXT
    tree: SyntaxTree | None = None
    json_data: dict | None = None
    xml: str | None = None
    plist: str | None = None
    config: ScanConfig = field(default_factory=ScanConfig)

    def __post_init__(self) -> None:
        if not self.project_path:
            self.project_path = self.file_path

    def line_of(self, offset: int) -> int:
        return line_number(self.content, offset)

    def snippet(self, line: int, context_lines: int = 2) -> str:
        return extract_snippet(self.content, line, context_lines)

    def line_text(self, line: int) -> str:
        lines = self.content.split("\n")
        if 1 <= line <= len(lines):
            return lines[line - 1]
        return ""

    def source(self, node: Node) -> str:
        return self.content[node.start : node.end]


def build_context(
    file_path: str,
    content: str,
    config: ScanConfig | None = None,
    parser: CodeParser | None = None,
    project_path: str | None = None,
) -> RuleContext:
    """Classify a file and build the representations its rules need."""
    kind = classify(file_path)
    context = RuleContext(
        file_path=file_path,
        content=content,
        project_path=project_path or file_path,
        kind=kind,
        config=config or ScanConfig(),
    )

    if kind == FileKind.CODE:
        context.tree = (parser or CodeParser()).parse(file_path, content)
    elif kind == FileKind.JSON:
        context.json_data = parse_json(content)
        if context.json_data is None:
            logger.debug("Ignoring malformed JSON in %s", file_path)
    elif kind == FileKind.MANIFEST:
        context.xml = content
    elif kind == FileKind.PROPERTY_LIST:
        context.plist = content

    return context

"""JavaScript/TypeScript parsing via tree-sitter.

tree-sitter recovers from syntax errors by wrapping the broken region in
``ERROR`` nodes, so a file with a typo still yields a usable tree for the
rest of its content.
"""

from __future__ import annotations

import functools
import json
import logging
import re
from pathlib import PurePath

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser

from rnscan.scanner.syntax.nodes import (
    ArrayExpression,
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    CatchClause,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    JsxAttribute,
    JsxElement,
    JsxExpression,
    MemberExpression,
    Node,
    ObjectExpression,
    Other,
    Property,
    ReturnStatement,
    StringLiteral,
    SyntaxTree,
    TemplateLiteral,
    VariableDeclarator,
)

logger = logging.getLogger(__name__)

_IDENTIFIER_TYPES = {
    "identifier",
    "property_identifier",
    "shorthand_property_identifier",
    "private_property_identifier",
}
_FUNCTION_TYPES = {
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
}

_ESCAPE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
    "\r\n": "",
}


@functools.lru_cache(maxsize=None)
def _language(dialect: str) -> Language:
    if dialect == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if dialect == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_javascript.language())


def dialect_for(file_path: str) -> str | None:
    """Grammar to use for a code file, or ``None`` for non-code files."""
    suffix = PurePath(file_path).suffix.lower()
    return {
        ".js": "javascript",
        ".jsx": "javascript",
        ".ts": "typescript",
        ".tsx": "tsx",
    }.get(suffix)


def _unescape(raw: str) -> str:
    def replace(match: re.Match[str]) -> str:
        seq = match.group(1)
        if seq.startswith("u{"):
            return chr(int(seq[2:-1], 16))
        if seq[0] == "u" and len(seq) == 5:
            return chr(int(seq[1:], 16))
        if seq[0] == "x" and len(seq) == 3:
            return chr(int(seq[1:], 16))
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE.sub(replace, raw)


class _Converter:
    """Turns a tree-sitter concrete tree into :mod:`nodes` variants."""

    def __init__(self, source: bytes, text: str) -> None:
        self._source = source
        # Byte offsets only diverge from character offsets for non-ASCII input.
        self._ascii = len(source) == len(text)
        self._char_at: list[int] = []
        if not self._ascii:
            offsets = []
            for index, char in enumerate(text):
                offsets.extend([index] * len(char.encode("utf-8")))
            offsets.append(len(text))
            self._char_at = offsets

    def _pos(self, byte_offset: int) -> int:
        if self._ascii:
            return byte_offset
        return self._char_at[min(byte_offset, len(self._char_at) - 1)]

    def _text(self, ts_node) -> str:
        return self._source[ts_node.start_byte : ts_node.end_byte].decode(
            "utf-8", errors="replace"
        )

    def convert(self, ts_node) -> Node:
        kind = ts_node.type
        if kind == "parenthesized_expression":
            inner = [c for c in ts_node.named_children if c.type != "comment"]
            if len(inner) == 1:
                return self.convert(inner[0])

        converted: list[Node] = []
        by_span: dict[tuple[int, int, str], Node] = {}
        for child in ts_node.named_children:
            if child.type == "comment":
                continue
            node = self.convert(child)
            converted.append(node)
            by_span[(child.start_byte, child.end_byte, child.type)] = node

        def field(name: str) -> Node | None:
            child = ts_node.child_by_field_name(name)
            if child is None:
                return None
            return by_span.get((child.start_byte, child.end_byte, child.type))

        base = {
            "raw_type": kind,
            "start": self._pos(ts_node.start_byte),
            "end": self._pos(ts_node.end_byte),
            "children": tuple(converted),
        }

        if kind in _IDENTIFIER_TYPES:
            return Identifier(**base, name=self._text(ts_node))

        if kind == "string":
            return StringLiteral(**base, value=_unescape(self._text(ts_node)[1:-1]))

        if kind == "template_string":
            return TemplateLiteral(**base, quasis=self._quasis(ts_node))

        if kind in ("true", "false"):
            return BooleanLiteral(**base, value=kind == "true")

        if kind == "member_expression":
            prop = ts_node.child_by_field_name("property")
            return MemberExpression(
                **base,
                object=field("object"),
                property_name=self._text(prop) if prop is not None else None,
                computed=False,
            )

        if kind == "subscript_expression":
            return MemberExpression(
                **base,
                object=field("object"),
                property_name=None,
                computed=True,
            )

        if kind == "call_expression":
            args = ts_node.child_by_field_name("arguments")
            if args is None or args.type != "arguments":
                return Other(**base)
            arguments = by_span.get((args.start_byte, args.end_byte, args.type))
            return CallExpression(
                **base,
                callee=field("function"),
                arguments=arguments.children if arguments is not None else (),
            )

        if kind == "object":
            members = tuple(
                Property(
                    raw_type="shorthand_property",
                    start=c.start,
                    end=c.end,
                    children=(c,),
                    key=c,
                    value=c,
                )
                if isinstance(c, Identifier)
                else c
                for c in converted
            )
            return ObjectExpression(
                **{**base, "children": members},
                properties=tuple(c for c in members if isinstance(c, Property)),
            )

        if kind == "pair":
            return Property(**base, key=field("key"), value=field("value"))

        if kind == "array":
            return ArrayExpression(**base, elements=tuple(converted))

        if kind == "variable_declarator":
            return VariableDeclarator(**base, id=field("name"), init=field("value"))

        if kind == "jsx_expression":
            return JsxExpression(**base, expression=converted[0] if converted else None)

        if kind == "jsx_attribute":
            if not converted:
                return Other(**base)
            return JsxAttribute(
                **base,
                name=self._text(ts_node.named_children[0]),
                value=converted[1] if len(converted) > 1 else None,
            )

        if kind in ("jsx_element", "jsx_self_closing_element"):
            return self._jsx_element(ts_node, base, converted)

        if kind in _FUNCTION_TYPES:
            return FunctionExpression(**base, arrow=kind == "arrow_function")

        if kind == "binary_expression":
            operator = ts_node.child_by_field_name("operator")
            return BinaryExpression(
                **base, operator=self._text(operator) if operator is not None else ""
            )

        if kind == "catch_clause":
            return CatchClause(**base)

        if kind == "import_statement":
            source = field("source")
            return ImportDeclaration(
                **base,
                source=source.value if isinstance(source, StringLiteral) else None,
            )

        if kind == "return_statement":
            return ReturnStatement(**base, argument=converted[0] if converted else None)

        return Other(**base)

    def _quasis(self, ts_node) -> tuple[str, ...]:
        pieces = []
        cursor = ts_node.start_byte + 1
        for child in ts_node.named_children:
            if child.type == "template_substitution":
                pieces.append(self._source[cursor : child.start_byte])
                cursor = child.end_byte
        pieces.append(self._source[cursor : max(cursor, ts_node.end_byte - 1)])
        return tuple(p.decode("utf-8", errors="replace") for p in pieces)

    def _jsx_element(self, ts_node, base: dict, converted: list[Node]) -> JsxElement:
        if ts_node.type == "jsx_element":
            opening_ts = next(
                (c for c in ts_node.named_children if c.type == "jsx_opening_element"),
                None,
            )
            opening = next(
                (c for c in converted if c.raw_type == "jsx_opening_element"), None
            )
            attrs_from = opening.children if opening is not None else ()
        else:
            opening_ts = ts_node
            attrs_from = tuple(converted)

        name = None
        if opening_ts is not None:
            name_node = opening_ts.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                name = self._text(name_node)

        return JsxElement(
            **base,
            name=name,
            attributes=tuple(c for c in attrs_from if isinstance(c, JsxAttribute)),
        )


class CodeParser:
    """Parses JS/TS/JSX/TSX sources. One parser per grammar, reused across files."""

    def __init__(self) -> None:
        self._parsers: dict[str, Parser] = {}

    def _parser(self, dialect: str) -> Parser:
        parser = self._parsers.get(dialect)
        if parser is None:
            parser = Parser(_language(dialect))
            self._parsers[dialect] = parser
        return parser

    def parse(self, file_path: str, content: str) -> SyntaxTree | None:
        """Parse ``content``; return ``None`` when no tree can be built."""
        dialect = dialect_for(file_path)
        if dialect is None:
            return None
        source = content.encode("utf-8", errors="surrogatepass")
        try:
            ts_tree = self._parser(dialect).parse(source)
            root = _Converter(source, content).convert(ts_tree.root_node)
        except RecursionError:
            logger.debug("Nesting too deep to parse %s", file_path)
            return None
        except (ValueError, RuntimeError) as e:
            logger.debug("Failed to parse %s: %s", file_path, e)
            return None
        if ts_tree.root_node.has_error:
            logger.debug("Recovered from syntax errors in %s", file_path)
        return SyntaxTree(root, has_errors=ts_tree.root_node.has_error)


def parse_json(content: str) -> dict | None:
    """Parse a JSON document; ``None`` when malformed or not an object."""
    try:
        data = json.loads(content)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None

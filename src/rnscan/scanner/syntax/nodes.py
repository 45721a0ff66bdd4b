"""Syntax tree node variants consulted by detection rules.

The concrete grammar tree is reduced to a closed set of node classes. Rules
dispatch with ``isinstance`` on these classes; anything a rule never looks at
becomes :class:`Other`, which still carries its children so traversal reaches
nested nodes.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True, eq=False)
class Node:
    raw_type: str
    start: int
    end: int
    children: tuple[Node, ...]


@dataclass(frozen=True, eq=False)
class Other(Node):
    pass


@dataclass(frozen=True, eq=False)
class Identifier(Node):
    name: str


@dataclass(frozen=True, eq=False)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True, eq=False)
class TemplateLiteral(Node):
    quasis: tuple[str, ...]

    @property
    def text(self) -> str:
        """Static text of the template with substitutions removed."""
        return "".join(self.quasis)


@dataclass(frozen=True, eq=False)
class BooleanLiteral(Node):
    value: bool


@dataclass(frozen=True, eq=False)
class MemberExpression(Node):
    object: Node | None
    property_name: str | None
    computed: bool


@dataclass(frozen=True, eq=False)
class CallExpression(Node):
    callee: Node | None
    arguments: tuple[Node, ...]


@dataclass(frozen=True, eq=False)
class Property(Node):
    key: Node | None
    value: Node | None

    @property
    def key_name(self) -> str | None:
        """Identifier name or string value of the key."""
        if isinstance(self.key, Identifier):
            return self.key.name
        if isinstance(self.key, StringLiteral):
            return self.key.value
        return None


@dataclass(frozen=True, eq=False)
class ObjectExpression(Node):
    properties: tuple[Property, ...]

    def get(self, name: str) -> Property | None:
        for prop in self.properties:
            if isinstance(prop.key, Identifier) and prop.key.name == name:
                return prop
        return None


@dataclass(frozen=True, eq=False)
class ArrayExpression(Node):
    elements: tuple[Node, ...]


@dataclass(frozen=True, eq=False)
class VariableDeclarator(Node):
    id: Node | None
    init: Node | None


@dataclass(frozen=True, eq=False)
class JsxExpression(Node):
    expression: Node | None


@dataclass(frozen=True, eq=False)
class JsxAttribute(Node):
    name: str
    value: Node | None


@dataclass(frozen=True, eq=False)
class JsxElement(Node):
    name: str | None
    attributes: tuple[JsxAttribute, ...]

    def attribute(self, name: str) -> JsxAttribute | None:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(frozen=True, eq=False)
class FunctionExpression(Node):
    arrow: bool


@dataclass(frozen=True, eq=False)
class BinaryExpression(Node):
    operator: str


@dataclass(frozen=True, eq=False)
class CatchClause(Node):
    pass


@dataclass(frozen=True, eq=False)
class ImportDeclaration(Node):
    source: str | None


@dataclass(frozen=True, eq=False)
class ReturnStatement(Node):
    argument: Node | None


def walk(root: Node) -> Iterator[Node]:
    """Yield ``root`` and its descendants in pre-order, document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


class SyntaxTree:
    """A parsed file. Flattened once on first traversal."""

    def __init__(self, root: Node, has_errors: bool = False) -> None:
        self.root = root
        self.has_errors = has_errors
        self._flat: list[Node] | None = None

    def nodes(self, *kinds: type[Node]) -> Iterator[Node]:
        """Iterate all nodes of the given variants in document order."""
        if self._flat is None:
            self._flat = list(walk(self.root))
        if not kinds:
            yield from self._flat
            return
        for node in self._flat:
            if isinstance(node, kinds):
                yield node


def static_string(node: Node | None) -> str | None:
    """Text of a string or template literal, otherwise ``None``."""
    if isinstance(node, StringLiteral):
        return node.value
    if isinstance(node, TemplateLiteral):
        return node.text
    return None


def callee_names(call: CallExpression) -> tuple[str | None, str | None]:
    """``(object, property)`` names of a ``obj.prop(...)`` call.

    For a bare ``fn(...)`` call the object is ``None`` and the property is
    ``fn``.
    """
    callee = call.callee
    if isinstance(callee, Identifier):
        return None, callee.name
    if isinstance(callee, MemberExpression):
        obj = callee.object.name if isinstance(callee.object, Identifier) else None
        return obj, callee.property_name
    return None, None


def jsx_attribute_expression(attr: JsxAttribute | None) -> Node | None:
    """The node inside ``attr={...}``, or the string literal of ``attr="..."``."""
    if attr is None:
        return None
    if isinstance(attr.value, JsxExpression):
        return attr.value.expression
    return attr.value


def is_jsx_true(attr: JsxAttribute | None) -> bool:
    """``<X attr />`` or ``<X attr={true} />``."""
    if attr is None:
        return False
    if attr.value is None:
        return True
    expression = jsx_attribute_expression(attr)
    return isinstance(expression, BooleanLiteral) and expression.value


def is_jsx_literal_true(attr: JsxAttribute | None) -> bool:
    """Only ``attr={true}``; a bare attribute does not count."""
    if attr is None or attr.value is None:
        return False
    expression = jsx_attribute_expression(attr)
    return isinstance(expression, BooleanLiteral) and expression.value


def is_jsx_false(attr: JsxAttribute | None) -> bool:
    expression = jsx_attribute_expression(attr)
    return isinstance(expression, BooleanLiteral) and not expression.value

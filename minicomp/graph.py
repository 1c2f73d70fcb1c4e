"""Render a syntax tree as a Graphviz DOT description."""

from __future__ import annotations

from itertools import count
from pathlib import Path

from minicomp.syntax_tree import ASTNode, ASTOperator

_OPERATOR_LABELS = {
    ASTOperator.BLOCK: "block",
    ASTOperator.RETURN: "return",
    ASTOperator.FUNC_DEF: "func-def",
    ASTOperator.COMPILE_UNIT: "compile-unit",
    ASTOperator.FUNC_FORMAL_PARAMS: "formal-params",
    ASTOperator.VAR_DECL: "var-decl",
    ASTOperator.DECL_STMT: "decl-stmt",
    ASTOperator.ADD: "+",
    ASTOperator.SUB: "-",
    ASTOperator.ASSIGN: "=",
    ASTOperator.FUNC_CALL: "func-call",
    ASTOperator.FUNC_REAL_PARAMS: "real-params",
    ASTOperator.UNARY_MINUS: "-",
    ASTOperator.MUL: "*",
    ASTOperator.DIV: "/",
    ASTOperator.MOD: "%",
}

_LEAF_ATTRS = (
    ("fontcolor", "black"),
    ("fontname", "SimSun"),
    ("shape", "record"),
    ("style", "filled"),
    ("fillcolor", "yellow"),
)

_DOT_SUFFIXES = {"dot", "gv"}


def node_label(node: ASTNode) -> str:
    """Return the text shown for ``node`` in the drawing."""
    kind = node.node_type
    if kind is ASTOperator.LEAF_LITERAL_UINT:
        value = node.integer_val & 0xFFFFFFFF
        if value >= 0x80000000:
            value -= 0x100000000
        return str(value)
    if kind is ASTOperator.LEAF_LITERAL_FLOAT:
        return f"{node.float_val:f}"
    if kind is ASTOperator.LEAF_VAR_ID:
        return node.name
    if kind is ASTOperator.LEAF_TYPE:
        return str(node.value_type)
    return _OPERATOR_LABELS.get(kind, "unknown")


def _quote(text: str, record: bool = False) -> str:
    text = text.replace("\\", "\\\\")
    if record:
        for char in "{}|<>":
            text = text.replace(char, "\\" + char)
    return '"' + text.replace('"', '\\"') + '"'


def _attrs(pairs) -> str:
    return ", ".join(f"{key}={value}" for key, value in pairs)


def to_dot(root: ASTNode | None) -> str:
    """Return a DOT digraph of the tree: yellow record boxes for leaves, ellipses inside."""
    lines = ["digraph ast {", '\tdpi="600";']
    ids = count()

    def visit(node: ASTNode | None) -> str | None:
        if node is None:
            return None
        if node.is_leaf_node():
            name = f"n{next(ids)}"
            pairs = [(key, _quote(value)) for key, value in _LEAF_ATTRS]
            pairs.insert(2, ("label", _quote(node_label(node), record=True)))
            lines.append(f"\t{name} [{_attrs(pairs)}];")
            return name
        children = [child for child in (visit(son) for son in node.sons) if child]
        name = f"n{next(ids)}"
        pairs = [("label", _quote(node_label(node))), ("shape", _quote("ellipse"))]
        lines.append(f"\t{name} [{_attrs(pairs)}];")
        lines.extend(f"\t{name} -> {child};" for child in children)
        return name

    visit(root)
    lines.append("}")
    return "\n".join(lines) + "\n"


def output_ast(root: ASTNode | None, file_path) -> None:
    """Write the tree's DOT description to ``file_path`` (a ``.dot`` or ``.gv`` file)."""
    path = Path(file_path)
    suffix = path.suffix[1:].lower() if path.suffix else "dot"
    if suffix not in _DOT_SUFFIXES:
        raise ValueError(
            f"cannot render the syntax tree as {suffix!r}; use a .dot or .gv file name"
        )
    path.write_text(to_dot(root), encoding="utf-8")
import pytest

from minicomp.graph import node_label, output_ast, to_dot
from minicomp.syntax_tree import (
    ASTNode,
    ASTOperator,
    BasicType,
    create_func_def,
    create_literal_uint,
    create_node,
    create_type_node,
    create_var_id,
)


def _sample_tree():
    expr = create_node(ASTOperator.ADD, create_var_id("a"), create_literal_uint(5))
    ret = create_node(ASTOperator.RETURN, expr)
    block = create_node(ASTOperator.BLOCK, ret)
    func = create_func_def(create_type_node(BasicType.INT), create_var_id("main"), block)
    return create_node(ASTOperator.COMPILE_UNIT, func)


def _count_nodes(node):
    return 1 + sum(_count_nodes(son) for son in node.sons)


def test_literal_label_is_decimal():
    assert node_label(create_literal_uint(5)) == "5"


def test_literal_label_is_signed_32_bit():
    assert node_label(create_literal_uint(0xFFFFFFFF)) == "-1"


def test_float_label_uses_six_decimals():
    node = ASTNode(ASTOperator.LEAF_LITERAL_FLOAT, float_val=1.5)
    assert node_label(node) == "1.500000"


def test_identifier_and_type_labels():
    assert node_label(create_var_id("counter")) == "counter"
    assert node_label(create_type_node(BasicType.INT)) == "i32"
    assert node_label(create_type_node(BasicType.VOID)) == "void"


@pytest.mark.parametrize(
    "kind, label",
    [
        (ASTOperator.BLOCK, "block"),
        (ASTOperator.COMPOUND_STMT, "block"),
        (ASTOperator.COMPILE_UNIT, "compile-unit"),
        (ASTOperator.FUNC_DEF, "func-def"),
        (ASTOperator.ADD, "+"),
        (ASTOperator.SUB, "-"),
        (ASTOperator.UNARY_MINUS, "-"),
        (ASTOperator.MOD, "%"),
        (ASTOperator.ASSIGN, "="),
        (ASTOperator.FUNC_FORMAL_PARAM, "unknown"),
        (ASTOperator.MAX, "unknown"),
    ],
)
def test_operator_labels(kind, label):
    assert node_label(ASTNode(kind)) == label


def test_dot_is_a_digraph_with_one_edge_per_child():
    root = _sample_tree()
    dot = to_dot(root)
    assert dot.startswith("digraph ast {")
    assert dot.rstrip().endswith("}")
    total = _count_nodes(root)
    assert dot.count("label=") == total
    assert dot.count("->") == total - 1


def test_leaves_are_yellow_records_and_inner_nodes_ellipses():
    root = _sample_tree()
    dot = to_dot(root)
    leaves = sum(1 for line in dot.splitlines() if 'shape="record"' in line)
    inner = sum(1 for line in dot.splitlines() if 'shape="ellipse"' in line)
    assert leaves == dot.count('fillcolor="yellow"')
    assert leaves + inner == _count_nodes(root)
    assert '"compile-unit"' in dot


def test_empty_tree_has_no_nodes():
    dot = to_dot(None)
    assert "label=" not in dot
    assert "->" not in dot


def test_output_ast_writes_dot(tmp_path):
    root = _sample_tree()
    target = tmp_path / "ast.dot"
    output_ast(root, target)
    assert target.read_text(encoding="utf-8") == to_dot(root)


def test_output_ast_rejects_image_formats(tmp_path):
    with pytest.raises(ValueError):
        output_ast(_sample_tree(), tmp_path / "ast.png")
    assert not (tmp_path / "ast.png").exists()
import pytest

from minicomp.syntax_tree import (
    INT_TYPE,
    VOID_TYPE,
    ASTNode,
    ASTOperator,
    BasicType,
    FrontEndExecutor,
    add_var_decl_node,
    create_contain_node,
    create_func_call,
    create_func_def,
    create_literal_uint,
    create_node,
    create_type_leaf,
    create_type_node,
    create_var_decl_node,
    create_var_decl_stmt,
    create_var_decl_stmt_from,
    create_var_id,
)


def test_compound_stmt_is_block():
    node = create_node(ASTOperator.COMPOUND_STMT)
    assert node.node_type is ASTOperator.BLOCK
    assert node.is_leaf_node() is False


@pytest.mark.parametrize(
    "node, leaf",
    [
        (create_literal_uint(3), True),
        (create_var_id("x"), True),
        (create_type_leaf(INT_TYPE), True),
        (ASTNode(ASTOperator.LEAF_LITERAL_FLOAT), True),
        (ASTNode(ASTOperator.ADD), False),
        (ASTNode(ASTOperator.BLOCK), False),
    ],
)
def test_is_leaf_node(node, leaf):
    assert node.is_leaf_node() is leaf


def test_insert_son_sets_parent_and_skips_none():
    parent = ASTNode(ASTOperator.ADD)
    child = create_var_id("a")
    assert parent.insert_son_node(child) is parent
    parent.insert_son_node(None)
    assert parent.sons == [child]
    assert child.parent is parent


def test_literal_uint_fields():
    node = create_literal_uint(42, 7)
    assert node.integer_val == 42
    assert node.line_no == 7
    assert node.value_type == INT_TYPE


def test_literal_uint_wraps_to_unsigned_32_bits():
    assert create_literal_uint(-1).integer_val == 0xFFFFFFFF


def test_create_node_keeps_order():
    a, b = create_var_id("a"), create_var_id("b")
    node = create_node(ASTOperator.SUB, a, None, b)
    assert [s.name for s in node.sons] == ["a", "b"]
    assert node.node_type is ASTOperator.SUB


def test_create_contain_node_up_to_three():
    kids = [create_literal_uint(n) for n in (1, 2, 3)]
    node = create_contain_node(ASTOperator.ASSIGN, *kids)
    assert node.sons == kids
    assert create_contain_node(ASTOperator.RETURN).sons == []


def test_create_func_def_fills_missing_parts():
    type_node = create_type_node(BasicType.INT)
    name_node = create_var_id("main", 3)
    func = create_func_def(type_node, name_node)
    assert func.name == "main"
    assert func.line_no == 3
    assert func.value_type == INT_TYPE
    kinds = [s.node_type for s in func.sons]
    assert kinds == [
        ASTOperator.LEAF_TYPE,
        ASTOperator.LEAF_VAR_ID,
        ASTOperator.FUNC_FORMAL_PARAMS,
        ASTOperator.BLOCK,
    ]
    assert all(s.parent is func for s in func.sons)


def test_create_func_def_keeps_given_block():
    block = create_node(ASTOperator.BLOCK, create_node(ASTOperator.RETURN))
    func = create_func_def(create_type_node(BasicType.VOID), create_var_id("f"), block)
    assert func.sons[3] is block
    assert func.value_type == VOID_TYPE


def test_create_func_call_default_params():
    call = create_func_call(create_var_id("putint"))
    assert call.name == "putint"
    assert call.sons[1].node_type is ASTOperator.FUNC_REAL_PARAMS
    assert call.sons[1].sons == []


@pytest.mark.parametrize(
    "basic, expected",
    [(BasicType.INT, INT_TYPE), (BasicType.VOID, VOID_TYPE), (BasicType.FLOAT, VOID_TYPE)],
)
def test_create_type_node_maps_basic_types(basic, expected):
    node = create_type_node(basic)
    assert node.node_type is ASTOperator.LEAF_TYPE
    assert node.value_type == expected


def test_var_decl_node_structure():
    decl = create_var_decl_node(BasicType.INT, "x", 2)
    assert decl.node_type is ASTOperator.VAR_DECL
    assert decl.value_type == INT_TYPE
    type_leaf, id_leaf = decl.sons
    assert type_leaf.value_type == INT_TYPE
    assert id_leaf.name == "x"
    assert id_leaf.line_no == 2


def test_var_decl_stmt_and_add():
    stmt = create_var_decl_stmt(BasicType.INT, "a", 1)
    add_var_decl_node(stmt, "b", 1)
    assert stmt.node_type is ASTOperator.DECL_STMT
    assert stmt.value_type == INT_TYPE
    assert [d.sons[1].name for d in stmt.sons] == ["a", "b"]
    assert all(d.value_type == stmt.value_type for d in stmt.sons)


def test_var_decl_stmt_from_child_and_empty():
    decl = create_var_decl_node(INT_TYPE, "y")
    stmt = create_var_decl_stmt_from(decl)
    assert stmt.sons == [decl]
    assert stmt.value_type == INT_TYPE
    assert create_var_decl_stmt_from(None).sons == []


def test_front_end_executor_is_abstract():
    with pytest.raises(TypeError):
        FrontEndExecutor("a.c")


def test_front_end_executor_subclass():
    unit = create_node(ASTOperator.COMPILE_UNIT, create_var_id("main"))

    class Fixed(FrontEndExecutor):
        def run(self):
            self.ast_root = unit
            return True

    executor = Fixed("prog.c")
    assert executor.ast_root is None
    assert executor.filename == "prog.c"
    assert executor.run() is True
    assert executor.ast_root is unit
    assert unit.is_leaf_node() is False
    assert [s.name for s in unit.sons] == ["main"]
"""Abstract syntax tree nodes and the helpers parsers use to build them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

INT_TYPE = "i32"
VOID_TYPE = "void"

_UINT32_MASK = 0xFFFFFFFF


class ASTOperator(Enum):
    """Kinds of syntax tree nodes."""

    LEAF_LITERAL_UINT = 0
    LEAF_LITERAL_FLOAT = 1
    LEAF_VAR_ID = 2
    LEAF_TYPE = 3
    COMPILE_UNIT = 4
    FUNC_DEF = 5
    FUNC_FORMAL_PARAMS = 6
    FUNC_FORMAL_PARAM = 7
    FUNC_CALL = 8
    FUNC_REAL_PARAMS = 9
    BLOCK = 10
    COMPOUND_STMT = 10
    RETURN = 11
    ASSIGN = 12
    DECL_STMT = 13
    VAR_DECL = 14
    ADD = 15
    SUB = 16
    MUL = 17
    DIV = 18
    MOD = 19
    UNARY_MINUS = 20
    MAX = 21


class BasicType(Enum):
    """Basic types named in source text."""

    INT = "int"
    FLOAT = "float"
    VOID = "void"


_LEAF_KINDS = frozenset(
    {
        ASTOperator.LEAF_LITERAL_UINT,
        ASTOperator.LEAF_LITERAL_FLOAT,
        ASTOperator.LEAF_VAR_ID,
        ASTOperator.LEAF_TYPE,
    }
)


@dataclass(eq=False)
class ASTNode:
    """One node of the syntax tree."""

    node_type: ASTOperator
    value_type: str = VOID_TYPE
    line_no: int = -1
    integer_val: int = 0
    float_val: float = 0.0
    name: str = ""
    parent: ASTNode | None = field(default=None, repr=False)
    sons: list[ASTNode] = field(default_factory=list)
    block_insts: list[Any] = field(default_factory=list, repr=False)
    val: Any = field(default=None, repr=False)
    need_scope: bool = True

    def is_leaf_node(self):
        """Whether the node is a literal, identifier or type leaf."""
        return self.node_type in _LEAF_KINDS

    def insert_son_node(self, node):
        """Append ``node`` as the last child; ``None`` is ignored. Returns ``self``."""
        if node is not None:
            node.parent = self
            self.sons.append(node)
        return self


def _value_type(value_type: BasicType | str) -> str:
    if isinstance(value_type, BasicType):
        return INT_TYPE if value_type is BasicType.INT else VOID_TYPE
    return value_type


def create_node(node_type, *args):
    """Create a node of ``node_type`` with the given children, left to right."""
    node = ASTNode(node_type)
    for child in args:
        node.insert_son_node(child)
    return node


def create_literal_uint(value, line_no=-1):
    """Create an unsigned 32-bit integer literal leaf."""
    return ASTNode(
        ASTOperator.LEAF_LITERAL_UINT,
        INT_TYPE,
        line_no,
        integer_val=value & _UINT32_MASK,
    )


def create_var_id(name, line_no=-1):
    """Create an identifier leaf."""
    return ASTNode(ASTOperator.LEAF_VAR_ID, VOID_TYPE, line_no, name=name)


def create_type_leaf(value_type):
    """Create a leaf that carries a type."""
    return ASTNode(ASTOperator.LEAF_TYPE, _value_type(value_type))


def create_contain_node(node_type, first_child=None, second_child=None, third_child=None):
    """Create an internal node with up to three children."""
    return create_node(node_type, first_child, second_child, third_child)


def create_func_def(type_node, name_node, block_node=None, params_node=None):
    """Create a function definition; missing parameters or body become empty nodes."""
    node = ASTNode(ASTOperator.FUNC_DEF, type_node.value_type, name_node.line_no, name=name_node.name)
    if params_node is None:
        params_node = ASTNode(ASTOperator.FUNC_FORMAL_PARAMS)
    if block_node is None:
        block_node = ASTNode(ASTOperator.BLOCK)
    for child in (type_node, name_node, params_node, block_node):
        node.insert_son_node(child)
    return node


def create_func_call(funcname_node, params_node=None):
    """Create a call node; a missing argument list becomes an empty one."""
    node = ASTNode(ASTOperator.FUNC_CALL, name=funcname_node.name)
    if params_node is None:
        params_node = ASTNode(ASTOperator.FUNC_REAL_PARAMS)
    node.insert_son_node(funcname_node)
    node.insert_son_node(params_node)
    return node


def create_type_node(basic_type):
    """Create a type leaf for a basic type: ``int`` maps to the integer type, others to void."""
    return create_type_leaf(_value_type(basic_type))


def create_var_decl_node(value_type, name, line_no=-1):
    """Create a single variable declaration: a type leaf and an identifier leaf."""
    resolved = _value_type(value_type)
    decl = create_contain_node(
        ASTOperator.VAR_DECL, create_type_leaf(resolved), create_var_id(name, line_no)
    )
    decl.value_type = resolved
    return decl


def create_var_decl_stmt(value_type, name, line_no=-1):
    """Create a declaration statement holding one variable declaration."""
    decl = create_var_decl_node(value_type, name, line_no)
    stmt = ASTNode(ASTOperator.DECL_STMT, decl.value_type)
    stmt.insert_son_node(decl)
    return stmt


def create_var_decl_stmt_from(first_child):
    """Create a declaration statement starting with an existing declaration node."""
    stmt = ASTNode(ASTOperator.DECL_STMT)
    if first_child is not None:
        stmt.value_type = first_child.value_type
        stmt.insert_son_node(first_child)
    return stmt


def add_var_decl_node(stmt_node, name, line_no=-1):
    """Append another variable of the statement's type to a declaration statement."""
    stmt_node.insert_son_node(create_var_decl_node(stmt_node.value_type, name, line_no))
    return stmt_node


class FrontEndExecutor(ABC):
    """A front end that parses one source file into a syntax tree."""

    def __init__(self, filename):
        self.filename = filename
        self.ast_root: ASTNode | None = None

    @abstractmethod
    def run(self):
        """Parse the file, setting ``ast_root``; return whether parsing succeeded."""
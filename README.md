# minicomp

minicomp holds the building blocks of a compiler for a small C subset. It builds abstract syntax trees and writes them out as Graphviz DOT text. It also turns linear IR instructions into ARM32 (armv7ve) assembly text.

It uses only the standard library.

## Modules

- `minicomp.syntax_tree`
  - `ASTNode` is the tree node. `ASTOperator` and `BasicType` are enums.
  - Builder functions: `create_node`, `create_literal_uint`, `create_var_id`, `create_type_leaf`, `create_type_node`, `create_contain_node`, `create_func_def`, `create_func_call`, `create_var_decl_node`, `create_var_decl_stmt`, `create_var_decl_stmt_from` and `add_var_decl_node`.
  - `create_func_def` adds an empty parameter list and an empty block when you leave them out. `create_func_call` adds an empty argument list in the same way.
  - `FrontEndExecutor` is an abstract base for parsers. Its `run()` must set `ast_root`.
- `minicomp.graph`
  - `node_label(node)` gives the text shown for a node.
  - `to_dot(root)` returns a DOT digraph. Leaves are drawn as yellow record boxes and inner nodes as ellipses.
  - `output_ast(root, path)` writes that DOT text to a `.dot` or `.gv` file. Any other suffix raises `ValueError`.
- `minicomp.arm32_platform`
  - Register names: `REG_NAMES`.
  - Fixed register numbers: `FP_REG_NO`, `SP_REG_NO`, `LX_REG_NO` and `TMP_REG_NO`.
  - `const_expr(num)` tells whether `num` or `-num` is an 8-bit value rotated by an even amount.
  - `is_disp(num)` tells whether `num` is a load/store offset in the range -4095..4095.
  - `is_reg(name)` tells whether `name` is a register name.
  - `register_value(reg_id)` returns the shared `RegisterValue` for a register.
- `minicomp.iloc`
  - `ArmInst` is one instruction. `render()` returns its text.
  - `ILocArm32` is an instruction sequence. It emits:
    - loads and stores (`load_base`, `store_base`, `load_var`, `store_var`, `lea_var`);
    - moves, calls, branches, labels, comments and frame setup (`alloc_stack`).
  - `delete_unused_label()` marks as dead every `.`-prefixed label that no live branch targets.
  - `output(file)` writes the text. Labels are written flush left and instructions after a tab.
- `minicomp.register_allocator`
  - `SimpleRegisterAllocator` hands out r0–r10. When every register is busy it spills the value that has held its register longest.
  - Methods: `allocate(var, no)`, `claim(no)`, `free(var)` and `free_register(no)`.
- `minicomp.inst_selector`
  - `IROp` lists the IR operators.
  - `InstSelectorArm32` translates the following to ARM32:
    - entry and exit;
    - labels and gotos;
    - assignments;
    - add, sub, mul, div and mod. Subtracting from the constant 0 becomes `rsb`; mod becomes `sdiv`/`mul`/`sub`;
    - calls and argument checks.
  - An operator it does not support raises `ValueError`.
- `minicomp.codegen`
  - `CodeGenerator.run(out_file_name)` writes to the named file, or to standard output when the name is empty.
  - `CodeGeneratorAsm` writes a header, then the data section, then every non-builtin function.
- `minicomp.codegen_arm32`
  - `CodeGeneratorArm32` lays out the stack frame and saved registers.
  - It passes the first four call arguments and parameters in r0–r3 and the rest on the stack.
  - It numbers labels `.L0`, `.L1`, … across the whole file.
  - It writes `.bss`/`.data`/`.text` sections.
  - With `show_linear_ir` set, it also writes comments that give each IR instruction and where each value lives.

The modules, functions and values passed to the generators and the instruction selector are duck typed. The module docstrings list the attributes each one reads.

## Example

```python
from minicomp.syntax_tree import BasicType, create_func_def, create_type_node, create_var_id
from minicomp.graph import to_dot, output_ast

tree = create_func_def(create_type_node(BasicType.INT), create_var_id("main", 1), None, None)
print(to_dot(tree))
output_ast(tree, "ast.dot")
```

```python
import io
from minicomp.iloc import ILocArm32
from minicomp.arm32_platform import const_expr, is_disp

assert const_expr(255) and not const_expr(257)
assert is_disp(-4095) and not is_disp(4096)

iloc = ILocArm32(None)
iloc.load_base(8, 11, -16)
out = io.StringIO()
iloc.output(out)
assert out.getvalue() == "\tldr r8,[fp,#-16]\n"
```

## What it does not do

- There is no lexer or parser. `FrontEndExecutor` is only an abstract base.
- There is no generator that turns a syntax tree into IR. The IR has to be built by the caller.
- There is no command-line program.
- `output_ast` writes DOT text only. It does not render images; use Graphviz for that.
- Initialised global variables get their `.data` label but no initial value.

## Tests

```
pip install -e .[test]
pytest
```
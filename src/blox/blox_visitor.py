"""
Walks Blox syntax trees.

Classes and Features:
    - NodeVisitor: Dispatches each node to a `visit_<kind>` method, falling back
      to `generic_visit`, which visits the children in field order.
    - TreeDumper: Renders a tree in a compact structural form such as
      `Add(1, Multiply(2, 3))`, used for debugging output and tests.
    - ParameterChecker: Collects repeated parameter names in definitions and lambdas.

Functions:
    dump(node) -> str
    check_parameters(tree) -> None

Raises:
    ParameterError: From `check_parameters`, when any parameter list repeats a name.
"""

from typing import Any

from blox.blox_ast import (
    Argument,
    Array,
    ArrayIndex,
    ArraySlice,
    BinaryExpression,
    Binding,
    Block,
    Boolean,
    Definition,
    Else,
    ElseIf,
    ExpressionStatement,
    FunctionCall,
    GroupTerm,
    Identifier,
    IfExpression,
    Import,
    ImportedSymbol,
    Lambda,
    MethodCall,
    Node,
    Number,
    Object,
    ObjectIndex,
    ObjectMember,
    SourceFile,
    String,
    Symbol,
    UnaryExpression,
    iter_child_nodes,
)
from blox.blox_errors import ParameterError


class NodeVisitor:
    """Base class for tree walkers.

    Subclasses define `visit_<kind>` methods (e.g. `visit_binding`) for the
    node kinds they care about; the return value of the chosen method is
    returned from `visit`.
    """

    def visit(self, node: Node) -> Any:
        method = getattr(self, f"visit_{node.kind}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> Any:
        for child in iter_child_nodes(node):
            self.visit(child)
        return None


class TreeDumper(NodeVisitor):
    """Renders nodes as nested `Name(child, child)` strings.

    Every node kind has a method here; anything else is a programming error.
    """

    def generic_visit(self, node: Node) -> str:
        raise NotImplementedError(
            f"No dump method for node kind '{node.kind}' (at {node.span.start})"
        )

    def join(self, nodes: Any, sep: str = ", ") -> str:
        return sep.join(self.visit(n) for n in nodes)

    def visit_source_file(self, node: SourceFile) -> str:
        return self.join(node.statements, "\n")

    def visit_block(self, node: Block) -> str:
        return f"Block({self.join(node.statements, '; ')})"

    def visit_definition(self, node: Definition) -> str:
        params = self.join(node.parameters)
        return f"Definition({node.name.name}, [{params}], {self.visit(node.body)})"

    def visit_binding(self, node: Binding) -> str:
        return f"Binding({node.name.name}, {self.visit(node.value)})"

    def visit_imported_symbol(self, node: ImportedSymbol) -> str:
        if node.alias is None:
            return node.identifier.name
        return f"{node.identifier.name} as {node.alias.name}"

    def visit_import(self, node: Import) -> str:
        return f"Import([{self.join(node.symbols)}], {self.visit(node.path)})"

    def visit_expression_statement(self, node: ExpressionStatement) -> str:
        return str(self.visit(node.expression))

    def visit_unary_expression(self, node: UnaryExpression) -> str:
        return f"{node.operator.title}({self.visit(node.operand)})"

    def visit_binary_expression(self, node: BinaryExpression) -> str:
        return f"{node.operator.title}({self.visit(node.lhs)}, {self.visit(node.rhs)})"

    def visit_if_expression(self, node: IfExpression) -> str:
        parts = [self.visit(node.condition), self.visit(node.body)]
        parts.extend(self.visit(clause) for clause in node.else_ifs)
        if node.else_branch is not None:
            parts.append(self.visit(node.else_branch))
        return f"If({', '.join(parts)})"

    def visit_else_if(self, node: ElseIf) -> str:
        return f"ElseIf({self.visit(node.condition)}, {self.visit(node.body)})"

    def visit_else(self, node: Else) -> str:
        return f"Else({self.visit(node.body)})"

    def visit_argument(self, node: Argument) -> str:
        return f"{node.name.name}: {self.visit(node.value)}"

    def visit_function_call(self, node: FunctionCall) -> str:
        return f"FunctionCall({self.join([node.name, *node.arguments])})"

    def visit_method_call(self, node: MethodCall) -> str:
        return f"MethodCall({self.join([node.base, node.name, *node.arguments])})"

    def visit_array_index(self, node: ArrayIndex) -> str:
        return f"ArrayIndex({self.visit(node.base)}, {self.visit(node.index)})"

    def visit_array_slice(self, node: ArraySlice) -> str:
        start = self.visit(node.start) if node.start is not None else "None"
        end = self.visit(node.end) if node.end is not None else "None"
        return f"ArraySlice({self.visit(node.base)}, {start}, {end})"

    def visit_object_index(self, node: ObjectIndex) -> str:
        return f"ObjectIndex({self.visit(node.base)}, {node.index.name})"

    def visit_lambda(self, node: Lambda) -> str:
        return f"Lambda([{self.join(node.parameters)}], {self.visit(node.body)})"

    def visit_group_term(self, node: GroupTerm) -> str:
        return f"Group({self.visit(node.expression)})"

    def visit_identifier(self, node: Identifier) -> str:
        return node.name

    def visit_boolean(self, node: Boolean) -> str:
        return "true" if node.value else "false"

    def visit_number(self, node: Number) -> str:
        return node.text

    def visit_string(self, node: String) -> str:
        return f"{node.quote}{node.text}{node.quote}"

    def visit_symbol(self, node: Symbol) -> str:
        return f":{node.name}"

    def visit_array(self, node: Array) -> str:
        return f"[{self.join(node.members)}]"

    def visit_object_member(self, node: ObjectMember) -> str:
        return f"{node.key.name}: {self.visit(node.value)}"

    def visit_object(self, node: Object) -> str:
        return f"{{{self.join(node.members)}}}"


class ParameterChecker(NodeVisitor):
    """Collects parameters whose name already appeared earlier in the same list."""

    def __init__(self) -> None:
        self.duplicates: list[Identifier] = []

    def check(self, parameters: tuple[Identifier, ...]) -> None:
        seen: set[str] = set()
        for param in parameters:
            if param.name in seen:
                self.duplicates.append(param)
            seen.add(param.name)

    def visit_definition(self, node: Definition) -> None:
        self.check(node.parameters)
        self.generic_visit(node)

    def visit_lambda(self, node: Lambda) -> None:
        self.check(node.parameters)
        self.generic_visit(node)


def dump(node: Node) -> str:
    """Returns the compact structural rendering of a node."""
    return str(TreeDumper().visit(node))


def check_parameters(tree: Node) -> None:
    """Raises ParameterError if any definition or lambda repeats a parameter name."""
    checker = ParameterChecker()
    checker.visit(tree)
    if checker.duplicates:
        names = ", ".join(
            f"'{d.name}' at {d.span.start}" for d in checker.duplicates
        )
        raise ParameterError(f"Duplicate parameters: {names}", checker.duplicates)

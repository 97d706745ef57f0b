"""Abstract syntax tree for the plc language.

Nodes are frozen dataclasses whose children are held in tuples, so a tree is immutable and acyclic once the parser
has built it. Expr and Stmt are closed unions over the node classes below; the evaluator dispatches on them.
Grouping parentheses leave no trace in the tree.

Every node records the position of the token it was built from. Positions are excluded from equality, so trees
built from different sources (or by hand) compare structurally.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, Tuple, Union

from plc.syntax.lexical import Position


@dataclass(frozen=True)
class Node:
    """Superclass of all syntax tree nodes."""
    position: Optional[Position] = field(default=None, compare=False, repr=False, kw_only=True)

    def children(self):
        """Yields (field name, value) for every field other than position."""
        for node_field in fields(self):
            if node_field.name != "position":
                yield node_field.name, getattr(self, node_field.name)

    def display(self, indents=0):
        """Recursively displays the tree with readable format.

        Format:
        <Node>(<field>=<value>,
            <child field>=<Node>(...),
            <children field>=[
                <Node>(...),
                ...
            ])
        """
        pad = "    " * indents
        inline, nested = [], []
        for name, value in self.children():
            if isinstance(value, Node) or (isinstance(value, tuple) and value and isinstance(value[0], Node)):
                nested.append((name, value))
            else:
                inline.append(f"{name}={value!r}")

        result = f"{pad}{type(self).__name__}({', '.join(inline)}"
        for idx, (name, value) in enumerate(nested):
            if inline or idx:
                result += ","
            result += f"\n{pad}    {name}="
            if isinstance(value, Node):
                result += value.display(indents + 1).lstrip()
            else:
                result += "["
                for node in value:
                    result += "\n" + node.display(indents + 2) + ","
                result = result[:-1] + f"\n{pad}    ]"
        return result + ")"


# Expressions

@dataclass(frozen=True)
class Literal(Node):
    value: object


@dataclass(frozen=True)
class Variable(Node):
    name: str


@dataclass(frozen=True)
class Unary(Node):
    operator: str
    operand: "Expr"


@dataclass(frozen=True)
class Binary(Node):
    """Arithmetic, comparison, equality, and the short-circuiting 'and'/'or'."""
    operator: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Assign(Node):
    name: str
    value: "Expr"


@dataclass(frozen=True)
class Call(Node):
    callee: "Expr"
    arguments: Tuple["Expr", ...] = ()


@dataclass(frozen=True)
class Get(Node):
    receiver: "Expr"
    name: str


@dataclass(frozen=True)
class Set(Node):
    receiver: "Expr"
    name: str
    value: "Expr"


@dataclass(frozen=True)
class This(Node):
    pass


@dataclass(frozen=True)
class ObjectExpr(Node):
    """object Name? { var ...; fun ...() {...} }. name is None for anonymous objects."""
    name: Optional[str]
    fields: Tuple["VarDecl", ...] = ()
    methods: Tuple["FunDecl", ...] = ()


# Statements

@dataclass(frozen=True)
class Expression(Node):
    expression: "Expr"


@dataclass(frozen=True)
class VarDecl(Node):
    name: str
    initializer: Optional["Expr"] = None


@dataclass(frozen=True)
class FunDecl(Node):
    name: str
    params: Tuple[str, ...] = ()
    body: Tuple["Stmt", ...] = ()


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple["Stmt", ...] = ()


@dataclass(frozen=True)
class If(Node):
    condition: "Expr"
    then_branch: "Stmt"
    else_branch: Optional["Stmt"] = None


@dataclass(frozen=True)
class While(Node):
    condition: "Expr"
    body: "Stmt"


@dataclass(frozen=True)
class For(Node):
    """for (initializer; condition; increment) body. Any of the three clauses may be None."""
    initializer: Optional["Stmt"]
    condition: Optional["Expr"]
    increment: Optional["Expr"]
    body: "Stmt"


@dataclass(frozen=True)
class Return(Node):
    value: Optional["Expr"] = None


@dataclass(frozen=True)
class Program(Node):
    statements: Tuple["Stmt", ...] = ()


Expr = Union[Literal, Variable, Unary, Binary, Assign, Call, Get, Set, This, ObjectExpr]
Stmt = Union[Expression, VarDecl, FunDecl, Block, If, While, For, Return]

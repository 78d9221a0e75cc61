"""Abstract syntax tree for Lox: a closed family of expression nodes and one of statement nodes.

Nodes are frozen dataclasses compared and hashed by identity (eq=False). The resolver keys its distance table on
nodes, and two textually identical `x` references at different positions must resolve independently.

Every node class gets a `visit_name` (e.g. `visit_binary_expr`), which Visitor uses for dispatch.
"""

from dataclasses import dataclass
from typing import List, Optional

from lox.core.tokens import Token


class Expr:
    """Superclass of every expression node."""
    visit_name = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.visit_name = f"visit_{cls.__name__.lower()}_expr"


class Stmt:
    """Superclass of every statement node."""
    visit_name = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.visit_name = f"visit_{cls.__name__.lower()}_stmt"


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: object


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """Short-circuiting `and`/`or`."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    """paren is the closing parenthesis, kept for error reporting."""
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    methods: List[Function]


class Visitor:
    """Superclass for anything that walks the tree. Subclasses list the node families they handle in node_types and
    must define a `visit_<node>_<family>` method for every node class in them; a missing handler is a TypeError as
    soon as the subclass is defined.
    """
    node_types = (Expr, Stmt)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        missing = [node.visit_name for family in cls.node_types for node in family.__subclasses__()
                   if not callable(getattr(cls, node.visit_name, None))]
        if missing:
            raise TypeError(f"{cls.__name__} does not handle: {', '.join(missing)}")

    def visit(self, node):
        return getattr(self, node.visit_name)(node)

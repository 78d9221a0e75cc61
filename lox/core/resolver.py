"""Static resolution pass. Walks the whole program once, before it runs, and computes for every variable use how
many scopes lie between the use and the scope that declares it. The interpreter then jumps straight to that frame
instead of searching the chain, which also makes closures see the binding that was in scope lexically.

Names that are not found in any local scope are left out of the table and treated as globals at runtime.
"""

from enum import Enum, auto

from lox.core.ast import Visitor
from lox.core.runtime import LoxClass


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()


class Resolver(Visitor):
    """Builds the distance table for a list of statements. Errors are reported to error_handler and resolution
    always runs to completion.
    """

    def __init__(self, error_handler):
        self.error_handler = error_handler
        self.scopes = []  # stack of dicts of name: whether or not its initializer has been resolved
        self.distances = {}

        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements):
        """Resolves statements and returns the distance table (node: number of hops)."""
        for statement in statements:
            self.visit(statement)
        return self.distances

    # scopes

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name):
        if not self.scopes:
            return  # globals may be redeclared freely

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error_handler.token_error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr, name):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.distances[expr] = depth
                return

    def resolve_function(self, function, function_type):
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve(function.body)
        self.end_scope()

        self.current_function = enclosing_function

    # statements

    def visit_block_stmt(self, stmt):
        self.begin_scope()
        self.resolve(stmt.statements)
        self.end_scope()

    def visit_class_stmt(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            function_type = FunctionType.METHOD
            if method.name.lexeme == LoxClass.INITIALIZER:
                function_type = FunctionType.INITIALIZER
            self.resolve_function(method, function_type)

        self.end_scope()
        self.current_class = enclosing_class

    def visit_expression_stmt(self, stmt):
        self.visit(stmt.expression)

    def visit_function_stmt(self, stmt):
        # defined before the body is resolved, so functions can recurse
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, FunctionType.FUNCTION)

    def visit_if_stmt(self, stmt):
        self.visit(stmt.condition)
        self.visit(stmt.then_branch)
        if stmt.else_branch is not None:
            self.visit(stmt.else_branch)

    def visit_print_stmt(self, stmt):
        self.visit(stmt.expression)

    def visit_return_stmt(self, stmt):
        if self.current_function is FunctionType.NONE:
            self.error_handler.token_error(stmt.keyword, "Can't return from top-level code.")

        if stmt.value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self.error_handler.token_error(stmt.keyword, "Can't return a value from an initializer.")
            self.visit(stmt.value)

    def visit_var_stmt(self, stmt):
        self.declare(stmt.name)
        if stmt.initializer is not None:
            self.visit(stmt.initializer)
        self.define(stmt.name)

    def visit_while_stmt(self, stmt):
        self.visit(stmt.condition)
        self.visit(stmt.body)

    # expressions

    def visit_assign_expr(self, expr):
        self.visit(expr.value)
        self.resolve_local(expr, expr.name)

    def visit_binary_expr(self, expr):
        self.visit(expr.left)
        self.visit(expr.right)

    def visit_call_expr(self, expr):
        self.visit(expr.callee)
        for argument in expr.arguments:
            self.visit(argument)

    def visit_get_expr(self, expr):
        self.visit(expr.object)

    def visit_grouping_expr(self, expr):
        self.visit(expr.expression)

    def visit_literal_expr(self, expr):
        pass

    def visit_logical_expr(self, expr):
        self.visit(expr.left)
        self.visit(expr.right)

    def visit_set_expr(self, expr):
        self.visit(expr.value)
        self.visit(expr.object)

    def visit_this_expr(self, expr):
        if self.current_class is ClassType.NONE:
            self.error_handler.token_error(expr.keyword, "Can't use 'this' outside of a class.")
            return
        self.resolve_local(expr, expr.keyword)

    def visit_unary_expr(self, expr):
        self.visit(expr.right)

    def visit_variable_expr(self, expr):
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            self.error_handler.token_error(expr.name, "Can't read local variable in its own initializer.")
        self.resolve_local(expr, expr.name)

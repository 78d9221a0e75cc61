"""Debug rendering of expression trees as fully parenthesized prefix forms, e.g. `-123 * (45.67)` renders as
`(* (- 123) (group 45.67))`. Useful for checking that the parser got precedence and associativity right.
"""

from lox.core.ast import Expr, Visitor
from lox.core.runtime import stringify


class AstPrinter(Visitor):
    node_types = (Expr,)

    def render(self, expr):
        return self.visit(expr)

    def parenthesize(self, name, *exprs):
        return f"({' '.join([name] + [self.visit(expr) for expr in exprs])})"

    def visit_assign_expr(self, expr):
        return f"(= {expr.name.lexeme} {self.visit(expr.value)})"

    def visit_binary_expr(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_call_expr(self, expr):
        return self.parenthesize("call", expr.callee, *expr.arguments)

    def visit_get_expr(self, expr):
        return self.parenthesize(f".{expr.name.lexeme}", expr.object)

    def visit_grouping_expr(self, expr):
        return self.parenthesize("group", expr.expression)

    def visit_literal_expr(self, expr):
        if isinstance(expr.value, str):
            return f"\"{expr.value}\""
        return stringify(expr.value)

    def visit_logical_expr(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_set_expr(self, expr):
        return self.parenthesize(f"={expr.name.lexeme}", expr.object, expr.value)

    def visit_this_expr(self, expr):
        return "this"

    def visit_unary_expr(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.right)

    def visit_variable_expr(self, expr):
        return expr.name.lexeme

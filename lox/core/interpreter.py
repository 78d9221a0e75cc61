"""Tree-walking evaluator for Lox. Expressions are evaluated to values, statements are executed for effect.

`return` does not raise. Executing a statement returns None when it completes normally, or a Returning completion
carrying the returned value. Blocks, ifs and loops hand a Returning straight back to their caller without running
anything else, and only LoxFunction.call consumes it. That way a `return` nested in loops and blocks unwinds to its
own function call and no further.
"""

import math
import sys
import threading

from lox.core.ast import Visitor
from lox.core.environment import Environment
from lox.core.runtime import LoxCallable, LoxFunction, LoxClass, LoxInstance
from lox.core.runtime import is_equal, is_truthy, native_clock, stringify
from lox.core.tokens import TokenType
from lox.lang.error import LoxRuntimeError


class Returning:
    """Completion of a statement that executed `return value`."""
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value


class Interpreter(Visitor):
    """Executes resolved programs. Globals (and resolved distances) persist across calls to interpret, which is what
    lets a command-line session build on previous entries.

    Programs run on a worker thread with a large stack, so that deep (but finite) Lox recursion fits in the Python
    recursion limit. Every Lox call uses about eight Python frames.
    """
    RECURSION_LIMIT = 100000             # python frames
    STACK_SIZE = 512 * 1024 * 1024       # bytes, for the worker thread

    def __init__(self, out=None):
        self.out = out  # None means sys.stdout at time of printing

        self.globals = Environment()
        self.environment = self.globals
        self.distances = {}

        self.globals.define("clock", native_clock())

    def interpret(self, statements, distances=None):
        """Executes statements in order. A LoxRuntimeError stops execution and propagates to the caller; statements
        that already ran keep their effects.
        """
        if distances:
            self.distances.update(distances)

        raised = []

        def run():
            try:
                for statement in statements:
                    self.execute(statement)
            except BaseException as error:
                raised.append(error)  # re-raised on the calling thread
            finally:
                self.environment = self.globals

        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(limit, Interpreter.RECURSION_LIMIT))
        try:
            stack_size = threading.stack_size(Interpreter.STACK_SIZE)
            try:
                worker = threading.Thread(target=run, name="lox-interpreter", daemon=True)
                worker.start()
            finally:
                threading.stack_size(stack_size)
            worker.join()
        finally:
            sys.setrecursionlimit(limit)

        if raised:
            raise raised[0]

    def evaluate(self, expr):
        return getattr(self, expr.visit_name)(expr)

    def execute(self, stmt):
        """Returns None, or a Returning if stmt executed a `return`."""
        return getattr(self, stmt.visit_name)(stmt)

    def execute_block(self, statements, environment):
        """Runs statements with environment as the current scope, restoring the previous scope however it is left."""
        previous = self.environment
        self.environment = environment
        try:
            for statement in statements:
                completion = self.execute(statement)
                if completion is not None:
                    return completion
            return None
        finally:
            self.environment = previous

    def lookup_variable(self, name, expr):
        distance = self.distances.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name)
        return self.globals.get(name)

    # statements

    def visit_block_stmt(self, stmt):
        return self.execute_block(stmt.statements, Environment(self.environment))

    def visit_class_stmt(self, stmt):
        # bound to nil first, so methods can refer to the class by name
        self.environment.define(stmt.name.lexeme, None)

        methods = {}
        for method in stmt.methods:
            is_initializer = method.name.lexeme == LoxClass.INITIALIZER
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_initializer)

        self.environment.assign(stmt.name, LoxClass(stmt.name.lexeme, methods))
        return None

    def visit_expression_stmt(self, stmt):
        self.evaluate(stmt.expression)
        return None

    def visit_function_stmt(self, stmt):
        self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))
        return None

    def visit_if_stmt(self, stmt):
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return None

    def visit_print_stmt(self, stmt):
        value = self.evaluate(stmt.expression)
        print(stringify(value), file=self.out if self.out is not None else sys.stdout)
        return None

    def visit_return_stmt(self, stmt):
        value = self.evaluate(stmt.value) if stmt.value is not None else None
        return Returning(value)

    def visit_var_stmt(self, stmt):
        value = self.evaluate(stmt.initializer) if stmt.initializer is not None else None
        self.environment.define(stmt.name.lexeme, value)
        return None

    def visit_while_stmt(self, stmt):
        while is_truthy(self.evaluate(stmt.condition)):
            completion = self.execute(stmt.body)
            if completion is not None:
                return completion
        return None

    # expressions

    def visit_assign_expr(self, expr):
        value = self.evaluate(expr.value)

        distance = self.distances.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)

        return value

    def visit_binary_expr(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type is TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        elif operator.type is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)

        elif operator.type is TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError("Operands must be two numbers or two strings.", operator)

        Interpreter.check_number_operands(operator, left, right)

        if operator.type is TokenType.MINUS:
            return left - right
        elif operator.type is TokenType.STAR:
            return left * right
        elif operator.type is TokenType.SLASH:
            return Interpreter.divide(left, right)
        elif operator.type is TokenType.GREATER:
            return left > right
        elif operator.type is TokenType.GREATER_EQUAL:
            return left >= right
        elif operator.type is TokenType.LESS:
            return left < right
        elif operator.type is TokenType.LESS_EQUAL:
            return left <= right

        raise LoxRuntimeError(f"Unknown binary operator '{operator.lexeme}'.", operator, internal=True)

    def visit_call_expr(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", expr.paren)

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(f"Expected {callee.arity()} arguments but got {len(arguments)}.", expr.paren)

        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError("Stack overflow.", expr.paren) from None

    def visit_get_expr(self, expr):
        obj = self.evaluate(expr.object)
        if isinstance(obj, LoxInstance):
            return obj.get(expr.name)
        raise LoxRuntimeError("Only instances have properties.", expr.name)

    def visit_grouping_expr(self, expr):
        return self.evaluate(expr.expression)

    def visit_literal_expr(self, expr):
        return expr.value

    def visit_logical_expr(self, expr):
        left = self.evaluate(expr.left)

        if expr.operator.type is TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def visit_set_expr(self, expr):
        obj = self.evaluate(expr.object)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError("Only instances have fields.", expr.name)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def visit_this_expr(self, expr):
        return self.lookup_variable(expr.keyword, expr)

    def visit_unary_expr(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.type is TokenType.BANG:
            return not is_truthy(right)
        elif expr.operator.type is TokenType.MINUS:
            if not isinstance(right, float):
                raise LoxRuntimeError("Operand must be a number.", expr.operator)
            return -right

        raise LoxRuntimeError(f"Unknown unary operator '{expr.operator.lexeme}'.", expr.operator, internal=True)

    def visit_variable_expr(self, expr):
        return self.lookup_variable(expr.name, expr)

    # helpers

    @staticmethod
    def check_number_operands(operator, left, right):
        if not (isinstance(left, float) and isinstance(right, float)):
            raise LoxRuntimeError("Operands must be numbers.", operator)

    @staticmethod
    def divide(left, right):
        """IEEE-754 division: dividing by zero gives an infinity (or NaN for 0/0), never an error."""
        if right == 0:
            if left == 0 or math.isnan(left):
                return math.nan
            return math.copysign(math.inf, left) * math.copysign(1.0, right)
        return left / right

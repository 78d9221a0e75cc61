import io
import sys
import unittest

from lox.core.interpreter import Interpreter
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.core.scanner import Scanner
from lox.lang.error import ErrorHandler, LoxRuntimeError


def execute(source, interpreter=None):
    """Runs source. Returns (lines printed, the LoxRuntimeError that stopped it or None)."""
    out = io.StringIO()
    if interpreter is None:
        interpreter = Interpreter(out)
    else:
        interpreter.out = out

    error_handler = ErrorHandler(fatal=False, stream=io.StringIO())
    tokens = Scanner(source, error_handler).scan_tokens()
    statements = Parser(tokens, error_handler).parse()
    distances = Resolver(error_handler).resolve(statements)
    assert not error_handler.had_error, error_handler.diagnostics

    try:
        interpreter.interpret(statements, distances)
    except LoxRuntimeError as error:
        return out.getvalue().splitlines(), error
    return out.getvalue().splitlines(), None


def run(source, interpreter=None):
    """Runs source, which must not fail. Returns printed lines."""
    output, error = execute(source, interpreter)
    if error is not None:
        raise error
    return output


def run_error(source):
    """Runs source, which must fail at runtime. Returns (error, lines printed before the error)."""
    output, error = execute(source)
    assert error is not None, f"{source!r} did not raise"
    return error, output


class ExpressionTestCase(unittest.TestCase):

    def test_arithmetic(self):
        cases = {
            "1 + 2 * 3": "7",
            "(1 + 2) * 3": "9",
            "10 / 4": "2.5",
            "1 - 2 - 3": "-4",
            "0.1 + 0.2": "0.30000000000000004",
            "-(3)": "-3",
            "2 * -0": "-0",
            "\"a\" + \"b\"": "ab",
            "\"\" + \"\"": "",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};"), case)

    def test_division_by_zero(self):
        cases = {"1 / 0": "Infinity", "-1 / 0": "-Infinity", "0 / 0": "NaN", "1 / -0": "-Infinity"}
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};"), case)

    def test_number_equality(self):
        cases = {
            "var n = 0 / 0; print n == n;": "true",
            "print 0 / 0 != 0 / 0;": "false",
            "print 0 == -0;": "false",
            "print -0 == -0;": "true",
            "print 0 == 0 * 1;": "true",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(case), case)

    def test_large_numbers(self):
        cases = {
            "print 100000000000 * 10000000000;": "1000000000000000000000",
            "print 123456789012345678;": "123456789012345680",
            "print 1 / 1000;": "0.001",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(case), case)

    def test_comparison_and_equality(self):
        cases = {
            "1 < 2": "true",
            "2 <= 2": "true",
            "3 > 4": "false",
            "3 >= 4": "false",
            "1 == 1": "true",
            "\"a\" == \"a\"": "true",
            "nil == nil": "true",
            "nil == false": "false",
            "true == 1": "false",
            "0 == \"0\"": "false",
            "1 != 2": "true",
            "clock == clock": "true",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};"), case)

    def test_truthiness(self):
        cases = {
            "!nil": "true",
            "!false": "true",
            "!0": "false",
            "!\"\"": "false",
            "!!true": "true",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};"), case)

    def test_logical_short_circuit(self):
        output = run(
            "fun loud(value) { print \"evaluated\"; return value; }\n"
            "print nil or \"right\";\n"
            "print 1 or loud(2);\n"
            "print nil and loud(2);\n"
            "print true and loud(2);\n"
        )
        self.assertEqual(["right", "1", "nil", "evaluated", "2"], output)

    def test_type_errors(self):
        cases = {
            "-\"a\";": ("Operand must be a number.", "-"),
            "\"a\" + 1;": ("Operands must be two numbers or two strings.", "+"),
            "1 + nil;": ("Operands must be two numbers or two strings.", "+"),
            "\"a\" * 2;": ("Operands must be numbers.", "*"),
            "true < false;": ("Operands must be numbers.", "<"),
            "1 / \"2\";": ("Operands must be numbers.", "/"),
        }
        for case, (msg, lexeme) in cases.items():
            error, __ = run_error(case)
            self.assertEqual(msg, error.msg, case)
            self.assertEqual(lexeme, error.token.lexeme, case)


class ScopeTestCase(unittest.TestCase):

    def test_shadowing(self):
        self.assertEqual(["2", "1"], run("var a = 1; { var a = 2; print a; } print a;"))

    def test_assignment(self):
        output = run("var a = 1; { a = 2; var b; print b; } print a; print a = 3;")
        self.assertEqual(["nil", "2", "3"], output)

    def test_undefined_variable(self):
        error, __ = run_error("print nope;")
        self.assertEqual("Undefined variable 'nope'.", error.msg)

        error, __ = run_error("nope = 1;")
        self.assertEqual("Undefined variable 'nope'.", error.msg)

    def test_lexical_scoping(self):
        output = run(
            "var a = \"global\";\n"
            "{\n"
            "  fun show() { print a; }\n"
            "  show();\n"
            "  var a = \"block\";\n"
            "  show();\n"
            "}\n"
        )
        self.assertEqual(["global", "global"], output)

    def test_nearest_declaration(self):
        output = run(
            "var x = \"outer\";\n"
            "{\n"
            "  var x = \"middle\";\n"
            "  {\n"
            "    fun f() { return x; }\n"
            "    print f();\n"
            "  }\n"
            "  x = \"changed\";\n"
            "}\n"
            "x = \"outer changed\";\n"
            "print x;\n"
        )
        self.assertEqual(["middle", "outer changed"], output)

    def test_block_restores_environment_after_error(self):
        interpreter = Interpreter()
        with self.assertRaises(LoxRuntimeError):
            run("var a = 1; { var a = 2; a + nil; }", interpreter)

        self.assertIs(interpreter.globals, interpreter.environment)
        self.assertEqual(["1"], run("print a;", interpreter))

    def test_runtime_error_keeps_earlier_effects(self):
        error, output = run_error("print 1; print nil + 1; print 2;")
        self.assertEqual(["1"], output)
        self.assertEqual(1, error.line)


class ControlFlowTestCase(unittest.TestCase):

    def test_if(self):
        output = run("if (0) print \"zero\"; else print \"no\"; if (nil) print 1; else print 2;")
        self.assertEqual(["zero", "2"], output)

    def test_while(self):
        self.assertEqual(["0", "1", "2"], run("var i = 0; while (i < 3) { print i; i = i + 1; }"))

    def test_for_matches_while(self):
        for_loop = run("for (var i = 0; i < 3; i = i + 1) print i;")
        while_loop = run("{ var i = 0; while (i < 3) { print i; i = i + 1; } }")
        self.assertEqual(while_loop, for_loop)

        for_loop = run("var i = 0; for (; i < 2;) { print i; i = i + 1; }")
        self.assertEqual(["0", "1"], for_loop)

        for_loop = run("fun f() { for (;;) { return \"done\"; } } print f();")
        self.assertEqual(["done"], for_loop)

    def test_for_variable_is_scoped(self):
        error, output = run_error("for (var i = 0; i < 1; i = i + 1) {} print i;")
        self.assertEqual("Undefined variable 'i'.", error.msg)

    def test_return_unwinds_to_own_call(self):
        output = run(
            "fun find(limit) {\n"
            "  for (var i = 0; i < 10; i = i + 1) {\n"
            "    while (true) {\n"
            "      if (i == limit) { return i; }\n"
            "      break_out();\n"  # never reached once i == limit
            "    }\n"
            "  }\n"
            "}\n"
            "fun break_out() {}\n"
            "print \"before\";\n"
            "print find(0);\n"
            "print \"after\";\n"
        )
        self.assertEqual(["before", "0", "after"], output)

    def test_implicit_nil_return(self):
        self.assertEqual(["nil", "nil"], run("fun f() {} fun g() { return; } print f(); print g();"))


class FunctionTestCase(unittest.TestCase):

    def test_recursion(self):
        output = run("fun fib(n) { if (n < 2) return n; return fib(n - 2) + fib(n - 1); } print fib(15);")
        self.assertEqual(["610"], output)

    def test_deep_recursion(self):
        output = run("fun count(n) { if (n == 0) return 0; return count(n - 1) + 1; } print count(300);")
        self.assertEqual(["300"], output)

        output = run("fun count(n) { if (n == 0) return 0; return count(n - 1) + 1; } print count(3000);")
        self.assertEqual(["3000"], output)

        output = run(
            "class Node { init(next) { this.next = next; } length() {\n"
            "  if (this.next == nil) return 1; return this.next.length() + 1; } }\n"
            "var list = nil; for (var i = 0; i < 2000; i = i + 1) list = Node(list);\n"
            "print list.length();\n"
        )
        self.assertEqual(["2000"], output)

    def test_mutual_recursion(self):
        output = run(
            "fun even(n) { if (n == 0) return true; return odd(n - 1); }\n"
            "fun odd(n) { if (n == 0) return false; return even(n - 1); }\n"
            "print even(10); print odd(7);\n"
        )
        self.assertEqual(["true", "true"], output)

    def test_closures_share_environment(self):
        output = run(
            "fun makeCounter() {\n"
            "  var i = 0;\n"
            "  fun count() { i = i + 1; return i; }\n"
            "  return count;\n"
            "}\n"
            "var a = makeCounter();\n"
            "var b = makeCounter();\n"
            "print a(); print a(); print b(); print a();\n"
            "var alias = a;\n"
            "print alias(); print a();\n"
        )
        self.assertEqual(["1", "2", "1", "3", "4", "5"], output)

    def test_closures_see_later_mutation(self):
        output = run(
            "var get; var set;\n"
            "{ var x = 1; fun g() { return x; } fun s(v) { x = v; } get = g; set = s; }\n"
            "print get(); set(5); print get();\n"
        )
        self.assertEqual(["1", "5"], output)

    def test_stringify_callables(self):
        output = run("fun f() {} class A {} print f; print clock; print A; print A();")
        self.assertEqual(["<fn f>", "<native fn>", "A", "<A instance>"], output)

    def test_clock(self):
        output = run("var t = clock(); print t > 0; print clock() >= t;")
        self.assertEqual(["true", "true"], output)

    def test_call_errors(self):
        error, __ = run_error("\"not a function\"();")
        self.assertEqual("Can only call functions and classes.", error.msg)
        self.assertEqual(")", error.token.lexeme)

        error, __ = run_error("fun f(a, b) {} f(1);")
        self.assertEqual("Expected 2 arguments but got 1.", error.msg)

        error, __ = run_error("clock(1);")
        self.assertEqual("Expected 0 arguments but got 1.", error.msg)

        error, __ = run_error("class A { init(x) {} } A();")
        self.assertEqual("Expected 1 arguments but got 0.", error.msg)

    def test_arguments_evaluated_before_callable_check(self):
        error, output = run_error("fun loud(x) { print x; return x; } nil(loud(1), loud(2));")
        self.assertEqual("Can only call functions and classes.", error.msg)
        self.assertEqual(["1", "2"], output)

    def test_argument_order(self):
        output = run("fun show(a, b, c) { print a + b + c; } var s = \"\"; "
                     "fun next(x) { s = s + x; return s; } show(next(\"a\"), next(\"b\"), next(\"c\"));")
        self.assertEqual(["aababc"], output)

    def test_stack_overflow(self):
        limit = sys.getrecursionlimit()
        error, __ = run_error("fun forever() { forever(); } forever();")
        self.assertEqual("Stack overflow.", error.msg)

        # the interpreter is still usable afterwards
        self.assertEqual(["ok"], run("print \"ok\";"))
        self.assertEqual(limit, sys.getrecursionlimit())


class ClassTestCase(unittest.TestCase):

    def test_fields_and_methods(self):
        output = run(
            "class Counter {\n"
            "  init(start) { this.count = start; }\n"
            "  increment() { this.count = this.count + 1; return this; }\n"
            "}\n"
            "var c = Counter(10);\n"
            "c.increment().increment();\n"
            "print c.count;\n"
            "c.extra = \"field\";\n"
            "print c.extra;\n"
        )
        self.assertEqual(["12", "field"], output)

    def test_initializer_returns_instance(self):
        output = run(
            "class A { init() { this.x = 1; return; this.x = 2; } }\n"
            "var a = A();\n"
            "print a.x;\n"
            "print a.init();\n"
            "print a.init() == a;\n"
        )
        self.assertEqual(["1", "<A instance>", "true"], output)

    def test_bound_methods(self):
        output = run(
            "class Person { init(name) { this.name = name; } greet() { return \"hi \" + this.name; } }\n"
            "var greet = Person(\"ann\").greet;\n"
            "var bob = Person(\"bob\");\n"
            "bob.hello = greet;\n"
            "print greet();\n"
            "print bob.hello();\n"
            "print bob.greet();\n"
        )
        self.assertEqual(["hi ann", "hi ann", "hi bob"], output)

    def test_fields_shadow_methods(self):
        output = run(
            "class A { m() { return \"method\"; } }\n"
            "var a = A();\n"
            "fun f() { return \"field\"; }\n"
            "a.m = f;\n"
            "print a.m();\n"
            "print A().m();\n"
        )
        self.assertEqual(["field", "method"], output)

    def test_class_refers_to_itself(self):
        output = run("class Node { make() { return Node(); } } print Node().make();")
        self.assertEqual(["<Node instance>"], output)

    def test_instances_are_distinct(self):
        output = run("class A {} var a = A(); var b = A(); print a == b; print a == a; print A == A;")
        self.assertEqual(["false", "true", "true"], output)

    def test_property_errors(self):
        cases = {
            "var x = 1; x.y;": "Only instances have properties.",
            "\"s\".length = 1;": "Only instances have fields.",
            "class A {} A().missing;": "Undefined property 'missing'.",
            "class A {} A.x;": "Only instances have properties.",
        }
        for case, expected in cases.items():
            error, __ = run_error(case)
            self.assertEqual(expected, error.msg, case)


if __name__ == '__main__':
    unittest.main()

"""Session control for Lox. Runs source text through the whole pipeline (scan, parse, resolve, interpret), either
for a script file or for entries typed at the interactive shell.
"""

from lox.core.interpreter import Interpreter
from lox.core.parser import Parser
from lox.core.printer import AstPrinter
from lox.core.resolver import Resolver
from lox.core.scanner import Scanner
from lox.core import ast
from lox.lang.error import GenericException


class Session:
    """Governs a Lox session. One interpreter is kept for the whole session, so globals defined by one run are
    visible to the next.
    """
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, cmd_line=False, out=None):
        self.error_handler = error_handler

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode
        self.interpreter = Interpreter(out)

        if self.cmd_line:
            self.error_handler.fatal = False
        elif path == Session.SH_FILE:
            raise GenericException(f"'{Session.SH_FILE}' is a reserved filename")

    def read(self):
        """Returns the contents of self.path."""
        try:
            with open(self.path, "r", encoding="utf-8") as file:
                return file.read()
        except OSError:
            raise GenericException(f"'{self.path}' could not be opened")

    def run_file(self):
        """Reads and runs self.path."""
        self.run(self.read())

    def parse(self, source):
        """Scans and parses source. Returns None if there was any syntax error."""
        self.error_handler.register_source(self.path, source)

        tokens = Scanner(source, self.error_handler).scan_tokens()
        statements = Parser(tokens, self.error_handler).parse()

        return None if self.error_handler.had_error else statements

    def run(self, source):
        """Runs source. Stops before interpreting if there were static errors; runtime errors are raised (as
        LoxRuntimeErrors) for the error handler to report.
        """
        statements = self.parse(source)
        if statements is None:
            return

        distances = Resolver(self.error_handler).resolve(statements)
        if self.error_handler.had_error:
            return

        self.interpreter.interpret(statements, distances)

    def render(self, source):
        """Returns the prefix form of every expression statement in source, one per line."""
        statements = self.parse(source)
        if statements is None:
            return ""

        printer = AstPrinter()
        return "\n".join(printer.render(stmt.expression) for stmt in statements
                         if isinstance(stmt, (ast.Expression, ast.Print)))

"""Error handling for Lox. Static errors (scanning, parsing, resolving) are reported to an ErrorHandler and never
raised past it; runtime errors are LoxRuntimeErrors that unwind to the ErrorHandler context manager. If any other
type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.
"""

import sys

from termcolor import colored

from lox.core.tokens import TokenType


class GenericException(Exception):
    """Base of every Lox error. token is the offending token, if there is one, and is used for line info and
    diagnosis.
    """
    exit_status = 66

    def __init__(self, msg, token=None, internal=False):
        super().__init__(msg)
        self.msg = msg
        self.token = token
        self.internal = internal

    @property
    def line(self):
        return self.token.line if self.token is not None else None


class ParseError(GenericException):
    """Raised by the parser to unwind to the nearest statement boundary. Already reported when raised."""


class LoxRuntimeError(GenericException):
    """Error raised while evaluating a program: wrong operand types, undefined names, bad calls, etc."""
    exit_status = 70


class ErrorHandler:
    """Reports static errors as they are found and acts as a context manager that turns escaping exceptions into
    Lox error messages. In fatal mode, the first runtime error (or internal error) exits the process.
    """
    ERROR = "red"
    SYNTAX_STATUS = 65

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream  # None means sys.stderr at time of writing
        self.diagnostics = []  # plain text of everything reported, in order

        self.had_error = False
        self.had_runtime_error = False

        self.path = None
        self.lines = []

    def register_source(self, path, source):
        """Registers the source currently being run, so diagnostics can quote the offending line."""
        self.path = path
        self.lines = source.splitlines()

    def reset(self):
        """Clears error flags. Used between command-line entries."""
        self.had_error = False
        self.had_runtime_error = False

    def exit_status(self):
        if self.had_error:
            return ErrorHandler.SYNTAX_STATUS
        elif self.had_runtime_error:
            return LoxRuntimeError.exit_status
        return 0

    def error(self, line, msg):
        """Reports a static error that has no token, e.g. an unexpected character."""
        self.report(line, "", msg)

    def token_error(self, token, msg):
        """Reports a static error at token."""
        if token.type is TokenType.EOF:
            self.report(token.line, " at end", msg)
        else:
            self.report(token.line, f" at '{token.lexeme}'", msg, token)

    def report(self, line, where, msg, token=None):
        self.had_error = True

        text = f"[line {line}] Error{where}: {msg}"
        self.diagnostics.append(text)

        self._write(colored(text, ErrorHandler.ERROR, attrs=["bold"]))
        self._diagnose(line, token)

    def runtime_error(self, error):
        """Reports a LoxRuntimeError as `msg\\n[line L]`."""
        self.had_runtime_error = True

        text = f"{error.msg}\n[line {error.line}]"
        self.diagnostics.append(text)

        self._write(colored(error.msg, ErrorHandler.ERROR, attrs=["bold"]) + f"\n[line {error.line}]")
        self._diagnose(error.line, error.token)

    def throw(self, error):
        """Reports an error that is not tied to a line of Lox source, e.g. an unreadable file."""
        text = f"error: {error.msg}"
        self.diagnostics.append(text)

        prefix = colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"]) if error.internal else ""
        self._write(prefix + colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg)

    @staticmethod
    def diagnose(line, lexeme):
        """Returns line with the first occurrence of lexeme highlighted and underlined."""
        start = line.index(lexeme)
        end = start + max(len(lexeme), 1)

        diagnosis = "    " + line[:start]
        diagnosis += colored(line[start:end], ErrorHandler.ERROR, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "    " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), ErrorHandler.ERROR, attrs=["bold"])

        return diagnosis

    def _diagnose(self, line, token):
        if token is None or line is None or not 0 < line <= len(self.lines):
            return

        source_line = self.lines[line - 1]
        if not token.lexeme or token.lexeme not in source_line:
            return  # multi-line strings, for example

        self._write(f"  File '{self.path}', line {line}:\n" + ErrorHandler.diagnose(source_line, token.lexeme))

    def _write(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        status = 1
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            return False
        elif exc_type is RecursionError:
            self.throw(GenericException("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, LoxRuntimeError):
            self.runtime_error(exc_val)
            status = LoxRuntimeError.exit_status
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
            status = exc_val.exit_status
        elif exc_type is not None:
            self.throw(GenericException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        if exc_type is not None and self.fatal and not do_exit:
            sys.exit(status)

        return not do_exit

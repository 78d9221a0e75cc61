"""Handles interactive/command-line mode for the Lox interpreter. Uses cmd as backend."""

import cmd
import io

from lox.core.scanner import Scanner
from lox.core.tokens import TokenType
from lox.lang.error import ErrorHandler


class Shell(cmd.Cmd):
    """Lox interpreter shell."""
    intro = "Lox interpreter :: Python backend\nType 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    @staticmethod
    def needs_continuation(source):
        """Whether or not source has an unclosed block. Braces inside strings and comments do not count."""
        tokens = Scanner(source, ErrorHandler(fatal=False, stream=io.StringIO())).scan_tokens()

        depth = 0
        for token in tokens:
            if token.type is TokenType.LEFT_BRACE:
                depth += 1
            elif token.type is TokenType.RIGHT_BRACE:
                depth -= 1
        return depth > 0

    def default(self, line):
        """Executes arbitrary Lox source."""
        source = self._tmp_line + line + "\n"

        if Shell.needs_continuation(source):
            self._tmp_line = source
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.error_handler.reset()
            self.sess.run(source)

    def do_ast(self, arg):
        """Prints the tree of an expression in prefix form, e.g. `ast 1 + 2 * 3`."""
        source = arg.rstrip()
        if not source.endswith(";"):
            source += ";"

        with self.sess.error_handler:
            self.sess.error_handler.reset()
            rendered = self.sess.render(source)
            if rendered:
                print(rendered, file=self.stdout)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the Lox interpreter!\n\n"
              "Lox is a small dynamically-typed scripting language with closures and classes. \n"
              "Each entry is run as soon as it is complete; blocks may span several lines.\n\n"
              "Try it out by typing 'var greeting = \"hi\";'. Next, try typing\n"
              "'print greeting + \" there\";'. Type 'ast <expression>' to see how an expression\n"
              "is parsed, and 'exit' to leave.", file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True

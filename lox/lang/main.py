"""Runs the Lox interpreter on a script file, or in command-line mode when no file is given. Also uses the error
handling context manager. Called from the `lox` console script.

Exit statuses: 65 after a syntax/resolution error, 70 after a runtime error, 66 if the file could not be read.
"""

import argparse
import sys

from lox.lang.error import ErrorHandler
from lox.lang.shell import Shell
from lox.lang.session import Session


def main(argv=None):
    """Runs the lox interpreter. Called from the lox console script."""
    parser = argparse.ArgumentParser(prog="lox", description="Tree-walking interpreter for Lox.")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--ast", action="store_true", help="print expression trees instead of running the file")
    args = parser.parse_args(argv)

    with ErrorHandler() as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)

            if args.ast:
                rendered = sess.render(sess.read())
                if rendered:
                    print(rendered)
            else:
                sess.run_file()

            sys.exit(error_handler.exit_status())

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()

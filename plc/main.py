"""Uses the plc lexer, parser, and evaluator to interpret .plc files, standard input, or run in command-line mode.
Also uses the error handling context manager. Called from the plc console script.

Exit status is 0 on success and otherwise the status of the first error's category (see plc.lang.error).
"""

import argparse
import logging
import sys

from plc.lang.error import ErrorHandler
from plc.lang.session import Session
from plc.lang.shell import Shell


def build_parser():
    parser = argparse.ArgumentParser(prog="plc", description="Interpreter for the plc toy language.")
    parser.add_argument("file", nargs="?",
                        help="file to interpret and run, '-' for stdin (if empty, goes to command-line mode)")
    parser.add_argument("--mode", choices=Session.MODES, default="run",
                        help="run the program (default), or only print its tokens or syntax tree")
    parser.add_argument("--no-color", action="store_true", help="do not color diagnostics")
    parser.add_argument("-v", "--verbose", action="store_true", help="log pipeline stages to stderr")
    return parser


def main(argv=None):
    """Runs plc interpreter. Returns the exit status (errors exit directly through the ErrorHandler)."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)

    with ErrorHandler(color=False if args.no_color else None) as error_handler:
        if args.file is None and sys.stdin.isatty():
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, mode=args.mode)).cmdloop()
            return 0  # errors in the shell were already reported
        else:
            sess = Session(error_handler, args.file or Session.STDIN, cmd_line=False, mode=args.mode)
            sess.run(sess.load())

    return error_handler.exit_code

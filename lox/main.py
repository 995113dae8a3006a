"""Uses the lox pipeline to run .lox files or run in command-line mode. Also uses the error handling context manager.
Installed as the `lox` script.

Exit statuses follow sysexits.h: 64 for bad usage, 65 for syntax/static errors, 66 for an unreadable file and 70 for
runtime errors.
"""

import argparse
import sys

from lox.lang.error import ErrorHandler
from lox.lang.session import Session
from lox.lang.shell import Shell

EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70


def main(argv=None):
    """Runs lox interpreter. Called from the lox executable script."""
    assert sys.version_info >= (3, 8), "lox cannot be run with python < 3.8"

    parser = argparse.ArgumentParser(prog="lox", description="Tree-walking interpreter for the lox language.")
    parser.add_argument("script", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code:
            sys.exit(EX_USAGE)
        raise

    error_handler = ErrorHandler()

    if args.script is None:
        with error_handler:  # ^C leaves quietly
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()
        return

    with error_handler:
        sess = Session(error_handler, args.script)
    if error_handler.had_error:
        sys.exit(EX_NOINPUT)

    sess.run()

    if error_handler.had_error:
        sys.exit(EX_DATAERR)
    if error_handler.had_runtime_error:
        sys.exit(EX_SOFTWARE)


if __name__ == "__main__":
    main()

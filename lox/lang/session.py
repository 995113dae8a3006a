"""Session control for lox. Runs source text through the whole pipeline (scan, parse, resolve, interpret), either
once for a file or line by line in command-line mode.

Every stage recurses once per level of nesting, and every lox call costs a dozen or so python frames, so the pipeline
runs on a worker thread with a large stack and a raised recursion limit (see run_deep).
"""

import sys
import threading

from lox.lang.error import LoxError
from lox.pure.interpreter import Interpreter
from lox.pure.parser import parse
from lox.pure.resolver import resolve
from lox.pure.scanner import scan

RECURSION_LIMIT = 100_000          # python frames, a few thousand lox calls
STACK_SIZE = 512 * 1024 * 1024     # bytes, enough for RECURSION_LIMIT frames


def run_deep(function, *args):
    """Calls function(*args) on a thread with STACK_SIZE bytes of stack and returns its result. Anything it raises
    is re-raised in the calling thread.
    """
    outcome = {}

    def target():
        try:
            outcome["result"] = function(*args)
        except BaseException as exc:  # handed back to the caller below
            outcome["error"] = exc

    previous_limit = sys.getrecursionlimit()
    previous_size = threading.stack_size(STACK_SIZE)
    sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
    try:
        worker = threading.Thread(target=target, name="lox", daemon=True)
        worker.start()
        worker.join()
    finally:
        threading.stack_size(previous_size)
        sys.setrecursionlimit(previous_limit)

    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("result")


class Session:
    """Governs a lox session. Global state lives in a single Interpreter and survives between runs."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, cmd_line=False, out=None):
        self.error_handler = error_handler
        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.interpreter = Interpreter(out if out is not None else sys.stdout)
        self.source = None

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    self.source = file.read()
            except OSError:
                raise LoxError(f"'{path}' could not be opened")

        elif not cmd_line:
            raise LoxError("'<in>' is a reserved filename")

    def compile(self, source):
        """Scans, parses and resolves source. Returns (statements, locals), or None if any stage reported an error."""
        self.error_handler.register_source(self.path, source)

        tokens = scan(source, self.error_handler)
        statements = parse(tokens, self.error_handler)
        if self.error_handler.had_error:
            return None

        locals = resolve(statements, self.error_handler)
        if self.error_handler.had_error:
            return None

        return statements, locals

    def execute(self, source):
        """Compiles and interprets source on the current thread. Errors propagate."""
        compiled = self.compile(source)
        if compiled is not None:
            self.interpreter.interpret(*compiled)

    def run(self, source=None):
        """Runs source (by default, this session's file). Errors are reported through the error handler rather than
        raised; check error_handler.had_error and error_handler.had_runtime_error afterwards.
        """
        if source is None:
            source = self.source

        with self.error_handler:
            run_deep(self.execute, source)

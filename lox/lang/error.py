"""Error handling for the lox language. Three kinds of error are raised by the pipeline and never conflated:

- LoxSyntaxError: scanning/parsing problems, reported and recovered from so one run can report several
- LoxStaticError: resolver problems (bad scoping), also batched
- LoxRuntimeError: raised while interpreting, aborts the rest of the program

Only LoxErrors should be encountered during running: if another type of error makes it all the way to ErrorHandler, it
is assumed to be an internal issue.
"""

import sys
from dataclasses import dataclass

from termcolor import colored


class LoxError(Exception):
    """Base lox error. token is the offending token, if there is one; line is taken from it when not given."""
    kind = "error"

    def __init__(self, msg, token=None, line=None):
        super().__init__(msg)
        self.msg = msg
        self.token = token
        self.line = line if line is not None else getattr(token, "line", 0)

    @property
    def where(self):
        """Location context of the error, e.g. " at 'foo'"."""
        if self.token is None:
            return ""
        if not self.token.lexeme:
            return " at end"
        return f" at '{self.token.lexeme}'"


class LoxSyntaxError(LoxError):
    """Raised (or reported) by the scanner and the parser."""
    kind = "syntax"


class LoxStaticError(LoxError):
    """Reported by the resolver."""
    kind = "static"


class LoxRuntimeError(LoxError):
    """Raised by the interpreter. Always carries the token that caused it."""
    kind = "runtime"


@dataclass(frozen=True)
class Diagnostic:
    """A reported error, kept so that callers can inspect what went wrong without parsing output."""
    kind: str
    line: int
    where: str
    message: str

    def __str__(self):
        if not self.line:
            return self.message
        if self.kind == LoxRuntimeError.kind:
            return f"{self.message}\n[line {self.line}]"
        return f"[line {self.line}] Error{self.where}: {self.message}"


class ErrorHandler:
    """Collects and prints lox errors. Also a context manager that reports runtime errors instead of letting them
    escape, so that a session can keep going (command-line mode) or exit with the right status (file mode).
    """
    ERROR = "red"

    def __init__(self, stream=None, quiet=False):
        self.stream = stream if stream is not None else sys.stderr
        self.quiet = quiet

        self.diagnostics = []
        self.had_error = False
        self.had_runtime_error = False

        self.path = None
        self.source_lines = []

    def register_source(self, path, source):
        """Registers the text currently being run so reports can echo the offending line."""
        self.path = path
        self.source_lines = source.splitlines()

    def reset(self):
        """Clears error flags. Called between lines in command-line mode."""
        self.had_error = False
        self.had_runtime_error = False

    def diagnose(self, error):
        """Returns the offending source line with the offending lexeme underlined, or "" if the line can't be found.
        The lexeme is left unmarked when its position on the line is unknown.
        """
        if not 0 < error.line <= len(self.source_lines):
            return ""
        line = self.source_lines[error.line - 1]

        lexeme = error.token.lexeme if error.token is not None else ""
        start = getattr(error.token, "column", None)
        if start is None and lexeme and line.count(lexeme) == 1:
            start = line.find(lexeme)  # token from elsewhere, only trusted when unambiguous
        if not lexeme or start is None or line[start:start + len(lexeme)] != lexeme:
            return "  " + line

        end = start + len(lexeme)
        diagnosis = "  " + line[:start] + colored(line[start:end], ErrorHandler.ERROR, attrs=["bold"]) + line[end:]
        diagnosis += "\n  " + " " * start + colored("^" + "~" * (len(lexeme) - 1), ErrorHandler.ERROR, attrs=["bold"])
        return diagnosis

    def report(self, error):
        """Records error and prints it. Runtime errors set had_runtime_error; everything else sets had_error."""
        diagnostic = Diagnostic(error.kind, error.line, error.where, error.msg)
        self.diagnostics.append(diagnostic)

        if error.kind == LoxRuntimeError.kind:
            self.had_runtime_error = True
        else:
            self.had_error = True

        if self.quiet:
            return

        if self.path:
            print(colored(f"{self.path}:{error.line}: ", attrs=["bold"]), end="", file=self.stream)
        print(colored(f"{error.kind} error: ", ErrorHandler.ERROR, attrs=["bold"]) + str(diagnostic), file=self.stream)

        diagnosis = self.diagnose(error)
        if diagnosis:
            print(diagnosis, file=self.stream)

    def error(self, line, msg, token=None):
        """Shorthand used by the scanner and parser."""
        self.report(LoxSyntaxError(msg, token, line))

    def internal(self, exc):
        """Prints an error that isn't a lox error, i.e. a bug in the interpreter."""
        self.had_runtime_error = True
        if not self.quiet:
            msg = f"unknown error: '{type(exc).__name__}: {exc}'"
            print(colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"]) + msg, file=self.stream)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or exc_type is SystemExit:
            return False

        if issubclass(exc_type, LoxError):
            self.report(exc_val)
        elif exc_type is RecursionError:
            self.report(LoxRuntimeError("Stack overflow."))
        elif exc_type is KeyboardInterrupt:
            self.report(LoxRuntimeError("Keyboard interrupt."))
        else:
            self.internal(exc_val)
            return False
        return True

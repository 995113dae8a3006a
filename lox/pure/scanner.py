"""Lexical analysis for lox. Turns source text into a list of Tokens that always ends with an EOF token.

Scanning never fails outright: unexpected characters and unterminated strings are reported to the ErrorHandler and
skipped, so that a single run can point out every bad character at once.
"""

from lox.pure.tokens import KEYWORDS, Token, TokenType


SINGLE = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
}

# char: (type if followed by "=", type otherwise)
DOUBLE = {
    "!": (TokenType.BANG_EQUAL, TokenType.BANG),
    "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    "<": (TokenType.LESS_EQUAL, TokenType.LESS),
    ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


def is_digit(char):
    return "0" <= char <= "9"


def is_alpha(char):
    return char.isalpha() or char == "_"


def is_alphanumeric(char):
    return is_alpha(char) or is_digit(char)


class Scanner:
    """Single-use scanner over one piece of source text."""

    def __init__(self, source, error_handler):
        self.source = source
        self.error_handler = error_handler

        self.tokens = []
        self.start = 0    # first char of the lexeme being scanned
        self.current = 0  # char being considered
        self.line = 1
        self.line_start = 0  # index of the first char of the current line

    def scan_tokens(self):
        """Scans the whole source. Returns the list of tokens, terminated by EOF."""
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, self.current - self.line_start))
        return self.tokens

    def scan_token(self):
        char = self.advance()

        if char in SINGLE:
            self.add_token(SINGLE[char])

        elif char in DOUBLE:
            with_equal, alone = DOUBLE[char]
            self.add_token(with_equal if self.match("=") else alone)

        elif char == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.is_at_end():
                    self.advance()
            else:
                self.add_token(TokenType.SLASH)

        elif char == "\n":
            self.line += 1
            self.line_start = self.current

        elif char.isspace():
            pass

        elif char == "\"":
            self.string()

        elif is_digit(char):
            self.number()

        elif is_alpha(char):
            self.identifier()

        else:
            self.error_handler.error(self.line, "Unexpected character.")

    def string(self):
        start_line, start_column = self.line, self.start - self.line_start
        while self.peek() != "\"" and not self.is_at_end():
            if self.peek() == "\n":
                self.line += 1
                self.line_start = self.current + 1
            self.advance()

        if self.is_at_end():
            self.error_handler.error(start_line, "Unterminated string.")
            return

        self.advance()  # closing "
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1], start_line, start_column)

    def number(self):
        while is_digit(self.peek()):
            self.advance()

        # fractional part only if a digit follows the dot: "1." is NUMBER DOT
        if self.peek() == "." and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while is_alphanumeric(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def is_at_end(self):
        return self.current >= len(self.source)

    def advance(self):
        self.current += 1
        return self.source[self.current - 1]

    def match(self, expected):
        """Consumes the next char only if it is expected."""
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self):
        return "" if self.is_at_end() else self.source[self.current]

    def peek_next(self):
        if self.current + 1 >= len(self.source):
            return ""
        return self.source[self.current + 1]

    def add_token(self, token_type, literal=None, line=None, column=None):
        lexeme = self.source[self.start:self.current]
        if line is None:
            line, column = self.line, self.start - self.line_start
        self.tokens.append(Token(token_type, lexeme, literal, line, column))


def scan(source, error_handler):
    """Returns the tokens of source. Errors are reported to error_handler; check error_handler.had_error."""
    return Scanner(source, error_handler).scan_tokens()

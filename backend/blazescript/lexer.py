"""Single-pass lexer turning BlazeScript source text into Tokens.

Lexing is not error-recovering: the first illegal or malformed character
stops the pass and the collected error list is returned without tokens.
"""

import logging
from typing import List, Optional, Tuple

from .errors import Error, ExpectedCharError, IllegalCharError, Position
from .tokens import DIGITS, KEYWORDS, LETTERS, LETTERS_DIGITS, Token, TokenKind
from .values import MAX_INT_DIGITS

logger = logging.getLogger(__name__)

SINGLE_CHAR_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MULTIPLY,
    "/": TokenKind.DIVIDE,
    "^": TokenKind.POWER,
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

ESCAPE_CHARACTERS = {
    "n": "\n",
    "t": "\t",
}


class Lexer:
    def __init__(self, file_name: str, text: str):
        self.file_name = file_name
        self.text = text
        self.pos = Position(-1, 0, -1, file_name, text)
        self.current_char: Optional[str] = None
        self.advance()

    def advance(self) -> None:
        self.pos.advance(self.current_char)
        self.current_char = self.text[self.pos.index] if self.pos.index < len(self.text) else None

    def make_tokens(self) -> Tuple[Optional[List[Token]], Optional[List[Error]]]:
        """Tokenize the whole text.

        Returns (tokens, None) on success, with a trailing EOF token, or
        (None, errors) where `errors` holds the first fatal problem.
        """
        tokens: List[Token] = []
        errors: List[Error] = []

        while self.current_char is not None:
            char = self.current_char
            if char in " \t\r":
                self.advance()
            elif char in "\n;":
                tokens.append(Token(TokenKind.NEWLINE, pos_start=self.pos))
                self.advance()
            elif char in SINGLE_CHAR_TOKENS:
                tokens.append(Token(SINGLE_CHAR_TOKENS[char], pos_start=self.pos))
                self.advance()
            elif char == "!":
                tokens.append(self.make_not_equals())
            elif char == "=":
                tokens.append(self.make_equals())
            elif char == "<":
                tokens.append(self.make_comparison(TokenKind.LESS_THAN, TokenKind.LESS_THAN_EQUALS))
            elif char == ">":
                tokens.append(self.make_comparison(TokenKind.GREATER_THAN, TokenKind.GREATER_THAN_EQUALS))
            elif char in "&|":
                token, error = self.make_doubled_keyword(char, "and" if char == "&" else "or")
                if error:
                    errors.append(error)
                    return None, errors
                tokens.append(token)
            elif char in LETTERS:
                tokens.append(self.make_identifier())
            elif char in DIGITS:
                token, error = self.make_number()
                if error:
                    errors.append(error)
                    return None, errors
                tokens.append(token)
            elif char == "'":
                token, error = self.make_char()
                if error:
                    errors.append(error)
                    return None, errors
                tokens.append(token)
            elif char == '"':
                token, error = self.make_string()
                if error:
                    errors.append(error)
                    return None, errors
                tokens.append(token)
            else:
                pos_start = self.pos.clone()
                self.advance()
                errors.append(IllegalCharError(pos_start, self.pos, f"'{char}'"))
                return None, errors

        tokens.append(Token(TokenKind.EOF, pos_start=self.pos))
        logger.debug("lexed %d tokens from %s", len(tokens), self.file_name)
        return tokens, None

    def make_not_equals(self) -> Token:
        pos_start = self.pos.clone()
        self.advance()
        if self.current_char == "=":
            self.advance()
            return Token(TokenKind.NOT_EQUALS, pos_start=pos_start, pos_end=self.pos)
        return Token(TokenKind.KEYWORD, "not", pos_start, self.pos)

    def make_equals(self) -> Token:
        pos_start = self.pos.clone()
        self.advance()
        if self.current_char == "=":
            self.advance()
            return Token(TokenKind.DOUBLE_EQUALS, pos_start=pos_start, pos_end=self.pos)
        if self.current_char == ">":
            self.advance()
            return Token(TokenKind.ARROW, pos_start=pos_start, pos_end=self.pos)
        return Token(TokenKind.EQUALS, pos_start=pos_start, pos_end=self.pos)

    def make_comparison(self, single: TokenKind, with_equals: TokenKind) -> Token:
        pos_start = self.pos.clone()
        self.advance()
        if self.current_char == "=":
            self.advance()
            return Token(with_equals, pos_start=pos_start, pos_end=self.pos)
        return Token(single, pos_start=pos_start, pos_end=self.pos)

    def make_doubled_keyword(self, char: str, keyword: str) -> Tuple[Optional[Token], Optional[Error]]:
        # `&&` and `||` are spellings of the `and`/`or` keywords
        pos_start = self.pos.clone()
        self.advance()
        if self.current_char == char:
            self.advance()
            return Token(TokenKind.KEYWORD, keyword, pos_start, self.pos), None
        return None, ExpectedCharError(pos_start, self.pos, f"Expected '{char}' after '{char}'")

    def make_identifier(self) -> Token:
        id_str = ""
        pos_start = self.pos.clone()
        while self.current_char is not None and self.current_char in LETTERS_DIGITS:
            id_str += self.current_char
            self.advance()
        kind = TokenKind.KEYWORD if id_str in KEYWORDS else TokenKind.IDENTIFIER
        return Token(kind, id_str, pos_start, self.pos)

    def make_number(self) -> Tuple[Optional[Token], Optional[Error]]:
        num_str = ""
        dot_count = 0
        pos_start = self.pos.clone()
        while self.current_char is not None and self.current_char in DIGITS + ".":
            if self.current_char == ".":
                # a second dot ends the literal and is left for the main loop
                if dot_count == 1:
                    break
                dot_count += 1
            num_str += self.current_char
            self.advance()

        if dot_count == 0:
            if len(num_str.lstrip("0")) > MAX_INT_DIGITS:
                return None, IllegalCharError(pos_start, self.pos, f"Int literal longer than {MAX_INT_DIGITS} digits")
            return Token(TokenKind.INT, int(num_str), pos_start, self.pos), None
        return Token(TokenKind.FLOAT, float(num_str), pos_start, self.pos), None

    def make_char(self) -> Tuple[Optional[Token], Optional[Error]]:
        pos_start = self.pos.clone()
        self.advance()
        char = self.current_char
        if char is None:
            return None, ExpectedCharError(pos_start, self.pos, "Expected a character after \"'\"")
        self.advance()
        if self.current_char != "'":
            return None, ExpectedCharError(pos_start, self.pos, "Expected closing \"'\"")
        self.advance()
        return Token(TokenKind.CHAR, char, pos_start, self.pos), None

    def make_string(self) -> Tuple[Optional[Token], Optional[Error]]:
        string = ""
        pos_start = self.pos.clone()
        escape = False
        self.advance()

        while self.current_char is not None and (self.current_char != '"' or escape):
            if escape:
                string += ESCAPE_CHARACTERS.get(self.current_char, self.current_char)
                escape = False
            elif self.current_char == "\\":
                escape = True
            else:
                string += self.current_char
            self.advance()

        if self.current_char is None:
            return None, ExpectedCharError(pos_start, self.pos, "Expected closing '\"'")
        self.advance()
        return Token(TokenKind.STRING, string, pos_start, self.pos), None


def tokenize(file_name: str, text: str) -> Tuple[Optional[List[Token]], Optional[List[Error]]]:
    return Lexer(file_name, text).make_tokens()

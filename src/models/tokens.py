"""
Tokenizer data models

Type-safe structures produced by the leading-comment stripper.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Tuple


TokenKind = Literal["head", "comment", "char"]


class LexerState(Enum):
    """
    States of the leading-comment stripper

    Values are the state names used in the lexer's token table.
    """
    HEAD = "root"        # before the first element tag
    COMMENT = "comment"  # inside <!-- ... -->
    BODY = "body"        # terminal: everything from the first tag onward


@dataclass(frozen=True)
class Token:
    """
    One chunk of source text recognised by the stripper

    Attributes:
        kind: "head" (discarded text before the first tag), "comment"
              (discarded comment text, markers included) or "char"
              (emitted markup)
        value: The matched substring
        span: (start, end) offsets of value in the source text

    Example:
        For source "<!-- c --><div/>":
        Token(kind="comment", value="<!--", span=(0, 4))
        ...
        Token(kind="char", value="<div/>", span=(10, 16))
    """
    kind: TokenKind
    value: str
    span: Tuple[int, int]

    @property
    def emitted(self) -> bool:
        """True for tokens that belong to the stripper output"""
        return self.kind == "char"

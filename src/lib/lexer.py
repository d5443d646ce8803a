"""
Leading-comment stripper and trailing-content trimmer

The stripper is a Pygments lexer with three states that discards
everything in front of the first element tag (comments, whitespace,
doctype/processing instructions) and emits the rest of the source
unchanged.

States:
- root (head): before the first tag. A lookahead on '<' + letter switches
  to body without consuming, so the tag is re-scanned under body rules
  and kept in the output.
- comment: inside <!-- -->. Discards one run of non-dash characters or a
  single dash at a time, then pops back to head on '-->'.
- body: terminal. The remaining input is emitted as one token.

Every rule matches a bounded chunk at the current position and the scan
never backtracks across chunks, so the work is linear in the input
length however long the comment is or however many dashes it holds.
"""

from typing import Iterator

from pygments.lexer import RegexLexer
from pygments.token import Comment, Other, Text, _TokenType

from ..models.tokens import LexerState, Token, TokenKind


class LeadingCommentLexer(RegexLexer):
    """
    Lexer locating the first element tag of a template

    Example:
        <!-- header -->\\n<div>x</div>

    Tokens:
        <!--            → Comment (discarded)
        " header "      → Comment (discarded)
        -->             → Comment (discarded)
        \\n              → Other (discarded)
        <div>x</div>    → Text (emitted)
    """

    name = 'LeadingComment'
    aliases = ['leading-comment']
    filenames = []

    tokens = {
        LexerState.HEAD.value: [
            (r'<!--', Comment.Multiline, LexerState.COMMENT.value),
            # Peek only: the tag itself is consumed by the body rule
            (r'(?=<[a-zA-Z_])', Text, LexerState.BODY.value),
            (r'[^<]+', Other),
            (r'<', Other),
        ],

        LexerState.COMMENT.value: [
            (r'-->', Comment.Multiline, '#pop'),
            (r'[^-]+', Comment.Multiline),
            (r'-', Comment.Multiline),
        ],

        LexerState.BODY.value: [
            (r'[\s\S]+', Text),
        ],
    }


def kind_of(tokentype: _TokenType) -> TokenKind:
    """Map a Pygments token type onto the stripper's token kinds"""
    if tokentype in Comment:
        return "comment"
    if tokentype in Other:
        return "head"
    return "char"


def tokens_scan(source: str) -> Iterator[Token]:
    """
    Lazily tokenize source with a fresh lexer.

    All recognised chunks are yielded, discarded ones included, in source
    order. Zero-length state switches produce no token. The iterator is
    finite and cannot be restarted.

    Args:
        source: Raw template text

    Yields:
        Token for each non-empty chunk
    """
    # get_tokens_unprocessed skips the newline stripping and tab
    # expansion that get_tokens() would apply
    lexer = LeadingCommentLexer()
    for position, tokentype, value in lexer.get_tokens_unprocessed(source):
        if not value:
            continue
        yield Token(
            kind=kind_of(tokentype),
            value=value,
            span=(position, position + len(value)),
        )


def tokens_emitted(source: str) -> Iterator[Token]:
    """Yield only the tokens that make up the stripper output"""
    return (token for token in tokens_scan(source) if token.emitted)


def comments_strip(source: str) -> str:
    """
    Drop everything before the first element tag outside a comment.

    Args:
        source: Raw template text

    Returns:
        Suffix of source starting at the first element tag, or "" when the
        source holds no such tag (comment-only or unterminated comment)

    Example:
        >>> comments_strip("<!-- c -->\\n<div>{{x}}</div>")
        '<div>{{x}}</div>'
    """
    return ''.join(token.value for token in tokens_emitted(source))


def trailing_trim(markup: str) -> str:
    """
    Drop everything after the last '>'.

    Args:
        markup: Stripper output

    Returns:
        markup cut right after its last '>', or "" when it has none.
        Applying it twice gives the same result.

    Example:
        >>> trailing_trim("<div></div>\\n<!-- end -->\\n")
        '<div></div>\\n<!-- end -->'
    """
    return markup[:markup.rfind('>') + 1]

"""Split raw search text into segments, honoring quotes and parentheses."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from importlib import resources

from lark import Lark, Token

from chat_archive.search.tokens import FreeText, GroupEnd, GroupStart

# Literal OR inside a group is dropped, not interpreted.
_GROUP_OR = "OR"


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("chat_archive.search").joinpath("grammar.lark").read_text()


_GRAMMAR_TEXT = _load_grammar()

_lexer = Lark(
    _GRAMMAR_TEXT,
    parser="lalr",
    lexer="basic",
)


def _resolve_quoted(raw: str) -> str:
    """Resolve escapes in a QUOTED lexeme, keeping the surrounding quotes.

    An unterminated quote gets its closing quote implied.
    """
    out = ['"']
    chars = iter(raw[1:])
    for ch in chars:
        if ch == "\\":
            # A trailing lone backslash escapes nothing and is dropped
            out.append(next(chars, ""))
        elif ch == '"':
            break
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _assemble(lexemes: Iterable[Token]) -> Iterator[FreeText | GroupStart | GroupEnd]:
    """Glue lexemes into segments and track parenthesis depth."""
    depth = 0
    parts: list[str] = []
    grouped = False

    def flush() -> FreeText | None:
        value = "".join(parts)
        parts.clear()
        if grouped and value == _GROUP_OR:
            return None
        return FreeText(value=value, grouped=grouped)

    for lexeme in lexemes:
        kind = lexeme.type
        if kind == "BARE" or kind == "QUOTED":
            if not parts:
                grouped = depth > 0
            parts.append(_resolve_quoted(str(lexeme)) if kind == "QUOTED" else str(lexeme))
            continue

        # Whitespace and parentheses end the current segment
        if parts:
            segment = flush()
            if segment is not None:
                yield segment

        if kind == "LPAR":
            depth += 1
            yield GroupStart(depth=depth)
        elif kind == "RPAR":
            # A stray ")" closes nothing
            depth = max(depth - 1, 0)
            yield GroupEnd(depth=depth)

    if parts:
        segment = flush()
        if segment is not None:
            yield segment


class TokenStream:
    """Lazy, restartable token sequence for one query string.

    Each iteration lexes the text again, so the stream can be walked
    any number of times without being materialized.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    def __iter__(self) -> Iterator[FreeText | GroupStart | GroupEnd]:
        return _assemble(_lexer.lex(self.text))

    def __repr__(self) -> str:
        return f"TokenStream({self.text!r})"


def tokenize(text: str) -> TokenStream:
    """Tokenize a search query.

    Args:
        text: Raw query text.

    Returns:
        A restartable stream of ``FreeText``, ``GroupStart`` and
        ``GroupEnd`` tokens in left-to-right order.
    """
    return TokenStream(text)

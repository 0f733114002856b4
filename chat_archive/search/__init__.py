"""Search query interpretation and filter composition for the chat store."""

from chat_archive.search.diagnostics import Diagnostic, Diagnostics
from chat_archive.search.filters import (
    ConversationKind,
    Email,
    PhoneDigits,
    RawIdentifier,
    SearchFilters,
    SenderMatcher,
    SortOrder,
    classify_sender,
    normalize,
)
from chat_archive.search.parser import (
    ContactSelector,
    ParsedQuery,
    SearchParams,
    extract_directives,
    parse_query,
)
from chat_archive.search.query import (
    DEFAULT_LIMIT,
    ComposedQuery,
    build_search,
    compose_query,
    execute_search,
    get_conversation_messages,
    search_messages,
)
from chat_archive.search.results import MessageRecord, SearchOutcome
from chat_archive.search.tokenizer import tokenize
from chat_archive.search.tokens import Directive, FreeText, GroupEnd, GroupStart, Token

__all__ = [
    # Tokens
    "Directive",
    "FreeText",
    "GroupEnd",
    "GroupStart",
    "Token",
    "tokenize",
    # Extraction
    "ContactSelector",
    "ParsedQuery",
    "SearchParams",
    "extract_directives",
    "parse_query",
    # Normalization
    "ConversationKind",
    "Email",
    "PhoneDigits",
    "RawIdentifier",
    "SearchFilters",
    "SenderMatcher",
    "SortOrder",
    "classify_sender",
    "normalize",
    # Composition and execution
    "DEFAULT_LIMIT",
    "ComposedQuery",
    "build_search",
    "compose_query",
    "execute_search",
    "get_conversation_messages",
    "search_messages",
    # Results
    "Diagnostic",
    "Diagnostics",
    "MessageRecord",
    "SearchOutcome",
]

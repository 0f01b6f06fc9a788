#!/usr/bin/env python3
"""Streaming Turtle tokenizer and recursive-descent triple parser.

The tokenizer turns text into a lazy sequence of tokens; the parser pulls
those tokens with one token of pushback, tracks ``@prefix``/``@base`` state
and expands collections and blank-node property lists into plain triples.
Terms render in canonical N-Triples form so callers can deduplicate them
with :class:`TermInterner`.
"""

from __future__ import annotations

import argparse
import enum
import logging
import sys
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple, NoReturn, Sequence
from urllib.parse import urlsplit, urlunsplit

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

RDF_TYPE_IRI = f"{RDF_NS}type"
RDF_FIRST_IRI = f"{RDF_NS}first"
RDF_REST_IRI = f"{RDF_NS}rest"
RDF_NIL_IRI = f"{RDF_NS}nil"

XSD_STRING_IRI = f"{XSD_NS}string"
XSD_BOOLEAN_IRI = f"{XSD_NS}boolean"
XSD_INTEGER_IRI = f"{XSD_NS}integer"
XSD_DECIMAL_IRI = f"{XSD_NS}decimal"

KEYWORDS = ("a", "true", "false")

STRING_ESCAPES = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}


class ParseError(ValueError):
    """Base class for all errors raised while parsing a document."""

    def __init__(self, source: str, line: int, column: int, message: str):
        super().__init__(f"{source}:{line}:{column}: {message}")
        self.source = source
        self.line = line
        self.column = column
        self.message = message


class LexicalError(ParseError):
    """Raised when the tokenizer cannot form a token."""


class UnexpectedToken(ParseError):
    """Raised when the grammar requires a different kind of token."""

    def __init__(self, source: str, expected: str, actual: Token):
        super().__init__(
            source,
            actual.line,
            actual.column,
            f"expected {expected}, found {describe_token(actual)}",
        )
        self.expected = expected
        self.actual = actual


class UndeclaredDirective(ParseError):
    """Raised on malformed ``@prefix``/``@base`` directives."""


class UnterminatedStatement(ParseError):
    """Raised when a statement or directive is missing its final ``.``."""


@dataclass(frozen=True)
class IRI:
    """Resolved IRI term."""
    value: str

    def __str__(self) -> str:
        return format_term(self)


@dataclass(frozen=True)
class BNode:
    """Blank node, unique within one parse."""
    label: str

    def __str__(self) -> str:
        return format_term(self)


@dataclass(frozen=True)
class Literal:
    """RDF literal carrying either a datatype IRI or a language tag.

    A literal constructed with neither gets ``xsd:string``. The value is kept
    exactly as written in the document. Parsed language tags are lower-cased
    (``"chat"@FR`` becomes ``lang="fr"``), while the constructor stores
    whatever tag it is given.
    """
    value: str
    datatype: str | None = None
    lang: str | None = None

    def __post_init__(self) -> None:
        if self.lang is not None and self.datatype is not None:
            raise ValueError("literal cannot have both a datatype and a language tag")
        if self.lang is None and self.datatype is None:
            object.__setattr__(self, "datatype", XSD_STRING_IRI)

    def __str__(self) -> str:
        return format_term(self)


Subject = IRI | BNode
Node = IRI | BNode | Literal


class Triple(NamedTuple):
    """One fully-resolved statement."""
    subject: Subject
    predicate: IRI
    object: Node


class TokenKind(enum.Enum):
    """Kinds of tokens produced by :class:`Tokenizer`."""

    EOF = "end of input"
    IRI = "IRI"
    BAREWORD = "bareword"
    DIRECTIVE = "directive"
    STRING = "string"
    NUMBER = "number"
    BLANK_NODE = "blank node"
    LIST_OPEN = "("
    LIST_CLOSE = ")"
    BRACKET_OPEN = "["
    BRACKET_CLOSE = "]"
    DOT = "."
    COMMA = ","
    SEMICOLON = ";"
    ERROR = "error"


PUNCTUATION = {
    ".": TokenKind.DOT,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    "(": TokenKind.LIST_OPEN,
    ")": TokenKind.LIST_CLOSE,
    "[": TokenKind.BRACKET_OPEN,
    "]": TokenKind.BRACKET_CLOSE,
}


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        kind: The kind of token.
        text: Raw lexical text. Decoded value for STRING tokens, label without
            ``_:`` for BLANK_NODE tokens, offending text for ERROR tokens.
        line: 1-based line of the first character.
        column: 1-based column of the first character.
        lang: Language tag of a STRING token, lower-cased.
        datatype: IRI or BAREWORD token following ``^^`` on a STRING token.
        message: Explanation carried by ERROR tokens.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    lang: str | None = None
    datatype: Token | None = None
    message: str | None = None


def describe_token(token: Token) -> str:
    """Return a short human-readable description of a token for messages."""
    if token.kind is TokenKind.EOF:
        return "end of input"
    return f"{token.kind.value} {token.text!r}"


class Scanner:
    """Character cursor with line and column tracking."""
    def __init__(self, text: str):
        self.text = text
        self.i = 0
        self.line = 1
        self.col = 1

    def eof(self) -> bool:
        """Return whether the cursor has reached the end of the text."""
        return self.i >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        """Return the character at the current position plus an offset, or ``""``."""
        idx = self.i + offset
        if idx >= len(self.text):
            return ""
        return self.text[idx]

    def startswith(self, token: str) -> bool:
        """Return whether the remaining text starts with ``token``."""
        return self.text.startswith(token, self.i)

    def advance(self) -> str:
        """Consume one character, updating line/column counters."""
        if self.eof():
            return ""
        ch = self.text[self.i]
        self.i += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def consume(self, token: str) -> bool:
        """Consume ``token`` if it comes next and report whether it did."""
        if not self.startswith(token):
            return False
        for _ in token:
            self.advance()
        return True


def is_space(ch: str) -> bool:
    """Return whether a character is Turtle whitespace."""
    return ch != "" and ch in " \t\r\n"


def is_digit(ch: str) -> bool:
    """Return whether a character is an ASCII digit."""
    return len(ch) == 1 and "0" <= ch <= "9"


def is_hex(ch: str) -> bool:
    """Return whether a character is a hexadecimal digit."""
    return len(ch) == 1 and ch in "0123456789abcdefABCDEF"


def is_name_boundary(ch: str) -> bool:
    """Return whether a character terminates a bareword, label or number."""
    if not ch:
        return True
    return is_space(ch) or ch in ";,.()[]{}<>\"'|#"


class _LexFailure(Exception):
    """Internal signal turned into an ERROR token by :meth:`Tokenizer.next_token`."""

    def __init__(self, message: str, text: str, line: int, column: int):
        super().__init__(message)
        self.message = message
        self.text = text
        self.line = line
        self.column = column


class Tokenizer:
    """Lazy tokenizer over an in-memory Turtle document.

    ``next_token()`` never raises: lexical problems come back as ERROR
    tokens, and once one has been produced every later call returns it again.
    """

    def __init__(self, text: str, source: str = "<string>"):
        self.scanner = Scanner(text)
        self.source = source
        self._failed: Token | None = None

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.kind in (TokenKind.EOF, TokenKind.ERROR):
                return

    def next_token(self) -> Token:
        """Return the next token, or the sticky ERROR token after a failure."""
        if self._failed is not None:
            return self._failed
        try:
            return self._lex()
        except _LexFailure as exc:
            self._failed = Token(
                TokenKind.ERROR, exc.text, exc.line, exc.column, message=exc.message
            )
            return self._failed

    def _fail(self, message: str, text: str, line: int, column: int) -> NoReturn:
        """Abort the current token with an ERROR at the given position."""
        raise _LexFailure(message, text, line, column)

    def _skip_ws_comments(self) -> None:
        """Skip whitespace and ``#`` comments."""
        scanner = self.scanner
        while not scanner.eof():
            ch = scanner.peek()
            if is_space(ch):
                scanner.advance()
                continue
            if ch == "#":
                while not scanner.eof() and scanner.peek() != "\n":
                    scanner.advance()
                continue
            break

    def _read_word(self) -> str:
        """Consume characters up to the next name boundary."""
        chars: list[str] = []
        while not is_name_boundary(self.scanner.peek()):
            chars.append(self.scanner.advance())
        return "".join(chars)

    def _lex(self) -> Token:
        """Dispatch on the next character and produce one token."""
        self._skip_ws_comments()
        scanner = self.scanner
        line, col = scanner.line, scanner.col
        if scanner.eof():
            return Token(TokenKind.EOF, "", line, col)

        ch = scanner.peek()
        if ch in PUNCTUATION:
            scanner.advance()
            return Token(PUNCTUATION[ch], ch, line, col)
        if ch == "<":
            return self._lex_iri(line, col)
        if ch == '"' or ch == "'":
            return self._lex_string(line, col)
        if ch == "_":
            return self._lex_blank_node(line, col)
        if ch == "@":
            return self._lex_directive(line, col)
        if is_digit(ch) or ch in "+-":
            return self._lex_number(line, col)
        if ch.isalpha() or ch == ":":
            return self._lex_bareword(line, col)
        scanner.advance()
        self._fail(f"unexpected character {ch!r}", ch, line, col)

    def _lex_iri(self, line: int, col: int) -> Token:
        """Lex ``<...>`` into an IRI token holding the raw text."""
        scanner = self.scanner
        scanner.advance()
        chars: list[str] = []
        while True:
            if scanner.eof():
                self._fail("unterminated IRI", "<" + "".join(chars), line, col)
            ch = scanner.peek()
            if ch == ">":
                scanner.advance()
                return Token(TokenKind.IRI, "".join(chars), line, col)
            if ord(ch) <= 0x20:
                self._fail(
                    "whitespace or control character in IRI",
                    ch,
                    scanner.line,
                    scanner.col,
                )
            chars.append(scanner.advance())

    def _lex_string(self, line: int, col: int) -> Token:
        """Lex a quoted literal with its optional language tag or datatype."""
        scanner = self.scanner
        quote = scanner.peek()
        if scanner.startswith(quote * 3):
            value = self._read_long_string(quote, line, col)
        else:
            value = self._read_short_string(quote, line, col)

        if scanner.peek() == "@":
            return Token(
                TokenKind.STRING, value, line, col, lang=self._read_language_tag()
            )
        if scanner.peek() == "^":
            if not scanner.consume("^^"):
                self._fail("expected '^^' before datatype", "^", scanner.line, scanner.col)
            return Token(
                TokenKind.STRING, value, line, col, datatype=self._read_datatype()
            )
        return Token(TokenKind.STRING, value, line, col)

    def _read_short_string(self, quote: str, line: int, col: int) -> str:
        scanner = self.scanner
        scanner.advance()
        out: list[str] = []
        while True:
            if scanner.eof():
                self._fail("unterminated literal", quote + "".join(out), line, col)
            ch = scanner.peek()
            if ch == quote:
                scanner.advance()
                return "".join(out)
            if ch in "\r\n":
                self._fail(
                    "unterminated literal (newline in short string)",
                    quote + "".join(out),
                    line,
                    col,
                )
            if ch == "\\":
                out.append(self._read_escape())
                continue
            out.append(scanner.advance())

    def _read_long_string(self, quote: str, line: int, col: int) -> str:
        scanner = self.scanner
        delim = quote * 3
        scanner.consume(delim)
        out: list[str] = []
        while True:
            if scanner.eof():
                self._fail("unterminated literal", delim + "".join(out), line, col)
            if scanner.consume(delim):
                return "".join(out)
            if scanner.peek() == "\\":
                out.append(self._read_escape())
                continue
            out.append(scanner.advance())

    def _read_escape(self) -> str:
        """Decode one backslash escape sequence."""
        scanner = self.scanner
        line, col = scanner.line, scanner.col
        scanner.advance()
        ch = scanner.peek()
        if ch in STRING_ESCAPES:
            scanner.advance()
            return STRING_ESCAPES[ch]
        if ch not in ("u", "U"):
            self._fail("invalid escape sequence", "\\" + ch, line, col)
        scanner.advance()
        digits: list[str] = []
        for _ in range(4 if ch == "u" else 8):
            if not is_hex(scanner.peek()):
                self._fail(f"invalid \\{ch} escape", "\\" + ch + "".join(digits), line, col)
            digits.append(scanner.advance())
        codepoint = int("".join(digits), 16)
        if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
            self._fail("escaped code point out of range", "\\" + ch + "".join(digits), line, col)
        return chr(codepoint)

    def _read_language_tag(self) -> str:
        """Read ``@tag`` after a literal and return it lower-cased."""
        scanner = self.scanner
        line, col = scanner.line, scanner.col
        scanner.advance()
        tag = self._read_word()
        well_formed = (
            bool(tag)
            and tag[0].isascii()
            and tag[0].isalpha()
            and not tag.endswith("-")
            and "--" not in tag
            and all(c == "-" or (c.isascii() and c.isalpha()) for c in tag)
        )
        if not well_formed:
            self._fail("malformed language tag", "@" + tag, line, col)
        return tag.lower()

    def _read_datatype(self) -> Token:
        """Read the IRI or prefixed name that follows ``^^``."""
        scanner = self.scanner
        line, col = scanner.line, scanner.col
        ch = scanner.peek()
        if ch == "<":
            return self._lex_iri(line, col)
        if ch.isalpha() or ch == ":":
            word = self._read_word()
            if ":" in word:
                return Token(TokenKind.BAREWORD, word, line, col)
            self._fail("expected datatype IRI after '^^'", word, line, col)
        self._fail("expected datatype IRI after '^^'", ch, line, col)

    def _lex_blank_node(self, line: int, col: int) -> Token:
        """Lex ``_:label`` into a BLANK_NODE token."""
        scanner = self.scanner
        scanner.advance()
        if not scanner.consume(":"):
            self._fail("malformed blank node label", "_", line, col)
        label = self._read_word()
        if not label:
            self._fail("malformed blank node label", "_:", line, col)
        return Token(TokenKind.BLANK_NODE, label, line, col)

    def _lex_directive(self, line: int, col: int) -> Token:
        """Lex ``@prefix`` or ``@base``."""
        self.scanner.advance()
        word = self._read_word()
        if word not in ("prefix", "base"):
            self._fail(f"unknown directive '@{word}'", "@" + word, line, col)
        return Token(TokenKind.DIRECTIVE, "@" + word, line, col)

    def _lex_number(self, line: int, col: int) -> Token:
        """Lex an integer or decimal, with optional sign and exponent."""
        scanner = self.scanner
        start = scanner.i
        if scanner.peek() in "+-":
            scanner.advance()
        if not is_digit(scanner.peek()):
            self._fail("malformed numeric literal", scanner.text[start : scanner.i], line, col)
        while is_digit(scanner.peek()):
            scanner.advance()
        if scanner.peek() == "." and is_digit(scanner.peek(1)):
            scanner.advance()
            while is_digit(scanner.peek()):
                scanner.advance()
        if scanner.peek() in ("e", "E"):
            scanner.advance()
            if scanner.peek() in ("+", "-"):
                scanner.advance()
            if not is_digit(scanner.peek()):
                self._fail("malformed exponent", scanner.text[start : scanner.i], line, col)
            while is_digit(scanner.peek()):
                scanner.advance()
        if not is_name_boundary(scanner.peek()):
            self._read_word()
            self._fail("malformed numeric literal", scanner.text[start : scanner.i], line, col)
        return Token(TokenKind.NUMBER, scanner.text[start : scanner.i], line, col)

    def _lex_bareword(self, line: int, col: int) -> Token:
        """Lex a prefixed name, keyword or SPARQL-style directive."""
        word = self._read_word()
        if ":" not in word and word.lower() in ("prefix", "base"):
            return Token(TokenKind.DIRECTIVE, word, line, col)
        return Token(TokenKind.BAREWORD, word, line, col)


def tokenize(text: str, source: str = "<string>") -> Iterator[Token]:
    """Lazily tokenize Turtle text, ending with an EOF or ERROR token."""
    return iter(Tokenizer(text, source))


def numeric_datatype(lexical: str) -> str:
    """Return the XSD datatype implied by a numeric token's lexical shape."""
    if "." in lexical or "e" in lexical or "E" in lexical:
        return XSD_DECIMAL_IRI
    return XSD_INTEGER_IRI


def remove_dot_segments(path: str) -> str:
    """Drop ``.`` and ``..`` segments from a path, keeping empty segments."""
    remaining = path
    output: list[str] = []
    while remaining:
        if remaining.startswith("../"):
            remaining = remaining[3:]
        elif remaining.startswith("./"):
            remaining = remaining[2:]
        elif remaining.startswith("/./") or remaining == "/.":
            remaining = "/" + remaining[3:]
        elif remaining.startswith("/../") or remaining == "/..":
            remaining = "/" + remaining[4:]
            if output:
                output.pop()
        elif remaining in (".", ".."):
            remaining = ""
        else:
            cut = remaining.find("/", 1 if remaining.startswith("/") else 0)
            if cut < 0:
                cut = len(remaining)
            output.append(remaining[:cut])
            remaining = remaining[cut:]
    return "".join(output)


def merge_paths(base_path: str, base_has_authority: bool, ref_path: str) -> str:
    """Append a relative path to the directory part of the base path."""
    if base_has_authority and not base_path:
        return "/" + ref_path
    slash = base_path.rfind("/")
    if slash < 0:
        return ref_path
    return base_path[: slash + 1] + ref_path


def resolve_iri(base_iri: str, ref: str) -> str:
    """Resolve a relative reference against an absolute base IRI.

    Works for any base scheme, hierarchical or not (``urn:``, ``tag:``), and
    keeps empty ``//`` path segments intact.
    """
    ref_parts = urlsplit(ref)
    base = urlsplit(base_iri)
    netloc = base.netloc
    query = ref_parts.query
    if ref_parts.netloc:
        netloc = ref_parts.netloc
        path = remove_dot_segments(ref_parts.path)
    elif not ref_parts.path:
        path = base.path
        if "?" not in ref.partition("#")[0]:
            query = base.query
    elif ref_parts.path.startswith("/"):
        path = remove_dot_segments(ref_parts.path)
    else:
        merged = merge_paths(base.path, bool(base.netloc), ref_parts.path)
        path = remove_dot_segments(merged)
    resolved = urlunsplit((base.scheme, netloc, path, query, ref_parts.fragment))

    # urlunsplit drops empty "?" and "#" markers.
    head, hash_mark, _ = ref.partition("#")
    if "?" in head and not query:
        before, sep, after = resolved.partition("#")
        if "?" not in before:
            resolved = f"{before}?{sep}{after}"
    if hash_mark and not ref_parts.fragment and "#" not in resolved:
        resolved += "#"
    return resolved


class TurtleParser:
    """Recursive-descent parser producing fully-resolved triples.

    Prefix map, base IRI and output list live on the instance; use one
    instance per document.
    """
    def __init__(
        self, text: str, source: str = "<string>", base_iri: str | None = None
    ):
        self.tokenizer = Tokenizer(text, source)
        self.source = source
        self.base_iri = base_iri
        self.prefixes: dict[str, str] = {}
        self.triples: list[Triple] = []
        self._pushed: Token | None = None
        self._generated_bnode = 0
        self._reserved_labels: set[str] = set()
        self._labelled: dict[str, BNode] = {}

    def parse(self) -> list[Triple]:
        """Parse the whole document and return its triples in order."""
        while True:
            token = self.next_token()
            if token.kind is TokenKind.EOF:
                break
            if token.kind is TokenKind.DIRECTIVE:
                self.parse_directive(token)
                continue
            self.push_back(token)
            self.parse_triples_statement()
        logger.debug(
            "%s: parsed %d triples (%d prefixes, %d generated blank nodes)",
            self.source,
            len(self.triples),
            len(self.prefixes),
            self._generated_bnode,
        )
        return self.triples

    def next_token(self) -> Token:
        """Return the pushed-back token or pull the next one from the tokenizer."""
        if self._pushed is not None:
            token, self._pushed = self._pushed, None
            return token
        token = self.tokenizer.next_token()
        if token.kind is TokenKind.ERROR:
            raise LexicalError(
                self.source, token.line, token.column, token.message or "lexical error"
            )
        return token

    def push_back(self, token: Token) -> None:
        """Return a token to the stream; only one may be pending."""
        if self._pushed is not None:
            raise RuntimeError("only one token of pushback is supported")
        self._pushed = token

    def emit(self, subject: Subject, predicate: IRI, obj: Node) -> None:
        """Append one triple to the output."""
        self.triples.append(Triple(subject, predicate, obj))

    def new_bnode(self) -> BNode:
        """Create a fresh generated blank node that avoids explicit labels."""
        while True:
            label = f"genid{self._generated_bnode}"
            self._generated_bnode += 1
            if label not in self._reserved_labels:
                self._reserved_labels.add(label)
                return BNode(label)

    def blank_node_for_label(self, label: str) -> BNode:
        """Return the blank node for an explicit ``_:label``, stable per document."""
        node = self._labelled.get(label)
        if node is None:
            # An earlier generated node already took this label.
            node = self.new_bnode() if label in self._reserved_labels else BNode(label)
            self._reserved_labels.add(label)
            self._labelled[label] = node
        return node

    def parse_directive(self, token: Token) -> None:
        """Apply a prefix or base directive to the parser state."""
        name = token.text.lstrip("@").lower()
        if name == "prefix":
            label = self.next_token()
            if (
                label.kind is not TokenKind.BAREWORD
                or not label.text.endswith(":")
                or label.text.count(":") != 1
            ):
                raise UndeclaredDirective(
                    self.source,
                    label.line,
                    label.column,
                    f"expected prefix label such as 'ex:' after {token.text}, "
                    f"found {describe_token(label)}",
                )
            namespace = self.expect_directive_iri(token)
            prefix = label.text[:-1]
            self.prefixes[prefix] = namespace
            logger.debug("%s: prefix %r bound to <%s>", self.source, prefix, namespace)
        else:
            self.base_iri = self.expect_directive_iri(token)
            logger.debug("%s: base IRI set to <%s>", self.source, self.base_iri)

        end = self.next_token()
        if end.kind is TokenKind.DOT:
            return
        if not token.text.startswith("@"):
            # SPARQL-style PREFIX/BASE carry no terminating '.'.
            self.push_back(end)
            return
        raise UnterminatedStatement(
            self.source,
            end.line,
            end.column,
            f"expected '.' after {token.text} directive, found {describe_token(end)}",
        )

    def expect_directive_iri(self, directive: Token) -> str:
        """Read the IRI of a directive and resolve it against the base."""
        token = self.next_token()
        if token.kind is not TokenKind.IRI:
            raise UndeclaredDirective(
                self.source,
                token.line,
                token.column,
                f"expected IRI in {directive.text} directive, found {describe_token(token)}",
            )
        return self.resolve_reference(token)

    def parse_triples_statement(self) -> None:
        """Parse one statement up to and including its ``.``."""
        token = self.next_token()
        if token.kind is TokenKind.BRACKET_OPEN:
            subject = self.parse_blank_node_property_list()
            token = self.next_token()
            if token.kind is TokenKind.DOT:
                return
            if token.kind is TokenKind.EOF:
                raise UnterminatedStatement(
                    self.source,
                    token.line,
                    token.column,
                    f"expected '.' to end statement, found {describe_token(token)}",
                )
            self.push_back(token)
        else:
            subject = self.parse_subject(token)
        self.parse_predicate_object_list(subject, terminator=TokenKind.DOT)

        token = self.next_token()
        if token.kind is not TokenKind.DOT:
            raise UnterminatedStatement(
                self.source,
                token.line,
                token.column,
                f"expected '.' to end statement, found {describe_token(token)}",
            )

    def parse_predicate_object_list(self, subject: Subject, terminator: TokenKind) -> None:
        """Parse ``p o (, o)* (; p o (, o)*)*`` for one subject."""
        predicate = self.parse_predicate(self.next_token())
        self.parse_object_list(subject, predicate)
        while True:
            token = self.next_token()
            if token.kind is not TokenKind.SEMICOLON:
                self.push_back(token)
                return
            token = self.next_token()
            while token.kind is TokenKind.SEMICOLON:
                token = self.next_token()
            if token.kind is terminator:
                self.push_back(token)
                return
            predicate = self.parse_predicate(token)
            self.parse_object_list(subject, predicate)

    def parse_object_list(self, subject: Subject, predicate: IRI) -> None:
        """Parse ``o (, o)*`` and emit one triple per object."""
        while True:
            obj = self.parse_object(self.next_token())
            self.emit(subject, predicate, obj)
            token = self.next_token()
            if token.kind is not TokenKind.COMMA:
                self.push_back(token)
                return

    def parse_subject(self, token: Token) -> Subject:
        """Turn a token into the subject of a statement."""
        if token.kind is TokenKind.IRI:
            return IRI(self.resolve_reference(token))
        if token.kind is TokenKind.BLANK_NODE:
            return self.blank_node_for_label(token.text)
        if token.kind is TokenKind.LIST_OPEN:
            return self.parse_collection()
        if token.kind is TokenKind.BAREWORD:
            if ":" in token.text:
                return IRI(self.expand(token.text))
            self.check_bareword(token)
        raise UnexpectedToken(self.source, "subject", token)

    def parse_predicate(self, token: Token) -> IRI:
        """Turn a token into a predicate IRI, mapping ``a`` to ``rdf:type``."""
        if token.kind is TokenKind.IRI:
            return IRI(self.resolve_reference(token))
        if token.kind is TokenKind.BAREWORD:
            if ":" in token.text:
                return IRI(self.expand(token.text))
            if token.text == "a":
                return IRI(RDF_TYPE_IRI)
            self.check_bareword(token)
        raise UnexpectedToken(self.source, "predicate", token)

    def parse_object(self, token: Token) -> Node:
        """Turn a token into an object term, expanding nested structures."""
        kind = token.kind
        if kind is TokenKind.IRI:
            return IRI(self.resolve_reference(token))
        if kind is TokenKind.BLANK_NODE:
            return self.blank_node_for_label(token.text)
        if kind is TokenKind.STRING:
            return self.make_literal(token)
        if kind is TokenKind.NUMBER:
            return Literal(token.text, datatype=numeric_datatype(token.text))
        if kind is TokenKind.LIST_OPEN:
            return self.parse_collection()
        if kind is TokenKind.BRACKET_OPEN:
            return self.parse_blank_node_property_list()
        if kind is TokenKind.BAREWORD:
            if ":" in token.text:
                return IRI(self.expand(token.text))
            if token.text in ("true", "false"):
                return Literal(token.text, datatype=XSD_BOOLEAN_IRI)
            self.check_bareword(token)
        raise UnexpectedToken(self.source, "object", token)

    def check_bareword(self, token: Token) -> None:
        """Reject barewords that are neither prefixed names nor keywords."""
        if token.text not in KEYWORDS:
            raise LexicalError(
                self.source,
                token.line,
                token.column,
                f"unrecognized bareword {token.text!r}",
            )

    def make_literal(self, token: Token) -> Literal:
        """Build a literal from a STRING token and its suffix."""
        if token.lang is not None:
            return Literal(token.text, lang=token.lang)
        if token.datatype is not None:
            datatype = token.datatype
            if datatype.kind is TokenKind.IRI:
                return Literal(token.text, datatype=self.resolve_reference(datatype))
            return Literal(token.text, datatype=self.expand(datatype.text))
        return Literal(token.text)

    def parse_collection(self) -> IRI | BNode:
        """Parse ``( o* )`` after its opening token and return the list head."""
        items: list[Node] = []
        while True:
            token = self.next_token()
            if token.kind is TokenKind.LIST_CLOSE:
                break
            if token.kind is TokenKind.EOF:
                raise UnexpectedToken(self.source, "')' to close collection", token)
            items.append(self.parse_object(token))
        if not items:
            return IRI(RDF_NIL_IRI)

        head = self.new_bnode()
        current = head
        for idx, item in enumerate(items):
            self.emit(current, IRI(RDF_FIRST_IRI), item)
            if idx == len(items) - 1:
                self.emit(current, IRI(RDF_REST_IRI), IRI(RDF_NIL_IRI))
            else:
                nxt = self.new_bnode()
                self.emit(current, IRI(RDF_REST_IRI), nxt)
                current = nxt
        return head

    def parse_blank_node_property_list(self) -> BNode:
        """Parse ``[ p o ; ... ]`` after its opening token."""
        subject = self.new_bnode()
        token = self.next_token()
        if token.kind is TokenKind.BRACKET_CLOSE:
            return subject
        self.push_back(token)
        self.parse_predicate_object_list(subject, terminator=TokenKind.BRACKET_CLOSE)
        token = self.next_token()
        if token.kind is not TokenKind.BRACKET_CLOSE:
            raise UnexpectedToken(
                self.source, "']' to close blank node property list", token
            )
        return subject

    def expand(self, name: str) -> str:
        """Expand a prefixed name.

        ``:local`` uses the empty prefix when declared and the base IRI
        otherwise. Unregistered prefixes pass through unchanged.
        """
        prefix, _, local = name.partition(":")
        namespace = self.prefixes.get(prefix)
        if namespace is not None:
            return namespace + local
        if prefix == "":
            return (self.base_iri or "") + local
        return name

    def resolve_reference(self, token: Token) -> str:
        """Resolve an ``<...>`` reference against the current base IRI."""
        ref = token.text
        try:
            if self.base_iri is None or urlsplit(ref).scheme:
                return ref
            return resolve_iri(self.base_iri, ref)
        except ValueError as exc:
            raise LexicalError(
                self.source, token.line, token.column, f"malformed IRI <{ref}>: {exc}"
            ) from exc


def parse_turtle(
    text: str, source: str = "<string>", base_iri: str | None = None
) -> list[Triple]:
    """Parse Turtle text and return a list of triples."""
    parser = TurtleParser(text=text, source=source, base_iri=base_iri)
    return parser.parse()


def encode_iri_ref(value: str) -> str:
    """Render an IRI as ``<...>`` with unsafe characters escaped."""
    out: list[str] = ["<"]
    for ch in value:
        cp = ord(ch)
        if ch in '<>"{}|^`\\' or cp <= 0x20:
            if cp <= 0xFFFF:
                out.append(f"\\u{cp:04X}")
            else:
                out.append(f"\\U{cp:08X}")
        else:
            out.append(ch)
    out.append(">")
    return "".join(out)


def escape_string_value(value: str) -> str:
    """Escape a literal value for a double-quoted N-Triples string."""
    out: list[str] = []
    for ch in value:
        cp = ord(ch)
        if ch == "\\":
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif cp < 0x20 or cp == 0x7F:
            out.append(f"\\u{cp:04X}")
        else:
            out.append(ch)
    return "".join(out)


def format_term(term: Node) -> str:
    """Render a term in its canonical N-Triples form."""
    if isinstance(term, IRI):
        return encode_iri_ref(term.value)
    if isinstance(term, BNode):
        return f"_:{term.label}"
    if isinstance(term, Literal):
        base = f'"{escape_string_value(term.value)}"'
        if term.lang is not None:
            return f"{base}@{term.lang}"
        if term.datatype == XSD_STRING_IRI:
            return base
        return f"{base}^^{encode_iri_ref(term.datatype)}"
    raise TypeError(f"unsupported term type: {type(term)!r}")


def format_triple(triple: Triple) -> str:
    """Render one triple as an N-Triples line without the newline."""
    subject, predicate, obj = triple
    return f"{format_term(subject)} {format_term(predicate)} {format_term(obj)} ."


def serialize_ntriples(triples: Iterable[Triple]) -> str:
    """Render triples one per line in N-Triples form."""
    lines = [format_triple(triple) for triple in triples]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


class TermInterner:
    """Caller-owned cache that deduplicates terms by canonical string.

    With ``max_size=None`` every term is kept; otherwise the least recently
    used entries are evicted once the cache grows past ``max_size``. Not
    thread-safe.
    """

    def __init__(self, max_size: int | None = None):
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be a positive integer or None")
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self._terms: OrderedDict[str, Node] = OrderedDict()

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        if not isinstance(term, (IRI, BNode, Literal)):
            return False
        return format_term(term) in self._terms

    def canonicalize(self, term: Node) -> Node:
        """Return the previously seen term equal to ``term``, or register it."""
        key = format_term(term)
        existing = self._terms.get(key)
        if existing is not None:
            self.hits += 1
            self._terms.move_to_end(key)
            return existing
        self.misses += 1
        self._terms[key] = term
        if self.max_size is not None and len(self._terms) > self.max_size:
            evicted, _ = self._terms.popitem(last=False)
            logger.debug("evicted interned term %s", evicted)
        return term

    def canonicalize_triple(self, triple: Triple) -> Triple:
        """Canonicalize every term of one triple."""
        subject, predicate, obj = triple
        return Triple(
            self.canonicalize(subject),
            self.canonicalize(predicate),
            self.canonicalize(obj),
        )

    def canonicalize_triples(self, triples: Iterable[Triple]) -> list[Triple]:
        """Canonicalize a sequence of triples in order."""
        return [self.canonicalize_triple(triple) for triple in triples]

    def clear(self) -> None:
        """Forget every interned term and reset the counters."""
        self._terms.clear()
        self.hits = 0
        self.misses = 0


def compute_graph_stats(triples: Sequence[Triple]) -> dict[str, int]:
    """Compute graph-level counts for parsed triples."""
    iri_values: set[str] = set()
    bnode_labels: set[str] = set()
    literal_values: set[Literal] = set()
    subject_values: set[Subject] = set()
    predicate_values: set[IRI] = set()
    object_values: set[Node] = set()

    for subject, predicate, obj in triples:
        subject_values.add(subject)
        predicate_values.add(predicate)
        object_values.add(obj)
        for node in (subject, predicate, obj):
            if isinstance(node, IRI):
                iri_values.add(node.value)
            elif isinstance(node, BNode):
                bnode_labels.add(node.label)
            else:
                literal_values.add(node)
                if node.datatype is not None:
                    iri_values.add(node.datatype)

    return {
        "triples": len(triples),
        "subjects_unique": len(subject_values),
        "predicates_unique": len(predicate_values),
        "objects_unique": len(object_values),
        "iris_unique": len(iri_values),
        "blank_nodes_unique": len(bnode_labels),
        "literals_unique": len(literal_values),
    }


def read_input(path: str) -> str:
    """Read UTF-8 input text from a file or stdin."""
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def format_token(token: Token) -> str:
    """Render a token as one line of ``--tokens`` output."""
    line = f"{token.line}:{token.column} {token.kind.name} {token.text!r}"
    if token.lang is not None:
        line += f" @{token.lang}"
    if token.datatype is not None:
        line += f" ^^{token.datatype.text}"
    if token.message is not None:
        line += f" ({token.message})"
    return line


def emit_stats(stats: dict[str, int]) -> None:
    """Print graph statistics to stderr."""
    print("stats:", file=sys.stderr)
    for key, value in stats.items():
        print(f"{key}: {value}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser for ``ttlparse``."""
    parser = argparse.ArgumentParser(
        prog="ttlparse",
        description="Tokenize and parse a Turtle document into N-Triples lines.",
    )
    parser.add_argument("input", help="Input file path, or '-' for stdin.")
    parser.add_argument(
        "--base",
        default=None,
        help="Initial base IRI used before the first @base directive.",
    )
    parser.add_argument(
        "--tokens",
        action="store_true",
        help="Print every token before parsing.",
    )
    parser.add_argument(
        "--no-triples",
        dest="triples",
        action="store_false",
        help="Do not print the parsed triples.",
    )
    parser.add_argument(
        "--intern",
        action="store_true",
        help="Deduplicate parsed terms and report interning hits on stderr.",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print graph statistics to stderr.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ``ttlparse`` command-line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        text = read_input(args.input)
        source_name = args.input if args.input != "-" else "<stdin>"

        if args.tokens:
            for token in tokenize(text, source=source_name):
                print(format_token(token))

        triples = parse_turtle(text, source=source_name, base_iri=args.base)

        if args.intern:
            interner = TermInterner()
            triples = interner.canonicalize_triples(triples)
            print(
                f"interned: {len(interner)} terms, {interner.hits} hits",
                file=sys.stderr,
            )
        if args.triples:
            sys.stdout.write(serialize_ntriples(triples))
        if args.stats:
            emit_stats(compute_graph_stats(triples))
        return 0
    except (ParseError, OSError, ValueError) as exc:
        parser.exit(status=1, message=f"Error: {exc}\n")


if __name__ == "__main__":
    raise SystemExit(main())

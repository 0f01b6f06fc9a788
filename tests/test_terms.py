"""Tests for term values, rendering and graph statistics."""

import pytest

from ttlparse import (
    IRI,
    XSD_INTEGER_IRI,
    XSD_STRING_IRI,
    BNode,
    Literal,
    Triple,
    compute_graph_stats,
    format_term,
    format_triple,
    parse_turtle,
    serialize_ntriples,
)


class TestLiteral:
    def test_defaults_to_string_datatype(self):
        literal = Literal("x")
        assert literal.datatype == XSD_STRING_IRI
        assert literal.lang is None

    def test_default_equals_explicit_string_datatype(self):
        assert Literal("x") == Literal("x", datatype=XSD_STRING_IRI)
        assert hash(Literal("x")) == hash(Literal("x", datatype=XSD_STRING_IRI))

    def test_language_literal_keeps_no_datatype(self):
        assert Literal("x", lang="en").datatype is None

    def test_language_tag_case(self):
        assert Literal("x", lang="EN").lang == "EN"
        parsed = parse_turtle('<http://e/s> <http://e/p> "Chat"@FR-ca .')[0].object
        assert parsed == Literal("Chat", lang="fr-ca")

    def test_datatype_and_language_are_exclusive(self):
        with pytest.raises(ValueError):
            Literal("x", datatype=XSD_STRING_IRI, lang="en")

    def test_terms_are_immutable(self):
        with pytest.raises(AttributeError):
            IRI("http://example.org/").value = "other"


class TestRendering:
    @pytest.mark.parametrize(
        ("term", "expected"),
        [
            (IRI("http://example.org/a"), "<http://example.org/a>"),
            (BNode("b0"), "_:b0"),
            (Literal("hi"), '"hi"'),
            (Literal("hi", lang="en"), '"hi"@en'),
            (
                Literal("1", datatype=XSD_INTEGER_IRI),
                '"1"^^<http://www.w3.org/2001/XMLSchema#integer>',
            ),
            (Literal('say "hi"\n\tnow\\'), '"say \\"hi\\"\\n\\tnow\\\\"'),
            (Literal("\x01"), '"\\u0001"'),
            (IRI("http://example.org/a b"), "<http://example.org/a\\u0020b>"),
        ],
    )
    def test_canonical_form(self, term, expected):
        assert format_term(term) == expected
        assert str(term) == expected

    def test_unsupported_term(self):
        with pytest.raises(TypeError):
            format_term("not a term")

    def test_format_triple(self):
        triple = Triple(IRI("http://e/s"), IRI("http://e/p"), Literal("o"))
        assert format_triple(triple) == '<http://e/s> <http://e/p> "o" .'

    def test_serialize_empty(self):
        assert serialize_ntriples([]) == ""

    def test_serialize_ends_with_newline(self):
        triples = parse_turtle("<http://e/s> <http://e/p> 1, 2 .")
        text = serialize_ntriples(triples)
        assert text.endswith(" .\n")
        assert len(text.splitlines()) == 2

    def test_rendered_output_parses_back(self):
        source = (
            "@prefix ex: <http://example.org/> .\n"
            'ex:s ex:p "multi\\nline", "quote \\" here"@en, 3.5, _:b .\n'
        )
        triples = parse_turtle(source)
        assert parse_turtle(serialize_ntriples(triples)) == triples


class TestTriple:
    def test_unpacks_like_a_tuple(self):
        triple = Triple(IRI("http://e/s"), IRI("http://e/p"), BNode("x"))
        subject, predicate, obj = triple
        assert subject == triple.subject
        assert predicate == triple.predicate
        assert obj == triple.object


class TestGraphStats:
    def test_counts(self):
        triples = parse_turtle(
            "@prefix ex: <http://example.org/> .\n"
            'ex:s ex:p "a", "b" ; ex:q ex:s .\n'
            "_:n ex:p (1) .\n"
        )
        stats = compute_graph_stats(triples)
        assert stats == {
            "triples": 6,
            "subjects_unique": 3,
            "predicates_unique": 4,
            "objects_unique": 6,
            "iris_unique": 8,
            "blank_nodes_unique": 2,
            "literals_unique": 3,
        }

    def test_empty(self):
        assert compute_graph_stats([])["triples"] == 0

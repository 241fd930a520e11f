"""Parser registry."""

from .base import BaseParser
from .trectext import TrecTextParser, TrecWebParser
from .warc import ClueWeb09Parser, ClueWeb12Parser

ALL_PARSERS = {
    "trectext": TrecTextParser,
    "trecweb": TrecWebParser,
    "clueweb09": ClueWeb09Parser,
    "clueweb12": ClueWeb12Parser,
}


def get_parser(name: str, store_term_vectors: bool = False, positional: bool = True) -> BaseParser:
    try:
        parser_cls = ALL_PARSERS[name]
    except KeyError:
        raise ValueError(f"Unknown format {name!r}, expected one of {', '.join(ALL_PARSERS)}") from None
    return parser_cls(store_term_vectors=store_term_vectors, positional=positional)

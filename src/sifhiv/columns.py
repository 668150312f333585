"""
Column label normalization.

Spreadsheet exports of the admissions sheet never agree on their headers:
accents come and go, words are separated by spaces or periods, and a few
historical misspellings keep reappearing. Every label is reduced to an
upper-case identifier before any column is referenced by name.
"""

import re
import unicodedata
import typing

# Literal substring corrections, applied in this order after upper-casing and
# underscore substitution. Later entries may target text produced by earlier ones.
COLUMN_REPLACEMENTS: list[tuple[str, str]] = [
    ("DIAGINOSTICO", "DIAGNOSTICO"),
    ("DIAGNÓSTICO", "DIAGNOSTICO"),
    ("DIAGNOSTICOS", "DIAGNOSTICO"),
    ("HIPÓTESE", "HIPOTESE"),
    ("INTERNAÇÃO", "INTERNACAO"),
    ("INTERNAÇAO", "INTERNACAO"),
    ("INTERNACÃO", "INTERNACAO"),
    ("DATA_DE_INTERNACAO", "DATA_INTERNACAO"),
    ("ADMISSÃO", "ADMISSAO"),
    ("DATA_DE_ADMISSAO", "DATA_ADMISSAO"),
    ("DATA_DE_ALTA", "DATA_ALTA"),
    ("SAÍDA", "SAIDA"),
    ("DATA_DE_SAIDA", "DATA_SAIDA"),
    ("TITULAÇÃO", "TITULACAO"),
    ("TITULACÃO", "TITULACAO"),
    ("RAÇA/COR", "RACA_COR"),
    ("RAÇA", "RACA"),
    ("CLÍNICA", "CLINICA"),
    ("IDADE_(ANOS)", "IDADE_ANOS"),
]

_SEPARATORS = re.compile(r"[\s.]+")
_UNSAFE = re.compile(r"[^A-Z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")

EMPTY_LABEL = "UNNAMED"


def _apply_replacements(text: str) -> str:
    # repeat until stable: a correction can leave behind another correctable token
    while True:
        previous = text
        for old, new in COLUMN_REPLACEMENTS:
            text = text.replace(old, new)
        if text == previous:
            return text


def _to_identifier(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).upper()
    text = _UNSAFE.sub("_", text)
    return _REPEATED_UNDERSCORES.sub("_", text).strip("_")


def normalize_label(label: typing.Any) -> str:
    """
    Reduce one raw header to its canonical form (without de-duplication).
    """
    text = _SEPARATORS.sub("_", str(label).upper())

    # corrections first, then strip accents and swap leftovers for "_"; folding
    # can expose an unaccented form of a corrected token, so go round until stable
    while True:
        previous = text
        text = _to_identifier(_apply_replacements(text))
        if text == previous:
            return text or EMPTY_LABEL


def normalize_column_names(labels: typing.Iterable[typing.Any]) -> list[str]:
    """
    Normalize a sequence of raw headers, one-to-one and order-preserving.

    The second and later occurrences of a colliding name receive a numeric
    suffix (``_1``, ``_2``, ...). A suffix is never one of the other
    normalized names, so the output is always unique.
    """
    normalized = [normalize_label(label) for label in labels]
    reserved = set(normalized)
    seen: set[str] = set()
    result: list[str] = []

    for name in normalized:
        if name in seen:
            suffix = 1
            while f"{name}_{suffix}" in seen or f"{name}_{suffix}" in reserved:
                suffix += 1
            name = f"{name}_{suffix}"
        seen.add(name)
        result.append(name)

    return result

"""
Cohort selection: admissions with a syphilis diagnosis in any of the
diagnosis columns that the sheet actually has.
"""

import typing
import unicodedata

import pandas as pd

SYPHILIS_TERMS = ("sifilis", "sífilis")


def mentions_syphilis(value: typing.Any) -> bool:
    """
    Case-insensitive substring test for "sifilis"/"sífilis".
    Blank cells never match.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return False
    text = unicodedata.normalize("NFC", str(value)).casefold()
    return any(term in text for term in SYPHILIS_TERMS)


def match_matrix(frame: pd.DataFrame, candidates: typing.Iterable[str]) -> pd.DataFrame:
    """
    One boolean column per *present* candidate column, True where that
    column mentions syphilis. Absent candidates are left out.
    """
    present = [c for c in candidates if c in frame.columns]
    return pd.DataFrame(
        {column: frame[column].map(mentions_syphilis).astype(bool) for column in present},
        index=frame.index,
        columns=present,
    )


def filter_cohort(frame: pd.DataFrame, candidates: typing.Iterable[str]) -> pd.DataFrame:
    """
    Rows where at least one present candidate column mentions syphilis.
    With no candidate column present the cohort is empty.
    """
    matches = match_matrix(frame, candidates)
    if matches.columns.empty:
        return frame.iloc[0:0].copy()
    return frame.loc[matches.any(axis=1)].copy()

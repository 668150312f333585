"""
Schema view over a normalized admissions table.

Built once after column normalization. Column presence is answered here and
nowhere else; accessors hand back an all-absent series for a missing column.
"""

import typing

import pandas as pd

# Logical fields → candidate canonical column names, in order of preference
AGE_COLUMNS = ("IDADE", "IDADE_ANOS")
SEX_COLUMNS = ("SEXO",)
RACE_COLUMNS = ("RACA_COR", "COR", "RACA")
ADMISSION_DATE_COLUMNS = ("DATA_INTERNACAO", "DATA_ADMISSAO", "DT_INTERNACAO")
DISCHARGE_DATE_COLUMNS = ("DATA_ALTA", "DATA_SAIDA", "DT_ALTA")
VDRL_COLUMNS = ("VDRL", "TITULACAO_VDRL", "VDRL_TITULACAO")
OUTCOME_COLUMNS = ("DESFECHO", "TIPO_ALTA", "MOTIVO_ALTA")
WARD_COLUMNS = ("SETOR", "CLINICA", "ENFERMARIA")

# Columns searched for a syphilis diagnosis
DIAGNOSIS_COLUMNS = (
    "DIAGNOSTICO",
    "DIAGNOSTICO_PRINCIPAL",
    "DIAGNOSTICO_SECUNDARIO",
    "CID",
    "COMORBIDADES",
    "HIPOTESE_DIAGNOSTICA",
)

LOGICAL_FIELDS: dict[str, tuple[str, ...]] = {
    "age": AGE_COLUMNS,
    "sex": SEX_COLUMNS,
    "race": RACE_COLUMNS,
    "admission_date": ADMISSION_DATE_COLUMNS,
    "discharge_date": DISCHARGE_DATE_COLUMNS,
    "vdrl": VDRL_COLUMNS,
    "outcome": OUTCOME_COLUMNS,
    "ward": WARD_COLUMNS,
}


class SchemaView:
    def __init__(self, columns: typing.Iterable[str]):
        self._present = set(columns)

    @classmethod
    def of(cls, frame: pd.DataFrame) -> "SchemaView":
        return cls(frame.columns)

    def has(self, column: typing.Optional[str]) -> bool:
        return column is not None and column in self._present

    def present(self, candidates: typing.Iterable[str]) -> list[str]:
        return [c for c in candidates if c in self._present]

    def first_present(self, candidates: typing.Iterable[str]) -> typing.Optional[str]:
        for candidate in candidates:
            if candidate in self._present:
                return candidate
        return None

    def resolve(self, field: str) -> typing.Optional[str]:
        """Column backing a logical field (see LOGICAL_FIELDS), or None."""
        return self.first_present(LOGICAL_FIELDS[field])

    def column(self, frame: pd.DataFrame, column: typing.Optional[str]) -> pd.Series:
        """Raw values of `column`, or an all-absent object series."""
        if not self.has(column):
            return pd.Series([None] * len(frame), index=frame.index, dtype=object)
        return frame[column]

    def text(self, frame: pd.DataFrame, column: typing.Optional[str]) -> pd.Series:
        """
        Stripped string values; blanks and non-values come back as None.
        """
        return self.column(frame, column).map(_clean_text).astype(object)

    def number(self, frame: pd.DataFrame, column: typing.Optional[str]) -> pd.Series:
        """Numeric values, NaN where absent or not numeric."""
        return pd.to_numeric(self.column(frame, column), errors="coerce").astype(float)


def _clean_text(value: typing.Any) -> typing.Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None

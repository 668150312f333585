"""
Descriptive tables for the report.

Every table is built from the derived cohort with null-skipping counts;
percentages fall back to 0.0 when the denominator is zero, so an empty
cohort produces zero-filled tables instead of NaN.
"""

import typing

import pandas as pd

from .derive import (
    ADMISSION_MONTH,
    AGE_BAND,
    AGE_BAND_LABELS,
    STAY_DAYS,
    VDRL_TITER,
)
from .cohort import match_matrix
from .schema import DIAGNOSIS_COLUMNS, SchemaView

MISSING_LABEL = "Não informado"
TOTAL_LABEL = "Total"
COUNT = "n"
PERCENT = "%"
MONTH = "Mês"
ADMISSIONS = "Internações"

SEX_LABELS = {
    "m": "Masculino",
    "masc": "Masculino",
    "masculino": "Masculino",
    "f": "Feminino",
    "fem": "Feminino",
    "feminino": "Feminino",
}
SEX_ORDER = ("Feminino", "Masculino")

Table = tuple[str, pd.DataFrame]


def percentages(counts: pd.Series, total: int) -> pd.Series:
    if not total:
        return pd.Series(0.0, index=counts.index)
    return (counts / total * 100).round(1)


def frequency_table(
    values: pd.Series,
    label: str,
    order: typing.Optional[typing.Sequence[str]] = None,
    missing_label: str = MISSING_LABEL,
) -> pd.DataFrame:
    """
    Counts and percentages per category, absent values under `missing_label`
    (listed last), closed by a Total row. With an `order`, every listed
    category appears even with a zero count.
    """
    filled = values.astype(object).where(values.notna(), missing_label)
    counts = filled.map(str).value_counts()

    keys = list(order) if order is not None else []
    keys += [k for k in counts.index if k not in keys and k != missing_label]
    if missing_label in counts.index:
        keys.append(missing_label)
    counts = counts.reindex(keys, fill_value=0).astype(int)

    total = int(counts.sum())
    table = pd.DataFrame({label: counts.index, COUNT: counts.values, PERCENT: percentages(counts, total).values})
    table.loc[len(table)] = [TOTAL_LABEL, total, 100.0 if total else 0.0]
    return table


def cohort_overview(records: pd.DataFrame, cohort: pd.DataFrame) -> pd.DataFrame:
    total = len(records)
    selected = len(cohort)
    share = round(selected / total * 100, 1) if total else 0.0
    return pd.DataFrame(
        {
            "Indicador": ["Internações no ano", "Internações com sífilis", "% com sífilis"],
            "Valor": [total, selected, share],
        },
        dtype=object,
    )


def age_band_table(cohort: pd.DataFrame) -> pd.DataFrame:
    return frequency_table(cohort[AGE_BAND], "Faixa etária", order=AGE_BAND_LABELS)


def _sexes(cohort: pd.DataFrame, schema: SchemaView) -> pd.Series:
    return schema.text(cohort, schema.resolve("sex")).map(
        lambda s: SEX_LABELS.get(s.casefold(), s) if isinstance(s, str) else None
    )


def sex_table(cohort: pd.DataFrame, schema: SchemaView) -> pd.DataFrame:
    return frequency_table(_sexes(cohort, schema), "Sexo", order=SEX_ORDER)


def category_table(cohort: pd.DataFrame, schema: SchemaView, field: str, label: str) -> pd.DataFrame:
    values = schema.text(cohort, schema.resolve(field)).map(
        lambda s: s.capitalize() if isinstance(s, str) else None
    )
    return frequency_table(values, label)


def age_sex_table(cohort: pd.DataFrame, schema: SchemaView) -> pd.DataFrame:
    """Age band by sex; rows with either value absent are skipped."""
    pairs = pd.DataFrame({"band": cohort[AGE_BAND].astype(object), "sex": _sexes(cohort, schema)}).dropna()
    if pairs.empty:
        return pd.DataFrame(columns=["Faixa etária"])

    table = pd.crosstab(pairs["band"], pairs["sex"])
    table = table.reindex(list(AGE_BAND_LABELS), fill_value=0)
    table[TOTAL_LABEL] = table.sum(axis=1)
    table.index.name = "Faixa etária"
    table.columns.name = None
    return table.reset_index()


def diagnosis_source_table(cohort: pd.DataFrame) -> pd.DataFrame:
    """How many cohort records mention syphilis in each diagnosis column."""
    matches = match_matrix(cohort, DIAGNOSIS_COLUMNS)
    counts = matches.sum().astype(int)
    total = len(cohort)
    return pd.DataFrame(
        {
            "Coluna": list(counts.index),
            COUNT: list(counts.values),
            PERCENT: list(percentages(counts, total).values),
        }
    )


def format_titer(value: typing.Any) -> typing.Optional[str]:
    if value is None or pd.isna(value):
        return None
    return f"1/{int(value)}" if float(value).is_integer() else f"1/{value}"


def titration_table(cohort: pd.DataFrame) -> pd.DataFrame:
    titers = cohort[VDRL_TITER]
    order = [format_titer(v) for v in sorted(titers.dropna().unique())]
    return frequency_table(titers.map(format_titer), "Titulação VDRL", order=order)


def _summary(rows: list[tuple[str, typing.Any]]) -> pd.DataFrame:
    return pd.DataFrame({"Estatística": [r[0] for r in rows], "Valor": [r[1] for r in rows]}, dtype=object)


def stay_summary(cohort: pd.DataFrame) -> pd.DataFrame:
    """
    Length of stay in days. Negative durations are kept in the statistics
    and counted separately.
    """
    stays = cohort[STAY_DAYS].dropna().astype(float)
    if stays.empty:
        stats: list[typing.Any] = [None] * 4
    else:
        stats = [round(stays.mean(), 1), round(stays.median(), 1), int(stays.min()), int(stays.max())]
    return _summary(
        [
            ("Internações com datas válidas", int(len(stays))),
            ("Média (dias)", stats[0]),
            ("Mediana (dias)", stats[1]),
            ("Mínimo (dias)", stats[2]),
            ("Máximo (dias)", stats[3]),
            ("Permanências negativas", int((stays < 0).sum())),
        ]
    )


def titration_summary(cohort: pd.DataFrame) -> pd.DataFrame:
    titers = cohort[VDRL_TITER].dropna()
    if titers.empty:
        median = lowest = highest = None
    else:
        median, lowest, highest = titers.median(), format_titer(titers.min()), format_titer(titers.max())
    return _summary(
        [
            ("Exames com titulação", int(len(titers))),
            ("Mediana do denominador", median),
            ("Menor titulação", lowest),
            ("Maior titulação", highest),
        ]
    )


def monthly_admissions(months: pd.Series, year: typing.Optional[int] = None) -> pd.DataFrame:
    """
    Admissions per month bucket, ordered by month. With a known year, all
    twelve months of that year are listed, zero-filled.
    """
    counts = months.dropna().value_counts()
    index = pd.DatetimeIndex(counts.index)
    if year is not None:
        index = index.union(pd.date_range(f"{year}-01-01", periods=12, freq="MS"))
    counts = counts.reindex(index.sort_values(), fill_value=0).astype(int)
    return pd.DataFrame({MONTH: counts.index, ADMISSIONS: counts.values})


def build_tables(
    records: pd.DataFrame,
    cohort: pd.DataFrame,
    schema: SchemaView,
    monthly: pd.DataFrame,
) -> list[Table]:
    """
    The report's tables, in order. Tables backed by a source column the
    sheet does not have are left out.
    """
    tables: list[Table] = [
        ("Internações por sífilis", cohort_overview(records, cohort)),
        ("Coluna do diagnóstico de sífilis", diagnosis_source_table(cohort)),
    ]
    if schema.resolve("sex") is not None:
        tables.append(("Distribuição por sexo", sex_table(cohort, schema)))
    if schema.resolve("age") is not None:
        tables.append(("Distribuição por faixa etária", age_band_table(cohort)))
        if schema.resolve("sex") is not None:
            tables.append(("Faixa etária por sexo", age_sex_table(cohort, schema)))
    if schema.resolve("race") is not None:
        tables.append(("Distribuição por raça/cor", category_table(cohort, schema, "race", "Raça/cor")))
    if schema.resolve("ward") is not None:
        tables.append(("Setor de internação", category_table(cohort, schema, "ward", "Setor")))
    if schema.resolve("admission_date") is not None and schema.resolve("discharge_date") is not None:
        tables.append(("Tempo de internação", stay_summary(cohort)))
    if schema.resolve("vdrl") is not None:
        tables.append(("Titulação do VDRL", titration_table(cohort)))
        tables.append(("Resumo da titulação do VDRL", titration_summary(cohort)))
    if schema.resolve("outcome") is not None:
        tables.append(("Desfecho da internação", category_table(cohort, schema, "outcome", "Desfecho")))
    if schema.resolve("admission_date") is not None:
        display = monthly.copy()
        display[MONTH] = display[MONTH].dt.strftime("%m/%Y")
        tables.append(("Internações por mês", display))
    return tables

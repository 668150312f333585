import datetime

import pandas as pd
import pytest

from sifhiv.derive import (
    ADMISSION_MONTH,
    AGE_BAND,
    STAY_DAYS,
    VDRL_TITER,
    DefaultDeriver,
)
from sifhiv.cohort import filter_cohort
from sifhiv.outcome import ParseTally
from sifhiv.schema import DIAGNOSIS_COLUMNS, SchemaView


@pytest.mark.parametrize(
    "age, band",
    [
        (0, "0-19"),
        (18.9, "0-19"),
        (19, "20-29"),
        (28, "20-29"),
        (29, "30-39"),
        (68, "60-69"),
        (69, "60-69"),
        (70, "70+"),
        (104, "70+"),
        (-1, None),
        (None, None),
        (float("nan"), None),
        ("abc", None),
    ],
)
def test_age_band_right_open_edges(age, band):
    assert DefaultDeriver.age_band(age) == band


def test_parse_date_day_month_year():
    parse = DefaultDeriver.parse_date
    assert parse("01-03-2022").value == pd.Timestamp(2022, 3, 1)
    assert parse("01/03/2022").value == pd.Timestamp(2022, 3, 1)
    assert parse("01/03/2022 14:30").value == pd.Timestamp(2022, 3, 1)
    assert parse("2022-03-01").value == pd.Timestamp(2022, 3, 1)
    assert parse(datetime.datetime(2022, 3, 1, 8, 15)).value == pd.Timestamp(2022, 3, 1)
    assert parse(44621).value == pd.Timestamp(2022, 3, 1)


@pytest.mark.parametrize("bad", ["data invalida", "31/02/2022", "03/13/2022", "1/3"])
def test_parse_date_failures_are_absent(bad):
    outcome = DefaultDeriver.parse_date(bad)
    assert outcome.value is None
    assert outcome.reason == "unrecognized date"


def test_parse_date_blank_is_missing():
    assert DefaultDeriver.parse_date("  ").reason == "missing"
    assert DefaultDeriver.parse_date(pd.NaT).reason == "missing"


@pytest.mark.parametrize(
    "value, expected",
    [("1/256", 256), ("1 / 32", 32), ("256", 256), (64, 64), ("reagente", None), ("1/", None), ("nan", None), ("inf", None), ("1/inf", None), ("1/1e400", None)],
)
def test_parse_titration(value, expected):
    assert DefaultDeriver.parse_titration(value).value == expected


def test_parse_number():
    assert DefaultDeriver.parse_number("34,5").value == 34.5
    assert DefaultDeriver.parse_number(19).value == 19
    assert DefaultDeriver.parse_number("desconhecido").reason == "not numeric"
    assert DefaultDeriver.parse_number(True).reason == "not numeric"
    assert DefaultDeriver.parse_number("-infinity").reason == "not numeric"
    assert DefaultDeriver.parse_number(float("inf")).reason == "not numeric"
    assert DefaultDeriver.parse_titration(float("inf")).reason == "not a titration"


def test_stay_days_is_not_clamped():
    admission = DefaultDeriver.parse_date("01-03-2022").value
    discharge = DefaultDeriver.parse_date("05-03-2022").value
    assert DefaultDeriver.stay_days(admission, discharge) == 4
    assert DefaultDeriver.stay_days(discharge, admission) == -4
    assert DefaultDeriver.stay_days(None, discharge) is None


def test_month_bucket():
    assert DefaultDeriver.month_bucket(pd.Timestamp(2022, 3, 17)) == pd.Timestamp(2022, 3, 1)
    assert DefaultDeriver.month_bucket(None) is None


def test_derive_adds_every_field(normalized_admissions, schema):
    cohort = filter_cohort(normalized_admissions, DIAGNOSIS_COLUMNS)
    tally = ParseTally()
    derived = DefaultDeriver().derive(cohort, schema, tally)

    assert derived[AGE_BAND].astype(object).where(derived[AGE_BAND].notna(), None).tolist() == [
        "20-29",
        "40-49",
        "70+",
        None,
    ]
    assert derived[STAY_DAYS].tolist() == [4, -5, pd.NA, 2]
    assert derived[VDRL_TITER].tolist()[:2] == [256.0, 64.0]
    assert pd.isna(derived[VDRL_TITER].iloc[2])
    assert derived[VDRL_TITER].iloc[3] == 16.0
    assert derived[ADMISSION_MONTH].tolist()[:2] == [pd.Timestamp(2022, 3, 1)] * 2
    assert pd.isna(derived[ADMISSION_MONTH].iloc[2])

    # one failure per field, each independent of the others
    assert tally.failures("age") == 1
    assert tally.failures("admission_date") == 1
    assert tally.failures("discharge_date") == 0
    assert tally.failures("vdrl") == 1


def test_derive_without_source_columns():
    df = pd.DataFrame({"DIAGNOSTICO": ["Sífilis", "sifilis"]})
    tally = ParseTally()
    derived = DefaultDeriver().derive(df, SchemaView.of(df), tally)

    assert derived[AGE_BAND].isna().all()
    assert derived[STAY_DAYS].isna().all()
    assert derived[ADMISSION_MONTH].isna().all()
    assert tally.fields() == []


def test_derive_empty_cohort(normalized_admissions, schema):
    empty = normalized_admissions.iloc[0:0]
    derived = DefaultDeriver().derive(empty, schema, ParseTally())
    assert derived.empty
    assert STAY_DAYS in derived.columns

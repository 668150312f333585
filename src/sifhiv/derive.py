import abc
import datetime
import logging
import math
import numbers
import re
import typing

import pandas as pd

from .outcome import ParseOutcome, ParseTally
from .schema import SchemaView

logger = logging.getLogger(__name__)

# Right-open intervals [0,19), [19,29), ... [69,inf); labels kept as published
AGE_BAND_EDGES = (0, 19, 29, 39, 49, 59, 69)
AGE_BAND_LABELS = ("0-19", "20-29", "30-39", "40-49", "50-59", "60-69", "70+")

# Day-month-year first; ISO only because Excel text exports of date cells use it
DATE_FORMATS = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d-%m-%Y %H:%M:%S",
    "%d/%m/%y",
    "%d-%m-%y",
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
)

# Excel's serial day zero (accounts for the 1900 leap-year bug)
EXCEL_EPOCH = pd.Timestamp("1899-12-30")
_MAX_EXCEL_SERIAL = 109573  # 2199-12-31

_TITER_PATTERN = re.compile(r"^\s*1\s*/\s*(?P<denominator>.+?)\s*$")

# Names of the columns added to the cohort
AGE_YEARS = "age_years"
AGE_BAND = "age_band"
ADMISSION_DATE = "admission_date"
DISCHARGE_DATE = "discharge_date"
STAY_DAYS = "stay_days"
VDRL_TITER = "vdrl_titer"
ADMISSION_MONTH = "admission_month"


def _is_blank(value: typing.Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return bool(pd.isna(value))


def _finite(number: float, reason: str) -> ParseOutcome:
    # "nan", "inf" and overflowing literals are text, not measurements
    if not math.isfinite(number):
        return ParseOutcome.failure(reason)
    return ParseOutcome.success(number)


def _parse_float(text: str, reason: str) -> ParseOutcome:
    try:
        number = float(text.strip().replace(",", "."))
    except ValueError:
        return ParseOutcome.failure(reason)
    return _finite(number, reason)


class FieldDeriver(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def derive(self, cohort: pd.DataFrame, schema: SchemaView, tally: ParseTally) -> pd.DataFrame:
        # return a copy of `cohort` with the analysis columns added
        raise NotImplementedError


class DefaultDeriver(FieldDeriver):
    """
    Adds age, age band, admission/discharge dates, length of stay, VDRL
    titration and admission month to each cohort record. Each field is
    computed on its own: an unreadable date leaves the titration alone.
    """

    @staticmethod
    def parse_number(value: typing.Any) -> ParseOutcome:
        """
        Numbers pass through; strings are stripped and may use a decimal comma.
        """
        if _is_blank(value):
            return ParseOutcome.failure("missing")
        if isinstance(value, bool):
            return ParseOutcome.failure("not numeric")
        if isinstance(value, numbers.Real):
            return _finite(float(value), "not numeric")
        return _parse_float(str(value), "not numeric")

    @staticmethod
    def parse_date(value: typing.Any) -> ParseOutcome:
        """
        Dates in day-month-year order. Cells Excel already typed as dates
        (datetime) and Excel serial day numbers are accepted as well.
        The result is a midnight pandas Timestamp.
        """
        if _is_blank(value):
            return ParseOutcome.failure("missing")
        if isinstance(value, (pd.Timestamp, datetime.datetime, datetime.date)):
            timestamp = pd.Timestamp(value)
            if not pd.Timestamp.min <= timestamp <= pd.Timestamp.max:
                return ParseOutcome.failure("date out of range")
            return ParseOutcome.success(timestamp.normalize())
        if isinstance(value, bool):
            return ParseOutcome.failure("unrecognized date")
        if isinstance(value, numbers.Real):
            if not 1 <= value <= _MAX_EXCEL_SERIAL:
                return ParseOutcome.failure("serial date out of range")
            return ParseOutcome.success((EXCEL_EPOCH + pd.Timedelta(days=float(value))).normalize())

        text = str(value).strip()
        for date_format in DATE_FORMATS:
            try:
                return ParseOutcome.success(pd.to_datetime(text, format=date_format).normalize())
            except (ValueError, TypeError):
                continue
        return ParseOutcome.failure("unrecognized date")

    @staticmethod
    def parse_titration(value: typing.Any) -> ParseOutcome:
        """
        "1/256" → 256.0; a bare number ("256") is taken as the denominator itself.
        Anything else ("reagente", "1/abc") is absent.
        """
        if _is_blank(value):
            return ParseOutcome.failure("missing")
        if isinstance(value, bool):
            return ParseOutcome.failure("not a titration")
        if isinstance(value, numbers.Real):
            return _finite(float(value), "not a titration")

        text = str(value).strip()
        m = _TITER_PATTERN.match(text)
        if m:
            text = m.group("denominator")
        return _parse_float(text, "not a titration")

    @staticmethod
    def age_band(age: typing.Any) -> typing.Optional[str]:
        """
        Band label for a numeric age, None for missing or negative ages.
        Note the right-open edges: 19 falls in "20-29", 69 in "60-69".
        """
        if _is_blank(age):
            return None
        try:
            age = float(age)
        except (TypeError, ValueError):
            return None
        if age < AGE_BAND_EDGES[0] or age == float("inf"):
            return None
        label = AGE_BAND_LABELS[0]
        for edge, band in zip(AGE_BAND_EDGES, AGE_BAND_LABELS):
            if age >= edge:
                label = band
        return label

    @staticmethod
    def stay_days(admission: typing.Any, discharge: typing.Any) -> typing.Optional[int]:
        # negative stays are kept: they flag data-entry problems
        if _is_blank(admission) or _is_blank(discharge):
            return None
        return (pd.Timestamp(discharge) - pd.Timestamp(admission)).days

    @staticmethod
    def month_bucket(admission: typing.Any) -> typing.Optional[pd.Timestamp]:
        if _is_blank(admission):
            return None
        admission = pd.Timestamp(admission)
        return pd.Timestamp(year=admission.year, month=admission.month, day=1)

    def _parse_field(
        self,
        cohort: pd.DataFrame,
        schema: SchemaView,
        field: str,
        parser: typing.Callable[[typing.Any], ParseOutcome],
        tally: ParseTally,
    ) -> list:
        column = schema.resolve(field)
        if column is None:
            logger.debug(f"No column for {field!r}; leaving it absent")
            return [None] * len(cohort)
        return [tally.record(field, parser(value)).value for value in cohort[column]]

    def derive(self, cohort: pd.DataFrame, schema: SchemaView, tally: ParseTally) -> pd.DataFrame:
        working = cohort.copy()
        index = working.index

        ages = self._parse_field(working, schema, "age", self.parse_number, tally)
        working[AGE_YEARS] = pd.Series(ages, index=index, dtype=float)
        working[AGE_BAND] = pd.Categorical(
            [self.age_band(age) for age in ages],
            categories=list(AGE_BAND_LABELS),
            ordered=True,
        )

        admissions = self._parse_field(working, schema, "admission_date", self.parse_date, tally)
        discharges = self._parse_field(working, schema, "discharge_date", self.parse_date, tally)
        working[ADMISSION_DATE] = pd.Series(admissions, index=index, dtype="datetime64[ns]")
        working[DISCHARGE_DATE] = pd.Series(discharges, index=index, dtype="datetime64[ns]")
        working[STAY_DAYS] = pd.array(
            [self.stay_days(a, d) for a, d in zip(admissions, discharges)], dtype="Int64"
        )

        titers = self._parse_field(working, schema, "vdrl", self.parse_titration, tally)
        working[VDRL_TITER] = pd.Series(titers, index=index, dtype=float)

        working[ADMISSION_MONTH] = pd.Series(
            [self.month_bucket(a) for a in admissions], index=index, dtype="datetime64[ns]"
        )

        return working

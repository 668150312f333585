import logging
import typing

import pandas as pd

from .columns import normalize_column_names

logger = logging.getLogger(__name__)


class ReportInputError(RuntimeError):
    """The workbook (or the requested sheet) cannot be read."""


def list_sheets(workbook_path: str) -> list[str]:
    try:
        with pd.ExcelFile(workbook_path, engine="openpyxl") as excel:
            return list(excel.sheet_names)
    except Exception as e:
        raise ReportInputError(f"Cannot open workbook {workbook_path!r}: {e}") from e


def resolve_sheet_name(
    sheet_names: typing.Sequence[str],
    year: typing.Optional[str] = None,
    explicit: typing.Optional[str] = None,
) -> str:
    """
    Pick the sheet to report on:
      - an explicitly requested sheet, which must exist
      - else the sheet named after the report year
      - else the only sheet of a single-sheet workbook
    """
    if explicit is not None:
        if explicit not in sheet_names:
            raise ReportInputError(f"Sheet {explicit!r} not found; available: {list(sheet_names)}")
        return explicit

    if year is not None:
        for sheet_name in sheet_names:
            if str(sheet_name).strip() == str(year).strip():
                return sheet_name

    if len(sheet_names) == 1:
        logger.warning(f"No sheet named {year!r}; using the only sheet {sheet_names[0]!r}")
        return sheet_names[0]

    raise ReportInputError(f"No sheet named {year!r}; available: {list(sheet_names)}")


def load_admissions_sheet(workbook_path: str, sheet_name: str) -> pd.DataFrame:
    """
    Read one worksheet into a DataFrame:
      - first row = header, no index column
      - drop rows that are entirely blank
      - normalize every header to its canonical upper-case identifier
    The raw headers are kept in ``df.attrs["raw_columns"]``.
    """
    try:
        with pd.ExcelFile(workbook_path, engine="openpyxl") as excel:
            if sheet_name not in excel.sheet_names:
                raise ReportInputError(
                    f"Sheet {sheet_name!r} not found in {workbook_path!r}; available: {excel.sheet_names}"
                )
            df = pd.read_excel(excel, sheet_name=sheet_name, header=0)
    except ReportInputError:
        raise
    except Exception as e:
        raise ReportInputError(f"Cannot read sheet {sheet_name!r} from {workbook_path!r}: {e}") from e

    df = df.dropna(how="all").reset_index(drop=True)

    raw_columns = [str(c) for c in df.columns]
    df.columns = normalize_column_names(raw_columns)
    df.attrs["raw_columns"] = raw_columns
    logger.debug(f"Loaded {len(df)} rows x {len(df.columns)} columns from sheet {sheet_name!r}")

    return df

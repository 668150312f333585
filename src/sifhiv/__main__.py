"""
Command-line interface for the syphilis/HIV admissions report.
Loads the year's sheet, normalizes its headers, selects the syphilis cohort,
derives the analysis fields and renders tables plus the monthly chart.
"""

import click
import json
import logging
import pathlib
import sys
import typing

from collections import namedtuple
from stairval.notepad import Notepad, create_notepad

import pandas as pd

from .chart import plot_monthly_admissions
from .cohort import filter_cohort
from .derive import ADMISSION_MONTH, DefaultDeriver
from .loader import ReportInputError, list_sheets, load_admissions_sheet, resolve_sheet_name
from .outcome import ParseTally
from .report import render_report, write_report
from .schema import DIAGNOSIS_COLUMNS, LOGICAL_FIELDS, SchemaView
from .tables import build_tables, monthly_admissions

AuditEntry = namedtuple("AuditEntry", ["step", "sheet", "message", "level"])

CHART_FILENAME = "admissions_by_month.png"

logger = logging.getLogger(__name__)


@click.group()
def main():
    """sifhiv: descriptive report of syphilis admissions in HIV patients."""
    pass


def _configure_logging(verbose: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _year_as_int(year: typing.Optional[str]) -> typing.Optional[int]:
    try:
        return int(str(year).strip())
    except (TypeError, ValueError):
        return None


def _load_sheet(excel_file: str, year: str, sheet: typing.Optional[str]) -> tuple[str, pd.DataFrame]:
    # the only fatal path: the workbook or its sheet cannot be read
    try:
        sheet_name = resolve_sheet_name(list_sheets(excel_file), year=year, explicit=sheet)
        return sheet_name, load_admissions_sheet(excel_file, sheet_name)
    except ReportInputError as e:
        logger.error(str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _report_issues(notepad: Notepad) -> None:
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in report data:")
        for err in notepad.errors():
            click.echo(f"- {err.message}")
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in report data:")
        for w in notepad.warnings():
            click.echo(f"- {w.message}")


def _prepare_output_dir(output_dir: str) -> pathlib.Path:
    path = pathlib.Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@main.command(name="build-report")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the admissions workbook",
)
@click.option("-y", "--year", default="2022", show_default=True, help="report year (also the sheet name)")
@click.option("-s", "--sheet", default=None, help="sheet to read instead of the one named after the year")
@click.option(
    "-o",
    "--output-dir",
    default="report",
    show_default=True,
    type=click.Path(file_okay=False),
    help="where report.html and the chart are written",
)
@click.option("--title", default=None, help="document title")
@click.option("--verbose", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def build_report(
    excel_file: str,
    year: str,
    sheet: typing.Optional[str],
    output_dir: str,
    title: typing.Optional[str],
    verbose: bool,
    log_file_path: typing.Optional[str],
):
    """
    Build the report:
      load → normalize headers → select cohort → derive fields → tabulate → chart → render
    """
    _configure_logging(verbose, log_file_path)

    # 1) Load the year's sheet (headers come back normalized)
    sheet_name, records = _load_sheet(excel_file, year, sheet)
    logger.info(f"Read {len(records)} records from sheet {sheet_name!r} of {excel_file!r}")
    schema = SchemaView.of(records)
    notepad = create_notepad("report")

    # 2) Cohort
    diagnosis_columns = schema.present(DIAGNOSIS_COLUMNS)
    if not diagnosis_columns:
        notepad.add_warning(f"No diagnosis column found (looked for {list(DIAGNOSIS_COLUMNS)}); the cohort is empty")
    cohort = filter_cohort(records, diagnosis_columns)
    if cohort.empty:
        notepad.add_warning("No admission mentions syphilis; all tables are empty")

    # 3) Derived fields, with parse failures tallied rather than raised
    tally = ParseTally()
    cohort = DefaultDeriver().derive(cohort, schema, tally)
    tally.report(notepad)

    # 4) Tables and chart
    out_dir = _prepare_output_dir(output_dir)
    monthly = monthly_admissions(cohort[ADMISSION_MONTH], _year_as_int(year))
    chart_path = plot_monthly_admissions(monthly, out_dir / CHART_FILENAME)
    tables = build_tables(records, cohort, schema, monthly)

    # 5) Render
    notes = [w.message for w in notepad.warnings()]
    document = render_report(
        title or f"Sífilis em pacientes vivendo com HIV: internações de {year}",
        tables,
        chart_path,
        notes,
    )
    report_path = write_report(out_dir, document)

    _report_issues(notepad)
    click.echo(f"Cohort: {len(cohort)} of {len(records)} records")
    click.echo(f"Wrote report to {report_path}")


def audit_columns(records: pd.DataFrame, sheet: str) -> list[AuditEntry]:
    """
    Lightweight audit of a normalized sheet:
      - header count and renames
      - which column backs each logical field
      - diagnosis columns available for the cohort
    """
    schema = SchemaView.of(records)
    entries: list[AuditEntry] = [
        AuditEntry(step="normalize-headers", sheet=sheet, message=f"{len(records.columns)} cols", level="info")
    ]

    raw_columns = records.attrs.get("raw_columns", list(records.columns))
    for raw, canonical in zip(raw_columns, records.columns):
        if raw != canonical:
            entries.append(AuditEntry(step="rename", sheet=sheet, message=f"{raw!r} → {canonical}", level="info"))

    for field, candidates in LOGICAL_FIELDS.items():
        column = schema.first_present(candidates)
        if column is None:
            entries.append(AuditEntry(
                step="resolve-field",
                sheet=sheet,
                message=f"{field}: absent (looked for {', '.join(candidates)})",
                level="warn",
            ))
        else:
            entries.append(AuditEntry(step="resolve-field", sheet=sheet, message=f"{field}: {column}", level="info"))

    diagnosis_columns = schema.present(DIAGNOSIS_COLUMNS)
    entries.append(AuditEntry(
        step="diagnosis-columns",
        sheet=sheet,
        message=", ".join(diagnosis_columns) if diagnosis_columns else "none present; cohort will be empty",
        level="info" if diagnosis_columns else "error",
    ))
    return entries


@main.command(name="audit-excel")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the admissions workbook",
)
@click.option("-y", "--year", default="2022", show_default=True, help="report year (also the sheet name)")
@click.option("-s", "--sheet", default=None, help="sheet to read instead of the one named after the year")
@click.option("-r", "--raw", is_flag=True, help="print JSON instead of a table")
def audit_excel(excel_file: str, year: str, sheet: typing.Optional[str], raw: bool):
    """
    Show how the sheet's headers normalize and which report fields they cover.
    """
    sheet_name, records = _load_sheet(excel_file, year, sheet)
    entries = audit_columns(records, sheet_name)

    if raw:
        click.echo(json.dumps([entry._asdict() for entry in entries], ensure_ascii=False, indent=2))
        return

    click.echo(f"{'SHEET':15}  {'STEP':20}  {'LEVEL':7}  MESSAGE")
    for entry in entries:
        line = f"{entry.sheet:15}  {entry.step:20}  {entry.level:7}  {entry.message}"
        if entry.level == "error":
            line = click.style(line, fg="red")
        elif entry.level == "warn":
            line = click.style(line, fg="yellow")
        click.echo(line)


if __name__ == "__main__":
    main()

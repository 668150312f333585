"""
HTML rendering of the report: the tables in order, the monthly chart
embedded as a base64 PNG, and the data-quality notes collected during the run.
"""

import base64
import pathlib
import typing

from datetime import datetime

import pandas as pd
from jinja2 import Environment
from markupsafe import Markup

from .chart import NO_DATA_LABEL

REPORT_FILENAME = "report.html"

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

REPORT_TEMPLATE = _env.from_string("""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="utf-8"/>
    <title>{{ title }}</title>
    <style>
        body { font-family: Helvetica, Arial, sans-serif; margin: 2em auto; max-width: 60em; color: #222; }
        h1 { font-size: 1.6em; }
        h2 { font-size: 1.15em; margin-top: 1.8em; border-bottom: 1px solid #ccc; }
        table.tabela { border-collapse: collapse; margin: 0.5em 0; }
        table.tabela th, table.tabela td { padding: 0.25em 0.8em; border-bottom: 1px solid #ddd; text-align: left; }
        p.sem-dados, p.gerado { color: #777; font-style: italic; }
    </style>
</head>
<body>
    <h1>{{ title }}</h1>
    <p class="gerado">Gerado em {{ generated_at.strftime("%d/%m/%Y %H:%M") }}</p>

    {% for caption, table_html in sections %}
    <h2>{{ caption }}</h2>
    {% if table_html is none %}
    <p class="sem-dados">{{ no_data }}</p>
    {% else %}
    {{ table_html }}
    {% endif %}
    {% endfor %}

    <h2>Internações por mês de admissão</h2>
    {% if chart_data is none %}
    <p class="sem-dados">{{ no_data }}</p>
    {% else %}
    <img alt="Internações por mês" src="data:image/png;base64,{{ chart_data }}"/>
    {% endif %}

    {% if notes %}
    <h2>Qualidade dos dados</h2>
    <ul>
    {% for note in notes %}
        <li>{{ note }}</li>
    {% endfor %}
    </ul>
    {% endif %}
</body>
</html>
""")


def _format_value(value: typing.Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return "-"
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


def render_table(table: pd.DataFrame) -> typing.Optional[Markup]:
    """HTML for one table (cells escaped by pandas), None when it has no rows."""
    if table.empty:
        return None
    formatters = {column: _format_value for column in table.columns}
    return Markup(table.to_html(index=False, border=0, classes="tabela", na_rep="-", formatters=formatters))


def encode_chart(chart_path: typing.Optional[pathlib.Path]) -> typing.Optional[str]:
    if chart_path is None:
        return None
    return base64.b64encode(pathlib.Path(chart_path).read_bytes()).decode("ascii")


def render_report(
    title: str,
    tables: typing.Sequence[tuple[str, pd.DataFrame]],
    chart_path: typing.Optional[pathlib.Path],
    notes: typing.Sequence[str] = (),
    generated_at: typing.Optional[datetime] = None,
) -> str:
    return REPORT_TEMPLATE.render(
        title=title,
        generated_at=generated_at or datetime.now(),
        sections=[(caption, render_table(table)) for caption, table in tables],
        chart_data=encode_chart(chart_path),
        notes=list(notes),
        no_data=NO_DATA_LABEL,
    )


def write_report(output_dir: pathlib.Path, document: str) -> pathlib.Path:
    output_path = pathlib.Path(output_dir) / REPORT_FILENAME
    with open(output_path, "w", encoding="utf-8") as out_f:
        out_f.write(document)
    return output_path

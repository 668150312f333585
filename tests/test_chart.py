import pandas as pd

from sifhiv.chart import plot_monthly_admissions
from sifhiv.tables import monthly_admissions

PNG_MAGIC = b"\x89PNG"


def test_chart_is_written(tmp_path):
    months = pd.Series(pd.to_datetime(["2022-03-01", "2022-03-01", "2022-06-01"]))
    path = plot_monthly_admissions(monthly_admissions(months, 2022), tmp_path / "chart.png")
    assert path.read_bytes().startswith(PNG_MAGIC)


def test_chart_without_data_still_renders(tmp_path):
    months = pd.Series([], dtype="datetime64[ns]")
    path = plot_monthly_admissions(monthly_admissions(months, 2022), tmp_path / "empty.png")
    assert path.read_bytes().startswith(PNG_MAGIC)

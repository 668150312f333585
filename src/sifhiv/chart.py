import pathlib

import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .tables import ADMISSIONS, MONTH  # noqa: E402

NO_DATA_LABEL = "Sem dados"


def plot_monthly_admissions(
    monthly: pd.DataFrame,
    path: pathlib.Path,
    title: str = "Internações por sífilis por mês",
) -> pathlib.Path:
    """
    Line-and-point chart of admissions per month, saved as PNG.
    Without any admission the figure carries a "Sem dados" message instead.
    """
    fig, ax = plt.subplots(figsize=(8.6, 4.2))

    if monthly.empty or int(monthly[ADMISSIONS].sum()) == 0:
        ax.text(0.5, 0.5, NO_DATA_LABEL, ha="center", va="center", fontsize=16, transform=ax.transAxes)
        ax.set_axis_off()
    else:
        ax.plot(monthly[MONTH], monthly[ADMISSIONS], color="black", linewidth=1.5, marker="o", markersize=5)
        ax.set_xlabel("Mês de internação")
        ax.set_ylabel("Número de internações")
        ax.set_ylim(bottom=0)
        ax.yaxis.get_major_locator().set_params(integer=True)
        ax.xaxis.set_major_locator(mdates.MonthLocator())
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%m/%Y"))
        ax.grid(axis="y", alpha=0.3)
        fig.autofmt_xdate()

    ax.set_title(title, fontsize=13, fontweight="bold", loc="left", pad=12)

    path = pathlib.Path(path)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path

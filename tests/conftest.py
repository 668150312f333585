import pandas as pd
import pytest

from sifhiv.schema import SchemaView

HEADERS = [
    "Nº Prontuário",
    "Idade (anos)",
    "Sexo",
    "Raça/Cor",
    "Data de Internação",
    "Data de Alta",
    "Diaginostico Principal",
    "Diagnóstico Secundário",
    "VDRL",
    "Desfecho",
]

ROWS = [
    ["1001", 19, "F", "Parda", "01-03-2022", "05-03-2022", "Sífilis secundária", "HIV", "1/256", "Alta"],
    ["1002", 45, "M", "Branca", "15/03/2022", "10/03/2022", "HIV/AIDS", "Neurossifilis", "1/64", "Óbito"],
    ["1003", 70, "m", None, "data invalida", "20-04-2022", "SIFILIS LATENTE", None, "reagente", "Alta"],
    ["1004", 30, "F", "Preta", "02-05-2022", "09-05-2022", "Pneumonia", "Tuberculose", "1/8", "Alta"],
    ["1005", "desconhecido", "F", "Parda", "10-06-2022", "12-06-2022", None, "Sífilis terciária", "16", "Alta"],
]


@pytest.fixture
def raw_admissions() -> pd.DataFrame:
    """
    Five admissions with export-style headers; four of them mention syphilis.
    """
    return pd.DataFrame(ROWS, columns=HEADERS)


def write_workbook(path, sheets: dict[str, pd.DataFrame]) -> str:
    with pd.ExcelWriter(path, engine="openpyxl") as w:
        for sheet_name, df in sheets.items():
            df.to_excel(w, sheet_name=sheet_name, index=False)
    return str(path)


@pytest.fixture
def workbook_writer():
    """Write {sheet name: DataFrame} to an .xlsx file and return its path."""
    return write_workbook


@pytest.fixture
def admissions_workbook(tmp_path, raw_admissions) -> str:
    return write_workbook(tmp_path / "internacoes.xlsx", {"2022": raw_admissions})


@pytest.fixture
def no_syphilis_workbook(tmp_path, raw_admissions) -> str:
    df = raw_admissions.copy()
    df["Diaginostico Principal"] = "Pneumonia"
    df["Diagnóstico Secundário"] = None
    return write_workbook(tmp_path / "sem_sifilis.xlsx", {"2022": df})


@pytest.fixture
def normalized_admissions(raw_admissions) -> pd.DataFrame:
    from sifhiv.columns import normalize_column_names

    df = raw_admissions.copy()
    df.columns = normalize_column_names(df.columns)
    return df


@pytest.fixture
def schema(normalized_admissions) -> SchemaView:
    return SchemaView.of(normalized_admissions)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from kpi_api import config
from kpi_api.datasource import KpiDataSource
from kpi_api.main import app
from kpi_api.records import PeriodRecord, TurnoverRecord
from kpi_api.routers.kpis import get_service
from kpi_api.service import KpiService

KPI_COLUMNS = (
    "StoreID",
    "Year",
    "MonthNumber",
    "TotalSales",
    "AvgHeadcount",
    "SalesPerEmployee",
    "HeadcountGrowthPct",
    "Turnover",
)

# Growth and turnover arrive as text, sometimes percent suffixed, like the real view
KPI_ROWS = [
    ("A", 2025, 1, 100, 10, 10, "5%", "2.5%"),
    ("A", 2025, 2, 200, 10, 20, "0%", "5%"),
    ("A", 2024, 1, 150, 12, 12.5, "-2%", "4%"),
    ("A", 2024, 2, 150, 10, 15, "10%", None),
    ("B", 2025, 1, 50, 5, 10, None, "abc"),
    ("B", 2025, 2, 50, 5, 10, "", "10%"),
    ("B", 2024, 1, None, 4, None, None, None),
]

TURNOVER_COLUMNS = (
    "StoreID",
    "Year",
    "MonthNumber",
    "JobTitle",
    "Gender",
    "Start_Headcount",
    "End_Headcount",
    "Terminations",
    "TurnoverPct",
)

TURNOVER_ROWS = [
    ("S1", 2025, 1, "Cashier", "F", 10, 9, 1, "10%"),
    ("S1", 2025, 2, "Manager", "M", 2, 2, 0, "0%"),
    ("S1", 2025, 2, "Cashier", "M", 8, 7, 1, "12.5%"),
    ("S1", 2025, 2, "Cashier", "F", 10, 8, 2, "20%"),
    ("S1", 2025, 3, "Cashier", "F", 8, 8, 0, None),
    ("S2", 2025, 2, "Cashier", "F", 5, 5, 0, "0%"),
    ("S1", 2024, 2, "Cashier", "F", 9, 9, 0, "0%"),
]


def _as_dicts(columns, rows):
    return [dict(zip(columns, row)) for row in rows]


@pytest.fixture
def kpi_records():
    return [PeriodRecord.model_validate(row) for row in _as_dicts(KPI_COLUMNS, KPI_ROWS)]


@pytest.fixture
def turnover_records():
    return [TurnoverRecord.model_validate(row) for row in _as_dicts(TURNOVER_COLUMNS, TURNOVER_ROWS)]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                CREATE TABLE vw_Employee_KPI_All (
                    StoreID TEXT,
                    Year INTEGER,
                    MonthNumber INTEGER,
                    TotalSales REAL,
                    AvgHeadcount REAL,
                    SalesPerEmployee REAL,
                    HeadcountGrowthPct TEXT,
                    Turnover TEXT,
                    RegionName TEXT
                )
                """
            )
        )
        conn.execute(
            text(
                """
                CREATE TABLE vw_Employee_Turnover_ByJobTitle (
                    StoreID TEXT,
                    Year INTEGER,
                    MonthNumber INTEGER,
                    JobTitle TEXT,
                    Gender TEXT,
                    Start_Headcount INTEGER,
                    End_Headcount INTEGER,
                    Terminations INTEGER,
                    TurnoverPct TEXT
                )
                """
            )
        )
        conn.execute(
            text(
                f"INSERT INTO vw_Employee_KPI_All ({', '.join(KPI_COLUMNS)}) "
                f"VALUES ({', '.join(':' + c for c in KPI_COLUMNS)})"
            ),
            _as_dicts(KPI_COLUMNS, KPI_ROWS),
        )
        conn.execute(
            text(
                f"INSERT INTO vw_Employee_Turnover_ByJobTitle ({', '.join(TURNOVER_COLUMNS)}) "
                f"VALUES ({', '.join(':' + c for c in TURNOVER_COLUMNS)})"
            ),
            _as_dicts(TURNOVER_COLUMNS, TURNOVER_ROWS),
        )
    yield engine
    engine.dispose()


@pytest.fixture
def data_source(engine):
    return KpiDataSource(engine, kpi_view="vw_Employee_KPI_All", turnover_view="vw_Employee_Turnover_ByJobTitle")


@pytest.fixture
def service(data_source, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_YEAR", 2025)
    return KpiService(data_source)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

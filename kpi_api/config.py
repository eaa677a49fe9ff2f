import os
import re
from typing import List

# Reporting defaults
DEFAULT_YEAR = int(os.getenv("KPI_DEFAULT_YEAR", "2025"))

# Reporting views (optionally schema qualified, e.g. "dbo.vw_Employee_KPI_All")
KPI_VIEW = os.getenv("KPI_VIEW", "vw_Employee_KPI_All")
TURNOVER_VIEW = os.getenv("KPI_TURNOVER_VIEW", "vw_Employee_Turnover_ByJobTitle")

LOG_LEVEL = os.getenv("KPI_LOG_LEVEL", "INFO").upper()

HOST = os.getenv("KPI_HOST", "0.0.0.0")
PORT = int(os.getenv("KPI_PORT", "4000"))

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def cors_origins() -> List[str]:
    raw = os.getenv("KPI_CORS_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def checked_identifier(name: str) -> str:
    """Return ``name`` if it is safe to splice into SQL as a view name."""
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid view name: {name!r}")
    return name

"""Typed rows read from the reporting views."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kpi_api.normalize import to_number


class ViewRow(BaseModel):
    # Extra columns returned by the view are dropped
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    store_id: str = Field(alias="StoreID")
    year: int = Field(alias="Year")
    month_number: int = Field(alias="MonthNumber")

    @field_validator("store_id", mode="before")
    @classmethod
    def _store_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, float):
            return str(int(value)) if value.is_integer() else str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PeriodRecord(ViewRow):
    """One (StoreID, Year, MonthNumber) observation from the KPI view."""

    total_sales: Optional[float] = Field(default=None, alias="TotalSales")
    avg_headcount: Optional[float] = Field(default=None, alias="AvgHeadcount")
    sales_per_employee: Optional[float] = Field(default=None, alias="SalesPerEmployee")
    headcount_growth_pct: Optional[float] = Field(default=None, alias="HeadcountGrowthPct")
    turnover: Optional[float] = Field(default=None, alias="Turnover")

    @field_validator(
        "total_sales",
        "avg_headcount",
        "sales_per_employee",
        "headcount_growth_pct",
        "turnover",
        mode="before",
    )
    @classmethod
    def _coerce_metric(cls, value: Any) -> Optional[float]:
        return to_number(value)


class TurnoverRecord(ViewRow):
    """One (StoreID, Year, MonthNumber, JobTitle, Gender) row from the turnover view."""

    job_title: Optional[str] = Field(default=None, alias="JobTitle")
    gender: Optional[str] = Field(default=None, alias="Gender")
    start_headcount: Optional[float] = Field(default=None, alias="Start_Headcount")
    end_headcount: Optional[float] = Field(default=None, alias="End_Headcount")
    terminations: Optional[float] = Field(default=None, alias="Terminations")
    turnover_pct: Optional[float] = Field(default=None, alias="TurnoverPct")

    @field_validator("start_headcount", "end_headcount", "terminations", "turnover_pct", mode="before")
    @classmethod
    def _coerce_metric(cls, value: Any) -> Optional[float]:
        return to_number(value)

    @field_validator("job_title", "gender", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

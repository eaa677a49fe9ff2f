"""Error taxonomy shared by the data source, service and router layers."""


class KpiError(Exception):
    """Base class for errors raised by the KPI API."""


class DataSourceError(KpiError):
    """The reporting database is unreachable or rejected a query."""

    def __init__(self, message: str, query_name: str = "query") -> None:
        super().__init__(message)
        self.query_name = query_name


class InvalidParameterError(KpiError, ValueError):
    """A store id, year or month supplied by the caller is malformed."""

    def __init__(self, name: str, value, reason: str) -> None:
        super().__init__(f"Invalid {name} {value!r}: {reason}")
        self.name = name
        self.value = value

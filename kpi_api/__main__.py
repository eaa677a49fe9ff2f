"""Run the API with uvicorn: ``python -m kpi_api``."""

import uvicorn

from kpi_api import config


def main() -> None:
    uvicorn.run("kpi_api.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()

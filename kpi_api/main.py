import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kpi_api import config
from kpi_api.routers.kpis import router as kpis_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Store KPI API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"message": "KPI API is running"}


app.include_router(kpis_router, prefix="/api/kpis", tags=["kpis"])

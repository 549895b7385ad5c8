from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

from charts.registry import CHART_REGISTRY
from server.api import router as charts_router

logger = logging.getLogger("uvicorn.error")
load_dotenv()
app = FastAPI(title="Chart Intent", description="Turn JSON data and a prompt into ECharts options")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount the chart API router
app.include_router(charts_router)


@app.get("/health")
async def health():
    return {"ok": True, "chart_types": len(CHART_REGISTRY)}

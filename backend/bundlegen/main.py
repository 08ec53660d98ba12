"""
FastAPI app entrypoint.

Admin generator (Seat Units + Bundles on Shopify), admin diagnostics, public events feed and availability.
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from bundlegen.api.routes import admin, feed, generator
from bundlegen.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bundle Generator", version="0.1.0")

# Admin UI origins. The public feed routes add their own open CORS header.
_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
_cors_origins.extend(settings.cors_origin_list())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generator.router, prefix="/admin/generator", tags=["generator"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(feed.router, tags=["feed"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Bundle Generator API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}

"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import locations
from settings import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create app
app = FastAPI(
    title="Geo Link Resolver API",
    description="API for extracting coordinates from text and searching places",
    version="0.1.0",
)

# CORS middleware for editor front-ends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(locations.router, prefix="/locations", tags=["locations"])


@app.on_event("startup")
def startup_event():
    """Build the searcher up front so rule configuration errors surface at startup."""
    locations.get_default_searcher()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Geo Link Resolver API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}

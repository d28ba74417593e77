"""
Main FastAPI application entry point.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from policy_import.db import initialize_database
from policy_import.routers import upload, policies
from policy_import.middleware import RequestLoggingMiddleware
import logging

logger = logging.getLogger("policy_import")

app = FastAPI(
    title="Policy Import API",
    description="Bulk import of insurance policy exports with background processing",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    """Create tables on startup."""
    logger.info("Starting Policy Import API...")
    initialize_database()
    logger.info("Database initialized")

@app.get("/")
async def root():
    """Service banner."""
    return {"message": "Policy Import API", "status": "healthy"}

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}

app.include_router(upload.router, prefix="/v1", tags=["upload"])
app.include_router(policies.router, prefix="/v1", tags=["policies"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

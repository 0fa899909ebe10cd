"""
carepath Web Server

FastAPI-based web server for the intake questionnaire recommendation tool.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

# Setup paths
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from carepath import __version__
from carepath.db import EmotionScanRepository, SubmissionRepository, is_configured as db_configured
from carepath.engines import RecommendationService, estimate_emotions
from carepath.exporters import INPUT_KEY, export_json, export_markdown
from carepath.log import setup_logging
from carepath.models import EXAMPLE_PAYLOAD, REQUIRED_FIELDS, find_missing_fields

logger = logging.getLogger("carepath.server")

REPORT_ID_KEY = "_report_id"


# Create FastAPI app
app = FastAPI(
    title="carepath",
    description="carepath - Intake questionnaire recommendation API",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Origin", "X-Requested-With", "Accept"],
)

# Initialize service
service = RecommendationService()

# In-memory storage for generated reports (for demo purposes)
reports_store: dict[str, dict[str, Any]] = {}


def _persist_report(report: dict[str, Any], intake: dict[str, Any]) -> None:
    """Best-effort write of a report to Supabase."""
    if not db_configured():
        return
    try:
        result = {k: v for k, v in report.items() if not k.startswith("_")}
        SubmissionRepository().save(result, intake)
    except Exception as e:
        logger.warning("Failed to persist report %s: %s", report.get(REPORT_ID_KEY), e)


# Routes
@app.get("/")
async def root():
    """Service banner."""
    return {
        "status": "Server is running",
        "service": "carepath",
        "version": __version__,
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "ai_enabled": service.ai_enabled,
        "persistence_enabled": db_configured(),
    }


@app.post("/analyze")
async def analyze(request: Request):
    """
    Generate recommendations for an intake questionnaire.

    Returns the recommendations plus the echoed input under ``_input`` and
    the stored report id under ``_report_id``.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={
            "error": "Invalid request body",
            "message": "Request body is required and must be a valid JSON object",
            "required_fields": REQUIRED_FIELDS,
        })

    missing = find_missing_fields(body)
    if missing:
        return JSONResponse(status_code=400, content={
            "error": "Missing required fields",
            "message": f"The following fields are required: {', '.join(missing)}",
            "missing_fields": missing,
            "required_fields": REQUIRED_FIELDS,
            "example": EXAMPLE_PAYLOAD,
        })

    try:
        result = await run_in_threadpool(service.generate, body)
    except Exception as e:
        logger.exception("Recommendation generation failed")
        return JSONResponse(status_code=500, content={
            "error": "Failed to generate recommendations",
            "message": str(e),
        })

    report_id = str(uuid4())[:8]
    report = result.model_dump(mode="json")
    report[INPUT_KEY] = body
    report[REPORT_ID_KEY] = report_id
    reports_store[report_id] = report

    await run_in_threadpool(_persist_report, report, body)
    return report


@app.get("/api/reports/{report_id}")
async def get_report(report_id: str):
    """Get a generated report."""
    if report_id not in reports_store:
        raise HTTPException(status_code=404, detail="Report not found")
    return reports_store[report_id]


@app.get("/api/reports/{report_id}/export/{format}")
async def export_report(report_id: str, format: str):
    """
    Export a report as a downloadable file.

    Formats: json, markdown
    """
    if report_id not in reports_store:
        raise HTTPException(status_code=404, detail="Report not found")

    report = {k: v for k, v in reports_store[report_id].items() if k != REPORT_ID_KEY}

    if format == "json":
        content = export_json(report)
        media_type = "application/json"
        filename = f"report-{report_id}.json"
    elif format == "markdown":
        content = export_markdown(report)
        media_type = "text/markdown"
        filename = f"report-{report_id}.md"
    else:
        raise HTTPException(status_code=400, detail="Invalid format. Use: json or markdown")

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/emotion/estimate")
async def emotion_estimate(seed: Optional[int] = Query(None, description="Random seed for reproducibility")):
    """
    Placeholder emotion estimate.

    The distribution is randomized; no image is analyzed.
    """
    estimate = estimate_emotions(seed)
    if db_configured():
        try:
            EmotionScanRepository().save(estimate)
        except Exception as e:
            logger.warning("Failed to persist emotion estimate: %s", e)
    return estimate.model_dump(mode="json")


def run_server(host: str = "0.0.0.0", port: int | None = None):
    """Run the server."""
    import uvicorn
    setup_logging()
    port = port or int(os.environ.get("PORT", "4001"))
    logger.info("Backend server running on http://localhost:%d", port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()

"""
Delivery Insight — Async Logistics Report API.

Receives the five ups_logistics CSV exports, builds the delivery report in
a background task, files it in the Knowledge Base and notifies an optional
callback URL with a short summary.

Usage:
    uvicorn backend.main:app --port 8000 --reload
    (from the project root)
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from datetime import datetime

import httpx
from fastapi import BackgroundTasks, FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.schemas import JobFailed, JobQueued, JobResult, LatestReport
from logistics_engine.config import REPORT_CATEGORY, TABLE_FILES, settings
from logistics_engine.knowledge_base.manager import KnowledgeManager
from logistics_engine.processors.delivery_analytics.analyzer import LogisticsAnalyzer
from logistics_engine.processors.delivery_analytics.ingestor import LogisticsIngestor

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("delivery_insight_api")

app = FastAPI(
    title="Delivery Insight — Async API",
    description="Background delivery route analytics over the ups_logistics tables.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Job state lives in memory; a restart forgets queued jobs
_jobs: dict[str, dict] = {}


def get_knowledge_manager() -> KnowledgeManager:
    return KnowledgeManager(settings.STORAGE_DIR)


# ---------------------------------------------------------------------------
# Background worker
# ---------------------------------------------------------------------------
def _notify(job_id: str, callback_url: str, payload: dict) -> None:
    try:
        with httpx.Client(timeout=30) as client:
            resp = client.post(callback_url, json=payload)
        logger.info("Job %s: callback %s answered %d", job_id, callback_url, resp.status_code)
    except httpx.HTTPError as exc:
        logger.warning("Job %s: callback to %s failed: %s", job_id, callback_url, exc)


def _remove_uploads(paths: dict[str, str]) -> None:
    for path in paths.values():
        if os.path.exists(path):
            os.unlink(path)


def process_logistics_job(
    job_id: str,
    tmp_paths: dict[str, str],
    title: str,
    callback_url: str | None,
) -> None:
    """
    Ingest the uploaded tables, analyze them, save the report, then call back.

    Any failure marks the job as failed; the callback is only sent on success.
    """
    _jobs[job_id]["status"] = "processing"
    logger.info("Job %s: started (%d tables)", job_id, len(tmp_paths))

    try:
        ingestor = LogisticsIngestor()
        dataset = ingestor.ingest(tmp_paths)
        snapshot = LogisticsAnalyzer().analyze(dataset, quality=ingestor.quality)

        filename = get_knowledge_manager().save_report(title, snapshot, category=REPORT_CATEGORY)

        result = JobResult(
            job_id=job_id,
            filename=filename,
            download_url=f"{settings.BASE_URL.rstrip('/')}/storage/{REPORT_CATEGORY}/{filename}",
            row_counts=dataset.row_counts(),
            on_time_percentage=snapshot["kpis"]["on_time_percentage"],
            quality_warnings=len(ingestor.quality.warnings),
            quality_errors=len(ingestor.quality.errors),
        ).model_dump(mode="json")
        _jobs[job_id] = result
        logger.info("Job %s: completed, saved %s/%s", job_id, REPORT_CATEGORY, filename)

    except Exception as exc:
        _jobs[job_id] = JobFailed(job_id=job_id, error=str(exc)).model_dump(mode="json")
        logger.error("Job %s: failed: %s", job_id, exc, exc_info=True)
        return

    finally:
        _remove_uploads(tmp_paths)

    if callback_url:
        _notify(job_id, callback_url, result)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/v1/logistics/analyze_async", response_model=JobQueued)
async def analyze_async(
    background_tasks: BackgroundTasks,
    orders: UploadFile = File(...),
    routes: UploadFile = File(...),
    warehouses: UploadFile = File(...),
    delivery_agents: UploadFile = File(...),
    shipment_tracking: UploadFile = File(...),
    title: str = Form(default="UPS Logistics Report"),
    callback_url: str = Form(default=""),
):
    """Queue a delivery report job for one CSV upload per table."""
    job_id = uuid.uuid4().hex[:8]
    uploads = {
        "orders": orders,
        "routes": routes,
        "warehouses": warehouses,
        "delivery_agents": delivery_agents,
        "shipment_tracking": shipment_tracking,
    }

    tmp_paths: dict[str, str] = {}
    for table, upload in uploads.items():
        with tempfile.NamedTemporaryFile(
            delete=False, suffix=".csv", prefix=f"{table}_{job_id}_"
        ) as tmp:
            tmp.write(await upload.read())
        tmp_paths[table] = tmp.name

    queued = JobQueued(
        job_id=job_id,
        title=title,
        files={table: upload.filename or TABLE_FILES[table] for table, upload in uploads.items()},
        callback_url=callback_url.strip() or None,
    )
    _jobs[job_id] = {**queued.model_dump(), "queued_at": datetime.now().isoformat()}

    background_tasks.add_task(process_logistics_job, job_id, tmp_paths, title, queued.callback_url)
    logger.info("Job %s: queued '%s'", job_id, title)
    return queued


@app.get("/api/v1/logistics/jobs/{job_id}")
async def get_job_status(job_id: str):
    """Current state of a job: queued, processing, completed or failed."""
    if job_id not in _jobs:
        return JSONResponse(status_code=404, content={"status": "not_found", "job_id": job_id})
    return _jobs[job_id]


@app.get("/api/v1/knowledge/latest/logistics_report", response_model=LatestReport)
async def get_latest_report():
    """Most recent report: Markdown plus the sanitised snapshot."""
    latest = get_knowledge_manager().latest_report(REPORT_CATEGORY)
    if latest is None:
        return JSONResponse(
            status_code=404,
            content={"status": "empty", "message": "No reports found yet."},
        )
    return LatestReport(**latest)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "Delivery Insight Async API"}


@app.get("/")
async def root():
    return {
        "service": "Delivery Insight — Async API",
        "version": app.version,
        "docs": "/docs",
        "endpoints": {
            "analyze": "POST /api/v1/logistics/analyze_async",
            "job_status": "GET /api/v1/logistics/jobs/{job_id}",
            "latest_report": "GET /api/v1/knowledge/latest/logistics_report",
            "health": "GET /health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.main:app", host="0.0.0.0", port=8000, reload=True)

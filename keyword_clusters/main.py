"""FastAPI application entrypoint."""
from __future__ import annotations

import dataclasses
import datetime as dt
import logging
import os
import time
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from .batches import count_keywords, fetch_keywords_preview, list_recent_batches
from .db import get_session, init_db
from .keywords import format_keyword_list, parse_and_clean_keywords
from .logging_setup import configure_logging
from .pipeline import WorkflowResult, process_keywords
from .report import build_report

LOG_FILE_PATH = configure_logging(os.getenv("LOG_LEVEL"))
logger = logging.getLogger(__name__)
logger.info("Logging configured. File output: %s", LOG_FILE_PATH)

app = FastAPI(title="Keyword Cluster Assistant")

TEMPLATES = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
USAGE_HINT = "Paste a list of keywords separated by commas or newlines."
HISTORY_LIMIT = 10
HISTORY_PREVIEW = 3


@app.on_event("startup")
def on_startup() -> None:
    start = time.perf_counter()
    logger.info("Starting application initialisation")
    init_db()
    logger.info("Database initialised in %.2fs", time.perf_counter() - start)


def _is_csv_upload(upload: UploadFile) -> bool:
    content_type = upload.content_type or ""
    filename = (upload.filename or "").lower()
    return "csv" in content_type or filename.endswith(".csv")


def serialise_workflow(result: WorkflowResult) -> dict[str, Any]:
    return {
        "batch_id": result.batch_id,
        "keywords": result.keywords,
        "formatted_keywords": format_keyword_list(result.keywords),
        "clusters": [dataclasses.asdict(cluster) for cluster in result.clusters],
        "cluster_blocks": [dataclasses.asdict(block) for block in result.cluster_blocks],
        "content": [
            {
                "label": item.cluster.label,
                **dataclasses.asdict(item.content),
            }
            for item in result.harvested
            if item.content is not None
        ],
        "content_blocks": [dataclasses.asdict(block) for block in result.content_blocks],
        "warnings": result.warnings,
    }


def _run_workflow(session: Session, raw_text: str, user_id: str, channel_id: str | None) -> dict[str, Any]:
    keywords = parse_and_clean_keywords(raw_text)
    if not keywords:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USAGE_HINT)
    try:
        result = process_keywords(session, keywords, user_id, channel_id)
    except RuntimeError as exc:
        # Raised when the embedding client is not configured.
        logger.exception("Keyword workflow failed for user %s", user_id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return serialise_workflow(result)


@app.post("/keywords")
def submit_keywords(
    text: str = Form(""),
    user_id: str = Form("unknown"),
    channel_id: str | None = Form(None),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    logger.info("Received keyword submission from user %s", user_id)
    return _run_workflow(session, text, user_id, channel_id)


@app.post("/keywords/csv")
async def upload_keywords_csv(
    file: UploadFile = File(...),
    user_id: str = Form("unknown"),
    channel_id: str | None = Form(None),
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    if not _is_csv_upload(file):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a CSV file.")
    raw = await file.read()
    # utf-8-sig drops the byte-order mark that spreadsheet exports prepend.
    text = raw.decode("utf-8-sig", errors="replace")
    if not parse_and_clean_keywords(text):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No keywords found in CSV.")
    logger.info("Received CSV upload %s (%d bytes) from user %s", file.filename, len(raw), user_id)
    return _run_workflow(session, text, user_id, channel_id)


@app.get("/history")
def history(user_id: str, session: Session = Depends(get_session)) -> dict[str, Any]:
    batches = list_recent_batches(session, user_id, limit=HISTORY_LIMIT)
    entries = []
    for batch in batches:
        created_at = batch.created_at
        entries.append(
            {
                "batch_id": batch.id,
                "channel_id": batch.channel_id,
                "created_at": created_at.isoformat() if isinstance(created_at, dt.datetime) else str(created_at),
                "keyword_count": count_keywords(session, batch.id),
                "preview": fetch_keywords_preview(session, batch.id, limit=HISTORY_PREVIEW),
            }
        )
    return {"batches": entries}


@app.get("/report/{batch_id}", response_class=HTMLResponse)
def report(
    request: Request,
    batch_id: str,
    user_id: str = "",
    session: Session = Depends(get_session),
) -> HTMLResponse:
    try:
        built = build_report(session, batch_id, user=user_id)
    except RuntimeError as exc:
        logger.exception("Report generation failed for batch %s", batch_id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if built is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No keywords found for that batch.")
    return TEMPLATES.TemplateResponse(request, "report.html", {"report": built})

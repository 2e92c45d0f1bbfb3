from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import logging
from typing import List, Optional

from config import settings
from verifier.errors import IngestionError, IngestionFailure, SubmissionError, TransitionRejected
from verifier.export import ResultExporter, VerdictView
from verifier.ingestion import ClipboardRead, DropEvent, DroppedFile, FilePicker
from verifier.models import EVIDENCE_STEPS, Stage
from verifier.orchestrator import VerificationOrchestrator


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Player Verification Service",
    description="Screenshot-based player verification with OCR",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Session
# ------------------------
# One interactive session per process
_orchestrator: Optional[VerificationOrchestrator] = None
_exporter: Optional[ResultExporter] = None


def get_orchestrator() -> VerificationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = VerificationOrchestrator()
    return _orchestrator


def get_exporter() -> ResultExporter:
    global _exporter
    if _exporter is None:
        _exporter = ResultExporter()
    return _exporter


def evidence_stage(stage: Stage) -> Stage:
    if stage not in EVIDENCE_STEPS:
        raise HTTPException(status_code=404, detail=f"Stage {stage.value} takes no evidence")
    return stage


# ------------------------
# Error mapping
# ------------------------
@app.exception_handler(IngestionError)
async def ingestion_error_handler(request, exc: IngestionError):
    status_code = 403 if exc.reason == IngestionFailure.PERMISSION_DENIED else 400
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.reason.value, "detail": exc.detail},
    )


@app.exception_handler(TransitionRejected)
async def transition_rejected_handler(request, exc: TransitionRejected):
    return JSONResponse(
        status_code=409,
        content={"error": "transition_rejected", "transition": exc.transition, "detail": exc.reason},
    )


@app.exception_handler(SubmissionError)
async def submission_error_handler(request, exc: SubmissionError):
    return JSONResponse(
        status_code=500,
        content={"error": "submission_failed", "detail": str(exc)},
    )


# ------------------------
# Wizard API
# ------------------------
@app.get("/state")
async def get_state(orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    return orchestrator.snapshot()


@app.post("/identity")
async def set_identity(
    claimed_identity: str = Form(""),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.set_identity(claimed_identity)
    return orchestrator.snapshot()


@app.post("/evidence/{stage}")
async def upload_evidence(
    stage: Stage = Depends(evidence_stage),
    file: UploadFile = File(...),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
):
    """File-picker upload. Accepts any image/* payload (PNG / JPG / WEBP / HEIC)."""
    source = FilePicker(
        data=await file.read(),
        filename=file.filename or "upload",
        mime_type=file.content_type,
    )
    orchestrator.ingest(stage, source)
    return orchestrator.snapshot()


@app.post("/evidence/{stage}/drop")
async def drop_evidence(
    stage: Stage = Depends(evidence_stage),
    files: List[UploadFile] = File(...),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
):
    """Drag-and-drop: the first image among the dropped files is used."""
    dropped = [
        DroppedFile(data=await f.read(), filename=f.filename or "dropped", mime_type=f.content_type)
        for f in files
    ]
    orchestrator.ingest(stage, DropEvent(files=dropped))
    return orchestrator.snapshot()


@app.post("/evidence/{stage}/paste")
async def paste_evidence(
    stage: Stage = Depends(evidence_stage),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.ingest(stage, ClipboardRead())
    return orchestrator.snapshot()


@app.post("/advance")
async def advance(orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    orchestrator.advance()
    return orchestrator.snapshot()


@app.post("/retreat")
async def retreat(orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    orchestrator.retreat()
    return orchestrator.snapshot()


@app.post("/submit")
async def submit(orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    """Runs OCR on both screenshots in order and returns the resulting state."""
    await orchestrator.submit()
    return orchestrator.snapshot()


@app.post("/reset")
async def reset(orchestrator: VerificationOrchestrator = Depends(get_orchestrator)):
    orchestrator.reset()
    return orchestrator.snapshot()


@app.post("/export")
async def export_result(
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    exporter: ResultExporter = Depends(get_exporter),
):
    verdict = orchestrator.state.verdict
    if verdict is None:
        raise HTTPException(status_code=409, detail="No verdict to export")
    result = await exporter.export(VerdictView.from_verdict(verdict))
    return result.to_dict()


# ------------------------
# Health Check
# ------------------------
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "player-verification",
        "ocr_engine": settings.OCR_ENGINE,
    }


# ------------------------
# Local Dev Entry
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)

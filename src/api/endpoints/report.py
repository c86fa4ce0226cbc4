import asyncio
import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import Response

from core.dependencies import get_lock
from app.common.callback_sender import CallbackSender
from app.report.exceptions import ReportError
from app.report.schema import ReportExportRequest, ReportRequest, ReportTaskResponse
from app.report.service import ReportService, build_report_pdf, report_filename
from app.schemas.enum import ExportStatus

logger = logging.getLogger(__name__)
router = APIRouter()


def get_report_service() -> ReportService:
    return ReportService(CallbackSender())


@router.post("", response_class=Response)
async def generate_report_pdf(req: ReportRequest, lock: asyncio.Lock = Depends(get_lock)):
    logger.info(f"📥 Report requested for project '{req.project.name}' ({len(req.resources)} resources)")
    try:
        async with lock:
            pdf_bytes = await build_report_pdf(req.project, req.resources)
    except ReportError as e:
        logger.error(f"💥 Report generation failed: {e}")
        raise HTTPException(status_code=500, detail="Error generando el informe PDF")

    file_name = report_filename(req.project)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.post("/export", response_model=ReportTaskResponse, status_code=202)
async def export_report(
    req: ReportExportRequest,
    background_tasks: BackgroundTasks,
    service: ReportService = Depends(get_report_service),
    lock: asyncio.Lock = Depends(get_lock),
):
    task_id = str(uuid.uuid4())
    logger.info(f"📥 [Task {task_id}] Accepted. ReqID: {req.request_id}")

    background_tasks.add_task(service.process_task, task_id=task_id, req=req, lock=lock)

    return ReportTaskResponse(
        task_id=task_id,
        request_id=req.request_id,
        status=ExportStatus.PROCESSING,
        message="Report generation started in background.",
    )

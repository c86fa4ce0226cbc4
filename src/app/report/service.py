import asyncio
import logging
import re
import traceback
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles
import fitz  # PyMuPDF

from core.config import configs
from core.storage.factory import get_storage_client
from app.common.callback_sender import CallbackSender
from app.report.composer import compose_sections
from app.report.document import Document, ImageBlock, TextBlock
from app.report.exceptions import ReportGenerationError
from app.report.images import FetchedImage, ImageFetcher, Resolver, default_resolver
from app.report.layout import (
    FONT_NAMES,
    PT_TO_MM,
    ContentItem,
    ImageItem,
    LayoutEngine,
)
from app.report.schema import Project, ReportExportRequest, Resource
from app.schemas.enum import ExportStatus
from app.utils.fileIO import AsyncBytesIO
from app.utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

MM_TO_PT = 72 / 25.4
# Helvetica ascender as a fraction of the font size; puts the baseline inside the line box.
ASCENDER = 0.85


async def _resolve_images(
    items: Sequence[ContentItem], resolver: Resolver, fetcher: ImageFetcher
) -> List[ContentItem]:
    """Fetch every image item's file and return the items with ``image`` or ``error`` filled in."""
    image_indexes = [i for i, item in enumerate(items) if isinstance(item, ImageItem)]
    sources = [resolver(items[i].file_path) for i in image_indexes]
    results = await fetcher.fetch_all(sources)

    resolved = list(items)
    for index, result in zip(image_indexes, results):
        if isinstance(result, FetchedImage):
            resolved[index] = replace(items[index], image=result)
        else:
            resolved[index] = replace(items[index], error=result.reason)
    return resolved


async def generate_report(
    project: Project,
    resources: Sequence[Resource],
    *,
    resolver: Optional[Resolver] = None,
    fetcher: Optional[ImageFetcher] = None,
    engine: Optional[LayoutEngine] = None,
    generated_at: Optional[date] = None,
) -> Document:
    """
    Build the paginated report for ``project``.

    Images are fetched first (possibly concurrently), then every item is placed
    sequentially, then footers are stamped once the page count is final. A photo
    that cannot be loaded becomes a placeholder line; it never aborts the report.
    """
    resolver = resolver or default_resolver
    fetcher = fetcher or ImageFetcher()
    engine = engine or LayoutEngine()
    generated_at = generated_at or date.today()

    items = compose_sections(project, resources)
    items = await _resolve_images(items, resolver, fetcher)

    document = engine.layout(items, title=f"Informe {project.name}")
    engine.stamp_footers(document, generated_at)

    logger.info(
        f"📄 Report for project '{project.name}' laid out: "
        f"{document.page_count} page(s), {len(resources)} resource(s)"
    )
    return document


def _draw_text(page: "fitz.Page", block: TextBlock):
    fontname = FONT_NAMES[block.style]
    for i, line in enumerate(block.lines):
        if not line:
            continue
        baseline_mm = block.y + i * block.line_height + block.size * PT_TO_MM * ASCENDER
        page.insert_text(
            fitz.Point(block.x * MM_TO_PT, baseline_mm * MM_TO_PT),
            line,
            fontname=fontname,
            fontsize=block.size,
        )


def _draw_image(page: "fitz.Page", block: ImageBlock):
    rect = fitz.Rect(
        block.x * MM_TO_PT,
        block.y * MM_TO_PT,
        (block.x + block.width) * MM_TO_PT,
        (block.y + block.height) * MM_TO_PT,
    )
    page.insert_image(rect, stream=block.data, keep_proportion=True)


def render_pdf(document: Document) -> bytes:
    """Serialize a laid-out document with PyMuPDF (CPU bound, call from a worker thread)."""
    out_doc = fitz.open()
    try:
        for doc_page in document.pages:
            page = out_doc.new_page(
                width=document.page_width * MM_TO_PT,
                height=document.page_height * MM_TO_PT,
            )
            for block in doc_page.blocks:
                if isinstance(block, ImageBlock):
                    _draw_image(page, block)
                else:
                    _draw_text(page, block)
            for block in doc_page.footer:
                _draw_text(page, block)

        out_doc.set_metadata({"title": document.title, "creator": configs.PROJECT_NAME})
        return out_doc.tobytes(garbage=3, deflate=True)
    finally:
        out_doc.close()


def report_filename(project: Project, today: Optional[date] = None) -> str:
    today = today or date.today()
    name = re.sub(r"\s+", "_", project.name)
    return f"Informe_{name}_{today.isoformat()}.pdf"


async def build_report_pdf(project: Project, resources: Sequence[Resource], **kwargs) -> bytes:
    document = await generate_report(project, resources, **kwargs)
    try:
        return await asyncio.to_thread(render_pdf, document)
    except Exception as e:
        raise ReportGenerationError(f"PDF serialization failed: {e}") from e


async def download_report(
    project: Project,
    resources: Sequence[Resource],
    output_dir: Path,
    **kwargs,
) -> bool:
    """
    Generate the report and save it as ``output_dir/Informe_<name>_<date>.pdf``.

    Returns False (and logs) on any failure; no file is written in that case.
    """
    try:
        pdf_bytes = await build_report_pdf(project, resources, **kwargs)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / report_filename(project)
        async with aiofiles.open(target, "wb") as f:
            await f.write(pdf_bytes)

        logger.info(f"✅ Report saved to {target}")
        return True
    except Exception as e:
        logger.error(f"💥 Report generation failed for '{project.name}': {e}")
        logger.debug(traceback.format_exc())
        return False


class ReportService:
    """Background export: generate, store, then notify the caller's webhook."""

    def __init__(self, callback_sender: CallbackSender, fetcher: Optional[ImageFetcher] = None):
        self.callback_sender = callback_sender
        self.fetcher = fetcher

    async def process_task(self, task_id: str, req: ReportExportRequest, lock: asyncio.Lock):
        logger.info(f"🏁 [Task {task_id}] Background report started. Request: {req.request_id}")

        try:
            pm = PerformanceMonitor()
            pm.start()

            # One report at a time: layout and serialization are CPU bound.
            async with lock:
                pdf_bytes = await build_report_pdf(req.project, req.resources, fetcher=self.fetcher)

            storage_client = get_storage_client()
            file_name = report_filename(req.project)
            storage_path = f"{configs.REPORTS_PREFIX}/{req.request_id}/{file_name}"
            await storage_client.save_file(AsyncBytesIO(pdf_bytes), storage_path, content_type="application/pdf")
            final_url = storage_client.get_url(storage_path)

            pm.stop()
            pm.report("GenerateReport", count=len(req.resources))
            logger.info(f"✅ [Task {task_id}] Report generated successfully: {final_url}")

            if req.webhook_url:
                payload = {
                    "task_id": task_id,
                    "request_id": req.request_id,
                    "status": ExportStatus.COMPLETED.value,
                    "result": {"pdf_url": final_url, "file_name": file_name},
                }
                await self.callback_sender.send_result(req.webhook_url, payload, task_id)
            else:
                logger.warning(f"⚠️ [Task {task_id}] No webhook_url. Result not sent.")

        except Exception as e:
            logger.error(f"💥 [Task {task_id}] Failed: {e}")
            logger.error(traceback.format_exc())

            if req.webhook_url:
                await self.callback_sender.send_error(req.webhook_url, str(e), task_id, req.request_id)

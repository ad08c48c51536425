"""JSON API for the browser front end.

Run with ``uvicorn miaobi.web:app``.
"""

import logging
import time
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from miaobi.config import AISettings, get_settings
from miaobi.core.exporter import WordExporter
from miaobi.core.structure import layout
from miaobi.formats import ExportError
from miaobi.llm.client import AnalysisClient, AnalysisError
from miaobi.settings_store import load_ai_settings, save_ai_settings

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "我的文章"

app = FastAPI(title="Miaobi")


class AnalyzeRequest(BaseModel):
    title: str = ""
    content: str
    settings: Optional[AISettings] = None


class ExportRequest(BaseModel):
    content: str
    filename: Optional[str] = None


def error_response(status_code: int, message: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "error_type": error_type},
    )


def content_disposition(filename: str) -> str:
    """Attachment header that survives non-ASCII file names."""
    ascii_name = filename.encode("ascii", "ignore").decode() or "document.docx"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@app.post("/api/analyze")
def api_analyze(request: AnalyzeRequest):
    """Run the AI analysis for an article."""
    start_time = time.time()

    if not request.content.strip():
        return error_response(400, "文章内容不能为空", "empty_content")

    ai = request.settings or load_ai_settings()
    try:
        result = AnalysisClient(ai).analyze(request.title, request.content)
    except AnalysisError as e:
        return error_response(502, str(e) or "分析过程中出现错误，请稍后重试。", "llm_error")

    max_depth = get_settings().structure_max_depth
    tree = layout(result.structure, max_depth=max_depth)
    processing_time = time.time() - start_time

    return {
        "success": True,
        "analysis": result.to_dict(),
        "structure_layout": {
            "width": tree.width,
            "height": tree.height,
            "nodes": [
                {
                    "name": node.name,
                    "label": node.label,
                    "type": node.type,
                    "description": node.description,
                    "x": node.x,
                    "y": node.y,
                    "color": node.color,
                    "truncated": node.truncated,
                }
                for node in tree.nodes
            ],
            "edges": tree.edges,
        },
        "word_count": len(request.content.strip()),
        "provider": ai.provider.value,
        "model": ai.resolved_model,
        "processing_time": f"{processing_time:.1f}",
    }


@app.post("/api/export")
async def api_export(request: ExportRequest):
    """Export markdown content (with images) as a .docx download."""
    if not request.content.strip():
        return error_response(400, "文章内容不能为空", "empty_content")

    # Request bodies are untrusted; never read images from the server's disk
    exporter = WordExporter(allow_local_paths=False)
    filename = exporter.handler.ensure_extension(
        (request.filename or "").strip() or DEFAULT_EXPORT_NAME
    )
    title = filename[: -len(exporter.handler.extension)]

    try:
        data = await exporter.render_async(request.content, title=title)
    except ExportError as e:
        logger.error("Export failed: %s", e)
        return error_response(500, str(e), "export_error")

    return Response(
        content=data,
        media_type=exporter.handler.media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@app.get("/api/settings")
def api_get_settings():
    """Return the saved provider settings."""
    return load_ai_settings().model_dump(mode="json")


@app.put("/api/settings")
def api_put_settings(settings: AISettings):
    """Replace the saved provider settings."""
    save_ai_settings(settings)
    return settings.model_dump(mode="json")

"""Evaluation System routes: teacher evaluations and recorded class videos."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import StreamingResponse

from ....application.services.records_service import RecordsService
from ....core.dependencies import get_records_service, get_video_library
from ....domain.authorization import CREATE, DELETE, READ, UPDATE, Principal
from ....domain.models.account import SYSTEM_EVALUATION
from ....services.video_library import VideoLibrary, parse_range
from ..dependencies import require_permission, require_system
from ..schemas.records import EvaluationCreate, EvaluationUpdate

router = APIRouter(
    prefix="/evaluation",
    tags=["evaluation"],
    dependencies=[Depends(require_system(SYSTEM_EVALUATION))],
)


@router.get("/evaluations")
def list_evaluations(
    teacher_email: Optional[str] = None,
    _: Principal = Depends(require_permission("evaluations", READ)),
    records: RecordsService = Depends(get_records_service),
) -> List[Dict[str, Any]]:
    return records.list("evaluations", {"teacher_email": teacher_email})


@router.get("/evaluations/{evaluation_id}")
def get_evaluation(
    evaluation_id: int,
    _: Principal = Depends(require_permission("evaluations", READ)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.get("evaluations", evaluation_id)


@router.post("/evaluations", status_code=status.HTTP_201_CREATED)
def create_evaluation(
    payload: EvaluationCreate,
    principal: Principal = Depends(require_permission("evaluations", CREATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    return records.create("evaluations", {**payload.model_dump(), "evaluator_email": principal.email})


@router.put("/evaluations/{evaluation_id}")
def update_evaluation(
    evaluation_id: int,
    payload: EvaluationUpdate,
    principal: Principal = Depends(require_permission("evaluations", UPDATE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    values = payload.model_dump(exclude_unset=True)
    values["evaluator_email"] = principal.email
    return records.update("evaluations", evaluation_id, values)


@router.delete("/evaluations/{evaluation_id}")
def delete_evaluation(
    evaluation_id: int,
    _: Principal = Depends(require_permission("evaluations", DELETE)),
    records: RecordsService = Depends(get_records_service),
) -> Dict[str, Any]:
    records.delete("evaluations", evaluation_id)
    return {"success": True, "id": evaluation_id}


@router.get("/videos")
def list_videos(
    _: Principal = Depends(require_permission("videos", READ)),
    library: VideoLibrary = Depends(get_video_library),
) -> Dict[str, Any]:
    teachers = library.list_teachers()
    return {"status": "success", "teacher_count": len(teachers), "teachers": teachers}


@router.get("/videos/play-video/{teacher_email}/{filename}")
def play_video(
    teacher_email: str,
    filename: str,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    _: Principal = Depends(require_permission("videos", READ)),
    library: VideoLibrary = Depends(get_video_library),
) -> StreamingResponse:
    path = library.resolve(teacher_email, filename)
    size = path.stat().st_size
    headers = {"Accept-Ranges": "bytes", "Content-Disposition": "inline"}
    byte_range = parse_range(range_header, size)
    if byte_range is None:
        start, end = 0, size - 1
        status_code = status.HTTP_200_OK
    else:
        start, end = byte_range
        status_code = status.HTTP_206_PARTIAL_CONTENT
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"
    headers["Content-Length"] = str(max(end - start + 1, 0))
    return StreamingResponse(
        library.iter_bytes(path, start, end),
        status_code=status_code,
        media_type=library.content_type(path),
        headers=headers,
    )

"""Route builder shared by the Grading and Evaluation routers."""

from typing import Any, Dict, List, Type

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from ....application.services.records_service import RecordsService
from ....core.dependencies import get_records_service
from ....domain.authorization import CREATE, DELETE, READ, UPDATE, Principal
from ..dependencies import require_permission


def add_crud_routes(
    router: APIRouter,
    path: str,
    resource: str,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
) -> None:
    """Register list/get/create/update/delete for ``resource`` under ``path``.

    List accepts any column of the resource as an exact-match query filter.
    """

    def list_records(
        request: Request,
        _: Principal = Depends(require_permission(resource, READ)),
        records: RecordsService = Depends(get_records_service),
    ) -> List[Dict[str, Any]]:
        return records.list(resource, dict(request.query_params))

    def get_record(
        record_id: int,
        _: Principal = Depends(require_permission(resource, READ)),
        records: RecordsService = Depends(get_records_service),
    ) -> Dict[str, Any]:
        return records.get(resource, record_id)

    def create_record(
        payload: create_model,  # type: ignore[valid-type]
        _: Principal = Depends(require_permission(resource, CREATE)),
        records: RecordsService = Depends(get_records_service),
    ) -> Dict[str, Any]:
        return records.create(resource, payload.model_dump())

    def update_record(
        record_id: int,
        payload: update_model,  # type: ignore[valid-type]
        _: Principal = Depends(require_permission(resource, UPDATE)),
        records: RecordsService = Depends(get_records_service),
    ) -> Dict[str, Any]:
        return records.update(resource, record_id, payload.model_dump(exclude_unset=True))

    def delete_record(
        record_id: int,
        _: Principal = Depends(require_permission(resource, DELETE)),
        records: RecordsService = Depends(get_records_service),
    ) -> Dict[str, Any]:
        records.delete(resource, record_id)
        return {"success": True, "id": record_id}

    name = resource.replace("_", "-")
    router.add_api_route(path, list_records, methods=["GET"], name=f"list-{name}")
    router.add_api_route(
        path, create_record, methods=["POST"], status_code=status.HTTP_201_CREATED, name=f"create-{name}"
    )
    router.add_api_route(f"{path}/{{record_id}}", get_record, methods=["GET"], name=f"get-{name}")
    router.add_api_route(f"{path}/{{record_id}}", update_record, methods=["PUT"], name=f"update-{name}")
    router.add_api_route(f"{path}/{{record_id}}", delete_record, methods=["DELETE"], name=f"delete-{name}")

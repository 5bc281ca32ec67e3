from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from resourcekit.services.resources import ResourceController, row_to_dict


def build_resource_router(
    controller: ResourceController,
    *,
    get_db: Callable[..., Any],
    collection_path: str,
    member_path: str,
) -> APIRouter:
    """Index/create on ``collection_path``, show/update/destroy on ``member_path``.

    For nested resources ``collection_path`` carries the parent parameter,
    e.g. ``/users/{user_id}/projects``, and ``member_path`` the resource id
    as ``{resource_id}``, e.g. ``/projects/{resource_id}``.
    """
    router = APIRouter()

    def _parent_id(request: Request) -> Any:
        if controller.parent is None:
            return None
        return request.path_params.get(controller.parent.param)

    @router.get(collection_path)
    def index(request: Request, db: Session = Depends(get_db)):
        parent_id = _parent_id(request)
        total = controller.scope(db, parent_id).count()
        page = controller.page(request.query_params)
        rows = controller.collection(db, request.query_params, parent_id).all()
        return {
            "rows": [row_to_dict(row) for row in rows],
            "total": total,
            "page": page.model_dump(),
        }

    @router.post(collection_path, status_code=201)
    def create(request: Request, payload: dict[str, Any], db: Session = Depends(get_db)):
        resource = controller.create(db, payload, _parent_id(request))
        return row_to_dict(resource)

    @router.get(member_path)
    def show(resource_id: str, db: Session = Depends(get_db)):
        return row_to_dict(controller.find_resource(db, resource_id))

    @router.patch(member_path)
    def update(resource_id: str, payload: dict[str, Any], db: Session = Depends(get_db)):
        resource = controller.find_resource(db, resource_id)
        return row_to_dict(controller.update(db, resource, payload))

    @router.delete(member_path)
    def destroy(resource_id: str, db: Session = Depends(get_db)):
        resource = controller.find_resource(db, resource_id)
        controller.destroy(db, resource)
        return {"status": "deleted"}

    return router

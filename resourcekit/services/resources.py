from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query, Session

from resourcekit.schemas.pagination import Page
from resourcekit.services.pagination import page_from_params, paginate
from resourcekit.services.params_parser import parse, parse_int
from resourcekit.services.sort_scope import SortScopes

logger = logging.getLogger(__name__)


def row_to_dict(row: Any) -> dict[str, Any]:
    mapper = sa_inspect(type(row))
    return jsonable_encoder({column.key: getattr(row, column.key) for column in mapper.columns})


def _pk_value(model: type, raw: Any) -> Any:
    pk = sa_inspect(model).primary_key
    if len(pk) != 1:
        raise HTTPException(status_code=400, detail="Only single-column primary keys are supported")
    try:
        python_type = pk[0].type.python_type
    except NotImplementedError:
        python_type = str
    if python_type is int:
        return parse_int(raw)
    if python_type is uuid.UUID:
        return parse(raw, lambda value: uuid.UUID(str(value).strip()))
    return raw


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class ParentResource:
    """Parent of a nested resource: ``/users/{user_id}/projects``."""

    model: type
    foreign_key: str
    param: str


class ResourceController:
    """Lookup, scoping and mass-assignment rules for one model.

    For single-table inheritance models the type of a new resource comes
    from the polymorphic discriminator in the payload. Only identities listed
    in ``allowed_types`` may be requested, and each type accepts the base
    ``permitted`` attributes plus its own ``permitted_by_type`` entry.
    """

    def __init__(
        self,
        model: type,
        *,
        parent: Optional[ParentResource] = None,
        permitted: Iterable[str] = (),
        permitted_by_type: Optional[Mapping[str, Iterable[str]]] = None,
        allowed_types: Iterable[str] = (),
        default_type: Optional[str] = None,
        sorting: Optional[SortScopes] = None,
    ):
        self.model = model
        self.parent = parent
        self.permitted = tuple(permitted)
        self.permitted_by_type = {key: tuple(value) for key, value in (permitted_by_type or {}).items()}
        self.allowed_types = tuple(allowed_types)
        self.default_type = default_type
        self.sorting = sorting or SortScopes()

    @property
    def type_attr(self) -> Optional[str]:
        polymorphic_on = sa_inspect(self.model).polymorphic_on
        return polymorphic_on.key if polymorphic_on is not None else None

    def find_parent(self, db: Session, parent_id: Any):
        if self.parent is None:
            return None
        parent = db.get(self.parent.model, _pk_value(self.parent.model, parent_id))
        if parent is None:
            raise HTTPException(status_code=404, detail="Parent record not found")
        return parent

    def find_resource(self, db: Session, resource_id: Any):
        resource = db.get(self.model, _pk_value(self.model, resource_id))
        if resource is None:
            raise HTTPException(status_code=404, detail="Record not found")
        return resource

    def scope(self, db: Session, parent_id: Any = None) -> Query:
        query = db.query(self.model)
        if self.parent is not None:
            parent = self.find_parent(db, parent_id)
            parent_key = sa_inspect(parent).identity[0]
            query = query.filter(getattr(self.model, self.parent.foreign_key) == parent_key)
        return query

    def page(self, params: Mapping[str, Any]) -> Page:
        return page_from_params(params)

    def collection(self, db: Session, params: Mapping[str, Any], parent_id: Any = None) -> Query:
        query = self.sorting.apply(self.scope(db, parent_id), self.model, params)
        return paginate(query, self.page(params))

    def resource_class_by_type(self, type_name: Any) -> type:
        if _is_blank(type_name):
            if self.default_type is None:
                return self.model
            type_name = self.default_type
        if not isinstance(type_name, str) or type_name not in self.allowed_types:
            raise HTTPException(status_code=404, detail=f'Unknown type "{type_name}"')
        mapper = sa_inspect(self.model).polymorphic_map.get(type_name)
        if mapper is None:
            raise HTTPException(status_code=404, detail=f'Unknown type "{type_name}"')
        return mapper.class_

    def permitted_attrs(self, resource_class: type) -> tuple[str, ...]:
        identity = sa_inspect(resource_class).polymorphic_identity
        return self.permitted + self.permitted_by_type.get(identity, ())

    def permitted_params(self, payload: Mapping[str, Any], resource_class: type) -> dict[str, Any]:
        if not isinstance(payload, Mapping):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")
        protected = {self.type_attr}
        if self.parent is not None:
            protected.add(self.parent.foreign_key)
        allowed = set(self.permitted_attrs(resource_class)) - protected
        return {key: value for key, value in payload.items() if key in allowed}

    def build_resource(self, db: Session, payload: Mapping[str, Any], parent_id: Any = None):
        parent = self.find_parent(db, parent_id)
        type_name = payload.get(self.type_attr) if self.type_attr and isinstance(payload, Mapping) else None
        resource_class = self.resource_class_by_type(type_name)
        resource = resource_class(**self.permitted_params(payload, resource_class))
        if parent is not None:
            setattr(resource, self.parent.foreign_key, sa_inspect(parent).identity[0])
        return resource

    def validate(self, resource: Any) -> dict[str, str]:
        errors: dict[str, str] = {}
        for column in sa_inspect(type(resource)).columns:
            if column.primary_key or column.nullable:
                continue
            if column.default is not None or column.server_default is not None:
                continue
            if _is_blank(getattr(resource, column.key)):
                errors[column.key] = "can't be blank"
        return errors

    def _invalid(self, resource: Any, errors: dict[str, str]) -> HTTPException:
        return HTTPException(
            status_code=422,
            detail={"message": "Validation failed", "errors": errors, "resource": row_to_dict(resource)},
        )

    def _commit(self, db: Session, resource: Any) -> None:
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning("resource_integrity_error model=%s error=%s", type(resource).__name__, exc.orig)
            raise HTTPException(status_code=409, detail="Record conflicts with existing data")
        db.refresh(resource)

    def create(self, db: Session, payload: Mapping[str, Any], parent_id: Any = None):
        resource = self.build_resource(db, payload, parent_id)
        errors = self.validate(resource)
        if errors:
            raise self._invalid(resource, errors)
        db.add(resource)
        self._commit(db, resource)
        logger.info("resource_created model=%s id=%s", type(resource).__name__, sa_inspect(resource).identity)
        return resource

    def update(self, db: Session, resource: Any, payload: Mapping[str, Any]):
        # The type of a persisted resource never changes.
        for key, value in self.permitted_params(payload, type(resource)).items():
            setattr(resource, key, value)
        errors = self.validate(resource)
        if errors:
            error = self._invalid(resource, errors)
            db.rollback()
            raise error
        db.add(resource)
        self._commit(db, resource)
        return resource

    def destroy(self, db: Session, resource: Any) -> None:
        db.delete(resource)
        db.commit()
        logger.info("resource_destroyed model=%s", type(resource).__name__)

"""Generic CRUD service shared by the REST route groups.

Each resource (tours, users, reviews, bookings) is one ``ResourceService``
bound to a document store and a pair of pydantic schemas. Route handlers stay
thin: they pass the sanitized request data in and wrap the result.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ValidationError

from app.adapters.store.base import AbstractDocumentStore
from app.core.errors import NotFoundAppError, ValidationAppError
from app.services.query_features import (
    apply_fields,
    apply_sort,
    paginate,
    parse_list_query,
)

logger = logging.getLogger(__name__)

Preparer = Callable[[dict[str, Any]], dict[str, Any]]


def slugify(text: str) -> str:
    """``"The Forest Hiker"`` -> ``"the-forest-hiker"``."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _validation_error(exc: ValidationError) -> ValidationAppError:
    messages = [error["msg"] for error in exc.errors()]
    return ValidationAppError(
        code="validation_error",
        message=f"Invalid input data. {'. '.join(messages)}",
        details={
            "fields": [
                {
                    "loc": [str(part) for part in error["loc"]],
                    "msg": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
        },
    )


class ResourceService:
    """CRUD operations for one collection.

    Attributes:
        resource: Plural resource name (``"tours"``).
        singular: Key used for single documents in responses (``"tour"``).
    """

    def __init__(
        self,
        resource: str,
        store: AbstractDocumentStore,
        *,
        create_schema: type[BaseModel],
        update_schema: type[BaseModel],
        singular: str | None = None,
        page_size: int = 100,
        prepare: Preparer | None = None,
    ) -> None:
        self.resource = resource
        self.singular = singular or resource.rstrip("s")
        self.store = store
        self._create_schema = create_schema
        self._update_schema = update_schema
        self._page_size = page_size
        self._prepare = prepare

    def _validate(self, schema: type[BaseModel], payload: Any, *, partial: bool) -> dict[str, Any]:
        if not isinstance(payload, Mapping):
            raise ValidationAppError(
                code="invalid_body",
                message="Request body must be a JSON object",
            )
        try:
            model = schema.model_validate(dict(payload))
        except ValidationError as exc:
            raise _validation_error(exc) from exc
        data = model.model_dump(by_alias=True, exclude_unset=partial)
        if self._prepare is not None:
            data = self._prepare(data)
        return data

    def list_documents(self, query: Mapping[str, Any]) -> list[dict[str, Any]]:
        options = parse_list_query(query, default_limit=self._page_size)
        documents = self.store.find(options.filters)
        documents = apply_sort(documents, options.sort)
        documents = apply_fields(documents, options.fields)
        return paginate(documents, options.page, options.limit)

    def get(self, doc_id: str) -> dict[str, Any]:
        document = self.store.get(doc_id)
        if document is None:
            raise NotFoundAppError(
                code="document_not_found",
                message="No document found with that ID",
                details={"resource": self.resource},
            )
        return document

    def create(self, payload: Any) -> dict[str, Any]:
        data = self._validate(self._create_schema, payload, partial=False)
        data["createdAt"] = datetime.now(timezone.utc).isoformat()
        document = self.store.insert(data)
        logger.info(
            "resource.created",
            extra={"resource": self.resource, "document_id": document["id"]},
        )
        return document

    def update(self, doc_id: str, payload: Any) -> dict[str, Any]:
        """Apply a partial update.

        The changes are checked on their own, then the merged document is
        checked against the create schema, so an update can neither null out
        a required field nor break a cross-field rule.
        """
        changes = self._validate(self._update_schema, payload, partial=True)
        current = self.get(doc_id)
        try:
            self._create_schema.model_validate({**current, **changes})
        except ValidationError as exc:
            raise _validation_error(exc) from exc
        document = self.store.update(doc_id, changes)
        if document is None:
            raise NotFoundAppError(
                code="document_not_found",
                message="No document found with that ID",
                details={"resource": self.resource},
            )
        return document

    def delete(self, doc_id: str) -> None:
        if not self.store.delete(doc_id):
            raise NotFoundAppError(
                code="document_not_found",
                message="No document found with that ID",
                details={"resource": self.resource},
            )
        logger.info(
            "resource.deleted",
            extra={"resource": self.resource, "document_id": doc_id},
        )

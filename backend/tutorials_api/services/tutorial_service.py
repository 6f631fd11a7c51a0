"""
Tutorials API: Tutorial Service
===============================

What:  CRUD operations over the `tutorials` collection.
How:   Each method awaits one Motor call (the handler suspends only there),
       maps the document to a response schema and translates failures:
           malformed id        → ValidationError (400)
           no matching record  → NotFoundError (404)
           PyMongoError        → DatabaseError (500, details logged only)
       Anything else propagates untouched to the global error handler.
Who:   Built per request by `get_tutorial_service` and called by routes/tutorials.py.

The service holds no state of its own. Per-record atomicity comes from the
store (`find_one_and_update`, `delete_one`).
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from tutorials_api.database import MongoConnector, get_connector
from tutorials_api.exceptions import DatabaseError, NotFoundError, ValidationError
from tutorials_api.models.tutorial import (
    TUTORIAL_COLLECTION,
    TUTORIAL_INDEXES,
    new_tutorial_document,
    update_operation,
)
from tutorials_api.schemas.tutorial import TutorialCreate, TutorialResponse, TutorialUpdate

logger = logging.getLogger(__name__)


def parse_object_id(tutorial_id: str) -> ObjectId:
    """
    Convert a path identifier into an ObjectId.

    Raises:
        ValidationError: The identifier is not a 24-character hex string.
    """
    try:
        return ObjectId(tutorial_id)
    except (InvalidId, TypeError):
        raise ValidationError(
            message=f"Invalid tutorial id '{tutorial_id}'",
            field="id",
        )


def title_filter(title: Optional[str]) -> Dict[str, Any]:
    """
    Case-insensitive substring filter on title.

    The search text is escaped, so `C++` matches the literal characters
    instead of being read as a regular expression.
    """
    if not title:
        return {}
    return {"title": {"$regex": re.escape(title), "$options": "i"}}


class TutorialService:
    """
    Persistence logic for tutorial records.

    Responsibilities:
        - create_tutorial(): insert one record
        - list_tutorials() / list_published(): filtered reads
        - get_tutorial(): single record by id
        - update_tutorial(): partial update by id
        - delete_tutorial() / delete_all_tutorials(): removal
        - ensure_indexes(): called once at startup
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        for keys, options in TUTORIAL_INDEXES:
            await self.collection.create_index(keys, **options)
        logger.info("Ensured %d indexes on '%s'", len(TUTORIAL_INDEXES), TUTORIAL_COLLECTION)

    async def create_tutorial(self, payload: TutorialCreate) -> TutorialResponse:
        """
        Insert a new tutorial.

        Returns:
            The stored record, including its generated id and timestamps.

        Raises:
            DatabaseError: The insert failed.
        """
        document = new_tutorial_document(
            title=payload.title,
            description=payload.description,
            published=payload.published,
        )
        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as e:
            raise self._store_failure("create", e)

        document["_id"] = result.inserted_id
        logger.info("Tutorial created: %s", result.inserted_id)
        return TutorialResponse.from_document(document)

    async def list_tutorials(self, title: Optional[str] = None) -> List[TutorialResponse]:
        """All tutorials, optionally restricted to titles containing `title`."""
        return await self._find(title_filter(title), operation="list")

    async def list_published(self) -> List[TutorialResponse]:
        return await self._find({"published": True}, operation="list_published")

    async def get_tutorial(self, tutorial_id: str) -> TutorialResponse:
        """
        Raises:
            ValidationError: Malformed id (→ 400)
            NotFoundError: No tutorial with that id (→ 404)
            DatabaseError: Query failed (→ 500)
        """
        oid = parse_object_id(tutorial_id)
        try:
            document = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise self._store_failure("get", e, tutorial_id)

        if document is None:
            raise NotFoundError(resource="Tutorial", resource_id=tutorial_id)
        return TutorialResponse.from_document(document)

    async def update_tutorial(self, tutorial_id: str, payload: TutorialUpdate) -> TutorialResponse:
        """
        Apply a partial update and return the record as it is afterwards.

        Raises:
            ValidationError: Malformed id or no fields to update (→ 400)
            NotFoundError: No tutorial with that id (→ 404)
            DatabaseError: Update failed (→ 500)
        """
        oid = parse_object_id(tutorial_id)
        changes = payload.changes()
        if not changes:
            raise ValidationError(message="Data to update can not be empty!")

        try:
            document = await self.collection.find_one_and_update(
                {"_id": oid},
                update_operation(changes),
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise self._store_failure("update", e, tutorial_id)

        if document is None:
            raise NotFoundError(
                resource="Tutorial",
                resource_id=tutorial_id,
                message=f"Cannot update Tutorial with id={tutorial_id}. Maybe Tutorial was not found!",
            )
        logger.info("Tutorial updated: %s (%s)", tutorial_id, ", ".join(sorted(changes)))
        return TutorialResponse.from_document(document)

    async def delete_tutorial(self, tutorial_id: str) -> str:
        """
        Returns:
            The id of the removed tutorial.

        Raises:
            ValidationError / NotFoundError / DatabaseError
        """
        oid = parse_object_id(tutorial_id)
        try:
            result = await self.collection.delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._store_failure("delete", e, tutorial_id)

        if result.deleted_count == 0:
            raise NotFoundError(
                resource="Tutorial",
                resource_id=tutorial_id,
                message=f"Cannot delete Tutorial with id={tutorial_id}. Maybe Tutorial was not found!",
            )
        logger.info("Tutorial deleted: %s", tutorial_id)
        return tutorial_id

    async def delete_all_tutorials(self) -> int:
        """Remove every tutorial and return how many were removed."""
        try:
            result = await self.collection.delete_many({})
        except PyMongoError as e:
            raise self._store_failure("delete_all", e)

        logger.info("Deleted %d tutorials", result.deleted_count)
        return result.deleted_count

    async def _find(self, query: Dict[str, Any], operation: str) -> List[TutorialResponse]:
        try:
            return [
                TutorialResponse.from_document(document)
                async for document in self.collection.find(query)
            ]
        except PyMongoError as e:
            raise self._store_failure(operation, e)

    @staticmethod
    def _store_failure(
        operation: str,
        error: PyMongoError,
        tutorial_id: Optional[str] = None,
    ) -> DatabaseError:
        logger.error("Database error during %s: %s", operation, str(error), exc_info=True)
        context: Dict[str, Any] = {"operation": operation, "error_type": type(error).__name__}
        if tutorial_id:
            context["tutorial_id"] = tutorial_id
        return DatabaseError(
            message="Some error occurred while accessing tutorials. Please try again.",
            context=context,
        )


# ── Dependency ────────────────────────────────────────────────────────────
def get_tutorial_service(
    connector: MongoConnector = Depends(get_connector),
) -> TutorialService:
    """
    FastAPI dependency building a TutorialService on the connector's pool.

    Raises:
        DatabaseConnectionError: The connector is not open (→ 503)
    """
    return TutorialService(connector.get_collection(TUTORIAL_COLLECTION))

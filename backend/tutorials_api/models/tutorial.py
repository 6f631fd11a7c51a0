"""
Tutorials API: Tutorial Document Model
======================================

What:  Layout of a tutorial document in the `tutorials` MongoDB collection.
How:   Plain helpers that build documents for insert/update and describe the
       indexes ensured at startup. API-facing types live in schemas/tutorial.py.

Document layout:
    {
        "_id":         ObjectId,            # server-generated, immutable
        "title":       str,                 # required, non-blank
        "description": str | None,
        "published":   bool,                # defaults to False
        "created_at":  datetime (UTC),      # set on insert
        "updated_at":  datetime (UTC),      # refreshed on every update
    }

Timestamps are truncated to milliseconds, the precision BSON dates keep, so a
record returned from create compares equal to the same record read back.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pymongo

TUTORIAL_COLLECTION = "tutorials"

# (keys, options) pairs passed to Collection.create_index()
TUTORIAL_INDEXES: List[Tuple[List[Tuple[str, int]], Dict[str, Any]]] = [
    ([("title", pymongo.ASCENDING)], {"name": "idx_tutorials_title"}),
    ([("published", pymongo.ASCENDING)], {"name": "idx_tutorials_published"}),
]


def utc_now() -> datetime:
    """Current UTC time at millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def new_tutorial_document(
    title: str,
    description: Optional[str] = None,
    published: bool = False,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build a document ready for insert_one(). `_id` is assigned by the driver."""
    timestamp = now or utc_now()
    return {
        "title": title,
        "description": description,
        "published": published,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


def update_operation(changes: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build a `$set` update for the given field changes, refreshing updated_at."""
    return {"$set": {**changes, "updated_at": now or utc_now()}}

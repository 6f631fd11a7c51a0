"""
Tutorials API: Tutorial Route Handlers
======================================

What:  CRUD endpoints for the tutorial resource under /api/tutorials.
How:   Each handler receives a TutorialService through Depends() and returns
       its result. Validation, not-found and store failures are raised by the
       service as application exceptions and rendered by main.py's handlers.

`/published` is registered before `/{tutorial_id}` so it is not captured as an id.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from tutorials_api.schemas.tutorial import (
    DeleteAllResponse,
    DeleteResponse,
    ErrorResponse,
    TutorialCreate,
    TutorialResponse,
    TutorialUpdate,
)
from tutorials_api.services.tutorial_service import TutorialService, get_tutorial_service

router = APIRouter(prefix="/api/tutorials", tags=["Tutorials"])

_CLIENT_ERROR = {"description": "Invalid id or request body", "model": ErrorResponse}
_NOT_FOUND = {"description": "Tutorial not found", "model": ErrorResponse}
_SERVER_ERROR = {"description": "Database error", "model": ErrorResponse}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TutorialResponse,
    responses={400: _CLIENT_ERROR, 500: _SERVER_ERROR},
    summary="Create a tutorial",
)
async def create_tutorial(
    payload: TutorialCreate,
    service: TutorialService = Depends(get_tutorial_service),
) -> TutorialResponse:
    return await service.create_tutorial(payload)


@router.get(
    "",
    response_model=List[TutorialResponse],
    responses={500: _SERVER_ERROR},
    summary="List tutorials",
    description="Returns every tutorial, or those whose title contains `title` (case-insensitive).",
)
async def list_tutorials(
    title: Optional[str] = Query(default=None, description="Substring to look for in the title"),
    service: TutorialService = Depends(get_tutorial_service),
) -> List[TutorialResponse]:
    return await service.list_tutorials(title=title)


@router.get(
    "/published",
    response_model=List[TutorialResponse],
    responses={500: _SERVER_ERROR},
    summary="List published tutorials",
)
async def list_published_tutorials(
    service: TutorialService = Depends(get_tutorial_service),
) -> List[TutorialResponse]:
    return await service.list_published()


@router.get(
    "/{tutorial_id}",
    response_model=TutorialResponse,
    responses={400: _CLIENT_ERROR, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Get a tutorial by id",
)
async def get_tutorial(
    tutorial_id: str,
    service: TutorialService = Depends(get_tutorial_service),
) -> TutorialResponse:
    return await service.get_tutorial(tutorial_id)


@router.put(
    "/{tutorial_id}",
    response_model=TutorialResponse,
    responses={400: _CLIENT_ERROR, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Update a tutorial",
    description="Partial update: fields missing from the body are left unchanged.",
)
async def update_tutorial(
    tutorial_id: str,
    payload: TutorialUpdate,
    service: TutorialService = Depends(get_tutorial_service),
) -> TutorialResponse:
    return await service.update_tutorial(tutorial_id, payload)


@router.delete(
    "/{tutorial_id}",
    response_model=DeleteResponse,
    responses={400: _CLIENT_ERROR, 404: _NOT_FOUND, 500: _SERVER_ERROR},
    summary="Delete a tutorial",
)
async def delete_tutorial(
    tutorial_id: str,
    service: TutorialService = Depends(get_tutorial_service),
) -> DeleteResponse:
    deleted_id = await service.delete_tutorial(tutorial_id)
    return DeleteResponse(id=deleted_id)


@router.delete(
    "",
    response_model=DeleteAllResponse,
    responses={500: _SERVER_ERROR},
    summary="Delete all tutorials",
)
async def delete_all_tutorials(
    service: TutorialService = Depends(get_tutorial_service),
) -> DeleteAllResponse:
    deleted_count = await service.delete_all_tutorials()
    return DeleteAllResponse(
        message=f"{deleted_count} Tutorials were deleted successfully!",
        deleted_count=deleted_count,
    )

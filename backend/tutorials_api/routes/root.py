"""Tutorials API: Root route."""

from fastapi import APIRouter

from tutorials_api.schemas.tutorial import MessageResponse

router = APIRouter(tags=["Root"])


@router.get("/", response_model=MessageResponse, summary="Welcome message")
async def root() -> MessageResponse:
    return MessageResponse(message="Welcome to the Tutorials API.")

"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from app.schemas import ErrorResponse, HealthResponse
from models.query import MalformedQueryError
from services.graph import GraphParseError
from services.temporal_store import build_default_temporal_store
from settings import get_settings
from storage.resource_store import RepresentationPreferences, ResourceNotFound, ResourceStore

router = APIRouter()


def get_store() -> ResourceStore:
    return build_default_temporal_store()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get(
    "/{resource_path:path}",
    summary="Read a resource, evaluating temporal queries on temporal containers.",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def read_resource(
    resource_path: str,
    request: Request,
    accept: Optional[str] = Header(default=None),
    store: ResourceStore = Depends(get_store),
) -> Response:
    identifier = f"{get_settings().base_url}{resource_path}"
    if request.url.query:
        identifier = f"{identifier}?{request.url.query}"

    try:
        representation = await store.get_representation(
            identifier, RepresentationPreferences.from_accept(accept)
        )
    except ResourceNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resource {exc.identifier!r} not found.",
        ) from exc
    except MalformedQueryError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except GraphParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    body = representation.read()
    return Response(content=body, media_type=representation.content_type)

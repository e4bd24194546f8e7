"""Liveness endpoints."""
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
def root() -> str:
    return "notify-api ok"


@router.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}

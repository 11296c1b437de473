from typing import Dict

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
def root() -> Dict[str, str]:
    return {"message": "Seoul CrowdMap API"}


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}

"""
Camp API endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from auth import dependencies as auth_dependencies

from . import repository, schemas

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(auth_dependencies.get_current_user)])


@router.get("/camps")
async def list_camps() -> list[dict]:
    return await repository.list_camps()


@router.post("/camps")
async def create_camp(payload: schemas.CreateCampRequest) -> dict:
    return await repository.create_camp(name=payload.name, description=payload.description)


@router.delete("/camps/{camp_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_camp(camp_id: int) -> Response:
    """
    Delete a camp. Handles in the camp are kept with camp_id set to null.
    """
    if not await repository.delete_camp(camp_id):
        raise HTTPException(status_code=404, detail="Camp not found")
    logger.info("camp_deleted camp_id=%s", camp_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

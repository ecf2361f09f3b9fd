import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from formapi.security import Session, get_session
from formapi.models.form import Response, ResponseIn
from formapi.routers.form import load_form
from formapi.validation import validate_entries
from formapi.database import database, response_table

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/add_response", status_code=201)
async def add_response(
    response: ResponseIn,
    session: Annotated[Session, Depends(get_session)],
):
    form = await load_form(response.form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")

    errors = validate_entries(form, response.entries)
    if errors:
        logger.debug(f"Rejected response for form {form.id}: {errors}")
        raise HTTPException(
            status_code=400,
            detail={"message": next(iter(errors.values())), "error": errors},
        )

    query = response_table.insert().values(
        form_id=form.id,
        creator_id=session.user.id if session.is_authenticated else None,
        entries=[e.model_dump() for e in response.entries],
    )

    logger.debug(query)

    response_id = await database.execute(query)
    return {
        "message": "Response saved successfully",
        "success": True,
        "data": {"_id": response_id, "formId": form.id},
    }


@router.get("/get_responses", status_code=200)
async def get_responses(
    session: Annotated[Session, Depends(get_session)],
    form_id: int = Query(..., alias="formId"),
):
    form = await load_form(form_id)
    if form:
        session.require_user_id(form.creator_id)

    # responses outlive their form, so a deleted form still lists them
    query = response_table.select().where(
        response_table.c.form_id == form_id
    ).order_by(response_table.c.created_at.desc(), response_table.c.id.desc())
    rows = await database.fetch_all(query)
    responses = [
        Response(
            id=row.id,
            form_id=row.form_id,
            creator_id=row.creator_id,
            created_at=row.created_at,
            entries=row.entries,
        ).model_dump(by_alias=True, mode="json")
        for row in rows
    ]
    return {"message": "Responses fetched successfully", "success": True, "data": responses}

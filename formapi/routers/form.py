import logging
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from formapi.config import config
from formapi.security import Session, get_session
from formapi.models.form import Form, FormField, FormIn
from formapi.database import (
    database,
    form_table,
    formfield_table,
    user_table,
)


logger = logging.getLogger(__name__)
router = APIRouter()


def share_url(form_id: int) -> str:
    return f"{config.PUBLIC_BASE_URL.rstrip('/')}/form/{form_id}"


def _build_form(row, field_rows) -> Form:
    return Form(
        id=row.id,
        creator_id=row.creator_id,
        title=row.title,
        created_at=row.created_at,
        share_url=share_url(row.id),
        fields=[
            FormField(
                id=f.field_id,
                label=f.label,
                type=f.field_type,
                options=f.options,
                required=f.required,
            )
            for f in field_rows
        ],
    )


def dump_form(form: Form) -> dict:
    return form.model_dump(by_alias=True, mode="json")


async def load_form(form_id: int, creator_id: Optional[int] = None) -> Optional[Form]:
    query = form_table.select().where(form_table.c.id == form_id)
    if creator_id is not None:
        query = query.where(form_table.c.creator_id == creator_id)
    row = await database.fetch_one(query)
    if not row:
        return None

    fields_query = formfield_table.select().where(
        formfield_table.c.form_id == form_id
    ).order_by(formfield_table.c.order)
    field_rows = await database.fetch_all(fields_query)
    return _build_form(row, field_rows)


async def load_forms(creator_id: int) -> List[Form]:
    query = form_table.select().where(
        form_table.c.creator_id == creator_id
    ).order_by(form_table.c.created_at.desc(), form_table.c.id.desc())
    rows = await database.fetch_all(query)
    if not rows:
        return []

    fields_query = formfield_table.select().where(
        formfield_table.c.form_id.in_([r.id for r in rows])
    ).order_by(formfield_table.c.form_id, formfield_table.c.order)
    fields_by_form: Dict[int, list] = {}
    for f in await database.fetch_all(fields_query):
        fields_by_form.setdefault(f.form_id, []).append(f)

    return [_build_form(row, fields_by_form.get(row.id, [])) for row in rows]


@router.post("/add_form", status_code=201)
async def add_form(form: FormIn, session: Annotated[Session, Depends(get_session)]):
    session.require_user_id(form.creator_id)

    creator = await database.fetch_one(
        user_table.select().where(user_table.c.id == form.creator_id)
    )
    if not creator:
        raise HTTPException(status_code=404, detail="Creator not found")

    async with database.transaction():
        query = form_table.insert().values(
            creator_id=form.creator_id,
            title=form.title,
        )
        logger.debug(query)
        form_id = await database.execute(query)

        for order, f in enumerate(form.fields):
            query_field = formfield_table.insert().values(
                form_id=form_id,
                field_id=f.id,
                label=f.label,
                field_type=f.type.value,
                required=f.required,
                options=f.options,
                order=order,
            )
            await database.execute(query_field)

    saved = await load_form(form_id)
    logger.info(f"Form {form_id} created by user {form.creator_id}")
    return {"message": "Form saved successfully", "success": True, "data": dump_form(saved)}


@router.get("/get_forms/{creator_id}", status_code=200)
async def get_forms(creator_id: int, session: Annotated[Session, Depends(get_session)]):
    session.require_user_id(creator_id)
    forms = await load_forms(creator_id)
    return {
        "message": "Forms fetched successfully",
        "success": True,
        "data": [dump_form(f) for f in forms],
    }


@router.get("/getA_form/{form_id}/{creator_id}", status_code=200)
async def get_owned_form(
    form_id: int,
    creator_id: int,
    session: Annotated[Session, Depends(get_session)],
):
    session.require_user_id(creator_id)
    form = await load_form(form_id, creator_id=creator_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return {"message": "Form fetched successfully", "success": True, "data": dump_form(form)}


# target of the shareable link, open to respondents
@router.get("/form/{form_id}", status_code=200)
async def get_public_form(form_id: int):
    form = await load_form(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return {"message": "Form fetched successfully", "success": True, "data": dump_form(form)}


@router.delete("/delete_form/{form_id}/{creator_id}", status_code=200)
async def delete_form(
    form_id: int,
    creator_id: int,
    session: Annotated[Session, Depends(get_session)],
):
    session.require_user_id(creator_id)
    form = await load_form(form_id, creator_id=creator_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")

    async with database.transaction():
        await database.execute(
            formfield_table.delete().where(formfield_table.c.form_id == form_id)
        )
        await database.execute(form_table.delete().where(form_table.c.id == form_id))

    logger.info(f"Form {form_id} deleted by user {creator_id}")
    return {"message": "Form deleted successfully", "success": True, "data": {"_id": form_id}}

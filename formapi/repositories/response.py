import datetime
import logging
from typing import Dict, List

from formapi.database import database, form_table, response_table
from formapi.errors import NotFound
from formapi.models.response import FormResponse
from formapi.repositories.form import authorize_form_owner

logger = logging.getLogger(__name__)


def _to_response(row) -> FormResponse:
    return FormResponse(
        id=row.id,
        form_id=row.form_id,
        answers=row.answers,
        created_at=row.created_at,
    )


async def submit_response(form_id: int, answers: Dict[str, str]) -> FormResponse:
    # Required questions are checked by the client, not here.
    form = await database.fetch_one(form_table.select().where(form_table.c.id == form_id))
    if form is None:
        raise NotFound("Form not found")

    query = response_table.insert().values(
        form_id=form_id,
        answers=answers,
        created_at=datetime.datetime.now(datetime.timezone.utc),
    )
    response_id = await database.execute(query)
    logger.info("Recorded response", extra={"form_id": form_id, "response_id": response_id})

    row = await database.fetch_one(response_table.select().where(response_table.c.id == response_id))
    return _to_response(row)


async def list_responses(form_id: int, user_id: int) -> List[FormResponse]:
    await authorize_form_owner(form_id, user_id)
    query = (
        response_table.select()
        .where(response_table.c.form_id == form_id)
        .order_by(response_table.c.created_at.desc(), response_table.c.id.desc())
    )
    rows = await database.fetch_all(query)
    return [_to_response(row) for row in rows]


async def delete_response(response_id: int, user_id: int) -> None:
    query = response_table.select().where(response_table.c.id == response_id)
    response = await database.fetch_one(query)
    if response is None:
        raise NotFound("Response not found")

    await authorize_form_owner(response.form_id, user_id)
    await database.execute(response_table.delete().where(response_table.c.id == response_id))
    logger.info("Deleted response", extra={"response_id": response_id, "user_id": user_id})

import datetime
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import sqlalchemy

from formapi.database import (
    database,
    form_table,
    option_table,
    question_table,
    response_table,
)
from formapi.errors import NotFound
from formapi.models.form import Form, FormTreeIn, Option, Question, QuestionIn
from formapi.security import authorize_owner

logger = logging.getLogger(__name__)


async def authorize_form_owner(form_id: int, user_id: int):
    """Load a form row and make sure ``user_id`` owns it.

    Every owner-only operation goes through here before it writes or reads
    anything private.
    """
    query = form_table.select().where(form_table.c.id == form_id)
    form = await database.fetch_one(query)
    if form is None:
        raise NotFound("Form not found")
    authorize_owner(user_id, form.user_id)
    return form


async def _insert_questions(form_id: int, questions: List[QuestionIn]) -> None:
    for index, q in enumerate(questions):
        query = question_table.insert().values(
            form_id=form_id,
            text=q.text,
            type=q.type,
            required=q.required,
            order=index,
        )
        question_id = await database.execute(query)
        if q.options:
            await database.execute_many(
                option_table.insert(),
                [
                    {"question_id": question_id, "text": text, "order": option_index}
                    for option_index, text in enumerate(q.options)
                ],
            )


async def _delete_questions(form_id: int) -> None:
    question_ids = sqlalchemy.select(question_table.c.id).where(
        question_table.c.form_id == form_id
    )
    await database.execute(
        option_table.delete().where(option_table.c.question_id.in_(question_ids))
    )
    await database.execute(question_table.delete().where(question_table.c.form_id == form_id))


async def response_counts(form_ids: Sequence[int]) -> Dict[int, int]:
    if not form_ids:
        return {}
    query = (
        sqlalchemy.select(
            response_table.c.form_id,
            sqlalchemy.func.count(response_table.c.id).label("response_count"),
        )
        .where(response_table.c.form_id.in_(form_ids))
        .group_by(response_table.c.form_id)
    )
    rows = await database.fetch_all(query)
    return {row.form_id: row.response_count for row in rows}


async def _build_trees(form_rows) -> List[Form]:
    """Attach questions, options and response counts to form rows.

    One query per level regardless of how many forms are passed in.
    """
    form_ids = [row.id for row in form_rows]
    if not form_ids:
        return []

    question_rows = await database.fetch_all(
        question_table.select()
        .where(question_table.c.form_id.in_(form_ids))
        .order_by(question_table.c.form_id, question_table.c["order"], question_table.c.id)
    )
    question_ids = [row.id for row in question_rows]

    options_by_question: Dict[int, List[Option]] = defaultdict(list)
    if question_ids:
        option_rows = await database.fetch_all(
            option_table.select()
            .where(option_table.c.question_id.in_(question_ids))
            .order_by(option_table.c.question_id, option_table.c["order"], option_table.c.id)
        )
        for row in option_rows:
            options_by_question[row.question_id].append(
                Option(id=row.id, question_id=row.question_id, text=row.text, order=row.order)
            )

    questions_by_form: Dict[int, List[Question]] = defaultdict(list)
    for row in question_rows:
        questions_by_form[row.form_id].append(
            Question(
                id=row.id,
                form_id=row.form_id,
                text=row.text,
                type=row.type,
                required=row.required,
                order=row.order,
                options=options_by_question[row.id],
            )
        )

    counts = await response_counts(form_ids)
    return [
        Form(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            created_at=row.created_at,
            questions=questions_by_form[row.id],
            response_count=counts.get(row.id, 0),
        )
        for row in form_rows
    ]


async def get_form(form_id: int) -> Optional[Form]:
    query = form_table.select().where(form_table.c.id == form_id)
    row = await database.fetch_one(query)
    if row is None:
        return None
    trees = await _build_trees([row])
    return trees[0]


async def list_forms_by_owner(user_id: int) -> List[Form]:
    query = (
        form_table.select()
        .where(form_table.c.user_id == user_id)
        .order_by(form_table.c.created_at.desc(), form_table.c.id.desc())
    )
    rows = await database.fetch_all(query)
    return await _build_trees(rows)


async def create_form(user_id: int, tree: FormTreeIn) -> Form:
    async with database.transaction():
        query = form_table.insert().values(
            user_id=user_id,
            title=tree.form.title,
            description=tree.form.description,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
        form_id = await database.execute(query)
        await _insert_questions(form_id, tree.questions)

    logger.info(
        "Created form",
        extra={"form_id": form_id, "user_id": user_id, "questions": len(tree.questions)},
    )
    return await get_form(form_id)


async def replace_form(form_id: int, user_id: int, tree: FormTreeIn) -> Form:
    """Overwrite a form's fields and rebuild its whole question/option subtree.

    Question and option ids are regenerated. Responses keep their answer keys,
    so answers recorded against the old questions no longer match anything.
    """
    async with database.transaction():
        await authorize_form_owner(form_id, user_id)
        query = (
            form_table.update()
            .where(form_table.c.id == form_id)
            .values(title=tree.form.title, description=tree.form.description)
        )
        await database.execute(query)
        await _delete_questions(form_id)
        await _insert_questions(form_id, tree.questions)

    logger.info(
        "Replaced form",
        extra={"form_id": form_id, "user_id": user_id, "questions": len(tree.questions)},
    )
    return await get_form(form_id)


async def delete_form(form_id: int, user_id: int) -> None:
    async with database.transaction():
        await authorize_form_owner(form_id, user_id)
        await _delete_questions(form_id)
        await database.execute(response_table.delete().where(response_table.c.form_id == form_id))
        await database.execute(form_table.delete().where(form_table.c.id == form_id))

    logger.info("Deleted form", extra={"form_id": form_id, "user_id": user_id})

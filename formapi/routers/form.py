from typing import Annotated, List

from fastapi import APIRouter, Depends, Response
from formapi.errors import NotFound
from formapi.models.form import Form, FormTreeIn
from formapi.models.response import FormResponse, ResponseIn
from formapi.repositories import form as form_repository
from formapi.repositories import response as response_repository
from formapi.security import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[Form], status_code=200)
async def list_forms(user_id: Annotated[int, Depends(get_current_user_id)]):
    return await form_repository.list_forms_by_owner(user_id)


@router.get("/{fid}", response_model=Form, status_code=200)
async def get_form(fid: int):
    form = await form_repository.get_form(fid)
    if form is None:
        raise NotFound("Form not found")
    return form


@router.post("", response_model=Form, status_code=201)
async def create_form(tree: FormTreeIn, user_id: Annotated[int, Depends(get_current_user_id)]):
    return await form_repository.create_form(user_id, tree)


@router.put("/{fid}", response_model=Form, status_code=200)
async def update_form(
    fid: int, tree: FormTreeIn, user_id: Annotated[int, Depends(get_current_user_id)]
):
    return await form_repository.replace_form(fid, user_id, tree)


@router.delete("/{fid}", status_code=204)
async def delete_form(fid: int, user_id: Annotated[int, Depends(get_current_user_id)]):
    await form_repository.delete_form(fid, user_id)
    return Response(status_code=204)


@router.post("/{fid}/responses", response_model=FormResponse, status_code=201)
async def submit_response(fid: int, response: ResponseIn):
    return await response_repository.submit_response(fid, response.answers)


@router.get("/{fid}/responses", response_model=List[FormResponse], status_code=200)
async def list_responses(fid: int, user_id: Annotated[int, Depends(get_current_user_id)]):
    return await response_repository.list_responses(fid, user_id)

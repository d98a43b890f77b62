from typing import Annotated

from fastapi import APIRouter, Depends, Response
from formapi.repositories import response as response_repository
from formapi.security import get_current_user_id

router = APIRouter()


@router.delete("/{rid}", status_code=204)
async def delete_response(rid: int, user_id: Annotated[int, Depends(get_current_user_id)]):
    await response_repository.delete_response(rid, user_id)
    return Response(status_code=204)

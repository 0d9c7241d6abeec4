from fastapi import APIRouter, Depends, Query
from typing import Optional

from ...api.deps import get_current_user_optional
from ...core.access import resolve_path
from ...models.user import User

router = APIRouter(prefix="/access", tags=["Access"])

@router.get("/resolve")
async def resolve(
    path: str = Query(..., min_length=1),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Tell the client whether it may render ``path`` or where to redirect."""
    decision = resolve_path(current_user, path)
    return {
        "path": path,
        "state": decision.state.value,
        "redirect": decision.redirect,
    }

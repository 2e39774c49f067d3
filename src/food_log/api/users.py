"""Credential check endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request
from pydantic import ValidationError

from food_log.api.models import UserPassword
from food_log.domain.errors import EntryValidationError
from food_log.domain.users import Verdict

if TYPE_CHECKING:
    from food_log.containers import AppContainer

router = APIRouter(prefix="/api", tags=["users"])

_PASS_VALUES = {
    Verdict.MATCH: "yes",
    Verdict.MISMATCH: "no",
    Verdict.REGISTERED: "new",
    Verdict.REJECTED: "no",
}


@router.get("/userPassword")
async def user_password(
    request: Request, user_password: str = Query(alias="userPassword")
) -> dict[str, str]:
    """Check a name/password pair, registering the name on first use."""
    container: AppContainer = request.app.state.container
    try:
        credentials = UserPassword.model_validate_json(user_password)
    except ValidationError as exc:
        raise EntryValidationError(
            "userPassword must be a JSON object with string name and password."
        ) from exc
    verdict = await container.credential_service.check_or_register(
        credentials.name, credentials.password
    )
    return {"pass": _PASS_VALUES[verdict]}

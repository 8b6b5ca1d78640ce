"""Result-to-HTTP translation and session cookie helpers."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse

from shared.results import ErrorKind, Failure, failure_payload

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from shared.auth.settings import AuthSettings
    from shared.results import Result

STATUS_BY_ERROR: dict[ErrorKind, HTTPStatus] = {
    ErrorKind.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIALS: HTTPStatus.UNAUTHORIZED,
    ErrorKind.ACCOUNT_NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.CHARACTER_NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.EMAIL_TAKEN: HTTPStatus.CONFLICT,
    ErrorKind.USERNAME_TAKEN: HTTPStatus.CONFLICT,
    ErrorKind.DUPLICATE_NAME: HTTPStatus.CONFLICT,
    ErrorKind.STORE_FAILURE: HTTPStatus.SERVICE_UNAVAILABLE,
}


class InvalidRequestBody(Exception):
    """The request body is not a JSON object matching the expected shape."""


def status_for(kind: ErrorKind) -> HTTPStatus:
    return STATUS_BY_ERROR.get(kind, HTTPStatus.BAD_REQUEST)


def result_response(result: Result, *, success_status: int = HTTPStatus.OK) -> JSONResponse:
    """Serialize a service result; failures get the status mapped from their kind."""
    if isinstance(result, Failure):
        return JSONResponse(result.model_dump(mode="json"), status_code=status_for(result.error))
    return JSONResponse(result.model_dump(mode="json"), status_code=success_status)


def invalid_request_response() -> JSONResponse:
    return JSONResponse(failure_payload(ErrorKind.INVALID_REQUEST), status_code=HTTPStatus.BAD_REQUEST)


async def parse_json_body[M: BaseModel](request: Request, model: type[M]) -> M:
    """Parse and validate a JSON object body. Raise InvalidRequestBody on any mismatch."""
    if request.headers.get("content-type", "").split(";")[0].strip().lower() != "application/json":
        raise InvalidRequestBody("expected application/json")
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError) as e:
        raise InvalidRequestBody("malformed JSON") from e
    if not isinstance(body, dict):
        raise InvalidRequestBody("expected a JSON object")
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidRequestBody(str(e)) from e


def set_session_cookie(response: Response, token: str, auth_settings: AuthSettings) -> None:
    response.set_cookie(
        key=auth_settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=auth_settings.cookie_secure,
        max_age=auth_settings.session_max_age_seconds,
        path="/",
    )


def clear_session_cookie(response: Response, auth_settings: AuthSettings) -> None:
    response.delete_cookie(
        key=auth_settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=auth_settings.cookie_secure,
        path="/",
    )

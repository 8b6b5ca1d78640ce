"""Account API: profile, secondary password, characters, and jpoint transfer.

Every endpoint is wrapped with ``protected_api``, so ``caller_of`` always
returns an identity here; the services still fail closed on None.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from portal.views.handlers import caller_of
from portal.views.responses import InvalidRequestBody, invalid_request_response, parse_json_body, result_response
from portal.views.types import (
    CreateCharacterRequest,
    DeleteCharacterRequest,
    RemoveSecondaryPasswordRequest,
    SetSecondaryPasswordRequest,
    TransferJPointRequest,
)

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from shared.account.service import AccountService


def _account_service(request: Request) -> AccountService:
    return request.app.state.account_service


async def get_profile(request: Request) -> Response:
    """GET /api/account/profile - ``data`` is null when the session outlived its account."""
    result = await _account_service(request).get_profile(caller_of(request))
    return result_response(result)


async def set_secondary_password(request: Request) -> Response:
    """POST /api/account/secondary-password {newPassword, currentPassword?}."""
    try:
        body = await parse_json_body(request, SetSecondaryPasswordRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await _account_service(request).set_secondary_password(
        caller_of(request),
        new_password=body.new_password,
        current_password=body.current_password,
    )
    return result_response(result)


async def remove_secondary_password(request: Request) -> Response:
    """POST /api/account/secondary-password/remove {currentPassword}."""
    try:
        body = await parse_json_body(request, RemoveSecondaryPasswordRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await _account_service(request).remove_secondary_password(
        caller_of(request),
        current_password=body.current_password,
    )
    return result_response(result)


async def list_characters(request: Request) -> Response:
    """GET /api/characters - the caller's characters, highest level first."""
    result = await _account_service(request).list_characters(caller_of(request))
    return result_response(result)


async def create_character(request: Request) -> Response:
    """POST /api/characters {name}."""
    try:
        body = await parse_json_body(request, CreateCharacterRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await _account_service(request).create_character(caller_of(request), name=body.name)
    return result_response(result, success_status=HTTPStatus.CREATED)


async def delete_character(request: Request) -> Response:
    """POST /api/characters/delete {characterId, secondaryPassword?}."""
    try:
        body = await parse_json_body(request, DeleteCharacterRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await _account_service(request).delete_character(
        caller_of(request),
        character_id=body.character_id,
        secondary_password=body.secondary_password,
    )
    return result_response(result)


async def transfer_jpoint(request: Request) -> Response:
    """POST /api/characters/transfer {fromCharacterId, toCharacterId, amount}."""
    try:
        body = await parse_json_body(request, TransferJPointRequest)
    except InvalidRequestBody:
        return invalid_request_response()

    result = await _account_service(request).transfer_jpoint(
        caller_of(request),
        from_character_id=body.from_character_id,
        to_character_id=body.to_character_id,
        amount=body.amount,
    )
    return result_response(result)

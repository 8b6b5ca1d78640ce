"""Request bodies accepted by the portal's JSON endpoints.

Field names are camelCase on the wire (``newPassword``, ``fromCharacterId``)
and snake_case in Python. Missing credential fields default to empty strings
so the services can report them with their own error kinds.
"""

from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel


class _RequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class LoginRequest(_RequestBody):
    email: str = ""
    password: str = ""


class RegisterRequest(_RequestBody):
    username: str = ""
    email: str = ""
    password: str = ""


class SetSecondaryPasswordRequest(_RequestBody):
    new_password: str = ""
    current_password: str | None = None


class RemoveSecondaryPasswordRequest(_RequestBody):
    current_password: str = ""


class CreateCharacterRequest(_RequestBody):
    name: str = ""


class DeleteCharacterRequest(_RequestBody):
    character_id: str
    secondary_password: str | None = None


class TransferJPointRequest(_RequestBody):
    from_character_id: str
    to_character_id: str
    amount: StrictInt

"""Request dependencies for route handlers."""

from fastapi import HTTPException, Request, status

from studyhub.core.accounts import AccountNotFoundError
from studyhub.core.entities import Material, UserAccount
from studyhub.core.library import MaterialNotFoundError
from studyhub.services import Services


def get_services(request: Request) -> Services:
    """The service container built at startup."""
    return request.app.state.services


def require_account(services: Services, user_id: str) -> UserAccount:
    try:
        return services.accounts.get(user_id)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def require_material(services: Services, material_id: str) -> Material:
    try:
        return services.library.get_material(material_id)
    except MaterialNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

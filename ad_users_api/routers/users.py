from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from ..ad import UserCreationRequest
from ..ad.errors import DeleteFailed, NotFound, ProvisionError, SearchFailed
from ..bootstrap import DirectoryContext
from ..deps import ensure_directory_ready
from ..responses import api_response
from ..services import create_account, delete_account, fetch_all

router = APIRouter()
log = logging.getLogger(__name__)


@router.options("/users")
def options_users():
    return api_response("Options for /users", status.HTTP_200_OK)


@router.options("/users/{uname}")
def options_user(uname: str):
    return api_response("Options for /users", status.HTTP_200_OK)


@router.get("/users")
def list_users(ctx: DirectoryContext = Depends(ensure_directory_ready)):
    try:
        users = fetch_all(ctx.session, ctx.base_dn)
    except SearchFailed as e:
        log.error("Listing users failed: %s", e)
        return api_response("Error Fetching Users", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return api_response("Success", status.HTTP_200_OK, users)


@router.post("/users")
def create_user(user: UserCreationRequest, ctx: DirectoryContext = Depends(ensure_directory_ready)):
    try:
        account = create_account(ctx.session, user, ctx.base_dn, strict=ctx.provision_strict)
    except ProvisionError as e:
        log.error("Creating %s failed: %s", user.sAMAccountName, e)
        return api_response("Error Creating User", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return api_response("Created", status.HTTP_201_CREATED, account)


@router.delete("/users/{uname}")
def delete_user(uname: str, ctx: DirectoryContext = Depends(ensure_directory_ready)):
    try:
        delete_account(ctx.session, ctx.base_dn, uname)
    except NotFound:
        return api_response("User Not Found", status.HTTP_404_NOT_FOUND)
    except (DeleteFailed, SearchFailed) as e:
        log.error("Deleting %s failed: %s", uname, e)
        return api_response("Error Deleting User", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return api_response("Deleted", status.HTTP_200_OK)

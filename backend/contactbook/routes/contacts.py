"""
ContactBook Backend - Contact Route Handlers
=============================================

What:  CRUD endpoints for the authenticated user's contacts.
How:   Every handler depends on require_auth; the resolved user id scopes
       every service call. Validation of body, query and path happens
       before the handler runs.

Endpoints:
    POST   /contacts          → 201 {success, data}
    GET    /contacts          → 200 {success, data, pagination}
    GET    /contacts/{id}     → 200 {success, data}
    PUT    /contacts/{id}     → 200 {success, data}   (partial update)
    DELETE /contacts/{id}     → 200 {success, message}
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.database import get_db_session
from contactbook.dependencies import require_auth
from contactbook.schemas.common import ErrorResponse, MessageResponse
from contactbook.schemas.contact import (
    ContactCreate,
    ContactEnvelope,
    ContactListResponse,
    ContactResponse,
    ContactUpdate,
    ListContactsParams,
    SortField,
    SortOrder,
)
from contactbook.services.contact_service import contact_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Contacts"])

AUTH_ERRORS = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
NOT_FOUND = {404: {"description": "No such contact for this user", "model": ErrorResponse}}
INVALID = {400: {"description": "Validation failed", "model": ErrorResponse}}
DUPLICATE = {409: {"description": "Email already used by another contact", "model": ErrorResponse}}

ContactId = Annotated[str, Path(min_length=1, description="Contact ID")]


@router.post(
    "",
    response_model=ContactEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={**INVALID, **AUTH_ERRORS, **DUPLICATE},
    summary="Create a contact",
)
async def create_contact(
    body: ContactCreate,
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ContactEnvelope:
    contact = await contact_service.create_contact(db, user_id, body.model_dump())
    return ContactEnvelope(data=ContactResponse.model_validate(contact))


@router.get(
    "",
    response_model=ContactListResponse,
    responses={**INVALID, **AUTH_ERRORS},
    summary="List contacts with search, sorting and pagination",
)
async def list_contacts(
    page: int = Query(default=1, gt=0, description="1-based page number"),
    limit: int = Query(default=10, gt=0, le=100, description="Items per page (max 100)"),
    search: str = Query(
        default="",
        max_length=200,
        description="Case-insensitive substring matched against name or email",
    ),
    sort_by: SortField = Query(default="createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ContactListResponse:
    params = ListContactsParams(
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    contacts, pagination = await contact_service.list_contacts(db, user_id, params)
    return ContactListResponse(
        data=[ContactResponse.model_validate(c) for c in contacts],
        pagination=pagination,
    )


@router.get(
    "/{contact_id}",
    response_model=ContactEnvelope,
    responses={**AUTH_ERRORS, **NOT_FOUND},
    summary="Get one contact",
)
async def get_contact(
    contact_id: ContactId,
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ContactEnvelope:
    contact = await contact_service.get_contact_by_id(db, user_id, contact_id)
    return ContactEnvelope(data=ContactResponse.model_validate(contact))


@router.put(
    "/{contact_id}",
    response_model=ContactEnvelope,
    responses={**INVALID, **AUTH_ERRORS, **NOT_FOUND, **DUPLICATE},
    summary="Update some or all fields of a contact",
)
async def update_contact(
    body: ContactUpdate,
    contact_id: ContactId,
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> ContactEnvelope:
    contact = await contact_service.update_contact(db, user_id, contact_id, body.changes())
    return ContactEnvelope(data=ContactResponse.model_validate(contact))


@router.delete(
    "/{contact_id}",
    response_model=MessageResponse,
    responses={**AUTH_ERRORS, **NOT_FOUND},
    summary="Delete a contact",
)
async def delete_contact(
    contact_id: ContactId,
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await contact_service.delete_contact(db, user_id, contact_id)
    return MessageResponse(message="Contact deleted successfully")

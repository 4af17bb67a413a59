"""
FastAPI backend: REST API for contacts.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
import threading
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from rolodex.application import (
    ContactRepository,
    CorruptContactRecord,
    KeyValueStore,
    StoreUnavailable,
)
from rolodex.domain import ContactPatch
from rolodex.infrastructure import InMemoryKeyValueStore, RedisKeyValueStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

STORE_REDIS = "redis"
STORE_MEMORY = "memory"

MSG_LISTED = "Successfully retrieved the contacts list"
MSG_RETRIEVED = "Contact successfully retrieved"
MSG_CREATED = "Contact successfully added"
MSG_UPDATED = "Contact correctly updated"
MSG_DELETED = "Contact correctly deleted"
MSG_NOT_FOUND = "Contact not found"
MSG_INVALID_BODY = "Invalid request body"
MSG_STORE_UNAVAILABLE = "Contact store unavailable"
MSG_CORRUPT = "Stored contact is corrupt"

CONTACTS_TAG = "Contacts"


def _create_store() -> KeyValueStore:
    backend = os.environ.get("ROLODEX_STORE", STORE_REDIS).strip().lower()
    if backend == STORE_MEMORY:
        logger.warning("Using in-memory contact store; data is lost on restart.")
        return InMemoryKeyValueStore()
    if backend != STORE_REDIS:
        raise ValueError(
            f"Unknown ROLODEX_STORE {backend!r}; expected {STORE_REDIS!r} or {STORE_MEMORY!r}."
        )
    url = os.environ.get("REDIS_URL", "redis://localhost:6379/0").strip()
    timeout = float(os.environ.get("REDIS_SOCKET_TIMEOUT", "5").strip())
    return RedisKeyValueStore.from_url(url, socket_timeout=timeout)


_store_lock = threading.Lock()


def _get_cached_store(app: FastAPI) -> KeyValueStore:
    # Handlers run on the threadpool; the lifespan normally creates the store first.
    if getattr(app.state, "store", None) is None:
        with _store_lock:
            if getattr(app.state, "store", None) is None:
                app.state.store = _create_store()
    return app.state.store


def get_repository(app: FastAPI) -> ContactRepository:
    return ContactRepository(_get_cached_store(app))


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store = None
    try:
        app.state.store = _create_store()
        yield
    finally:
        store = getattr(app.state, "store", None)
        if isinstance(store, RedisKeyValueStore):
            store.close()


app = FastAPI(
    title="Rolodex API",
    description="Create, read, update and delete contacts stored in Redis.",
    lifespan=lifespan,
)


# --- Envelope ---


def _envelope(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Uniform response body: {statusCode, message, data}. data defaults to {}."""
    return JSONResponse(
        content={
            "statusCode": status_code,
            "message": message,
            "data": {} if data is None else data,
        },
        status_code=status_code,
    )


def _not_found() -> JSONResponse:
    return _envelope(404, MSG_NOT_FOUND)


def _parse_contact_id(raw: str) -> int | None:
    """Path id as a positive int, or None if it cannot name a contact.

    Only the canonical form is accepted: "01" is not the key of contact 1.
    """
    if not raw.isascii() or not raw.isdigit():
        return None
    contact_id = int(raw)
    if contact_id < 1 or str(contact_id) != raw:
        return None
    return contact_id


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _envelope(503, MSG_STORE_UNAVAILABLE)


@app.exception_handler(CorruptContactRecord)
async def corrupt_record_handler(request: Request, exc: CorruptContactRecord):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _envelope(500, MSG_CORRUPT)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _envelope(422, MSG_INVALID_BODY, {"errors": jsonable_encoder(exc.errors())})


# --- Schemas (request bodies and documented responses) ---


class ContactFields(BaseModel):
    """Contact text fields. All optional; unknown keys (including id) are ignored."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "first_name": "Anakin",
                "last_name": "Skywalker",
                "job": "Jedi Knight",
                "description": "The Chosen one",
            }
        },
    )

    first_name: str | None = None
    last_name: str | None = None
    job: str | None = None
    description: str | None = None

    def to_patch(self) -> ContactPatch:
        """Only the fields present in the request body."""
        return ContactPatch.from_mapping(self.model_dump(exclude_unset=True))


class CreateContactBody(BaseModel):
    contact: ContactFields


class UpdateContactBody(BaseModel):
    info: ContactFields = Field(description="Not all the fields are necessary.")


class ContactItem(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    job: str | None = None
    description: str | None = None


class ContactEnvelope(BaseModel):
    statusCode: int
    message: str
    data: ContactItem


class ContactListEnvelope(BaseModel):
    statusCode: int
    message: str
    data: list[ContactItem]


class EmptyEnvelope(BaseModel):
    statusCode: int
    message: str
    data: dict = Field(default_factory=dict)


_NOT_FOUND_RESPONSE = {
    404: {
        "model": EmptyEnvelope,
        "description": "Contact not found",
        "content": {
            "application/json": {
                "example": {"statusCode": 404, "message": MSG_NOT_FOUND, "data": {}}
            }
        },
    }
}


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: contacts ---


@app.get(
    "/contacts",
    tags=[CONTACTS_TAG],
    summary="Get contacts",
    description="Returns the full contacts list, ordered by ascending id.",
    response_model=ContactListEnvelope,
)
def list_contacts(request: Request):
    repo = get_repository(request.app)
    contacts = repo.list_all()
    return _envelope(200, MSG_LISTED, [c.to_dict() for c in contacts])


@app.get(
    "/contacts/{contact_id}",
    tags=[CONTACTS_TAG],
    summary="Get single contact",
    description="Get a contact by id.",
    response_model=ContactEnvelope,
    responses=_NOT_FOUND_RESPONSE,
)
def get_contact(contact_id: str, request: Request):
    parsed = _parse_contact_id(contact_id)
    if parsed is None:
        return _not_found()
    contact = get_repository(request.app).get(parsed)
    if contact is None:
        return _not_found()
    return _envelope(200, MSG_RETRIEVED, contact.to_dict())


@app.post(
    "/contacts",
    tags=[CONTACTS_TAG],
    summary="Create new contact",
    description=(
        "Add a contact by providing first_name, last_name, job and description "
        'inside a "contact" object. The id is assigned by the server.'
    ),
    status_code=201,
    response_model=ContactEnvelope,
)
def create_contact(body: CreateContactBody, request: Request):
    contact = get_repository(request.app).create(body.contact.to_patch())
    return _envelope(201, MSG_CREATED, contact.to_dict())


@app.patch(
    "/contacts/{contact_id}",
    tags=[CONTACTS_TAG],
    summary="Update a contact",
    description=(
        'Merge the fields of the "info" object into the contact. '
        "Fields that are not sent keep their value; the id cannot be changed."
    ),
    status_code=201,
    response_model=ContactEnvelope,
    responses=_NOT_FOUND_RESPONSE,
)
def update_contact(contact_id: str, body: UpdateContactBody, request: Request):
    parsed = _parse_contact_id(contact_id)
    if parsed is None:
        return _not_found()
    contact = get_repository(request.app).update(parsed, body.info.to_patch())
    if contact is None:
        return _not_found()
    return _envelope(201, MSG_UPDATED, contact.to_dict())


@app.delete(
    "/contacts/{contact_id}",
    tags=[CONTACTS_TAG],
    summary="Delete contact",
    description="Delete a contact by id and return the deleted contact.",
    response_model=ContactEnvelope,
    responses=_NOT_FOUND_RESPONSE,
)
def delete_contact(contact_id: str, request: Request):
    parsed = _parse_contact_id(contact_id)
    if parsed is None:
        return _not_found()
    contact = get_repository(request.app).delete(parsed)
    if contact is None:
        return _not_found()
    return _envelope(200, MSG_DELETED, contact.to_dict())

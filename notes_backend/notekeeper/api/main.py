import logging
from typing import Optional

from fastapi import FastAPI, Depends, Request, status, Query, Path
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from notekeeper.api import config
from notekeeper.api.auth import Identity, get_credential_store, get_current_user
from notekeeper.api.database import SessionLocal, close_db, init_db
from notekeeper.api.errors import InternalError, NotesError, Unauthenticated
from notekeeper.api.models import Note, User
from notekeeper.api.notes import NoteFilter
from notekeeper.api.schemas import (
    ApiResponse,
    AuthPayload,
    LoginRequest,
    NoteCreateRequest,
    NoteListResponse,
    NoteResponse,
    NoteUpdateRequest,
    ProfileUpdateRequest,
    UserCreateRequest,
    UserResponse,
)
from notekeeper.api.security import TokenService, get_token_service
from notekeeper.api.service import NoteService, get_note_service
from notekeeper.api.users import CredentialStore
from notekeeper.api.validation import MAX_ID

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Notes API",
    description="Personal notes backend with JWT auth and owner-only CRUD for notes.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Health", "description": "Service health and status."},
        {"name": "Auth", "description": "User registration, authentication and profile."},
        {"name": "Notes", "description": "CRUD operations for the caller's notes."},
    ],
)

# CORS setup - allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------- Error handling --------

def _error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


@app.exception_handler(NotesError)
async def notes_error_handler(request: Request, exc: NotesError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return _error_response(exc.status_code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError("Server error")
    return _error_response(error.status_code, error.message)


def _user_response(user) -> UserResponse:
    return UserResponse(id=str(user.id), name=user.name, email=user.email, created_at=user.created_at)


def _note_response(note: Note) -> NoteResponse:
    return NoteResponse(
        id=str(note.id),
        title=note.title,
        content=note.content,
        tags=note.tags,
        color=note.color,
        owner_id=str(note.owner_id),
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


# PUBLIC_INTERFACE
@app.get("/", tags=["Health"], summary="Health Check")
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON object indicating service status.
    """
    return {"message": "Healthy"}


# Seed logic for dev convenience
def seed_demo_user(db: Session):
    """Create a demo user if none exist (dev only)."""
    if config.ENV == "dev":
        has_user = db.query(User.id).first()
        if not has_user:
            email = "demo@example.com"
            pwd = "password123"
            CredentialStore(db).create("Demo User", email, pwd)
            logger.info("Seeded demo user: %s", email)


# -------- Auth Routes --------

# PUBLIC_INTERFACE
@app.post(
    "/auth/register",
    response_model=ApiResponse[AuthPayload],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    tags=["Auth"],
    summary="Register a new user",
)
def register_user(
    payload: UserCreateRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new user and log them in.

    Body:
        name: display name
        email: valid email address (case-insensitive)
        password: plaintext password, at least 6 chars

    Returns:
        Token and the user without sensitive fields.

    Raises:
        400 on invalid input, 409 if email already in use.
    """
    user = store.create(payload.name, payload.email, payload.password)
    return ApiResponse(
        message="User registered successfully",
        data=AuthPayload(token=tokens.issue(user.id), user=_user_response(user)),
    )


# PUBLIC_INTERFACE
@app.post(
    "/auth/login",
    response_model=ApiResponse[AuthPayload],
    response_model_exclude_none=True,
    tags=["Auth"],
    summary="Login and obtain JWT access token",
)
def login(
    payload: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Exchange email and password for a bearer token.

    Raises:
        401 on invalid credentials.
    """
    user = store.authenticate(payload.email, payload.password)
    if user is None:
        logger.warning("Failed login for %s", payload.email)
        raise Unauthenticated("Invalid credentials")
    return ApiResponse(
        message="Login successful",
        data=AuthPayload(token=tokens.issue(user.id), user=_user_response(user)),
    )


# PUBLIC_INTERFACE
@app.get(
    "/auth/me",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    tags=["Auth"],
    summary="Get the current user",
)
def get_profile(current_user: Identity = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return ApiResponse(data=_user_response(current_user))


# PUBLIC_INTERFACE
@app.put(
    "/auth/profile",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    tags=["Auth"],
    summary="Update the current user's profile",
)
def update_profile(
    payload: ProfileUpdateRequest,
    current_user: Identity = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Update name, email and/or password. Omitted fields are left unchanged;
    the password is only re-hashed when a new one is sent.

    Raises:
        400 on invalid input, 409 if the new email is taken.
    """
    user = store.update_profile(
        current_user.id,
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return ApiResponse(message="Profile updated successfully", data=_user_response(user))


# -------- Notes Routes --------

# PUBLIC_INTERFACE
@app.get(
    "/notes",
    response_model=NoteListResponse,
    tags=["Notes"],
    summary="List notes with search and tag filters",
)
def list_notes(
    search: Optional[str] = Query(None, description="Text to match in title or content"),
    tags: Optional[str] = Query(None, description="Comma separated tags; any match"),
    current_user: Identity = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    List notes belonging to the current user, newest first.

    Query params:
        search: optional case-insensitive text matched in title or content
        tags: optional comma separated list; notes with any of these tags match
    """
    items = notes.list(current_user, NoteFilter.from_query(search=search, tags=tags))
    return NoteListResponse(count=len(items), data=[_note_response(n) for n in items])


# PUBLIC_INTERFACE
@app.post(
    "/notes",
    response_model=ApiResponse[NoteResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    tags=["Notes"],
    summary="Create a new note",
)
def create_note(
    payload: NoteCreateRequest,
    current_user: Identity = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Create a new note owned by the authenticated user.

    Body:
        title: 1-100 chars
        content: 1-5000 chars
        tags: optional list of strings
        color: optional hex color, defaults to #ffffff
    """
    note = notes.create(current_user, payload.model_dump(exclude_none=True))
    return ApiResponse(message="Note created successfully", data=_note_response(note))


# PUBLIC_INTERFACE
@app.get(
    "/notes/{note_id}",
    response_model=ApiResponse[NoteResponse],
    response_model_exclude_none=True,
    tags=["Notes"],
    summary="Get a note by ID",
)
def get_note(
    note_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: Identity = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Retrieve a single note by ID. Only the owner can access it.
    """
    return ApiResponse(data=_note_response(notes.get(current_user, note_id)))


# PUBLIC_INTERFACE
@app.put(
    "/notes/{note_id}",
    response_model=ApiResponse[NoteResponse],
    response_model_exclude_none=True,
    tags=["Notes"],
    summary="Update a note by ID",
)
def update_note(
    payload: NoteUpdateRequest,
    note_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: Identity = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Update a note. Only the owner can modify it; only sent fields change.
    """
    note = notes.update(current_user, note_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(message="Note updated successfully", data=_note_response(note))


# PUBLIC_INTERFACE
@app.delete(
    "/notes/{note_id}",
    response_model=ApiResponse[dict],
    response_model_exclude_none=True,
    tags=["Notes"],
    summary="Delete a note by ID",
)
def delete_note(
    note_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: Identity = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
):
    """
    Delete a note. Only the owner can delete it.
    """
    notes.delete(current_user, note_id)
    return ApiResponse(message="Note deleted successfully", data={})


@app.on_event("startup")
def on_startup():
    config.configure_logging()
    init_db()
    # Create demo user if none exist (dev only)
    with SessionLocal() as db:
        seed_demo_user(db)


@app.on_event("shutdown")
def on_shutdown():
    close_db()

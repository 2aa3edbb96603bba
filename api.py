import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from book import Book
from config import Settings, settings
from library import LendingEngine, LendingError, Outcome
from storage import PersistenceFailure, UserStore
from users import UserDirectory
from utils.validators import TextValidator

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


# --- Request / response models ---
class BookOut(BaseModel):
    id: int
    title: str
    author: str
    isAvailable: bool
    borrowedBy: str
    genre: str
    coverUrl: str
    dueDate: int
    rating: float
    ratingCount: int


class BookCreate(BaseModel):
    title: str = ""
    author: str = ""
    genre: str = ""
    coverUrl: str = ""


class BookCreated(BaseModel):
    id: int


class BorrowRequest(BaseModel):
    username: str


class RateRequest(BaseModel):
    stars: int


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    username: str
    role: str


# HTTP status for each expected failure
ERROR_STATUS = {
    LendingError.NOT_FOUND: 404,
    LendingError.UNAVAILABLE: 400,
    LendingError.LIMIT_EXCEEDED: 400,
    LendingError.ALREADY_AVAILABLE: 400,
    LendingError.INVALID_CREDENTIALS: 401,
}

ERROR_DETAIL = {
    LendingError.NOT_FOUND: "Book not found",
    LendingError.UNAVAILABLE: "Book is already borrowed",
    LendingError.LIMIT_EXCEEDED: "Borrow limit reached",
    LendingError.ALREADY_AVAILABLE: "Book is not borrowed",
    LendingError.INVALID_CREDENTIALS: "Invalid username or password",
}


def _raise_for(outcome: Outcome) -> None:
    if not outcome:
        raise HTTPException(status_code=ERROR_STATUS[outcome.error], detail=ERROR_DETAIL[outcome.error])


def _book_out(book: Book) -> BookOut:
    return BookOut(**book.to_dict())


# --- Dependencies ---
def get_library(request: Request) -> LendingEngine:
    return request.app.state.library


def get_directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def create_app(
    config: Optional[Settings] = None,
    library: Optional[LendingEngine] = None,
    directory: Optional[UserDirectory] = None,
) -> FastAPI:
    """Build the API around one engine and one user directory."""
    config = config or settings
    app = FastAPI(title=config.app_name, version=config.app_version)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.state.library = library or LendingEngine.from_file(
        config.books_file, borrow_limit=config.borrow_limit, loan_days=config.loan_days
    )
    app.state.directory = directory or UserDirectory(UserStore(config.users_file))

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable; change not saved"})

    # --- Health ---
    @app.get("/health")
    def health(lib: LendingEngine = Depends(get_library)):
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "total_books": len(lib.list_books()),
        }

    # --- Books ---
    @app.get("/books", response_model=List[BookOut])
    def list_books(lib: LendingEngine = Depends(get_library)):
        return [_book_out(b) for b in lib.list_books()]

    @app.post("/books", response_model=BookCreated, status_code=201)
    def add_book(payload: BookCreate, lib: LendingEngine = Depends(get_library)):
        if not TextValidator.validate_title(payload.title):
            raise HTTPException(status_code=400, detail="Title is required and may not contain '|' or line breaks")
        if not TextValidator.validate_author(payload.author):
            raise HTTPException(status_code=400, detail="Author is required and may not contain '|' or line breaks")
        if not (TextValidator.is_storable(payload.genre) and TextValidator.validate_cover_url(payload.coverUrl)):
            raise HTTPException(status_code=400, detail="Genre and cover URL may not contain '|' or line breaks, and the cover URL may not be NONE")
        book = lib.add_book(
            title=TextValidator.sanitize_text(payload.title),
            author=TextValidator.sanitize_text(payload.author),
            genre=TextValidator.sanitize_text(payload.genre),
            cover_url=TextValidator.sanitize_text(payload.coverUrl),
        )
        return BookCreated(id=book.id)

    @app.delete("/books/{book_id}")
    def delete_book(book_id: int, lib: LendingEngine = Depends(get_library)):
        _raise_for(lib.delete_book(book_id))
        return {"status": "deleted", "id": book_id}

    # --- Lending ---
    @app.post("/books/{book_id}/borrow", response_model=BookOut)
    def borrow_book(book_id: int, payload: BorrowRequest, lib: LendingEngine = Depends(get_library)):
        if not TextValidator.validate_username(payload.username):
            raise HTTPException(status_code=400, detail="A username without spaces is required (NONE is reserved)")
        outcome = lib.borrow(book_id, payload.username)
        _raise_for(outcome)
        return _book_out(outcome.book)

    @app.post("/books/{book_id}/return", response_model=BookOut)
    def return_book(book_id: int, lib: LendingEngine = Depends(get_library)):
        outcome = lib.return_book(book_id)
        _raise_for(outcome)
        return _book_out(outcome.book)

    @app.post("/books/{book_id}/rate", response_model=BookOut)
    def rate_book(book_id: int, payload: RateRequest, lib: LendingEngine = Depends(get_library)):
        try:
            outcome = lib.rate(book_id, payload.stars)
        except OverflowError:
            raise HTTPException(status_code=400, detail="Rating is too large to average")
        _raise_for(outcome)
        return _book_out(outcome.book)

    # --- Auth ---
    @app.post("/login", response_model=LoginResponse)
    def login(payload: LoginRequest, directory: UserDirectory = Depends(get_directory)):
        outcome = directory.login(payload.username, payload.password)
        _raise_for(outcome)
        return LoginResponse(username=payload.username, role=outcome.role)

    return app


app = create_app()

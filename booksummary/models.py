# booksummary/models.py
import re
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # Snapshots and API payloads use the camelCase keys of the stored data.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# --- Rich content sections ---------------------------------------------------

class TextSection(CamelModel):
    type: Literal["text"] = "text"
    content: str


class ImageSection(CamelModel):
    type: Literal["image"] = "image"
    content: str = Field(description="Image URL.")
    caption: Optional[str] = None
    image_url: Optional[str] = None


class QuoteSection(CamelModel):
    type: Literal["quote"] = "quote"
    content: str
    caption: Optional[str] = None


ContentSection = Annotated[
    Union[TextSection, ImageSection, QuoteSection],
    Field(discriminator="type"),
]


# --- Books -------------------------------------------------------------------

class Author(CamelModel):
    id: str
    name: str
    bio: Optional[str] = None
    image_url: Optional[str] = None


class Book(CamelModel):
    id: str
    title: str
    author: Author
    cover_url: str = ""
    summary: str = ""
    rich_summary: Optional[List[ContentSection]] = None
    rich_content: Optional[List[ContentSection]] = None
    short_summary: str = ""
    genre: List[str] = Field(default_factory=list)
    date_added: str = ""
    rating: float = Field(default=0.0, ge=0, le=5)
    page_count: Optional[int] = None
    year_published: Optional[int] = None
    likes: int = Field(default=0, ge=0)
    is_featured: bool = False
    is_trending: bool = False
    audio_summary_url: Optional[str] = None
    gutenberg_id: Optional[int] = None


class BookCreate(CamelModel):
    id: Optional[str] = None
    title: str
    author_name: str
    author_bio: Optional[str] = None
    cover_url: str = ""
    summary: str = ""
    rich_summary: Optional[List[ContentSection]] = None
    short_summary: str = ""
    genre: List[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0, le=5)
    page_count: Optional[int] = None
    year_published: Optional[int] = None
    is_featured: bool = False
    is_trending: bool = False
    audio_summary_url: Optional[str] = None
    gutenberg_id: Optional[int] = None


class BookUpdate(CamelModel):
    title: Optional[str] = None
    author_name: Optional[str] = None
    author_bio: Optional[str] = None
    cover_url: Optional[str] = None
    summary: Optional[str] = None
    rich_summary: Optional[List[ContentSection]] = None
    short_summary: Optional[str] = None
    genre: Optional[List[str]] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    page_count: Optional[int] = None
    year_published: Optional[int] = None
    is_featured: Optional[bool] = None
    is_trending: Optional[bool] = None
    audio_summary_url: Optional[str] = None


class BookComment(CamelModel):
    id: str
    book_id: str
    user_name: str
    user_avatar: Optional[str] = None
    content: str
    date: str
    likes: int = 0


class CommentCreate(CamelModel):
    content: str = Field(min_length=1)


class GutenbergImport(CamelModel):
    """Admin-written summaries for a Gutenberg book copied into the catalogue."""

    summary: Optional[str] = None
    short_summary: Optional[str] = None


# --- Blog --------------------------------------------------------------------

class BlogPost(CamelModel):
    id: str
    title: str
    slug: str
    excerpt: str = ""
    content: str = ""
    author_name: str = "BookSummary Team"
    cover_image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published_date: str = ""
    reading_time: int = 1
    is_featured: bool = False
    rich_content: Optional[List[ContentSection]] = None


class BlogPostCreate(CamelModel):
    title: str
    excerpt: str = ""
    content: str = ""
    author_name: str = "BookSummary Team"
    cover_image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published_date: Optional[str] = None
    is_featured: bool = False
    rich_content: Optional[List[ContentSection]] = None


class BlogPostUpdate(CamelModel):
    title: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author_name: Optional[str] = None
    cover_image: Optional[str] = None
    tags: Optional[List[str]] = None
    published_date: Optional[str] = None
    is_featured: Optional[bool] = None
    rich_content: Optional[List[ContentSection]] = None


# --- Accounts & session ------------------------------------------------------

Role = Literal["user", "admin"]


class Account(CamelModel):
    id: str
    name: str
    email: str
    password_hash: str
    role: Role = "user"
    date_registered: str = ""


class User(CamelModel):
    """Snapshot of the logged-in account kept in the session."""

    id: str
    name: str
    email: str
    role: Role = "user"


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", value):
            raise ValueError("Password must contain at least one number")
        return value


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class LoginResponse(CamelModel):
    user: User
    redirect_to: str = "/"


# --- Notifications -----------------------------------------------------------

class Notification(BaseModel):
    title: str
    description: str
    retry: bool = False


# --- Sources -----------------------------------------------------------------
# The id prefix encodes where a book comes from; local ids carry none.

GUTENBERG_PREFIX = "gutenberg-"
MODERN_PREFIX = "modern-"

Source = Literal["local", "gutenberg", "modern"]


def source_of(book_id: str) -> Source:
    if book_id.startswith(GUTENBERG_PREFIX):
        return "gutenberg"
    if book_id.startswith(MODERN_PREFIX):
        return "modern"
    return "local"


def is_external(book_id: str) -> bool:
    return source_of(book_id) != "local"


# --- Summary generation ------------------------------------------------------

class SummaryRequest(CamelModel):
    title: str
    author: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    content: Optional[str] = None


class SummaryResponse(CamelModel):
    summary: str


class BatchSummaryRequest(CamelModel):
    book_ids: List[str]
    delay: float = Field(default=1.0, ge=0)


class ApiKeyRequest(CamelModel):
    api_key: str


# --- Preferences -------------------------------------------------------------

Theme = Literal["light", "dark", "system"]


class ThemePreference(BaseModel):
    theme: Theme = "system"

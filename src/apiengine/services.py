"""Typed service layer over :class:`~apiengine.client.AsyncEngine`.

:class:`UserService` and :class:`PostService` are thin wrappers that map
REST resources of a JSONPlaceholder-style API onto engine calls and
validate the payloads into Pydantic models. They add no retry or caching
policy of their own beyond choosing a TTL for the user listing.

Example::

    async with AsyncEngine(JSONPLACEHOLDER_URL) as api:
        users = await UserService(api).get_users()
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from apiengine.client import AsyncEngine

JSONPLACEHOLDER_URL = "https://jsonplaceholder.typicode.com"

USERS_CACHE_TTL = 60.0


# --- Resource models ---


class Company(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    catch_phrase: str = Field(default="", alias="catchPhrase")


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    email: str
    username: str
    phone: str = ""
    website: str = ""
    company: Company


class Post(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    title: str
    body: str = ""


class Comment(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    post_id: int = Field(alias="postId")
    name: str
    email: str
    body: str


class CreatePostInput(BaseModel):
    """Payload for :meth:`PostService.create_post`."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    title: str
    body: str


_users = TypeAdapter(list[User])
_posts = TypeAdapter(list[Post])
_comments = TypeAdapter(list[Comment])


# --- Services ---


class UserService:
    """User-related operations."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_users(self) -> list[User]:
        """List all users. The listing is cached for one minute."""
        data = await self._engine.get("/users", cache_ttl=USERS_CACHE_TTL)
        return _users.validate_python(data)

    async def get_user(self, user_id: int) -> User:
        return User.model_validate(await self._engine.get(f"/users/{user_id}"))

    async def get_user_posts(self, user_id: int) -> list[Post]:
        return _posts.validate_python(await self._engine.get(f"/users/{user_id}/posts"))


class PostService:
    """Post-related operations."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_posts(self) -> list[Post]:
        return _posts.validate_python(await self._engine.get("/posts"))

    async def get_post(self, post_id: int) -> Post:
        return Post.model_validate(await self._engine.get(f"/posts/{post_id}"))

    async def create_post(self, data: CreatePostInput) -> Post:
        payload = data.model_dump(by_alias=True)
        return Post.model_validate(await self._engine.post("/posts", payload))

    async def update_post(self, post_id: int, updates: dict[str, Any]) -> Post:
        """Apply a partial update (PATCH) to a post."""
        return Post.model_validate(await self._engine.patch(f"/posts/{post_id}", updates))

    async def delete_post(self, post_id: int) -> None:
        await self._engine.delete(f"/posts/{post_id}")

    async def get_post_comments(self, post_id: int) -> list[Comment]:
        return _comments.validate_python(await self._engine.get(f"/posts/{post_id}/comments"))

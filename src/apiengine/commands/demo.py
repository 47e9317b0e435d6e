"""Demo command -- walk through the service layer against a live API.

``apiengine demo`` exercises :class:`~apiengine.services.UserService` and
:class:`~apiengine.services.PostService` against JSONPlaceholder (or the
``--base-url`` given to the root command): listing, fetching, creating,
updating, and finally fetching the user list twice to show the second call
being served from the cache.
"""

from __future__ import annotations

import asyncio

import typer

from apiengine.client import AsyncEngine
from apiengine.exceptions import ApiError
from apiengine.output import error, info, success
from apiengine.services import (
    JSONPLACEHOLDER_URL,
    CreatePostInput,
    PostService,
    UserService,
)


async def run_demo(engine: AsyncEngine) -> None:
    """Run the walkthrough with *engine*, reporting progress on stderr."""
    users = UserService(engine)
    posts = PostService(engine)

    info("--- Fetching users ---")
    all_users = await users.get_users()
    success(f"Fetched {len(all_users)} users")
    if all_users:
        first = all_users[0]
        info(f"First user: {first.name} ({first.email})")

    info("--- Fetching user #1 ---")
    user = await users.get_user(1)
    success(f"User: {user.name}")
    info(f"  Company: {user.company.name}")

    info("--- Fetching user's posts ---")
    user_posts = await users.get_user_posts(1)
    success(f"User has {len(user_posts)} posts")

    info("--- Fetching posts ---")
    success(f"Fetched {len(await posts.get_posts())} posts")

    info("--- Creating new post ---")
    created = await posts.create_post(
        CreatePostInput(user_id=1, title="Learning Python", body="httpx makes API clients easy.")
    )
    success(f"Created post #{created.id}: {created.title!r}")

    info("--- Updating post ---")
    updated = await posts.update_post(1, {"title": "Updated Title"})
    success(f"Updated post #{updated.id}")

    info("--- Fetching post comments ---")
    comments = await posts.get_post_comments(1)
    success(f"Post has {len(comments)} comments")

    info("--- Testing cache ---")
    info("First request (network or cache):")
    await users.get_users()
    info("Second request (from cache):")
    await users.get_users()
    stats = engine.cache.stats()
    success(f"Cache holds {stats['size']} entries")


def demo_command(ctx: typer.Context) -> None:
    """Walk through the users/posts service layer against JSONPlaceholder."""
    obj = ctx.obj or {}
    base_url = obj.get("base_url") or JSONPLACEHOLDER_URL

    async def _main() -> None:
        async with AsyncEngine(base_url) as engine:
            await run_demo(engine)

    try:
        asyncio.run(_main())
    except ApiError as exc:
        error(f"API error ({exc.status}): {exc}")
        if exc.response is not None:
            error(f"Response: {exc.response}")
        raise typer.Exit(code=exc.exit_code)
    success("Demo complete")

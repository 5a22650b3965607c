from __future__ import annotations

from fastapi import Request

from .bootstrap import DirectoryContext


def get_directory(request: Request) -> DirectoryContext:
    return request.app.state.directory


def ensure_directory_ready(request: Request) -> DirectoryContext:
    """Route dependency: bind (or re-bind) the shared session before the handler runs.

    Raises DirectoryUnavailable when the guard gives up; the app turns that
    into a 503 envelope.
    """
    ctx = get_directory(request)
    ctx.guard.ensure_ready(ctx.session)
    return ctx

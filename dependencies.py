# dependencies.py
from fastapi import HTTPException, Request
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from storage import TaskStore


def get_store(request: Request) -> TaskStore:
    """
    Returns the TaskStore the lifespan attached to the application.
    Handlers receive it through Depends() so nothing reaches for a module global.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task store is not initialized."
        )
    return store

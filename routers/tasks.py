# routers/tasks.py
import re
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, StrictStr
from starlette.status import (
    HTTP_201_CREATED, HTTP_204_NO_CONTENT, HTTP_400_BAD_REQUEST, HTTP_405_METHOD_NOT_ALLOWED
)

from dependencies import get_store
from storage import Task, TaskStore

# --- Router Setup ---
router = APIRouter(
    prefix="/api/tasks",
    tags=["Tasks"],
)

COLLECTION_METHODS = ["GET", "POST"]
ITEM_METHODS = ["PATCH", "DELETE"]
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# ASCII digits only: int() alone would also take "1_0", " 10" and non-ASCII digits
TASK_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


# --- Data Models ---
class TaskCreateRequest(BaseModel):
    title: StrictStr = ""


class TaskListResponse(BaseModel):
    tasks: List[Task]


def parse_task_id(task_id: str) -> int:
    """Path ids are parsed by hand so a malformed id is a 400, not FastAPI's 422."""
    if not TASK_ID_PATTERN.fullmatch(task_id):
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="invalid task id")
    return int(task_id)


def method_not_allowed(allowed: List[str]):
    headers: Dict[str, str] = {"Allow": ", ".join(allowed)}
    raise HTTPException(status_code=HTTP_405_METHOD_NOT_ALLOWED, detail="method not allowed", headers=headers)


# --- Endpoints ---
# Route functions are plain `def`: FastAPI runs them in its thread pool, so the
# store's blocking lock and file I/O never stall the event loop.

@router.get("", response_model=TaskListResponse)
def list_tasks(store: TaskStore = Depends(get_store)):
    """List every task in creation order."""
    return TaskListResponse(tasks=store.list())


@router.post("", status_code=HTTP_201_CREATED, response_model=Task)
def create_task(request: TaskCreateRequest, store: TaskStore = Depends(get_store)):
    """Create a task from a non-empty title."""
    return store.create(request.title)


@router.patch("/{task_id}", response_model=Task)
def toggle_task(task_id: int = Depends(parse_task_id), store: TaskStore = Depends(get_store)):
    """Flip a task's done flag."""
    return store.toggle(task_id)


@router.delete("/{task_id}", status_code=HTTP_204_NO_CONTENT, response_class=Response)
def delete_task(task_id: int = Depends(parse_task_id), store: TaskStore = Depends(get_store)):
    store.delete(task_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


# --- Method fallbacks ---
# Registered after the real handlers so only the remaining verbs land here.

@router.api_route(
    "",
    methods=[m for m in ALL_METHODS if m not in COLLECTION_METHODS],
    include_in_schema=False,
)
def collection_method_not_allowed():
    method_not_allowed(COLLECTION_METHODS)


@router.api_route(
    "/{task_id}",
    methods=[m for m in ALL_METHODS if m not in ITEM_METHODS],
    include_in_schema=False,
)
def item_method_not_allowed(task_id: str):
    method_not_allowed(ITEM_METHODS)

# routers/api.py
from fastapi import APIRouter, HTTPException
from starlette.status import HTTP_404_NOT_FOUND

router = APIRouter(prefix="/api", include_in_schema=False)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# Included after every real /api router: an unknown API path is a 404 here
# instead of falling through to the static file mount.
@router.api_route("", methods=ALL_METHODS)
@router.api_route("/{path:path}", methods=ALL_METHODS)
async def api_not_found(path: str = ""):
    raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not Found")

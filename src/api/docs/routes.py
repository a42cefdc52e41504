"""API documentation endpoints.

- ``GET /docs``: interactive Swagger UI over ``/docs/json``
- ``GET /docs/json``: the combined OpenAPI document as JSON
- ``GET /docs/yaml``: the combined OpenAPI document as YAML

When the document cannot be built these endpoints answer with a
``DocsErrorResponse`` themselves instead of going through the terminal
error handler, so the failure message reaches the client in every
environment.

Building the document reads and parses YAML files, so it runs in the
thread pool.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse, Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.api.constants import DOCS_ERROR_MESSAGE, YAML_MEDIA_TYPE
from src.api.docs.aggregator import DocsCache, OpenAPIDocumentError, to_yaml
from src.api.middleware.error_handler import async_router
from src.api.schemas.errors import DocsErrorResponse, ErrorDetail
from src.api.utils.responses import ORJSONResponse
from src.core.config import get_settings

SWAGGER_UI_PARAMETERS = {
    "docExpansion": "list",
    "filter": True,
    "showRequestHeaders": True,
    "tryItOutEnabled": True,
    "displayRequestDuration": True,
    "defaultModelsExpandDepth": 1,
    "defaultModelExpandDepth": 1,
}

docs_cache = DocsCache()


def get_docs_cache() -> DocsCache:
    """Get the process-wide documentation cache."""
    return docs_cache


DocsCacheDep = Annotated[DocsCache, Depends(get_docs_cache)]

router = async_router(APIRouter(prefix="/docs", tags=["docs"]))


def _docs_error(error: OpenAPIDocumentError) -> ORJSONResponse:
    logger.error("{}: {}", DOCS_ERROR_MESSAGE, error)
    body = DocsErrorResponse(
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=DOCS_ERROR_MESSAGE,
        error=ErrorDetail(message=str(error)),
    )
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body
    )


@router.get("", response_class=HTMLResponse, include_in_schema=False)
async def swagger_ui() -> HTMLResponse:
    """Serve the interactive API documentation."""
    return get_swagger_ui_html(
        openapi_url="/docs/json",
        title=get_settings().docs_config.ui_title,
        swagger_favicon_url="/favicon.ico",
        swagger_ui_parameters=SWAGGER_UI_PARAMETERS,
    )


@router.get("/json", include_in_schema=False)
async def openapi_json(cache: DocsCacheDep) -> Response:
    """Return the combined OpenAPI document as JSON."""
    try:
        document = await run_in_threadpool(cache.get)
    except OpenAPIDocumentError as e:
        return _docs_error(e)
    return ORJSONResponse(content=document)


@router.get("/yaml", include_in_schema=False)
async def openapi_yaml(cache: DocsCacheDep) -> Response:
    """Return the combined OpenAPI document as YAML."""
    try:
        document = await run_in_threadpool(cache.get)
    except OpenAPIDocumentError as e:
        return _docs_error(e)
    text = await run_in_threadpool(to_yaml, document)
    return Response(content=text, media_type=YAML_MEDIA_TYPE)

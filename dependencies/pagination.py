from fastapi import Query

from config.settings import settings
from schemas.common import Pagination


def pagination_params(
    page: int = Query(1, ge=1, description="current page (1-based)"),
    size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=settings.PAGE_SIZE_MAX, description="items per page"),
) -> Pagination:
    # bounds are checked here so bad values surface as 422, not inside the model
    return Pagination(page=page, size=size)

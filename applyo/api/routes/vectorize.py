"""Vector index endpoints -- population, semantic search and stats."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from applyo.api.schemas import SearchType, VectorSearchResponse
from applyo.vector_index import VectorIndex

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vectorize", tags=["vectorize"])


def get_vector_index() -> VectorIndex:
    return VectorIndex()


def _respond(result: dict, failure_status: int):
    if result.get("success") is False:
        return JSONResponse(result, status_code=failure_status)
    return result


@router.post("/populate/companies")
def populate_companies(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    index: VectorIndex = Depends(get_vector_index),
):
    """Embed one batch of companies."""
    return _respond(index.populate_companies(offset=offset, limit=limit), 500)


@router.post("/populate/employees")
def populate_employees(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    index: VectorIndex = Depends(get_vector_index),
):
    """Embed one batch of employees."""
    return _respond(index.populate_employees(offset=offset, limit=limit), 500)


@router.get("/search", response_model=VectorSearchResponse)
def search(
    q: str = Query(""),
    type: SearchType = Query("both"),
    limit: int = Query(5, ge=1, le=50),
    index: VectorIndex = Depends(get_vector_index),
):
    """Semantic search over companies and/or employees."""
    return _respond(index.search(q, type=type, limit=limit), 400)


@router.post("/companies/{company_id}")
def update_company(company_id: int, index: VectorIndex = Depends(get_vector_index)):
    """Re-embed a single company."""
    return _respond(index.update_company(company_id), 404)


@router.get("/stats")
def stats(index: VectorIndex = Depends(get_vector_index)):
    return index.get_stats()

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from complyai.features.indexing.dependencies.components import get_components
from complyai.features.indexing.services.components import Components
from complyai.features.search.schemas.search import SemanticSearchHit, SemanticSearchRequest
from complyai.platform.response import api_response

router = APIRouter(prefix="/search", tags=["Search"])


@router.post("/semantic")
async def semantic_search(
    payload: SemanticSearchRequest,
    components: Components = Depends(get_components),
):
    results = await components.search_engine.semantic_search(payload.query, payload.limit)

    hits = [
        SemanticSearchHit(
            violation_id=r["violation_id"],
            description=r["description"],
            severity=r["severity"],
            similarity=f"{r['similarity'] * 100:.1f}%",
            url=r["url"],
            domain=r["domain"],
            title=r.get("title"),
        )
        for r in results
    ]
    return api_response(data={"query": payload.query, "results": hits}, message="Semantic search completed")


@router.get("/violations")
async def search_violations(
    violation_id: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    domain: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    components: Components = Depends(get_components),
):
    if not violation_id and not severity and not domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one search parameter required (violation_id, severity, or domain)",
        )

    results = await components.search_engine.search_violations(
        violation_id=violation_id, severity=severity, domain=domain, limit=limit
    )
    return api_response(data=results, message=f"Found {len(results)} violations")


@router.get("/compliance")
async def search_compliance(
    min_score: float = Query(0, ge=0, le=100),
    limit: int = Query(50, ge=1, le=500),
    components: Components = Depends(get_components),
):
    results = await components.search_engine.search_websites_by_compliance(min_score, limit)
    return api_response(data=results, message=f"Found {len(results)} websites")

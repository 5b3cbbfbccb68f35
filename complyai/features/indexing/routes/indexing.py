from fastapi import APIRouter, Depends, HTTPException, Query, status

from complyai.features.indexing.dependencies.components import get_components
from complyai.features.indexing.schemas.indexing import IndexRequest, IndexResult, ScanRequest
from complyai.features.indexing.services.components import Components
from complyai.platform.response import api_response

router = APIRouter(tags=["Indexing"])


@router.post("/index")
async def index_website(payload: IndexRequest, components: Components = Depends(get_components)):
    """Crawl a domain, scan every page found and update its compliance score."""
    try:
        result = await components.pipeline.index_website(payload.domain)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return api_response(
        data=IndexResult(**result),
        message=f"Indexed {result['pages_indexed']} pages for {result['domain']}",
    )


@router.post("/scan")
async def scan_page(payload: ScanRequest, components: Components = Depends(get_components)):
    """Scan a single page and store the results."""
    try:
        result = await components.pipeline.scan_page(payload.url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return api_response(data=result, message="Scan completed and results stored")


@router.get("/pages/report")
async def page_report(
    url: str = Query(..., min_length=1),
    components: Components = Depends(get_components),
):
    report = await components.store.get_page_report(url)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")

    return api_response(data=report, message="Page report retrieved")

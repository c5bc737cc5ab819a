from fastapi import APIRouter, Depends

from app.web.container import Container
from app.web.dependencies import get_container, require_user
from app.web.notices import Notice, plural, with_notices
from app.web.schemas import ScrapeRequest

router = APIRouter(tags=["scraper"], dependencies=[Depends(require_user)])


@router.post("/scraper/scrape")
def scrape(body: ScrapeRequest, container: Container = Depends(get_container)) -> dict:
    """Run one extraction. Failures come back with ``success: false``, not an error status."""
    result = container.scraper.scrape_website(body.to_config())
    if result.success:
        notice = Notice("Scraping Complete", result.message)
    else:
        notice = Notice("Scraping Failed", result.message, "destructive")
    return with_notices(result.to_dict(), notice)


@router.get("/stored")
def stored(container: Container = Depends(get_container)) -> dict:
    items = container.scraper.get_all_scraped_data()
    return with_notices({"items": [item.to_dict() for item in items]})


@router.get("/stored/search")
def search_stored(q: str = "", container: Container = Depends(get_container)) -> dict:
    items = container.scraper.query_scraped_data(q)
    count = len(items)
    return with_notices(
        {"items": [item.to_dict() for item in items]},
        Notice("Query results", f"{count} {plural(count, 'result')} found"),
    )

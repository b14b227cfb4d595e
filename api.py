"""
FastAPI web application for the SEO toolkit
"""
from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, HttpUrl, field_validator
from typing import List, Dict, Any, Optional
import logging
import sqlite3
from datetime import datetime
import uvicorn

from app import SEOToolkitApp
from content_analyzer import generate_seo_checklist, generate_keyword_suggestions
from structured_data import analyze_html, get_available_schema_types
from models import (
    AlertType, ArticleRecord, Heading, ImageRef, LinkRef, PageContent, PropertyRecord, PublicListingRecord,
    SEOAlert, SEOMonitoringData, to_dict
)

logger = logging.getLogger(__name__)


# Pydantic models for API requests
class HeadingModel(BaseModel):
    level: int
    text: str

    @field_validator('level')
    @classmethod
    def level_must_be_heading(cls, v):
        if not 1 <= v <= 6:
            raise ValueError('Heading level must be between 1 and 6')
        return v


class ImageModel(BaseModel):
    src: str
    alt: str = ""


class LinkModel(BaseModel):
    href: str
    text: str = ""
    is_external: bool = False


class PageContentModel(BaseModel):
    title: str = ""
    description: str = ""
    headings: List[HeadingModel] = []
    body: str = ""
    images: List[ImageModel] = []
    links: List[LinkModel] = []
    meta_tags: Dict[str, str] = {}

    def to_page_content(self) -> PageContent:
        return PageContent(
            title=self.title,
            description=self.description,
            headings=[Heading(level=h.level, text=h.text) for h in self.headings],
            body=self.body,
            images=[ImageRef(src=i.src, alt=i.alt) for i in self.images],
            links=[LinkRef(href=l.href, text=l.text, is_external=l.is_external) for l in self.links],
            meta_tags=dict(self.meta_tags),
        )


class ContentAuditRequest(BaseModel):
    url: str
    content: PageContentModel
    target_keywords: List[str] = []


class URLAuditRequest(BaseModel):
    url: HttpUrl
    target_keywords: List[str] = []


class StructuredDataRequest(BaseModel):
    url: HttpUrl


class HTMLStructuredDataRequest(BaseModel):
    url: str = ""
    html: str


class SuggestionRequest(BaseModel):
    query: str
    candidates: Optional[List[str]] = None
    max_results: int = 5

    @field_validator('max_results')
    @classmethod
    def max_results_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('max_results must be at least 1')
        return v


class AutoCorrectRequest(BaseModel):
    query: str
    dictionary: Optional[List[str]] = None


class KeywordSuggestionRequest(BaseModel):
    base_keyword: str
    content: str = ""


class MonitoringDataRequest(BaseModel):
    url: str
    timestamp: Optional[str] = None
    metrics: Dict[str, Any] = {}
    issues: List[Dict[str, Any]] = []


class AlertModel(BaseModel):
    type: AlertType
    threshold: float
    email: str
    enabled: bool = True


class AlertSetupRequest(BaseModel):
    alerts: List[AlertModel]

    @field_validator('alerts')
    @classmethod
    def alerts_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('Alerts list cannot be empty')
        return v


class URLStructureRequest(BaseModel):
    url: str


class ImageSEORequest(BaseModel):
    url: str
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


class SitemapPropertyModel(BaseModel):
    id: str
    title: str = ""
    slug: Optional[str] = None
    status: Optional[str] = None
    updated_at: Optional[str] = None


class SitemapContentModel(BaseModel):
    slug: str
    title: str = ""
    status: Optional[str] = None
    updated_at: Optional[str] = None


class SitemapRequest(BaseModel):
    properties: List[SitemapPropertyModel] = []
    listings: List[SitemapContentModel] = []
    articles: List[SitemapContentModel] = []

    def to_records(self):
        return (
            [PropertyRecord(**p.model_dump()) for p in self.properties],
            [PublicListingRecord(**l.model_dump()) for l in self.listings],
            [ArticleRecord(**a.model_dump()) for a in self.articles],
        )


# Response models
class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime


# Initialize FastAPI app
app = FastAPI(
    title="SEO Toolkit API",
    description="On-page audits, structured data validation, search suggestions and SEO monitoring",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global toolkit app instance
toolkit_app = None


@app.on_event("startup")
async def startup_event():
    """Initialize the toolkit app on startup"""
    global toolkit_app
    try:
        toolkit_app = SEOToolkitApp()
        logger.info("SEO Toolkit API started successfully")
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Failed to initialize toolkit app: {e}")
        raise


def get_toolkit_app():
    """Dependency to get the toolkit app instance"""
    if toolkit_app is None:
        raise HTTPException(status_code=500, detail="Toolkit app not initialized")
    return toolkit_app


def _response(message: str, data: Optional[Dict[str, Any]] = None, success: bool = True) -> APIResponse:
    return APIResponse(success=success, message=message, data=data, timestamp=datetime.now())


# API Endpoints

@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint"""
    return {
        "message": "SEO Toolkit API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.post("/audit/content", response_model=APIResponse)
async def audit_content(request: ContentAuditRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Audit page content supplied in the request"""
    try:
        result = toolkit.audit_content(request.url, request.content.to_page_content(), request.target_keywords)
        return _response("Content audit completed", result)
    except Exception as e:
        logger.error(f"Error auditing content for {request.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/audit/url", response_model=APIResponse)
async def audit_url(request: URLAuditRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Fetch and audit a live URL"""
    try:
        logger.info(f"Auditing URL: {request.url}")
        result = toolkit.audit_url(str(request.url), request.target_keywords)
        return _response(
            "URL audit completed" if result.get("success") else "URL audit failed",
            result,
            success=result.get("success", False)
        )
    except Exception as e:
        logger.error(f"Error auditing URL {request.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/structured-data/analyze", response_model=APIResponse)
async def analyze_structured_data(request: StructuredDataRequest,
                                  toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Fetch a URL and validate its structured data"""
    try:
        result = toolkit.analyze_structured_data(str(request.url))
        return _response(f"Found {result['total_schemas']} structured data items", result)
    except Exception as e:
        logger.error(f"Error analyzing structured data for {request.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/structured-data/check", response_model=APIResponse)
async def check_structured_data(request: StructuredDataRequest,
                                toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Quick summary of the structured data formats a page carries"""
    result = toolkit.quick_check_structured_data(str(request.url))
    return _response(result["message"], result, success=result["status"] != "error")


@app.post("/structured-data/validate", response_model=APIResponse)
async def validate_structured_data_html(request: HTMLStructuredDataRequest):
    """Validate structured data in submitted HTML"""
    result = to_dict(analyze_html(request.url, request.html))
    return _response(f"Found {result['total_schemas']} structured data items", result)


@app.get("/structured-data/types", response_model=APIResponse)
async def schema_types():
    types = get_available_schema_types()
    return _response(f"{len(types)} schema types available", {"types": types})


@app.post("/search/suggestions", response_model=APIResponse)
async def search_suggestions(request: SuggestionRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    suggestions = toolkit.suggest(request.query, request.candidates, request.max_results)
    return _response(f"{len(suggestions)} suggestions", {"query": request.query, "suggestions": suggestions})


@app.post("/search/autocorrect", response_model=APIResponse)
async def autocorrect(request: AutoCorrectRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    corrected = toolkit.autocorrect(request.query, request.dictionary)
    return _response(
        "Query corrected" if corrected != request.query else "No correction needed",
        {"query": request.query, "corrected": corrected}
    )


@app.post("/keywords/suggestions", response_model=APIResponse)
async def keyword_suggestions(request: KeywordSuggestionRequest):
    return _response("Keyword suggestions generated",
                     generate_keyword_suggestions(request.base_keyword, request.content))


@app.get("/checklist", response_model=APIResponse)
async def seo_checklist():
    return _response("SEO checklist", {"checklist": generate_seo_checklist()})


@app.post("/monitoring/data", response_model=APIResponse)
async def store_monitoring_data(request: MonitoringDataRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Store a monitoring snapshot"""
    try:
        data = SEOMonitoringData.from_dict({
            "url": request.url,
            "timestamp": request.timestamp or datetime.now().isoformat(),
            "metrics": request.metrics,
            "issues": request.issues,
        })
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid monitoring data: {e}")

    try:
        toolkit.store_monitoring_data(data)
        return _response("Monitoring data stored", {"url": data.url, "timestamp": data.timestamp})
    except Exception as e:
        logger.error(f"Error storing monitoring data for {request.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/monitoring/report", response_model=APIResponse)
async def monitoring_report(
    start: str = Query(..., description="Period start (ISO timestamp)"),
    end: str = Query(..., description="Period end (ISO timestamp)"),
    toolkit: SEOToolkitApp = Depends(get_toolkit_app)
):
    """Aggregate monitoring data for a period"""
    try:
        report = toolkit.generate_report(start, end)
        return _response("SEO report generated", report)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating report: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/alerts", response_model=APIResponse)
async def setup_alerts(request: AlertSetupRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    try:
        count = toolkit.setup_alerts([
            SEOAlert(type=a.type, threshold=a.threshold, email=a.email, enabled=a.enabled)
            for a in request.alerts
        ])
        return _response(f"{count} alerts configured", {"alerts": count})
    except Exception as e:
        logger.error(f"Error setting up alerts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/alerts/check", response_model=APIResponse)
async def check_alerts(toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    triggered = toolkit.check_alerts()
    return _response(f"{len(triggered)} alerts triggered", {"triggered": triggered, "total": len(triggered)})


@app.get("/site-config", response_model=APIResponse)
async def site_config(toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    return _response("Site SEO config", toolkit.get_site_config())


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt(toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    return toolkit.robots_txt()


@app.get("/sitemap.xml")
async def sitemap_xml(toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Sitemap of the static pages"""
    sitemap = toolkit.sitemap()
    if sitemap is None:
        raise HTTPException(status_code=404, detail="Sitemap generation is disabled")
    return Response(content=sitemap, media_type="application/xml")


@app.post("/sitemap")
async def build_sitemap(request: SitemapRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    """Sitemap including the submitted properties, listings and articles"""
    sitemap = toolkit.sitemap(*request.to_records())
    if sitemap is None:
        raise HTTPException(status_code=404, detail="Sitemap generation is disabled")
    return Response(content=sitemap, media_type="application/xml")


@app.post("/urls/validate", response_model=APIResponse)
async def validate_url_path(request: URLStructureRequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    result = toolkit.check_url_structure(request.url)
    return _response("URL structure is valid" if result["is_valid"] else "URL structure has issues", result)


@app.post("/images/validate", response_model=APIResponse)
async def validate_image(request: ImageSEORequest, toolkit: SEOToolkitApp = Depends(get_toolkit_app)):
    result = toolkit.check_image(request.url, request.alt, request.width, request.height)
    return _response("Image is SEO friendly" if result["is_valid"] else "Image has SEO issues", result)


@app.post("/cleanup", response_model=APIResponse)
async def cleanup_data(
    days_to_keep: int = Query(30, description="Number of days of data to keep"),
    toolkit: SEOToolkitApp = Depends(get_toolkit_app)
):
    """Clean up old data"""
    try:
        toolkit.cleanup_old_data(days_to_keep)
        return _response(f"Data cleanup completed, kept last {days_to_keep} days", {"days_kept": days_to_keep})
    except Exception as e:
        logger.error(f"Error cleaning up data: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# Custom exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "timestamp": datetime.now().isoformat()
        }
    )


if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

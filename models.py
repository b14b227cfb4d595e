"""
Data models for the SEO toolkit
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Dict, Any, Optional


class IssueType(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Effort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Distribution(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ReadabilityLevel(str, Enum):
    EASY = "easy"
    FAIR = "fair"
    DIFFICULT = "difficult"


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class DataFormat(str, Enum):
    JSON_LD = "json-ld"
    MICRODATA = "microdata"
    RDFA = "rdfa"


class ValidationStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    WARNING = "warning"


class SuggestionType(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    PARTIAL = "partial"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertType(str, Enum):
    KEYWORD_DROP = "keyword_drop"
    TRAFFIC_DROP = "traffic_drop"
    RANKING_DROP = "ranking_drop"
    ERROR_INCREASE = "error_increase"


class PropertyImageType(str, Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    KITCHEN = "kitchen"
    BATHROOM = "bathroom"
    BEDROOM = "bedroom"
    LIVING = "living"
    GARDEN = "garden"
    AMENITY = "amenity"
    GENERAL = "general"


def to_dict(obj) -> Dict[str, Any]:
    """Convert a dataclass record into JSON-ready primitives"""
    return asdict(obj)


# --- Page content ---

@dataclass
class Heading:
    level: int
    text: str


@dataclass
class ImageRef:
    src: str
    alt: str = ""


@dataclass
class LinkRef:
    href: str
    text: str = ""
    is_external: bool = False


@dataclass
class PageContent:
    """Extracted on-page elements fed to the audit and content analysis"""
    title: str = ""
    description: str = ""
    headings: List[Heading] = field(default_factory=list)
    body: str = ""
    images: List[ImageRef] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    meta_tags: Dict[str, str] = field(default_factory=dict)


# --- Audit ---

@dataclass
class AuditIssue:
    type: IssueType
    category: str
    message: str
    suggestion: str
    priority: Priority


@dataclass
class SEOAudit:
    """Result of a single page audit"""
    url: str
    score: int
    issues: List[AuditIssue]
    recommendations: List[str]
    last_checked: str


# --- Content analysis ---

@dataclass
class TextAnalysis:
    text: str
    length: int
    score: int
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass
class HeadingScore:
    text: str
    length: int
    score: int


@dataclass
class HeadingsBreakdown:
    h1: List[HeadingScore] = field(default_factory=list)
    h2: List[HeadingScore] = field(default_factory=list)
    h3: List[HeadingScore] = field(default_factory=list)


@dataclass
class KeywordAnalysis:
    primary: str
    secondary: List[str]
    density: float
    distribution: Distribution


@dataclass
class ReadabilityAnalysis:
    score: float
    level: ReadabilityLevel
    suggestions: List[str] = field(default_factory=list)


@dataclass
class ImageAnalysis:
    url: str
    alt: str
    score: int
    issues: List[str] = field(default_factory=list)


@dataclass
class LinkAnalysis:
    internal: int
    external: int
    score: int
    issues: List[str] = field(default_factory=list)


@dataclass
class OverallScore:
    score: int
    grade: Grade
    summary: str


@dataclass
class ContentSEOAnalysis:
    """Per-element content scores and their weighted overall score"""
    title: TextAnalysis
    description: TextAnalysis
    headings: HeadingsBreakdown
    keywords: KeywordAnalysis
    readability: ReadabilityAnalysis
    images: List[ImageAnalysis]
    links: LinkAnalysis
    overall: OverallScore


@dataclass
class SEORecommendation:
    priority: Priority
    category: str
    recommendation: str
    impact: str


# --- Structured data ---

@dataclass
class ParsedStructuredData:
    """One structured-data block found in a page"""
    type: str
    data: Any
    format: DataFormat
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class SchemaValidationResult:
    schema: str
    status: ValidationStatus
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class ValidationRecommendation:
    type: IssueType
    message: str
    suggestion: str


@dataclass
class StructuredDataValidationResult:
    url: str
    found_schemas: List[str]
    total_schemas: int
    validation_results: List[SchemaValidationResult]
    recommendations: List[ValidationRecommendation]
    score: float
    timestamp: str


# --- Search ---

@dataclass
class SearchSuggestion:
    suggestion: str
    score: float
    type: SuggestionType


@dataclass
class FuzzySearchResult:
    item: str
    score: float
    matches: List[int]
    original_text: str


@dataclass
class PropertySearchItem:
    id: str
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    status: Optional[str] = None


@dataclass
class FuzzyPropertyResult:
    property: PropertySearchItem
    score: float
    matched_fields: List[str]


# --- Monitoring ---

@dataclass
class KeywordRanking:
    keyword: str
    position: float
    search_engine: str = "google"


@dataclass
class PageSpeed:
    mobile: float = 0.0
    desktop: float = 0.0


@dataclass
class CoreWebVitals:
    lcp: float = 0.0
    fid: float = 0.0
    cls: float = 0.0
    fcp: float = 0.0
    ttfb: float = 0.0


@dataclass
class MonitoringMetrics:
    page_views: int = 0
    unique_visitors: int = 0
    bounce_rate: float = 0.0
    average_session_duration: float = 0.0
    organic_traffic: int = 0
    keyword_rankings: List[KeywordRanking] = field(default_factory=list)
    backlinks: int = 0
    domain_authority: float = 0.0
    page_speed: PageSpeed = field(default_factory=PageSpeed)
    core_web_vitals: CoreWebVitals = field(default_factory=CoreWebVitals)
    crawl_errors: int = 0
    indexed_pages: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonitoringMetrics":
        data = dict(data or {})
        rankings = [KeywordRanking(**kw) for kw in data.pop("keyword_rankings", []) or []]
        page_speed = PageSpeed(**(data.pop("page_speed", None) or {}))
        vitals = CoreWebVitals(**(data.pop("core_web_vitals", None) or {}))
        return cls(keyword_rankings=rankings, page_speed=page_speed, core_web_vitals=vitals, **data)


@dataclass
class MonitoringIssue:
    type: IssueType
    message: str
    priority: Priority
    category: str


@dataclass
class SEOMonitoringData:
    """A metrics snapshot for one URL at one point in time"""
    url: str
    timestamp: str
    metrics: MonitoringMetrics
    issues: List[MonitoringIssue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SEOMonitoringData":
        return cls(
            url=data["url"],
            timestamp=data["timestamp"],
            metrics=MonitoringMetrics.from_dict(data.get("metrics")),
            issues=[
                MonitoringIssue(
                    type=IssueType(issue["type"]),
                    message=issue["message"],
                    priority=Priority(issue["priority"]),
                    category=issue["category"],
                )
                for issue in data.get("issues") or []
            ],
        )


@dataclass
class AverageMetrics:
    organic_traffic: float = 0.0
    average_ranking: float = 0.0
    domain_authority: float = 0.0
    page_speed: float = 0.0
    bounce_rate: float = 0.0
    average_session_duration: float = 0.0


@dataclass
class ReportPeriod:
    start: str
    end: str


@dataclass
class KeyMetrics:
    organic_traffic: float
    average_ranking: float
    domain_authority: float
    page_speed: float


@dataclass
class ReportSummary:
    overall_score: int
    trend: Trend
    key_metrics: KeyMetrics


@dataclass
class TopPage:
    url: str
    title: str
    views: int
    ranking: float


@dataclass
class TopKeyword:
    keyword: str
    position: float
    traffic: int
    trend: Trend


@dataclass
class WorstPage:
    url: str
    title: str
    issues: int
    score: int


@dataclass
class ReportPerformance:
    top_pages: List[TopPage] = field(default_factory=list)
    top_keywords: List[TopKeyword] = field(default_factory=list)
    worst_performing_pages: List[WorstPage] = field(default_factory=list)


@dataclass
class ReportIssue:
    type: IssueType
    category: str
    message: str
    affected_pages: int
    priority: Priority


@dataclass
class ReportRecommendation:
    priority: Priority
    category: str
    recommendation: str
    expected_impact: str
    effort: Effort


@dataclass
class SEOReport:
    """Aggregated monitoring report for a period"""
    period: ReportPeriod
    summary: ReportSummary
    performance: ReportPerformance
    issues: List[ReportIssue] = field(default_factory=list)
    recommendations: List[ReportRecommendation] = field(default_factory=list)


@dataclass
class SEOAlert:
    type: AlertType
    threshold: float
    email: str
    enabled: bool = True
    created_at: Optional[str] = None


# --- Generator input records ---

@dataclass
class PropertyRecord:
    """Property listing as stored by the site"""
    id: str
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    status: Optional[str] = None
    images: List[str] = field(default_factory=list)
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    video_url: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class PersonRef:
    name: str
    url: Optional[str] = None


@dataclass
class OrganizationRef:
    name: str
    url: Optional[str] = None
    logo: Optional[str] = None


@dataclass
class OrganizationRecord:
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    social_profiles: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class ArticleRecord:
    """Blog post; description feeds JSON-LD, excerpt feeds page metadata"""
    title: str
    slug: str
    description: Optional[str] = None
    excerpt: Optional[str] = None
    author: Optional[str] = None
    featured_image: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    status: Optional[str] = None


@dataclass
class PublicListingRecord:
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: Any = None
    type: Optional[str] = None
    featured_image_url: Optional[str] = None
    updated_at: Optional[str] = None
    status: Optional[str] = None


@dataclass
class BreadcrumbItem:
    name: str
    url: str


@dataclass
class FAQItem:
    question: str
    answer: str


@dataclass
class LocalBusinessRecord:
    name: str
    address: str
    description: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_range: Optional[str] = None
    opening_hours: List[str] = field(default_factory=list)


@dataclass
class Price:
    value: float
    currency: Optional[str] = None


@dataclass
class Rating:
    rating_value: float
    review_count: Optional[int] = None
    best_rating: Optional[float] = None
    worst_rating: Optional[float] = None


@dataclass
class EventLocation:
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class EventOrganizer:
    name: str
    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class EventRecord:
    """Open house, project launch or similar scheduled event"""
    name: str
    start_date: str
    location: EventLocation
    description: Optional[str] = None
    end_date: Optional[str] = None
    organizer: Optional[EventOrganizer] = None
    image: Optional[str] = None
    url: Optional[str] = None
    price: Optional[Price] = None
    availability: Optional[str] = None
    event_status: Optional[str] = None
    attendance_mode: Optional[str] = None


@dataclass
class ProductReview:
    author: str
    rating: Rating
    date_published: Optional[str] = None
    review_body: Optional[str] = None


@dataclass
class ProductRecord:
    name: str
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)
    brand: Optional[str] = None
    sku: Optional[str] = None
    gtin: Optional[str] = None
    mpn: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Price] = None
    availability: Optional[str] = None
    condition: Optional[str] = None
    aggregate_rating: Optional[Rating] = None
    reviews: List[ProductReview] = field(default_factory=list)


@dataclass
class ReviewedItem:
    name: str
    type: str = "Organization"


@dataclass
class ReviewRecord:
    item_reviewed: ReviewedItem
    rating: Rating
    author: PersonRef
    review_body: Optional[str] = None
    date_published: Optional[str] = None
    publisher: Optional[OrganizationRef] = None


@dataclass
class InstructionStep:
    text: str
    name: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None


@dataclass
class RecipeRecord:
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    author: Optional[str] = None
    date_published: Optional[str] = None
    date_modified: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    recipe_yield: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    nutrition: Dict[str, str] = field(default_factory=dict)
    ingredients: List[str] = field(default_factory=list)
    instructions: List[InstructionStep] = field(default_factory=list)
    aggregate_rating: Optional[Rating] = None


@dataclass
class HowToRecord:
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    total_time: Optional[str] = None
    estimated_cost: Optional[Price] = None
    supply: List[str] = field(default_factory=list)
    tool: List[str] = field(default_factory=list)
    steps: List[InstructionStep] = field(default_factory=list)


@dataclass
class WebPageRecord:
    name: str
    url: str
    description: Optional[str] = None
    breadcrumb: List[BreadcrumbItem] = field(default_factory=list)
    is_part_of: Optional[OrganizationRef] = None
    main_entity: Optional[Dict[str, Any]] = None
    date_published: Optional[str] = None
    date_modified: Optional[str] = None
    author: Optional[PersonRef] = None
    publisher: Optional[OrganizationRef] = None


@dataclass
class ListingFilters:
    """Property search filters shared by listing metadata and search URLs"""
    location_name: Optional[str] = None
    type: Optional[str] = None
    bhk: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None


# --- Sitemap ---

class ChangeFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: ChangeFrequency
    priority: float


# --- Page metadata ---

@dataclass
class PageMetadata:
    """Head metadata for a page: title, robots, canonical, Open Graph and Twitter card"""
    title: str
    description: str
    metadata_base: str
    robots: Dict[str, bool]
    keywords: Optional[str] = None
    canonical: Optional[str] = None
    icons: Dict[str, str] = field(default_factory=dict)
    open_graph: Optional[Dict[str, Any]] = None
    twitter: Optional[Dict[str, Any]] = None
    other: Optional[Dict[str, str]] = None
    verification: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

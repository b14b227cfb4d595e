"""
Pytest configuration and shared fixtures
"""
import pytest
import os
import tempfile
from unittest.mock import Mock

# Add project root to path
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from database import DatabaseManager
from models import (
    PageContent, Heading, ImageRef, LinkRef, SEOMonitoringData, MonitoringMetrics,
    KeywordRanking, PageSpeed, MonitoringIssue, IssueType, Priority
)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def db_manager(temp_db):
    """Database manager with temporary database"""
    return DatabaseManager(temp_db)


@pytest.fixture
def good_page_content():
    """Page content that passes every audit rule"""
    body = ' '.join(['Spacious apartment homes with modern amenities near the metro.'] * 40)
    return PageContent(
        title="Premium 3 BHK Apartments in Whitefield",
        description=(
            "Explore premium 3 BHK apartments in Whitefield, Bangalore with modern amenities, "
            "excellent connectivity and easy financing options."
        ),
        headings=[
            Heading(level=1, text="Premium Apartments in Whitefield"),
            Heading(level=2, text="Amenities and Connectivity"),
        ],
        body=body,
        images=[ImageRef(src="/images/tower.jpg", alt="Apartment tower exterior")],
        links=[
            LinkRef(href="https://extrarealtygroup.com/properties", is_external=False),
            LinkRef(href="https://extrarealtygroup.com/blog", is_external=False),
            LinkRef(href="https://extrarealtygroup.com/contact", is_external=False),
            LinkRef(href="https://maps.example.com", is_external=True),
        ],
    )


@pytest.fixture
def sample_html():
    """Page with metadata, headings, links, images and structured data"""
    return """
    <html>
        <head>
            <title>Luxury Villas in Sarjapur Road | Extra Realty</title>
            <meta name="description" content="Luxury villas for sale">
            <meta property="og:title" content="Luxury Villas">
            <script type="application/ld+json">
            {"@context": "https://schema.org", "@type": "Organization",
             "name": "Extra Realty", "url": "https://extrarealtygroup.com"}
            </script>
            <script type="application/ld+json">{not valid json</script>
        </head>
        <body>
            <h1>Luxury Villas</h1>
            <h2>Floor Plans</h2>
            <p>Independent villas with private gardens.</p>
            <div itemscope itemtype="https://schema.org/Product"><span>Villa</span></div>
            <div vocab="https://schema.org/" typeof="Event">Open house</div>
            <a href="/properties/villa-1">Villa 1</a>
            <a href="https://partner.example.com/loans">Home loans</a>
            <a href="mailto:sales@extrarealtygroup.com">Email us</a>
            <img src="/images/villa.jpg" alt="Villa front view">
            <img src="/images/garden.jpg">
            <script>var tracking = "ignored";</script>
        </body>
    </html>
    """


@pytest.fixture
def mock_response(sample_html):
    """Mock HTTP response"""
    mock = Mock()
    mock.status_code = 200
    mock.text = sample_html
    mock.content = sample_html.encode('utf-8')
    return mock


def make_snapshot(url="https://extrarealtygroup.com/properties/villa-1", timestamp="2024-03-10T10:00:00",
                  organic_traffic=600, page_views=1000, positions=(3.0, 7.0), domain_authority=55,
                  mobile=85, desktop=95, bounce_rate=35, session=150, crawl_errors=0, issues=()):
    """Build a monitoring snapshot with sensible defaults"""
    rankings = [KeywordRanking(keyword=f"keyword {i}", position=p) for i, p in enumerate(positions)]
    return SEOMonitoringData(
        url=url,
        timestamp=timestamp,
        metrics=MonitoringMetrics(
            page_views=page_views,
            organic_traffic=organic_traffic,
            keyword_rankings=rankings,
            domain_authority=domain_authority,
            page_speed=PageSpeed(mobile=mobile, desktop=desktop),
            bounce_rate=bounce_rate,
            average_session_duration=session,
            crawl_errors=crawl_errors,
        ),
        issues=list(issues),
    )


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def missing_title_issue():
    return MonitoringIssue(type=IssueType.ERROR, message="Missing title tag", priority=Priority.HIGH,
                           category="Content")

"""
Tests for FastAPI endpoints
"""
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from unittest.mock import Mock

from api import app, get_toolkit_app
from app import SEOToolkitApp


@pytest.fixture
def toolkit(temp_db, mock_response):
    """Toolkit app on a temporary database with a mocked HTTP session"""
    session = Mock()
    session.get.return_value = mock_response
    return SEOToolkitApp(db_path=temp_db, session=session, init_logging=False)


@pytest.fixture
def client(toolkit):
    app.dependency_overrides[get_toolkit_app] = lambda: toolkit
    yield TestClient(app)
    app.dependency_overrides.clear()


def _monitoring_payload(timestamp=None, organic_traffic=600):
    payload = {
        "url": "https://extrarealtygroup.com/properties/villa-1",
        "metrics": {
            "page_views": 1000,
            "organic_traffic": organic_traffic,
            "keyword_rankings": [{"keyword": "villa sarjapur", "position": 3},
                                 {"keyword": "luxury villa", "position": 7}],
            "domain_authority": 55,
            "page_speed": {"mobile": 85, "desktop": 95},
            "bounce_rate": 35,
            "average_session_duration": 150,
        },
        "issues": [{"type": "error", "message": "Missing title tag", "priority": "high", "category": "Content"}],
    }
    if timestamp:
        payload["timestamp"] = timestamp
    return payload


class TestAPIEndpoints:
    """Test class for API endpoints"""

    def test_root_endpoint(self):
        """Test root endpoint"""
        response = TestClient(app).get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "SEO Toolkit API"
        assert data["version"] == "1.0.0"
        assert "/docs" in data["docs"]

    def test_uninitialized_toolkit(self):
        """Endpoints that need the toolkit fail cleanly before startup"""
        response = TestClient(app).post("/search/suggestions", json={"query": "villa"})
        assert response.status_code == 500

    def test_schema_types(self, client):
        response = client.get("/structured-data/types")
        assert response.status_code == 200
        assert len(response.json()["data"]["types"]) == 10

    def test_checklist(self, client):
        response = client.get("/checklist")
        assert response.status_code == 200
        assert len(response.json()["data"]["checklist"]) == 3


class TestAuditEndpoints:
    """Tests for content and URL audits"""

    def test_audit_content(self, client):
        response = client.post("/audit/content", json={
            "url": "https://extrarealtygroup.com/villas",
            "content": {
                "title": "Villas",
                "headings": [{"level": 1, "text": "Luxury Villas in Sarjapur"}],
                "body": "villa " * 50,
                "links": [{"href": "https://partner.example.com", "is_external": True}],
            },
            "target_keywords": ["villa"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["audit"]["score"] == 70
        assert data["data"]["analysis"]["keywords"]["distribution"] == "fair"

    def test_audit_content_rejects_bad_heading(self, client):
        response = client.post("/audit/content", json={
            "url": "https://extrarealtygroup.com",
            "content": {"headings": [{"level": 9, "text": "Too deep"}]},
        })
        assert response.status_code == 422

    def test_audit_url_success(self, client, toolkit):
        """Test successful URL audit"""
        response = client.post("/audit/url", json={"url": "https://extrarealtygroup.com/villas",
                                                   "target_keywords": ["villa"]})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "URL audit completed"
        assert "response_time" in data["data"]

        history = toolkit.get_audit_history("https://extrarealtygroup.com/villas")
        assert history[0]["audit_type"] == "content_audit"

    def test_audit_url_failure(self, client, toolkit):
        """Test failed URL audit"""
        toolkit.session.get.return_value = None

        response = client.post("/audit/url", json={"url": "https://extrarealtygroup.com/down"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "URL audit failed"
        assert data["data"]["audit"]["score"] == 0

    def test_audit_url_invalid_input(self, client):
        """Test URL audit with invalid input"""
        response = client.post("/audit/url", json={"url": "invalid-url"})
        assert response.status_code == 422


class TestStructuredDataEndpoints:
    """Tests for structured data endpoints"""

    def test_analyze_url(self, client):
        response = client.post("/structured-data/analyze", json={"url": "https://extrarealtygroup.com/villas"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Found 4 structured data items"
        assert data["data"]["found_schemas"] == ["Organization", "Product", "Event"]

    def test_quick_check(self, client):
        response = client.post("/structured-data/check", json={"url": "https://extrarealtygroup.com/villas"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Structured data found"
        assert data["data"]["data"]["counts"]["total"] == 4

    def test_quick_check_unreachable(self, client, toolkit):
        toolkit.session.get.return_value = None

        response = client.post("/structured-data/check", json={"url": "https://extrarealtygroup.com/down"})
        assert response.json()["success"] is False

    def test_validate_html(self, client, sample_html):
        response = client.post("/structured-data/validate", json={"html": sample_html})

        assert response.status_code == 200
        assert response.json()["data"]["score"] == 95


class TestSearchEndpoints:
    """Tests for suggestions and auto-correction"""

    def test_suggestions(self, client):
        response = client.post("/search/suggestions", json={"query": "apart"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["query"] == "apart"
        assert data["suggestions"][0]["suggestion"] == "apartment"
        assert data["suggestions"][0]["type"] == "partial"

    def test_suggestions_with_candidates(self, client):
        response = client.post("/search/suggestions", json={
            "query": "whitefield", "candidates": ["Whitefield", "Whitefield East", "Hebbal"], "max_results": 1
        })
        suggestions = response.json()["data"]["suggestions"]

        assert len(suggestions) == 1
        assert suggestions[0]["type"] == "exact"

    def test_suggestions_reject_zero_results(self, client):
        response = client.post("/search/suggestions", json={"query": "villa", "max_results": 0})
        assert response.status_code == 422

    def test_autocorrect(self, client):
        response = client.post("/search/autocorrect", json={"query": "3 bhk aprtment"})

        data = response.json()
        assert data["message"] == "Query corrected"
        assert data["data"]["corrected"] == "3 bhk apartment"

    def test_autocorrect_no_change(self, client):
        response = client.post("/search/autocorrect", json={"query": "villa"})
        assert response.json()["message"] == "No correction needed"

    def test_keyword_suggestions(self, client):
        response = client.post("/keywords/suggestions", json={"base_keyword": "villa",
                                                              "content": "garden garden pool"})

        data = response.json()["data"]
        assert data["primary"] == ["villa"]
        assert data["secondary"] == ["garden", "pool"]


class TestMonitoringEndpoints:
    """Tests for monitoring data, reports and alerts"""

    def test_store_and_report(self, client):
        response = client.post("/monitoring/data", json=_monitoring_payload("2024-03-10T10:00:00"))
        assert response.status_code == 200
        assert response.json()["data"]["timestamp"] == "2024-03-10T10:00:00"

        response = client.get("/monitoring/report",
                              params={"start": "2024-03-01T00:00:00", "end": "2024-03-31T23:59:59"})

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["summary"]["overall_score"] == 79
        assert report["summary"]["trend"] == "up"
        assert report["issues"][0]["affected_pages"] == 1
        assert report["performance"]["top_pages"][0]["title"] == "villa-1"

    def test_store_rejects_bad_metrics(self, client):
        payload = _monitoring_payload()
        payload["metrics"]["not_a_metric"] = 1

        response = client.post("/monitoring/data", json=payload)
        assert response.status_code == 422

    def test_report_rejects_reversed_period(self, client):
        response = client.get("/monitoring/report", params={"start": "2024-03-31", "end": "2024-03-01"})
        assert response.status_code == 400

    def test_alerts(self, client):
        client.post("/monitoring/data", json=_monitoring_payload(datetime.now().isoformat()))

        response = client.post("/alerts", json={"alerts": [
            {"type": "traffic_drop", "threshold": 1000, "email": "seo@extrarealtygroup.com"},
            {"type": "ranking_drop", "threshold": 10, "email": "seo@extrarealtygroup.com"},
        ]})
        assert response.status_code == 200
        assert response.json()["data"]["alerts"] == 2

        response = client.get("/alerts/check")
        data = response.json()["data"]

        assert data["total"] == 1
        assert data["triggered"][0]["type"] == "traffic_drop"

    def test_alerts_reject_empty_list(self, client):
        response = client.post("/alerts", json={"alerts": []})
        assert response.status_code == 422

    def test_alerts_reject_unknown_type(self, client):
        response = client.post("/alerts", json={"alerts": [
            {"type": "moon_phase", "threshold": 1, "email": "seo@extrarealtygroup.com"}
        ]})
        assert response.status_code == 422


class TestSiteEndpoints:
    """Tests for site config, robots.txt and cleanup"""

    def test_site_config(self, client):
        response = client.get("/site-config")

        data = response.json()["data"]
        assert data["config"]["site_url"] == "https://extrarealtygroup.com"
        assert data["validation"]["is_valid"] is True

    def test_robots_txt(self, client, toolkit):
        response = client.get("/robots.txt")
        assert response.status_code == 200
        assert response.text.startswith("User-agent: *")

        toolkit.db_manager.save_setting("robots_txt", "User-agent: *\nDisallow: /\n")
        assert client.get("/robots.txt").text == "User-agent: *\nDisallow: /\n"

    def test_cleanup(self, client):
        response = client.post("/cleanup", params={"days_to_keep": 7})
        assert response.status_code == 200
        assert response.json()["data"]["days_kept"] == 7

    def test_sitemap_xml(self, client):
        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "<loc>https://extrarealtygroup.com/public-listings</loc>" in response.text

    def test_sitemap_with_content(self, client):
        response = client.post("/sitemap", json={
            "properties": [{"id": "1", "slug": "sarjapur-villa", "status": "active"},
                           {"id": "2", "status": "sold"}],
            "articles": [{"slug": "market-update", "status": "published"}],
        })

        assert response.status_code == 200
        assert "https://extrarealtygroup.com/properties/sarjapur-villa" in response.text
        assert "https://extrarealtygroup.com/properties/2" not in response.text
        assert "https://extrarealtygroup.com/blog/market-update" in response.text

    def test_disabled_sitemap_is_not_found(self, client, toolkit):
        toolkit.db_manager.save_setting("sitemap_enabled", "off")
        assert client.get("/sitemap.xml").status_code == 404


class TestURLAndImageEndpoints:
    """Tests for URL structure and image checks"""

    def test_validate_url(self, client):
        response = client.post("/urls/validate", json={"url": "/properties/whitefield/apartment"})

        data = response.json()
        assert data["message"] == "URL structure is valid"
        assert data["data"]["issues"] == []

    def test_validate_url_with_issues(self, client):
        response = client.post("/urls/validate", json={"url": "/Properties/3--BHK"})

        data = response.json()["data"]
        assert data["is_valid"] is False
        assert "URL contains uppercase letters" in data["issues"]

    def test_validate_image(self, client):
        response = client.post("/images/validate", json={
            "url": "https://extrarealtygroup.com/images/villa.webp", "alt": "Villa front view",
            "width": 1200, "height": 800,
        })
        assert response.json()["message"] == "Image is SEO friendly"

    def test_validate_image_with_issues(self, client):
        response = client.post("/images/validate", json={"url": "/images/villa.jpg", "width": 100, "height": 100})

        data = response.json()["data"]
        assert data["issues"] == ["Missing alt text", "Image is too small"]

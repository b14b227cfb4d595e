"""
Tests for page metadata, keyword extraction and settings-backed site config
"""
import json
import sqlite3
from datetime import datetime
from unittest.mock import Mock
from xml.etree import ElementTree as ET

from config import DEFAULT_SEO_CONFIG, SEOConfig, validate_seo_config
from metadata import (
    generate_metadata, generate_property_metadata, generate_article_metadata,
    generate_public_listing_metadata, generate_public_listings_page_metadata, generate_home_metadata,
    generate_properties_listing_metadata, extract_text_from_content, generate_keywords,
    load_seo_config, load_organization_data, generate_robots_txt, build_sitemap_entries,
    generate_sitemap_xml, generate_sitemap
)
from models import (
    ArticleRecord, ChangeFrequency, ListingFilters, OrganizationRecord, PropertyRecord, PublicListingRecord,
    SitemapEntry
)

SITEMAP_NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}
NOW = datetime(2024, 3, 1, 12, 0, 0)


class TestGenerateMetadata:
    """Tests for the core metadata assembly"""

    def test_defaults(self):
        metadata = generate_metadata({"title": "Villas", "canonical": "/villas"})

        assert metadata.description == DEFAULT_SEO_CONFIG.default_description
        assert metadata.metadata_base == "https://extrarealtygroup.com"
        assert metadata.robots == {"index": True, "follow": True}
        assert metadata.canonical == "https://extrarealtygroup.com/villas"
        assert metadata.icons == {"icon": "/favicon", "shortcut": "/favicon", "apple": "/favicon"}
        assert metadata.keywords is None
        assert metadata.other is None
        assert metadata.verification is None

    def test_canonical_path_without_leading_slash(self):
        metadata = generate_metadata({"title": "Villas", "canonical": "villas"})
        assert metadata.canonical == "https://extrarealtygroup.com/villas"

    def test_open_graph_and_twitter(self):
        metadata = generate_metadata({"title": "Villas", "og_image": "/images/villa.jpg"})

        image = metadata.open_graph["images"][0]
        assert image == {"url": "https://extrarealtygroup.com/images/villa.jpg", "width": 1200,
                         "height": 630, "alt": "Villas"}
        assert metadata.open_graph["url"] == DEFAULT_SEO_CONFIG.site_url
        assert metadata.open_graph["type"] == "website"
        assert metadata.twitter["card"] == "summary_large_image"
        assert metadata.twitter["creator"] == "@extrarealty"
        assert metadata.twitter["images"] == ["https://extrarealtygroup.com/images/villa.jpg"]

    def test_no_index_and_no_follow_override_robots(self):
        metadata = generate_metadata({"title": "Private", "no_index": True, "no_follow": True})
        assert metadata.robots == {"index": False, "follow": False}

    def test_product_type_maps_to_website(self):
        metadata = generate_metadata({"title": "Villa", "og_type": "product"})
        assert metadata.open_graph["type"] == "website"

    def test_optional_sections_can_be_disabled(self):
        metadata = generate_metadata(
            {"title": "Villa", "canonical": "/v", "structured_data": {"@type": "Thing"}},
            options={"include_open_graph": False, "include_twitter": False,
                     "include_canonical": False, "include_structured_data": False}
        )

        assert metadata.open_graph is None
        assert metadata.twitter is None
        assert metadata.canonical is None
        assert metadata.other is None
        assert set(metadata.to_dict()) == {"title", "description", "metadata_base", "robots", "icons"}

    def test_structured_data_and_verification(self):
        site = SEOConfig(site_name="Extra", site_url="https://extrarealtygroup.com", default_title="Extra",
                         default_description="Homes", default_og_image="/og.jpg",
                         google_site_verification="g-123", bing_site_verification="b-456")
        metadata = generate_metadata({"title": "Villa", "structured_data": {"@type": "Thing"}}, site)

        assert json.loads(metadata.other["application/ld+json"]) == {"@type": "Thing"}
        assert metadata.verification == {"google": "g-123", "bing": "b-456"}
        assert "twitter" in metadata.to_dict()
        assert "creator" not in metadata.twitter


class TestPageMetadata:
    """Tests for the per-page metadata builders"""

    def test_property_metadata(self):
        metadata = generate_property_metadata(PropertyRecord(
            id="42",
            slug="sarjapur-villa",
            title="Sarjapur Villa",
            description="x" * 200,
            price=25000000,
            location="Sarjapur Road",
            property_type="Villa",
            images=["/uploads/villa.jpg"],
        ))

        assert metadata.title == "Sarjapur Villa - ₹25,000,000 | Sarjapur Road"
        assert len(metadata.description) == 150
        assert metadata.description.endswith("...")
        assert metadata.canonical == "https://extrarealtygroup.com/properties/sarjapur-villa"
        assert metadata.keywords.startswith("villa, sarjapur road, real estate")
        assert metadata.open_graph["images"][0]["url"] == "https://extrarealtygroup.com/uploads/villa.jpg"

    def test_property_without_price(self):
        metadata = generate_property_metadata(PropertyRecord(id="7", title="Plot", location="Hoskote"))

        assert metadata.title == "Plot - Price on Request | Hoskote"
        assert metadata.canonical == "https://extrarealtygroup.com/properties/7"

    def test_article_metadata(self):
        metadata = generate_article_metadata(ArticleRecord(title="Market update", slug="market-update",
                                                           excerpt="Prices rose", categories=["market"]))

        assert metadata.canonical == "https://extrarealtygroup.com/blog/market-update"
        assert metadata.open_graph["type"] == "article"
        assert metadata.keywords.endswith("market")

    def test_public_listing_uses_rich_text_content(self):
        metadata = generate_public_listing_metadata(PublicListingRecord(
            title="Launch",
            slug="launch",
            content={"content": [{"text": "New tower"}, {"text": "launching soon"}]},
        ))

        assert metadata.description == "New tower launching soon"
        assert metadata.keywords.endswith("update")

    def test_public_listing_fallback_description(self):
        metadata = generate_public_listing_metadata(PublicListingRecord(title="Launch", slug="launch"))
        assert metadata.description == "Latest property updates and announcements"

    def test_public_listings_page(self):
        metadata = generate_public_listings_page_metadata([1, 2, 3])
        assert metadata.title == "Public Listings & Property Updates (3+ Updates) | Extra Realty Private Limited"

    def test_home_metadata(self):
        assert generate_home_metadata().title == DEFAULT_SEO_CONFIG.default_title
        assert generate_home_metadata([1, 2]).title.endswith(" - 2+ Premium Properties")
        assert generate_home_metadata().canonical == "https://extrarealtygroup.com/"

    def test_properties_listing_filters(self):
        metadata = generate_properties_listing_metadata(
            properties=[1] * 12,
            filters=ListingFilters(location_name="Whitefield", type="Apartment", bhk=3, min_price=5000000)
        )

        assert metadata.title == (
            "3 BHK Properties - Apartment Properties - Whitefield Properties - Properties for Sale & Rent"
            " - ₹5,000,000+ (12+ Properties) | Extra Realty Private Limited"
        )
        assert "whitefield" in metadata.keywords
        assert "3 bhk" in metadata.keywords
        assert metadata.description.startswith("Properties in ₹5,000,000+ range.")

    def test_properties_listing_ignores_any_type(self):
        metadata = generate_properties_listing_metadata(filters=ListingFilters(type="Any", max_price=10000000))
        assert metadata.title == "Properties for Sale & Rent - up to ₹10,000,000 | Extra Realty Private Limited"


class TestKeywordsAndText:
    """Tests for text helpers"""

    def test_extract_text_from_content(self):
        content = [{"type": "paragraph", "content": [{"text": "Hello"}, {"text": "world"}]}, "again"]
        assert extract_text_from_content(content) == "Hello world again"
        assert extract_text_from_content(None) == ""

    def test_generate_keywords(self):
        keywords = generate_keywords("The spacious villa, with a large garden and the pool!", ["villa", "bangalore"])
        assert keywords == ["spacious", "villa", "large", "garden", "pool", "bangalore"]

    def test_generate_keywords_limits_content_words(self):
        content = " ".join(f"word{i}" for i in range(20))
        assert len(generate_keywords(content)) == 10


class TestSiteSettings:
    """Tests for settings-backed config, organization data and robots.txt"""

    def test_defaults_when_no_settings(self, db_manager):
        assert load_seo_config(db_manager) == DEFAULT_SEO_CONFIG

    def test_settings_override_defaults(self, db_manager):
        db_manager.save_setting("site_title", "Extra Homes")
        db_manager.save_setting("site_url", "https://extrahomes.example/")
        db_manager.save_setting("twitter_url", "https://twitter.com/extrahomes")
        db_manager.save_setting("bing_site_verification", "bing-1")

        site = load_seo_config(db_manager)

        assert site.site_name == "Extra Homes"
        assert site.site_url == "https://extrahomes.example"
        assert site.twitter_handle == "@extrahomes"
        assert site.bing_site_verification == "bing-1"
        assert site.default_description == DEFAULT_SEO_CONFIG.default_description

    def test_database_errors_fall_back_to_defaults(self):
        db = Mock()
        db.get_settings.side_effect = sqlite3.OperationalError("no such table")

        assert load_seo_config(db) == DEFAULT_SEO_CONFIG
        assert load_organization_data(db).name == DEFAULT_SEO_CONFIG.site_name

    def test_organization_data(self, db_manager):
        db_manager.save_setting("contact_phone", "+91 80 1234 5678")
        db_manager.save_setting("facebook_url", "https://facebook.com/extra")

        org = load_organization_data(db_manager)

        assert isinstance(org, OrganizationRecord)
        assert org.phone == "+91 80 1234 5678"
        assert org.social_profiles["facebook"] == "https://facebook.com/extra"

    def test_default_robots_txt(self, db_manager):
        robots = generate_robots_txt(db_manager)

        assert robots.startswith("User-agent: *\nAllow: /\n")
        assert "Sitemap: https://extrarealtygroup.com/sitemap.xml" in robots
        assert "Disallow: /admin/" in robots
        assert robots.endswith("Crawl-delay: 1\n")

    def test_custom_robots_txt(self, db_manager):
        db_manager.save_setting("robots_txt", "User-agent: *\nDisallow: /\n")
        assert generate_robots_txt(db_manager) == "User-agent: *\nDisallow: /\n"

    def test_validate_seo_config(self):
        assert validate_seo_config(DEFAULT_SEO_CONFIG)["is_valid"]

        broken = SEOConfig(site_name="", site_url="not-a-url", default_title="t" * 61,
                           default_description="d", default_og_image="/og.jpg", twitter_handle="extra")
        report = validate_seo_config(broken)

        assert report["is_valid"] is False
        assert report["errors"] == ["Site name is required", "Site URL must be a valid URL"]
        assert len(report["warnings"]) == 2


class TestSitemap:
    """Tests for sitemap entries, XML rendering and settings switches"""

    PROPERTIES = [
        PropertyRecord(id="1", title="Villa", slug="sarjapur-villa", status="active",
                       updated_at="2024-02-01T00:00:00"),
        PropertyRecord(id="2", title="Sold plot", status="sold"),
        PropertyRecord(id="3", title="Flat"),
    ]
    LISTINGS = [
        PublicListingRecord(title="Launch", slug="launch", status="published"),
        PublicListingRecord(title="Draft", slug="draft", status="draft"),
    ]
    ARTICLES = [
        ArticleRecord(title="Market update", slug="market-update", status="published"),
        ArticleRecord(title="Unpublished", slug="unpublished", status="draft"),
    ]

    def test_entries_include_only_live_content(self):
        entries = build_sitemap_entries(DEFAULT_SEO_CONFIG, self.PROPERTIES, self.LISTINGS, self.ARTICLES, now=NOW)

        assert [entry.loc for entry in entries] == [
            "https://extrarealtygroup.com",
            "https://extrarealtygroup.com/public-listings",
            "https://extrarealtygroup.com/properties/sarjapur-villa",
            "https://extrarealtygroup.com/properties/3",
            "https://extrarealtygroup.com/public-listings/launch",
            "https://extrarealtygroup.com/blog/market-update",
        ]
        assert entries[0].priority == 1.0
        assert entries[0].changefreq == ChangeFrequency.DAILY
        assert entries[2].lastmod == "2024-02-01T00:00:00"
        assert entries[3].lastmod == NOW.isoformat()
        assert entries[4].priority == 0.7
        assert entries[5].changefreq == ChangeFrequency.MONTHLY

    def test_entries_without_properties_or_blog(self):
        entries = build_sitemap_entries(DEFAULT_SEO_CONFIG, self.PROPERTIES, self.LISTINGS, self.ARTICLES,
                                        include_properties=False, include_blog=False, now=NOW)
        assert len(entries) == 2

    def test_sitemap_xml(self):
        xml = generate_sitemap_xml([
            SitemapEntry("https://extrarealtygroup.com", "2024-03-01T12:00:00", ChangeFrequency.DAILY, 1.0),
            SitemapEntry("https://extrarealtygroup.com/blog/a&b", "2024-03-01", ChangeFrequency.MONTHLY, 0.6),
        ])

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        root = ET.fromstring(xml.encode())
        assert root.tag == "{http://www.sitemaps.org/schemas/sitemap/0.9}urlset"

        urls = root.findall("sm:url", SITEMAP_NS)
        assert len(urls) == 2
        assert urls[0].find("sm:priority", SITEMAP_NS).text == "1.0"
        assert urls[1].find("sm:loc", SITEMAP_NS).text == "https://extrarealtygroup.com/blog/a&b"
        assert urls[1].find("sm:changefreq", SITEMAP_NS).text == "monthly"
        assert "a&amp;b" in xml

    def test_generate_sitemap_uses_site_settings(self, db_manager):
        db_manager.save_setting("site_url", "https://extrahomes.example")
        db_manager.save_setting("sitemap_include_blog", "false")

        xml = generate_sitemap(db_manager, self.PROPERTIES, self.LISTINGS, self.ARTICLES, now=NOW)

        assert "https://extrahomes.example/properties/sarjapur-villa" in xml
        assert "/blog/" not in xml

    def test_disabled_sitemap_returns_none(self, db_manager):
        db_manager.save_setting("sitemap_enabled", "false")
        assert generate_sitemap(db_manager, self.PROPERTIES) is None

    def test_settings_errors_keep_sitemap_enabled(self):
        db = Mock()
        db.get_settings.side_effect = sqlite3.OperationalError("no such table")

        xml = generate_sitemap(db, self.PROPERTIES, now=NOW)

        assert "https://extrarealtygroup.com/properties/sarjapur-villa" in xml

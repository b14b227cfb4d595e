"""
Configuration for the SEO toolkit
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse


@dataclass
class ToolkitConfig:
    """Configuration settings for the SEO toolkit"""

    # Database settings
    db_path: str = "seo_toolkit.db"

    # HTTP settings
    timeout: int = 15
    max_retries: int = 0

    # User agents for rotation
    user_agents: List[str] = None

    # Monitoring
    previous_period_months: int = 1
    alert_window_hours: int = 24

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_format: str = "%(asctime)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        if self.user_agents is None:
            self.user_agents = [
                "Mozilla/5.0 (compatible; SEO-Bot/1.0)",
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            ]


@dataclass(frozen=True)
class SEOConfig:
    """Site-wide values used as defaults by the metadata and JSON-LD builders"""
    site_name: str
    site_url: str
    default_title: str
    default_description: str
    default_og_image: str
    favicon_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    facebook_app_id: Optional[str] = None
    google_site_verification: Optional[str] = None
    bing_site_verification: Optional[str] = None
    currency: str = "INR"
    country_code: str = "IN"

    def absolute_url(self, path: str) -> str:
        """Resolve a site-relative path against site_url"""
        if path.startswith("http"):
            return path
        return f"{self.site_url}{path}"


DEFAULT_SEO_CONFIG = SEOConfig(
    site_name="Extra Realty Private Limited",
    site_url="https://extrarealtygroup.com",
    default_title="Extra Realty - Explore all Premium Properties near you",
    default_description=(
        "Discover the best homes for you & your family. Premium properties in Bangalore "
        "with modern amenities and excellent connectivity."
    ),
    default_og_image="/images/og-default.jpg",
    twitter_handle="@extrarealty",
)


def validate_seo_config(seo_config: SEOConfig) -> Dict[str, object]:
    """Check a site config for missing fields and length/format warnings"""
    errors = []
    warnings = []

    if not seo_config.site_name:
        errors.append("Site name is required")
    if not seo_config.site_url:
        errors.append("Site URL is required")
    if not seo_config.default_title:
        errors.append("Default title is required")
    if not seo_config.default_description:
        errors.append("Default description is required")

    if seo_config.site_url:
        parsed = urlparse(seo_config.site_url)
        if not (parsed.scheme and parsed.netloc):
            errors.append("Site URL must be a valid URL")

    if seo_config.default_title and len(seo_config.default_title) > 60:
        warnings.append("Default title is longer than recommended 60 characters")
    if seo_config.default_description and len(seo_config.default_description) > 160:
        warnings.append("Default description is longer than recommended 160 characters")
    if seo_config.twitter_handle and not seo_config.twitter_handle.startswith("@"):
        warnings.append("Twitter handle should start with @")

    return {
        "is_valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


# Default configuration instance
config = ToolkitConfig()

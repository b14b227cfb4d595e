"""
SEO-friendly URL helpers: slugs, hierarchical property paths, canonical URLs and URL structure checks
"""
import re
from typing import Dict, List, Optional, Any
from urllib.parse import urlencode

from config import SEOConfig, DEFAULT_SEO_CONFIG
from models import ListingFilters, PropertyRecord

MAX_URL_LENGTH = 100
ALTERNATE_LANGUAGES = ['en', 'en-IN', 'x-default']


def generate_slug(text: str) -> str:
    """Lowercase, hyphen-separated slug with punctuation removed"""
    slug = (text or '').lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug)
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


def generate_property_url(prop: PropertyRecord) -> str:
    """Hierarchical path /properties/<location>/<type>/<title>-<id>"""
    segments = ['properties']
    for value in (prop.location, prop.property_type):
        slug = generate_slug(value)
        if slug:
            segments.append(slug)
    segments.append(f"{generate_slug(prop.title)}-{prop.id}")
    return '/' + '/'.join(segments)


def generate_blog_url(slug: str, category: Optional[str] = None) -> str:
    if category:
        return f"/blog/{generate_slug(category)}/{slug}"
    return f"/blog/{slug}"


def generate_location_property_url(location: str, property_type: Optional[str] = None,
                                   bhk: Optional[int] = None) -> str:
    path = f"/properties/{generate_slug(location)}"
    if property_type:
        path = f"{path}/{generate_slug(property_type)}"
        if bhk:
            path = f"{path}/{bhk}-bhk"
    return path


def _path_segment(path: str, index: int) -> Optional[str]:
    segments = [segment for segment in path.split('/') if segment]
    if segments and segments[0] == 'properties' and len(segments) > index:
        return segments[index].replace('-', ' ')
    return None


def extract_location_from_url(path: str) -> Optional[str]:
    return _path_segment(path, 1)


def extract_property_type_from_url(path: str) -> Optional[str]:
    return _path_segment(path, 2)


def generate_canonical_url(path: str, seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> str:
    if path.startswith('http'):
        return path
    clean_path = path if path.startswith('/') else f"/{path}"
    return seo_config.absolute_url(clean_path)


def generate_alternate_urls(path: str, seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> List[Dict[str, str]]:
    canonical = generate_canonical_url(path, seo_config)
    return [{'hreflang': language, 'href': canonical} for language in ALTERNATE_LANGUAGES]


def validate_url_structure(url: str) -> Dict[str, Any]:
    """Check a URL path for length, character set, repeated hyphens and casing"""
    issues = []
    suggestions = []

    if len(url) > MAX_URL_LENGTH:
        issues.append(f"URL is too long (over {MAX_URL_LENGTH} characters)")
        suggestions.append('Consider shortening the URL by removing unnecessary words')

    if re.search(r'[^a-zA-Z0-9\-_/]', url):
        issues.append('URL contains special characters')
        suggestions.append('Use only letters, numbers, hyphens, and forward slashes')

    if '--' in url:
        issues.append('URL contains multiple consecutive hyphens')
        suggestions.append('Replace multiple hyphens with single hyphens')

    if url.endswith('/') and len(url) > 1:
        suggestions.append('Consider removing trailing slash for consistency')

    if re.search(r'[A-Z]', url):
        issues.append('URL contains uppercase letters')
        suggestions.append('Use only lowercase letters in URLs')

    return {
        'is_valid': not issues,
        'issues': issues,
        'suggestions': suggestions,
    }


def _number(value: float):
    return int(value) if float(value).is_integer() else value


def generate_property_search_url(filters: ListingFilters) -> str:
    """Property search path with the active filters as query parameters"""
    params = []
    if filters.location_name:
        params.append(('location', filters.location_name))
    if filters.type:
        params.append(('type', filters.type))
    if filters.bhk:
        params.append(('bhk', filters.bhk))
    if filters.min_price:
        params.append(('min_price', _number(filters.min_price)))
    if filters.max_price:
        params.append(('max_price', _number(filters.max_price)))
    if filters.search:
        params.append(('search', filters.search))

    return f"/properties?{urlencode(params)}" if params else '/properties'

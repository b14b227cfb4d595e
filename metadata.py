"""
Page metadata builders, keyword extraction and settings-backed site config
"""
import re
import json
import sqlite3
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.etree import ElementTree as ET

from config import SEOConfig, DEFAULT_SEO_CONFIG
from models import (
    ArticleRecord, ChangeFrequency, ListingFilters, OrganizationRecord, PageMetadata, PropertyRecord,
    PublicListingRecord, SitemapEntry
)
from url_utils import generate_canonical_url

logger = logging.getLogger(__name__)

OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630
MAX_DESCRIPTION_LENGTH = 150

STOP_WORDS = {'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by', 'a', 'an'}

# Settings keys read from the site settings table
SETTINGS_KEYS = [
    'site_title', 'meta_description', 'site_url', 'website_url', 'facebook_url',
    'twitter_url', 'instagram_url', 'linkedin_url', 'contact_email', 'contact_phone',
    'contact_address', 'logo_url', 'default_og_image_url', 'favicon_url',
    'google_site_verification', 'bing_site_verification', 'robots_txt',
]

ROBOTS_DISALLOW = ['/admin/', '/api/', '/users/', '/wishlist/']
ROBOTS_ALLOW = ['/properties/', '/public-listings/', '/blog/', '/m/properties/', '/m/public-listings/']

SITEMAP_NAMESPACE = 'http://www.sitemaps.org/schemas/sitemap/0.9'
SITEMAP_SETTINGS_KEYS = ['sitemap_enabled', 'sitemap_include_properties', 'sitemap_include_blog']
FALSE_VALUES = {'false', '0', 'no', 'off'}


def _truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    if len(text) > limit:
        return f"{text[:limit - 3]}..."
    return text


def _format_price(value: float) -> str:
    if float(value).is_integer():
        return f"₹{value:,.0f}"
    return f"₹{value:,.2f}"


def generate_metadata(seo_data: Dict[str, Any], seo_config: SEOConfig = DEFAULT_SEO_CONFIG,
                      options: Optional[Dict[str, Any]] = None) -> PageMetadata:
    """
    Assemble head metadata for a page

    seo_data carries title, description and optional keywords, canonical,
    og_image, og_type, twitter_card, structured_data, no_index and no_follow.
    options toggles include_open_graph, include_twitter, include_canonical,
    include_structured_data and sets the base robots directives.
    """
    options = options or {}
    robots = dict(options.get('robots') or {'index': True, 'follow': True})
    robots['index'] = False if seo_data.get('no_index') else robots.get('index', True)
    robots['follow'] = False if seo_data.get('no_follow') else robots.get('follow', True)

    title = seo_data['title']
    description = seo_data.get('description') or seo_config.default_description
    canonical = generate_canonical_url(seo_data['canonical'], seo_config) if seo_data.get('canonical') else None
    og_image = seo_config.absolute_url(seo_data.get('og_image') or seo_config.default_og_image)
    favicon = seo_config.absolute_url(seo_config.favicon_url) if seo_config.favicon_url else '/favicon'

    metadata = PageMetadata(
        title=title,
        description=description,
        metadata_base=seo_config.site_url,
        robots=robots,
        keywords=', '.join(seo_data['keywords']) if seo_data.get('keywords') else None,
        canonical=canonical if options.get('include_canonical', True) else None,
        icons={'icon': favicon, 'shortcut': favicon, 'apple': favicon},
    )

    if options.get('include_open_graph', True):
        og_type = seo_data.get('og_type') or 'website'
        metadata.open_graph = {
            'title': title,
            'description': description,
            'url': canonical or seo_config.site_url,
            'site_name': seo_config.site_name,
            'images': [{'url': og_image, 'width': OG_IMAGE_WIDTH, 'height': OG_IMAGE_HEIGHT, 'alt': title}],
            # Open Graph has no product type for listings
            'type': 'website' if og_type == 'product' else og_type,
            'locale': 'en_US',
        }

    if options.get('include_twitter', True):
        twitter = {
            'card': seo_data.get('twitter_card') or 'summary_large_image',
            'title': title,
            'description': description,
            'images': [og_image],
        }
        if seo_config.twitter_handle:
            twitter['creator'] = seo_config.twitter_handle
            twitter['site'] = seo_config.twitter_handle
        metadata.twitter = twitter

    if options.get('include_structured_data', True) and seo_data.get('structured_data'):
        metadata.other = {'application/ld+json': json.dumps(seo_data['structured_data'])}

    verification = {}
    if seo_config.google_site_verification:
        verification['google'] = seo_config.google_site_verification
    if seo_config.bing_site_verification:
        verification['bing'] = seo_config.bing_site_verification
    if verification:
        metadata.verification = verification

    return metadata


def generate_property_metadata(prop: PropertyRecord, seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    price_text = _format_price(prop.price) if prop.price else 'Price on Request'
    location = prop.location or ''

    keywords = [
        (prop.property_type or '').lower(),
        location.lower(),
        'real estate',
        'property for sale',
        'apartment',
        'house',
        'bangalore properties',
    ]
    seo_data = {
        'title': f"{prop.title} - {price_text} | {location}",
        'description': _truncate(prop.description or ''),
        'keywords': [keyword for keyword in keywords if keyword],
        'canonical': f"/properties/{prop.slug or prop.id}",
        'og_image': prop.images[0] if prop.images else seo_config.default_og_image,
        'og_type': 'product',
        'twitter_card': 'summary_large_image',
    }
    return generate_metadata(seo_data, seo_config)


def generate_article_metadata(article: ArticleRecord, seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    return generate_metadata({
        'title': article.title,
        'description': article.excerpt,
        'keywords': ['real estate blog', 'property news', 'bangalore real estate'] + list(article.categories),
        'canonical': f"/blog/{article.slug}",
        'og_image': article.featured_image or seo_config.default_og_image,
        'og_type': 'article',
        'twitter_card': 'summary_large_image',
    }, seo_config)


def generate_public_listing_metadata(listing: PublicListingRecord,
                                     seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    description = listing.excerpt
    if not description and listing.content:
        description = _truncate(extract_text_from_content(listing.content).strip())

    return generate_metadata({
        'title': listing.title,
        'description': description or 'Latest property updates and announcements',
        'keywords': ['property news', 'real estate updates', 'bangalore properties',
                     (listing.type or 'update').lower()],
        'canonical': f"/public-listings/{listing.slug}",
        'og_image': listing.featured_image_url or seo_config.default_og_image,
        'og_type': 'article',
        'twitter_card': 'summary_large_image',
    }, seo_config)


def generate_public_listings_page_metadata(listings: Optional[List[Any]] = None,
                                           seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    title = 'Public Listings & Property Updates'
    if listings:
        title = f"{title} ({len(listings)}+ Updates)"

    return generate_metadata({
        'title': f"{title} | {seo_config.site_name}",
        'description': 'Stay updated with the latest property news, announcements, and real estate updates '
                       'from Extra Realty.',
        'keywords': ['public listings', 'property news', 'real estate updates', 'property announcements',
                     'bangalore real estate'],
        'canonical': '/public-listings',
        'og_type': 'website',
    }, seo_config)


def generate_home_metadata(featured_properties: Optional[List[Any]] = None,
                           seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    title = seo_config.default_title
    if featured_properties:
        title = f"{title} - {len(featured_properties)}+ Premium Properties"

    return generate_metadata({
        'title': title,
        'description': seo_config.default_description,
        'keywords': ['real estate bangalore', 'premium properties', 'apartments for sale', 'houses for sale',
                     'property investment', 'bangalore real estate market'],
        'canonical': '/',
        'og_type': 'website',
    }, seo_config)


def generate_properties_listing_metadata(properties: Optional[List[Any]] = None,
                                         filters: Optional[ListingFilters] = None,
                                         seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> PageMetadata:
    """Listing page metadata that reflects the active search filters"""
    filters = filters or ListingFilters()
    title = 'Properties for Sale & Rent'
    description = ('Browse our extensive collection of premium properties including apartments, houses, '
                   'villas, and commercial spaces.')
    keywords = ['properties for sale', 'real estate', 'apartments', 'houses', 'property listings']

    location_name = filters.location_name
    if location_name:
        title = f"{location_name} Properties - {title}"
        description = f"Find the best properties in {location_name}. {description}"
        keywords.append(location_name.lower())

    property_type = filters.type
    if property_type and property_type != 'Any':
        title = f"{property_type} Properties - {title}"
        description = f"Discover premium {property_type.lower()} properties. {description}"
        keywords.append(property_type.lower())

    bhk = filters.bhk
    if bhk:
        title = f"{bhk} BHK Properties - {title}"
        description = f"Find {bhk} BHK properties with modern amenities. {description}"
        keywords.extend([f"{bhk} bhk", f"{bhk} bedroom"])

    min_price = filters.min_price
    max_price = filters.max_price
    if min_price or max_price:
        if min_price and max_price:
            price_text = f"{_format_price(min_price)} - {_format_price(max_price)}"
        elif min_price:
            price_text = f"{_format_price(min_price)}+"
        else:
            price_text = f"up to {_format_price(max_price)}"
        title = f"{title} - {price_text}"
        description = f"Properties in {price_text} range. {description}"
        keywords.extend(['budget properties', 'affordable properties'])

    if properties:
        title = f"{title} ({len(properties)}+ Properties)"

    return generate_metadata({
        'title': f"{title} | {seo_config.site_name}",
        'description': description,
        'keywords': keywords,
        'canonical': '/properties',
        'og_type': 'website',
    }, seo_config)


def extract_text_from_content(content: Any) -> str:
    """Flatten rich-text JSON (strings, lists, nodes with text/content) into plain text"""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return ' '.join(extract_text_from_content(item) for item in content)
    if isinstance(content, dict):
        if content.get('text'):
            return str(content['text'])
        if content.get('content'):
            return extract_text_from_content(content['content'])
        return ' '.join(extract_text_from_content(value) for value in content.values())
    return ''


def generate_keywords(content: str, additional_keywords: Optional[List[str]] = None) -> List[str]:
    """First ten significant words of content plus extras, de-duplicated in order"""
    words = re.sub(r'[^\w\s]', ' ', (content or '').lower()).split()
    words = [word for word in words if len(word) > 3 and word not in STOP_WORDS][:10]

    keywords = []
    for keyword in words + list(additional_keywords or []):
        if keyword not in keywords:
            keywords.append(keyword)
    return keywords


def _twitter_handle(twitter_url: Optional[str]) -> Optional[str]:
    if not twitter_url:
        return None
    match = re.search(r'(?:twitter|x)\.com/([^/?]+)', twitter_url)
    return f"@{match.group(1)}" if match else None


def load_seo_config(db_manager) -> SEOConfig:
    """Site config from stored settings, falling back to the defaults"""
    try:
        settings = db_manager.get_settings(SETTINGS_KEYS)
    except sqlite3.Error as e:
        logger.warning(f"Failed to fetch SEO settings, using defaults: {e}")
        return DEFAULT_SEO_CONFIG

    if not settings:
        return DEFAULT_SEO_CONFIG

    return SEOConfig(
        site_name=settings.get('site_title') or DEFAULT_SEO_CONFIG.site_name,
        site_url=(settings.get('site_url') or settings.get('website_url') or DEFAULT_SEO_CONFIG.site_url).rstrip('/'),
        default_title=settings.get('site_title') or DEFAULT_SEO_CONFIG.default_title,
        default_description=settings.get('meta_description') or DEFAULT_SEO_CONFIG.default_description,
        default_og_image=settings.get('default_og_image_url') or DEFAULT_SEO_CONFIG.default_og_image,
        favicon_url=settings.get('favicon_url'),
        twitter_handle=_twitter_handle(settings.get('twitter_url')) or DEFAULT_SEO_CONFIG.twitter_handle,
        facebook_app_id=settings.get('facebook_url'),
        google_site_verification=settings.get('google_site_verification'),
        bing_site_verification=settings.get('bing_site_verification'),
    )


def load_organization_data(db_manager) -> OrganizationRecord:
    """Organization record for the JSON-LD builder, read from stored settings"""
    fallback = OrganizationRecord(
        name=DEFAULT_SEO_CONFIG.site_name,
        description=DEFAULT_SEO_CONFIG.default_description,
    )
    try:
        settings = db_manager.get_settings(SETTINGS_KEYS)
    except sqlite3.Error as e:
        logger.warning(f"Failed to fetch organization settings, using defaults: {e}")
        return fallback

    if not settings:
        return fallback

    return OrganizationRecord(
        name=settings.get('site_title') or DEFAULT_SEO_CONFIG.site_name,
        description=settings.get('meta_description') or DEFAULT_SEO_CONFIG.default_description,
        logo=settings.get('logo_url'),
        phone=settings.get('contact_phone'),
        email=settings.get('contact_email'),
        address=settings.get('contact_address'),
        social_profiles={
            'facebook': settings.get('facebook_url'),
            'twitter': settings.get('twitter_url'),
            'instagram': settings.get('instagram_url'),
            'linkedin': settings.get('linkedin_url'),
        },
    )


def default_robots_txt(site_url: str) -> str:
    lines = ['User-agent: *', 'Allow: /', '', f"Sitemap: {site_url}/sitemap.xml", '']
    lines += ['# Disallow admin and private areas']
    lines += [f"Disallow: {path}" for path in ROBOTS_DISALLOW]
    lines += ['', '# Allow important pages']
    lines += [f"Allow: {path}" for path in ROBOTS_ALLOW]
    lines += ['', 'Crawl-delay: 1']
    return '\n'.join(lines) + '\n'


def generate_robots_txt(db_manager) -> str:
    """Custom robots.txt from settings, or the default one for the configured site"""
    try:
        custom = db_manager.get_setting('robots_txt')
    except sqlite3.Error as e:
        logger.warning(f"Failed to read robots.txt setting: {e}")
        custom = None

    if custom and custom.strip():
        return custom

    return default_robots_txt(load_seo_config(db_manager).site_url)


def _setting_enabled(settings: Dict[str, str], key: str) -> bool:
    value = settings.get(key)
    if value is None:
        return True
    return value.strip().lower() not in FALSE_VALUES


def _is_live(status: Optional[str], live_status: str) -> bool:
    return status is None or status == live_status


def build_sitemap_entries(seo_config: SEOConfig = DEFAULT_SEO_CONFIG,
                          properties: Optional[List[PropertyRecord]] = None,
                          listings: Optional[List[PublicListingRecord]] = None,
                          articles: Optional[List[ArticleRecord]] = None,
                          include_properties: bool = True, include_blog: bool = True,
                          now: Optional[datetime] = None) -> List[SitemapEntry]:
    """
    Sitemap entries for the home page, listing pages and live content

    Properties must be active and listings and articles published; records
    without a status are included. Records without updated_at use now.
    """
    now = (now or datetime.now()).isoformat()
    entries = [
        SitemapEntry(seo_config.site_url, now, ChangeFrequency.DAILY, 1.0),
        SitemapEntry(seo_config.absolute_url('/public-listings'), now, ChangeFrequency.DAILY, 0.8),
    ]

    if include_properties:
        for prop in properties or []:
            if _is_live(prop.status, 'active'):
                entries.append(SitemapEntry(
                    seo_config.absolute_url(f"/properties/{prop.slug or prop.id}"),
                    prop.updated_at or now, ChangeFrequency.WEEKLY, 0.8
                ))
        for listing in listings or []:
            if _is_live(listing.status, 'published'):
                entries.append(SitemapEntry(
                    seo_config.absolute_url(f"/public-listings/{listing.slug}"),
                    listing.updated_at or now, ChangeFrequency.WEEKLY, 0.7
                ))

    if include_blog:
        for article in articles or []:
            if _is_live(article.status, 'published'):
                entries.append(SitemapEntry(
                    seo_config.absolute_url(f"/blog/{article.slug}"),
                    article.updated_at or now, ChangeFrequency.MONTHLY, 0.6
                ))

    return entries


def generate_sitemap_xml(entries: List[SitemapEntry]) -> str:
    """Render sitemap entries as a sitemaps.org urlset document"""
    urlset = ET.Element('urlset', xmlns=SITEMAP_NAMESPACE)
    for entry in entries:
        url = ET.SubElement(urlset, 'url')
        ET.SubElement(url, 'loc').text = entry.loc
        ET.SubElement(url, 'lastmod').text = entry.lastmod
        ET.SubElement(url, 'changefreq').text = entry.changefreq.value
        ET.SubElement(url, 'priority').text = f"{entry.priority:.1f}"

    ET.indent(urlset)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(urlset, encoding='unicode') + '\n'


def generate_sitemap(db_manager, properties: Optional[List[PropertyRecord]] = None,
                     listings: Optional[List[PublicListingRecord]] = None,
                     articles: Optional[List[ArticleRecord]] = None,
                     now: Optional[datetime] = None) -> Optional[str]:
    """Sitemap for the configured site, or None when the sitemap is switched off in settings"""
    try:
        settings = db_manager.get_settings(SITEMAP_SETTINGS_KEYS)
    except sqlite3.Error as e:
        logger.warning(f"Failed to read sitemap settings, using defaults: {e}")
        settings = {}

    if not _setting_enabled(settings, 'sitemap_enabled'):
        logger.info("Sitemap generation is disabled")
        return None

    entries = build_sitemap_entries(
        load_seo_config(db_manager), properties, listings, articles,
        include_properties=_setting_enabled(settings, 'sitemap_include_properties'),
        include_blog=_setting_enabled(settings, 'sitemap_include_blog'),
        now=now,
    )
    logger.info(f"Generated sitemap with {len(entries)} URLs")
    return generate_sitemap_xml(entries)

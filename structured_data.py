"""
Structured data extraction and schema.org validation
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from bs4 import BeautifulSoup

from models import (
    DataFormat, IssueType, ParsedStructuredData, SchemaValidationResult,
    StructuredDataValidationResult, ValidationRecommendation, ValidationStatus
)
from utils import RobustSession, validate_url

logger = logging.getLogger(__name__)

SCHEMA_ORG_PREFIXES = ('http://schema.org/', 'https://schema.org/')
INVALID_JSON_LD = 'Invalid JSON-LD syntax'
SCHEMA_VALIDATOR_URL = 'https://validator.schema.org/#url='


@dataclass(frozen=True)
class SchemaTypeConfig:
    schema: str
    name: str
    description: str
    required_properties: Tuple[str, ...]
    recommended_properties: Tuple[str, ...] = ()


class SchemaType(Enum):
    """Schema.org types the validator knows required properties for"""

    ORGANIZATION = SchemaTypeConfig(
        'Organization', 'Organization', 'Business or organization information',
        ('name', 'url'), ('logo', 'contactPoint', 'sameAs', 'address')
    )
    ARTICLE = SchemaTypeConfig(
        'Article', 'Article', 'News, blog or editorial article',
        ('headline', 'author', 'datePublished'), ('image', 'dateModified', 'publisher', 'description')
    )
    PRODUCT = SchemaTypeConfig(
        'Product', 'Product', 'Product or item offered for sale',
        ('name',), ('image', 'description', 'offers', 'brand', 'aggregateRating')
    )
    LOCAL_BUSINESS = SchemaTypeConfig(
        'LocalBusiness', 'Local Business', 'Physical business with a location',
        ('name', 'address'), ('telephone', 'openingHours', 'geo', 'url')
    )
    WEBSITE = SchemaTypeConfig(
        'WebSite', 'Website', 'Website with optional site search',
        ('name', 'url'), ('potentialAction', 'description')
    )
    BREADCRUMB_LIST = SchemaTypeConfig(
        'BreadcrumbList', 'Breadcrumb List', 'Navigation trail to the current page',
        ('itemListElement',)
    )
    FAQ = SchemaTypeConfig(
        'FAQPage', 'FAQ Page', 'Frequently asked questions and answers',
        ('mainEntity',)
    )
    REVIEW = SchemaTypeConfig(
        'Review', 'Review', 'Review of an item or service',
        ('itemReviewed', 'reviewRating', 'author'), ('datePublished', 'reviewBody')
    )
    EVENT = SchemaTypeConfig(
        'Event', 'Event', 'Scheduled event such as an open house',
        ('name', 'startDate', 'location'), ('endDate', 'description', 'image', 'offers', 'organizer')
    )
    RECIPE = SchemaTypeConfig(
        'Recipe', 'Recipe', 'Cooking recipe',
        ('name', 'image', 'recipeIngredient'), ('author', 'recipeInstructions', 'totalTime', 'nutrition')
    )


SCHEMA_TYPES: Dict[str, SchemaTypeConfig] = {member.value.schema: member.value for member in SchemaType}


def _strip_schema_prefix(value: str) -> str:
    for prefix in SCHEMA_ORG_PREFIXES:
        value = value.replace(prefix, '')
    return value.strip()


def _first_type(data: Any) -> Optional[str]:
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None
    schema_type = data.get('@type')
    if isinstance(schema_type, list):
        schema_type = schema_type[0] if schema_type else None
    return str(schema_type) if schema_type else None


def _graph_nodes(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Typed @graph nodes, each carrying the enclosing document's @context"""
    nodes = []
    for node in data['@graph']:
        if not isinstance(node, dict) or not _first_type(node):
            continue
        if '@context' in data and '@context' not in node:
            node = dict({'@context': data['@context']}, **node)
        nodes.append(node)
    return nodes


def _parse_json_ld(soup: BeautifulSoup) -> List[ParsedStructuredData]:
    items = []
    for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
        raw = script.string if script.string is not None else script.get_text()
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Skipping malformed JSON-LD block")
            items.append(ParsedStructuredData(
                type='unknown', data=raw, format=DataFormat.JSON_LD,
                valid=False, errors=[INVALID_JSON_LD]
            ))
            continue

        if isinstance(data, dict) and isinstance(data.get('@graph'), list) and not data.get('@type'):
            documents = _graph_nodes(data)
        else:
            documents = [data]

        for document in documents:
            schema_type = _first_type(document)
            if not schema_type:
                continue
            items.append(ParsedStructuredData(
                type=schema_type, data=document, format=DataFormat.JSON_LD, valid=True
            ))
    return items


def _parse_typed_attributes(soup: BeautifulSoup, attribute: str, data_format: DataFormat,
                            extra: Dict[str, Any] = None) -> List[ParsedStructuredData]:
    # Only the type is reported; properties are not walked
    attrs = {attribute: True}
    attrs.update(extra or {})
    items = []
    for element in soup.find_all(attrs=attrs):
        value = element.get(attribute)
        if isinstance(value, list):
            value = ' '.join(value)
        if not value:
            continue
        items.append(ParsedStructuredData(
            type=_strip_schema_prefix(value), data=None, format=data_format, valid=True
        ))
    return items


def parse_structured_data(html: str) -> List[ParsedStructuredData]:
    """Extract JSON-LD, Microdata and RDFa items from an HTML document"""
    if not html:
        return []

    soup = BeautifulSoup(html, 'html.parser')
    items = _parse_json_ld(soup)
    items.extend(_parse_typed_attributes(soup, 'itemtype', DataFormat.MICRODATA, {'itemscope': True}))
    items.extend(_parse_typed_attributes(soup, 'typeof', DataFormat.RDFA))
    return items


def extract_schema_types(items: List[ParsedStructuredData]) -> List[str]:
    """Distinct schema types in order of first appearance, ignoring unparsable blocks"""
    types = []
    for item in items:
        if item.type and item.type != 'unknown' and item.type not in types:
            types.append(item.type)
    return types


def count_by_format(items: List[ParsedStructuredData]) -> Dict[str, int]:
    counts = {'json_ld': 0, 'microdata': 0, 'rdfa': 0, 'total': len(items)}
    for item in items:
        if item.format == DataFormat.JSON_LD:
            counts['json_ld'] += 1
        elif item.format == DataFormat.MICRODATA:
            counts['microdata'] += 1
        elif item.format == DataFormat.RDFA:
            counts['rdfa'] += 1
    return counts


def has_property(data: Any, prop: str) -> bool:
    """True if data (or any element of a list) has prop set to a non-empty value"""
    if isinstance(data, list):
        return any(has_property(item, prop) for item in data)
    if isinstance(data, dict):
        return prop in data and data[prop] is not None and data[prop] != ''
    return False


def _required_properties(schema_type: str) -> Tuple[str, ...]:
    schema_config = SCHEMA_TYPES.get(schema_type)
    return schema_config.required_properties if schema_config else ()


def validate_structured_data(items: List[ParsedStructuredData]) -> List[SchemaValidationResult]:
    """Check each parsed item for required schema.org properties"""
    results = []

    for item in items:
        issues = list(item.errors)
        recommendations = []

        if not item.valid:
            recommendations.append('Fix the JSON syntax of this structured data block')
        elif item.format == DataFormat.JSON_LD and item.data:
            for prop in _required_properties(item.type):
                if not has_property(item.data, prop):
                    issues.append(f"Missing required property: {prop}")
                    recommendations.append(f'Add the required property "{prop}" to your {item.type} schema')

            if isinstance(item.data, dict):
                if not item.data.get('@context'):
                    issues.append('Missing @context property')
                    recommendations.append('Add @context property to your JSON-LD schema')
                if not item.data.get('@type'):
                    issues.append('Missing @type property')
                    recommendations.append('Add @type property to your JSON-LD schema')

        if not item.valid or any('Missing required' in issue for issue in issues):
            status = ValidationStatus.INVALID
        elif issues:
            status = ValidationStatus.WARNING
        else:
            status = ValidationStatus.VALID

        results.append(SchemaValidationResult(
            schema=item.type,
            status=status,
            issues=issues,
            recommendations=recommendations
        ))

    return results


def validate_schema_type(data: Any, schema_type: str) -> Dict[str, Any]:
    """Check a single object against the required properties of schema_type"""
    issues = []
    recommendations = []

    schema_config = SCHEMA_TYPES.get(schema_type)
    if schema_config is None:
        issues.append(f"Unknown schema type: {schema_type}")
        return {'is_valid': False, 'issues': issues, 'recommendations': recommendations}

    for prop in schema_config.required_properties:
        if not has_property(data, prop):
            issues.append(f"Missing required property: {prop}")
            recommendations.append(f'Add the required property "{prop}" to your {schema_type} schema')

    return {'is_valid': not issues, 'issues': issues, 'recommendations': recommendations}


def generate_validation_recommendations(items: List[ParsedStructuredData],
                                        results: List[SchemaValidationResult]) -> List[ValidationRecommendation]:
    """Site-level suggestions plus one entry per invalid or warning result"""
    recommendations = []
    found_types = {item.type for item in items}

    if 'Organization' not in found_types:
        recommendations.append(ValidationRecommendation(
            type=IssueType.WARNING,
            message='Organization schema not found',
            suggestion='Add Organization schema to provide business information to search engines'
        ))

    if 'WebSite' not in found_types:
        recommendations.append(ValidationRecommendation(
            type=IssueType.INFO,
            message='WebSite schema not found',
            suggestion='Add WebSite schema to enable site search functionality'
        ))

    for result in results:
        if result.status == ValidationStatus.INVALID:
            recommendations.append(ValidationRecommendation(
                type=IssueType.ERROR,
                message=f"{result.schema} schema has validation errors",
                suggestion='; '.join(result.recommendations)
            ))
        elif result.status == ValidationStatus.WARNING:
            recommendations.append(ValidationRecommendation(
                type=IssueType.WARNING,
                message=f"{result.schema} schema has warnings",
                suggestion='; '.join(result.recommendations)
            ))

    return recommendations


def calculate_structured_data_score(items: List[ParsedStructuredData],
                                    results: List[SchemaValidationResult]) -> float:
    """50 for having any structured data, up to 30 for type variety, up to 20 for validity"""
    if not items:
        return 0

    score = 50.0
    unique_types = {item.type for item in items}
    score += min(len(unique_types) * 10, 30)

    if results:
        valid = sum(1 for result in results if result.status == ValidationStatus.VALID)
        score += (valid / len(results)) * 20

    return min(score, 100)


def get_available_schema_types() -> List[Dict[str, str]]:
    return [
        {'value': key, 'label': schema_config.name, 'description': schema_config.description}
        for key, schema_config in SCHEMA_TYPES.items()
    ]


def get_schema_type_config(schema_type: str) -> Optional[SchemaTypeConfig]:
    return SCHEMA_TYPES.get(schema_type)


def analyze_html(url: str, html: str, timestamp: str = None) -> StructuredDataValidationResult:
    """Run parse, validate, recommend and score over an HTML document"""
    items = parse_structured_data(html)
    results = validate_structured_data(items)

    return StructuredDataValidationResult(
        url=url,
        found_schemas=extract_schema_types(items),
        total_schemas=len(items),
        validation_results=results,
        recommendations=generate_validation_recommendations(items, results),
        score=calculate_structured_data_score(items, results),
        timestamp=timestamp or datetime.now().isoformat()
    )


def degraded_result(url: str) -> StructuredDataValidationResult:
    return StructuredDataValidationResult(
        url=url,
        found_schemas=[],
        total_schemas=0,
        validation_results=[],
        recommendations=[ValidationRecommendation(
            type=IssueType.ERROR,
            message='Failed to fetch or parse the page',
            suggestion='Check if the URL is accessible and contains valid HTML'
        )],
        score=0,
        timestamp=datetime.now().isoformat()
    )


class StructuredDataAnalyzer:
    """Fetches pages and analyzes their structured data"""

    def __init__(self, session: RobustSession = None):
        self.session = session or RobustSession()

    def analyze(self, url: str) -> StructuredDataValidationResult:
        """Analyze structured data for a URL; failures give a score-0 result"""
        if not validate_url(url):
            logger.warning(f"Invalid URL for structured data analysis: {url}")
            return degraded_result(url)

        response = self.session.get(url)
        if response is None:
            logger.error(f"Failed to fetch {url} for structured data analysis")
            return degraded_result(url)

        result = analyze_html(url, response.text)
        logger.info(f"Structured data for {url}: {result.total_schemas} items, score {result.score:.0f}")
        return result

    def quick_check(self, url: str) -> Dict[str, Any]:
        """Summarize which structured data formats and types a page carries"""
        validator_link = f"{SCHEMA_VALIDATOR_URL}{quote(url, safe='')}"

        response = self.session.get(url) if validate_url(url) else None
        if response is None:
            return {
                'type': 'Structured Data',
                'status': 'error',
                'message': 'Structured data test failed',
                'details': f"Could not fetch {url}",
                'url': validator_link,
                'data': None,
            }

        items = parse_structured_data(response.text)
        counts = count_by_format(items)
        schema_types = extract_schema_types(items)

        if not items:
            return {
                'type': 'Structured Data',
                'status': 'warning',
                'message': 'No structured data detected',
                'details': 'Consider adding structured data for better SEO. Recommended: JSON-LD for '
                           'Organization, WebSite, and content-specific schemas',
                'url': validator_link,
                'data': {'counts': counts, 'schema_types': []},
            }

        return {
            'type': 'Structured Data',
            'status': 'success',
            'message': 'Structured data found',
            'details': (
                f"JSON-LD: {counts['json_ld']} blocks, Microdata: {counts['microdata']} elements, "
                f"RDFa: {counts['rdfa']} elements. Schema types: {', '.join(schema_types) or 'Unknown'}"
            ),
            'url': validator_link,
            'data': {'counts': counts, 'schema_types': schema_types},
        }

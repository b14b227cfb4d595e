"""
JSON-LD builders for schema.org rich results

Every builder is a pure function of its input record and the site config:
no timestamps are added, and optional fields are left out rather than set
to null or to empty placeholders.
"""
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from config import SEOConfig, DEFAULT_SEO_CONFIG
from models import (
    ArticleRecord, BreadcrumbItem, EventRecord, FAQItem, HowToRecord, LocalBusinessRecord,
    OrganizationRecord, OrganizationRef, PersonRef, Price, ProductRecord, PropertyRecord,
    Rating, RecipeRecord, ReviewRecord, WebPageRecord
)

SCHEMA_CONTEXT = 'https://schema.org'
DEFAULT_AUTHOR = 'Extra Realty Team'
DEFAULT_BUSINESS_DESCRIPTION = 'Premium real estate services in Bangalore'


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, list):
        return not value
    if isinstance(value, dict):
        return all(key == '@type' for key in value)
    return False


def _compact(value: Any) -> Any:
    """Recursively drop None values, empty lists and objects holding nothing but @type"""
    if isinstance(value, dict):
        compacted = {key: _compact(item) for key, item in value.items()}
        return {key: item for key, item in compacted.items() if not _is_empty(item)}
    if isinstance(value, list):
        compacted = [_compact(item) for item in value]
        return [item for item in compacted if not _is_empty(item)]
    return value


def _iso(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).isoformat()
    except ValueError:
        return value


def _schema_url(name: str) -> str:
    return f"{SCHEMA_CONTEXT}/{name}"


def _person(person: Optional[PersonRef]) -> Optional[Dict[str, Any]]:
    if not person or not person.name:
        return None
    return {'@type': 'Person', 'name': person.name, 'url': person.url}


def _organization_ref(org: Optional[OrganizationRef]) -> Optional[Dict[str, Any]]:
    if not org:
        return None
    return {'@type': 'Organization', 'name': org.name, 'logo': org.logo, 'url': org.url}


def _geo(latitude, longitude) -> Optional[Dict[str, Any]]:
    if latitude is None or longitude is None:
        return None
    return {'@type': 'GeoCoordinates', 'latitude': latitude, 'longitude': longitude}


def _rating(rating: Optional[Rating], aggregate: bool = False) -> Optional[Dict[str, Any]]:
    if not rating:
        return None
    data = {
        '@type': 'AggregateRating' if aggregate else 'Rating',
        'ratingValue': rating.rating_value,
        'bestRating': rating.best_rating or 5,
        'worstRating': rating.worst_rating or 1,
    }
    if aggregate:
        data['reviewCount'] = rating.review_count
    return data


def _offer(price: Optional[Price], default_currency: Optional[str], availability: Optional[str],
           **extra) -> Optional[Dict[str, Any]]:
    if not price:
        return None
    return dict({
        '@type': 'Offer',
        'price': price.value,
        'priceCurrency': price.currency or default_currency,
        'availability': _schema_url(availability or 'InStock'),
    }, **extra)


def generate_property_structured_data(prop: PropertyRecord,
                                      seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    """RealEstateListing for a property page"""
    property_url = seo_config.absolute_url(f"/properties/{prop.slug or prop.id}")
    images = [seo_config.absolute_url(img) for img in prop.images]

    data = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'RealEstateListing',
        'name': prop.title,
        'description': prop.description,
        'url': property_url,
        'image': images or None,
        'offers': {
            '@type': 'Offer',
            'price': prop.price or 0,
            'priceCurrency': seo_config.currency,
            'availability': _schema_url('InStock' if prop.status == 'active' else 'OutOfStock'),
        },
        'address': {
            '@type': 'PostalAddress',
            'addressLocality': prop.location,
            'addressCountry': seo_config.country_code,
        },
        'geo': _geo(prop.latitude, prop.longitude),
        'numberOfRooms': prop.bedrooms or None,
        'numberOfBathroomsTotal': prop.bathrooms or None,
    }

    if prop.video_url:
        data['video'] = {
            '@type': 'VideoObject',
            'name': f"{prop.title} - Property Video",
            'description': f"Video showcasing {prop.title} in {prop.location or ''}".strip(),
            'contentUrl': prop.video_url,
            'embedUrl': prop.video_url,
            'thumbnailUrl': images[0] if images else None,
        }

    if prop.area:
        data['floorSize'] = {'@type': 'QuantitativeValue', 'value': prop.area, 'unitCode': 'SQM'}

    return _compact(data)


def generate_organization_structured_data(org: OrganizationRecord,
                                          seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    data = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'Organization',
        'name': org.name,
        'url': seo_config.site_url,
        'description': org.description or seo_config.default_description,
    }

    if org.logo:
        data['logo'] = seo_config.absolute_url(org.logo)

    if org.phone or org.email:
        data['contactPoint'] = {
            '@type': 'ContactPoint',
            'contactType': 'customer service',
            'telephone': org.phone,
            'email': org.email,
        }

    if org.address:
        data['address'] = {
            '@type': 'PostalAddress',
            'streetAddress': org.address,
            'addressCountry': seo_config.country_code,
        }

    profiles = org.social_profiles
    same_as = [profiles[network] for network in ('facebook', 'twitter', 'instagram', 'linkedin')
               if profiles.get(network)]
    if same_as:
        data['sameAs'] = same_as

    return _compact(data)


def generate_article_structured_data(article: ArticleRecord,
                                     seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    article_url = seo_config.absolute_url(f"/blog/{article.slug}")

    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'Article',
        'headline': article.title,
        'description': article.description,
        'url': article_url,
        'datePublished': _iso(article.created_at),
        'dateModified': _iso(article.updated_at),
        'author': _person(PersonRef(article.author or DEFAULT_AUTHOR)),
        'publisher': {
            '@type': 'Organization',
            'name': seo_config.site_name,
            'logo': seo_config.absolute_url(seo_config.default_og_image),
        },
        'image': seo_config.absolute_url(article.featured_image) if article.featured_image else None,
        'keywords': ', '.join(article.categories) if article.categories else None,
        'mainEntityOfPage': article_url,
    })


def generate_breadcrumb_structured_data(breadcrumbs: List[BreadcrumbItem],
                                        seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    return {
        '@context': SCHEMA_CONTEXT,
        '@type': 'BreadcrumbList',
        'itemListElement': [
            {
                '@type': 'ListItem',
                'position': index,
                'name': crumb.name,
                'item': seo_config.absolute_url(crumb.url),
            }
            for index, crumb in enumerate(breadcrumbs, start=1)
        ],
    }


def generate_faq_structured_data(faqs: List[FAQItem]) -> Dict[str, Any]:
    return {
        '@context': SCHEMA_CONTEXT,
        '@type': 'FAQPage',
        'mainEntity': [
            {
                '@type': 'Question',
                'name': faq.question,
                'acceptedAnswer': {'@type': 'Answer', 'text': faq.answer},
            }
            for faq in faqs
        ],
    }


def generate_local_business_structured_data(business: LocalBusinessRecord,
                                            seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    """RealEstateAgent listing for the agency's office"""
    data = {
        '@context': SCHEMA_CONTEXT,
        '@type': 'RealEstateAgent',
        'name': business.name,
        'description': business.description or DEFAULT_BUSINESS_DESCRIPTION,
        'url': business.website or seo_config.site_url,
        'address': {
            '@type': 'PostalAddress',
            'streetAddress': business.address,
            'addressCountry': seo_config.country_code,
        },
        'telephone': business.phone,
        'email': business.email,
        'geo': _geo(business.latitude, business.longitude),
        'priceRange': business.price_range,
        'openingHoursSpecification': [
            {'@type': 'OpeningHoursSpecification', 'dayOfWeek': day, 'opens': '09:00', 'closes': '18:00'}
            for day in business.opening_hours
        ],
    }

    return _compact(data)


def generate_website_structured_data(seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    """WebSite with a sitelinks search box pointing at the property search"""
    return {
        '@context': SCHEMA_CONTEXT,
        '@type': 'WebSite',
        'name': seo_config.site_name,
        'url': seo_config.site_url,
        'description': seo_config.default_description,
        'potentialAction': {
            '@type': 'SearchAction',
            'target': {
                '@type': 'EntryPoint',
                'urlTemplate': f"{seo_config.site_url}/properties?search={{search_term_string}}",
            },
            'query-input': 'required name=search_term_string',
        },
    }


def generate_event_structured_data(event: EventRecord) -> Dict[str, Any]:
    """Event such as an open house or project launch"""
    location = event.location
    organizer = event.organizer

    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'Event',
        'name': event.name,
        'description': event.description,
        'startDate': event.start_date,
        'endDate': event.end_date,
        'location': {
            '@type': 'Place',
            'name': location.name,
            'address': {
                '@type': 'PostalAddress',
                'streetAddress': location.address,
                'addressLocality': location.city,
                'addressRegion': location.state,
                'postalCode': location.postal_code,
                'addressCountry': location.country,
            },
            'geo': _geo(location.latitude, location.longitude),
        },
        'organizer': {
            '@type': 'Organization',
            'name': organizer.name,
            'url': organizer.url,
            'email': organizer.email,
            'telephone': organizer.phone,
        } if organizer else None,
        'image': event.image,
        'url': event.url,
        'offers': _offer(event.price, None, event.availability),
        'eventStatus': _schema_url(event.event_status or 'EventScheduled'),
        'eventAttendanceMode': _schema_url(event.attendance_mode or 'OfflineEventAttendanceMode'),
    })


def generate_product_structured_data(product: ProductRecord,
                                     seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'Product',
        'name': product.name,
        'description': product.description,
        'image': product.images,
        'brand': {'@type': 'Brand', 'name': product.brand} if product.brand else None,
        'sku': product.sku,
        'gtin': product.gtin,
        'mpn': product.mpn,
        'category': product.category,
        'offers': _offer(
            product.price, seo_config.currency, product.availability,
            itemCondition=_schema_url(product.condition or 'NewCondition'),
            seller={'@type': 'Organization', 'name': seo_config.site_name},
        ),
        'aggregateRating': _rating(product.aggregate_rating, aggregate=True),
        'review': [
            {
                '@type': 'Review',
                'author': _person(PersonRef(review.author)),
                'datePublished': review.date_published,
                'reviewBody': review.review_body,
                'reviewRating': _rating(review.rating),
            }
            for review in product.reviews
        ],
    })


def generate_review_structured_data(review: ReviewRecord) -> Dict[str, Any]:
    item = review.item_reviewed

    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'Review',
        'itemReviewed': {'@type': item.type or 'Organization', 'name': item.name},
        'reviewRating': _rating(review.rating),
        'author': _person(review.author),
        'reviewBody': review.review_body,
        'datePublished': review.date_published,
        'publisher': _organization_ref(review.publisher),
    })


def generate_recipe_structured_data(recipe: RecipeRecord) -> Dict[str, Any]:
    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'Recipe',
        'name': recipe.name,
        'description': recipe.description,
        'image': recipe.image,
        'author': _person(PersonRef(recipe.author)) if recipe.author else None,
        'datePublished': recipe.date_published,
        'dateModified': recipe.date_modified or recipe.date_published,
        'prepTime': recipe.prep_time,
        'cookTime': recipe.cook_time,
        'totalTime': recipe.total_time,
        'recipeYield': recipe.recipe_yield,
        'recipeCategory': recipe.category,
        'recipeCuisine': recipe.cuisine,
        'nutrition': dict({'@type': 'NutritionInformation'}, **recipe.nutrition),
        'recipeIngredient': recipe.ingredients,
        'recipeInstructions': [
            {'@type': 'HowToStep', 'name': step.name, 'text': step.text}
            for step in recipe.instructions
        ],
        'aggregateRating': _rating(recipe.aggregate_rating, aggregate=True),
    })


def generate_how_to_structured_data(how_to: HowToRecord) -> Dict[str, Any]:
    """HowTo guide, e.g. steps for a home loan application"""
    cost = how_to.estimated_cost

    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'HowTo',
        'name': how_to.name,
        'description': how_to.description,
        'image': how_to.image,
        'totalTime': how_to.total_time,
        'estimatedCost': {
            '@type': 'MonetaryAmount',
            'currency': cost.currency,
            'value': cost.value,
        } if cost else None,
        'supply': [{'@type': 'HowToSupply', 'name': name} for name in how_to.supply],
        'tool': [{'@type': 'HowToTool', 'name': name} for name in how_to.tool],
        'step': [
            {
                '@type': 'HowToStep',
                'position': index,
                'name': step.name,
                'text': step.text,
                'image': step.image,
                'url': step.url,
            }
            for index, step in enumerate(how_to.steps, start=1)
        ],
    })


def generate_web_page_structured_data(page: WebPageRecord,
                                      seo_config: SEOConfig = DEFAULT_SEO_CONFIG) -> Dict[str, Any]:
    part_of = page.is_part_of or OrganizationRef(seo_config.site_name, seo_config.site_url)

    return _compact({
        '@context': SCHEMA_CONTEXT,
        '@type': 'WebPage',
        'name': page.name,
        'description': page.description,
        'url': seo_config.absolute_url(page.url),
        'isPartOf': {'@type': 'WebSite', 'name': part_of.name, 'url': part_of.url},
        'breadcrumb': generate_breadcrumb_structured_data(page.breadcrumb, seo_config) if page.breadcrumb else None,
        'mainEntity': page.main_entity,
        'datePublished': page.date_published,
        'dateModified': page.date_modified,
        'author': _person(page.author),
        'publisher': _organization_ref(page.publisher),
    })


def render_json_ld_script(data: Dict[str, Any]) -> str:
    """Serialize a JSON-LD object into a script tag safe to embed in HTML"""
    payload = json.dumps(data, ensure_ascii=False, sort_keys=False)
    # Keep "</script>" inside string values from closing the tag
    payload = payload.replace('</', '<\\/')
    return f'<script type="application/ld+json">{payload}</script>'

"""
Content analysis and on-page SEO audits
"""
import re
import logging
from collections import Counter
from datetime import datetime
from typing import List, Dict, Optional, Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from models import (
    PageContent, Heading, ImageRef, LinkRef,
    SEOAudit, AuditIssue, IssueType, Priority,
    ContentSEOAnalysis, TextAnalysis, HeadingScore, HeadingsBreakdown,
    KeywordAnalysis, Distribution, ReadabilityAnalysis, ReadabilityLevel,
    ImageAnalysis, LinkAnalysis, OverallScore, Grade, SEORecommendation,
    PropertyRecord, PropertyImageType, to_dict
)
from utils import RobustSession, normalize_domain, validate_url

logger = logging.getLogger(__name__)

TITLE_RANGE = (30, 60)
DESCRIPTION_RANGE = (120, 160)
HEADING_RANGE = (20, 60)
MAX_ALT_LENGTH = 125
MIN_WORD_COUNT = 300
KEYWORD_DENSITY_RANGE = (1.0, 3.0)
MIN_IMAGE_SIZE = (300, 200)
IMAGE_FORMATS = {'jpg', 'jpeg', 'png', 'webp', 'avif'}

IMAGE_ALT_PREFIXES = {
    PropertyImageType.EXTERIOR: 'Exterior view of',
    PropertyImageType.INTERIOR: 'Interior view of',
    PropertyImageType.KITCHEN: 'Modern kitchen in',
    PropertyImageType.BATHROOM: 'Bathroom in',
    PropertyImageType.BEDROOM: 'Bedroom in',
    PropertyImageType.LIVING: 'Living room in',
    PropertyImageType.GARDEN: 'Garden or outdoor space at',
    PropertyImageType.AMENITY: 'Amenity at',
}

# Weights of each sub-score in the overall content score
OVERALL_WEIGHTS = {
    'title': 0.20,
    'description': 0.15,
    'headings': 0.15,
    'keywords': 0.20,
    'readability': 0.15,
    'images': 0.10,
    'links': 0.05,
}

DISTRIBUTION_SCORES = {
    Distribution.GOOD: 100,
    Distribution.FAIR: 70,
    Distribution.POOR: 40,
}


def _word_count(text: str) -> int:
    return len(text.split())


def perform_seo_audit(url: str, content: PageContent, checked_at: Optional[str] = None) -> SEOAudit:
    """Audit a page's on-page elements and deduct points for every issue found"""
    issues: List[AuditIssue] = []
    recommendations: List[str] = []
    score = 100

    # Title
    title_length = len(content.title)
    if not content.title:
        issues.append(AuditIssue(
            type=IssueType.ERROR, category='Title', message='Missing page title',
            suggestion='Add a descriptive title tag', priority=Priority.HIGH
        ))
        score -= 20
    elif title_length < TITLE_RANGE[0]:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Title', message='Title is too short',
            suggestion='Make title more descriptive (30-60 characters)', priority=Priority.MEDIUM
        ))
        score -= 5
    elif title_length > TITLE_RANGE[1]:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Title', message='Title is too long',
            suggestion='Shorten title to under 60 characters', priority=Priority.MEDIUM
        ))
        score -= 5

    # Description
    description_length = len(content.description)
    if not content.description:
        issues.append(AuditIssue(
            type=IssueType.ERROR, category='Description', message='Missing meta description',
            suggestion='Add a compelling meta description', priority=Priority.HIGH
        ))
        score -= 15
    elif description_length < DESCRIPTION_RANGE[0]:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Description', message='Description is too short',
            suggestion='Make description more compelling (120-160 characters)', priority=Priority.MEDIUM
        ))
        score -= 3
    elif description_length > DESCRIPTION_RANGE[1]:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Description', message='Description is too long',
            suggestion='Shorten description to under 160 characters', priority=Priority.MEDIUM
        ))
        score -= 3

    # Headings
    h1_count = len([h for h in content.headings if h.level == 1])
    if h1_count == 0:
        issues.append(AuditIssue(
            type=IssueType.ERROR, category='Headings', message='Missing H1 tag',
            suggestion='Add a single H1 tag to the page', priority=Priority.HIGH
        ))
        score -= 15
    elif h1_count > 1:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Headings', message='Multiple H1 tags found',
            suggestion='Use only one H1 tag per page', priority=Priority.MEDIUM
        ))
        score -= 5

    # Images
    for index, image in enumerate(content.images, start=1):
        if not image.alt:
            issues.append(AuditIssue(
                type=IssueType.ERROR, category='Images', message=f'Image {index} missing alt text',
                suggestion='Add descriptive alt text for accessibility and SEO', priority=Priority.HIGH
            ))
            score -= 5
        elif len(image.alt) > MAX_ALT_LENGTH:
            issues.append(AuditIssue(
                type=IssueType.WARNING, category='Images', message=f'Image {index} alt text is too long',
                suggestion='Keep alt text under 125 characters', priority=Priority.LOW
            ))
            score -= 1

    # Links
    external_links = [link for link in content.links if link.is_external]
    internal_links = [link for link in content.links if not link.is_external]
    if not external_links:
        issues.append(AuditIssue(
            type=IssueType.INFO, category='Links', message='No external links found',
            suggestion='Consider adding relevant external links for authority', priority=Priority.LOW
        ))

    # Content length
    word_count = _word_count(content.body)
    if word_count < MIN_WORD_COUNT:
        issues.append(AuditIssue(
            type=IssueType.WARNING, category='Content', message='Content is too short',
            suggestion='Add more valuable content (minimum 300 words)', priority=Priority.MEDIUM
        ))
        score -= 10

    if score < 70:
        recommendations.append('Focus on fixing high-priority issues first')
    if not content.images:
        recommendations.append('Add relevant images to improve user engagement')
    if len(internal_links) < 3:
        recommendations.append('Add more internal links to improve site structure')
    if word_count < 500:
        recommendations.append('Expand content to provide more value to users')

    return SEOAudit(
        url=url,
        score=max(0, score),
        issues=issues,
        recommendations=recommendations,
        last_checked=checked_at or datetime.now().isoformat()
    )


def count_syllables(word: str) -> int:
    """Approximate syllables as vowel groups, minus a silent trailing 'e', at least 1"""
    word = re.sub(r'[^a-z]', '', word.lower())
    if len(word) <= 3:
        return 1

    count = 0
    previous_was_vowel = False
    for char in word:
        is_vowel = char in 'aeiouy'
        if is_vowel and not previous_was_vowel:
            count += 1
        previous_was_vowel = is_vowel

    if word.endswith('e'):
        count -= 1

    return max(count, 1)


def calculate_readability(text: str) -> ReadabilityAnalysis:
    """Flesch Reading Ease, clamped to [0, 100]"""
    words = text.split()
    if not words:
        return ReadabilityAnalysis(score=0.0, level=ReadabilityLevel.DIFFICULT,
                                   suggestions=['Add body content'])

    sentences = max(1, len([s for s in re.split(r'[.!?]+', text) if s.strip()]))
    syllables = sum(count_syllables(word) for word in words)

    raw_score = 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))
    score = max(0.0, min(100.0, raw_score))

    if score >= 80:
        level = ReadabilityLevel.EASY
    elif score >= 60:
        level = ReadabilityLevel.FAIR
    else:
        level = ReadabilityLevel.DIFFICULT

    suggestions = []
    if score < 60:
        suggestions = ['Use shorter sentences', 'Use simpler words', 'Break up long paragraphs']

    return ReadabilityAnalysis(score=round(score, 2), level=level, suggestions=suggestions)


def calculate_keyword_density(text: str, keywords: List[str]) -> float:
    """Combined keyword occurrences per 100 body words"""
    word_count = _word_count(text)
    if not keywords or word_count == 0:
        return 0.0

    body = text.lower()
    occurrences = sum(
        len(re.findall(re.escape(keyword.lower()), body))
        for keyword in keywords if keyword
    )
    return round(occurrences / word_count * 100, 2)


def _text_analysis(text: str, bounds, label: str, short_suggestion: str) -> TextAnalysis:
    length = len(text)
    if bounds[0] <= length <= bounds[1]:
        return TextAnalysis(text=text, length=length, score=100)
    if length < bounds[0]:
        return TextAnalysis(text=text, length=length, score=60,
                            issues=[f'{label} is too short'],
                            suggestions=[short_suggestion])
    return TextAnalysis(text=text, length=length, score=70,
                        issues=[f'{label} is too long'],
                        suggestions=[f'Shorten {label.lower()} to under {bounds[1]} characters'])


def _heading_scores(headings: List[Heading], level: int) -> List[HeadingScore]:
    return [
        HeadingScore(
            text=h.text,
            length=len(h.text),
            score=100 if HEADING_RANGE[0] <= len(h.text) <= HEADING_RANGE[1] else 70
        )
        for h in headings if h.level == level
    ]


def _grade(score: int) -> Grade:
    if score >= 90:
        return Grade.A
    if score >= 80:
        return Grade.B
    if score >= 70:
        return Grade.C
    if score >= 60:
        return Grade.D
    return Grade.F


def analyze_content_seo(content: PageContent, target_keywords: List[str]) -> ContentSEOAnalysis:
    """Score each on-page element and combine them into a weighted overall grade"""
    title = _text_analysis(content.title, TITLE_RANGE, 'Title', 'Make title more descriptive')
    description = _text_analysis(content.description, DESCRIPTION_RANGE, 'Description',
                                 'Make description more compelling')

    headings = HeadingsBreakdown(
        h1=_heading_scores(content.headings, 1),
        h2=_heading_scores(content.headings, 2),
        h3=_heading_scores(content.headings, 3),
    )

    density = calculate_keyword_density(content.body, target_keywords)
    if KEYWORD_DENSITY_RANGE[0] <= density <= KEYWORD_DENSITY_RANGE[1]:
        distribution = Distribution.GOOD
    elif density < KEYWORD_DENSITY_RANGE[0]:
        distribution = Distribution.POOR
    else:
        distribution = Distribution.FAIR

    keywords = KeywordAnalysis(
        primary=target_keywords[0] if target_keywords else '',
        secondary=list(target_keywords[1:]),
        density=density,
        distribution=distribution
    )

    readability = calculate_readability(content.body)

    images = []
    for image in content.images:
        if not image.alt:
            images.append(ImageAnalysis(url=image.src, alt=image.alt, score=0, issues=['Missing alt text']))
        elif len(image.alt) > MAX_ALT_LENGTH:
            images.append(ImageAnalysis(url=image.src, alt=image.alt, score=70, issues=['Alt text too long']))
        else:
            images.append(ImageAnalysis(url=image.src, alt=image.alt, score=100))

    internal_count = len([link for link in content.links if not link.is_external])
    external_count = len(content.links) - internal_count
    if internal_count >= 3:
        link_score = 100
    elif internal_count >= 1:
        link_score = 70
    else:
        link_score = 0
    links = LinkAnalysis(
        internal=internal_count,
        external=external_count,
        score=link_score,
        issues=['Need more internal links'] if internal_count < 3 else []
    )

    # A page without images has nothing to penalize
    image_score = sum(img.score for img in images) / len(images) if images else 100

    weighted = (
        title.score * OVERALL_WEIGHTS['title'] +
        description.score * OVERALL_WEIGHTS['description'] +
        (100 if headings.h1 else 0) * OVERALL_WEIGHTS['headings'] +
        DISTRIBUTION_SCORES[distribution] * OVERALL_WEIGHTS['keywords'] +
        readability.score * OVERALL_WEIGHTS['readability'] +
        image_score * OVERALL_WEIGHTS['images'] +
        links.score * OVERALL_WEIGHTS['links']
    )
    overall_score = max(0, min(100, round(weighted)))
    grade = _grade(overall_score)

    return ContentSEOAnalysis(
        title=title,
        description=description,
        headings=headings,
        keywords=keywords,
        readability=readability,
        images=images,
        links=links,
        overall=OverallScore(
            score=overall_score,
            grade=grade,
            summary=f'Content SEO Score: {overall_score}/100 (Grade: {grade.value})'
        )
    )


def generate_seo_recommendations(analysis: ContentSEOAnalysis) -> List[SEORecommendation]:
    """Turn weak sub-scores into prioritized recommendations"""
    recommendations = []

    if analysis.title.score < 80:
        recommendations.append(SEORecommendation(
            priority=Priority.HIGH, category='Title',
            recommendation='Optimize page title for better SEO',
            impact='High impact on search rankings'
        ))
    if analysis.description.score < 80:
        recommendations.append(SEORecommendation(
            priority=Priority.HIGH, category='Description',
            recommendation='Improve meta description',
            impact='High impact on click-through rates'
        ))
    if analysis.keywords.distribution == Distribution.POOR:
        recommendations.append(SEORecommendation(
            priority=Priority.HIGH, category='Keywords',
            recommendation='Improve keyword density and distribution',
            impact='High impact on search visibility'
        ))
    if analysis.readability.score < 60:
        recommendations.append(SEORecommendation(
            priority=Priority.MEDIUM, category='Readability',
            recommendation='Improve content readability',
            impact='Medium impact on user engagement'
        ))
    if any(img.score < 80 for img in analysis.images):
        recommendations.append(SEORecommendation(
            priority=Priority.MEDIUM, category='Images',
            recommendation='Optimize image alt text',
            impact='Medium impact on accessibility and SEO'
        ))
    if analysis.links.score < 80:
        recommendations.append(SEORecommendation(
            priority=Priority.LOW, category='Links',
            recommendation='Add more internal links',
            impact='Low impact on site structure'
        ))

    return recommendations


def generate_keyword_suggestions(base_keyword: str, content: str) -> Dict[str, List[str]]:
    """Suggest secondary and long-tail keywords from the most frequent content words"""
    counts = Counter(word for word in content.lower().split() if len(word) > 3)
    top_words = [word for word, _ in counts.most_common(10)]

    return {
        'primary': [base_keyword],
        'secondary': top_words[:5],
        'long_tail': [
            f'{base_keyword} in bangalore',
            f'best {base_keyword}',
            f'{base_keyword} for sale',
            f'affordable {base_keyword}',
            f'luxury {base_keyword}',
        ],
        'related': top_words[5:],
    }


def _checklist_item(task: str, description: str, priority: Priority) -> Dict[str, Any]:
    return {'task': task, 'description': description, 'priority': priority, 'completed': False}


def generate_seo_checklist() -> List[Dict[str, Any]]:
    """Static on-page, content and technical SEO checklist"""
    return [
        {
            'category': 'On-Page SEO',
            'items': [
                _checklist_item('Title Tag Optimization', 'Ensure title is 30-60 characters and includes primary keyword', Priority.HIGH),
                _checklist_item('Meta Description', 'Write compelling meta description (120-160 characters)', Priority.HIGH),
                _checklist_item('Header Tags', 'Use proper H1, H2, H3 structure with keywords', Priority.HIGH),
                _checklist_item('Image Alt Text', 'Add descriptive alt text to all images', Priority.MEDIUM),
                _checklist_item('Internal Linking', 'Add relevant internal links to other pages', Priority.MEDIUM),
            ],
        },
        {
            'category': 'Content SEO',
            'items': [
                _checklist_item('Keyword Research', 'Research and target relevant keywords', Priority.HIGH),
                _checklist_item('Content Quality', 'Create high-quality, original content (300+ words)', Priority.HIGH),
                _checklist_item('Keyword Density', 'Maintain 1-3% keyword density', Priority.MEDIUM),
                _checklist_item('Content Structure', 'Use proper headings and bullet points', Priority.MEDIUM),
                _checklist_item('Readability', 'Ensure content is easy to read and understand', Priority.LOW),
            ],
        },
        {
            'category': 'Technical SEO',
            'items': [
                _checklist_item('Page Speed', 'Optimize page loading speed', Priority.HIGH),
                _checklist_item('Mobile Optimization', 'Ensure mobile-friendly design', Priority.HIGH),
                _checklist_item('SSL Certificate', 'Use HTTPS for security', Priority.HIGH),
                _checklist_item('XML Sitemap', 'Create and submit XML sitemap', Priority.MEDIUM),
                _checklist_item('Robots.txt', 'Configure robots.txt file', Priority.MEDIUM),
            ],
        },
    ]


def generate_property_image_alt_text(prop: PropertyRecord,
                                     image_type: PropertyImageType = PropertyImageType.GENERAL) -> str:
    """Descriptive alt text for a property photo"""
    room_info = ''
    if prop.bedrooms and prop.bathrooms:
        room_info = f" - {prop.bedrooms} BHK with {prop.bathrooms} bathrooms"

    if image_type == PropertyImageType.GENERAL:
        return f"{prop.title} - {prop.property_type or 'Property'} in {prop.location or 'Bangalore'}{room_info}"
    return f"{IMAGE_ALT_PREFIXES[image_type]} {prop.title}{room_info}"


def validate_image_seo(url: str, alt: str, width: Optional[int] = None,
                       height: Optional[int] = None) -> Dict[str, Any]:
    """Check one image's alt text, dimensions, format and URL"""
    issues = []
    suggestions = []
    alt = (alt or '').strip()

    if not alt:
        issues.append('Missing alt text')
        suggestions.append('Add descriptive alt text for accessibility and SEO')
    elif len(alt) > MAX_ALT_LENGTH:
        issues.append('Alt text is too long')
        suggestions.append(f'Keep alt text under {MAX_ALT_LENGTH} characters')
    elif 'image of' in alt.lower() or 'picture of' in alt.lower():
        suggestions.append('Avoid redundant phrases like "image of" in alt text')

    if width and height:
        if width < MIN_IMAGE_SIZE[0] or height < MIN_IMAGE_SIZE[1]:
            issues.append('Image is too small')
            suggestions.append('Use images at least 300x200 pixels for better quality')
        if not 0.5 <= width / height <= 2:
            suggestions.append('Consider using images with more standard aspect ratios')

    path = urlparse(url).path
    extension = path.rsplit('.', 1)[-1].lower() if '.' in path else ''
    if extension and extension not in IMAGE_FORMATS:
        suggestions.append('Consider using modern image formats like WebP or AVIF')

    if ' ' in url:
        issues.append('Image URL contains spaces')
        suggestions.append('Use URL-encoded image URLs without spaces')

    return {'is_valid': not issues, 'issues': issues, 'suggestions': suggestions}


def extract_page_content(html: str, base_url: str) -> PageContent:
    """Pull the elements the analyzers need out of raw HTML"""
    soup = BeautifulSoup(html, 'html.parser')

    title_tag = soup.find('title')
    title = title_tag.get_text().strip() if title_tag else ''

    meta_desc = soup.find('meta', attrs={'name': 'description'})
    description = meta_desc.get('content', '').strip() if meta_desc else ''

    meta_tags = {}
    for meta in soup.find_all('meta'):
        name = meta.get('name') or meta.get('property')
        if name and meta.get('content') is not None:
            meta_tags[name] = meta.get('content')

    headings = [
        Heading(level=int(tag.name[1]), text=tag.get_text().strip())
        for tag in soup.find_all(['h1', 'h2', 'h3', 'h4', 'h5', 'h6'])
    ]

    images = [
        ImageRef(src=img.get('src', ''), alt=(img.get('alt') or '').strip())
        for img in soup.find_all('img')
    ]

    domain = normalize_domain(base_url)
    links = []
    for link in soup.find_all('a', href=True):
        href = link['href']
        if href.startswith('http'):
            is_external = normalize_domain(href) != domain
        elif href.startswith(('mailto:', 'tel:', 'javascript:', '#')):
            continue
        else:
            href = urljoin(base_url, href)
            is_external = False
        links.append(LinkRef(href=href, text=link.get_text().strip(), is_external=is_external))

    # Remove script and style elements before reading the visible text
    for element in soup(['script', 'style', 'noscript']):
        element.decompose()
    body_root = soup.body or soup
    lines = (line.strip() for line in body_root.get_text().splitlines())
    chunks = (phrase.strip() for line in lines for phrase in line.split("  "))
    body = ' '.join(chunk for chunk in chunks if chunk)

    return PageContent(
        title=title,
        description=description,
        headings=headings,
        body=body,
        images=images,
        links=links,
        meta_tags=meta_tags
    )


def degraded_audit(url: str, message: str, suggestion: str) -> SEOAudit:
    """Score-0 audit returned when a page cannot be fetched or parsed"""
    return SEOAudit(
        url=url,
        score=0,
        issues=[AuditIssue(
            type=IssueType.ERROR, category='Network', message=message,
            suggestion=suggestion, priority=Priority.HIGH
        )],
        recommendations=[],
        last_checked=datetime.now().isoformat()
    )


class ContentAnalyzer:
    """Fetches pages and runs the audit and content analysis on them"""

    def __init__(self, session: Optional[RobustSession] = None):
        self.session = session or RobustSession()

    def fetch_page_content(self, url: str) -> Optional[PageContent]:
        response = self.session.get(url)
        if response is None:
            return None
        return extract_page_content(response.text, url)

    def audit_url(self, url: str, target_keywords: Optional[List[str]] = None) -> Dict[str, Any]:
        """Audit a live URL; failures come back as a score-0 audit, never an exception"""
        logger.info(f"Auditing URL: {url}")

        if not validate_url(url):
            logger.warning(f"Refusing to audit invalid URL: {url}")
            audit = degraded_audit(url, 'Invalid URL', 'Provide an absolute http(s) URL')
            return {'success': False, 'audit': to_dict(audit), 'analysis': None}

        try:
            content = self.fetch_page_content(url)
        except Exception as e:
            logger.error(f"Error extracting content from {url}: {e}")
            content = None

        if content is None:
            audit = degraded_audit(url, 'Failed to fetch page',
                                   'Check if the URL is accessible and returns HTML')
            return {'success': False, 'audit': to_dict(audit), 'analysis': None}

        audit = perform_seo_audit(url, content)
        analysis = analyze_content_seo(content, target_keywords or [])

        logger.info(f"Audit of {url} scored {audit.score} with {len(audit.issues)} issues")
        return {
            'success': True,
            'audit': to_dict(audit),
            'analysis': to_dict(analysis),
            'recommendations': [to_dict(r) for r in generate_seo_recommendations(analysis)],
        }

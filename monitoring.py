"""
Logging setup, SEO monitoring reports and threshold alerts
"""
import logging
import os
import calendar
import sqlite3
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timedelta

from config import config
from models import (
    AlertType, AverageMetrics, Effort, IssueType, KeyMetrics, MonitoringMetrics,
    Priority, ReportIssue, ReportPerformance, ReportPeriod, ReportRecommendation,
    ReportSummary, SEOAlert, SEOMonitoringData, SEOReport, TopKeyword, TopPage,
    Trend, WorstPage
)
from utils import PerformanceMonitor, page_title_from_url

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}
TREND_MARGIN = 5
TOP_N = 10


# Configure logging with multiple handlers
def setup_logging(log_level: str = None, log_dir: str = None):
    """Setup console logging plus toolkit.log and errors.log under log_dir"""
    log_level = log_level or config.log_level
    log_dir = log_dir or config.log_dir

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(config.log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(os.path.join(log_dir, 'toolkit.log'), encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

    error_handler = logging.FileHandler(os.path.join(log_dir, 'errors.log'), encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_handler)

    return root_logger


def average_position(metrics: MonitoringMetrics) -> float:
    """Mean keyword position of a snapshot, 0 when nothing is ranked"""
    if not metrics.keyword_rankings:
        return 0.0
    return sum(kw.position for kw in metrics.keyword_rankings) / len(metrics.keyword_rankings)


def calculate_average_metrics(records: List[SEOMonitoringData]) -> AverageMetrics:
    if not records:
        return AverageMetrics()

    count = len(records)
    return AverageMetrics(
        organic_traffic=sum(r.metrics.organic_traffic for r in records) / count,
        average_ranking=sum(average_position(r.metrics) for r in records) / count,
        domain_authority=sum(r.metrics.domain_authority for r in records) / count,
        page_speed=sum((r.metrics.page_speed.mobile + r.metrics.page_speed.desktop) / 2 for r in records) / count,
        bounce_rate=sum(r.metrics.bounce_rate for r in records) / count,
        average_session_duration=sum(r.metrics.average_session_duration for r in records) / count,
    )


def _band(value: float, bands: List[Tuple[float, int]], higher_is_better: bool = True) -> int:
    for limit, points in bands:
        if (value > limit) if higher_is_better else (value < limit):
            return points
    return 0


def calculate_overall_score(metrics: AverageMetrics, has_data: bool = True) -> int:
    """Weighted 0-100 score from averaged metrics"""
    if not has_data:
        return 0

    score = 0
    score += _band(metrics.organic_traffic, [(1000, 25), (500, 20), (100, 15), (50, 10)])
    # An average of 0 means no keyword is ranked
    if metrics.average_ranking > 0:
        score += _band(metrics.average_ranking, [(5, 25), (10, 20), (20, 15), (50, 10)], higher_is_better=False)
    score += _band(metrics.domain_authority, [(70, 20), (50, 15), (30, 10), (20, 5)])
    score += _band(metrics.page_speed, [(90, 15), (80, 12), (70, 8), (60, 5)])
    score += _band(metrics.bounce_rate, [(30, 10), (40, 8), (50, 5), (60, 3)], higher_is_better=False)
    score += _band(metrics.average_session_duration, [(180, 5), (120, 4), (60, 3), (30, 2)])
    return round(score)


def calculate_trend(current_score: int, previous_score: int) -> Trend:
    difference = current_score - previous_score
    if difference > TREND_MARGIN:
        return Trend.UP
    if difference < -TREND_MARGIN:
        return Trend.DOWN
    return Trend.STABLE


def _snapshot_score(metrics: MonitoringMetrics) -> int:
    return calculate_overall_score(AverageMetrics(
        organic_traffic=metrics.organic_traffic,
        average_ranking=average_position(metrics),
        domain_authority=metrics.domain_authority,
        page_speed=(metrics.page_speed.mobile + metrics.page_speed.desktop) / 2,
        bounce_rate=metrics.bounce_rate,
        average_session_duration=metrics.average_session_duration,
    ))


def get_top_performing_pages(records: List[SEOMonitoringData]) -> List[TopPage]:
    """Pages by total views; ranking is the latest snapshot's mean position"""
    pages: Dict[str, TopPage] = {}
    for record in records:
        page = pages.setdefault(record.url, TopPage(
            url=record.url, title=page_title_from_url(record.url), views=0, ranking=0.0
        ))
        page.views += record.metrics.page_views
        page.ranking = average_position(record.metrics)

    return sorted(pages.values(), key=lambda p: p.views, reverse=True)[:TOP_N]


def get_top_keywords(records: List[SEOMonitoringData]) -> List[TopKeyword]:
    """Keywords by best mean position, with the organic traffic of the snapshots they appear in"""
    positions: Dict[str, List[float]] = {}
    traffic: Dict[str, int] = {}
    for record in records:
        for ranking in record.metrics.keyword_rankings:
            positions.setdefault(ranking.keyword, []).append(ranking.position)
            traffic[ranking.keyword] = traffic.get(ranking.keyword, 0) + record.metrics.organic_traffic

    keywords = [
        TopKeyword(
            keyword=keyword,
            position=sum(values) / len(values),
            traffic=traffic[keyword],
            trend=Trend.STABLE
        )
        for keyword, values in positions.items()
    ]
    return sorted(keywords, key=lambda k: k.position)[:TOP_N]


def get_worst_performing_pages(records: List[SEOMonitoringData]) -> List[WorstPage]:
    """Pages by total issue count, scored by their lowest snapshot score"""
    pages: Dict[str, WorstPage] = {}
    for record in records:
        page = pages.setdefault(record.url, WorstPage(
            url=record.url, title=page_title_from_url(record.url), issues=0, score=100
        ))
        page.issues += len(record.issues)
        page.score = min(page.score, _snapshot_score(record.metrics))

    return sorted(pages.values(), key=lambda p: p.issues, reverse=True)[:TOP_N]


def identify_issues(records: List[SEOMonitoringData]) -> List[ReportIssue]:
    """Group issues by category and message, counting affected snapshots, highest priority first"""
    grouped: Dict[Tuple[str, str], ReportIssue] = {}
    for record in records:
        for issue in record.issues:
            key = (issue.category, issue.message)
            if key not in grouped:
                grouped[key] = ReportIssue(
                    type=issue.type,
                    category=issue.category,
                    message=issue.message,
                    affected_pages=0,
                    priority=issue.priority
                )
            grouped[key].affected_pages += 1

    return sorted(grouped.values(), key=lambda i: PRIORITY_ORDER[i.priority], reverse=True)


def generate_recommendations(metrics: AverageMetrics, issues: List[ReportIssue]) -> List[ReportRecommendation]:
    recommendations = [
        ReportRecommendation(
            priority=Priority.HIGH,
            category=issue.category,
            recommendation=f"Fix {issue.message.lower()}",
            expected_impact='High impact on search rankings',
            effort=Effort.MEDIUM
        )
        for issue in issues if issue.priority == Priority.HIGH
    ]

    if metrics.page_speed < 70:
        recommendations.append(ReportRecommendation(
            priority=Priority.HIGH,
            category='Performance',
            recommendation='Optimize page loading speed',
            expected_impact='High impact on user experience and rankings',
            effort=Effort.HIGH
        ))

    if metrics.organic_traffic < 100:
        recommendations.append(ReportRecommendation(
            priority=Priority.HIGH,
            category='Content',
            recommendation='Improve content quality and keyword targeting',
            expected_impact='High impact on organic traffic',
            effort=Effort.HIGH
        ))

    if metrics.average_ranking > 20:
        recommendations.append(ReportRecommendation(
            priority=Priority.MEDIUM,
            category='SEO',
            recommendation='Improve keyword rankings through better optimization',
            expected_impact='Medium impact on search visibility',
            effort=Effort.MEDIUM
        ))

    if metrics.bounce_rate > 60:
        recommendations.append(ReportRecommendation(
            priority=Priority.MEDIUM,
            category='User Experience',
            recommendation='Improve content quality and user experience',
            expected_impact='Medium impact on user engagement',
            effort=Effort.MEDIUM
        ))

    return recommendations


def build_seo_report(records: List[SEOMonitoringData], previous_records: List[SEOMonitoringData],
                     start: str, end: str) -> SEOReport:
    """Aggregate a period's snapshots into a report, trended against the previous period"""
    current = calculate_average_metrics(records)
    previous = calculate_average_metrics(previous_records)

    overall_score = calculate_overall_score(current, has_data=bool(records))
    previous_score = calculate_overall_score(previous, has_data=bool(previous_records))
    issues = identify_issues(records)

    return SEOReport(
        period=ReportPeriod(start=start, end=end),
        summary=ReportSummary(
            overall_score=overall_score,
            trend=calculate_trend(overall_score, previous_score),
            key_metrics=KeyMetrics(
                organic_traffic=current.organic_traffic,
                average_ranking=current.average_ranking,
                domain_authority=current.domain_authority,
                page_speed=current.page_speed,
            )
        ),
        performance=ReportPerformance(
            top_pages=get_top_performing_pages(records),
            top_keywords=get_top_keywords(records),
            worst_performing_pages=get_worst_performing_pages(records),
        ),
        issues=issues,
        recommendations=generate_recommendations(current, issues),
    )


def degraded_report(start: str, end: str, message: str) -> SEOReport:
    return SEOReport(
        period=ReportPeriod(start=start, end=end),
        summary=ReportSummary(
            overall_score=0,
            trend=Trend.STABLE,
            key_metrics=KeyMetrics(organic_traffic=0, average_ranking=0, domain_authority=0, page_speed=0)
        ),
        performance=ReportPerformance(),
        issues=[ReportIssue(
            type=IssueType.ERROR,
            category='Monitoring',
            message=message,
            affected_pages=0,
            priority=Priority.HIGH
        )],
        recommendations=[],
    )


def check_alert_condition(alert: SEOAlert, records: List[SEOMonitoringData]) -> bool:
    """True when recent snapshots cross the alert's threshold"""
    if not records:
        return False

    if alert.type == AlertType.TRAFFIC_DROP:
        return sum(r.metrics.organic_traffic for r in records) < alert.threshold

    if alert.type == AlertType.RANKING_DROP:
        ranking = sum(average_position(r.metrics) for r in records) / len(records)
        return ranking > alert.threshold

    if alert.type == AlertType.KEYWORD_DROP:
        keywords = {kw.keyword for r in records for kw in r.metrics.keyword_rankings}
        return len(keywords) < alert.threshold

    if alert.type == AlertType.ERROR_INCREASE:
        return sum(r.metrics.crawl_errors for r in records) > alert.threshold

    return False


def shift_months(timestamp: str, months: int) -> str:
    """Move an ISO timestamp by whole months, clamping to the end of shorter months"""
    moment = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day).isoformat()


class SEOMonitor:
    """Stores monitoring snapshots, builds reports and evaluates alerts"""

    def __init__(self, db_manager):
        self.db_manager = db_manager
        self.performance_monitor = PerformanceMonitor()

    def store_monitoring_data(self, data: SEOMonitoringData):
        """Persist a snapshot; storage errors propagate to the caller"""
        try:
            self.db_manager.save_monitoring_data(data)
        except sqlite3.Error as e:
            logger.error(f"Error storing SEO monitoring data for {data.url}: {e}")
            raise

    def get_monitoring_data(self, url: str, start: str, end: str) -> List[SEOMonitoringData]:
        try:
            return self.db_manager.get_monitoring_data(url, start, end)
        except sqlite3.Error as e:
            logger.error(f"Error fetching SEO monitoring data for {url}: {e}")
            return []

    def generate_seo_report(self, start_date: str, end_date: str) -> SEOReport:
        """Report for [start_date, end_date], compared with the same window a month earlier"""
        if start_date > end_date:
            raise ValueError(f"Report start {start_date} is after end {end_date}")

        self.performance_monitor.start_timer('seo_report')
        try:
            records = self.db_manager.get_monitoring_data_for_period(start_date, end_date)
            previous_records = self.db_manager.get_monitoring_data_for_period(
                shift_months(start_date, -config.previous_period_months),
                shift_months(end_date, -config.previous_period_months)
            )
        except sqlite3.Error as e:
            logger.error(f"Error generating SEO report: {e}")
            return degraded_report(start_date, end_date, f"Monitoring data unavailable: {e}")
        finally:
            self.performance_monitor.end_timer('seo_report')

        report = build_seo_report(records, previous_records, start_date, end_date)
        logger.info(
            f"SEO report {start_date} to {end_date}: {len(records)} snapshots, "
            f"score {report.summary.overall_score} ({report.summary.trend.value})"
        )
        return report

    def setup_seo_alerts(self, alerts: List[SEOAlert]):
        created_at = datetime.now().isoformat()
        for alert in alerts:
            alert.created_at = created_at
        try:
            self.db_manager.upsert_alerts(alerts)
        except sqlite3.Error as e:
            logger.error(f"Error setting up SEO alerts: {e}")
            raise

    def check_seo_alerts(self, now: Optional[datetime] = None) -> List[SEOAlert]:
        """Evaluate enabled alerts against the last day of snapshots"""
        now = now or datetime.now()
        since = (now - timedelta(hours=config.alert_window_hours)).isoformat()

        try:
            alerts = self.db_manager.get_enabled_alerts()
            recent = self.db_manager.get_monitoring_data_for_period(since)
        except sqlite3.Error as e:
            logger.error(f"Error checking SEO alerts: {e}")
            return []

        triggered = [alert for alert in alerts if check_alert_condition(alert, recent)]
        for alert in triggered:
            logger.warning(
                f"SEO alert: {alert.type.value} threshold {alert.threshold} exceeded "
                f"({len(recent)} snapshots), notify {alert.email}"
            )
        return triggered

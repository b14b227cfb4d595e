"""
Main application for the SEO toolkit - Orchestrates all components
"""
import argparse
import sqlite3
import sys
import time
import logging
from typing import List, Dict, Any, Optional
import json

from config import config, validate_seo_config
from database import DatabaseManager
from content_analyzer import (
    ContentAnalyzer, perform_seo_audit, analyze_content_seo, generate_seo_recommendations, validate_image_seo
)
from structured_data import StructuredDataAnalyzer
from fuzzy_search import REAL_ESTATE_DICTIONARY, auto_correct_query, generate_search_suggestions
from metadata import load_seo_config, generate_robots_txt, generate_sitemap
from monitoring import SEOMonitor, setup_logging
from models import (
    ArticleRecord, PageContent, PropertyRecord, PublicListingRecord, SEOAlert, SEOMonitoringData, to_dict
)
from url_utils import validate_url_structure
from utils import RobustSession

logger = logging.getLogger(__name__)


class SEOToolkitApp:
    """Main SEO toolkit application"""

    def __init__(self, db_path: str = None, session: RobustSession = None, init_logging: bool = True):
        if init_logging:
            setup_logging()

        self.db_manager = DatabaseManager(db_path or config.db_path)
        self.session = session or RobustSession()
        self.content_analyzer = ContentAnalyzer(self.session)
        self.structured_data_analyzer = StructuredDataAnalyzer(self.session)
        self.monitor = SEOMonitor(self.db_manager)

        logger.info("SEO toolkit application initialized")

    def _save_result(self, url: str, audit_type: str, results: Dict[str, Any],
                     target_keywords: List[str] = None, status: str = "completed"):
        try:
            self.db_manager.save_audit_result(url, audit_type, results, target_keywords, status)
        except sqlite3.Error as e:
            logger.error(f"Failed to store {audit_type} result for {url}: {e}")

    def audit_url(self, url: str, target_keywords: List[str] = None) -> Dict[str, Any]:
        """Fetch and audit a live page"""
        start_time = time.time()
        result = self.content_analyzer.audit_url(url, target_keywords)
        result["response_time"] = time.time() - start_time

        self._save_result(url, "content_audit", result, target_keywords,
                          "completed" if result["success"] else "failed")
        return result

    def audit_content(self, url: str, content: PageContent, target_keywords: List[str] = None) -> Dict[str, Any]:
        """Audit page content supplied by the caller"""
        audit = perform_seo_audit(url, content)
        analysis = analyze_content_seo(content, target_keywords or [])
        return {
            "success": True,
            "audit": to_dict(audit),
            "analysis": to_dict(analysis),
            "recommendations": [to_dict(r) for r in generate_seo_recommendations(analysis)],
        }

    def analyze_structured_data(self, url: str) -> Dict[str, Any]:
        result = to_dict(self.structured_data_analyzer.analyze(url))
        self._save_result(url, "structured_data", result,
                          status="completed" if result["total_schemas"] or result["score"] else "failed")
        return result

    def quick_check_structured_data(self, url: str) -> Dict[str, Any]:
        return self.structured_data_analyzer.quick_check(url)

    def suggest(self, query: str, candidates: List[str] = None, max_results: int = 5) -> List[Dict[str, Any]]:
        suggestions = generate_search_suggestions(query, candidates or REAL_ESTATE_DICTIONARY,
                                                  max_results=max_results)
        return [to_dict(s) for s in suggestions]

    def autocorrect(self, query: str, dictionary: List[str] = None) -> str:
        return auto_correct_query(query, dictionary or REAL_ESTATE_DICTIONARY)

    def store_monitoring_data(self, data: SEOMonitoringData):
        self.monitor.store_monitoring_data(data)

    def generate_report(self, start_date: str, end_date: str) -> Dict[str, Any]:
        return to_dict(self.monitor.generate_seo_report(start_date, end_date))

    def setup_alerts(self, alerts: List[SEOAlert]) -> int:
        self.monitor.setup_seo_alerts(alerts)
        return len(alerts)

    def check_alerts(self) -> List[Dict[str, Any]]:
        return [to_dict(alert) for alert in self.monitor.check_seo_alerts()]

    def get_site_config(self) -> Dict[str, Any]:
        """Effective site config with its validation report"""
        seo_config = load_seo_config(self.db_manager)
        return {
            "config": to_dict(seo_config),
            "validation": validate_seo_config(seo_config),
        }

    def robots_txt(self) -> str:
        return generate_robots_txt(self.db_manager)

    def sitemap(self, properties: List[PropertyRecord] = None, listings: List[PublicListingRecord] = None,
                articles: List[ArticleRecord] = None) -> Optional[str]:
        """Sitemap XML, or None when disabled in site settings"""
        return generate_sitemap(self.db_manager, properties, listings, articles)

    def check_url_structure(self, url: str) -> Dict[str, Any]:
        return validate_url_structure(url)

    def check_image(self, url: str, alt: str, width: int = None, height: int = None) -> Dict[str, Any]:
        return validate_image_seo(url, alt, width, height)

    def get_audit_history(self, url: str, audit_type: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        return self.db_manager.get_audit_results(url, audit_type, limit)

    def cleanup_old_data(self, days_to_keep: int = 30):
        """Clean up old data"""
        logger.info(f"Cleaning up data older than {days_to_keep} days")
        self.db_manager.cleanup_old_data(days_to_keep)
        logger.info("Data cleanup completed")


def create_cli():
    """Create command line interface"""
    parser = argparse.ArgumentParser(description="SEO Toolkit - audits, structured data and monitoring reports")
    parser.add_argument("--db", default=None, help="SQLite database path")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    audit_parser = subparsers.add_parser("audit", help="Audit a URL's on-page SEO")
    audit_parser.add_argument("url", help="URL to audit")
    audit_parser.add_argument("--keywords", nargs="*", default=[], help="Target keywords")

    schema_parser = subparsers.add_parser("schema", help="Validate a URL's structured data")
    schema_parser.add_argument("url", help="URL to analyze")
    schema_parser.add_argument("--quick", action="store_true", help="Only summarize formats and types")

    suggest_parser = subparsers.add_parser("suggest", help="Search suggestions for a query")
    suggest_parser.add_argument("query", help="Partial search query")
    suggest_parser.add_argument("--max", type=int, default=5, help="Maximum suggestions")

    autocorrect_parser = subparsers.add_parser("autocorrect", help="Auto-correct a search query")
    autocorrect_parser.add_argument("query", help="Search query")

    report_parser = subparsers.add_parser("report", help="Generate a monitoring report")
    report_parser.add_argument("start", help="Period start (ISO timestamp)")
    report_parser.add_argument("end", help="Period end (ISO timestamp)")

    subparsers.add_parser("alerts", help="Check SEO alerts against the last day of data")
    subparsers.add_parser("robots", help="Print robots.txt")
    subparsers.add_parser("sitemap", help="Print sitemap.xml for the static pages")

    url_parser = subparsers.add_parser("check-url", help="Check a URL path for SEO-friendly structure")
    url_parser.add_argument("url", help="URL path to check")

    subparsers.add_parser("site-config", help="Show and validate the site SEO config")

    cleanup_parser = subparsers.add_parser("cleanup", help="Clean up old data")
    cleanup_parser.add_argument("--days", type=int, default=30, help="Days of data to keep")

    server_parser = subparsers.add_parser("server", help="Run the HTTP API")
    server_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    server_parser.add_argument("--port", type=int, default=8000, help="Server port")

    return parser


def main(argv: List[str] = None) -> int:
    """Main application entry point"""
    parser = create_cli()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "server":
        import uvicorn
        uvicorn.run("api:app", host=args.host, port=args.port, log_level="info")
        return 0

    app = SEOToolkitApp(db_path=args.db)

    try:
        if args.command == "audit":
            result = app.audit_url(args.url, args.keywords)
            print(json.dumps(result, indent=2, default=str))
            return 0 if result["success"] else 1

        elif args.command == "schema":
            if args.quick:
                result = app.quick_check_structured_data(args.url)
            else:
                result = app.analyze_structured_data(args.url)
            print(json.dumps(result, indent=2, default=str))

        elif args.command == "suggest":
            print(json.dumps(app.suggest(args.query, max_results=args.max), indent=2, default=str))

        elif args.command == "autocorrect":
            print(app.autocorrect(args.query))

        elif args.command == "report":
            print(json.dumps(app.generate_report(args.start, args.end), indent=2, default=str))

        elif args.command == "alerts":
            triggered = app.check_alerts()
            print(json.dumps(triggered, indent=2, default=str))
            print(f"{len(triggered)} alert(s) triggered")

        elif args.command == "robots":
            print(app.robots_txt(), end="")

        elif args.command == "sitemap":
            sitemap = app.sitemap()
            if sitemap is None:
                print("Sitemap generation is disabled")
                return 1
            print(sitemap, end="")

        elif args.command == "check-url":
            result = app.check_url_structure(args.url)
            print(json.dumps(result, indent=2))
            return 0 if result["is_valid"] else 1

        elif args.command == "site-config":
            print(json.dumps(app.get_site_config(), indent=2, default=str))

        elif args.command == "cleanup":
            app.cleanup_old_data(args.days)
            print(f"Cleaned up data older than {args.days} days")

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except (sqlite3.Error, ValueError) as e:
        logger.error(f"Application error: {e}")
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

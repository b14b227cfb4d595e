"""
Tests for database operations
"""
import sqlite3
from datetime import datetime, timedelta

from conftest import make_snapshot
from models import AlertType, SEOAlert, IssueType, Priority


class TestDatabaseManager:
    """Test class for database operations"""

    def test_database_initialization(self, db_manager):
        """Test database initialization"""
        conn = sqlite3.connect(db_manager.db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = [row[0] for row in cursor.fetchall()]
        conn.close()

        for table in ['settings', 'seo_monitoring', 'seo_alerts', 'seo_audit_results']:
            assert table in tables

    def test_settings(self, db_manager):
        """Test reading and overwriting settings"""
        assert db_manager.get_setting("site_title") is None

        db_manager.save_setting("site_title", "Extra Realty")
        db_manager.save_setting("site_url", "https://extrarealtygroup.com")
        db_manager.save_setting("site_title", "Extra Homes")

        assert db_manager.get_setting("site_title") == "Extra Homes"
        assert db_manager.get_settings(["site_title"]) == {"site_title": "Extra Homes"}
        assert len(db_manager.get_settings()) == 2

    def test_save_and_retrieve_monitoring_data(self, db_manager, missing_title_issue):
        """Test monitoring snapshots survive a round trip through JSON columns"""
        snapshot = make_snapshot(issues=[missing_title_issue])
        db_manager.save_monitoring_data(snapshot)

        records = db_manager.get_monitoring_data(snapshot.url, "2024-03-01T00:00:00", "2024-03-31T00:00:00")

        assert records == [snapshot]
        assert records[0].issues[0].type == IssueType.ERROR
        assert records[0].issues[0].priority == Priority.HIGH

    def test_monitoring_period_is_ordered_and_bounded(self, db_manager):
        """Test period queries across URLs"""
        db_manager.save_monitoring_data(make_snapshot(url="https://extrarealtygroup.com/b",
                                                      timestamp="2024-03-20T10:00:00"))
        db_manager.save_monitoring_data(make_snapshot(url="https://extrarealtygroup.com/a",
                                                      timestamp="2024-03-05T10:00:00"))
        db_manager.save_monitoring_data(make_snapshot(timestamp="2024-04-02T10:00:00"))

        in_march = db_manager.get_monitoring_data_for_period("2024-03-01T00:00:00", "2024-03-31T23:59:59")
        since_mid_march = db_manager.get_monitoring_data_for_period("2024-03-15T00:00:00")

        assert [r.timestamp for r in in_march] == ["2024-03-05T10:00:00", "2024-03-20T10:00:00"]
        assert len(since_mid_march) == 2

    def test_alert_upsert(self, db_manager):
        """Test that alerts are unique per type and email"""
        db_manager.upsert_alerts([SEOAlert(AlertType.TRAFFIC_DROP, 100, "seo@extrarealtygroup.com")])
        db_manager.upsert_alerts([
            SEOAlert(AlertType.TRAFFIC_DROP, 250, "seo@extrarealtygroup.com"),
            SEOAlert(AlertType.RANKING_DROP, 20, "seo@extrarealtygroup.com", enabled=False),
        ])

        alerts = db_manager.get_enabled_alerts()

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.TRAFFIC_DROP
        assert alerts[0].threshold == 250
        assert alerts[0].enabled is True
        assert alerts[0].created_at is not None

        conn = sqlite3.connect(db_manager.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM seo_alerts")
        count = cursor.fetchone()[0]
        conn.close()

        assert count == 2

    def test_audit_results(self, db_manager):
        """Test storing and listing audit results"""
        url = "https://extrarealtygroup.com/villas"
        db_manager.save_audit_result(url, "content_audit", {"score": 70}, ["villa"])
        db_manager.save_audit_result(url, "structured_data", {"score": 95})
        db_manager.save_audit_result(url, "content_audit", {"score": 85}, status="failed")

        history = db_manager.get_audit_results(url)
        audits = db_manager.get_audit_results(url, "content_audit", limit=1)

        assert [h["results"]["score"] for h in history] == [85, 95, 70]
        assert history[2]["target_keywords"] == ["villa"]
        assert history[1]["target_keywords"] == []
        assert len(audits) == 1
        assert audits[0]["status"] == "failed"

    def test_cleanup_old_data(self, db_manager):
        """Test cleanup of old data"""
        old_timestamp = (datetime.now() - timedelta(days=40)).isoformat()
        recent_timestamp = (datetime.now() - timedelta(days=1)).isoformat()

        db_manager.save_monitoring_data(make_snapshot(timestamp=old_timestamp))
        db_manager.save_monitoring_data(make_snapshot(timestamp=recent_timestamp))
        db_manager.save_audit_result("https://extrarealtygroup.com", "content_audit", {"score": 1})

        conn = sqlite3.connect(db_manager.db_path)
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO seo_audit_results (url, audit_type, results, target_keywords, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, ("https://old.example.com", "content_audit", "{}", "[]", "completed", old_timestamp))
        conn.commit()
        conn.close()

        db_manager.cleanup_old_data(days_to_keep=30)

        conn = sqlite3.connect(db_manager.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM seo_monitoring")
        monitoring_count = cursor.fetchone()[0]
        cursor.execute("SELECT COUNT(*) FROM seo_audit_results")
        audit_count = cursor.fetchone()[0]
        conn.close()

        assert monitoring_count == 1
        assert audit_count == 1

"""
Database utilities for the SEO toolkit
"""
import sqlite3
import json
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta

from models import SEOMonitoringData, SEOAlert, AlertType, to_dict

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages SQLite database operations for SEO data"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.setup_database()

    def setup_database(self):
        """Initialize SQLite database with complete schema"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        # Site-wide key/value settings
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        ''')

        # Monitoring snapshots, insert-only
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_monitoring (
                id INTEGER PRIMARY KEY,
                url TEXT,
                timestamp TEXT,
                metrics TEXT,
                issues TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_alerts (
                id INTEGER PRIMARY KEY,
                type TEXT,
                threshold REAL,
                email TEXT,
                enabled BOOLEAN,
                created_at TEXT,
                UNIQUE(type, email)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_audit_results (
                id INTEGER PRIMARY KEY,
                url TEXT,
                audit_type TEXT,
                results TEXT,
                target_keywords TEXT,
                status TEXT,
                created_at TEXT
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_monitoring_timestamp ON seo_monitoring (timestamp)')

        conn.commit()
        conn.close()
        logger.info("Database schema initialized successfully")

    def get_setting(self, key: str) -> Optional[str]:
        """Read a single setting value"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def get_settings(self, keys: List[str] = None) -> Dict[str, str]:
        """Read settings as a dict, optionally restricted to keys"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            if keys:
                placeholders = ", ".join("?" for _ in keys)
                cursor.execute(f"SELECT key, value FROM settings WHERE key IN ({placeholders})", tuple(keys))
            else:
                cursor.execute("SELECT key, value FROM settings")
            return {row[0]: row[1] for row in cursor.fetchall()}
        finally:
            conn.close()

    def save_setting(self, key: str, value: str):
        """Insert or replace a setting"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cursor.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value))
            conn.commit()
            logger.debug(f"Saved setting: {key}")
        finally:
            conn.close()

    def save_monitoring_data(self, data: SEOMonitoringData):
        """Append a monitoring snapshot"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            record = to_dict(data)
            cursor.execute('''
                INSERT INTO seo_monitoring (url, timestamp, metrics, issues)
                VALUES (?, ?, ?, ?)
            ''', (
                data.url,
                data.timestamp,
                json.dumps(record['metrics']),
                json.dumps(record['issues'])
            ))
            conn.commit()
            logger.info(f"Saved monitoring data for: {data.url}")
        finally:
            conn.close()

    def _row_to_monitoring(self, row) -> SEOMonitoringData:
        return SEOMonitoringData.from_dict({
            'url': row[0],
            'timestamp': row[1],
            'metrics': json.loads(row[2]) if row[2] else {},
            'issues': json.loads(row[3]) if row[3] else [],
        })

    def get_monitoring_data(self, url: str, start: str, end: str) -> List[SEOMonitoringData]:
        """Snapshots for one URL within [start, end], oldest first"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cursor.execute('''
                SELECT url, timestamp, metrics, issues FROM seo_monitoring
                WHERE url = ? AND timestamp >= ? AND timestamp <= ?
                ORDER BY timestamp ASC
            ''', (url, start, end))
            return [self._row_to_monitoring(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_monitoring_data_for_period(self, start: str, end: Optional[str] = None) -> List[SEOMonitoringData]:
        """Snapshots for every URL from start (up to end when given), oldest first"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            if end is None:
                cursor.execute('''
                    SELECT url, timestamp, metrics, issues FROM seo_monitoring
                    WHERE timestamp >= ?
                    ORDER BY timestamp ASC
                ''', (start,))
            else:
                cursor.execute('''
                    SELECT url, timestamp, metrics, issues FROM seo_monitoring
                    WHERE timestamp >= ? AND timestamp <= ?
                    ORDER BY timestamp ASC
                ''', (start, end))
            return [self._row_to_monitoring(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def upsert_alerts(self, alerts: List[SEOAlert]):
        """Insert alerts, replacing any existing alert with the same type and email"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            for alert in alerts:
                cursor.execute('''
                    INSERT INTO seo_alerts (type, threshold, email, enabled, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(type, email) DO UPDATE SET
                        threshold = excluded.threshold,
                        enabled = excluded.enabled,
                        created_at = excluded.created_at
                ''', (
                    alert.type.value,
                    alert.threshold,
                    alert.email,
                    alert.enabled,
                    alert.created_at or datetime.now().isoformat()
                ))
            conn.commit()
            logger.info(f"Saved {len(alerts)} SEO alerts")
        finally:
            conn.close()

    def get_enabled_alerts(self) -> List[SEOAlert]:
        """All alerts with enabled set"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cursor.execute('''
                SELECT type, threshold, email, enabled, created_at FROM seo_alerts
                WHERE enabled = 1
                ORDER BY id ASC
            ''')
            return [
                SEOAlert(
                    type=AlertType(row[0]),
                    threshold=row[1],
                    email=row[2],
                    enabled=bool(row[3]),
                    created_at=row[4]
                ) for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def save_audit_result(self, url: str, audit_type: str, results: Dict[str, Any],
                          target_keywords: List[str] = None, status: str = "completed"):
        """Store an audit or analysis result as JSON"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cursor.execute('''
                INSERT INTO seo_audit_results
                (url, audit_type, results, target_keywords, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                url,
                audit_type,
                json.dumps(results),
                json.dumps(target_keywords or []),
                status,
                datetime.now().isoformat()
            ))
            conn.commit()
            logger.info(f"Saved {audit_type} result for: {url}")
        finally:
            conn.close()

    def get_audit_results(self, url: str, audit_type: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent stored results for a URL, newest first"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            query = '''
                SELECT url, audit_type, results, target_keywords, status, created_at
                FROM seo_audit_results WHERE url = ?
            '''
            params = [url]
            if audit_type:
                query += " AND audit_type = ?"
                params.append(audit_type)
            query += " ORDER BY id DESC LIMIT ?"
            params.append(limit)

            cursor.execute(query, tuple(params))
            return [
                {
                    'url': row[0],
                    'audit_type': row[1],
                    'results': json.loads(row[2]),
                    'target_keywords': json.loads(row[3]),
                    'status': row[4],
                    'created_at': row[5],
                } for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def cleanup_old_data(self, days_to_keep: int = 30):
        """Remove old monitoring snapshots and audit results"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cutoff_date = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

            cursor.execute("DELETE FROM seo_monitoring WHERE timestamp < ?", (cutoff_date,))
            cursor.execute("DELETE FROM seo_audit_results WHERE created_at < ?", (cutoff_date,))

            conn.commit()
            logger.info(f"Cleaned up data older than {days_to_keep} days")
        finally:
            conn.close()

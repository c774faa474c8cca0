"""SQLite database layer for focus-rank."""

import sqlite3
from pathlib import Path


DEFAULT_DB_PATH = Path.home() / ".focus-rank" / "data.db"


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS attributes (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                level INTEGER DEFAULT 1,
                current_xp REAL DEFAULT 0.0,
                xp_to_next_level REAL DEFAULT 700.0,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS skills (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                image_url TEXT DEFAULT '',
                attribute_ids TEXT DEFAULT '[]',
                total_hours REAL DEFAULT 0.0,
                tier TEXT DEFAULT 'None',
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                focus_minutes_total REAL DEFAULT 0.0,
                completed_focus_blocks INTEGER DEFAULT 0,
                short_breaks INTEGER DEFAULT 0,
                long_breaks INTEGER DEFAULT 0,
                over_limit BOOLEAN DEFAULT 0,
                streak_segments TEXT DEFAULT '[]',
                total_xp REAL DEFAULT 0.0,
                attribute_ids TEXT DEFAULT '[]',
                skill_id TEXT
            );

            CREATE TABLE IF NOT EXISTS profile (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)
        self.conn.commit()

    def get_profile(self, key: str) -> str | None:
        """Get a profile value by key."""
        row = self.conn.execute(
            "SELECT value FROM profile WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_profile(self, key: str, value: str) -> None:
        """Set a profile value (upsert)."""
        self.conn.execute(
            "INSERT INTO profile (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, str(value)),
        )
        self.conn.commit()

    def delete_profile(self, key: str) -> None:
        self.conn.execute("DELETE FROM profile WHERE key = ?", (key,))
        self.conn.commit()

    def get_all_profile(self) -> dict[str, str]:
        """Return all profile key-value pairs as a dict."""
        rows = self.conn.execute("SELECT key, value FROM profile").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def replace_attributes(self, rows: list[dict]) -> None:
        """Replace the whole attribute table. Row order is kept via `position`."""
        with self.conn:
            self.conn.execute("DELETE FROM attributes")
            self.conn.executemany(
                "INSERT INTO attributes (id, position, name, level, current_xp, xp_to_next_level, created_at) "
                "VALUES (:id, :position, :name, :level, :current_xp, :xp_to_next_level, :created_at)",
                [{**row, "position": i} for i, row in enumerate(rows)],
            )

    def get_attributes(self) -> list[dict]:
        rows = self.conn.execute("SELECT * FROM attributes ORDER BY position").fetchall()
        return [dict(row) for row in rows]

    def replace_skills(self, rows: list[dict]) -> None:
        """Replace the whole skill table. Row order is kept via `position`."""
        with self.conn:
            self.conn.execute("DELETE FROM skills")
            self.conn.executemany(
                "INSERT INTO skills (id, position, name, image_url, attribute_ids, total_hours, tier, created_at) "
                "VALUES (:id, :position, :name, :image_url, :attribute_ids, :total_hours, :tier, :created_at)",
                [{**row, "position": i} for i, row in enumerate(rows)],
            )

    def get_skills(self) -> list[dict]:
        rows = self.conn.execute("SELECT * FROM skills ORDER BY position").fetchall()
        return [dict(row) for row in rows]

    def insert_session(self, row: dict) -> None:
        """Append a session. Sessions are never updated; re-inserting an id is ignored."""
        columns = list(row.keys())
        placeholders = ", ".join(["?"] * len(columns))
        col_str = ", ".join(columns)
        self.conn.execute(
            f"INSERT OR IGNORE INTO sessions ({col_str}) VALUES ({placeholders})",
            list(row.values()),
        )
        self.conn.commit()

    def get_sessions(self) -> list[dict]:
        """Return all sessions, oldest first."""
        rows = self.conn.execute(
            "SELECT * FROM sessions ORDER BY start_time, id"
        ).fetchall()
        return [dict(row) for row in rows]

    def clear_all(self) -> None:
        """Delete every stored row."""
        with self.conn:
            for table in ("attributes", "skills", "sessions", "profile"):
                self.conn.execute(f"DELETE FROM {table}")

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

"""
Knowledge Manager — File storage for rendered logistics reports.

Twin-File Protocol:
    Every save_report() call writes the human-readable report next to its
    raw evidence, so each figure in the Markdown can be traced back:
        {name}.md          <- Human-readable report
        {name}.json        <- Full sanitised snapshot
        {name}/            <- One CSV per metric table
            delays__top_delayed_routes.csv
            ...

Storage layout:
    storage/
        {category}/            <- e.g. logistics_report
"""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime

from logistics_engine.config import REPORT_CATEGORY, settings

from .converters import iter_tables, sanitize, snapshot_to_markdown

logger = logging.getLogger(__name__)


class KnowledgeManager:
    """
    Generic Hub — manages category folders and report files.

    No business logic. Rendering is delegated to converters.
    """

    def __init__(self, storage_dir: str | None = None):
        self.storage_dir = storage_dir or settings.STORAGE_DIR
        os.makedirs(self.storage_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Category (folder) management
    # ------------------------------------------------------------------

    def list_categories(self) -> list[str]:
        """Return sorted list of top-level folder names inside storage/."""
        return sorted(
            entry for entry in os.listdir(self.storage_dir)
            if os.path.isdir(os.path.join(self.storage_dir, entry))
        )

    def category_dir(self, category: str) -> str:
        return os.path.join(self.storage_dir, _slugify(category))

    # ------------------------------------------------------------------
    # Report (file) management
    # ------------------------------------------------------------------

    def save_report(
        self,
        title: str,
        snapshot: dict,
        category: str = REPORT_CATEGORY,
        filename: str | None = None,
    ) -> str:
        """
        Render and save a Report Snapshot (Markdown + JSON + per-metric CSVs).

        Args:
            title:    Report title, also used to derive the filename.
            snapshot: Output of LogisticsAnalyzer.analyze().
            category: Target subfolder (created if missing).
            filename: Optional file name; defaults to make_filename(title).

        Returns:
            The Markdown filename that was written (with .md extension).
        """
        dest_dir = self.category_dir(category)
        os.makedirs(dest_dir, exist_ok=True)

        filename = filename or self.make_filename(title)
        if not filename.endswith(".md"):
            filename = filename + ".md"
        stem = filename[:-3]

        with open(os.path.join(dest_dir, filename), "w", encoding="utf-8") as f:
            f.write(snapshot_to_markdown(title, snapshot))

        with open(os.path.join(dest_dir, f"{stem}.json"), "w", encoding="utf-8") as f:
            json.dump(sanitize(snapshot), f, indent=2, default=str)

        csv_dir = os.path.join(dest_dir, stem)
        os.makedirs(csv_dir, exist_ok=True)
        written = 0
        for section, metric, df in iter_tables(snapshot):
            df.to_csv(os.path.join(csv_dir, f"{section}__{metric}.csv"), index=False)
            written += 1

        logger.info("Saved report %s/%s (%d metric tables)", category, filename, written)
        return filename

    def list_reports(self, category: str = REPORT_CATEGORY) -> list[dict]:
        """Return the saved reports of a category, newest first."""
        cat_dir = self.category_dir(category)
        if not os.path.isdir(cat_dir):
            return []

        reports: list[dict] = []
        for fname in os.listdir(cat_dir):
            if not fname.endswith(".md"):
                continue
            stat = os.stat(os.path.join(cat_dir, fname))
            reports.append({
                "filename": fname,
                "size_bytes": stat.st_size,
                "modified": datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M"),
                "_mtime": stat.st_mtime,
            })

        reports.sort(key=lambda r: (r["_mtime"], r["filename"]), reverse=True)
        for r in reports:
            del r["_mtime"]
        return reports

    def get_report(self, filename: str, category: str = REPORT_CATEGORY) -> str:
        """Read and return the Markdown content of a saved report."""
        with open(os.path.join(self.category_dir(category), filename), "r", encoding="utf-8") as f:
            return f.read()

    def latest_report(self, category: str = REPORT_CATEGORY) -> dict | None:
        """
        The most recently written report of a category, or None.

        Returns:
            {"filename": "...", "markdown": "...", "data": {...} | None}
        """
        reports = self.list_reports(category)
        if not reports:
            return None

        filename = reports[0]["filename"]
        json_path = os.path.join(self.category_dir(category), filename[:-3] + ".json")
        data = None
        if os.path.exists(json_path):
            with open(json_path, "r", encoding="utf-8") as f:
                data = json.load(f)

        return {
            "filename": filename,
            "markdown": self.get_report(filename, category),
            "data": data,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def make_filename(title: str) -> str:
        """
        Generate a dated, case-preserving filename from a title.

        Example: "UPS Delivery Report" -> "UPS_Delivery_Report_2026-02-08_1430.md"
        """
        slug = _title_slug(title)
        stamp = datetime.now().strftime("%Y-%m-%d_%H%M")
        return f"{slug}_{stamp}.md"


# ------------------------------------------------------------------
# Module-level helpers
# ------------------------------------------------------------------

def _slugify(text: str) -> str:
    """Convert a title to a lowercase filesystem-safe slug."""
    s = text.lower().strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s_]+", "_", s)
    return s[:80]


def _title_slug(text: str) -> str:
    """Convert a title to a filesystem-safe slug, preserving original casing."""
    s = text.strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s_]+", "_", s)
    return s[:80]

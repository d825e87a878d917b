"""
Diagnostics Capture for the page-to-feed generator.
Persists the raw page and a run summary when a run aborts.
"""
import json
from pathlib import Path
from typing import List

from pagefeed.utils.logger import LayerLogger


class DiagnosticsWriter:
    """Writes debug.html, debug.png and debug.json into a directory."""

    def __init__(self, debug_dir: str = "debug"):
        self.debug_dir = Path(debug_dir)
        self.logger = LayerLogger("diagnostics")

    def capture(self, outcome) -> List[Path]:
        """
        Snapshot a failed run for offline inspection.

        Args:
            outcome: RunOutcome of the failed run

        Returns:
            Paths of the files written
        """
        self.debug_dir.mkdir(parents=True, exist_ok=True)
        written = []

        written.append(self._write_json("debug.json", outcome.report.to_dict()))
        if outcome.markup:
            written.append(self._write_text("debug.html", outcome.markup))
        if outcome.screenshot:
            written.append(self._write_bytes("debug.png", outcome.screenshot))

        self.logger.log_action(
            "capture_diagnostics",
            "completed",
            debug_dir=str(self.debug_dir),
            files=[p.name for p in written],
            error_type=outcome.report.error_type
        )
        return written

    def _write_json(self, name: str, data: dict) -> Path:
        path = self.debug_dir / name
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def _write_text(self, name: str, text: str) -> Path:
        path = self.debug_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    def _write_bytes(self, name: str, data: bytes) -> Path:
        path = self.debug_dir / name
        path.write_bytes(data)
        return path


def write_feed(path: str, feed_xml: str) -> Path:
    """Write the feed document to its output location."""
    target = Path(path)
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(feed_xml, encoding="utf-8")
    return target

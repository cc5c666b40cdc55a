"""CSV export of the card collection with a fixed header."""

import csv
import io
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Union

from ..core.constants import CSV_HEADER
from ..core.types import Card
from ..utils.error_handler import ExportError
from ..utils.log import get_logger


class CSVExporter:
    """Renders cards as CSV; every cell is quoted."""

    FIXED_HEADER = CSV_HEADER

    def __init__(self):
        self.logger = get_logger(__name__)

    @staticmethod
    def _date_only(value: str) -> str:
        if not value:
            return ""
        try:
            return datetime.fromisoformat(value).date().isoformat()
        except ValueError:
            return value

    def build_row(self, card: Card) -> Dict[str, str]:
        """Build a row dictionary keyed by the fixed header."""
        return {
            "Name": card.name,
            "Year": card.year or "",
            "Set": card.set_name or "",
            "Card Number": card.card_number or "",
            "Sport/Category": card.subcategory or "",
            "Team": card.team or "",
            "Rarity": card.rarity or "",
            "Price": f"{card.price:.2f}" if card.price is not None else "",
            "Grade": card.grade or "",
            "Grade Company": card.grade_company or "",
            "Date Added": self._date_only(card.date_added),
        }

    def build_rows(self, cards: Iterable[Card]) -> List[Dict[str, str]]:
        return [self.build_row(card) for card in cards]

    def _write(self, handle, cards: Iterable[Card]) -> int:
        writer = csv.DictWriter(handle, fieldnames=self.FIXED_HEADER, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        count = 0
        for row in self.build_rows(cards):
            writer.writerow(row)
            count += 1
        return count

    def render(self, cards: Iterable[Card]) -> str:
        buffer = io.StringIO()
        self._write(buffer, cards)
        return buffer.getvalue()

    @staticmethod
    def share_line(card: Card) -> str:
        """One line such as ``Michael Jordan - 1986 Fleer #57``; empty parts are dropped."""
        details = " ".join(part for part in (card.year, card.set_name) if part)
        if card.card_number:
            details = f"{details} #{card.card_number}".strip()
        return f"{card.name} - {details}" if details else card.name

    def share_text(self, cards: Iterable[Card]) -> str:
        """Plain-text summary of the given cards, one per line."""
        return "\n".join(self.share_line(card) for card in cards)

    def default_path(self, output_dir: Union[str, Path] = "output") -> Path:
        """Timestamped export filename inside ``output_dir``."""
        filename = f"card_collection_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        return Path(output_dir) / filename

    def export(self, cards: Iterable[Card], path: Union[str, Path]) -> Path:
        """Write the export to ``path``, replacing any existing file."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', newline='', encoding='utf-8') as f:
                count = self._write(f, cards)
                # Force flush to disk before reporting success
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise ExportError(f"Could not write export to {path}", details={"error": str(e)})

        self.logger.info("Collection exported", file=str(path), rows=count)
        return path


# Global singleton
csv_exporter = CSVExporter()

"""
In-memory workbook used as the import destination.

Mirrors the spreadsheet operations the importer needs: hidden sheet creation,
writes at an explicit 1-based row, rename, reveal and delete. Finalized sheets
can be exported to CSV.
"""

import csv
import re
from pathlib import Path
from typing import Optional

from child_sites.errors import ChildSitesError, DestinationNotFound


class Sheet:
    __slots__ = ("name", "rows", "hidden")

    def __init__(self, name: str, hidden: bool = True):
        self.name = name
        self.rows: list[list[str]] = []
        self.hidden = hidden

    @property
    def last_row(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r}, rows={len(self.rows)}, hidden={self.hidden})"


class Workbook:
    def __init__(self) -> None:
        self._sheets: dict[str, Sheet] = {}
        self.active_sheet: Optional[str] = None

    def __contains__(self, name: str) -> bool:
        return name in self._sheets

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def get_sheet(self, name: str) -> Sheet:
        sheet = self._sheets.get(name)
        if sheet is None:
            raise DestinationNotFound(name)
        return sheet

    def create_sheet(self, name: str, hidden: bool = True) -> Sheet:
        if name in self._sheets:
            raise ChildSitesError("sheet_exists", f"Sheet {name} already exists.", {"name": name})
        sheet = Sheet(name, hidden=hidden)
        self._sheets[name] = sheet
        return sheet

    def insert_values(self, name: str, values: list[list[str]], row: Optional[int] = None) -> None:
        """Write ``values`` starting at 1-based ``row`` (next free row when omitted).

        Rows between the current end and ``row`` are padded with empty rows so
        pages that complete out of order still land at their own offset.
        """
        sheet = self.get_sheet(name)
        if not values or not values[0]:
            raise ChildSitesError("no_values", "No values provided")
        if row is None:
            row = sheet.last_row + 1
        if row < 1:
            raise ChildSitesError("invalid_row", f"Row must be >= 1, got {row}")
        end = row - 1 + len(values)
        if end > len(sheet.rows):
            sheet.rows.extend([] for _ in range(end - len(sheet.rows)))
        for i, values_row in enumerate(values):
            sheet.rows[row - 1 + i] = list(values_row)

    def rename_sheet(self, name: str, new_name: str) -> None:
        sheet = self.get_sheet(name)
        if new_name != name and new_name in self._sheets:
            raise ChildSitesError("sheet_exists", f"Sheet {new_name} already exists.", {"name": new_name})
        del self._sheets[name]
        sheet.name = new_name
        self._sheets[new_name] = sheet
        if self.active_sheet == name:
            self.active_sheet = new_name

    def activate_sheet(self, name: str) -> None:
        sheet = self.get_sheet(name)
        sheet.hidden = False
        self.active_sheet = name

    def delete_sheet(self, name: str) -> None:
        self.get_sheet(name)
        del self._sheets[name]
        if self.active_sheet == name:
            self.active_sheet = None

    def export_csv(self, name: str, directory: Path) -> Path:
        sheet = self.get_sheet(name)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{_safe_filename(name)}.csv"
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerows(sheet.rows)
        return path


def _safe_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "sheet"

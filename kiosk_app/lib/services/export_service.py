from datetime import date, tzinfo
from typing import Iterable, List, Optional

import pandas as pd

from ..models.dto import VisitDTO
from ..translations import translate
from .stats_service import local_time

# Fixed export columns, as translation keys
EXPORT_COLUMNS = ['category', 'location', 'date', 'time', 'seq', 'group', 'group_size']

# Spreadsheets evaluate cells starting with these as formulas
FORMULA_PREFIXES = ('=', '+', '-', '@', '\t', '\r')


def spreadsheet_safe(text: str) -> str:
    """Quote free text so a spreadsheet shows it instead of evaluating it."""
    if text.startswith(FORMULA_PREFIXES):
        return "'" + text
    return text


def export_headers(language: str = 'en') -> List[str]:
    return [translate(key, language) for key in EXPORT_COLUMNS]


def build_export_rows(visits: Iterable[VisitDTO], language: str = 'en',
                      tz: Optional[tzinfo] = None) -> pd.DataFrame:
    """One row per visit with the fixed export column set."""
    rows = []
    for visit in visits:
        when = local_time(visit, tz)
        rows.append([
            visit.category.value,
            visit.location.value,
            when.strftime('%Y-%m-%d'),
            when.strftime('%H:%M:%S'),
            visit.daily_number,
            spreadsheet_safe(visit.group_info or ''),
            visit.group_size,
        ])
    return pd.DataFrame(rows, columns=export_headers(language))


def export_visits_csv(visits: Iterable[VisitDTO], language: str = 'en',
                      tz: Optional[tzinfo] = None) -> str:
    """CSV text of the given visits: a header line plus one line per visit."""
    return build_export_rows(visits, language, tz).to_csv(index=False, lineterminator='\n')


def export_filename(today: date, kiosk_name: str = 'Artemis') -> str:
    return f"{kiosk_name}_Logs_{today.isoformat()}.csv"

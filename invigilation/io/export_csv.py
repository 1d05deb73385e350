"""CSV export of a day's schedule."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from invigilation.domain.repositories import AllocationRepository
from invigilation.services.availability import normalize_date

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "date",
    "slot",
    "classroomCode",
    "status",
    "invigilatorName",
    "email",
    "department",
    "designation",
]


def allocations_frame(session: Session, date) -> pd.DataFrame:
    """Allocations of ``date`` as a DataFrame with the export columns."""
    rows = []
    for alloc in AllocationRepository.get_by_date(session, normalize_date(date)):
        fac = alloc.invigilator
        rows.append(
            {
                "date": alloc.date,
                "slot": alloc.slot,
                "classroomCode": alloc.classroom_code,
                "status": alloc.status,
                "invigilatorName": fac.name if fac else "",
                "email": fac.email if fac else "",
                "department": fac.department if fac else "",
                "designation": fac.designation if fac else "",
            }
        )
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_day_csv(session: Session, csv_path: str | Path, date) -> int:
    """
    Export one day's allocations to CSV.

    Args:
        session: Database session
        csv_path: Output path
        date: Date to export

    Returns:
        Number of rows written
    """
    df = allocations_frame(session, date)
    df.to_csv(csv_path, index=False)
    logger.info("Exported %d allocations to %s", len(df), csv_path)
    return len(df)

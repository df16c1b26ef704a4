"""
Spreadsheet export of the filtered issue list.
"""

from io import BytesIO
from typing import List
import logging

import pandas as pd
from openpyxl.utils import get_column_letter

from civic_reporter.models.issue import IssueView
from civic_reporter.services.errors import NoIssuesToExportError

logger = logging.getLogger(__name__)

SHEET_NAME = "Issues"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def issues_to_frame(issues: List[IssueView]) -> pd.DataFrame:
    rows = [
        {
            "ID": issue.id,
            "Title": issue.title,
            "Category": issue.category,
            "Status": issue.status,
            "Location": issue.location,
            "Description": issue.description,
            "Urgency Score": issue.urgency_score,
            "Created At": issue.created_at,
            "Reported By": issue.reported_by,
        }
        for issue in issues
    ]
    return pd.DataFrame(rows)


def column_widths(df: pd.DataFrame) -> List[int]:
    """Longest of header and cell text, plus 2. Empty cells count as 0."""
    widths = []
    for column in df.columns:
        cell_lengths = [len(str(v)) if v not in (None, "") and not pd.isna(v) else 0 for v in df[column]]
        widths.append(max([len(column)] + cell_lengths) + 2)
    return widths


def export_issues_xlsx(issues: List[IssueView]) -> bytes:
    """
    Build the xlsx workbook for the given issues.

    Raises NoIssuesToExportError for an empty list.
    """
    if not issues:
        raise NoIssuesToExportError("No issues to export")

    df = issues_to_frame(issues)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        worksheet = writer.sheets[SHEET_NAME]
        for index, width in enumerate(column_widths(df), start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = width

    logger.info(f"Exported {len(issues)} issues to xlsx")
    return buffer.getvalue()

from io import BytesIO

import pytest
from openpyxl import load_workbook

from civic_reporter.models.issue import IssueView
from civic_reporter.services.errors import NoIssuesToExportError
from civic_reporter.services.export_service import SHEET_NAME, column_widths, export_issues_xlsx, issues_to_frame
from civic_reporter.services.storage_service import photo_path, upload_photo

from conftest import FakeBucket

ISSUES = [
    IssueView(id="i1", title="Pothole", category="Infrastructure", status="high",
              location="MG Road", description="Deep", urgency_score=75,
              created_at="2025-03-01T12:00:00+00:00", reported_by="Asha"),
    IssueView(id="i2", title="Streetlight out near the bus stand", category="Utilities"),
]


def test_export_empty_list_raises():
    with pytest.raises(NoIssuesToExportError, match="No issues to export"):
        export_issues_xlsx([])


def test_export_writes_one_row_per_issue():
    workbook = load_workbook(BytesIO(export_issues_xlsx(ISSUES)))
    sheet = workbook[SHEET_NAME]

    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == (
        "ID", "Title", "Category", "Status", "Location",
        "Description", "Urgency Score", "Created At", "Reported By",
    )
    assert rows[1][:4] == ("i1", "Pothole", "Infrastructure", "high")
    assert rows[2][1] == "Streetlight out near the bus stand"
    assert len(rows) == 3


def test_column_widths_fit_longest_value():
    df = issues_to_frame(ISSUES)
    widths = dict(zip(df.columns, column_widths(df)))

    assert widths["ID"] == 4
    assert widths["Title"] == len("Streetlight out near the bus stand") + 2
    assert widths["Urgency Score"] == len("Urgency Score") + 2

    sheet = load_workbook(BytesIO(export_issues_xlsx(ISSUES)))[SHEET_NAME]
    assert sheet.column_dimensions["B"].width == widths["Title"]


def test_photo_paths():
    assert photo_path("pothole.png", now_ms=1700000000000) == "uploads/1700000000000-pothole.png"
    assert photo_path(None, now_ms=1700000000000) == "uploads/1700000000000.jpg"
    assert photo_path("a/b.png", now_ms=1) == "uploads/1-a_b.png"


def test_upload_photo_returns_public_url():
    bucket = FakeBucket("civic-photos")

    result = upload_photo(b"jpeg-bytes", "pothole.jpg", bucket=bucket)

    assert result.path.startswith("uploads/")
    assert result.path.endswith("-pothole.jpg")
    assert result.public_url == f"https://storage.googleapis.com/civic-photos/{result.path}"
    assert bucket.objects[result.path] == (b"jpeg-bytes", "image/jpeg")

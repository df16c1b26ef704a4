"""
Dashboard filtering over the in-memory issue list.
"""

from typing import List

from civic_reporter.models.issue import IssueFilters, IssueView


def _is_active(value: str) -> bool:
    return value not in ("all", "")


def filter_issues(issues: List[IssueView], filters: IssueFilters) -> List[IssueView]:
    """
    Apply the dashboard filters.

    - search: case-insensitive substring of title, description or location
    - category / status: exact match
    - location: case-sensitive substring of the location text
    """
    search = filters.search.lower()

    def matches(issue: IssueView) -> bool:
        if search and not (
            search in issue.title.lower()
            or search in issue.description.lower()
            or search in issue.location.lower()
        ):
            return False
        if _is_active(filters.category) and issue.category != filters.category:
            return False
        if _is_active(filters.status) and issue.status != filters.status:
            return False
        if _is_active(filters.location) and filters.location not in issue.location:
            return False
        return True

    return [issue for issue in issues if matches(issue)]


def active_filter_count(filters: IssueFilters) -> int:
    return sum(1 for value in filters.model_dump().values() if _is_active(value))

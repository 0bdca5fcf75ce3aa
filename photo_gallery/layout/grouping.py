"""
Day grouping and pagination.

Photos are grouped by capture date, then whole day-groups are packed greedily
into pages so that no date ever appears on two pages.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

from ..models import DayGroup, Page, Photo


def group_by_day(photos: Iterable[Photo]) -> List[DayGroup]:
    """
    Returns day-groups ordered most recent date first, each holding its
    photos most recent first. Equal timestamps keep their input order.
    """
    by_day: Dict[date, List[Photo]] = defaultdict(list)
    for p in photos:
        by_day[p.date].append(p)

    groups = []
    for day, day_photos in by_day.items():
        # sorted() is stable, so reverse=True keeps ties in scan order
        ordered = sorted(day_photos, key=lambda p: p.captured_at, reverse=True)
        groups.append(DayGroup(date=day, photos=ordered))

    groups.sort(key=lambda g: g.date, reverse=True)
    return groups


def paginate(groups: List[DayGroup], max_per_page: int) -> List[Page]:
    """
    Packs whole day-groups into pages left to right.

    A page is closed before the group that would push its total over
    max_per_page; a group larger than the maximum gets a page of its own.
    """
    if max_per_page < 1:
        raise ValueError(f"max_per_page must be at least 1, got {max_per_page}")

    pages: List[Page] = []
    current: List[DayGroup] = []
    count = 0
    for group in groups:
        if current and count + len(group) > max_per_page:
            pages.append(Page(index=len(pages), groups=current))
            current = []
            count = 0
        current.append(group)
        count += len(group)

    if current:
        pages.append(Page(index=len(pages), groups=current))
    return pages


def build_pages(photos: Iterable[Photo], max_per_page: int) -> List[Page]:
    return paginate(group_by_day(photos), max_per_page)

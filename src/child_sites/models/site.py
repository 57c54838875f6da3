"""
Ad Manager Site and Company models, plus the site-to-row mapping used by the sheet sink.
"""

from typing import Optional
from pydantic import BaseModel, Field

SITE_HEADERS = [
    "Site ID",
    "URL",
    "Child Network Code",
    "Approval Status",
    "Code",
    "Last Approval Status Change",
    "Disapproval Reasons",
]


class AdManagerDate(BaseModel):
    year: int
    month: int
    day: int


class AdManagerDateTime(BaseModel):
    date: AdManagerDate
    hour: int = 0
    minute: int = 0
    second: int = 0
    timeZoneId: str = ""

    def __str__(self) -> str:
        d = self.date
        stamp = f"{d.year:04d}-{d.month:02d}-{d.day:02d} {self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        return f"{stamp} {self.timeZoneId}".rstrip()


class DisapprovalReason(BaseModel):
    type: str = "UNKNOWN"  # CONTENT | OWNERSHIP | OTHER | UNKNOWN
    details: str = ""


class Site(BaseModel):
    id: int
    url: str = ""
    childNetworkCode: Optional[str] = None
    approvalStatus: str = "UNKNOWN"  # DRAFT | UNCHECKED | APPROVED | DISAPPROVED | REQUIRES_REVIEW | UNKNOWN
    code: str = ""
    approvalStatusDateTime: Optional[AdManagerDateTime] = None
    disapprovalReasons: Optional[list[DisapprovalReason]] = None


class SitesPage(BaseModel):
    """getSitesByStatement result page."""
    totalResultSetSize: int = 0
    startIndex: int = 0
    results: list[Site] = Field(default_factory=list)


class ChildPublisher(BaseModel):
    id: str
    name: str
    childNetworkCode: str


def site_to_row(site: Site) -> list[str]:
    """Map a Site onto one sheet row, in SITE_HEADERS order."""
    reasons = "; ".join(
        f"{r.type}: {r.details}" if r.details else r.type
        for r in site.disapprovalReasons or []
    )
    return [
        str(site.id),
        site.url,
        site.childNetworkCode or "",
        site.approvalStatus,
        site.code,
        str(site.approvalStatusDateTime) if site.approvalStatusDateTime else "",
        reasons,
    ]

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, computed_field, model_validator
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    """Immutable record serialised with camelCase keys."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# --- PAGE SIGNALS ---

# Every field is required: a mapping missing one is a caller bug, never a zero.

class TextSignal(FrozenModel):
    content: str
    length: NonNegativeInt
    present: bool

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.length != len(self.content):
            raise ValueError(f"length {self.length} does not match content length {len(self.content)}")
        if self.present != bool(self.content.strip()):
            raise ValueError("present must be true exactly when content is non-blank")
        return self

    @classmethod
    def from_text(cls, text: str | None) -> "TextSignal":
        content = (text or "").strip()
        return cls(content=content, length=len(content), present=bool(content))


class HeadingCounts(FrozenModel):
    h1: NonNegativeInt
    h2: NonNegativeInt
    h3: NonNegativeInt
    h4: NonNegativeInt
    h5: NonNegativeInt
    h6: NonNegativeInt


class ImageSignals(FrozenModel):
    total: NonNegativeInt
    without_alt: NonNegativeInt
    unoptimized: NonNegativeInt

    @model_validator(mode="after")
    def _check_counts(self):
        if self.without_alt > self.total or self.unoptimized > self.total:
            raise ValueError("image sub-counts cannot exceed the total")
        return self

    @computed_field(alias="altTextCoverage")
    @property
    def alt_text_coverage(self) -> float:
        """Percentage of images carrying alt text, one decimal; 100 when there are none."""
        if self.total == 0:
            return 100.0
        return round((self.total - self.without_alt) / self.total * 100, 1)


class LinkSignals(FrozenModel):
    total: NonNegativeInt
    internal: NonNegativeInt
    external: NonNegativeInt


class TechnicalSignals(FrozenModel):
    https: bool
    charset: bool
    viewport: bool
    canonical: bool
    favicon: bool
    language: bool
    # "schema" would shadow a BaseModel attribute
    has_schema: bool = Field(alias="schema")
    schema_types: tuple[str, ...]
    robots: str
    noindex: bool


class ContentSignals(FrozenModel):
    word_count: NonNegativeInt
    # characters of trimmed body text
    length: NonNegativeInt


class SocialSignals(FrozenModel):
    og_title: bool
    og_description: bool
    og_image: bool
    twitter_card: bool


class PerformanceSignals(FrozenModel):
    load_time_ms: NonNegativeInt


class PageSignals(FrozenModel):
    title: TextSignal
    meta_description: TextSignal
    meta_keywords: TextSignal
    headings: HeadingCounts
    h1_texts: tuple[str, ...]
    images: ImageSignals
    links: LinkSignals
    technical: TechnicalSignals
    content: ContentSignals
    social: SocialSignals
    performance: PerformanceSignals


def coerce_signals(signals: Any) -> PageSignals:
    """
    Returns `signals` as PageSignals, validating mappings on the way.

    Raises:
        pydantic.ValidationError: a mapping is missing groups or holds bad values.
        TypeError: anything that is neither PageSignals nor a mapping.
    """
    if isinstance(signals, PageSignals):
        return signals
    if isinstance(signals, Mapping):
        return PageSignals.model_validate(signals)
    raise TypeError(f"Expected PageSignals or a mapping of signal groups, got {type(signals).__name__}")


# --- ISSUES ---

class IssueKind(str, Enum):
    MISSING_TITLE = "missing_title"
    TITLE_LENGTH = "title_length"
    MISSING_META_DESCRIPTION = "missing_meta_description"
    META_DESCRIPTION_LENGTH = "meta_description_length"
    MISSING_H1 = "missing_h1"
    MULTIPLE_H1 = "multiple_h1"
    NO_H2 = "no_h2"
    THIN_CONTENT = "thin_content"
    MISSING_ALT = "missing_alt"
    UNOPTIMIZED_IMAGES = "unoptimized_images"
    NO_HTTPS = "no_https"
    MISSING_CHARSET = "missing_charset"
    MISSING_CANONICAL = "missing_canonical"
    MISSING_LANGUAGE = "missing_language"
    NOINDEX = "noindex"
    MISSING_VIEWPORT = "missing_viewport"
    SLOW_LOAD = "slow_load"
    MISSING_FAVICON = "missing_favicon"
    NO_LINKS = "no_links"
    NO_INTERNAL_LINKS = "no_internal_links"
    NO_STRUCTURED_DATA = "no_structured_data"
    INCOMPLETE_OPEN_GRAPH = "incomplete_open_graph"
    MISSING_OG_IMAGE = "missing_og_image"
    UNKNOWN = "unknown"


ISSUE_LABELS = {
    IssueKind.MISSING_TITLE: "Missing page title",
    IssueKind.TITLE_LENGTH: "Title length not optimal (30-60 characters)",
    IssueKind.MISSING_META_DESCRIPTION: "Missing meta description",
    IssueKind.META_DESCRIPTION_LENGTH: "Meta description length not optimal (120-160 characters)",
    IssueKind.MISSING_H1: "Missing H1 tag",
    IssueKind.MULTIPLE_H1: "Multiple H1 tags found",
    IssueKind.NO_H2: "No H2 headings found - poor content structure",
    IssueKind.THIN_CONTENT: "Content is too short (less than 300 words)",
    IssueKind.MISSING_ALT: "{count} images missing alt text",
    IssueKind.UNOPTIMIZED_IMAGES: "{count} images could be optimized (consider WebP format)",
    IssueKind.NO_HTTPS: "Website not using HTTPS/SSL",
    IssueKind.MISSING_CHARSET: "Missing charset declaration",
    IssueKind.MISSING_CANONICAL: "Missing canonical URL",
    IssueKind.MISSING_LANGUAGE: "Missing HTML language declaration",
    IssueKind.NOINDEX: "Page set to noindex - will not appear in search results",
    IssueKind.MISSING_VIEWPORT: "Missing mobile-friendly viewport meta tag",
    IssueKind.SLOW_LOAD: "Page load time exceeds 3 seconds",
    IssueKind.MISSING_FAVICON: "Missing favicon",
    IssueKind.NO_LINKS: "No links found on page - poor user experience",
    IssueKind.NO_INTERNAL_LINKS: "No internal links found - poor site navigation",
    IssueKind.NO_STRUCTURED_DATA: "No structured data (Schema.org) found",
    IssueKind.INCOMPLETE_OPEN_GRAPH: "Incomplete Open Graph tags (missing title or description)",
    IssueKind.MISSING_OG_IMAGE: "Missing Open Graph image",
    IssueKind.UNKNOWN: "Unrecognized SEO issue",
}

COUNTED_KINDS = frozenset({IssueKind.MISSING_ALT, IssueKind.UNOPTIMIZED_IMAGES})


def render_issue(kind: IssueKind, count: int | None = None) -> str:
    label = ISSUE_LABELS[kind]
    if kind in COUNTED_KINDS:
        return label.format(count=count or 0)
    return label


class Issue(FrozenModel):
    kind: IssueKind
    score_impact: int
    count: NonNegativeInt | None = None

    @computed_field(alias="issueText")
    @property
    def issue_text(self) -> str:
        return render_issue(self.kind, self.count)


# --- RESOLUTIONS ---

class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {Priority.CRITICAL: 0, Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


class ResolutionRecord(FrozenModel):
    priority: Priority
    category: str
    solution: str
    implementation: tuple[str, ...]
    example: str
    impact: str
    time_to_fix: str


class ResolvedIssue(ResolutionRecord):
    issue: str
    kind: IssueKind
    score_impact: int


# --- RESULTS ---

class ScoreResult(FrozenModel):
    total_score: int = Field(ge=0, le=100)
    breakdown: dict[str, int]
    grade: str


class AuditResult(FrozenModel):
    url: str
    total_score: int = Field(ge=0, le=100)
    grade: str
    breakdown: dict[str, int]
    issues: tuple[Issue, ...]
    issues_with_resolutions: tuple[ResolvedIssue, ...]
    signals: PageSignals
    timestamp: datetime

    def to_payload(self) -> dict:
        """JSON shape consumed by the API, exports and report files."""
        return {
            "url": self.url,
            "score": self.total_score,
            "grade": self.grade,
            "scoreBreakdown": dict(self.breakdown),
            "issues": [issue.issue_text for issue in self.issues],
            "issuesWithResolutions": [
                resolved.model_dump(by_alias=True, mode="json") for resolved in self.issues_with_resolutions
            ],
            "metrics": self.signals.model_dump(by_alias=True, mode="json"),
            "timestamp": self.timestamp.isoformat(),
        }


# --- CRAWLING ---

class SitemapEntry(FrozenModel):
    loc: str
    lastmod: str | None = None
    changefreq: str | None = None
    priority: float | None = None


class FetchedPage(FrozenModel):
    url: str
    html: str
    load_time_ms: NonNegativeInt
    status_code: int

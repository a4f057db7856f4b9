from dataclasses import dataclass
from typing import Callable, Iterator, NamedTuple

from models import Issue, IssueKind, PageSignals, coerce_signals

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
DESCRIPTION_MIN_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 160
MIN_WORD_COUNT = 300
SLOW_LOAD_MS = 3000
EXTERNAL_LINKS_THRESHOLD = 10

ALT_PENALTY_PER_IMAGE = 2
ALT_PENALTY_CAP = 15
FORMAT_PENALTY_PER_IMAGE = 2
FORMAT_PENALTY_CAP = 10

DEDUCTIONS = {
    IssueKind.MISSING_TITLE: 15,
    IssueKind.TITLE_LENGTH: 10,
    IssueKind.MISSING_META_DESCRIPTION: 15,
    IssueKind.META_DESCRIPTION_LENGTH: 10,
    IssueKind.MISSING_H1: 15,
    IssueKind.MULTIPLE_H1: 10,
    IssueKind.NO_H2: 8,
    IssueKind.THIN_CONTENT: 10,
    IssueKind.NO_HTTPS: 20,
    IssueKind.MISSING_CHARSET: 5,
    IssueKind.MISSING_CANONICAL: 5,
    IssueKind.MISSING_LANGUAGE: 5,
    IssueKind.NOINDEX: 25,
    IssueKind.MISSING_VIEWPORT: 10,
    IssueKind.SLOW_LOAD: 10,
    IssueKind.MISSING_FAVICON: 3,
    IssueKind.NO_LINKS: 8,
    IssueKind.NO_INTERNAL_LINKS: 10,
    IssueKind.NO_STRUCTURED_DATA: 5,
    IssueKind.INCOMPLETE_OPEN_GRAPH: 8,
    IssueKind.MISSING_OG_IMAGE: 5,
}


def _issue(kind: IssueKind) -> Issue:
    return Issue(kind=kind, score_impact=DEDUCTIONS[kind])


def _counted_issue(kind: IssueKind, count: int, per_item: int, cap: int) -> Issue:
    # the same count drives the label and the deduction
    return Issue(kind=kind, count=count, score_impact=min(cap, count * per_item))


# --- CHECKS ---
# Each check returns the single issue it raises, or None when the page passes.

def check_title(signals: PageSignals) -> Issue | None:
    title = signals.title
    if not title.present:
        return _issue(IssueKind.MISSING_TITLE)
    if not TITLE_MIN_LENGTH <= title.length <= TITLE_MAX_LENGTH:
        return _issue(IssueKind.TITLE_LENGTH)
    return None


def check_meta_description(signals: PageSignals) -> Issue | None:
    description = signals.meta_description
    if not description.present:
        return _issue(IssueKind.MISSING_META_DESCRIPTION)
    if not DESCRIPTION_MIN_LENGTH <= description.length <= DESCRIPTION_MAX_LENGTH:
        return _issue(IssueKind.META_DESCRIPTION_LENGTH)
    return None


def check_h1(signals: PageSignals) -> Issue | None:
    if signals.headings.h1 == 0:
        return _issue(IssueKind.MISSING_H1)
    if signals.headings.h1 > 1:
        return _issue(IssueKind.MULTIPLE_H1)
    return None


def check_h2(signals: PageSignals) -> Issue | None:
    if signals.headings.h2 == 0 and signals.content.word_count > MIN_WORD_COUNT:
        return _issue(IssueKind.NO_H2)
    return None


def check_word_count(signals: PageSignals) -> Issue | None:
    if signals.content.word_count < MIN_WORD_COUNT:
        return _issue(IssueKind.THIN_CONTENT)
    return None


def check_image_alt(signals: PageSignals) -> Issue | None:
    if (missing := signals.images.without_alt) > 0:
        return _counted_issue(IssueKind.MISSING_ALT, missing, ALT_PENALTY_PER_IMAGE, ALT_PENALTY_CAP)
    return None


def check_image_format(signals: PageSignals) -> Issue | None:
    if (unoptimized := signals.images.unoptimized) > 0:
        return _counted_issue(IssueKind.UNOPTIMIZED_IMAGES, unoptimized, FORMAT_PENALTY_PER_IMAGE, FORMAT_PENALTY_CAP)
    return None


def _flag_check(group: str, flag: str, kind: IssueKind) -> Callable[[PageSignals], Issue | None]:
    def check(signals: PageSignals) -> Issue | None:
        return None if getattr(getattr(signals, group), flag) else _issue(kind)
    check.__name__ = f"check_{flag}"
    return check


def check_noindex(signals: PageSignals) -> Issue | None:
    return _issue(IssueKind.NOINDEX) if signals.technical.noindex else None


def check_load_time(signals: PageSignals) -> Issue | None:
    if signals.performance.load_time_ms > SLOW_LOAD_MS:
        return _issue(IssueKind.SLOW_LOAD)
    return None


def check_links(signals: PageSignals) -> Issue | None:
    return _issue(IssueKind.NO_LINKS) if signals.links.total == 0 else None


def check_internal_links(signals: PageSignals) -> Issue | None:
    links = signals.links
    if links.external > EXTERNAL_LINKS_THRESHOLD and links.internal == 0:
        return _issue(IssueKind.NO_INTERNAL_LINKS)
    return None


def check_open_graph(signals: PageSignals) -> Issue | None:
    if not signals.social.og_title or not signals.social.og_description:
        return _issue(IssueKind.INCOMPLETE_OPEN_GRAPH)
    return None


# --- RULE TABLE ---

@dataclass(frozen=True)
class Rule:
    name: str
    bucket: str
    bonus: int
    check: Callable[[PageSignals], Issue | None]


ON_PAGE = "onPage"
TECHNICAL = "technical"
CONTENT = "content"
IMAGES = "images"
USER_EXPERIENCE = "userExperience"
ADVANCED = "advanced"

BUCKETS = (ON_PAGE, TECHNICAL, CONTENT, IMAGES, USER_EXPERIENCE, ADVANCED)

# A rule that fires costs its issue's deduction; a rule that passes earns its bonus.
# Table order is the order issues are reported in.
RULES = (
    Rule("title", ON_PAGE, 4, check_title),
    Rule("meta_description", ON_PAGE, 4, check_meta_description),
    Rule("h1", ON_PAGE, 4, check_h1),
    Rule("image_alt", IMAGES, 3, check_image_alt),
    Rule("canonical", TECHNICAL, 1, _flag_check("technical", "canonical", IssueKind.MISSING_CANONICAL)),
    Rule("viewport", USER_EXPERIENCE, 2, _flag_check("technical", "viewport", IssueKind.MISSING_VIEWPORT)),
    Rule("load_time", USER_EXPERIENCE, 1, check_load_time),
    Rule("schema", ADVANCED, 1, _flag_check("technical", "has_schema", IssueKind.NO_STRUCTURED_DATA)),
    Rule("word_count", CONTENT, 3, check_word_count),
    Rule("https", TECHNICAL, 3, _flag_check("technical", "https", IssueKind.NO_HTTPS)),
    Rule("charset", TECHNICAL, 1, _flag_check("technical", "charset", IssueKind.MISSING_CHARSET)),
    Rule("favicon", USER_EXPERIENCE, 0, _flag_check("technical", "favicon", IssueKind.MISSING_FAVICON)),
    Rule("language", TECHNICAL, 1, _flag_check("technical", "language", IssueKind.MISSING_LANGUAGE)),
    Rule("h2", CONTENT, 2, check_h2),
    Rule("image_format", IMAGES, 1, check_image_format),
    Rule("open_graph", ADVANCED, 1, check_open_graph),
    Rule("og_image", ADVANCED, 1, _flag_check("social", "og_image", IssueKind.MISSING_OG_IMAGE)),
    Rule("internal_links", USER_EXPERIENCE, 0, check_internal_links),
    Rule("indexability", TECHNICAL, 0, check_noindex),
    Rule("links", USER_EXPERIENCE, 0, check_links),
)


class Evaluation(NamedTuple):
    issues: list[Issue]
    total_delta: int


def run_rules(signals) -> Iterator[tuple[Rule, Issue | None]]:
    """Yields every rule with its outcome; rules never short-circuit each other."""
    signals = coerce_signals(signals)
    for rule in RULES:
        yield rule, rule.check(signals)


def evaluate(signals) -> Evaluation:
    issues = [issue for _, issue in run_rules(signals) if issue is not None]
    return Evaluation(issues=issues, total_delta=-sum(issue.score_impact for issue in issues))

"""Pattern and date filters that bulk-update selection on a SelectionModel"""

import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional

from gitlab_branch_keeper.exceptions import PatternErrorReason, PatternSyntaxError
from gitlab_branch_keeper.logging_config import get_logger
from gitlab_branch_keeper.models.branch import BranchRecord, MergeState
from gitlab_branch_keeper.services.selection_model import SelectionModel

logger = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class FilterAction(Enum):
    """INCLUDE selects matches, EXCLUDE deselects them. Non-matches are left alone."""
    INCLUDE = "include"
    EXCLUDE = "exclude"


def parse_date(text: str) -> date:
    """Parse a YYYY-MM-DD string into a date."""
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Invalid date '{text}', expected YYYY-MM-DD") from None


def _classify_pattern_error(error: re.error) -> PatternErrorReason:
    message = (error.msg or "").lower()
    if "missing )" in message or "unterminated subpattern" in message:
        return PatternErrorReason.UNTERMINATED_GROUP
    if "nothing to repeat" in message:
        return PatternErrorReason.DANGLING_QUANTIFIER
    if (
        "multiple repeat" in message
        or "min repeat greater than max repeat" in message
        or "repetition number is too large" in message
    ):
        return PatternErrorReason.ILLEGAL_REPETITION
    return PatternErrorReason.OTHER


class PatternFilter:
    """Selects or deselects branches whose whole name matches a regular expression.

    Protected branches are never selected by a pattern, but an exclude
    pattern does deselect them.
    """

    def __init__(self, text: str):
        self.text = text
        self.regex: Optional[re.Pattern] = None
        if text:
            try:
                self.regex = re.compile(text)
            except re.error as e:
                raise PatternSyntaxError(text, _classify_pattern_error(e), e.msg) from e

    @property
    def is_empty(self) -> bool:
        return self.regex is None

    def matches(self, record: BranchRecord) -> bool:
        return self.regex is not None and self.regex.fullmatch(record.name) is not None

    def apply(self, model: SelectionModel, action: FilterAction) -> int:
        """Apply the pattern to model and return how many records changed."""
        if self.is_empty:
            return 0

        if action is FilterAction.INCLUDE:
            changed = model.bulk_set_selected(
                lambda r: not r.is_protected and self.matches(r), True
            )
        else:
            changed = model.bulk_set_selected(self.matches, False)

        logger.debug(f"Pattern '{self.text}' ({action.value}) changed {changed} branches")
        return changed


class DateFilter:
    """Selects or deselects branches by last-commit calendar date.

    ``after`` is inclusive and ``before`` includes the whole boundary day.
    With neither bound set nothing matches.
    """

    def __init__(self, after: Optional[date] = None, before: Optional[date] = None):
        self.after = after
        self.before = before

    @property
    def is_empty(self) -> bool:
        return self.after is None and self.before is None

    def matches(self, record: BranchRecord) -> bool:
        if self.is_empty:
            return False

        committed_at = record.committed_at
        if committed_at is None:
            return False
        commit_date = committed_at.date()

        if self.after is not None and commit_date < self.after:
            return False
        if self.before is not None and commit_date >= self.before + timedelta(days=1):
            return False
        return True

    def apply(self, model: SelectionModel, action: FilterAction) -> int:
        if self.is_empty:
            return 0
        changed = model.bulk_set_selected(self.matches, action is FilterAction.INCLUDE)
        logger.debug(
            f"Date filter after={self.after} before={self.before} ({action.value}) "
            f"changed {changed} branches"
        )
        return changed


def cutoff_candidates(model: SelectionModel, merged: bool, cutoff: date) -> List[BranchRecord]:
    """Non-protected, non-target branches with the given merge state, last committed before cutoff.

    Branches whose merge state is unknown are never candidates.
    """
    wanted = MergeState.MERGED if merged else MergeState.NOT_MERGED
    candidates = []
    for record in model:
        if record.is_protected or model.is_target(record):
            continue
        if record.merge_state is not wanted:
            continue
        committed_at = record.committed_at
        if committed_at is None or committed_at.date() >= cutoff:
            continue
        candidates.append(record)
    return candidates


class CutoffFilter:
    """Bulk selection of stale merged or unmerged branches."""

    def __init__(self, merged: bool, cutoff: date):
        self.merged = merged
        self.cutoff = cutoff

    def apply(self, model: SelectionModel, action: FilterAction) -> int:
        candidates = {id(record) for record in cutoff_candidates(model, self.merged, self.cutoff)}
        changed = model.bulk_set_selected(
            lambda r: id(r) in candidates, action is FilterAction.INCLUDE
        )
        state = "merged" if self.merged else "unmerged"
        logger.debug(f"{len(candidates)} {state} branches older than {self.cutoff}, {changed} changed")
        return changed

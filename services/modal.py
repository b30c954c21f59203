from __future__ import annotations

from typing import Optional

from models.query import ModalOperator
from services.filters import FilterOutcome


def evaluate_operator(operator: Optional[ModalOperator], outcome: FilterOutcome) -> Optional[bool]:
    """Diamond: some record satisfies the value filter. Box: every record does.

    Returns None when no operator was requested.
    """
    if operator is ModalOperator.diamond:
        return len(outcome.records) > 0
    if operator is ModalOperator.box:
        return len(outcome.records) == outcome.original_value_count
    return None

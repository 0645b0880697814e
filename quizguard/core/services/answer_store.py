"""Service holding the test-taker's current answers."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from quizguard.core.models import QuestionId

logger = logging.getLogger(__name__)


class AnswerStore:
    """Mutable mapping of question id to answer until frozen for submission."""

    def __init__(self, question_ids: Iterable[QuestionId]) -> None:
        self._allowed: frozenset[QuestionId] = frozenset(question_ids)
        self._answers: dict[QuestionId, str] = {}
        self._frozen: bool = False

    def set(self, question_id: QuestionId, value: str) -> bool:
        """Record an answer. Returns False when the write was ignored."""
        if self._frozen:
            logger.debug("Ignoring answer for question %s: store is frozen", question_id)
            return False
        if question_id not in self._allowed:
            logger.debug("Ignoring answer for unknown question %s", question_id)
            return False
        self._answers[question_id] = value
        return True

    def get_all(self) -> Mapping[QuestionId, str]:
        return MappingProxyType(dict(self._answers))

    def freeze(self) -> None:
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def answered_count(self) -> int:
        return sum(1 for value in self._answers.values() if value.strip())

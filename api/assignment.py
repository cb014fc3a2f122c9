"""
Политика выбора ревьюверов.

Работает только со списками в памяти, в базу не ходит. Кандидатов заранее
фильтрует сервис: активные, из команды автора, без самого автора.
Источник случайности подменяемый, в тестах передается random.Random с seed.
"""
import random

from .exceptions import NoAvailableReviewer


class ReviewerAssignmentPolicy:

    def __init__(self, rng: random.Random = None):
        self._rng = rng or random.Random()

    def select_reviewers(self, candidates: list, max_count: int) -> list:
        """
        Выбирает до max_count ревьюверов без повторов.

        Если кандидатов не больше max_count, возвращаются все.
        """
        if max_count < 0:
            raise ValueError('max_count must be non-negative')

        candidates = list(candidates)
        if len(candidates) <= max_count:
            return candidates

        return self._rng.sample(candidates, max_count)

    def select_replacement(self, candidates: list, exclude_ids):
        """
        Выбирает одного случайного кандидата, чей id не входит в exclude_ids.
        Возвращает сам объект из candidates.
        """
        excluded = set(exclude_ids)
        pool = [candidate for candidate in candidates if candidate.id not in excluded]

        if not pool:
            raise NoAvailableReviewer('no active replacement candidate in team')

        return self._rng.choice(pool)

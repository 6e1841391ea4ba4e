#!/usr/bin/env python3
"""
Learning statistics aggregation.

``record_quiz_completion`` folds one QuizScore into a UserStats value and
returns a new value. It is pure: the only clock it reads is the score's own
``completed_at``, so the reducer can call it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from types import MappingProxyType

from kwizkid.core.constants import StatsDefaults
from kwizkid.core.dataclasses import Achievement, CategoryStats, QuizScore, UserStats, WeeklyProgress


@dataclass(frozen=True)
class AchievementRule:
    """Static description of an achievement and how progress is measured."""

    id: str
    title: str
    description: str
    icon: str
    requirement: int

    def progress_for(self, stats: UserStats, score: QuizScore) -> int:
        match self.id:
            case "first_quiz" | "quiz_explorer":
                return stats.total_quizzes_completed
            case "perfect_score":
                return 1 if score.is_perfect else 0
            case "streak_3" | "streak_7":
                return stats.current_streak
            case "hundred_correct":
                return stats.correct_answers
            case _:
                return 0


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_quiz", "First Steps", "Complete your first quiz", "star.fill", 1),
    AchievementRule("perfect_score", "Perfect!", "Answer every question in a quiz correctly", "crown.fill", 1),
    AchievementRule("streak_3", "On a Roll", "Play 3 days in a row", "flame.fill", 3),
    AchievementRule("streak_7", "Week Warrior", "Play 7 days in a row", "calendar", 7),
    AchievementRule("quiz_explorer", "Quiz Explorer", "Complete 10 quizzes", "map.fill", 10),
    AchievementRule("hundred_correct", "Brain Power", "Answer 100 questions correctly", "brain.head.profile", 100),
)


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def _next_streak(stats: UserStats, completed_at: datetime) -> int:
    if stats.last_quiz_date is None:
        return 1
    gap = (completed_at.date() - stats.last_quiz_date.date()).days
    if gap == 0:
        return max(stats.current_streak, 1)
    if gap == 1:
        return stats.current_streak + 1
    # Completion earlier than the last recorded quiz does not break a streak
    if gap < 0:
        return max(stats.current_streak, 1)
    return 1


def _update_category(previous: CategoryStats | None, score: QuizScore) -> CategoryStats:
    previous = previous or CategoryStats()
    quizzes = previous.quizzes_completed + 1
    questions = previous.total_questions + score.total_questions
    correct = previous.correct_answers + score.correct_answers
    average = (previous.average_score * previous.quizzes_completed + score.percentage) / quizzes
    return CategoryStats(
        quizzes_completed=quizzes,
        total_questions=questions,
        correct_answers=correct,
        accuracy=correct / questions if questions else 0.0,
        average_score=average,
        best_score=max(previous.best_score, score.percentage),
        time_spent=previous.time_spent + score.time_spent,
    )


def _update_weekly(weekly: tuple[WeeklyProgress, ...], score: QuizScore) -> tuple[WeeklyProgress, ...]:
    start = week_start(score.completed_at.date())
    entries = {entry.week_start: entry for entry in weekly}
    current = entries.get(start)
    if current is None:
        entries[start] = WeeklyProgress(
            week_start=start,
            quizzes_completed=1,
            time_spent=score.time_spent,
            average_score=float(score.percentage),
        )
    else:
        quizzes = current.quizzes_completed + 1
        entries[start] = WeeklyProgress(
            week_start=start,
            quizzes_completed=quizzes,
            time_spent=current.time_spent + score.time_spent,
            average_score=(current.average_score * current.quizzes_completed + score.percentage) / quizzes,
        )
    ordered = sorted(entries.values(), key=lambda entry: entry.week_start)
    return tuple(ordered[-StatsDefaults.MAX_WEEKLY_ENTRIES :])


def _update_achievements(stats: UserStats, score: QuizScore) -> tuple[Achievement, ...]:
    existing = {achievement.id: achievement for achievement in stats.achievements}
    updated: list[Achievement] = []
    for rule in ACHIEVEMENT_RULES:
        previous = existing.get(rule.id)
        if previous is not None and previous.is_unlocked:
            updated.append(previous)
            continue
        progress = min(max(rule.progress_for(stats, score), previous.progress if previous else 0), rule.requirement)
        unlocked = progress >= rule.requirement
        updated.append(
            Achievement(
                id=rule.id,
                title=rule.title,
                description=rule.description,
                icon=rule.icon,
                is_unlocked=unlocked,
                unlocked_date=score.completed_at if unlocked else None,
                progress=progress,
                requirement=rule.requirement,
            )
        )
    return tuple(updated)


def record_quiz_completion(stats: UserStats, score: QuizScore) -> UserStats:
    """Return ``stats`` with ``score`` folded in."""
    current_streak = _next_streak(stats, score.completed_at)
    last_quiz_date = score.completed_at
    if stats.last_quiz_date is not None and stats.last_quiz_date > score.completed_at:
        last_quiz_date = stats.last_quiz_date

    category_stats = dict(stats.category_stats)
    category_stats[score.category.id] = _update_category(category_stats.get(score.category.id), score)

    totals = replace(
        stats,
        total_quizzes_completed=stats.total_quizzes_completed + 1,
        total_questions_answered=stats.total_questions_answered + score.total_questions,
        correct_answers=stats.correct_answers + score.correct_answers,
        total_time_spent=stats.total_time_spent + score.time_spent,
        current_streak=current_streak,
        longest_streak=max(stats.longest_streak, current_streak),
        category_stats=MappingProxyType(category_stats),
        weekly_progress=_update_weekly(stats.weekly_progress, score),
        last_quiz_date=last_quiz_date,
    )
    return replace(totals, achievements=_update_achievements(totals, score))

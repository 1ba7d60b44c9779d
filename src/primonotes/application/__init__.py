# Application Package
from .grading import format_score, grade_answer, score_test
from .queue_builder import QueueBuildResult, QueueStatus, StudyMode, build_study_queue
from .scheduling import AdaptiveEasePolicy, FixedIntervalPolicy, SchedulingPolicy, get_policy
from .session import SessionResult, SessionState, StudySession, merge_cards

__all__ = [
    "grade_answer",
    "score_test",
    "format_score",
    "StudyMode",
    "QueueStatus",
    "QueueBuildResult",
    "build_study_queue",
    "SchedulingPolicy",
    "FixedIntervalPolicy",
    "AdaptiveEasePolicy",
    "get_policy",
    "StudySession",
    "SessionState",
    "SessionResult",
    "merge_cards",
]

"""submissions 服务层聚合入口。"""

from .submission import SubmissionService
from .submission_scores import SubmissionScoreService

__all__ = ["SubmissionService", "SubmissionScoreService"]

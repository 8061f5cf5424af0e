"""
提交评分核心：答案解析、分组加权评分与多份提交的聚合统计。

纯计算模块，不访问数据库；持久化与批量调度见 submissions.services。
"""

from .answers import ChoiceAnswer, NumericAnswer, TextAnswer, parse_answer
from .engine import NodeScore, QuestionScore, SubmissionScore, normalize_answer, score_submission
from .statistics import NodeStatistics, ScoreSummary, aggregate_scores, summarize_scores

__all__ = [
    "ChoiceAnswer",
    "NodeScore",
    "NodeStatistics",
    "NumericAnswer",
    "QuestionScore",
    "ScoreSummary",
    "SubmissionScore",
    "TextAnswer",
    "aggregate_scores",
    "normalize_answer",
    "parse_answer",
    "score_submission",
    "summarize_scores",
]

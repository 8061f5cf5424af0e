"""
提交评分引擎。

输入：问卷模板结构（节点树）+ 一次提交的答案列表；
输出：每道题的归一化得分、每个分组的加权得分，以及整份提交的总分。

【单题归一化规则】（0–100 分制，均保持历史口径，不做“修正”）
- 单选：所选选项分值 / 该题最高选项分值 × 100；
- 多选：所选选项分值之和 / 该题“单个”最高选项分值 × 100（历史口径，可能超过 100）；
- 量表：答案 / 5 × 100（上限固定为 5，不读取题目上的量表范围）；
- 数值：答案 / 10 × 100（上限固定为 10）；
- 文本：只计入已作答数，不参与得分与权重。
单题加权得分 = 归一化得分 × 题目权重。

【分组汇总规则】
- 每个分组统计其所有适用后代题目：answeredQuestions / totalQuestions /
  weightedScore（已计分题加权得分之和）/ totalWeight（已计分题权重之和）；
- score = weightedScore / totalWeight，totalWeight 为 0 时记 0；
- 总分按同样规则在“虚拟根节点”（所有顶层节点）上汇总。

条件不满足而隐藏的题目（自身或任一祖先不可见）不适用，不计入任何统计；
孤立答案（题目已不在模板中）、无法解析的答案同样被跳过，既不计入分子也不计入分母。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from questionnaires.tree.nodes import (
    DEFAULT_WEIGHT,
    ensure_node_list,
    is_group,
    is_question,
    positive_number,
)
from questionnaires.tree.paths import walk_tree
from questionnaires.tree.visibility import build_answer_index, is_visible

from .answers import ChoiceAnswer, NumericAnswer, ParsedAnswer, parse_answer

logger = logging.getLogger(__name__)

MAX_NORMALIZED_SCORE = 100


def _round(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(value, 2)


@dataclass
class QuestionScore:
    question_id: str
    question_title: Optional[str]
    node_path: List[Any]
    input_type: str
    raw_answer: Any
    weight: float
    normalized_score: Optional[float] = None
    weighted_score: Optional[float] = None

    @property
    def is_scored(self) -> bool:
        return self.normalized_score is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "questionTitle": self.question_title,
            "nodePath": list(self.node_path),
            "inputType": self.input_type,
            "rawAnswer": self.raw_answer,
            "normalizedScore": _round(self.normalized_score),
            "maxScore": MAX_NORMALIZED_SCORE if self.is_scored else None,
            "weight": self.weight,
            "weightedScore": _round(self.weighted_score),
        }


@dataclass
class NodeScore:
    node_id: Any
    node_path: List[Any]
    title: Optional[str]
    answered_questions: int = 0
    total_questions: int = 0
    weighted_score: float = 0
    total_weight: float = 0
    details: List[QuestionScore] = field(default_factory=list)
    max_score: float = MAX_NORMALIZED_SCORE

    @property
    def score(self) -> float:
        if self.total_weight <= 0:
            return 0
        return self.weighted_score / self.total_weight

    def add(self, question_score: Optional[QuestionScore]) -> None:
        # 每道适用题目都计入 totalQuestions；只有成功解析的答案计入已作答与加权统计
        self.total_questions += 1
        if question_score is None:
            return
        self.answered_questions += 1
        self.details.append(question_score)
        if question_score.is_scored:
            self.weighted_score += question_score.weighted_score
            self.total_weight += question_score.weight

    def to_dict(self, include_details: bool = True) -> Dict[str, Any]:
        data = {
            "nodeId": self.node_id,
            "nodePath": list(self.node_path),
            "title": self.title,
            "score": _round(self.score),
            "maxScore": self.max_score,
            "answeredQuestions": self.answered_questions,
            "totalQuestions": self.total_questions,
            "weightedScore": _round(self.weighted_score),
            "totalWeight": self.total_weight,
        }
        if include_details:
            data["details"] = [detail.to_dict() for detail in self.details]
        return data


@dataclass
class SubmissionScore:
    root: NodeScore
    node_scores: List[NodeScore]

    @property
    def overall_score(self) -> float:
        return self.root.score

    @property
    def domain_scores(self) -> List[NodeScore]:
        """顶层分组（领域）的得分。"""
        return [ns for ns in self.node_scores if len(ns.node_path) == 1]

    def to_dict(self, include_details: bool = True) -> Dict[str, Any]:
        return {
            "overallScore": _round(self.overall_score),
            "maxScore": MAX_NORMALIZED_SCORE,
            "weightedScore": _round(self.root.weighted_score),
            "totalWeight": self.root.total_weight,
            "answeredQuestions": self.root.answered_questions,
            "totalQuestions": self.root.total_questions,
            "nodeScores": [ns.to_dict(include_details) for ns in self.node_scores],
        }


def resolve_weight(question: Mapping, raw_answer: Mapping) -> float:
    """模板题目权重优先；模板未配置时使用答案里冗余的权重；都无效时为 1。"""
    weight = positive_number(question.get("weight"))
    if weight is None:
        weight = positive_number(raw_answer.get("weight"))
    return weight if weight is not None else DEFAULT_WEIGHT


def normalize_answer(parsed: ParsedAnswer) -> Optional[float]:
    """单题归一化得分（0–100 口径）；文本题返回 None。"""
    if isinstance(parsed, ChoiceAnswer):
        return parsed.raw_score * MAX_NORMALIZED_SCORE / parsed.max_option_value
    if isinstance(parsed, NumericAnswer):
        return parsed.value * MAX_NORMALIZED_SCORE / parsed.ceiling
    return None


def score_question(
    question: Mapping, node_path: List[Any], raw_answer: Mapping
) -> Optional[QuestionScore]:
    """
    对单道题评分；答案无法解析时返回 None（视为未作答）。
    """
    parsed = parse_answer(question, raw_answer)
    if parsed is None:
        logger.debug(
            "答案无法解析，跳过计分: question_id=%s answer=%r",
            question.get("id"),
            raw_answer.get("answer"),
        )
        return None

    weight = resolve_weight(question, raw_answer)
    normalized = normalize_answer(parsed)
    return QuestionScore(
        question_id=parsed.question_id,
        question_title=question.get("title") or raw_answer.get("questionTitle"),
        node_path=node_path,
        input_type=parsed.input_type,
        raw_answer=raw_answer.get("answer"),
        weight=weight,
        normalized_score=normalized,
        weighted_score=normalized * weight if normalized is not None else None,
    )


def score_submission(tree: Sequence[Any], answers: Sequence[Any]) -> SubmissionScore:
    """
    计算一次提交的所有分组得分与总分。

    【参数说明】
    - tree: 问卷模板结构（顶层节点列表）。
    - answers: 提交中的答案列表。

    【返回值说明】
    - SubmissionScore：root 为虚拟根节点的汇总（即总分），
      node_scores 为所有适用分组的得分，按文档先序排列。

    【异常说明】
    - tree 或 answers 不是列表：QuestionnaireTreeError。单个畸形节点 / 答案不会抛异常。
    """
    ensure_node_list(tree)
    ensure_node_list(answers, name="answers")
    answer_index = build_answer_index(answers)

    root = NodeScore(node_id=None, node_path=[], title=None)
    # open_nodes[d] 为当前路径上第 d 层节点的得分（题目节点占位 None）
    open_nodes: List[Optional[NodeScore]] = []
    node_scores: List[NodeScore] = []
    scored_ids = set()

    for node, node_path in walk_tree(tree, prune=lambda n: not is_visible(n, answer_index)):
        del open_nodes[len(node_path) - 1 :]
        ancestors = [ns for ns in open_nodes if ns is not None]
        if is_group(node):
            node_score = NodeScore(
                node_id=node.get("id"),
                node_path=node_path,
                title=node.get("title") or node.get("id"),
            )
            open_nodes.append(node_score)
            node_scores.append(node_score)
            continue
        open_nodes.append(None)
        if not is_question(node):
            continue

        question_id = node.get("id")
        raw_answer = answer_index.get(question_id) if isinstance(question_id, str) else None
        question_score = None
        if raw_answer is not None:
            scored_ids.add(question_id)
            question_score = score_question(node, node_path, raw_answer)

        # 计入所有祖先分组与虚拟根节点
        root.add(question_score)
        for ancestor in ancestors:
            ancestor.add(question_score)

    skipped = [qid for qid in answer_index if qid not in scored_ids]
    if skipped:
        logger.debug("有 %s 条答案未参与计分（题目不存在或不适用）: %s", len(skipped), skipped)

    return SubmissionScore(root=root, node_scores=node_scores)

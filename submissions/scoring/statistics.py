"""
多份提交的分组得分聚合统计。

按 nodePath 对齐各份提交的 NodeScore，计算人数、均值、中位数、最小 / 最大值与总体标准差。
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from questionnaires.tree.nodes import to_number


def _round(value: float) -> float:
    return round(value, 2)


@dataclass(frozen=True)
class ScoreSummary:
    count: int
    mean: float
    median: float
    minimum: float
    maximum: float
    std_dev: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "mean": _round(self.mean),
            "median": _round(self.median),
            "min": _round(self.minimum),
            "max": _round(self.maximum),
            "standardDeviation": _round(self.std_dev),
        }


def summarize_scores(values: Iterable[Any]) -> Optional[ScoreSummary]:
    """
    对一组分数做描述统计；非数值被忽略，没有任何数值时返回 None。

    标准差为总体标准差（除以 n），只有一个分数时为 0。
    """
    numbers = [n for n in (to_number(v) for v in values) if n is not None]
    if not numbers:
        return None
    return ScoreSummary(
        count=len(numbers),
        mean=statistics.fmean(numbers),
        median=statistics.median(numbers),
        minimum=min(numbers),
        maximum=max(numbers),
        std_dev=statistics.pstdev(numbers),
    )


@dataclass
class NodeStatistics:
    node_id: Any
    node_path: List[Any]
    node_title: Optional[str]
    summary: ScoreSummary
    scores: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "nodePath": list(self.node_path),
            "nodeTitle": self.node_title,
            "submissionCount": self.summary.count,
            "averageScore": _round(self.summary.mean),
            "medianScore": _round(self.summary.median),
            "minScore": _round(self.summary.minimum),
            "maxScore": _round(self.summary.maximum),
            "standardDeviation": _round(self.summary.std_dev),
            "scores": [_round(s) for s in self.scores],
        }


def _node_fields(node_score: Any) -> Optional[Dict[str, Any]]:
    # 同时接受 NodeScore 对象与其 to_dict() 结果
    if isinstance(node_score, Mapping):
        return {
            "node_id": node_score.get("nodeId"),
            "node_path": node_score.get("nodePath"),
            "title": node_score.get("title"),
            "score": node_score.get("score"),
        }
    if hasattr(node_score, "node_path"):
        return {
            "node_id": node_score.node_id,
            "node_path": node_score.node_path,
            "title": node_score.title,
            "score": node_score.score,
        }
    return None


def aggregate_scores(
    node_scores_per_submission: Iterable[Iterable[Any]],
) -> Dict[str, NodeStatistics]:
    """
    【功能说明】
    - 把多份提交的分组得分按 nodePath 聚合，键为 "/".join(nodePath)；
    - 同一路径在同一份提交中只取第一次出现；
    - 没有任何有效分数的节点不出现在结果中。

    【参数说明】
    - node_scores_per_submission: 每份提交一个 NodeScore 列表（对象或字典均可）。

    【返回参数说明】
    - Dict[str, NodeStatistics]，按首次出现的顺序排列；每个节点的 scores 升序排列。
    """
    collected: Dict[str, Dict[str, Any]] = {}
    for node_scores in node_scores_per_submission:
        seen_in_submission = set()
        for node_score in node_scores or []:
            fields = _node_fields(node_score)
            if fields is None or not isinstance(fields["node_path"], (list, tuple)):
                continue
            score = to_number(fields["score"])
            if score is None:
                continue
            key = "/".join(str(part) for part in fields["node_path"])
            if key in seen_in_submission:
                continue
            seen_in_submission.add(key)
            bucket = collected.setdefault(
                key,
                {
                    "node_id": fields["node_id"],
                    "node_path": list(fields["node_path"]),
                    "title": fields["title"],
                    "scores": [],
                },
            )
            bucket["scores"].append(score)

    return {
        key: NodeStatistics(
            node_id=bucket["node_id"],
            node_path=bucket["node_path"],
            node_title=bucket["title"],
            summary=summarize_scores(bucket["scores"]),
            scores=sorted(bucket["scores"]),
        )
        for key, bucket in collected.items()
    }

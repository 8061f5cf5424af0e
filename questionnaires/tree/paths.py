"""
问卷树路径索引：遍历、扁平化、按 id / 路径查找、满分与元数据计算。

所有遍历均为深度优先先序（父节点先于子节点，兄弟按文档顺序），
使用显式栈实现，树再深也不会触发递归深度限制。
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Dict, List, Optional, Tuple

from questionnaires.choices import ChartType, InputType

from .nodes import (
    CHOICE_INPUT_TYPES,
    NUMBER_CEILING,
    SCALE_CEILING,
    ensure_node_list,
    get_children,
    is_group,
    is_question,
    max_option_value,
    node_weight,
)

_EXHAUSTED = object()


def walk_tree(
    tree: Sequence[Any],
    prune: Optional[Callable[[Mapping], bool]] = None,
) -> Iterator[Tuple[Mapping, List[Any]]]:
    """
    先序遍历整棵问卷树，逐个产出 (node, node_path)。

    【参数说明】
    - tree: 顶层节点列表。
    - prune: 可选回调；对某节点返回 True 时，该节点及其整个子树都被跳过。

    【返回值说明】
    - 生成器，node_path 为从根到当前节点（含）的 id 列表。
    - 非字典元素会被忽略（结构校验器单独负责报告它们）。
    """
    ensure_node_list(tree)
    stack: List[Tuple[Iterator[Any], List[Any]]] = [(iter(tree), [])]
    while stack:
        siblings, parent_path = stack[-1]
        node = next(siblings, _EXHAUSTED)
        if node is _EXHAUSTED:
            stack.pop()
            continue
        if not isinstance(node, Mapping):
            continue
        if prune is not None and prune(node):
            continue
        node_path = [*parent_path, node.get("id")]
        yield node, node_path
        children = get_children(node)
        if children:
            stack.append((iter(children), node_path))


def extract_all_questions(tree: Sequence[Any]) -> List[Dict[str, Any]]:
    """
    扁平化提取所有题目节点，并附带 nodePath。

    条件追问题（挂在题目 children 下的题目）同样会被提取；
    返回顺序为文档顺序，调用方不应假设按字母或分值排序。
    """
    return [
        {**node, "nodePath": node_path}
        for node, node_path in walk_tree(tree)
        if is_question(node)
    ]


def generate_node_paths(tree: Sequence[Any]) -> List[Dict[str, Any]]:
    """为所有节点（分组 + 题目）生成 {nodeId, nodePath, type}。"""
    return [
        {"nodeId": node.get("id"), "nodePath": node_path, "type": node.get("type")}
        for node, node_path in walk_tree(tree)
    ]


def find_node_by_id(tree: Sequence[Any], node_id: Any) -> Optional[Dict[str, Any]]:
    """深度优先查找第一个 id 匹配的节点，返回附带 nodePath 的副本；找不到返回 None。"""
    for node, node_path in walk_tree(tree):
        if node.get("id") == node_id:
            return {**node, "nodePath": node_path}
    return None


def find_node_by_path(
    tree: Sequence[Any], node_path: Sequence[Any]
) -> Optional[Mapping]:
    """按 id 路径逐层定位节点，任一层找不到即返回 None。"""
    if not node_path:
        return None
    current_nodes: Sequence[Any] = ensure_node_list(tree)
    current: Optional[Mapping] = None
    for node_id in node_path:
        current = next(
            (
                node
                for node in current_nodes
                if isinstance(node, Mapping) and node.get("id") == node_id
            ),
            None,
        )
        if current is None:
            return None
        current_nodes = get_children(current)
    return current


def extract_questions_from_node(node: Mapping) -> List[Mapping]:
    """返回节点自身（若为题目）及其所有后代题目。"""
    if not isinstance(node, Mapping):
        return []
    questions = [node] if is_question(node) else []
    questions.extend(child for child, _ in walk_tree(get_children(node)) if is_question(child))
    return questions


def question_max_score(question: Mapping) -> float:
    """
    单题满分（未乘权重），与评分引擎的归一化上限保持一致：
    - 单选 / 多选：最高选项分值；
    - 量表：SCALE_CEILING；
    - 数值：NUMBER_CEILING；
    - 文本及其他：0。
    """
    input_type = question.get("inputType")
    if not isinstance(input_type, str):
        return 0
    if input_type in CHOICE_INPUT_TYPES:
        return max_option_value(question) or 0
    if input_type == InputType.SCALE:
        return SCALE_CEILING
    if input_type == InputType.NUMBER:
        return NUMBER_CEILING
    return 0


def calculate_max_score(tree: Sequence[Any]) -> float:
    """问卷理论满分：对所有 graphable 题目累加 单题满分 × 权重。"""
    max_score = 0
    for question in extract_all_questions(tree):
        if not question.get("graphable"):
            continue
        max_score += question_max_score(question) * node_weight(question)
    return max_score


def build_template_metadata(tree: Sequence[Any]) -> Dict[str, Any]:
    """
    模板读 / 写接口附带的统计信息。

    【返回参数说明】
    - {"totalQuestions", "totalNodes", "maxPossibleScore", "graphableQuestions"}
    """
    questions = extract_all_questions(tree)
    return {
        "totalQuestions": len(questions),
        "totalNodes": len(generate_node_paths(tree)),
        "maxPossibleScore": calculate_max_score(tree),
        "graphableQuestions": sum(1 for q in questions if q.get("graphable")),
    }


def _chart_type(node: Mapping) -> str:
    # 未配置或取值不在枚举内时按柱状图展示
    chart_type = node.get("preferredChartType")
    if isinstance(chart_type, str) and chart_type in ChartType.values:
        return chart_type
    return ChartType.BAR.value


def build_scoring_metadata(tree: Sequence[Any]) -> Dict[str, Any]:
    """
    分析配置页使用的可绘图节点清单。

    - graphableGroups：至少包含一道 graphable 后代题目的分组；
    - graphableQuestions：所有 graphable 题目。
    """
    graphable_groups = []
    graphable_questions = []
    for node, node_path in walk_tree(tree):
        if is_group(node):
            question_count = sum(
                1 for q in extract_questions_from_node(node) if q.get("graphable")
            )
            if question_count:
                graphable_groups.append(
                    {
                        "nodeId": node.get("id"),
                        "nodePath": node_path,
                        "title": node.get("title"),
                        "depth": len(node_path),
                        "questionCount": question_count,
                    }
                )
        elif is_question(node) and node.get("graphable"):
            graphable_questions.append(
                {
                    "nodeId": node.get("id"),
                    "nodePath": node_path,
                    "title": node.get("title"),
                    "inputType": node.get("inputType"),
                    "options": node.get("options") or [],
                    "weight": node_weight(node),
                    "preferredChartType": _chart_type(node),
                }
            )
    return {
        "graphableGroups": graphable_groups,
        "graphableQuestions": graphable_questions,
        "totalGraphableNodes": len(graphable_groups),
        "totalGraphableQuestions": len(graphable_questions),
    }

"""
条件可见性判断。

节点上的 condition = {parentQuestionId, parentOptionId} 表示：
只有当父题目的答案等于（单值）或包含（多选）该选项 id 时，本节点才显示 / 适用。
父题目未作答时一律不可见（fail closed）。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Dict, List

from .nodes import get_condition, is_question
from .paths import walk_tree

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def build_answer_index(answers: Iterable[Any]) -> Dict[str, Mapping]:
    """
    把答案列表转成 {questionId: answer} 映射。

    同一 questionId 出现多次时以最后一条为准；非字典或缺少 questionId 的条目被忽略。
    """
    index: Dict[str, Mapping] = {}
    for answer in answers:
        if not isinstance(answer, Mapping):
            continue
        question_id = answer.get("questionId")
        if isinstance(question_id, str) and question_id:
            index[question_id] = answer
    return index


def _recorded_value(entry: Any) -> Any:
    # 映射值既可以是完整的 Answer 字典，也可以是裸答案值（交互式场景）
    if isinstance(entry, Mapping):
        return entry.get("answer")
    return entry


def is_condition_met(condition: Mapping | None, answers: Mapping[str, Any]) -> bool:
    """
    【功能说明】
    - 无条件或空条件：恒为 True；
    - 父题目无记录答案：False；
    - 未指定 parentOptionId：父题目有答案即满足；
    - 父答案为集合：需包含 parentOptionId；
    - 父答案为单值：需与 parentOptionId 完全相等。
    """
    if not condition:
        return True
    parent_question_id = condition.get("parentQuestionId")
    parent_option_id = condition.get("parentOptionId")
    if not parent_question_id and not parent_option_id:
        return True
    if not isinstance(parent_question_id, str) or parent_question_id not in answers:
        return False

    value = _recorded_value(answers[parent_question_id])
    if value is None:
        return False
    if not parent_option_id:
        return True
    if isinstance(value, _COLLECTION_TYPES):
        return any(item == parent_option_id for item in value)
    return value == parent_option_id


def is_visible(node: Mapping, answers: Mapping[str, Any]) -> bool:
    """判断单个节点在当前答案下是否可见（仅看节点自身的条件，不看祖先）。"""
    return is_condition_met(get_condition(node), answers)


def collect_applicable_questions(
    tree: Sequence[Any], answers: Mapping[str, Any]
) -> List[Dict[str, Any]]:
    """
    返回当前答案下真正适用的题目（附 nodePath）。

    节点自身或任一祖先不可见时，该节点及整个子树都不适用。
    """
    return [
        {**node, "nodePath": node_path}
        for node, node_path in walk_tree(tree, prune=lambda n: not is_visible(n, answers))
        if is_question(node)
    ]

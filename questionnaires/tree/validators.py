"""
问卷树结构校验。

两个互相独立的校验器：
1. validate_tree_structure：节点级字段校验（id / type / 重复 id / 题型 / 选项 / 分组标题）；
2. validate_conditional_logic：条件显示逻辑引用校验（父题目、父选项是否存在）。

二者都只返回错误字符串列表（空列表表示通过），从不因单个畸形节点抛异常；
是否拒绝保存由调用方（模板服务）决定。错误文案会原样展示给问卷作者。
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, List, Optional, Set, Tuple

from questionnaires.choices import NodeType

from .nodes import (
    OPTION_INPUT_TYPES,
    ensure_node_list,
    get_children,
    get_condition,
    get_options,
    is_question,
)
from .paths import walk_tree

MISSING_ID_LABEL = "undefined"
_EXHAUSTED = object()
_VALID_NODE_TYPES = (NodeType.GROUP.value, NodeType.QUESTION.value)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _label(value: Any) -> str:
    if value is None or value == "":
        return MISSING_ID_LABEL
    return str(value)


def _format_path(path: Sequence[str]) -> str:
    return ".".join(path)


def _iter_with_labels(tree: Sequence[Any]) -> Iterator[Tuple[Any, List[str]]]:
    # 与 walk_tree 相同的先序遍历，但保留非字典元素，并用 "undefined" 占位缺失的 id
    stack: List[Tuple[Iterator[Any], List[str]]] = [(iter(tree), [])]
    while stack:
        siblings, parent_path = stack[-1]
        node = next(siblings, _EXHAUSTED)
        if node is _EXHAUSTED:
            stack.pop()
            continue
        node_id = node.get("id") if isinstance(node, Mapping) else None
        path = [*parent_path, _label(node_id)]
        yield node, path
        if isinstance(node, Mapping):
            children = get_children(node)
            if children:
                stack.append((iter(children), path))


def validate_tree_structure(
    tree: Sequence[Any],
    seen_ids: Optional[Set[str]] = None,
) -> List[str]:
    """
    校验树结构，返回错误信息列表。

    【校验规则】（深度优先，父节点先于子节点）
    1. 每个节点必须有非空 id；缺失时路径中以 "undefined" 占位，并继续校验其子树。
    2. type 必须为 group 或 question。
    3. 整棵树内 id 不得重复；重复从第二次出现开始逐个报错。
    4. 题目节点必须声明 inputType。
    5. 单选 / 多选 / 量表题至少配置一个选项。
    6. 分组节点必须有标题（按错误处理，而非警告）。
    7. 子节点使用同一个已见 id 集合递归校验。

    【参数说明】
    - tree: 顶层节点列表。
    - seen_ids: 可选的已见 id 集合；只在本次调用链内共享，可用于校验子树
      是否与已有节点冲突。默认每次调用新建。
    """
    ensure_node_list(tree)
    if seen_ids is None:
        seen_ids = set()
    errors: List[str] = []

    for node, path in _iter_with_labels(tree):
        path_str = _format_path(path)
        if not isinstance(node, Mapping):
            errors.append(f"Node at path {path_str} is not an object")
            continue

        node_id = node.get("id")
        node_type = node.get("type")
        has_id = _has_text(node_id)

        if not has_id:
            errors.append(f"Node at path {path_str} missing required 'id' field")

        if node_type not in _VALID_NODE_TYPES:
            errors.append(
                f"Node {_label(node_id)} at path {path_str} has invalid type: {_label(node_type)}"
            )

        if has_id:
            if node_id in seen_ids:
                errors.append(f"Duplicate node ID found: {node_id} at path {path_str}")
            else:
                seen_ids.add(node_id)

        if node_type == NodeType.QUESTION:
            input_type = node.get("inputType")
            if not input_type:
                errors.append(
                    f"Question node {_label(node_id)} missing required 'inputType' field"
                )
            elif isinstance(input_type, str) and input_type in OPTION_INPUT_TYPES:
                if not get_options(node):
                    errors.append(
                        f"Question node {_label(node_id)} with inputType "
                        f"'{input_type}' must have options"
                    )
        elif node_type == NodeType.GROUP:
            if not node.get("title"):
                errors.append(f"Group node {_label(node_id)} should have a title")

    return errors


def validate_conditional_logic(tree: Sequence[Any]) -> List[str]:
    """
    校验条件显示逻辑的引用完整性。

    - 先扁平化整棵树；
    - 对每个声明了 parentQuestionId 或 parentOptionId 的节点，
      查找 id 匹配且 type 为 question 的父题目，找不到则报错；
    - 若设置了 parentOptionId，父题目的 options 中还必须存在该选项 id。
    """
    nodes = [node for node, _ in walk_tree(tree)]
    errors: List[str] = []

    for node in nodes:
        condition = get_condition(node)
        if not condition:
            continue
        parent_question_id = condition.get("parentQuestionId")
        parent_option_id = condition.get("parentOptionId")
        if not parent_question_id and not parent_option_id:
            continue

        node_id = _label(node.get("id"))
        parent_question = None
        if parent_question_id:
            parent_question = next(
                (n for n in nodes if n.get("id") == parent_question_id and is_question(n)),
                None,
            )
        if parent_question is None:
            errors.append(
                f"Node {node_id} references non-existent parent question: "
                f"{_label(parent_question_id)}"
            )
            continue

        if parent_option_id:
            option_exists = any(
                opt.get("id") == parent_option_id for opt in get_options(parent_question)
            )
            if not option_exists:
                errors.append(
                    f"Node {node_id} references non-existent parent option: "
                    f"{parent_option_id} in question {parent_question_id}"
                )

    return errors


def validate_tree(tree: Sequence[Any]) -> List[str]:
    """结构校验 + 条件逻辑校验的合并结果（结构错误在前）。"""
    return validate_tree_structure(tree) + validate_conditional_logic(tree)

"""
问卷树节点定义。

问卷模板的 structure 字段直接存储为 JSON 列表，每个元素是一个节点字典：
- type == "group"：分组节点（领域 / 子领域），children 中可继续嵌套分组或题目；
- type == "question"：题目节点，children 中可挂条件追问题。

这里用 TypedDict 描述这个“按 type 区分”的联合类型，配合少量读取辅助函数，
让校验、路径索引、评分模块都以同一种方式读取节点字段，且对畸形节点保持宽容。
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, List, Literal, Optional, TypedDict, Union

from questionnaires.choices import InputType, NodeType
from questionnaires.exceptions import QuestionnaireTreeError

# 量表题、数值题的归一化上限（评分与满分计算共用，二者必须保持一致）
SCALE_CEILING = 5
NUMBER_CEILING = 10
DEFAULT_WEIGHT = 1

# 必须配置选项的题型
OPTION_INPUT_TYPES = frozenset(
    {InputType.SINGLE_CHOICE.value, InputType.MULTIPLE_CHOICE.value, InputType.SCALE.value}
)
CHOICE_INPUT_TYPES = frozenset(
    {InputType.SINGLE_CHOICE.value, InputType.MULTIPLE_CHOICE.value}
)


class OptionDict(TypedDict, total=False):
    id: str
    label: str
    value: float


class ConditionDict(TypedDict, total=False):
    parentQuestionId: str
    parentOptionId: str


class _NodeBase(TypedDict, total=False):
    id: str
    title: str
    description: str
    weight: float
    graphable: bool
    preferredChartType: str
    condition: ConditionDict
    children: List["FormNode"]


class GroupNode(_NodeBase, total=False):
    type: Literal["group"]


class QuestionNode(_NodeBase, total=False):
    type: Literal["question"]
    inputType: str
    options: List[OptionDict]


FormNode = Union[GroupNode, QuestionNode]


def ensure_node_list(tree: Any, name: str = "tree") -> list:
    """入口参数校验：问卷树 / 子节点列表必须是 list。"""
    if not isinstance(tree, list):
        raise QuestionnaireTreeError(
            f"{name} must be a list, got {type(tree).__name__}",
            code="invalid_tree",
        )
    return tree


def is_group(node: Any) -> bool:
    return isinstance(node, Mapping) and node.get("type") == NodeType.GROUP


def is_question(node: Any) -> bool:
    return isinstance(node, Mapping) and node.get("type") == NodeType.QUESTION


def get_children(node: Mapping) -> list:
    children = node.get("children")
    if isinstance(children, list):
        return children
    return []


def get_options(node: Mapping) -> list:
    options = node.get("options")
    if not isinstance(options, list):
        return []
    return [opt for opt in options if isinstance(opt, Mapping)]


def get_condition(node: Mapping) -> Optional[Mapping]:
    condition = node.get("condition")
    if isinstance(condition, Mapping):
        return condition
    return None


def to_number(value: Any) -> Optional[float]:
    """
    把答案 / 选项值转成有限浮点数。

    - bool 不视为数值（True 不能当作 1 分）；
    - 数字字符串允许（表单提交常见 "3"）；
    - NaN / inf 及无法解析的值返回 None。
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def positive_number(value: Any) -> Optional[float]:
    number = to_number(value)
    if number is None or number <= 0:
        return None
    return number


def node_weight(node: Mapping) -> float:
    """节点权重：正数生效，缺失或非法时按默认权重 1 处理。"""
    weight = positive_number(node.get("weight"))
    return weight if weight is not None else DEFAULT_WEIGHT


def option_value(option: Mapping) -> float:
    value = to_number(option.get("value"))
    return value if value is not None else 0


def max_option_value(node: Mapping) -> Optional[float]:
    """题目所有选项中的最大分值；无选项时返回 None。"""
    options = get_options(node)
    if not options:
        return None
    return max(option_value(opt) for opt in options)

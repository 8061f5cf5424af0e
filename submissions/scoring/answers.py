"""
评分入口处的答案解析。

提交记录里的原始答案是 JSON 字典，answer 字段的形态随题型变化（单值 / 数组 / 文本）。
这里在评分前按题型一次性解析成三种明确的结构之一：

- ChoiceAnswer：单选 / 多选，已对照模板选项解析出被选中的选项；
- NumericAnswer：量表 / 数值题，已转成有限浮点数并带上归一化上限；
- TextAnswer：文本题，只计入“已作答”。

无法解析的答案返回 None，由评分引擎静默跳过（不计入分子也不计入分母）。
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from questionnaires.choices import InputType
from questionnaires.tree.nodes import (
    NUMBER_CEILING,
    SCALE_CEILING,
    get_options,
    max_option_value,
    option_value,
    to_number,
)

_LIST_TYPES = (list, tuple)


@dataclass(frozen=True)
class ChoiceAnswer:
    question_id: str
    input_type: str
    selected: Tuple[Mapping, ...]
    max_option_value: float

    @property
    def raw_score(self) -> float:
        return sum(option_value(opt) for opt in self.selected)


@dataclass(frozen=True)
class NumericAnswer:
    question_id: str
    input_type: str
    value: float
    ceiling: float


@dataclass(frozen=True)
class TextAnswer:
    question_id: str
    text: str
    input_type: str = InputType.TEXT.value


ParsedAnswer = Union[ChoiceAnswer, NumericAnswer, TextAnswer]


def resolve_input_type(question: Mapping, raw_answer: Mapping) -> Optional[str]:
    """以模板题目声明的题型为准，模板缺失时才使用答案里冗余的 inputType。"""
    input_type = question.get("inputType") or raw_answer.get("inputType")
    if isinstance(input_type, str) and input_type in InputType.values:
        return input_type
    return None


def _resolve_option(options: list, token: Any) -> Optional[Mapping]:
    # 先按选项 id 精确匹配，再按数值分值匹配（历史数据里存的是 value）
    if token is None or isinstance(token, bool):
        return None
    for opt in options:
        if opt.get("id") == token:
            return opt
    if isinstance(token, (int, float)):
        number = to_number(token)
        for opt in options:
            if number is not None and to_number(opt.get("value")) == number:
                return opt
    return None


def _selected_tokens(raw_answer: Mapping) -> Any:
    value = raw_answer.get("answer")
    if value is None or value == "" or value == []:
        # answer 为空时退回到冗余的 selectedOptions
        selected_options = raw_answer.get("selectedOptions")
        if isinstance(selected_options, _LIST_TYPES) and selected_options:
            return [opt.get("id") for opt in selected_options if isinstance(opt, Mapping)]
    return value


def _parse_choice(question_id: str, input_type: str, question: Mapping, raw_answer: Mapping):
    options = get_options(question)
    max_value = max_option_value(question)
    if not options or max_value is None or max_value <= 0:
        return None

    tokens = _selected_tokens(raw_answer)
    if input_type == InputType.SINGLE_CHOICE:
        if isinstance(tokens, _LIST_TYPES):
            if len(tokens) != 1:
                return None
            tokens = tokens[0]
        option = _resolve_option(options, tokens)
        if option is None:
            return None
        return ChoiceAnswer(question_id, input_type, (option,), max_value)

    if tokens is None:
        return None
    if not isinstance(tokens, _LIST_TYPES):
        tokens = [tokens]
    selected = []
    seen = set()
    for token in tokens:
        option = _resolve_option(options, token)
        if option is None or id(option) in seen:
            continue
        seen.add(id(option))
        selected.append(option)
    if tokens and not selected:
        return None
    return ChoiceAnswer(question_id, input_type, tuple(selected), max_value)


def _parse_numeric(question_id: str, input_type: str, question: Mapping, raw_answer: Mapping):
    value = raw_answer.get("answer")
    number = to_number(value)
    if number is None and input_type == InputType.SCALE:
        # 量表题也可能记录的是选项 id
        option = _resolve_option(get_options(question), value)
        number = option_value(option) if option is not None else None
    if number is None:
        return None
    ceiling = SCALE_CEILING if input_type == InputType.SCALE else NUMBER_CEILING
    return NumericAnswer(question_id, input_type, number, ceiling)


def _parse_text(question_id: str, raw_answer: Mapping):
    value = raw_answer.get("answer")
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        if text:
            return TextAnswer(question_id, text)
    return None


def parse_answer(question: Mapping, raw_answer: Mapping) -> Optional[ParsedAnswer]:
    """
    按题型把原始答案解析为 ChoiceAnswer / NumericAnswer / TextAnswer。

    【参数说明】
    - question: 模板中的题目节点（权威来源：题型、选项）。
    - raw_answer: 提交中的答案字典 {questionId, answer, selectedOptions?, ...}。

    【返回值说明】
    - 解析结果；题型未知、答案缺失或与选项对不上时返回 None。

    多选题的单值答案按“只选了一个”处理；空数组视为“作答但未选任何项”，得 0 分。
    """
    if not isinstance(raw_answer, Mapping) or not isinstance(question, Mapping):
        return None
    question_id = raw_answer.get("questionId")
    input_type = resolve_input_type(question, raw_answer)
    if not isinstance(question_id, str) or input_type is None:
        return None

    if input_type in (InputType.SINGLE_CHOICE, InputType.MULTIPLE_CHOICE):
        return _parse_choice(question_id, input_type, question, raw_answer)
    if input_type in (InputType.SCALE, InputType.NUMBER):
        return _parse_numeric(question_id, input_type, question, raw_answer)
    return _parse_text(question_id, raw_answer)

"""
问卷树引擎：节点定义、结构校验、路径索引与条件可见性判断。

本包内均为纯函数，不访问数据库，可在多个请求中并发调用。
"""

from .paths import (
    build_scoring_metadata,
    build_template_metadata,
    calculate_max_score,
    extract_all_questions,
    extract_questions_from_node,
    find_node_by_id,
    find_node_by_path,
    generate_node_paths,
    walk_tree,
)
from .validators import validate_conditional_logic, validate_tree, validate_tree_structure
from .visibility import (
    build_answer_index,
    collect_applicable_questions,
    is_condition_met,
    is_visible,
)

__all__ = [
    "build_answer_index",
    "build_scoring_metadata",
    "build_template_metadata",
    "calculate_max_score",
    "collect_applicable_questions",
    "extract_all_questions",
    "extract_questions_from_node",
    "find_node_by_id",
    "find_node_by_path",
    "generate_node_paths",
    "is_condition_met",
    "is_visible",
    "validate_conditional_logic",
    "validate_tree",
    "validate_tree_structure",
    "walk_tree",
]

"""问卷模板相关业务服务。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from questionnaires.models import QuestionnaireTemplate
from questionnaires.tree import (
    build_scoring_metadata,
    build_template_metadata,
    extract_all_questions,
    validate_conditional_logic,
    validate_tree_structure,
)

logger = logging.getLogger(__name__)


class QuestionnaireTemplateService:
    """问卷模板业务服务封装：保存前结构校验、版本管理、元数据组装。"""

    @staticmethod
    def validate_structure(structure: Any) -> List[str]:
        """
        【功能说明】
        - 依次执行结构校验与条件逻辑校验，合并两者的错误列表；
        - structure 不是数组时直接返回单条错误，不进入树校验。

        【返回参数说明】
        - List[str]：空列表表示校验通过。
        """
        if not isinstance(structure, list):
            return ["Structure is required and must be an array"]
        return validate_tree_structure(structure) + validate_conditional_logic(structure)

    @classmethod
    def _ensure_valid(cls, structure: Any) -> None:
        errors = cls.validate_structure(structure)
        if errors:
            logger.info("问卷结构校验未通过，共 %s 处错误。", len(errors))
            raise ValidationError(errors)

    @classmethod
    @transaction.atomic
    def create_template(
        cls,
        title: str,
        structure: List[Dict[str, Any]],
        created_by: str = "",
        description: str = "",
        graph_settings: Optional[Dict[str, Any]] = None,
    ) -> QuestionnaireTemplate:
        """
        【功能说明】
        - 校验标题与结构后创建问卷模板，初始版本为 1。

        【异常说明】
        - 标题为空：ValidationError("Title is required")
        - 结构校验失败：ValidationError(errors)，errors 为结构 + 条件逻辑错误的合并列表。
        """
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required")
        cls._ensure_valid(structure)

        template = QuestionnaireTemplate.objects.create(
            title=title.strip(),
            description=description or "",
            structure=structure,
            graph_settings=graph_settings or {"colorRanges": []},
            created_by=created_by or "",
        )
        logger.info("创建问卷模板 id=%s title=%s", template.id, template.title)
        return template

    @classmethod
    @transaction.atomic
    def update_template(
        cls,
        template_id: int,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        structure: Optional[List[Dict[str, Any]]] = None,
        graph_settings: Optional[Dict[str, Any]] = None,
    ) -> QuestionnaireTemplate:
        """
        【功能说明】
        - 部分更新问卷模板，只修改传入的字段；
        - 修改 structure 前先做完整校验，结构发生变化时 version 自增；
        - 已停用的模板视为不存在。

        【异常说明】
        - 模板不存在：QuestionnaireTemplate.DoesNotExist
        - 校验失败：ValidationError
        """
        template = QuestionnaireTemplate.objects.select_for_update().get(
            id=template_id, is_active=True
        )
        update_fields = ["updated_at"]

        if title is not None:
            if not isinstance(title, str) or not title.strip():
                raise ValidationError("Title is required")
            template.title = title.strip()
            update_fields.append("title")
        if description is not None:
            template.description = description
            update_fields.append("description")
        if graph_settings is not None:
            template.graph_settings = graph_settings
            update_fields.append("graph_settings")
        if structure is not None:
            cls._ensure_valid(structure)
            if structure != template.structure:
                template.structure = structure
                template.version += 1
                update_fields.extend(["structure", "version"])

        template.save(update_fields=update_fields)
        return template

    @staticmethod
    def deactivate_template(template_id: int) -> bool:
        """软删除：标记为停用。已停用时返回 False。"""
        updated = QuestionnaireTemplate.objects.filter(id=template_id, is_active=True).update(
            is_active=False
        )
        return bool(updated)

    @staticmethod
    def get_active_template(template_id: int) -> QuestionnaireTemplate:
        return QuestionnaireTemplate.objects.get(id=template_id, is_active=True)

    @staticmethod
    def serialize_template(template: QuestionnaireTemplate) -> Dict[str, Any]:
        """
        【返回参数说明】
        - 与原前端约定一致的驼峰字段，附带 metadata：
          {"id", "title", "description", "structure", "graphSettings", "isActive",
           "createdBy", "version", "createdAt", "updatedAt",
           "metadata": {"totalQuestions", "totalNodes", "maxPossibleScore", "graphableQuestions"}}
        """
        structure = template.structure if isinstance(template.structure, list) else []
        return {
            "id": template.id,
            "title": template.title,
            "description": template.description,
            "structure": structure,
            "graphSettings": template.graph_settings,
            "isActive": template.is_active,
            "createdBy": template.created_by,
            "version": template.version,
            "createdAt": template.created_at.isoformat() if template.created_at else None,
            "updatedAt": template.updated_at.isoformat() if template.updated_at else None,
            "metadata": build_template_metadata(structure),
        }

    @classmethod
    def list_active_templates(cls) -> List[Dict[str, Any]]:
        return [
            cls.serialize_template(template)
            for template in QuestionnaireTemplate.objects.filter(is_active=True).order_by(
                "-created_at"
            )
        ]

    @classmethod
    def get_template_detail(cls, template_id: int) -> Optional[Dict[str, Any]]:
        """获取单个启用中模板的详情；不存在或已停用返回 None。"""
        template = QuestionnaireTemplate.objects.filter(id=template_id, is_active=True).first()
        if template is None:
            return None
        return cls.serialize_template(template)

    @classmethod
    def get_template_questions(cls, template_id: int) -> List[Dict[str, Any]]:
        """扁平化的题目列表（附 nodePath），供填表与分析使用。"""
        template = cls.get_active_template(template_id)
        return extract_all_questions(template.structure or [])

    @classmethod
    def get_scoring_metadata(cls, template_id: int) -> Dict[str, Any]:
        """
        【功能说明】
        - 返回分析配置所需的可绘图分组 / 题目清单，以及模板基本信息和图表阈值。
        """
        template = cls.get_active_template(template_id)
        metadata = build_scoring_metadata(template.structure or [])
        metadata["questionnaire"] = {
            "id": template.id,
            "title": template.title,
            "graphSettings": template.graph_settings,
        }
        return metadata

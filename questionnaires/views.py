"""
【业务说明】问卷模板接口：创建 / 查询 / 修改 / 停用 / 结构校验 / 分析元数据。

认证与权限由部署层统一处理，这里只负责“解析 JSON + 调用服务 + 组装响应”。
"""

import json
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from questionnaires.models import QuestionnaireTemplate
from questionnaires.service.questionnaire_template import QuestionnaireTemplateService
from questionnaires.tree import build_template_metadata, generate_node_paths
from submissions.tasks import recalculate_template_scores_task

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Questionnaire template not found"


def _parse_json_body(request):
    try:
        payload = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _invalid_json_response():
    return JsonResponse({"success": False, "message": "Invalid JSON body"}, status=400)


def _validation_failed(exc: ValidationError, message: str = "Validation failed"):
    return JsonResponse(
        {"success": False, "message": message, "errors": exc.messages}, status=400
    )


def _not_found():
    return JsonResponse({"success": False, "message": NOT_FOUND_MESSAGE}, status=404)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def template_collection(request):
    """
    GET  /api/questionnaires/templates/  启用中的模板列表（含 metadata）
    POST /api/questionnaires/templates/  创建模板，结构校验失败返回 400 + errors
    """
    if request.method == "GET":
        return JsonResponse(
            {"success": True, "data": QuestionnaireTemplateService.list_active_templates()}
        )

    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    structure = payload.get("structure")
    if not payload.get("title") or not isinstance(structure, list):
        return JsonResponse(
            {
                "success": False,
                "message": "Title and structure are required. Structure must be an array.",
            },
            status=400,
        )

    created_by = payload.get("createdBy") or ""
    if getattr(request, "user", None) is not None and request.user.is_authenticated:
        created_by = str(request.user.pk)

    try:
        template = QuestionnaireTemplateService.create_template(
            title=payload["title"],
            structure=structure,
            created_by=created_by,
            description=payload.get("description") or "",
            graph_settings=payload.get("graphSettings"),
        )
    except ValidationError as exc:
        return _validation_failed(exc, "Tree structure validation failed")

    data = QuestionnaireTemplateService.serialize_template(template)
    return JsonResponse(
        {
            "success": True,
            "message": "Questionnaire template created successfully",
            "data": data,
            "metadata": data["metadata"],
        },
        status=201,
    )


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def template_detail(request, template_id: int):
    """
    GET    /api/questionnaires/templates/<id>/  模板详情
    PUT    /api/questionnaires/templates/<id>/  部分更新；结构变更时版本号自增并异步重算已存分数
    DELETE /api/questionnaires/templates/<id>/  软删除（停用）
    """
    if request.method == "GET":
        data = QuestionnaireTemplateService.get_template_detail(template_id)
        if data is None:
            return _not_found()
        return JsonResponse({"success": True, "data": data})

    if request.method == "DELETE":
        if not QuestionnaireTemplateService.deactivate_template(template_id):
            return _not_found()
        return JsonResponse(
            {"success": True, "message": "Questionnaire template deactivated successfully"}
        )

    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    structure = payload.get("structure")
    if structure is not None and not isinstance(structure, list):
        return JsonResponse(
            {"success": False, "message": "Structure must be an array"}, status=400
        )

    previous_version = (
        QuestionnaireTemplate.objects.filter(id=template_id, is_active=True)
        .values_list("version", flat=True)
        .first()
    )
    if previous_version is None:
        return _not_found()

    try:
        template = QuestionnaireTemplateService.update_template(
            template_id,
            title=payload.get("title"),
            description=payload.get("description"),
            structure=structure,
            graph_settings=payload.get("graphSettings"),
        )
    except QuestionnaireTemplate.DoesNotExist:
        return _not_found()
    except ValidationError as exc:
        return _validation_failed(exc, "Tree structure validation failed")

    if template.version != previous_version and template.submissions.exists():
        # 结构变化后，已落库的分数按新结构重新计算
        transaction.on_commit(lambda: recalculate_template_scores_task.delay(template.id))

    return JsonResponse(
        {
            "success": True,
            "message": "Questionnaire template updated successfully",
            "data": QuestionnaireTemplateService.serialize_template(template),
        }
    )


@require_GET
def template_questions(request, template_id: int):
    """GET /api/questionnaires/templates/<id>/questions/  扁平化题目列表。"""
    try:
        questions = QuestionnaireTemplateService.get_template_questions(template_id)
    except QuestionnaireTemplate.DoesNotExist:
        return _not_found()
    return JsonResponse({"success": True, "data": questions})


@require_GET
def template_scoring_metadata(request, template_id: int):
    """GET /api/questionnaires/templates/<id>/scoring-metadata/  分析配置元数据。"""
    try:
        metadata = QuestionnaireTemplateService.get_scoring_metadata(template_id)
    except QuestionnaireTemplate.DoesNotExist:
        return _not_found()
    return JsonResponse({"success": True, "data": metadata})


@csrf_exempt
@require_POST
def validate_template_structure(request):
    """POST /api/questionnaires/templates/validate/  只校验不保存，通过时返回元数据与节点路径。"""
    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    structure = payload.get("structure")
    if not isinstance(structure, list):
        return JsonResponse(
            {"success": False, "message": "Structure is required and must be an array"},
            status=400,
        )

    errors = QuestionnaireTemplateService.validate_structure(structure)
    if errors:
        return JsonResponse(
            {"success": False, "message": "Validation failed", "errors": errors}, status=400
        )

    metadata = build_template_metadata(structure)
    metadata["nodePaths"] = generate_node_paths(structure)
    return JsonResponse(
        {"success": True, "message": "Structure is valid", "metadata": metadata}
    )

"""
【业务说明】问卷提交与评分接口：提交答案、查看提交记录、单份评分、分数回写、批量分析与批量回写。

认证与权限由部署层统一处理，这里只负责“解析 JSON + 调用服务 + 组装响应”。
"""

import json
import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from questionnaires.models import QuestionnaireTemplate
from submissions.models import FormSubmission
from submissions.services.submission import SubmissionService
from submissions.services.submission_scores import SubmissionScoreService

logger = logging.getLogger(__name__)

SUBMISSION_NOT_FOUND = "Form submission not found"
TEMPLATE_NOT_FOUND = "Questionnaire template not found"


def _parse_json_body(request):
    try:
        payload = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _invalid_json_response():
    return JsonResponse({"success": False, "message": "Invalid JSON body"}, status=400)


def _bad_request(exc: ValidationError):
    return JsonResponse({"success": False, "message": "; ".join(exc.messages)}, status=400)


def _not_found(message: str):
    return JsonResponse({"success": False, "message": message}, status=404)


def _server_error(message: str):
    return JsonResponse({"success": False, "message": message}, status=500)


@csrf_exempt
@require_POST
def submission_create(request):
    """POST /api/submissions/  提交问卷答案，成功后立即计算并回写分数。"""
    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    try:
        submission = SubmissionService.create_submission(
            student_id=payload.get("studentId"),
            student_name=payload.get("studentName"),
            questionnaire_id=payload.get("questionnaireId"),
            answers=payload.get("answers"),
            completed_by=payload.get("completedBy") or "",
            notes=payload.get("notes") or "",
            status=payload.get("status"),
        )
    except ValidationError as exc:
        return _bad_request(exc)
    except QuestionnaireTemplate.DoesNotExist:
        return _not_found(TEMPLATE_NOT_FOUND)

    SubmissionScoreService.update_submission_scores(submission.id)
    submission.refresh_from_db()
    return JsonResponse(
        {
            "success": True,
            "message": "Form submitted successfully",
            "data": SubmissionService.serialize_submission(submission),
        },
        status=201,
    )


@require_GET
def submission_detail(request, submission_id: int):
    """GET /api/submissions/<id>/  查看单份提交（含已回写的分数）。"""
    try:
        submission = SubmissionService.get_submission(submission_id)
    except ValidationError as exc:
        return _bad_request(exc)
    except FormSubmission.DoesNotExist:
        return _not_found(SUBMISSION_NOT_FOUND)
    return JsonResponse(
        {"success": True, "data": SubmissionService.serialize_submission(submission)}
    )


@require_GET
def student_submissions(request, student_id: str):
    """GET /api/submissions/student/<student_id>/  某学生的全部提交，按提交时间倒序。"""
    submissions = SubmissionService.list_student_submissions(student_id)
    return JsonResponse(
        {
            "success": True,
            "data": [SubmissionService.serialize_submission(s) for s in submissions],
            "count": len(submissions),
        }
    )


@require_GET
def submission_scores(request, submission_id: int):
    """GET /api/submissions/<id>/scores/  按当前模板结构实时计算分数（不落库）。"""
    try:
        data = SubmissionScoreService.get_submission_scores(submission_id)
    except FormSubmission.DoesNotExist:
        return _not_found(SUBMISSION_NOT_FOUND)
    except Exception:
        logger.exception("计算提交分数失败 submission_id=%s", submission_id)
        return _server_error("Failed to calculate scores")
    return JsonResponse({"success": True, "data": data})


@csrf_exempt
@require_http_methods(["PUT"])
def submission_update_scores(request, submission_id: int):
    """PUT /api/submissions/<id>/update-scores/  重算并回写 total_score 与 domain_scores。"""
    try:
        data = SubmissionScoreService.update_submission_scores(submission_id)
    except FormSubmission.DoesNotExist:
        return _not_found(SUBMISSION_NOT_FOUND)
    except Exception:
        logger.exception("回写提交分数失败 submission_id=%s", submission_id)
        return _server_error("Failed to update scores")
    return JsonResponse(
        {"success": True, "message": "Scores updated successfully", "data": data}
    )


@csrf_exempt
@require_POST
def bulk_scores(request):
    """
    POST /api/submissions/bulk-scores/
    请求体：{"submissionIds": [1, 2, 3], "questionnaireId": 5(可选)}
    返回每份提交的分数及按节点路径聚合的统计值。
    """
    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    try:
        data = SubmissionScoreService.get_bulk_scores(
            payload.get("submissionIds"), questionnaire_id=payload.get("questionnaireId")
        )
    except ValidationError as exc:
        return _bad_request(exc)
    except QuestionnaireTemplate.DoesNotExist:
        return _not_found(TEMPLATE_NOT_FOUND)
    except Exception:
        logger.exception("批量计算分数失败")
        return _server_error("Failed to calculate bulk scores")
    return JsonResponse({"success": True, "data": data})


@csrf_exempt
@require_http_methods(["PUT"])
def batch_update_scores(request):
    """PUT /api/submissions/batch-update-scores/  批量回写分数，单份失败记录在 errors 中。"""
    payload = _parse_json_body(request)
    if payload is None:
        return _invalid_json_response()

    try:
        data = SubmissionScoreService.batch_update_scores(
            payload.get("submissionIds"), questionnaire_id=payload.get("questionnaireId")
        )
    except ValidationError as exc:
        return _bad_request(exc)
    return JsonResponse(
        {
            "success": True,
            "message": f"Updated {data['successCount']} submissions",
            "data": data,
        }
    )

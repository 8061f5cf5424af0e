"""
提交评分的持久化与批量计算服务。

评分本身由 submissions.scoring 中的纯函数完成，这里只负责：
取数 → 调用评分引擎 → 组装接口数据 / 回写 total_score 与 domain_scores。
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError

from questionnaires.models import QuestionnaireTemplate
from submissions.models import FormSubmission
from submissions.scoring import SubmissionScore, aggregate_scores, score_submission, summarize_scores
from submissions.services.submission import parse_object_id

logger = logging.getLogger(__name__)

DEFAULT_BULK_SCORE_LIMIT = 500


def _structure_of(template: QuestionnaireTemplate) -> list:
    return template.structure if isinstance(template.structure, list) else []


def _answers_of(submission: FormSubmission) -> list:
    return submission.answers if isinstance(submission.answers, list) else []


class SubmissionScoreService:
    """单份 / 多份提交的评分查询与分数回写。"""

    @staticmethod
    def bulk_score_limit() -> int:
        return int(getattr(settings, "QUESTIONNAIRE_BULK_SCORE_LIMIT", DEFAULT_BULK_SCORE_LIMIT))

    @classmethod
    def normalize_submission_ids(cls, submission_ids: Any, allow_empty: bool = False) -> List[int]:
        """
        【功能说明】
        - 校验并转换前端传入的 submissionIds；
        - 允许整数或纯数字字符串，重复 id 只保留一次（保持原顺序）；
        - 数量超过 QUESTIONNAIRE_BULK_SCORE_LIMIT 时拒绝。

        【异常说明】
        - 不是数组 / 为空数组：ValidationError("submissionIds array is required")
        - 存在非法 id：ValidationError("Invalid submission IDs: ...")
        """
        if not isinstance(submission_ids, list) or (not submission_ids and not allow_empty):
            raise ValidationError("submissionIds array is required")

        normalized: List[int] = []
        invalid = []
        for raw_id in submission_ids:
            try:
                normalized.append(parse_object_id(raw_id))
            except ValidationError:
                invalid.append(raw_id)
        if invalid:
            raise ValidationError(
                "Invalid submission IDs: " + ", ".join(str(item) for item in invalid)
            )

        normalized = list(dict.fromkeys(normalized))
        limit = cls.bulk_score_limit()
        if len(normalized) > limit:
            raise ValidationError(f"Too many submission IDs, at most {limit} per request")
        return normalized

    @staticmethod
    def score(submission: FormSubmission, template: QuestionnaireTemplate) -> SubmissionScore:
        return score_submission(_structure_of(template), _answers_of(submission))

    @staticmethod
    def _domain_payload(result: SubmissionScore) -> List[Dict[str, Any]]:
        return [ns.to_dict(include_details=False) for ns in result.domain_scores]

    @classmethod
    def _persist(cls, submission: FormSubmission, result: SubmissionScore) -> FormSubmission:
        submission.total_score = Decimal(str(round(result.overall_score, 2)))
        submission.domain_scores = cls._domain_payload(result)
        submission.save(update_fields=["total_score", "domain_scores", "updated_at"])
        return submission

    @classmethod
    def get_submission_scores(cls, submission_id: int) -> Dict[str, Any]:
        """
        计算单份提交的全部分组得分（不落库）。

        【返回参数说明】
        - {"submissionId", "studentName", "questionnaireTitle", "submittedAt",
           "overallScore", "totalWeight", "nodeScores", "graphSettings", ...}

        【异常说明】
        - 提交不存在：FormSubmission.DoesNotExist
        """
        submission = FormSubmission.objects.select_related("questionnaire").get(id=submission_id)
        template = submission.questionnaire
        result = cls.score(submission, template)
        return {
            "submissionId": submission.id,
            "studentId": submission.student_id,
            "studentName": submission.student_name,
            "questionnaireTitle": submission.questionnaire_title,
            "submittedAt": submission.submitted_at.isoformat() if submission.submitted_at else None,
            **result.to_dict(),
            "graphSettings": template.graph_settings,
        }

    @classmethod
    def update_submission_scores(cls, submission_id: int) -> Dict[str, Any]:
        """
        重新计算并回写单份提交的 total_score 与顶层 domain_scores。

        【异常说明】
        - 提交不存在：FormSubmission.DoesNotExist
        """
        submission = FormSubmission.objects.select_related("questionnaire").get(id=submission_id)
        result = cls.score(submission, submission.questionnaire)
        cls._persist(submission, result)
        return {
            "submissionId": submission.id,
            "totalScore": float(submission.total_score),
            "domainScores": submission.domain_scores,
            "allNodeScores": [ns.to_dict() for ns in result.node_scores],
        }

    @classmethod
    def get_bulk_scores(
        cls, submission_ids: Any, questionnaire_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        【功能说明】
        - 对多份提交逐一评分，全部完成后再按 nodePath 聚合统计；
        - 传入 questionnaire_id 时只统计该模板下的提交，并以该模板结构评分；
          否则使用第一份提交所属模板的结构。

        【返回参数说明】
        - {"questionnaire", "submissions", "aggregatedScores", "overallSummary", "totalSubmissions"}

        【异常说明】
        - submissionIds 非法：ValidationError
        - 指定的模板不存在：QuestionnaireTemplate.DoesNotExist
        """
        ids = cls.normalize_submission_ids(submission_ids)
        if questionnaire_id is not None:
            questionnaire_id = parse_object_id(questionnaire_id, "Invalid questionnaire ID format")
        queryset = FormSubmission.objects.filter(id__in=ids).order_by("submitted_at", "id")
        template = None
        if questionnaire_id is not None:
            template = QuestionnaireTemplate.objects.get(id=questionnaire_id)
            queryset = queryset.filter(questionnaire=template)

        submissions = list(queryset)
        if not submissions:
            return {
                "submissions": [],
                "aggregatedScores": {},
                "overallSummary": None,
                "totalSubmissions": 0,
            }
        if template is None:
            template = submissions[0].questionnaire

        results = [(submission, cls.score(submission, template)) for submission in submissions]
        aggregated = aggregate_scores(result.node_scores for _, result in results)
        summary = summarize_scores(result.overall_score for _, result in results)

        return {
            "questionnaire": {
                "id": template.id,
                "title": template.title,
                "graphSettings": template.graph_settings,
            },
            "submissions": [
                {
                    "submissionId": submission.id,
                    "studentId": submission.student_id,
                    "studentName": submission.student_name,
                    "submittedAt": submission.submitted_at.isoformat(),
                    "overallScore": round(result.overall_score, 2),
                    "nodeScores": [ns.to_dict(include_details=False) for ns in result.node_scores],
                }
                for submission, result in results
            ],
            "aggregatedScores": {key: stats.to_dict() for key, stats in aggregated.items()},
            "overallSummary": summary.to_dict() if summary else None,
            "totalSubmissions": len(results),
        }

    @classmethod
    def _update_many(cls, submissions) -> Dict[str, Any]:
        updated: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        total = 0
        for submission in submissions:
            total += 1
            try:
                result = cls.score(submission, submission.questionnaire)
                cls._persist(submission, result)
            except Exception as exc:
                logger.exception("回写提交分数失败 submission_id=%s", submission.id)
                errors.append({"submissionId": submission.id, "error": str(exc)})
                continue
            updated.append(
                {
                    "submissionId": submission.id,
                    "studentName": submission.student_name,
                    "totalScore": float(submission.total_score),
                    "domainCount": len(submission.domain_scores),
                }
            )
        return {
            "updatedSubmissions": updated,
            "errors": errors,
            "totalProcessed": total,
            "successCount": len(updated),
            "errorCount": len(errors),
        }

    @classmethod
    def batch_update_scores(
        cls, submission_ids: Any, questionnaire_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        批量回写分数；单份失败只记录到 errors，不影响其余提交。
        """
        ids = cls.normalize_submission_ids(submission_ids, allow_empty=True)
        if questionnaire_id is not None:
            questionnaire_id = parse_object_id(questionnaire_id, "Invalid questionnaire ID format")
        queryset = FormSubmission.objects.select_related("questionnaire").filter(id__in=ids)
        if questionnaire_id is not None:
            queryset = queryset.filter(questionnaire_id=questionnaire_id)
        return cls._update_many(queryset.order_by("id"))

    @classmethod
    def recalculate_template_scores(cls, template_id: int) -> Dict[str, Any]:
        """模板结构变化后，按新结构重算该模板下所有已存提交的分数。"""
        queryset = (
            FormSubmission.objects.select_related("questionnaire")
            .filter(questionnaire_id=template_id)
            .order_by("id")
        )
        summary = cls._update_many(queryset.iterator())
        logger.info(
            "模板 %s 分数重算完成：成功 %s，失败 %s",
            template_id,
            summary["successCount"],
            summary["errorCount"],
        )
        return summary

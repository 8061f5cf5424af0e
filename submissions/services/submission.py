"""问卷提交业务逻辑服务。"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from questionnaires.models import QuestionnaireTemplate
from questionnaires.tree import extract_all_questions
from questionnaires.tree.nodes import node_weight
from submissions.models import FormSubmission, SubmissionStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Missing required fields: studentId, studentName, questionnaireId, answers"


def parse_object_id(value: Any, message: str = "Invalid ID format") -> int:
    """把整数或纯数字字符串转成正整数主键；其他值抛出 ValidationError(message)。"""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    raise ValidationError(message)


class SubmissionService:
    """处理问卷提交：必填校验、按模板补全答案冗余字段、落库。"""

    @staticmethod
    def denormalize_answers(
        structure: List[Dict[str, Any]], answers: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        【功能说明】
        - 按当前模板给每条答案补齐 nodePath / inputType / weight / graphable / questionTitle；
        - 答案自带的 questionTitle 等字段以模板为准被覆盖；
        - 题目已不在模板中的孤立答案原样保留，只记录日志。

        【返回参数说明】
        - 新的答案列表（不修改入参）。
        """
        questions = {
            q["id"]: q for q in extract_all_questions(structure) if isinstance(q.get("id"), str)
        }
        result = []
        orphaned = []
        for answer in answers:
            question_id = answer.get("questionId")
            question = questions.get(question_id) if isinstance(question_id, str) else None
            if question is None:
                orphaned.append(question_id)
                result.append(dict(answer))
                continue
            result.append(
                {
                    **answer,
                    "questionTitle": question.get("title") or answer.get("questionTitle"),
                    "nodePath": question["nodePath"],
                    "inputType": question.get("inputType"),
                    "weight": node_weight(question),
                    "graphable": bool(question.get("graphable")),
                }
            )
        if orphaned:
            logger.info("提交中有 %s 条答案在模板中找不到对应题目: %s", len(orphaned), orphaned)
        return result

    @classmethod
    @transaction.atomic
    def create_submission(
        cls,
        student_id: str,
        student_name: str,
        questionnaire_id: int,
        answers: List[Dict[str, Any]],
        completed_by: str = "",
        notes: str = "",
        status: Optional[str] = None,
    ) -> FormSubmission:
        """
        创建一条问卷提交记录。

        【参数说明】
        :param student_id: 学生编号
        :param student_name: 学生姓名
        :param questionnaire_id: 问卷模板ID（必须为启用中的模板）
        :param answers: 答案列表，每项至少包含 questionId 与 answer，例如
               [{"questionId": "q1", "answer": "o2"}, {"questionId": "q2", "answer": 4}]
        :param completed_by: 填写人（可选）
        :param notes: 备注（可选）
        :param status: draft / completed / reviewed，默认 completed

        【返回值说明】
        :return: 新建的 FormSubmission；此时 total_score 尚未计算，
                 需调用 SubmissionScoreService.update_submission_scores 落库分数。

        【异常说明】
        - 必填字段缺失或 answers 不是对象列表：ValidationError
        - 状态非法：ValidationError
        - 模板不存在或已停用：QuestionnaireTemplate.DoesNotExist
        """
        if (
            not student_id
            or not student_name
            or not questionnaire_id
            or not isinstance(answers, list)
        ):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        if not all(isinstance(answer, Mapping) for answer in answers):
            raise ValidationError("Each answer must be an object")

        status = status or SubmissionStatus.COMPLETED
        if status not in SubmissionStatus.values:
            raise ValidationError(f"Invalid status: {status}")

        template = QuestionnaireTemplate.objects.get(
            id=parse_object_id(questionnaire_id, "Invalid questionnaire ID format"),
            is_active=True,
        )
        structure = template.structure if isinstance(template.structure, list) else []

        submission = FormSubmission.objects.create(
            questionnaire=template,
            student_id=str(student_id),
            student_name=student_name,
            questionnaire_title=template.title,
            answers=cls.denormalize_answers(structure, answers),
            status=status,
            completed_by=completed_by or "",
            notes=notes or "",
        )
        logger.info(
            "问卷提交成功 submission_id=%s template_id=%s student_id=%s",
            submission.id,
            template.id,
            submission.student_id,
        )
        return submission

    @staticmethod
    def serialize_submission(submission: FormSubmission) -> Dict[str, Any]:
        return {
            "id": submission.id,
            "studentId": submission.student_id,
            "studentName": submission.student_name,
            "questionnaireId": submission.questionnaire_id,
            "questionnaireTitle": submission.questionnaire_title,
            "answers": submission.answers,
            "status": submission.status,
            "notes": submission.notes,
            "completedBy": submission.completed_by,
            "totalScore": float(submission.total_score)
            if submission.total_score is not None
            else None,
            "domainScores": submission.domain_scores,
            "submittedAt": submission.submitted_at.isoformat() if submission.submitted_at else None,
        }

    @staticmethod
    def get_submission(submission_id: Any) -> FormSubmission:
        """
        按主键获取一条提交记录。

        【异常说明】
        - ID 格式非法：ValidationError
        - 记录不存在：FormSubmission.DoesNotExist
        """
        return FormSubmission.objects.select_related("questionnaire").get(
            id=parse_object_id(submission_id, "Invalid submission ID format")
        )

    @staticmethod
    def list_student_submissions(student_id: str) -> List[FormSubmission]:
        """某个学生的全部提交，按提交时间倒序。"""
        if not student_id:
            raise ValidationError("studentId is required")
        return list(
            FormSubmission.objects.filter(student_id=str(student_id)).order_by(
                "-submitted_at", "-id"
            )
        )

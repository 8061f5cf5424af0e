"""问卷提交记录模型。"""

from django.db import models
from django.utils import timezone


class SubmissionStatus(models.TextChoices):
    DRAFT = "draft", "草稿"
    COMPLETED = "completed", "已完成"
    REVIEWED = "reviewed", "已复核"


class FormSubmission(models.Model):
    """学生的一次问卷提交记录；answers 中保存原始答案列表。"""

    questionnaire = models.ForeignKey(
        "questionnaires.QuestionnaireTemplate",
        on_delete=models.CASCADE,
        related_name="submissions",
        verbose_name="问卷模板",
    )
    student_id = models.CharField("学生编号", max_length=64, db_index=True)
    student_name = models.CharField("学生姓名", max_length=100)
    questionnaire_title = models.CharField("问卷名称", max_length=200, blank=True, default="")
    answers = models.JSONField("答案", default=list, blank=True)
    status = models.CharField(
        "状态",
        max_length=16,
        choices=SubmissionStatus.choices,
        default=SubmissionStatus.COMPLETED,
    )
    notes = models.TextField("备注", blank=True, default="")
    completed_by = models.CharField("填写人", max_length=64, blank=True, default="")

    # 冗余存储计算后的总分与顶层领域得分，方便列表查询
    total_score = models.DecimalField(
        "总分", max_digits=10, decimal_places=2, null=True, blank=True
    )
    domain_scores = models.JSONField("领域得分", default=list, blank=True)

    submitted_at = models.DateTimeField("提交时间", default=timezone.now)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        db_table = "form_submissions"
        verbose_name = "问卷提交记录"
        verbose_name_plural = "问卷提交记录"
        ordering = ("-submitted_at",)
        indexes = [
            models.Index(fields=["student_id", "-submitted_at"], name="idx_submission_student"),
        ]

    def __str__(self) -> str:
        return f"{self.student_name} - {self.questionnaire_title or self.questionnaire_id}"

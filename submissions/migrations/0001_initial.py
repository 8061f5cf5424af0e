import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("questionnaires", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="FormSubmission",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "student_id",
                    models.CharField(db_index=True, max_length=64, verbose_name="学生编号"),
                ),
                ("student_name", models.CharField(max_length=100, verbose_name="学生姓名")),
                (
                    "questionnaire_title",
                    models.CharField(
                        blank=True, default="", max_length=200, verbose_name="问卷名称"
                    ),
                ),
                ("answers", models.JSONField(blank=True, default=list, verbose_name="答案")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "草稿"),
                            ("completed", "已完成"),
                            ("reviewed", "已复核"),
                        ],
                        default="completed",
                        max_length=16,
                        verbose_name="状态",
                    ),
                ),
                ("notes", models.TextField(blank=True, default="", verbose_name="备注")),
                (
                    "completed_by",
                    models.CharField(
                        blank=True, default="", max_length=64, verbose_name="填写人"
                    ),
                ),
                (
                    "total_score",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        verbose_name="总分",
                    ),
                ),
                (
                    "domain_scores",
                    models.JSONField(blank=True, default=list, verbose_name="领域得分"),
                ),
                (
                    "submitted_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, verbose_name="提交时间"
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="创建时间"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="更新时间"),
                ),
                (
                    "questionnaire",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="submissions",
                        to="questionnaires.questionnairetemplate",
                        verbose_name="问卷模板",
                    ),
                ),
            ],
            options={
                "verbose_name": "问卷提交记录",
                "verbose_name_plural": "问卷提交记录",
                "db_table": "form_submissions",
                "ordering": ("-submitted_at",),
                "indexes": [
                    models.Index(
                        fields=["student_id", "-submitted_at"],
                        name="idx_submission_student",
                    )
                ],
            },
        ),
    ]

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="QuestionnaireTemplate",
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
                ("title", models.CharField(max_length=200, verbose_name="问卷名称")),
                (
                    "description",
                    models.TextField(blank=True, default="", verbose_name="问卷说明"),
                ),
                (
                    "structure",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="顶层节点列表（领域 / 分组 / 题目），节点格式见 questionnaires.tree.nodes。",
                        verbose_name="问卷结构",
                    ),
                ),
                (
                    "graph_settings",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text='例如 {"colorRanges": [{"label": "低", "min": 0, "max": 40, "color": "red"}]}',
                        verbose_name="图表阈值配置",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="是否启用")),
                (
                    "created_by",
                    models.CharField(
                        blank=True, default="", max_length=64, verbose_name="创建人"
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="每次修改问卷结构时自增。", verbose_name="结构版本"
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
            ],
            options={
                "verbose_name": "问卷模板",
                "verbose_name_plural": "问卷模板",
                "db_table": "questionnaire_templates",
                "ordering": ("-created_at",),
            },
        ),
    ]

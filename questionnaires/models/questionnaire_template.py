"""问卷模板定义。"""

from django.db import models


class QuestionnaireTemplate(models.Model):
    """层级问卷模板：structure 中保存整棵节点树。"""

    title = models.CharField("问卷名称", max_length=200)
    description = models.TextField("问卷说明", blank=True, default="")
    structure = models.JSONField(
        "问卷结构",
        default=list,
        blank=True,
        help_text="顶层节点列表（领域 / 分组 / 题目），节点格式见 questionnaires.tree.nodes。",
    )
    graph_settings = models.JSONField(
        "图表阈值配置",
        default=dict,
        blank=True,
        help_text='例如 {"colorRanges": [{"label": "低", "min": 0, "max": 40, "color": "red"}]}',
    )
    is_active = models.BooleanField("是否启用", default=True)
    created_by = models.CharField("创建人", max_length=64, blank=True, default="")
    version = models.PositiveIntegerField(
        "结构版本", default=1, help_text="每次修改问卷结构时自增。"
    )
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        db_table = "questionnaire_templates"
        verbose_name = "问卷模板"
        verbose_name_plural = "问卷模板"
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"{self.title} (v{self.version})"

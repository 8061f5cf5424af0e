"""问卷树通用枚举。"""

from django.db import models


class NodeType(models.TextChoices):
    GROUP = "group", "分组"
    QUESTION = "question", "题目"


class InputType(models.TextChoices):
    SINGLE_CHOICE = "single-choice", "单选题"
    MULTIPLE_CHOICE = "multiple-choice", "多选题"
    SCALE = "scale", "量表题"
    NUMBER = "number", "数值题"
    TEXT = "text", "问答/填空"


class ChartType(models.TextChoices):
    BAR = "bar", "柱状图"
    LINE = "line", "折线图"
    RADAR = "radar", "雷达图"
    GAUGE = "gauge", "仪表盘"
    PIE = "pie", "饼图"

from django.core.exceptions import ValidationError


class QuestionnaireTreeError(ValidationError):
    """调用方传入的问卷树 / 答案容器类型不正确（非单个节点的畸形问题）。"""

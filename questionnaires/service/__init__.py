"""questionnaires 服务层聚合入口。"""

from .questionnaire_template import QuestionnaireTemplateService

__all__ = ["QuestionnaireTemplateService"]

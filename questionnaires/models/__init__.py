from .questionnaire_template import QuestionnaireTemplate

__all__ = [
    "QuestionnaireTemplate",
]

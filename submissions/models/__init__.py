from .form_submission import FormSubmission, SubmissionStatus

__all__ = [
    "FormSubmission",
    "SubmissionStatus",
]

from celery import shared_task

from submissions.services.submission_scores import SubmissionScoreService


@shared_task(name="submissions.recalculate_template_scores")
def recalculate_template_scores_task(template_id: int) -> int:
    return SubmissionScoreService.recalculate_template_scores(template_id)["successCount"]

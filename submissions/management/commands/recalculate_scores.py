"""Recalculate persisted submission scores.

按当前模板结构重算并回写 total_score / domain_scores，可按模板或指定提交执行。
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from submissions.models import FormSubmission
from submissions.services.submission_scores import SubmissionScoreService


class Command(BaseCommand):
    help = "Recalculate stored scores for submissions (all, one template, or given ids)."

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--template",
            dest="template_id",
            type=int,
            default=None,
            help="Only recalculate submissions of this questionnaire template.",
        )
        parser.add_argument(
            "--submission",
            dest="submission_ids",
            type=int,
            nargs="+",
            default=None,
            help="Submission id(s) to recalculate.",
        )

    def handle(self, *args, **options) -> None:
        template_id = options.get("template_id")
        submission_ids = options.get("submission_ids")

        if submission_ids:
            try:
                summary = SubmissionScoreService.batch_update_scores(
                    submission_ids, questionnaire_id=template_id
                )
            except ValidationError as exc:
                raise CommandError("; ".join(exc.messages)) from exc
        elif template_id is not None:
            summary = SubmissionScoreService.recalculate_template_scores(template_id)
        else:
            template_ids = (
                FormSubmission.objects.order_by()
                .values_list("questionnaire_id", flat=True)
                .distinct()
            )
            summary = {"successCount": 0, "errors": []}
            for tid in sorted(template_ids):
                result = SubmissionScoreService.recalculate_template_scores(tid)
                summary["successCount"] += result["successCount"]
                summary["errors"].extend(result["errors"])

        for error in summary["errors"]:
            self.stderr.write(f"Submission {error['submissionId']}: {error['error']}")
        self.stdout.write(
            self.style.SUCCESS(f"Recalculated scores for {summary['successCount']} submission(s).")
        )

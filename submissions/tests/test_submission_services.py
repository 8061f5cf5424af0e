from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from questionnaires.models import QuestionnaireTemplate
from questionnaires.service.questionnaire_template import QuestionnaireTemplateService
from questionnaires.tests.sample_trees import full_answers, low_answers, reading_assessment
from submissions.models import FormSubmission, SubmissionStatus
from submissions.services.submission import SubmissionService
from submissions.services.submission_scores import SubmissionScoreService


class SubmissionServiceTest(TestCase):
    def setUp(self) -> None:
        self.template = QuestionnaireTemplateService.create_template(
            title="阅读能力评估", structure=reading_assessment()
        )

    def test_create_submission_denormalizes_answers(self):
        submission = SubmissionService.create_submission(
            student_id="s-1",
            student_name="小明",
            questionnaire_id=self.template.id,
            answers=[
                {"questionId": "q1", "answer": "o5", "questionTitle": "旧标题"},
                {"questionId": "gone", "answer": 1},
            ],
            completed_by="王老师",
        )

        self.assertEqual(submission.questionnaire_title, "阅读能力评估")
        self.assertEqual(submission.status, SubmissionStatus.COMPLETED)
        self.assertIsNone(submission.total_score)

        first, orphan = submission.answers
        self.assertEqual(first["nodePath"], ["d1", "q1"])
        self.assertEqual(first["inputType"], "single-choice")
        self.assertEqual(first["weight"], 2)
        self.assertTrue(first["graphable"])
        self.assertEqual(first["questionTitle"], "是否喜欢阅读")
        self.assertEqual(orphan, {"questionId": "gone", "answer": 1})

    def test_list_question_id_is_kept_as_orphan(self):
        submission = SubmissionService.create_submission(
            "s-1",
            "小明",
            self.template.id,
            [{"questionId": ["q1"], "answer": 3}, {"questionId": "q1", "answer": "o5"}],
        )

        orphan, answer = submission.answers
        self.assertEqual(orphan, {"questionId": ["q1"], "answer": 3})
        self.assertEqual(answer["nodePath"], ["d1", "q1"])
        self.assertEqual(answer["weight"], 2)

    def test_get_submission_and_student_history(self):
        first = SubmissionService.create_submission("s-1", "小明", self.template.id, [])
        second = SubmissionService.create_submission("s-1", "小明", self.template.id, [])
        SubmissionService.create_submission("s-2", "小红", self.template.id, [])
        FormSubmission.objects.filter(id=first.id).update(
            submitted_at=second.submitted_at - timedelta(days=1)
        )

        self.assertEqual(SubmissionService.get_submission(str(first.id)), first)
        self.assertEqual(
            [s.id for s in SubmissionService.list_student_submissions("s-1")],
            [second.id, first.id],
        )
        self.assertEqual(SubmissionService.list_student_submissions("nobody"), [])
        with self.assertRaises(FormSubmission.DoesNotExist):
            SubmissionService.get_submission(first.id + 100)
        with self.assertRaises(ValidationError):
            SubmissionService.get_submission("abc")

    def test_required_fields(self):
        with self.assertRaises(ValidationError):
            SubmissionService.create_submission("s-1", "", self.template.id, [])
        with self.assertRaises(ValidationError):
            SubmissionService.create_submission("s-1", "小明", self.template.id, None)
        with self.assertRaises(ValidationError):
            SubmissionService.create_submission("s-1", "小明", self.template.id, ["q1"])
        with self.assertRaises(ValidationError):
            SubmissionService.create_submission("s-1", "小明", "abc", [])
        with self.assertRaises(ValidationError):
            SubmissionService.create_submission(
                "s-1", "小明", self.template.id, [], status="archived"
            )
        self.assertEqual(FormSubmission.objects.count(), 0)

    def test_inactive_template_is_rejected(self):
        QuestionnaireTemplateService.deactivate_template(self.template.id)

        with self.assertRaises(QuestionnaireTemplate.DoesNotExist):
            SubmissionService.create_submission("s-1", "小明", self.template.id, [])


class SubmissionScoreServiceTest(TestCase):
    def setUp(self) -> None:
        self.template = QuestionnaireTemplateService.create_template(
            title="阅读能力评估",
            structure=reading_assessment(),
            graph_settings={"colorRanges": [{"label": "低", "min": 0, "max": 40}]},
        )
        self.high = SubmissionService.create_submission(
            "s-1", "小明", self.template.id, full_answers()
        )
        self.low = SubmissionService.create_submission(
            "s-2", "小红", self.template.id, low_answers()
        )

    def test_get_submission_scores(self):
        data = SubmissionScoreService.get_submission_scores(self.high.id)

        self.assertEqual(data["overallScore"], 80)
        self.assertEqual(data["studentName"], "小明")
        self.assertEqual(len(data["nodeScores"]), 3)
        self.assertEqual(data["graphSettings"]["colorRanges"][0]["label"], "低")

    def test_missing_submission(self):
        with self.assertRaises(FormSubmission.DoesNotExist):
            SubmissionScoreService.get_submission_scores(self.low.id + 100)

    def test_update_submission_scores_persists_domain_scores(self):
        data = SubmissionScoreService.update_submission_scores(self.high.id)

        self.high.refresh_from_db()
        self.assertEqual(self.high.total_score, Decimal("80.00"))
        self.assertEqual([d["nodeId"] for d in self.high.domain_scores], ["d1", "d2"])
        self.assertNotIn("details", self.high.domain_scores[0])
        self.assertEqual(data["totalScore"], 80)
        self.assertEqual(len(data["allNodeScores"]), 3)

    def test_bulk_scores_aggregate_by_node(self):
        data = SubmissionScoreService.get_bulk_scores([self.high.id, str(self.low.id)])

        self.assertEqual(data["totalSubmissions"], 2)
        self.assertEqual(data["questionnaire"]["id"], self.template.id)
        self.assertEqual(data["aggregatedScores"]["d1"]["averageScore"], 60)
        self.assertEqual(data["aggregatedScores"]["d1/g1"]["minScore"], 80)
        self.assertEqual(data["overallSummary"]["mean"], 60)

    def test_bulk_scores_filtered_by_other_template(self):
        other = QuestionnaireTemplateService.create_template(title="其他", structure=[])

        data = SubmissionScoreService.get_bulk_scores(
            [self.high.id], questionnaire_id=other.id
        )

        self.assertEqual(data["totalSubmissions"], 0)
        self.assertEqual(data["aggregatedScores"], {})

    def test_bulk_scores_input_validation(self):
        with self.assertRaises(ValidationError):
            SubmissionScoreService.get_bulk_scores([])
        with self.assertRaises(ValidationError) as ctx:
            SubmissionScoreService.get_bulk_scores([self.high.id, "x", True])
        self.assertEqual(ctx.exception.messages, ["Invalid submission IDs: x, True"])
        with self.assertRaises(ValidationError):
            SubmissionScoreService.get_bulk_scores([self.high.id], questionnaire_id="abc")

    @override_settings(QUESTIONNAIRE_BULK_SCORE_LIMIT=1)
    def test_bulk_score_limit(self):
        with self.assertRaises(ValidationError):
            SubmissionScoreService.get_bulk_scores([self.high.id, self.low.id])

    def test_batch_update_scores(self):
        data = SubmissionScoreService.batch_update_scores([self.high.id, self.low.id])

        self.assertEqual(data["successCount"], 2)
        self.assertEqual(data["errors"], [])
        self.low.refresh_from_db()
        self.assertEqual(self.low.total_score, Decimal("40.00"))

    def test_batch_update_collects_errors(self):
        with patch.object(SubmissionScoreService, "score", side_effect=RuntimeError("boom")):
            data = SubmissionScoreService.batch_update_scores([self.high.id, self.low.id])

        self.assertEqual(data["errorCount"], 2)
        self.assertEqual(data["successCount"], 0)
        self.assertEqual(data["errors"][0]["error"], "boom")

    def test_recalculate_after_structure_change(self):
        SubmissionScoreService.batch_update_scores([self.high.id, self.low.id])
        structure = reading_assessment()
        structure[0]["children"][0]["weight"] = 4
        QuestionnaireTemplateService.update_template(self.template.id, structure=structure)

        summary = SubmissionScoreService.recalculate_template_scores(self.template.id)

        self.assertEqual(summary["successCount"], 2)
        self.high.refresh_from_db()
        # (100×4 + 40 + 80) / 6
        self.assertEqual(self.high.total_score, Decimal("86.67"))

from django.core.exceptions import ValidationError
from django.test import TestCase

from questionnaires.models import QuestionnaireTemplate
from questionnaires.service.questionnaire_template import QuestionnaireTemplateService
from questionnaires.tests.sample_trees import reading_assessment


class QuestionnaireTemplateServiceTest(TestCase):
    def setUp(self) -> None:
        self.template = QuestionnaireTemplateService.create_template(
            title="  阅读能力评估  ",
            structure=reading_assessment(),
            created_by="t-1",
        )

    def test_create_template_strips_title_and_starts_at_version_1(self):
        self.assertEqual(self.template.title, "阅读能力评估")
        self.assertEqual(self.template.version, 1)
        self.assertEqual(self.template.graph_settings, {"colorRanges": []})
        self.assertTrue(self.template.is_active)

    def test_create_template_rejects_invalid_structure(self):
        structure = reading_assessment()
        structure.append({"id": "q2", "type": "question", "inputType": "text"})

        with self.assertRaises(ValidationError) as ctx:
            QuestionnaireTemplateService.create_template(title="重复编号", structure=structure)

        self.assertEqual(ctx.exception.messages, ["Duplicate node ID found: q2 at path q2"])
        self.assertEqual(QuestionnaireTemplate.objects.count(), 1)

    def test_create_template_requires_title(self):
        with self.assertRaises(ValidationError):
            QuestionnaireTemplateService.create_template(title=" ", structure=[])

    def test_validate_structure_rejects_non_list(self):
        self.assertEqual(
            QuestionnaireTemplateService.validate_structure({"id": "d1"}),
            ["Structure is required and must be an array"],
        )

    def test_update_bumps_version_only_when_structure_changes(self):
        template = QuestionnaireTemplateService.update_template(
            self.template.id, structure=reading_assessment(), title="新标题"
        )
        self.assertEqual(template.version, 1)
        self.assertEqual(template.title, "新标题")

        structure = reading_assessment()
        structure[0]["children"][0]["weight"] = 3
        template = QuestionnaireTemplateService.update_template(
            self.template.id, structure=structure
        )

        template.refresh_from_db()
        self.assertEqual(template.version, 2)
        self.assertEqual(template.structure[0]["children"][0]["weight"], 3)

    def test_update_with_invalid_structure_keeps_old_one(self):
        with self.assertRaises(ValidationError):
            QuestionnaireTemplateService.update_template(
                self.template.id, structure=[{"id": "g1", "type": "group"}]
            )
        self.template.refresh_from_db()
        self.assertEqual(self.template.structure, reading_assessment())

    def test_deactivate_hides_template(self):
        self.assertTrue(QuestionnaireTemplateService.deactivate_template(self.template.id))
        self.assertFalse(QuestionnaireTemplateService.deactivate_template(self.template.id))
        self.assertIsNone(QuestionnaireTemplateService.get_template_detail(self.template.id))
        self.assertEqual(QuestionnaireTemplateService.list_active_templates(), [])
        with self.assertRaises(QuestionnaireTemplate.DoesNotExist):
            QuestionnaireTemplateService.update_template(self.template.id, title="x")

    def test_serialize_template_includes_metadata(self):
        data = QuestionnaireTemplateService.get_template_detail(self.template.id)

        self.assertEqual(data["createdBy"], "t-1")
        self.assertEqual(data["metadata"]["totalQuestions"], 4)
        self.assertEqual(data["metadata"]["maxPossibleScore"], 25)

    def test_scoring_metadata_includes_questionnaire_info(self):
        metadata = QuestionnaireTemplateService.get_scoring_metadata(self.template.id)

        self.assertEqual(metadata["questionnaire"]["id"], self.template.id)
        self.assertEqual(metadata["totalGraphableQuestions"], 3)

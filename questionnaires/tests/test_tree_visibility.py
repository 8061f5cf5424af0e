from django.test import SimpleTestCase

from questionnaires.tests.sample_trees import reading_assessment
from questionnaires.tree import (
    build_answer_index,
    collect_applicable_questions,
    is_condition_met,
    is_visible,
)


class ConditionTests(SimpleTestCase):
    def setUp(self) -> None:
        self.node = {
            "id": "q2",
            "type": "question",
            "inputType": "text",
            "condition": {"parentQuestionId": "q1", "parentOptionId": "o1"},
        }

    def test_visibility_follows_parent_answer(self):
        self.assertFalse(is_visible(self.node, {}))
        self.assertTrue(is_visible(self.node, {"q1": "o1"}))
        self.assertFalse(is_visible(self.node, {"q1": "o2"}))

    def test_answer_dicts_and_collections(self):
        self.assertTrue(is_visible(self.node, {"q1": {"questionId": "q1", "answer": "o1"}}))
        self.assertTrue(is_visible(self.node, {"q1": ["o3", "o1"]}))
        self.assertFalse(is_visible(self.node, {"q1": ["o3"]}))
        self.assertFalse(is_visible(self.node, {"q1": None}))

    def test_missing_or_empty_condition_is_always_met(self):
        self.assertTrue(is_condition_met(None, {}))
        self.assertTrue(is_condition_met({}, {}))
        self.assertTrue(is_condition_met({"parentQuestionId": "", "parentOptionId": ""}, {}))

    def test_condition_without_option_needs_any_answer(self):
        condition = {"parentQuestionId": "q1"}
        self.assertFalse(is_condition_met(condition, {}))
        self.assertTrue(is_condition_met(condition, {"q1": 3}))


class AnswerIndexTests(SimpleTestCase):
    def test_last_answer_wins_and_junk_is_ignored(self):
        index = build_answer_index(
            [
                {"questionId": "q1", "answer": "o1"},
                "junk",
                {"answer": "no id"},
                {"questionId": "q1", "answer": "o5"},
            ]
        )
        self.assertEqual(list(index), ["q1"])
        self.assertEqual(index["q1"]["answer"], "o5")


class ApplicableQuestionsTests(SimpleTestCase):
    def test_hidden_follow_up_is_excluded(self):
        answers = build_answer_index([{"questionId": "q1", "answer": "o1"}])
        ids = [q["id"] for q in collect_applicable_questions(reading_assessment(), answers)]
        self.assertEqual(ids, ["q1", "q2", "q3"])

    def test_hidden_group_hides_descendants(self):
        tree = reading_assessment()
        tree[0]["children"][1]["condition"] = {"parentQuestionId": "q1", "parentOptionId": "o5"}
        answers = build_answer_index([{"questionId": "q1", "answer": "o1"}])

        ids = [q["id"] for q in collect_applicable_questions(tree, answers)]

        self.assertEqual(ids, ["q1", "q3"])

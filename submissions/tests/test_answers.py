from django.test import SimpleTestCase

from submissions.scoring import ChoiceAnswer, NumericAnswer, TextAnswer, parse_answer

SINGLE = {
    "id": "q1",
    "type": "question",
    "inputType": "single-choice",
    "options": [{"id": "o1", "value": 1}, {"id": "o5", "value": 5}],
}
MULTI = {
    "id": "q2",
    "type": "question",
    "inputType": "multiple-choice",
    "options": [{"id": "a", "value": 2}, {"id": "b", "value": 3}, {"id": "c", "value": 5}],
}
SCALE = {
    "id": "q3",
    "type": "question",
    "inputType": "scale",
    "options": [{"id": f"s{v}", "value": v} for v in range(1, 6)],
}
NUMBER = {"id": "q4", "type": "question", "inputType": "number"}
TEXT = {"id": "q5", "type": "question", "inputType": "text"}


def _answer(question, value, **extra):
    return {"questionId": question["id"], "answer": value, **extra}


class ChoiceAnswerTests(SimpleTestCase):
    def test_single_choice_by_option_id(self):
        parsed = parse_answer(SINGLE, _answer(SINGLE, "o5"))

        self.assertIsInstance(parsed, ChoiceAnswer)
        self.assertEqual(parsed.raw_score, 5)
        self.assertEqual(parsed.max_option_value, 5)

    def test_single_choice_by_value_and_one_element_list(self):
        self.assertEqual(parse_answer(SINGLE, _answer(SINGLE, 1)).raw_score, 1)
        self.assertEqual(parse_answer(SINGLE, _answer(SINGLE, ["o5"])).raw_score, 5)

    def test_single_choice_unknown_option_is_unparseable(self):
        self.assertIsNone(parse_answer(SINGLE, _answer(SINGLE, "o9")))
        self.assertIsNone(parse_answer(SINGLE, _answer(SINGLE, ["o1", "o5"])))
        self.assertIsNone(parse_answer(SINGLE, _answer(SINGLE, None)))

    def test_multiple_choice_sums_selected_values(self):
        parsed = parse_answer(MULTI, _answer(MULTI, ["b", "c", "c", "zzz"]))

        self.assertEqual([opt["id"] for opt in parsed.selected], ["b", "c"])
        self.assertEqual(parsed.raw_score, 8)

    def test_multiple_choice_scalar_and_empty_list(self):
        self.assertEqual(parse_answer(MULTI, _answer(MULTI, "a")).raw_score, 2)
        empty = parse_answer(MULTI, _answer(MULTI, []))
        self.assertEqual(empty.selected, ())
        self.assertEqual(empty.raw_score, 0)

    def test_multiple_choice_with_no_resolvable_option(self):
        self.assertIsNone(parse_answer(MULTI, _answer(MULTI, ["x", "y"])))

    def test_selected_options_fallback(self):
        raw = _answer(MULTI, None, selectedOptions=[{"id": "a"}, {"id": "c"}])
        self.assertEqual(parse_answer(MULTI, raw).raw_score, 7)

    def test_choice_without_positive_options_is_unparseable(self):
        question = {**SINGLE, "options": [{"id": "o0", "value": 0}]}
        self.assertIsNone(parse_answer(question, _answer(question, "o0")))


class NumericAnswerTests(SimpleTestCase):
    def test_scale_value_and_option_id(self):
        self.assertEqual(parse_answer(SCALE, _answer(SCALE, 4)).value, 4)
        self.assertEqual(parse_answer(SCALE, _answer(SCALE, "3")).value, 3)
        self.assertEqual(parse_answer(SCALE, _answer(SCALE, "s5")).value, 5)
        self.assertEqual(parse_answer(SCALE, _answer(SCALE, 4)).ceiling, 5)

    def test_number_ceiling(self):
        parsed = parse_answer(NUMBER, _answer(NUMBER, 12))

        self.assertIsInstance(parsed, NumericAnswer)
        self.assertEqual(parsed.ceiling, 10)

    def test_non_numeric_values(self):
        self.assertIsNone(parse_answer(NUMBER, _answer(NUMBER, True)))
        self.assertIsNone(parse_answer(NUMBER, _answer(NUMBER, "abc")))
        self.assertIsNone(parse_answer(NUMBER, _answer(NUMBER, float("nan"))))
        self.assertIsNone(parse_answer(NUMBER, _answer(NUMBER, [1])))


class TextAndTypeTests(SimpleTestCase):
    def test_text_answer(self):
        self.assertIsInstance(parse_answer(TEXT, _answer(TEXT, " 不错 ")), TextAnswer)
        self.assertIsNone(parse_answer(TEXT, _answer(TEXT, "   ")))

    def test_template_input_type_wins(self):
        parsed = parse_answer(NUMBER, _answer(NUMBER, 5, inputType="text"))
        self.assertIsInstance(parsed, NumericAnswer)

    def test_answer_input_type_used_when_template_has_none(self):
        question = {"id": "q9", "type": "question"}
        parsed = parse_answer(question, _answer(question, 7, inputType="number"))
        self.assertEqual(parsed.value, 7)

    def test_unknown_input_type_or_bad_payload(self):
        question = {"id": "q9", "type": "question", "inputType": "slider"}
        self.assertIsNone(parse_answer(question, _answer(question, 7)))
        self.assertIsNone(parse_answer(NUMBER, {"answer": 3}))
        self.assertIsNone(parse_answer(NUMBER, "3"))

from django.test import SimpleTestCase

from questionnaires.tests.sample_trees import reading_assessment
from questionnaires.tree import (
    build_scoring_metadata,
    build_template_metadata,
    calculate_max_score,
    extract_all_questions,
    extract_questions_from_node,
    find_node_by_id,
    find_node_by_path,
    generate_node_paths,
    walk_tree,
)


class WalkTreeTests(SimpleTestCase):
    def test_pre_order_with_paths(self):
        visited = [(node["id"], path) for node, path in walk_tree(reading_assessment())]

        self.assertEqual(
            visited,
            [
                ("d1", ["d1"]),
                ("q1", ["d1", "q1"]),
                ("q1a", ["d1", "q1", "q1a"]),
                ("g1", ["d1", "g1"]),
                ("q2", ["d1", "g1", "q2"]),
                ("d2", ["d2"]),
                ("q3", ["d2", "q3"]),
            ],
        )

    def test_prune_skips_whole_subtree(self):
        visited = [
            node["id"]
            for node, _ in walk_tree(reading_assessment(), prune=lambda n: n["id"] == "d1")
        ]
        self.assertEqual(visited, ["d2", "q3"])

    def test_non_object_entries_are_ignored(self):
        tree = [None, "x", {"id": "q1", "type": "question", "inputType": "text"}]
        self.assertEqual([path for _, path in walk_tree(tree)], [["q1"]])


class ExtractionTests(SimpleTestCase):
    def test_extract_all_questions_includes_follow_ups(self):
        questions = extract_all_questions(reading_assessment())

        self.assertEqual([q["id"] for q in questions], ["q1", "q1a", "q2", "q3"])
        self.assertEqual(questions[1]["nodePath"], ["d1", "q1", "q1a"])

    def test_extract_does_not_mutate_tree(self):
        tree = reading_assessment()
        extract_all_questions(tree)
        self.assertNotIn("nodePath", tree[0]["children"][0])

    def test_generate_node_paths_covers_every_node(self):
        paths = generate_node_paths(reading_assessment())

        self.assertEqual(len(paths), 7)
        self.assertEqual(paths[3], {"nodeId": "g1", "nodePath": ["d1", "g1"], "type": "group"})

    def test_find_node_by_id(self):
        node = find_node_by_id(reading_assessment(), "q2")

        self.assertEqual(node["title"], "流利度评分")
        self.assertEqual(node["nodePath"], ["d1", "g1", "q2"])
        self.assertIsNone(find_node_by_id(reading_assessment(), "missing"))

    def test_find_node_by_path(self):
        tree = reading_assessment()

        self.assertEqual(find_node_by_path(tree, ["d1", "g1"])["title"], "朗读流利度")
        self.assertIsNone(find_node_by_path(tree, ["d1", "q2"]))
        self.assertIsNone(find_node_by_path(tree, []))

    def test_extract_questions_from_node(self):
        tree = reading_assessment()
        ids = [q["id"] for q in extract_questions_from_node(tree[0])]
        self.assertEqual(ids, ["q1", "q1a", "q2"])


class MetadataTests(SimpleTestCase):
    def test_max_score_by_input_type_and_weight(self):
        # q1: 5 × 2，q1a: 10，q2: 5；q3 不可绘图
        self.assertEqual(calculate_max_score(reading_assessment()), 25)

    def test_template_metadata(self):
        self.assertEqual(
            build_template_metadata(reading_assessment()),
            {
                "totalQuestions": 4,
                "totalNodes": 7,
                "maxPossibleScore": 25,
                "graphableQuestions": 3,
            },
        )

    def test_scoring_metadata_lists_graphable_nodes(self):
        metadata = build_scoring_metadata(reading_assessment())

        self.assertEqual(
            [group["nodeId"] for group in metadata["graphableGroups"]], ["d1", "g1"]
        )
        self.assertEqual(metadata["graphableGroups"][0]["questionCount"], 3)
        self.assertEqual(
            [q["nodeId"] for q in metadata["graphableQuestions"]], ["q1", "q1a", "q2"]
        )
        self.assertEqual(metadata["graphableQuestions"][0]["weight"], 2)
        self.assertEqual(metadata["graphableQuestions"][0]["preferredChartType"], "bar")
        self.assertEqual(metadata["totalGraphableNodes"], 2)
        self.assertEqual(metadata["totalGraphableQuestions"], 3)

import unittest

from quiztrainer.engine.errors import InvalidConfigError
from quiztrainer.engine.models import (
    QuestionType,
    QuestionTypeFilter,
    Scoring,
    SessionAnswer,
    SessionConfig,
    SubTheme,
    Theme,
)
from tests.fixtures import make_config, make_pool, make_themes, select_sub_theme


class ThemeSelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pool = make_pool()
        self.theme_a, self.theme_b = make_themes(self.pool)

    def test_selected_theme_contributes_all_sub_themes(self) -> None:
        self.assertTrue(self.theme_a.contributing)
        self.assertEqual([st.id for st in self.theme_a.contributing_sub_themes()], ["a1", "a2"])

    def test_selected_sub_theme_restricts_contribution(self) -> None:
        theme = select_sub_theme(self.theme_a, "a2")
        self.assertTrue(theme.contributing)
        self.assertEqual([st.id for st in theme.contributing_sub_themes()], ["a2"])

    def test_unselected_theme_does_not_contribute(self) -> None:
        self.assertFalse(self.theme_b.contributing)
        self.assertEqual(self.theme_b.contributing_sub_themes(), [])

    def test_total_questions(self) -> None:
        self.assertEqual(self.theme_a.total_questions, 10)

    def test_negative_count_rejected(self) -> None:
        with self.assertRaises(ValueError):
            SubTheme(id="x", name="x", question_count=-1)

    def test_theme_json_round_trip(self) -> None:
        data = self.theme_a.to_json()
        self.assertEqual(data["subThemes"][0]["questionCount"], 7)
        self.assertEqual(Theme.from_json(data), self.theme_a)


class TypeFilterTests(unittest.TestCase):
    def test_accepts(self) -> None:
        self.assertTrue(QuestionTypeFilter.ALL.accepts(QuestionType.MULTIPLE))
        self.assertTrue(QuestionTypeFilter.SINGLE.accepts(QuestionType.SINGLE))
        self.assertFalse(QuestionTypeFilter.SINGLE.accepts(QuestionType.MULTIPLE))


class SessionConfigValidationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pool = make_pool()

    def test_valid_config(self) -> None:
        make_config(self.pool, 5).validate()
        make_config(self.pool, 5, timer_enabled=True, timer_duration=30).validate()

    def test_non_positive_count(self) -> None:
        with self.assertRaises(InvalidConfigError):
            make_config(self.pool, 0).validate()

    def test_timer_requires_positive_duration(self) -> None:
        with self.assertRaises(InvalidConfigError):
            make_config(self.pool, 5, timer_enabled=True).validate()
        with self.assertRaises(InvalidConfigError):
            make_config(self.pool, 5, timer_enabled=True, timer_duration=0).validate()

    def test_duration_without_timer(self) -> None:
        with self.assertRaises(InvalidConfigError):
            make_config(self.pool, 5, timer_duration=30).validate()

    def test_no_contributing_theme(self) -> None:
        themes = make_themes(self.pool, select_a=False, select_b=False)
        with self.assertRaises(InvalidConfigError):
            SessionConfig(themes=themes, question_count=1).validate()
        with self.assertRaises(InvalidConfigError):
            SessionConfig(themes=(), question_count=1).validate()

    def test_initial_scoring_must_be_zero(self) -> None:
        with self.assertRaises(InvalidConfigError):
            make_config(self.pool, 5, scoring=Scoring(correct=1)).validate()

    def test_config_json_round_trip(self) -> None:
        cfg = make_config(
            self.pool,
            4,
            timer_enabled=True,
            timer_duration=20,
            question_type_filter=QuestionTypeFilter.MULTIPLE,
        )
        data = cfg.to_json()
        self.assertEqual(data["questionTypeFilter"], "multiple")
        self.assertEqual(SessionConfig.from_json(data), cfg)


class SessionAnswerJsonTests(unittest.TestCase):
    def test_partial_key_only_when_set(self) -> None:
        single = SessionAnswer("q1", frozenset({"a"}), 1200, True)
        self.assertNotIn("isPartial", single.to_json())
        multi = SessionAnswer("q2", frozenset({"b", "a"}), 800, False, is_partial=True)
        data = multi.to_json()
        self.assertEqual(data["selectedAnswers"], ["a", "b"])
        self.assertTrue(data["isPartial"])
        self.assertEqual(SessionAnswer.from_json(data), multi)


if __name__ == "__main__":
    unittest.main()

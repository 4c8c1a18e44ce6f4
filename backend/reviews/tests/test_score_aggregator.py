from django.test import SimpleTestCase

from common.errors import InvalidInput
from reviews.services import score_aggregator
from reviews.services.score_aggregator import Category, RubricScoreSet, aggregate


class ScoreAggregatorTests(SimpleTestCase):
    def test_professionalism_only(self):
        result = aggregate({'[Professionalism] Compliance': 4, '[Professionalism] Punctuality': 5})
        self.assertEqual(result.total_score, 90)
        self.assertEqual(result.category_subtotals[Category.PROFESSIONALISM.value], 9)
        self.assertEqual(result.category_subtotals[Category.ENGAGEMENT.value], 0)

    def test_hod_labels_fold_into_categories(self):
        result = aggregate({'[Leadership] Department Duties': 2, '[Service] Community Engagement': 3})
        self.assertEqual(result.category_subtotals['responsibilities'], 2)
        self.assertEqual(result.category_subtotals['engagement'], 3)
        self.assertEqual(result.total_score, 50)

    def test_unknown_keys_ignored_and_empty_is_none(self):
        self.assertIsNone(aggregate({}).total_score)
        self.assertIsNone(aggregate({'[Misc] Anything': 5, 'no brackets': 3}).total_score)
        self.assertEqual(aggregate({'[Misc] x': 1, '[Development] y': 5}).total_score, 100)

    def test_rounds_half_up(self):
        # 9 / 40 * 100 = 22.5
        raw = {f'[Development] item {i}': 1 for i in range(7)}
        raw['[Engagement] extra'] = 2
        self.assertEqual(aggregate(raw).total_score, 23)
        self.assertEqual(score_aggregator.round_half_up(62.5), 63)
        self.assertEqual(score_aggregator.round_half_up(2.5), 3)

    def test_deterministic_and_bounded(self):
        raw = {f'[Professionalism] item {i}': (i % 5) + 1 for i in range(17)}
        first, second = aggregate(raw), aggregate(dict(raw))
        self.assertEqual(first, second)
        self.assertTrue(0 <= first.total_score <= 100)
        self.assertEqual(aggregate({'[Engagement] a': 1}).total_score, 20)
        self.assertEqual(aggregate({'[Engagement] a': 5}).total_score, 100)

    def test_strict_validation(self):
        with self.assertRaises(InvalidInput) as ctx:
            score_aggregator.validate_rubric({'[Hobbies] Chess': 3})
        self.assertEqual(ctx.exception.code, 'UnknownCategory')
        with self.assertRaises(InvalidInput) as ctx:
            score_aggregator.validate_rubric({'[Development] Training': 6})
        self.assertEqual(ctx.exception.code, 'ScoreOutOfRange')
        with self.assertRaises(InvalidInput):
            score_aggregator.validate_rubric({'[Development] Training': True})

    def test_flat_round_trip_keeps_keys(self):
        raw = {'[Professionalism] Compliance': 4, '[Service] Community Engagement': 2}
        self.assertEqual(RubricScoreSet.from_flat(raw).to_flat(), raw)

    def test_stored_total_takes_precedence(self):
        scores = {'rubric': {'[Professionalism] Compliance': 5}, 'totalScore': 42}
        self.assertEqual(score_aggregator.resolve_total_score(scores), 42)
        self.assertEqual(score_aggregator.resolve_total_score({'rubric': {'[Professionalism] Compliance': 4}}), 80)
        self.assertEqual(score_aggregator.resolve_total_score({'[Development] x': 3}), 60)
        self.assertIsNone(score_aggregator.resolve_total_score(None))

    def test_build_payload(self):
        payload = score_aggregator.build_scores_payload({'[Professionalism] Compliance': 4})
        self.assertEqual(payload['totalScore'], 80)
        self.assertEqual(payload['rubric'], {'[Professionalism] Compliance': 4})
        self.assertEqual(score_aggregator.build_scores_payload({}, total_override=70)['totalScore'], 70)
        with self.assertRaises(InvalidInput):
            score_aggregator.build_scores_payload({}, total_override=170)

    def test_promoted_displays_full_score(self):
        self.assertEqual(score_aggregator.display_score(71, 'PROMOTED'), 100)
        self.assertEqual(score_aggregator.display_score(71, 'ON_HOLD'), 71)

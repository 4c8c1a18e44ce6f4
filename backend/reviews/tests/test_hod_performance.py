from django.test import TestCase

from common.errors import NotFound, PreconditionFailed, Unauthorized
from reviews.models import HodPerformanceReview
from reviews.services import hod_performance
from reviews.tests.helpers import ReviewFixtureMixin


class HodPerformanceTests(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.build_review_fixture()

    def asst_review(self, **kwargs):
        params = {'comments': 'Runs the department well', 'scores': hod_performance.DEFAULT_HOD_RUBRIC}
        params.update(kwargs)
        return hod_performance.submit_asst_dean_hod_review(self.asst, self.hod.pk, 'START', **params)

    def dean_review(self, **kwargs):
        params = {'comments': 'Agreed', 'status': 'PROMOTED'}
        params.update(kwargs)
        return hod_performance.submit_dean_hod_review(self.dean, self.hod.pk, 'START', **params)

    def test_asst_dean_review_stores_role_and_total(self):
        review = self.asst_review()
        self.assertEqual(review.reviewer_role, 'ASST_DEAN')
        self.assertEqual(review.total_score, 60)
        self.assertEqual(review.scores['categorySubtotals']['responsibilities'], 12)

    def test_asst_dean_cannot_resubmit(self):
        self.asst_review()
        with self.assertRaises(PreconditionFailed) as ctx:
            self.asst_review(comments='again')
        self.assertEqual(ctx.exception.code, 'AlreadySubmitted')

    def test_dean_requires_asst_dean_and_is_final(self):
        with self.assertRaises(PreconditionFailed) as ctx:
            self.dean_review()
        self.assertEqual(ctx.exception.code, 'AsstDeanReviewIncomplete')

        self.asst_review()
        review = self.dean_review(total_score=77)
        self.assertEqual(review.reviewer_role, 'DEAN')
        self.assertEqual(review.total_score, 77)
        self.assertEqual(HodPerformanceReview.objects.filter(hod=self.hod).count(), 2)

        with self.assertRaises(PreconditionFailed) as ctx:
            self.dean_review(status='ON_HOLD')
        self.assertEqual(ctx.exception.code, 'AlreadyFinalized')

    def test_role_is_stored_not_derived(self):
        review = self.asst_review()
        self.asst.role = 'DEAN'
        self.asst.save()
        review.refresh_from_db()
        self.assertEqual(review.reviewer_role, 'ASST_DEAN')

    def test_authorization(self):
        with self.assertRaises(Unauthorized):
            hod_performance.submit_asst_dean_hod_review(self.dean, self.hod.pk, 'START', 'x')
        with self.assertRaises(NotFound):
            hod_performance.submit_asst_dean_hod_review(self.asst, self.teacher.pk, 'START', 'x')

    def test_lists(self):
        listing = hod_performance.hod_review_list(self.asst, 'START')
        self.assertEqual({e['hod']['id'] for e in listing}, {self.hod.pk, self.other_hod.pk})
        self.assertEqual(listing[0]['rubric'], hod_performance.DEFAULT_HOD_RUBRIC)
        self.assertEqual(hod_performance.hod_review_list(self.dean, 'START'), [])

        self.asst_review()
        listing = hod_performance.hod_review_list(self.dean, 'START')
        self.assertEqual([e['hod']['id'] for e in listing], [self.hod.pk])
        self.assertEqual(listing[0]['asstDeanReview']['totalScore'], 60)

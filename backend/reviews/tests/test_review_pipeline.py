from unittest import mock

from django.test import TestCase

from common.errors import Conflict, InvalidInput, NotFound, PreconditionFailed, Unauthorized
from reviews.models import AsstReview, FinalReview, HodReview
from reviews.services import review_pipeline
from reviews.services.pipeline_state import PipelineState, pipeline_state
from reviews.tests.helpers import ReviewFixtureMixin


class ReviewPipelineTests(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.build_review_fixture()

    def hod_review(self, **kwargs):
        params = {'comments': 'Solid year', 'scores': self.RUBRIC}
        params.update(kwargs)
        return review_pipeline.submit_hod_review(self.hod, self.teacher.pk, 'START', **params)

    def asst_review(self, **kwargs):
        params = {'comments': 'Agree with HOD', 'scores': self.RUBRIC}
        params.update(kwargs)
        return review_pipeline.submit_asst_review(self.asst, self.teacher.pk, 'START', **params)

    def finalize(self, **kwargs):
        params = {'final_comment': 'Well done', 'final_score': 88, 'status': 'PROMOTED'}
        params.update(kwargs)
        return review_pipeline.submit_final_review(self.dean, self.teacher.pk, 'START', **params)

    def test_state_progression(self):
        self.assertEqual(pipeline_state(self.teacher2, 'START', self.year), PipelineState.NO_SUBMISSION)
        self.assertEqual(pipeline_state(self.teacher, 'START', self.year), PipelineState.SELF_SUBMITTED)
        self.hod_review()
        self.assertEqual(pipeline_state(self.teacher, 'START', self.year), PipelineState.HOD_REVIEWED)
        self.asst_review()
        self.assertEqual(pipeline_state(self.teacher, 'START', self.year), PipelineState.ASST_REVIEWED)
        self.finalize()
        self.assertEqual(pipeline_state(self.teacher, 'START', self.year), PipelineState.DEAN_FINALIZED)

    def test_hod_review_stores_scores_document(self):
        review = self.hod_review()
        self.assertTrue(review.submitted)
        self.assertEqual(review.version, 1)
        self.assertEqual(review.scores['rubric'], self.RUBRIC)
        self.assertEqual(review.scores['categorySubtotals']['professionalism'], 9)
        self.assertEqual(review.scores['totalScore'], 80)

        review = self.hod_review(score=75)
        self.assertEqual(review.version, 2)
        self.assertEqual(review.scores['totalScore'], 75)

    def test_hod_review_requires_self_submission(self):
        with self.assertRaises(PreconditionFailed) as ctx:
            review_pipeline.submit_hod_review(self.hod, self.teacher2.pk, 'START', 'x')
        self.assertEqual(ctx.exception.code, 'PrecursorMissing')

    def test_hod_of_other_department_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            review_pipeline.submit_hod_review(self.other_hod, self.teacher.pk, 'START', 'x')
        with self.assertRaises(NotFound):
            review_pipeline.submit_hod_review(self.hod, 987654, 'START', 'x')

    def test_asst_review_requires_submitted_hod_review(self):
        with self.assertRaises(PreconditionFailed) as ctx:
            self.asst_review()
        self.assertEqual(ctx.exception.code, 'HodReviewIncomplete')

        self.hod_review(submitted=False)
        with self.assertRaises(PreconditionFailed):
            self.asst_review()
        self.assertFalse(AsstReview.objects.exists())

    def test_draft_does_not_unsubmit(self):
        self.hod_review()
        review = self.hod_review(submitted=False, comments='edited')
        self.assertTrue(review.submitted)
        self.assertEqual(review.comments, 'edited')

    def test_final_review_requires_both_stages(self):
        self.hod_review()
        with self.assertRaises(PreconditionFailed) as ctx:
            self.finalize()
        self.assertEqual(ctx.exception.code, 'AsstReviewIncomplete')

    def test_finalized_review_is_immutable(self):
        self.hod_review()
        self.asst_review()
        review = self.finalize()
        self.assertTrue(review.submitted)

        with self.assertRaises(PreconditionFailed) as ctx:
            self.finalize(status='ON_HOLD')
        self.assertEqual(ctx.exception.code, 'AlreadyFinalized')
        with self.assertRaises(PreconditionFailed) as ctx:
            self.hod_review(comments='late change')
        self.assertEqual(ctx.exception.code, 'AlreadyFinalized')
        with self.assertRaises(PreconditionFailed):
            self.asst_review()
        self.assertEqual(FinalReview.objects.get().status, 'PROMOTED')

    def test_dean_draft_can_be_revised_before_finalizing(self):
        self.hod_review()
        self.asst_review()
        draft = self.finalize(submitted=False, status=None)
        self.assertFalse(draft.submitted)
        final = self.finalize(status='NEEDS_IMPROVEMENT', expected_version=draft.version)
        self.assertEqual(final.version, 2)
        self.assertEqual(final.status, 'NEEDS_IMPROVEMENT')

    def test_final_status_validated(self):
        self.hod_review()
        self.asst_review()
        with self.assertRaises(InvalidInput):
            self.finalize(status=None)
        with self.assertRaises(InvalidInput):
            self.finalize(status='FIRED')

    def test_rubric_validation(self):
        with self.assertRaises(InvalidInput) as ctx:
            self.hod_review(scores={'[Professionalism] Compliance': 9})
        self.assertEqual(ctx.exception.code, 'ScoreOutOfRange')
        with self.assertRaises(InvalidInput) as ctx:
            self.hod_review(scores={'[Hobbies] Chess': 3})
        self.assertEqual(ctx.exception.code, 'UnknownCategory')
        self.assertFalse(HodReview.objects.exists())

    def test_stale_client_version_is_conflict(self):
        first = self.hod_review(submitted=False)
        self.hod_review(submitted=False, expected_version=first.version)
        with self.assertRaises(Conflict):
            self.hod_review(expected_version=first.version)

    def test_lost_update_is_conflict(self):
        self.hod_review(submitted=False)
        real_filter = HodReview.objects.filter

        def racing_filter(*args, **kwargs):
            if 'version' in kwargs:
                # another writer bumped the row between read and write
                HodReview.objects.update(version=99)
            return real_filter(*args, **kwargs)

        with mock.patch.object(HodReview.objects, 'filter', side_effect=racing_filter):
            with self.assertRaises(Conflict):
                self.hod_review()
        self.assertFalse(HodReview.objects.get().submitted)

    def test_review_queues(self):
        queue = review_pipeline.review_queue(self.hod, 'START')
        self.assertEqual([e['teacher']['id'] for e in queue], [self.teacher.pk])
        self.assertEqual(queue[0]['state'], 'SELF_SUBMITTED')
        self.assertEqual(review_pipeline.review_queue(self.asst, 'START'), [])

        self.hod_review()
        queue = review_pipeline.review_queue(self.asst, 'START')
        self.assertEqual(queue[0]['hodReview']['totalScore'], 80)
        self.assertEqual(review_pipeline.review_queue(self.dean, 'START'), [])
        with self.assertRaises(Unauthorized):
            review_pipeline.review_queue(self.teacher, 'START')

from django.contrib.auth import get_user_model

from accounts.models import Role
from evaluations.services import submission_ledger
from evaluations.tests.helpers import EvaluationFixtureMixin


class ReviewFixtureMixin(EvaluationFixtureMixin):
    """Evaluation fixture where ``teacher`` has submitted and ``teacher2`` has not."""

    RUBRIC = {
        '[Professionalism] Compliance': 4,
        '[Professionalism] Punctuality/Attendance': 5,
        '[Development] Research and Publications': 3,
    }

    def build_review_fixture(self):
        self.build_fixture()
        User = get_user_model()
        self.asst = User.objects.create(username='asst', role=Role.ASST_DEAN)
        self.dean = User.objects.create(username='dean', role=Role.DEAN)
        self.questions = [self.make_question(i, published=True) for i in (1, 2)]
        self.open_for_answers()
        submission_ledger.submit_evaluation(
            self.teacher, 'START', [{'questionId': q.pk, 'answer': '4'} for q in self.questions], 'My year',
        )

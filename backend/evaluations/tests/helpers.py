from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from academics.models import Department
from accounts.models import Role
from evaluations.models import Question
from terms.models import Term, TermState, TermStatus, Visibility
from terms.services import term_manager


class EvaluationFixtureMixin:
    """Department CS with an HOD, two teachers and an active START term."""

    def build_fixture(self, visibility=Visibility.DRAFT):
        User = get_user_model()
        self.year = term_manager.current_year()
        self.dept = Department.objects.create(code='CS', name='Computer Science')
        self.other_dept = Department.objects.create(code='EE', name='Electrical')
        self.admin = User.objects.create(username='admin', role=Role.ADMIN)
        self.hod = User.objects.create(username='hod', role=Role.HOD, department=self.dept)
        self.other_hod = User.objects.create(username='hod_ee', role=Role.HOD, department=self.other_dept)
        self.teacher = User.objects.create(username='teacher', role=Role.TEACHER, department=self.dept)
        self.teacher2 = User.objects.create(username='teacher2', role=Role.TEACHER, department=self.dept)
        now = timezone.now()
        self.term = Term.objects.create(
            name='Start', year=self.year, status=TermStatus.START,
            start_date=now - timedelta(days=1), end_date=now + timedelta(days=14),
        )
        self.term.departments.add(self.dept, self.other_dept)
        self.state = TermState.objects.create(
            department=self.dept, year=self.year, active_term=TermStatus.START,
            visibility=visibility, start_term_visibility=visibility,
        )

    def make_question(self, order, qtype=Question.QuestionType.MCQ, published=False, **kwargs):
        defaults = {
            'department': self.dept,
            'term': TermStatus.START,
            'year': self.year,
            'question': f'Question {order}',
            'type': qtype,
            'order': order,
            'is_published': published,
        }
        if qtype in Question.CHOICE_TYPES:
            defaults.update(options=['1', '2', '3', '4', '5'], option_scores=[1, 2, 3, 4, 5])
        defaults.update(kwargs)
        return Question.objects.create(**defaults)

    def open_for_answers(self):
        self.state.visibility = Visibility.PUBLISHED
        self.state.start_term_visibility = Visibility.PUBLISHED
        self.state.save()

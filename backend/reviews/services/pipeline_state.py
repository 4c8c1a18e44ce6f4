from enum import IntEnum
from typing import Dict, Iterable

from evaluations.services.submission_ledger import is_submitted, submitted_keys
from reviews.models import AsstReview, FinalReview, HodReview


class PipelineState(IntEnum):
    NO_SUBMISSION = 0
    SELF_SUBMITTED = 1
    HOD_REVIEWED = 2
    ASST_REVIEWED = 3
    DEAN_FINALIZED = 4


def derive_state(self_submitted: bool, hod=None, asst=None, final=None) -> PipelineState:
    """Furthest stage given the submission flag and the review rows (any may be None)."""
    if final is not None and final.submitted:
        return PipelineState.DEAN_FINALIZED
    if asst is not None and asst.submitted:
        return PipelineState.ASST_REVIEWED
    if hod is not None and hod.submitted:
        return PipelineState.HOD_REVIEWED
    if self_submitted:
        return PipelineState.SELF_SUBMITTED
    return PipelineState.NO_SUBMISSION


def pipeline_state(teacher, term: str, year: int) -> PipelineState:
    """Furthest stage reached by ``teacher``'s evaluation for (term, year)."""
    key = {'teacher': teacher, 'term': term, 'year': year}
    hod, asst, final = (model.objects.filter(**key).first() for model in (HodReview, AsstReview, FinalReview))
    reviewed = any(r is not None and r.submitted for r in (hod, asst, final))
    return derive_state(reviewed or is_submitted(teacher, term, year), hod, asst, final)


def pipeline_states(teachers: Iterable, term: str, year: int, hod_rows: Dict = None, asst_rows: Dict = None,
                    final_rows: Dict = None) -> Dict[int, PipelineState]:
    """``pipeline_state`` for many teachers; review maps are keyed by teacher id and loaded when omitted."""
    teachers = list(teachers)

    def rows(model, given):
        if given is not None:
            return given
        return {r.teacher_id: r for r in model.objects.filter(teacher__in=teachers, term=term, year=year)}

    hod_rows = rows(HodReview, hod_rows)
    asst_rows = rows(AsstReview, asst_rows)
    final_rows = rows(FinalReview, final_rows)
    submitted = submitted_keys(teachers, year, [term])
    return {
        t.pk: derive_state((t.pk, term) in submitted, hod_rows.get(t.pk), asst_rows.get(t.pk), final_rows.get(t.pk))
        for t in teachers
    }


# services/assessment-service/src/apps/core/tests/test_services.py
"""
Assessment Service Service Layer Tests

Tests for token, attempt, assignment and review business logic.
"""

import threading
import time
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from apps.core.exceptions import (
    ValidationError,
    NotFoundError,
    ExpiredError,
    AlreadyUsedError,
    ForbiddenError,
    InvalidStateError,
    AttemptLimitExceededError,
    NoPendingRequestsError,
    NoEligibleStaffError,
    CollaboratorError,
)
from apps.core.models import (
    AttemptStatus,
    TokenStatus,
    RequestStatus,
    SubmissionStatus,
    CallerContext,
    Pool,
)
from apps.core.services import (
    TokenService,
    AttemptService,
    AssignmentService,
    ReviewService,
)
from apps.core.timers import AttemptTimer

from .fakes import make_request, make_staff

ALPHABET = set('ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789')


# =============================================================================
# TOKENS
# =============================================================================

class TestTokenService:
    """Tests for TokenService."""

    @pytest.fixture(autouse=True)
    def setup(self, portal, published_quiz, clock, trainer_context):
        self.portal = portal
        self.clock = clock
        self.trainer = trainer_context
        self.service = TokenService(portal)

    def issue(self, **kwargs):
        return self.service.issue(self.trainer, 'quiz-1', **kwargs)

    def test_issue_token(self):
        token = self.issue(expiration_hours=24, instructions='Closed book')

        assert len(token.token) == 8
        assert set(token.token) <= ALPHABET
        assert token.status == TokenStatus.ACTIVE
        assert token.trainer_id == 'trainer-1'
        assert token.quiz_title == 'A320 Systems'
        assert token.expires_at == self.clock.now + timedelta(hours=24)

    def test_issue_defaults_to_a_day(self):
        token = self.issue()

        assert token.expires_at - token.created_at == timedelta(hours=24)

    def test_issue_bound_to_student(self):
        token = self.issue(student_id='pilot-7', student_name='Sam Pilot')

        assert token.status == TokenStatus.ASSIGNED
        assert token.assigned_student_name == 'Sam Pilot'

    def test_issue_for_draft_quiz(self, quiz_data):
        self.portal.add_quiz({**quiz_data, 'id': 'quiz-draft', 'status': 'draft'})

        with pytest.raises(ValidationError):
            self.service.issue(self.trainer, 'quiz-draft')

    def test_issue_for_unknown_quiz(self):
        with pytest.raises(ValidationError):
            self.service.issue(self.trainer, 'missing')

    def test_issue_requires_positive_lifetime(self):
        with pytest.raises(ValidationError):
            self.issue(expiration_hours=0)

    def test_student_cannot_issue(self, student_context):
        with pytest.raises(ForbiddenError):
            self.service.issue(student_context, 'quiz-1')

    def test_issue_regenerates_on_collision(self):
        self.portal.add_token({'id': 'old', 'token': 'AAAAAAAA', 'quizId': 'quiz-1', 'status': 'active'})

        with patch.object(self.service, 'generate_token_string', side_effect=['AAAAAAAA', 'BBBBBBBB']):
            token = self.issue()

        assert token.token == 'BBBBBBBB'

    def test_redeem_does_not_consume(self, student_context):
        token = self.issue()

        redeemed = self.service.redeem(student_context, token.token)

        assert redeemed.quiz.id == 'quiz-1'
        assert redeemed.token.id == token.id
        assert self.portal.tokens[token.id]['status'] == TokenStatus.ACTIVE

    def test_redeem_is_case_insensitive(self, student_context):
        token = self.issue()

        assert self.service.redeem(student_context, token.token.lower()).token.id == token.id

    def test_redeem_unknown_token(self, student_context):
        with pytest.raises(NotFoundError):
            self.service.redeem(student_context, 'ZZZZZZZZ')

    def test_redeem_at_hour_25_is_expired(self, student_context):
        token = self.issue(expiration_hours=24)
        self.clock.advance(hours=25)

        with pytest.raises(ExpiredError):
            self.service.redeem(student_context, token.token)

        assert self.portal.tokens[token.id]['status'] == TokenStatus.ACTIVE

    def test_redeem_cancelled_token(self, student_context):
        token = self.issue()
        self.service.cancel(self.trainer, token.id)

        with pytest.raises(AlreadyUsedError):
            self.service.redeem(student_context, token.token)

    def test_redeem_by_other_student(self, student_context, other_student_context):
        token = self.issue(student_name='Kim Pilot')

        with pytest.raises(ForbiddenError):
            self.service.redeem(student_context, token.token)

        assert self.service.redeem(other_student_context, token.token).token.id == token.id

    def test_redeem_for_unpublished_quiz(self, student_context):
        token = self.issue()
        self.portal.quizzes['quiz-1']['status'] = 'archived'

        with pytest.raises(NotFoundError):
            self.service.redeem(student_context, token.token)

    def test_assign_active_token(self):
        token = self.issue()

        assigned = self.service.assign(self.trainer, token.id, 'pilot-7', 'Sam Pilot')

        assert assigned.status == TokenStatus.ASSIGNED
        assert self.portal.tokens[token.id]['assignedStudentId'] == 'pilot-7'

    def test_assign_requires_active_token(self):
        token = self.issue()
        self.service.assign(self.trainer, token.id, 'pilot-7', 'Sam Pilot')

        with pytest.raises(InvalidStateError):
            self.service.assign(self.trainer, token.id, 'pilot-8', 'Kim Pilot')

    def test_assign_expired_token(self):
        token = self.issue(expiration_hours=1)
        self.clock.advance(hours=2)

        with pytest.raises(InvalidStateError):
            self.service.assign(self.trainer, token.id, 'pilot-7', 'Sam Pilot')

    def test_mark_used_is_idempotent(self):
        token = self.issue()

        first = self.service.mark_used(token.id)
        second = self.service.mark_used(token.id)

        assert first.status == second.status == TokenStatus.USED
        assert len(self.portal.calls_to('update_token')) == 1
        assert self.portal.tokens[token.id]['usedAt'] == '2024-03-01T09:00:00.000Z'

    def test_cancel_used_token(self):
        token = self.issue()
        self.service.mark_used(token.id)

        with pytest.raises(InvalidStateError):
            self.service.cancel(self.trainer, token.id)


# =============================================================================
# ATTEMPTS
# =============================================================================

class TestAttemptService:
    """Tests for AttemptService."""

    @pytest.fixture(autouse=True)
    def setup(self, portal, published_quiz, clock, student_context):
        self.portal = portal
        self.clock = clock
        self.student = student_context
        self.notifier = Mock()
        self.service = AttemptService(portal, notifier=self.notifier)

    def start_and_answer(self, mc='opt-green', tf='false'):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.service.save_answer(self.student, attempt.id, 'q-mc', mc)
        self.service.save_answer(self.student, attempt.id, 'q-tf', tf)
        return attempt

    def add_finished(self, attempt_id, status, student_id='pilot-7'):
        self.portal.add_attempt({
            'id': attempt_id,
            'quizId': 'quiz-1',
            'studentId': student_id,
            'status': status,
            'startTime': '2024-02-01T09:00:00.000Z',
            'endTime': '2024-02-01T09:05:00.000Z',
            'score': 5,
            'maxScore': 15,
            'answers': [],
        })

    def test_start_fixes_max_score(self, published_quiz):
        attempt = self.service.start(self.student, quiz_id='quiz-1')

        assert attempt.max_score == sum(q.points for q in published_quiz.questions) == 15
        assert attempt.status == AttemptStatus.IN_PROGRESS
        assert attempt.start_time == self.clock.now
        assert attempt.end_time is None
        assert attempt.answers == []

    def test_start_resumes_open_attempt(self):
        first = self.service.start(self.student, quiz_id='quiz-1')
        second = self.service.start(self.student, quiz_id='quiz-1')

        assert second.id == first.id
        assert len(self.portal.calls_to('create_attempt')) == 1

    def test_attempt_limit(self):
        self.add_finished('old-1', 'completed')
        self.add_finished('old-2', 'abandoned')

        with pytest.raises(AttemptLimitExceededError):
            self.service.start(self.student, quiz_id='quiz-1')

    def test_other_students_attempts_do_not_count(self):
        self.add_finished('old-1', 'completed', student_id='pilot-8')
        self.add_finished('old-2', 'completed', student_id='pilot-8')

        assert self.service.start(self.student, quiz_id='quiz-1').is_active

    def test_start_unpublished_quiz(self, quiz_data):
        self.portal.add_quiz({**quiz_data, 'id': 'quiz-draft', 'status': 'draft'})

        with pytest.raises(NotFoundError):
            self.service.start(self.student, quiz_id='quiz-draft')

    def test_start_with_token(self, trainer_context):
        token = TokenService(self.portal).issue(trainer_context, 'quiz-1')

        attempt = self.service.start(self.student, token_string=token.token)

        assert attempt.token_id == token.id
        assert attempt.quiz_id == 'quiz-1'
        assert self.portal.tokens[token.id]['status'] == TokenStatus.ACTIVE

    def test_save_answer_upserts(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-blue')
        self.service.save_answer(self.student, attempt.id, 'q-tf', 'true')
        self.clock.advance(seconds=3)

        updated = self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-green')

        stored = self.portal.attempts[attempt.id]['answers']
        assert [a['questionId'] for a in stored] == ['q-mc', 'q-tf']
        assert stored[0]['answerText'] == 'opt-green'
        assert updated.last_saved == self.clock.now
        assert 'isCorrect' not in stored[0]

    def test_stale_save_is_dropped(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-green', initiated_at=self.clock.now)

        self.service.save_answer(
            self.student, attempt.id, 'q-mc', 'opt-blue',
            initiated_at=self.clock.now - timedelta(seconds=2),
        )

        assert self.portal.attempts[attempt.id]['answers'][0]['answerText'] == 'opt-green'

    def test_save_answer_for_other_student(self, other_student_context):
        attempt = self.service.start(self.student, quiz_id='quiz-1')

        with pytest.raises(ForbiddenError):
            self.service.save_answer(other_student_context, attempt.id, 'q-mc', 'opt-green')

    def test_save_after_submit(self):
        attempt = self.start_and_answer()
        self.service.submit(self.student, attempt.id)

        with pytest.raises(InvalidStateError):
            self.service.save_answer(self.student, attempt.id, 'q-tf', 'true')

    def test_submit_scores_attempt(self):
        attempt = self.start_and_answer(mc='opt-green', tf='false')
        self.clock.advance(minutes=4)

        result = self.service.submit(self.student, attempt.id)

        assert result.status == AttemptStatus.COMPLETED
        assert result.score == 10
        assert result.max_score == 15
        assert result.end_time == self.clock.now
        stored = self.portal.attempts[attempt.id]
        assert stored['status'] == 'completed'
        assert stored['score'] == 10
        assert stored['endTime'] == '2024-03-01T09:04:00.000Z'
        assert [a['isCorrect'] for a in stored['answers']] == [True, False]

    def test_second_submit_is_noop(self):
        attempt = self.start_and_answer()

        first = self.service.submit(self.student, attempt.id)
        second = self.service.submit(self.student, attempt.id, trigger='timer')

        assert second.status == AttemptStatus.COMPLETED
        assert second.score == first.score
        completions = [c for c in self.portal.calls_to('update_attempt') if c[2].get('status') == 'completed']
        assert len(completions) == 1

    def test_racing_submits_grade_once(self):
        attempt = self.start_and_answer()
        results = []

        def submit(trigger):
            results.append(self.service.submit(self.student, attempt.id, trigger=trigger))

        threads = [threading.Thread(target=submit, args=(t,)) for t in ('manual', 'timer')]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert [r.status for r in results] == [AttemptStatus.COMPLETED, AttemptStatus.COMPLETED]
        completions = [c for c in self.portal.calls_to('update_attempt') if c[2].get('status') == 'completed']
        assert len(completions) == 1

    def test_timer_submit_waits_for_save_in_flight(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-green')
        read_attempt = self.portal.get_attempt
        timer_thread = threading.Thread(
            target=self.service.submit, args=(self.student, attempt.id), kwargs={'trigger': 'timer'}
        )

        def read_then_let_timer_fire(attempt_id):
            if timer_thread.ident is None:
                timer_thread.start()
                time.sleep(0.2)
            return read_attempt(attempt_id)

        with patch.object(self.portal, 'get_attempt', side_effect=read_then_let_timer_fire):
            self.service.save_answer(self.student, attempt.id, 'q-tf', 'true')
            timer_thread.join(timeout=10)

        stored = self.portal.attempts[attempt.id]
        assert stored['status'] == 'completed'
        assert stored['score'] == 15
        assert [a['isCorrect'] for a in stored['answers']] == [True, True]
        assert [a['points'] for a in stored['answers']] == [10, 5]

    def test_submit_by_other_student(self, other_student_context):
        attempt = self.start_and_answer()

        with pytest.raises(ForbiddenError):
            self.service.submit(other_student_context, attempt.id)

    def test_failed_submit_keeps_answers(self):
        attempt = self.start_and_answer()
        self.portal.fail_on('update_attempt')

        with pytest.raises(CollaboratorError):
            self.service.submit(self.student, attempt.id)

        stored = self.portal.attempts[attempt.id]
        assert stored['status'] == 'in_progress'
        assert len(stored['answers']) == 2

        self.portal.recover()
        assert self.service.submit(self.student, attempt.id).score == 10

    def test_token_gated_submit(self, trainer_context):
        token = TokenService(self.portal).issue(trainer_context, 'quiz-1')
        attempt = self.service.start(self.student, token_string=token.token)
        self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-green')

        self.service.submit(self.student, attempt.id)

        assert self.portal.tokens[token.id]['status'] == TokenStatus.USED
        submission = self.portal.find_submission(attempt.id)
        assert submission.trainer_id == 'trainer-1'
        assert submission.score == 10
        assert submission.status == SubmissionStatus.SUBMITTED
        self.notifier.notify_submission.assert_called_once_with('trainer-1', 'Sam Pilot', 'A320 Systems')

        with pytest.raises(AlreadyUsedError):
            TokenService(self.portal).redeem(self.student, token.token)

    def test_second_submit_does_not_touch_token(self, trainer_context):
        token = TokenService(self.portal).issue(trainer_context, 'quiz-1')
        attempt = self.service.start(self.student, token_string=token.token)
        self.service.submit(self.student, attempt.id)

        self.service.submit(self.student, attempt.id)

        assert len(self.portal.calls_to('update_token')) == 1
        assert len(self.portal.calls_to('create_submission')) == 1

    def test_submission_failure_does_not_undo_submit(self, trainer_context):
        token = TokenService(self.portal).issue(trainer_context, 'quiz-1')
        attempt = self.service.start(self.student, token_string=token.token)
        self.portal.fail_on('create_submission')

        result = self.service.submit(self.student, attempt.id)

        assert result.is_completed
        assert self.portal.tokens[token.id]['status'] == TokenStatus.USED

    def test_notification_failure_does_not_block_submit(self, trainer_context, queued_notifications):
        queued_notifications.side_effect = ConnectionError('broker down')
        service = AttemptService(self.portal)
        token = TokenService(self.portal).issue(trainer_context, 'quiz-1')
        attempt = service.start(self.student, token_string=token.token)

        assert service.submit(self.student, attempt.id).is_completed
        queued_notifications.assert_called_once()

    def test_sweep_submits_overdue_attempt(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.service.save_answer(self.student, attempt.id, 'q-mc', 'opt-green')
        self.clock.advance(seconds=601)

        submitted = self.service.expire_overdue()

        assert [a.id for a in submitted] == [attempt.id]
        assert submitted[0].score == 10
        assert self.portal.attempts[attempt.id]['status'] == 'completed'

    def test_sweep_leaves_running_attempt(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.clock.advance(seconds=599)

        assert self.service.expire_overdue() == []
        assert self.portal.attempts[attempt.id]['status'] == 'in_progress'

    def test_sweep_ignores_untimed_quiz(self, essay_quiz):
        attempt = self.service.start(self.student, quiz_id=essay_quiz.id)
        self.clock.advance(days=3)

        assert self.service.expire_overdue() == []
        assert self.portal.attempts[attempt.id]['status'] == 'in_progress'

    def test_sweep_continues_after_failure(self, other_student_context):
        first = self.service.start(self.student, quiz_id='quiz-1')
        second = self.service.start(other_student_context, quiz_id='quiz-1')
        self.clock.advance(minutes=11)
        self.portal.fail_on('update_attempt', first.id)

        submitted = self.service.expire_overdue()

        assert [a.id for a in submitted] == [second.id]

    def test_abandon(self, admin_context):
        attempt = self.service.start(self.student, quiz_id='quiz-1')

        result = self.service.abandon(admin_context, attempt.id)

        assert result.status == AttemptStatus.ABANDONED
        assert result.end_time == self.clock.now
        assert result.score is None
        with pytest.raises(InvalidStateError):
            self.service.submit(self.student, attempt.id)

    def test_student_cannot_abandon(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')

        with pytest.raises(ForbiddenError):
            self.service.abandon(self.student, attempt.id)

    def test_get_status(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.clock.advance(seconds=90)

        status = self.service.get_status(self.student, attempt.id)

        assert status['time_remaining'] == 510
        assert status['percentage'] is None

    def test_timer_submits_when_time_runs_out(self):
        attempt = self.service.start(self.student, quiz_id='quiz-1')
        self.clock.advance(minutes=10)

        timer = self.service.start_timer(self.student, attempt.id)
        timer.join(timeout=5)

        assert timer.fired
        assert self.portal.attempts[attempt.id]['status'] == 'completed'

    def test_no_timer_for_untimed_quiz(self, essay_quiz):
        attempt = self.service.start(self.student, quiz_id=essay_quiz.id)

        assert self.service.start_timer(self.student, attempt.id) is None


class TestAttemptTimer:
    """Tests for AttemptTimer."""

    def setup_method(self):
        self.now = None
        self.expired = Mock()

    def make_timer(self, clock):
        self.now = clock.now
        return AttemptTimer(clock.now + timedelta(seconds=2), self.expired, clock=lambda: self.now)

    def test_fires_once_at_zero(self, clock):
        timer = self.make_timer(clock)

        assert timer.tick() == 2
        self.now += timedelta(seconds=2)
        assert timer.tick() == 0
        timer.tick()

        self.expired.assert_called_once_with()

    def test_holds_fire_in_the_last_second(self, clock):
        timer = self.make_timer(clock)
        self.now += timedelta(seconds=1, milliseconds=100)

        assert timer.tick() == 1
        assert timer.remaining_seconds == 1
        self.expired.assert_not_called()

        self.now += timedelta(milliseconds=900)
        assert timer.tick() == 0
        self.expired.assert_called_once_with()

    def test_cancelled_timer_does_not_fire(self, clock):
        timer = self.make_timer(clock)
        timer.cancel()
        self.now += timedelta(seconds=5)

        timer.tick()

        self.expired.assert_not_called()

    def test_callback_errors_are_contained(self, clock):
        timer = self.make_timer(clock)
        self.expired.side_effect = CollaboratorError()
        self.now += timedelta(seconds=3)

        timer.tick()

        assert timer.fired


# =============================================================================
# ASSIGNMENTS
# =============================================================================

class TestAssignmentService:
    """Tests for AssignmentService."""

    @pytest.fixture(autouse=True)
    def setup(self, portal, examiner_pool, trainer_context, admin_context):
        self.portal = portal
        self.fill = examiner_pool
        self.trainer = trainer_context
        self.admin = admin_context
        self.service = AssignmentService(portal, Pool.EXAMINER)

    def owner(self, request_id):
        return self.portal.requests[Pool.EXAMINER][request_id].get('assignedExaminerId')

    def load(self, staff_id):
        return self.portal.staff[Pool.EXAMINER][staff_id]['currentAssignments']

    def test_five_requests_two_staff(self):
        self.fill(
            requests=[make_request(f'r{i}') for i in range(1, 6)],
            staff=[make_staff('e1'), make_staff('e2')],
        )

        result = self.service.auto_assign(self.trainer)

        assert result.counts_by_staff() == {'e1': 3, 'e2': 2}
        assert [self.owner(f'r{i}') for i in range(1, 6)] == ['e1', 'e2', 'e1', 'e2', 'e1']
        assert self.load('e1') == 3
        assert self.load('e2') == 2
        assert self.portal.requests[Pool.EXAMINER]['r1']['status'] == RequestStatus.ASSIGNED

    def test_three_requests_one_examiner(self):
        self.fill(requests=[make_request('r1'), make_request('r2'), make_request('r3')], staff=[make_staff('e1')])

        result = self.service.auto_assign(self.admin)

        assert result.assigned_count == 3
        assert result.counts_by_staff() == {'e1': 3}
        assert self.load('e1') == 3

    def test_no_pending_requests(self):
        self.fill(requests=[make_request('r1', status='assigned')], staff=[make_staff('e1')])

        with pytest.raises(NoPendingRequestsError):
            self.service.auto_assign(self.trainer)

    def test_no_eligible_staff(self):
        self.fill(
            requests=[make_request('r1')],
            staff=[make_staff('e1', active=False), make_staff('e2', current=5, maximum=5)],
        )

        with pytest.raises(NoEligibleStaffError):
            self.service.auto_assign(self.trainer)

    def test_only_pending_requests_are_assigned(self):
        self.fill(
            requests=[make_request('r1', status='completed'), make_request('r2')],
            staff=[make_staff('e1')],
        )

        result = self.service.auto_assign(self.trainer)

        assert [o.request_id for o in result.assigned] == ['r2']

    def test_partial_failure_continues(self):
        self.fill(
            requests=[make_request(f'r{i}') for i in range(1, 6)],
            staff=[make_staff('e1'), make_staff('e2')],
        )
        self.portal.fail_on('update_request', 'r2')

        result = self.service.auto_assign(self.trainer)

        assert result.assigned_count == 4
        assert result.failed_count == 1
        assert result.failed[0].request_id == 'r2'
        assert self.portal.requests[Pool.EXAMINER]['r2']['status'] == RequestStatus.PENDING
        assert self.load('e1') == 3
        assert self.load('e2') == 1

    def test_capacity_rechecked_within_batch(self):
        self.fill(
            requests=[make_request(f'r{i}') for i in range(1, 5)],
            staff=[make_staff('e1', current=4), make_staff('e2')],
        )

        result = self.service.auto_assign(self.trainer, recheck_capacity=True)

        assert result.counts_by_staff() == {'e1': 1, 'e2': 3}
        assert self.load('e1') == 5

    def test_snapshot_mode_can_over_assign(self):
        self.fill(
            requests=[make_request(f'r{i}') for i in range(1, 5)],
            staff=[make_staff('e1', current=4), make_staff('e2')],
        )

        result = self.service.auto_assign(self.trainer, recheck_capacity=False)

        assert result.counts_by_staff() == {'e1': 2, 'e2': 2}
        assert self.load('e1') == 6

    def test_full_pool_leaves_requests_pending(self):
        self.fill(
            requests=[make_request('r1'), make_request('r2'), make_request('r3')],
            staff=[make_staff('e1', current=4)],
        )

        result = self.service.auto_assign(self.trainer, recheck_capacity=True)

        assert result.assigned_count == 1
        assert result.unassigned == ['r2', 'r3']
        assert self.portal.requests[Pool.EXAMINER]['r3']['status'] == RequestStatus.PENDING

    def test_missing_capacity_uses_default(self):
        self.fill(requests=[make_request('r1')], staff=[make_staff('e1', current=4, maximum=None)])

        assert self.service.auto_assign(self.trainer).assigned_count == 1

    def test_scheduler_roles(self, examiner_context, student_context):
        self.fill(requests=[make_request('r1')], staff=[make_staff('e1')])

        for context in (examiner_context, student_context):
            with pytest.raises(ForbiddenError):
                self.service.auto_assign(context)

    def test_trainer_pool_uses_trainer_fields(self):
        self.portal.add_request(Pool.TRAINER, make_request('t-r1'))
        self.portal.add_staff(Pool.TRAINER, make_staff('t1'))

        AssignmentService(self.portal, Pool.TRAINER).auto_assign(self.trainer)

        stored = self.portal.requests[Pool.TRAINER]['t-r1']
        assert stored['assignedTrainerId'] == 't1'
        assert stored['assignedTrainerName'] == 'Staff t1'

    def test_unknown_pool(self):
        with pytest.raises(ValidationError):
            AssignmentService(self.portal, 'dispatcher')

    def test_pickup_moves_capacity(self):
        self.fill(
            requests=[make_request('r1', status='assigned', assignedExaminerId='e1', assignedExaminerName='E1')],
            staff=[make_staff('e1', current=1), make_staff('e2', current=2)],
        )
        picker = CallerContext('e2', 'Staff e2', 'examiner')

        request = self.service.pickup(picker, 'r1')

        assert request.assigned_staff_id == 'e2'
        assert self.owner('r1') == 'e2'
        assert self.load('e1') == 0
        assert self.load('e2') == 3

    def test_pickup_pending_request(self):
        self.fill(requests=[make_request('r1')], staff=[make_staff('e2')])

        self.service.pickup(CallerContext('e2', 'Staff e2', 'examiner'), 'r1')

        assert self.portal.requests[Pool.EXAMINER]['r1']['status'] == RequestStatus.ASSIGNED
        assert self.load('e2') == 1

    def test_pickup_needs_pool_role(self):
        self.fill(requests=[make_request('r1')], staff=[make_staff('trainer-1')])

        with pytest.raises(ForbiddenError):
            self.service.pickup(self.trainer, 'r1')

    def test_admin_reassigns_instead_of_picking_up(self):
        self.fill(
            requests=[make_request('r1', status='assigned', assignedExaminerId='e1')],
            staff=[make_staff('e1', current=1), make_staff('e2')],
        )

        with pytest.raises(ForbiddenError):
            self.service.pickup(self.admin, 'r1')

        assert self.portal.calls_to('update_request') == []
        assert self.service.reassign(self.admin, 'r1', 'e2').assigned_staff_id == 'e2'

    def test_pickup_at_capacity(self):
        self.fill(requests=[make_request('r1')], staff=[make_staff('e2', current=5)])

        with pytest.raises(NoEligibleStaffError):
            self.service.pickup(CallerContext('e2', 'Staff e2', 'examiner'), 'r1')

    def test_pickup_completed_request(self):
        self.fill(requests=[make_request('r1', status='completed')], staff=[make_staff('e2')])

        with pytest.raises(InvalidStateError):
            self.service.pickup(CallerContext('e2', 'Staff e2', 'examiner'), 'r1')

    def test_reassign(self):
        self.fill(
            requests=[make_request('r1', status='in-progress', assignedExaminerId='e1')],
            staff=[make_staff('e1', current=1), make_staff('e2', current=5)],
        )

        request = self.service.reassign(self.admin, 'r1', 'e2')

        assert request.status == RequestStatus.IN_PROGRESS
        assert self.owner('r1') == 'e2'
        assert self.load('e1') == 0
        assert self.load('e2') == 6

    def test_reassign_requires_admin(self, examiner_context):
        self.fill(requests=[make_request('r1', status='assigned', assignedExaminerId='e1')], staff=[make_staff('e1')])

        with pytest.raises(ForbiddenError):
            self.service.reassign(examiner_context, 'r1', 'e1')

    def test_reassign_pending_request(self):
        self.fill(requests=[make_request('r1')], staff=[make_staff('e1')])

        with pytest.raises(InvalidStateError):
            self.service.reassign(self.admin, 'r1', 'e1')

    def test_status_advances_and_releases_capacity(self):
        self.fill(
            requests=[make_request('r1', status='assigned', assignedExaminerId='e1')],
            staff=[make_staff('e1', current=2)],
        )
        owner = CallerContext('e1', 'Staff e1', 'examiner')

        self.service.advance_status(owner, 'r1', RequestStatus.IN_PROGRESS)
        assert self.load('e1') == 2

        request = self.service.advance_status(owner, 'r1', RequestStatus.COMPLETED)
        assert request.status == RequestStatus.COMPLETED
        assert self.load('e1') == 1

    def test_status_cannot_go_back(self):
        self.fill(requests=[make_request('r1', status='completed', assignedExaminerId='e1')], staff=[make_staff('e1')])

        with pytest.raises(InvalidStateError):
            self.service.advance_status(CallerContext('e1', 'E', 'examiner'), 'r1', RequestStatus.IN_PROGRESS)

    def test_status_by_non_owner(self, examiner_context):
        self.fill(requests=[make_request('r1', status='assigned', assignedExaminerId='e1')], staff=[make_staff('e1')])

        with pytest.raises(ForbiddenError):
            self.service.advance_status(examiner_context, 'r1', RequestStatus.IN_PROGRESS)


# =============================================================================
# REVIEW
# =============================================================================

class TestReviewService:
    """Tests for ReviewService."""

    @pytest.fixture(autouse=True)
    def setup(self, portal, essay_quiz, clock, student_context, trainer_context):
        self.portal = portal
        self.student = student_context
        self.trainer = trainer_context
        self.attempts = AttemptService(portal, notifier=Mock())
        self.service = ReviewService(portal)

    def submitted_attempt(self, token_string=None):
        if token_string:
            attempt = self.attempts.start(self.student, token_string=token_string)
        else:
            attempt = self.attempts.start(self.student, quiz_id='quiz-essay')
        self.attempts.save_answer(self.student, attempt.id, 'q-tf', 'true')
        self.attempts.save_answer(self.student, attempt.id, 'q-essay', 'Brief threats, then errors.')
        return self.attempts.submit(self.student, attempt.id)

    def test_essay_ungraded_after_submit(self):
        attempt = self.submitted_attempt()

        assert attempt.score == 4
        assert attempt.get_answer('q-essay').is_correct is None

    def test_manual_grade_updates_score(self):
        attempt = self.submitted_attempt()

        graded = self.service.grade_answer(self.trainer, attempt.id, 'q-essay', 5)

        assert graded.score == 9
        assert graded.get_answer('q-essay').is_correct is True
        assert self.portal.attempts[attempt.id]['score'] == 9
        assert graded.score <= graded.max_score

    def test_points_above_question_value(self):
        attempt = self.submitted_attempt()

        with pytest.raises(ValidationError):
            self.service.grade_answer(self.trainer, attempt.id, 'q-essay', 7)

    def test_auto_graded_question_rejected(self):
        attempt = self.submitted_attempt()

        with pytest.raises(ValidationError):
            self.service.grade_answer(self.trainer, attempt.id, 'q-tf', 0)

    def test_in_progress_attempt_rejected(self):
        attempt = self.attempts.start(self.student, quiz_id='quiz-essay')

        with pytest.raises(InvalidStateError):
            self.service.grade_answer(self.trainer, attempt.id, 'q-essay', 3)

    def test_student_cannot_grade(self):
        attempt = self.submitted_attempt()

        with pytest.raises(ForbiddenError):
            self.service.grade_answer(self.student, attempt.id, 'q-essay', 6)

    def test_submission_lifecycle(self):
        token = TokenService(self.portal).issue(self.trainer, 'quiz-essay')
        attempt = self.submitted_attempt(token_string=token.token)

        self.service.grade_answer(self.trainer, attempt.id, 'q-essay', 6)
        assert self.portal.find_submission(attempt.id).status == SubmissionStatus.GRADED
        assert self.portal.find_submission(attempt.id).score == 10

        submission = self.service.add_feedback(self.trainer, attempt.id, 'Good structure.')
        assert submission.status == SubmissionStatus.REVIEWED
        assert self.portal.find_submission(attempt.id).feedback == 'Good structure.'

    def test_feedback_without_submission(self):
        attempt = self.submitted_attempt()

        with pytest.raises(NotFoundError):
            self.service.add_feedback(self.trainer, attempt.id, 'Nice')

    def test_quiz_results_for_staff_and_student(self, other_student_context):
        self.submitted_attempt()
        other = self.attempts.start(other_student_context, quiz_id='quiz-essay')
        self.attempts.submit(other_student_context, other.id)

        staff_view = self.service.quiz_results(self.trainer, 'quiz-essay')
        student_view = self.service.quiz_results(self.student, 'quiz-essay')

        assert staff_view['total_attempts'] == 2
        assert staff_view['final_grade'] is None
        assert student_view['total_attempts'] == 1
        assert student_view['final_grade'] == 4

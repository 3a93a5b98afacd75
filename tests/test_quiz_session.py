import random

import pytest

from health_portal.models.question_model import TranslatedQuestion
from health_portal.models.session_state import QuizStatus
from health_portal.services.errors import BackendError, QuizStateError
from health_portal.services.quiz_session import QuizSessionMachine
from factories import make_quiz_data


class RecordingSubmitter:

    def __init__(self, fail_times: int = 0) -> None:
        self.payloads = []
        self.fail_times = fail_times

    def __call__(self, payload):
        if self.fail_times > 0:
            self.fail_times -= 1
            raise BackendError(500, "boom")
        self.payloads.append(payload)
        return {"id": "attempt-1"}


@pytest.fixture
def submitter():
    return RecordingSubmitter()


@pytest.fixture
def machine(submitter, clock):
    m = QuizSessionMachine(submitter=submitter, rng=random.Random(1), clock=clock)
    m.load(make_quiz_data(5, duration=1))
    m.start()
    return m


def test_start_initialises_timer_and_answers(machine):
    assert machine.status == QuizStatus.IN_PROGRESS
    assert machine.state.time_remaining == 60
    assert machine.state.current_index == 0
    assert machine.state.answers == {}


def test_limit_selects_unique_subset(clock):
    m = QuizSessionMachine(rng=random.Random(3), clock=clock)
    m.load(make_quiz_data(10, limit=4))

    ids = [q.id for q in m.questions]
    assert len(ids) == 4
    assert len(set(ids)) == 4


def test_no_limit_uses_all_in_order(clock):
    m = QuizSessionMachine(clock=clock)
    m.load(make_quiz_data(4))

    assert [q.id for q in m.questions] == ["q1", "q2", "q3", "q4"]


def test_three_correct_two_skipped_scores_sixty(machine, submitter):
    for _ in range(3):
        machine.record_answer(machine.state.current_question.id, "A")
        machine.advance()
    machine.skip()
    machine.skip()

    assert machine.status == QuizStatus.COMPLETED
    assert machine.result.score == 60
    assert len(submitter.payloads) == 1
    assert submitter.payloads[0]["correctAnswers"] == 3


def test_answer_persists_across_navigation(machine):
    first = machine.state.current_question.id
    machine.record_answer(first, "B")
    machine.advance()

    assert machine.previous() == "B"
    assert machine.current_answer == "B"


def test_answer_overwrite(machine):
    qid = machine.state.current_question.id
    machine.record_answer(qid, "A")
    machine.record_answer(qid, "C")

    assert machine.state.answers[qid] == "C"


def test_invalid_answers_are_rejected(machine):
    with pytest.raises(QuizStateError):
        machine.record_answer("not-in-subset", "A")
    with pytest.raises(QuizStateError):
        machine.record_answer(machine.state.current_question.id, "Z")


def test_go_to_clamps_index(machine):
    assert machine.go_to(99) == 4
    assert machine.go_to(-1) == 0


def test_timer_expiry_submits_once(machine, submitter):
    for _ in range(59):
        assert machine.tick() is False

    assert machine.tick() is True
    # 0초 콜백이 한 번 더 와도 재전송하지 않는다
    assert machine.tick() is False
    machine.submit()

    assert machine.status == QuizStatus.COMPLETED
    assert len(submitter.payloads) == 1
    titles = [n.title for n in machine.drain_notices()]
    assert "Tempo scaduto" in titles


def test_sync_clock_applies_elapsed_time(machine, clock, submitter):
    clock.advance(20)
    machine.sync_clock()
    assert machine.state.time_remaining == 40

    clock.advance(300)
    machine.sync_clock()
    assert machine.status == QuizStatus.COMPLETED
    assert len(submitter.payloads) == 1


def test_submit_is_idempotent(machine, submitter):
    first = machine.submit()
    second = machine.submit()

    assert first is second
    assert len(submitter.payloads) == 1


def test_exit_counts_unanswered_as_wrong(machine):
    machine.record_answer(machine.state.current_question.id, "A")
    result = machine.exit()

    assert result.correct_answers == 1
    assert result.total_questions == 5
    assert result.score == 20


def test_failed_submission_keeps_answers_and_allows_retry(clock):
    submitter = RecordingSubmitter(fail_times=1)
    m = QuizSessionMachine(submitter=submitter, clock=clock)
    m.load(make_quiz_data(2))
    m.start()
    m.record_answer("q1", "A")
    m.submit()

    assert m.state.submission_sent is False
    assert m.state.answers == {"q1": "A"}
    notices = m.drain_notices()
    assert notices[0].blocking is True

    assert m.retry_submission() is True
    assert m.state.submission_sent is True
    assert len(submitter.payloads) == 1
    assert m.retry_submission() is True
    assert len(submitter.payloads) == 1


def test_retake_resets_answers_and_restarts(machine, clock):
    machine.record_answer(machine.state.current_question.id, "A")
    machine.submit()
    clock.advance(5)
    machine.retake()

    assert machine.status == QuizStatus.IN_PROGRESS
    assert machine.state.answers == {}
    assert machine.result is None
    assert machine.state.time_remaining == 60


def test_transitions_are_guarded(clock):
    m = QuizSessionMachine(clock=clock)
    with pytest.raises(QuizStateError):
        m.start()

    m.load(make_quiz_data(2))
    with pytest.raises(QuizStateError):
        m.advance()
    with pytest.raises(QuizStateError):
        m.retake()


def test_reload_during_attempt_keeps_subset(machine):
    before = [q.id for q in machine.questions]
    machine.go_to(2)
    machine.load(make_quiz_data(8, duration=1))

    assert [q.id for q in machine.questions] == before
    assert machine.state.current_index == 2


def test_loading_another_quiz_during_attempt_is_rejected(machine, submitter):
    before = [q.id for q in machine.questions]

    with pytest.raises(QuizStateError):
        machine.load(make_quiz_data(3, quiz_id="quiz-2", prefix="z"))

    machine.submit()
    machine.retake()

    assert machine.state.quiz.id == "quiz-1"
    assert sorted(q.id for q in machine.questions) == sorted(before)
    assert {a["questionId"][0] for a in submitter.payloads[0]["answers"]} == {"q"}


def test_same_quiz_refresh_applies_on_retake(machine):
    machine.load(make_quiz_data(3, duration=2))
    assert machine.state.time_remaining == 60

    machine.submit()
    machine.retake()

    assert sorted(q.id for q in machine.questions) == ["q1", "q2", "q3"]
    assert machine.state.time_remaining == 120


def test_display_question_uses_translation(clock):
    calls = []

    def translator(questions, language):
        calls.append(language)
        return [
            TranslatedQuestion(id=q.id, question=f"[{language}] {q.text}", options=["uno", "due", "tre"])
            for q in questions
        ]

    m = QuizSessionMachine(translator=translator, clock=clock)
    m.load(make_quiz_data(2, language="it"))
    m.start()

    shown = m.display_question(0, "en")
    m.display_question(1, "en")

    assert shown.text.startswith("[en]")
    assert shown.options[0].text == "uno"
    assert shown.options[0].label == "A"
    assert calls == ["en"]
    assert m.display_question(0, "it").text == "Domanda q1?"

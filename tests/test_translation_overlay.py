import httpx

from health_portal.models.question_model import TranslatedQuestion
from health_portal.services.backend_client import BackendClient
from health_portal.services.errors import BackendError
from health_portal.services.translation_overlay import TranslationOverlay
from factories import make_question


def _questions(language="it"):
    return [make_question("q1", language=language), make_question("q2", language=language)]


def test_failed_translation_falls_back_to_original_and_is_not_retried():
    calls = []

    def translator(questions, language):
        calls.append(language)
        raise BackendError(503, "unavailable")

    overlay = TranslationOverlay(translator)
    questions = _questions()
    overlay.prepare(questions, "fr")
    overlay.prepare(questions, "fr")

    assert calls == ["fr"]
    assert overlay.display(questions[0], "fr") is questions[0]
    notices = overlay.drain_notices()
    assert len(notices) == 1
    assert notices[0].level == "warning"
    assert overlay.drain_notices() == []


def test_same_language_skips_translator():
    calls = []
    overlay = TranslationOverlay(lambda qs, lang: calls.append(lang) or [])
    questions = _questions()
    overlay.prepare(questions, "it")

    assert calls == []
    assert overlay.display(questions[0], "it") is questions[0]


def test_question_without_language_is_never_translated():
    overlay = TranslationOverlay(lambda qs, lang: [])
    q = make_question("q1")

    assert overlay.needs_translation(q, "en") is False


def test_new_subset_clears_cache():
    calls = []

    def translator(questions, language):
        calls.append([q.id for q in questions])
        return [TranslatedQuestion(id=q.id, question="tradotto") for q in questions]

    overlay = TranslationOverlay(translator)
    overlay.prepare(_questions(), "en")
    other = [make_question("q9", language="it")]
    overlay.prepare(other, "en")

    assert calls == [["q1", "q2"], ["q9"]]
    assert overlay.display(other[0], "en").text == "tradotto"


def test_partial_translation_keeps_untranslated_options():
    overlay = TranslationOverlay(
        lambda qs, lang: [TranslatedQuestion(id="q1", question="", options=["one"])]
    )
    questions = _questions()
    overlay.prepare(questions, "en")
    shown = overlay.display(questions[0], "en")

    assert shown.text == questions[0].text
    assert [o.text for o in shown.options] == ["one", "q1 opzione B", "q1 opzione C"]
    assert shown.correct_answer == "A"


def test_malformed_translation_response_keeps_original_text():
    def handler(request):
        return httpx.Response(200, json={"translatedQuestions": [{"id": "q1", "options": ["a"]}]})

    client = BackendClient(base_url="http://backend.test", transport=httpx.MockTransport(handler))
    overlay = TranslationOverlay(client.translate_questions)
    questions = _questions()
    overlay.prepare(questions, "en")

    assert overlay.display(questions[0], "en") is questions[0]
    assert [n.title for n in overlay.drain_notices()] == ["Traduzione non disponibile"]

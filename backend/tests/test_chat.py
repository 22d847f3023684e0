"""Tests for chat sessions and AI message turns."""

import logging
from pathlib import Path

from sqlalchemy import select

from app.db.models import ChatMessage, User
from app.errors import AIConfigurationError, UpstreamError
from app.services import prompts
from app.services.chat_service import append_sources, derive_title, strip_trailing_ellipsis
from app.services.llm_client import Citation, LLMReply


# =============================================================================
# HELPERS
# =============================================================================


def test_derive_title():
    assert derive_title("Short question") == "Short question"
    assert derive_title("x" * 30) == "x" * 30
    long_title = derive_title("What are the best engineering schools on the west coast?")
    assert long_title == "What are the best engineeri..."
    assert len(long_title) == 30


def test_strip_trailing_ellipsis():
    assert strip_trailing_ellipsis("Thinking...") == "Thinking"
    assert strip_trailing_ellipsis("Hmm.....") == "Hmm.."
    assert strip_trailing_ellipsis("Done.") == "Done."


def test_append_sources():
    text = append_sources(
        "Answer.",
        [
            Citation(url="https://a.edu", title="A", snippet="About A"),
            Citation(url="https://b.edu", title="B"),
        ],
    )
    assert text == (
        "Answer.\n\n## Sources\n"
        "\n1. [A](https://a.edu) - About A"
        "\n2. [B](https://b.edu)"
    )
    assert append_sources("Answer.", []) == "Answer."


# =============================================================================
# SESSIONS
# =============================================================================


async def test_create_session_default_title(auth_client):
    response = await auth_client.post("/api/chat/sessions")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "New Conversation"
    assert body["autoTitle"] is True


async def test_rename_session(auth_client):
    session = (await auth_client.post("/api/chat/sessions", json={})).json()

    response = await auth_client.patch(f"/api/chat/sessions/{session['id']}", json={"title": "Essays"})
    assert response.status_code == 200
    assert response.json()["title"] == "Essays"
    assert response.json()["autoTitle"] is False

    response = await auth_client.patch(f"/api/chat/sessions/{session['id']}", json={"title": "   "})
    assert response.status_code == 400


async def test_list_sessions_most_recent_first(auth_client):
    first = (await auth_client.post("/api/chat/sessions", json={"title": "First"})).json()
    second = (await auth_client.post("/api/chat/sessions", json={"title": "Second"})).json()

    titles = [s["title"] for s in (await auth_client.get("/api/chat/sessions")).json()]
    assert titles == ["Second", "First"]

    # Activity moves a session to the top
    await auth_client.post(f"/api/chat/sessions/{first['id']}/messages", json={"content": "Bump"})
    titles = [s["title"] for s in (await auth_client.get("/api/chat/sessions")).json()]
    assert titles[0] == "First"
    assert second["id"] in [s["id"] for s in (await auth_client.get("/api/chat/sessions")).json()]


async def test_session_ownership(auth_client, other_client):
    session = (await auth_client.post("/api/chat/sessions", json={})).json()

    response = await other_client.get(f"/api/chat/sessions/{session['id']}/messages")
    assert response.status_code == 403

    response = await other_client.post(f"/api/chat/sessions/{session['id']}/messages", json={"content": "hi"})
    assert response.status_code == 403

    response = await other_client.delete(f"/api/chat/sessions/{session['id']}")
    assert response.status_code == 403

    response = await auth_client.get("/api/chat/sessions/9999/messages")
    assert response.status_code == 404


async def test_delete_session(auth_client, db_session):
    sent = (await auth_client.post("/api/chat/messages", json={"content": "Hello"})).json()
    session_id = sent["sessionId"]

    stored = await db_session.execute(select(ChatMessage).where(ChatMessage.session_id == session_id))
    assert len(stored.scalars().all()) == 2

    response = await auth_client.delete(f"/api/chat/sessions/{session_id}")
    assert response.json() == {"success": True}
    assert (await auth_client.get(f"/api/chat/sessions/{session_id}/messages")).status_code == 404

    remaining = await db_session.execute(select(ChatMessage).where(ChatMessage.session_id == session_id))
    assert remaining.scalars().all() == []

    response = await auth_client.delete(f"/api/chat/sessions/{session_id}")
    assert response.json() == {"success": False}


# =============================================================================
# MESSAGES
# =============================================================================


async def test_first_message_creates_titled_session(auth_client, fake_llm):
    fake_llm.generate_replies.append(LLMReply(text="Start with your interests."))

    response = await auth_client.post(
        "/api/chat/messages",
        json={"content": "How should I start building my college list this year?..."},
    )
    assert response.status_code == 200
    body = response.json()

    assert body["userMessage"]["content"] == "How should I start building my college list this year?"
    assert body["userMessage"]["sender"] == "user"
    assert body["aiMessage"]["content"] == "Start with your interests."
    assert body["aiMessage"]["sender"] == "ai"
    assert body["profileUpdated"] is False
    assert body["error"] is None

    sessions = (await auth_client.get("/api/chat/sessions")).json()
    assert sessions[0]["id"] == body["sessionId"]
    assert sessions[0]["title"] == "How should I start building..."


async def test_first_message_titles_untitled_session_only(auth_client):
    untitled = (await auth_client.post("/api/chat/sessions", json={})).json()
    titled = (await auth_client.post("/api/chat/sessions", json={"title": "Financial aid"})).json()

    await auth_client.post(f"/api/chat/sessions/{untitled['id']}/messages", json={"content": "Scholarships?"})
    await auth_client.post(f"/api/chat/sessions/{titled['id']}/messages", json={"content": "FAFSA?"})
    await auth_client.post(f"/api/chat/sessions/{untitled['id']}/messages", json={"content": "Second message"})

    titles = {s["id"]: s["title"] for s in (await auth_client.get("/api/chat/sessions")).json()}
    assert titles[untitled["id"]] == "Scholarships?"
    assert titles[titled["id"]] == "Financial aid"


async def test_history_and_prompt_passed_to_ai(auth_client, fake_llm):
    await auth_client.post("/api/user/profile-description", json={"profileDescription": "Aspiring nurse."})
    first = (await auth_client.post("/api/chat/messages", json={"content": "Nursing programs?"})).json()
    session_id = first["sessionId"]

    await auth_client.post(
        f"/api/chat/sessions/{session_id}/messages",
        json={"content": "Any in Ohio?", "useWebSearch": True},
    )

    call = fake_llm.generate_calls[-1]
    assert call["message"] == "Any in Ohio?"
    assert [(t.role, t.content) for t in call["history"]] == [
        ("user", "Nursing programs?"),
        ("assistant", "Happy to help!"),
    ]
    assert "Aspiring nurse." in call["system_prompt"]
    assert "Nursing programs?" in call["system_prompt"]  # session title
    assert call["web_search"] is True
    assert call["extended_reasoning"] is False

    messages = (await auth_client.get(f"/api/chat/sessions/{session_id}/messages")).json()
    assert [m["sender"] for m in messages] == ["user", "ai", "user", "ai"]


async def test_web_search_citations_become_sources(auth_client, fake_llm):
    fake_llm.generate_replies.append(
        LLMReply(
            text="Here are some options.",
            citations=[Citation(url="https://osu.edu", title="Ohio State", snippet="BSN program")],
            search_queries=["nursing programs ohio"],
        )
    )

    body = (
        await auth_client.post("/api/chat/messages", json={"content": "Nursing in Ohio", "useWebSearch": True})
    ).json()

    assert body["aiMessage"]["content"].endswith("## Sources\n\n1. [Ohio State](https://osu.edu) - BSN program")
    assert body["searchQueries"] == ["nursing programs ohio"]


async def test_ai_failure_keeps_user_message(auth_client, fake_llm):
    fake_llm.generate_replies.append(UpstreamError())

    response = await auth_client.post("/api/chat/messages", json={"content": "Will this work?"})
    assert response.status_code == 200
    body = response.json()
    assert body["aiMessage"] is None
    assert body["error"] == UpstreamError.default_message

    messages = (await auth_client.get(f"/api/chat/sessions/{body['sessionId']}/messages")).json()
    assert [m["content"] for m in messages] == ["Will this work?"]


async def test_missing_api_key_reports_configuration_error(auth_client, fake_llm):
    fake_llm.generate_replies.append(AIConfigurationError())

    body = (await auth_client.post("/api/chat/messages", json={"content": "Hello?"})).json()
    assert body["aiMessage"] is None
    assert "ANTHROPIC_API_KEY" in body["error"]
    assert body["error"] != UpstreamError.default_message


async def test_retry_after_failure(auth_client, fake_llm):
    fake_llm.generate_replies.append(UpstreamError())
    failed = (await auth_client.post("/api/chat/messages", json={"content": "Retry me"})).json()
    session_id = failed["sessionId"]

    fake_llm.generate_replies.append(LLMReply(text="Second time lucky."))
    response = await auth_client.post(f"/api/chat/sessions/{session_id}/retry", json={"extendThinking": True})
    assert response.status_code == 200
    body = response.json()
    assert body["userMessage"]["id"] == failed["userMessage"]["id"]
    assert body["aiMessage"]["content"] == "Second time lucky."
    assert fake_llm.generate_calls[-1]["extended_reasoning"] is True
    assert fake_llm.generate_calls[-1]["history"] == []

    messages = (await auth_client.get(f"/api/chat/sessions/{session_id}/messages")).json()
    assert [m["sender"] for m in messages] == ["user", "ai"]

    # Nothing left to answer
    response = await auth_client.post(f"/api/chat/sessions/{session_id}/retry")
    assert response.status_code == 400


async def test_send_message_validation(auth_client):
    response = await auth_client.post("/api/chat/messages", json={"content": ""})
    assert response.status_code == 400

    response = await auth_client.post("/api/chat/messages", json={"content": "..."})
    assert response.status_code == 400

    response = await auth_client.post("/api/chat/messages", json={"content": "x" * 10001})
    assert response.status_code == 400


async def test_sharing_with_unknown_advisor_fails_before_saving(auth_client):
    response = await auth_client.post("/api/chat/messages", json={"content": "Hi", "shareWithAdvisorIds": [4242]})
    assert response.status_code == 404
    assert (await auth_client.get("/api/chat/sessions")).json() == []


async def test_profile_update_from_chat(auth_client, fake_llm, db_session):
    await auth_client.post("/api/user/profile-description", json={"profileDescription": "Likes biology."})
    fake_llm.completions.append("Likes biology and now wants to study abroad.")

    body = (await auth_client.post("/api/chat/messages", json={"content": "I want to study abroad"})).json()
    assert body["profileUpdated"] is True

    user = (await db_session.execute(select(User).where(User.username == "alice"))).scalar_one()
    assert user.profile_description == "Likes biology and now wants to study abroad."


async def test_profile_unchanged_on_null_or_failure(auth_client, fake_llm):
    await auth_client.post("/api/user/profile-description", json={"profileDescription": "Likes biology."})

    fake_llm.completions.append("NULL")
    body = (await auth_client.post("/api/chat/messages", json={"content": "Thanks"})).json()
    assert body["profileUpdated"] is False

    fake_llm.completions.append(UpstreamError())
    body = (await auth_client.post("/api/chat/messages", json={"content": "Thanks again"})).json()
    assert body["profileUpdated"] is False
    assert body["aiMessage"] is not None

    me = (await auth_client.get("/api/me")).json()
    assert me["profileDescription"] == "Likes biology."


async def test_no_profile_update_check_without_profile(auth_client, fake_llm):
    await auth_client.post("/api/chat/messages", json={"content": "Hello"})
    assert fake_llm.complete_calls == []


async def test_message_attachments_are_loaded(auth_client, fake_llm, fake_storage):
    upload = await auth_client.post(
        "/api/upload",
        files={"files": ("notes.txt", b"My essay draft", "text/plain")},
    )
    record = upload.json()[0]

    await auth_client.post("/api/chat/messages", json={"content": "Read this", "attachments": [record]})

    attachments = fake_llm.generate_calls[-1]["attachments"]
    assert len(attachments) == 1
    assert attachments[0].filename == "notes.txt"
    assert attachments[0].data == b"My essay draft"


def test_persona_ships_inside_the_app_package(caplog):
    persona_file = Path(prompts.__file__).resolve().parents[1] / "PERSONA.md"
    assert persona_file.parent.name == "app"
    assert persona_file.is_file()

    with caplog.at_level(logging.WARNING, logger="app.services.prompts"):
        persona = prompts._load_persona()
    assert persona == persona_file.read_text(encoding="utf-8").strip()
    assert "GUIDELINES:" in persona
    assert "fallback persona" not in caplog.text
    assert prompts.chat_system_prompt(None, "New chat").startswith(persona)

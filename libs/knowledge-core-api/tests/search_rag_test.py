from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.runnables import Runnable

from knowledge_core_api.impl.settings.retrieval_settings import RetrievalSettings
from knowledge_core_api.models.ingestion import SearchRagInput
from knowledge_core_api.models.rag import RagResult
from knowledge_core_api.usecases.search_rag import SearchRag
from knowledge_core_lib.access_scope import AccessScope
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.context import get_tenant_id
from knowledge_core_lib.errors import AuthorizationDeniedError
from knowledge_core_lib.policies import PolicyEngine, load_policies
from knowledge_core_lib.visibility import Message, MessageVisibility
from mocks.recording_audit_sink import RecordingAuditSink

CTX = AuthorizationContext(
    tenant_id="tenant-a",
    user_id="user-1",
    roles=frozenset({"user"}),
    department="eng",
)

RAG_POLICY = {
    "id": "rag-eng",
    "tenantId": "tenant-a",
    "name": "eng search",
    "type": "rag",
    "scope": {"departments": ["eng"]},
}


def _retriever(results=()):
    retriever = MagicMock(spec=Runnable)
    retriever.ainvoke = AsyncMock(return_value=list(results))
    return retriever


def _use_case(retriever=None, policies=(), default_allow=True, audit_sink=None, **settings):
    engine = PolicyEngine(load_policies(policies), default_allow=default_allow)
    return SearchRag(
        engine,
        retriever or _retriever(),
        audit_sink if audit_sink is not None else RecordingAuditSink(),
        RetrievalSettings(**settings),
    )


@pytest.mark.asyncio
async def test_search_requires_authenticated_user():
    sink = RecordingAuditSink()
    retriever = _retriever()
    use_case = _use_case(retriever, audit_sink=sink)

    with pytest.raises(AuthorizationDeniedError):
        await use_case.execute(CTX.model_copy(update={"user_id": None}), SearchRagInput(query="q"))

    retriever.ainvoke.assert_not_awaited()
    [event] = sink.events
    assert event.allowed is False
    assert event.user_id is None
    assert event.action == "rag.search"
    assert event.details == {"reason": "unauthenticated"}


@pytest.mark.asyncio
async def test_search_denied_without_matching_policy_under_default_deny():
    sink = RecordingAuditSink()
    retriever = _retriever()
    use_case = _use_case(retriever, default_allow=False, audit_sink=sink)

    with pytest.raises(AuthorizationDeniedError):
        await use_case.execute(CTX, SearchRagInput(query="q"))

    retriever.ainvoke.assert_not_awaited()
    assert len(sink.events) == 1
    assert sink.events[0].allowed is False
    assert sink.events[0].action == "rag.search"


@pytest.mark.asyncio
async def test_search_allowed_by_rag_policy_passes_tenant_and_scope():
    sink = RecordingAuditSink()
    result = RagResult(chunk_id="c1", score=0.9, text="hit")
    retriever = _retriever([result])
    use_case = _use_case(retriever, policies=[RAG_POLICY], default_allow=False, audit_sink=sink, default_limit=4)

    output = await use_case.execute(CTX, SearchRagInput(query="quarterly numbers"))

    assert output.results == [result]
    query = retriever.ainvoke.await_args.args[0]
    assert query.text == "quarterly numbers"
    assert query.limit == 4
    assert query.min_score == 0.7
    assert query.filters.departments == ["eng"]
    config = retriever.ainvoke.await_args.kwargs["config"]
    assert config["metadata"]["tenant_id"] == "tenant-a"
    assert get_tenant_id() is None

    event = sink.events[-1]
    assert event.allowed is True
    assert event.details["results_count"] == 1
    assert event.details["chunk_ids"] == ["c1"]


@pytest.mark.asyncio
async def test_audit_failures_do_not_fail_the_search():
    retriever = _retriever([RagResult(chunk_id="c1", score=0.9, text="hit")])
    use_case = _use_case(retriever, audit_sink=RecordingAuditSink(fail=True))

    output = await use_case.execute(CTX, SearchRagInput(query="q", min_score=0.1))

    assert [result.chunk_id for result in output.results] == ["c1"]
    assert output.query.min_score == 0.1


@pytest.mark.asyncio
async def test_message_search_uses_inherited_scope_and_content():
    retriever = _retriever()
    message = Message(
        id="m1",
        chat_id="chat",
        author_id="user-2",
        content="roadmap status",
        access_scope=AccessScope(department="sales", tags=frozenset({"emea"})),
    )

    output = await _use_case(retriever).execute_for_message(CTX, message)

    query = retriever.ainvoke.await_args.args[0]
    assert query.text == "roadmap status"
    assert query.access_scope.department == "sales"
    assert query.filters.departments == ["sales"]
    assert query.filters.tags == ["emea"]
    assert output.results == []


@pytest.mark.asyncio
async def test_message_search_denied_for_invisible_private_message():
    sink = RecordingAuditSink()
    retriever = _retriever()
    message = Message(
        id="m2",
        chat_id="chat",
        author_id="user-2",
        content="secret",
        visibility=MessageVisibility.PRIVATE,
    )

    with pytest.raises(AuthorizationDeniedError):
        await _use_case(retriever, audit_sink=sink).execute_for_message(CTX, message, query_text="other")

    retriever.ainvoke.assert_not_awaited()
    assert sink.events[0].resource_type == "message"
    assert sink.events[0].resource_id == "m2"
    assert sink.events[0].allowed is False

from __future__ import annotations

import pytest

from statepilot.core.observability.trace import Trace
from statepilot.core.runtime import Runtime


@pytest.mark.asyncio
async def test_pipeline_resolves_steps_in_order(scripted_backend, task_catalog) -> None:
    scripted_backend.queue(
        {"intent": "pipeline", "message": "Two operations"},
        {
            "message": "Create then list",
            "steps": [
                {"query": "create a task", "intent": "action", "message": "create"},
                {"query": "show all tasks", "intent": "state", "message": "list"},
            ],
        },
        {"message": "Creating", "action": {"type": "task/create", "payload": {"title": "New"}}},
        {"message": "One task", "action": None},
    )
    runtime = Runtime(scripted_backend)
    trace = Trace(query="create a task and then show all tasks", query_id="q-1")

    response = await runtime.query(
        "create a task and then show all tasks",
        actions=task_catalog,
        state={"tasks": []},
        trace=trace,
    )

    assert response.intent == "pipeline"
    assert response.action is None
    assert [step.intent for step in response.pipeline] == ["action", "state"]
    assert response.pipeline[0].action == {"type": "task/create", "payload": {"title": "New"}}
    assert response.pipeline[1].action is None
    assert [step.query for step in response.pipeline] == ["create a task", "show all tasks"]
    assert 'USER QUERY: "create a task"' in scripted_backend.prompts()[2]
    assert trace.names() == [
        "QueryStarted",
        "IntentClassified",
        "PipelineDecomposed",
        "StepResolved",
        "StepResolved",
        "QueryCompleted",
    ]
    assert response.to_wire()["pipeline"][1]["intent"] == "state"


@pytest.mark.asyncio
async def test_workflow_alias_and_invalid_step_intent_downgrade(scripted_backend, task_catalog) -> None:
    scripted_backend.queue(
        {"intent": "workflow", "message": "Multi-step"},
        {"message": "plan", "steps": [{"query": "do something odd", "intent": "pipeline", "message": "odd"}]},
        {"message": "Let me help with that.", "action": None},
    )
    runtime = Runtime(scripted_backend)

    response = await runtime.query("do a and b", actions=task_catalog)

    assert response.intent == "pipeline"
    assert len(response.pipeline) == 1
    assert response.pipeline[0].intent == "conversation"
    assert "CONVERSATION HISTORY" in scripted_backend.prompts()[2]

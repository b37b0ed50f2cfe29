"""Instruction text for each stage of intent resolution.

Every builder is a pure function of its :class:`PromptParams`; identical
params always produce identical text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from statepilot.core.catalog import Catalog

SYSTEM_PROMPT = (
    'You must respond with a valid JSON object that includes "intent" and "message" fields when '
    'determining intent, or "message" and "action" fields for other responses. The action object must '
    'have a "type" field that exactly matches one of the provided action types.'
)

JSON_FORMAT_MESSAGE = "\n\nRespond ONLY with a valid JSON object including all required fields."

STAGES = ("intent", "action", "state", "conversation", "pipeline")


class PromptError(ValueError):
    pass


@dataclass(frozen=True)
class PromptParams:
    query: str
    actions: Catalog | None = None
    state: dict[str, Any] | None = None
    conversations: str | None = None

    @property
    def has_actions(self) -> bool:
        return self.actions is not None and len(self.actions) > 0

    @property
    def has_state(self) -> bool:
        return self.state is not None

    @property
    def has_conversations(self) -> bool:
        return bool(self.conversations and self.conversations.strip())


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _context_block(params: PromptParams, *, actions: bool = True, state: bool = True, conversations: bool = True) -> str:
    lines: list[str] = []
    if actions and params.has_actions:
        lines.append(f"AVAILABLE ACTIONS: {_dump(params.actions.describe())}")
    if state and params.has_state:
        lines.append(f"CURRENT STATE: {_dump(params.state)}")
    if conversations and params.has_conversations:
        lines.append(f"CONVERSATION HISTORY:\n{params.conversations}")
    return "\n".join(lines)


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def _assemble(*sections: str) -> str:
    body = "\n\n".join(section.strip("\n") for section in sections if section and section.strip())
    return body + JSON_FORMAT_MESSAGE


def _intent_prompt(params: PromptParams) -> str:
    availability = [
        f"Action catalog available: {'yes' if params.has_actions else 'no'}",
        f"Application state available: {'yes' if params.has_state else 'no'}",
    ]
    rules = """CLASSIFICATION RULES (apply in this order):
1. PIPELINE intent only if:
   - The query contains two or more distinct operations or questions
   - The operations are joined by conjunctions or sequencing words ("and", "then", "after that")
   Example: "create a task and then show all tasks"

2. ACTION intent only if ALL of the following hold:
   - An action catalog is available
   - The user explicitly asks for an operation that changes application state
   - The operation matches exactly one catalog action type
   - Every required parameter can be extracted from the query, state or history

3. STATE intent only if ALL of the following hold:
   - Application state is available
   - The user explicitly asks for information
   - The requested information is present in the provided state

4. CONVERSATION intent otherwise:
   - No operation or state-lookup criteria are met
   - The catalog or the state needed to satisfy the request is absent
   - Greetings, capability questions and general assistance"""
    response_format = """RESPONSE FORMAT:
{
  "intent": "action" | "state" | "conversation" | "pipeline",
  "message": "Clear explanation of the intent classification",
  "reasoning": [
    "Short justification for each rule that was checked"
  ]
}"""
    return _assemble(
        "Analyze the following user query and determine the most appropriate intent:",
        f'USER QUERY: "{params.query}"',
        _context_block(params),
        "\n".join(availability),
        rules,
        response_format,
    )


def _parameter_resolution_examples(params: PromptParams) -> str:
    if not params.has_state:
        return ""
    return """PARAMETER RESOLUTION EXAMPLES:
- For "select first applicant": use position-based references and read the id of the first item in the relevant list of CURRENT STATE
- For "approve John": identify objects by descriptive attributes (name, title, email) and use their literal id
- Never pass a descriptive phrase where an identifier is expected if the identifier exists in CURRENT STATE"""


def _action_prompt(params: PromptParams) -> str:
    if not params.has_actions:
        raise PromptError("Action prompt requires an action catalog")

    valid_types = "\n".join(f'- "{action_type}"' for action_type in params.actions.types())
    rules = _numbered(
        [
            "The action type MUST be one of the valid action types listed above",
            "The payload MUST follow the params_schema of the chosen action exactly",
            "Every required parameter MUST be present in the payload",
            "No parameters outside the params_schema are allowed",
            "Do not infer default values; if a required parameter cannot be extracted, answer with action null and ask for it in the message",
        ]
    )
    response_format = """RESPONSE FORMAT:
{
  "message": "Clear description of the action to be performed",
  "action": {
    "type": "action_type_from_catalog",
    "payload": {}
  },
  "reasoning": [
    "Step by step explanation of action selection and parameter extraction"
  ]
}
Omit "payload" for action types that declare no params_schema."""
    return _assemble(
        "Process the following action request using the available action catalog:",
        f'USER QUERY: "{params.query}"',
        _context_block(params),
        f"VALID ACTION TYPES:\n{valid_types}",
        _parameter_resolution_examples(params),
        f"VALIDATION RULES:\n{rules}",
        response_format,
    )


def _state_prompt(params: PromptParams) -> str:
    if not params.has_state:
        raise PromptError("State prompt requires an application state snapshot")

    rules = _numbered(
        [
            "Answer only from the literal CURRENT STATE provided above",
            "Never infer, assume or fabricate fields that are not present",
            "If the requested information is missing, say so plainly",
            "Only include the information that was explicitly requested",
            "The action field is always null",
        ]
    )
    response_format = """RESPONSE FORMAT:
{
  "message": "Clear response describing the requested state information",
  "action": null,
  "reasoning": [
    "Step by step explanation of state data retrieval and formatting"
  ]
}"""
    return _assemble(
        "Process the following state query using the available data:",
        f'USER QUERY: "{params.query}"',
        _context_block(params, actions=False),
        f"VALIDATION RULES:\n{rules}",
        response_format,
    )


def _conversation_prompt(params: PromptParams) -> str:
    history = (
        f"CONVERSATION HISTORY:\n{params.conversations}"
        if params.has_conversations
        else "CONVERSATION HISTORY: No previous conversation is available."
    )
    guidelines = """PROCESSING GUIDELINES:
1. This is an assistance system, not a general chatbot
   - Guide the user towards the available actions and state queries
   - Keep the answer focused on concrete, implementable capabilities
2. Use the conversation history only when it is relevant to the query
3. Avoid assumed knowledge: do not claim facts that are not in the provided context
4. The action field is always null"""
    response_format = """RESPONSE FORMAT:
{
  "message": "Clear assistance-focused response",
  "action": null,
  "reasoning": [
    "How the response guides the user towards system capabilities"
  ]
}"""
    return _assemble(
        "Process the following assistance query:",
        f'USER QUERY: "{params.query}"',
        _context_block(params, conversations=False),
        history,
        guidelines,
        response_format,
    )


def _pipeline_prompt(params: PromptParams) -> str:
    guidelines = _numbered(
        [
            "Split the query into atomic operations, one operation per step",
            "Preserve the exact query text for each step where possible",
            "Keep the steps in the order they appear in the query",
            "Tag each step with its own intent: action, state or conversation",
            "Use the action intent only for operations matching an available action type",
            "Use the state intent only for information present in CURRENT STATE",
        ]
    )
    resolution = """PARAMETER RESOLUTION GUIDELINES:
- When user refers to entities by name, look the entity up in CURRENT STATE and write its literal id into the step query
- For position-based references ("the first applicant", "the last task"), resolve the position against the order in CURRENT STATE
- Prefer literal identifiers over descriptive phrases whenever the identifier can be found
- Keep the descriptive phrase only when no matching entity exists in CURRENT STATE"""
    response_format = """RESPONSE FORMAT:
{
  "message": "Summary describing the identified sequence of operations",
  "steps": [
    {
      "query": "text of a single operation with references resolved",
      "intent": "action" | "state" | "conversation",
      "message": "What this step does"
    }
  ]
}"""
    return _assemble(
        "Analyze and decompose the following user query into atomic operations:",
        f'USER QUERY: "{params.query}"',
        _context_block(params),
        f"ANALYSIS GUIDELINES:\n{guidelines}",
        resolution,
        response_format,
    )


_GENERATORS: dict[str, Callable[[PromptParams], str]] = {
    "intent": _intent_prompt,
    "action": _action_prompt,
    "state": _state_prompt,
    "conversation": _conversation_prompt,
    "pipeline": _pipeline_prompt,
    "workflow": _pipeline_prompt,
}


def generate_prompt(stage: str, params: PromptParams) -> str:
    generator = _GENERATORS.get(stage)
    if generator is None:
        raise PromptError(f"Unknown prompt stage: {stage}")
    return generator(params)

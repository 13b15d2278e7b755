"""Prompt templates for the planner and the reasoning loop."""

from __future__ import annotations

import json

PLANNER_SYSTEM_PROMPT = """You are a master orchestrator AI. Your goal is to answer the user's query
by planning one step at a time and delegating work to specialized agents.
Always reply with a single valid JSON object."""

PLANNER_PROMPT_TEMPLATE = """You have the following specialized agents available:
{agents}

Based on the user's query, relevant memories, and the execution history so far, determine the NEXT SINGLE STEP.
If you have enough information to answer the query, set "isFinalStep" to true and provide the "finalAnswer".
Otherwise, choose an agent, define its "taskForAgent" (be specific, e.g. "Get asset details for assetXYZ"),
and extract all necessary "parameters" for that task from the user query or history.
Steps may fail, so do not assume that the next step will always succeed.

User Query: {query}

Relevant Memories (facts, previous related results, user preferences):
{memories}

Execution History (actions taken in THIS planning session for THIS query):
{history}

Provide your next step as a VALID JSON object with the following structure:
{{
  "agentToCall": "(name of one of the agents above)",
  "taskForAgent": "(specific task description for the agent)",
  "parameters": {{"name": "value"}},
  "reasoning": "(your reasoning for choosing this step)",
  "isFinalStep": false,
  "finalAnswer": "(plain-text final answer if isFinalStep is true, otherwise null)"
}}

Current Step JSON:"""

REASONING_SYSTEM_PROMPT = """You are {agent_name}, a specialized agent that completes one task at a time
by thinking step-by-step and using the available tools.
Always reply with a single valid JSON object."""

REASONING_PROMPT_TEMPLATE = """You are tasked with: {task}

Thought Process (ReAct Loop):
1. Thought: Analyze the task and current state. Decide if you can answer, or if you need to use a tool.
2. Action: If you need a tool, choose ONE tool from the list and specify its input parameters.
   - To use a tool, put its name in "toolToUse" and its parameters in "toolInput".
   - If you can answer the task, set "isFinalAnswer" to true, leave "toolToUse" empty and put the answer in "agentOutput".
   - If you cannot answer yet, set "isFinalAnswer" to false and continue the loop.
3. Observation: The result of the tool you executed, or an error message.

Available tools:
{tools}

Provide your action as a JSON object with the following structure:
{{
  "toolToUse": "(tool name exactly as listed, or empty if final answer)",
  "toolInput": {{"param1": "value1"}},
  "thought": "(your reasoning for this action)",
  "isFinalAnswer": false,
  "agentOutput": "(plain-text answer to the task if isFinalAnswer is true, otherwise null)"
}}

Task from Planner: {task}
Initial Parameters from Planner (JSON): {parameters_json}
ReAct Scratchpad (previous thoughts, actions and observations for THIS task):
{scratchpad}

Current Action JSON:"""


def render_planner_prompt(query: str, agents: str, memories: str, history: str) -> str:
    """Render the planning prompt for one iteration."""
    return PLANNER_PROMPT_TEMPLATE.format(
        agents=agents,
        query=query,
        memories=memories,
        history=history or "(none yet)",
    )


def render_reasoning_prompt(
    task: str,
    parameters: dict[str, str],
    tools: str,
    scratchpad: list[str],
) -> str:
    """Render the reasoning prompt for one iteration."""
    return REASONING_PROMPT_TEMPLATE.format(
        task=task,
        parameters_json=json.dumps(parameters),
        tools=tools,
        scratchpad="\n".join(scratchpad) or "(empty)",
    )

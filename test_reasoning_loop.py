"""
Reasoning Loop Tests

Tests for the bounded think/act/observe sub-agent using a scripted mock
completion service and in-process tools.
"""

import asyncio
import json


def action(thought="thinking", tool=None, tool_input=None, final=False, output=None) -> str:
    """Render an AgentAction completion."""
    return json.dumps({
        "toolToUse": tool,
        "toolInput": tool_input or {},
        "thought": thought,
        "isFinalAnswer": final,
        "agentOutput": output,
    })


def make_backend():
    """In-process backend with one working and one failing tool."""
    from taskpilot.tools import LocalToolBackend

    backend = LocalToolBackend("metadata")
    backend.calls = []

    @backend.tool(description="Get the current value of an asset")
    def get_value(asset: str) -> str:
        backend.calls.append(asset)
        return f"{asset} reads 42"

    @backend.tool(description="A tool that always fails")
    def unstable(asset: str) -> str:
        raise ConnectionError(f"{asset} sensor offline")

    return backend


async def make_agent(responses, max_iterations=5):
    from taskpilot.config import MockCompletionService, ReasoningConfig
    from taskpilot.orchestration import ReasoningAgent

    completion = MockCompletionService(responses)
    backend = make_backend()
    agent = await ReasoningAgent.create(
        name="MetaAgent",
        description="Answers questions about asset metadata",
        completion=completion,
        backends=[backend],
        config=ReasoningConfig(max_iterations=max_iterations),
    )
    return agent, completion, backend


async def test_final_answer_first_iteration():
    """Test that a final answer is returned immediately."""
    print("=" * 60)
    print("TEST 1: Immediate final answer")
    print("=" * 60)

    agent, completion, _ = await make_agent([action(final=True, output="All good")])
    result = await agent.process("Check status", {"asset": "pump1"})
    print(f"\n  Result: {result}")

    assert result == "All good"
    assert len(completion.calls) == 1
    call = completion.calls[0]
    assert call["response_format"] == "json_object"
    assert "MetaAgent" in call["system_prompt"]
    assert '{"asset": "pump1"}' in call["prompt"]
    assert "- get_value: Get the current value of an asset" in call["prompt"]
    print("\n[PASS] Final answer returned, prompt carries task, params and tools")


async def test_tool_call_then_answer():
    """Test a tool call followed by a final answer."""
    print("\n" + "=" * 60)
    print("TEST 2: Tool call then final answer")
    print("=" * 60)

    agent, completion, backend = await make_agent([
        action(thought="Look it up", tool="metadata.get_value", tool_input={"asset": "pump1"}),
        action(thought="Done", final=True, output="pump1 reads 42"),
    ])
    result = await agent.process("Get value of pump1", {"asset": "pump1"})
    print(f"\n  Result: {result}")

    assert result == "pump1 reads 42"
    assert backend.calls == ["pump1"]
    second_prompt = completion.prompts[1]
    assert "Attempt 1 Thought: Look it up" in second_prompt
    assert "Attempt 1 Action: Use tool 'metadata.get_value' with input: {\"asset\": \"pump1\"}" in second_prompt
    assert "Attempt 1 Observation: pump1 reads 42" in second_prompt
    print("\n[PASS] Observation fed back into the scratchpad")


async def test_adversarial_never_final_is_bounded():
    """Test that a model that never finishes stops at the iteration budget."""
    print("\n" + "=" * 60)
    print("TEST 3: Never-final model is bounded")
    print("=" * 60)

    agent, completion, _ = await make_agent([action(thought="hmm")], max_iterations=4)
    result = await agent.process("Loop forever", {})
    print(f"\n  Result: {result}")

    assert len(completion.calls) == 4
    assert result == "[MetaAgent - ReAct] No final answer received after 4 iterations. Ending ReAct loop."
    assert "Attempt 3 Observation: No action taken." in completion.prompts[3]
    print("\n[PASS] Exhaustion text returned after the budget")


async def test_unknown_tool_continues():
    """Test that an unknown tool is skipped and the loop continues."""
    print("\n" + "=" * 60)
    print("TEST 4: Unknown tool")
    print("=" * 60)

    agent, completion, backend = await make_agent([
        action(tool="delete_everything", tool_input={"really": "yes"}),
        action(final=True, output="Recovered"),
    ])
    result = await agent.process("Do something", {})
    print(f"\n  Result: {result}")

    assert result == "Recovered"
    assert backend.calls == []
    assert "no tool was invoked" in completion.prompts[1]
    print("\n[PASS] Unknown tool noted, loop continued")


async def test_tool_error_ends_loop():
    """Test that a backend error terminates the loop with text."""
    print("\n" + "=" * 60)
    print("TEST 5: Tool error")
    print("=" * 60)

    agent, completion, _ = await make_agent([
        action(tool="unstable", tool_input={"asset": "pump9"}),
        action(final=True, output="never reached"),
    ])
    result = await agent.process("Read pump9", {})
    print(f"\n  Result: {result}")

    assert len(completion.calls) == 1
    assert result.startswith("[MetaAgent - ReAct] Tool 'unstable' failed:")
    assert "pump9 sensor offline" in result
    print("\n[PASS] Tool error returned as text, not raised")


async def test_parse_failure_ends_loop():
    """Test that unparsable output terminates the loop immediately."""
    print("\n" + "=" * 60)
    print("TEST 6: Parse failure")
    print("=" * 60)

    agent, completion, _ = await make_agent([
        "Sure! I'll call the tool now.",
        action(final=True, output="never reached"),
    ])
    result = await agent.process("Anything", {})
    print(f"\n  Result: {result}")

    assert len(completion.calls) == 1
    assert result.startswith("[MetaAgent - ReAct] No final answer received: could not parse")
    print("\n[PASS] Parse failure ends the loop without retry")


async def test_final_answer_without_output():
    """Test that a final answer with no output yields empty text."""
    print("\n" + "=" * 60)
    print("TEST 7: Final answer without output")
    print("=" * 60)

    agent, _, _ = await make_agent([action(final=True)])
    result = await agent.process("Anything", {})
    assert result == ""
    print("\n[PASS] Empty output returned as empty text")


async def test_completion_error_propagates():
    """Test that an unreachable completion service is not converted to text."""
    print("\n" + "=" * 60)
    print("TEST 8: Completion service error")
    print("=" * 60)

    from taskpilot.llm import CompletionServiceError

    def unreachable(prompt):
        raise CompletionServiceError("connection refused")

    agent, _, _ = await make_agent(unreachable)
    try:
        await agent.process("Anything", {})
    except CompletionServiceError as e:
        print(f"\n  Raised: {e}")
    else:
        raise AssertionError("Expected CompletionServiceError")
    print("\n[PASS] Completion failure propagated")


class SlowCompletion:
    """Completion service that never answers in time."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def complete(self, prompt, **kwargs):
        self.started.set()
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return action(final=True, output="too late")


async def test_cancellation_aborts_pending_call():
    """Test that setting the cancel event aborts the suspended completion."""
    print("\n" + "=" * 60)
    print("TEST 9: Cancellation")
    print("=" * 60)

    from taskpilot.orchestration import ReasoningAgent
    from taskpilot.tools import ToolRouter

    completion = SlowCompletion()
    agent = ReasoningAgent("MetaAgent", "", completion, ToolRouter())
    cancel = asyncio.Event()

    task = asyncio.create_task(agent.process("Slow task", {}, cancel))
    await completion.started.wait()
    cancel.set()

    try:
        await task
    except asyncio.CancelledError:
        print("\n  Loop unwound with CancelledError")
    else:
        raise AssertionError("Expected CancelledError")

    assert completion.cancelled
    print("\n[PASS] Pending call aborted and loop unwound")

    # already-set signal stops before any call
    completion = SlowCompletion()
    agent = ReasoningAgent("MetaAgent", "", completion, ToolRouter())
    try:
        await agent.process("Never starts", {}, cancel)
    except asyncio.CancelledError:
        pass
    else:
        raise AssertionError("Expected CancelledError")
    assert not completion.started.is_set()
    print("[PASS] Pre-set signal prevents any call")


async def run_all():
    await test_final_answer_first_iteration()
    await test_tool_call_then_answer()
    await test_adversarial_never_final_is_bounded()
    await test_unknown_tool_continues()
    await test_tool_error_ends_loop()
    await test_parse_failure_ends_loop()
    await test_final_answer_without_output()
    await test_completion_error_propagates()
    await test_cancellation_aborts_pending_call()


def main():
    """Run all tests."""
    print("\n" + "=" * 60)
    print("REASONING LOOP TESTS")
    print("=" * 60)

    asyncio.run(run_all())

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

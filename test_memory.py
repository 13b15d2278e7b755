"""
Memory Store Tests

Tests for the bounded two-tier memory store and keyword relevance retrieval.
"""

import re
import threading


def test_capacity_and_fifo_eviction():
    """Test that both tiers are capped and evict oldest-first."""
    print("=" * 60)
    print("TEST 1: Capacity caps and FIFO eviction")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore(recent_capacity=20, durable_capacity=5)
    for i in range(25):
        store.add(f"item {i}", promote=(i % 3 == 0))

    recent = store.recent_items
    durable = store.durable_items
    print(f"\n  Recent: {len(recent)} items, first={recent[0].content}")
    print(f"  Durable: {len(durable)} items, first={durable[0].content}")

    assert len(recent) == 20
    assert [m.content for m in recent] == [f"item {i}" for i in range(5, 25)]
    # promoted: 0, 3, 6, 9, 12, 15, 18, 21, 24 -> last five survive
    assert [m.content for m in durable] == ["item 12", "item 15", "item 18", "item 21", "item 24"]
    print("\n[PASS] Tiers capped with oldest-first eviction")

    stats = store.get_stats()
    assert stats == {"recent": 20, "recent_capacity": 20, "durable": 5, "durable_capacity": 5}
    print("[PASS] get_stats reports sizes and capacities")


def test_invalid_capacity():
    """Test that capacities below one are rejected."""
    print("\n" + "=" * 60)
    print("TEST 2: Invalid capacities")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    for recent, durable in ((0, 5), (20, 0)):
        try:
            MemoryStore(recent_capacity=recent, durable_capacity=durable)
        except ValueError as e:
            print(f"\n  ({recent}, {durable}) rejected: {e}")
        else:
            raise AssertionError("Expected ValueError")

    print("\n[PASS] Capacities below one rejected")


def test_empty_context_returns_newest_of_both_tiers():
    """Test retrieval with an empty context, including de-duplication."""
    print("\n" + "=" * 60)
    print("TEST 3: Empty-context retrieval, de-duplication and ordering")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore()
    for i in range(10):
        store.add(f"a{i}")
    for i in range(4):
        store.add(f"d{i}", promote=True)

    for context in ("", "   "):
        result = store.retrieve(context, max_recent=5, max_durable=3)
        contents = [m.content for m in result]
        print(f"\n  Context {context!r}: {contents}")

        # d1..d3 appear in both tiers but only once in the result
        assert contents == ["d3", "d2", "d1", "d0", "a9"]
        assert len({m.id for m in result}) == len(result)

    print("\n[PASS] Newest recent + newest durable, distinct, most recent first")


def test_tag_value_matching():
    """Test that durable items match on exact tag key or value."""
    print("\n" + "=" * 60)
    print("TEST 4: Tag matching")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore()
    tagged = store.add("unrelated text", tags={"asset": "pump42"}, promote=True)
    for i in range(6):
        store.add(f"filler {i}")

    hit = store.retrieve("What is the status of pump42?")
    miss = store.retrieve("What is the status of pump")
    by_key = store.retrieve("which asset")

    print(f"\n  'pump42' query includes tagged item: {tagged.id in {m.id for m in hit}}")
    print(f"  'pump' query includes tagged item: {tagged.id in {m.id for m in miss}}")

    assert tagged.id in {m.id for m in hit}
    assert tagged.id not in {m.id for m in miss}
    assert tagged.id in {m.id for m in by_key}
    print("\n[PASS] Tag key/value matched exactly, not by prefix")


def test_content_substring_matching():
    """Test that durable items match when content contains a keyword."""
    print("\n" + "=" * 60)
    print("TEST 5: Content substring matching")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore()
    match = store.add("The Pressure reading was HIGH", promote=True)
    other = store.add("Temperature nominal", promote=True)
    for i in range(6):
        store.add(f"filler {i}")

    result = store.retrieve("pressure?", max_recent=0)
    print(f"\n  Retrieved: {[m.content for m in result]}")

    assert [m.id for m in result] == [match.id]
    assert other.id not in {m.id for m in result}
    print("\n[PASS] Case-insensitive content substring match")


def test_keyword_split_characters():
    """Test keyword extraction splits on space and , . ? ! only."""
    print("\n" + "=" * 60)
    print("TEST 6: Keyword extraction")
    print("=" * 60)

    from taskpilot.memory import extract_keywords

    keywords = extract_keywords("Hello, World. Is it pump-42?!  yes")
    print(f"\n  Keywords: {keywords}")

    assert keywords == ["hello", "world", "is", "it", "pump-42", "yes"]
    print("\n[PASS] Separators honored, hyphen kept")


def test_empty_store_and_format():
    """Test the sentinel for no memories and the line format."""
    print("\n" + "=" * 60)
    print("TEST 7: Empty store and formatting")
    print("=" * 60)

    from taskpilot.memory import NO_MEMORIES_SENTINEL, MemoryKind, MemoryStore

    store = MemoryStore()
    result = store.retrieve("anything at all")
    assert result == []
    assert MemoryStore.format(result) == NO_MEMORIES_SENTINEL
    print(f"\n  Empty store formats as: {NO_MEMORIES_SENTINEL}")

    store.add("42 units", kind=MemoryKind.AGENT_RESULT, source="MetaAgent")
    formatted = MemoryStore.format(store.retrieve(""))
    print(f"  Formatted: {formatted}")

    assert re.fullmatch(
        r"- \(AgentResult from MetaAgent at \d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\): 42 units",
        formatted,
    )
    print("\n[PASS] Sentinel and line format correct")


def test_clear():
    """Test that clear() empties both tiers."""
    print("\n" + "=" * 60)
    print("TEST 8: Clear")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore()
    store.add("x", promote=True)
    store.clear()

    assert store.recent_items == []
    assert store.durable_items == []
    print("\n[PASS] Both tiers cleared")


def test_concurrent_adds():
    """Test that concurrent adds keep the caps intact."""
    print("\n" + "=" * 60)
    print("TEST 9: Concurrent adds")
    print("=" * 60)

    from taskpilot.memory import MemoryStore

    store = MemoryStore(recent_capacity=20, durable_capacity=5)

    def worker(n: int):
        for i in range(200):
            store.add(f"w{n}-{i}", promote=(i % 2 == 0))
            store.retrieve(f"w{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stats = store.get_stats()
    print(f"\n  Stats after 1600 adds: {stats}")

    assert stats["recent"] == 20
    assert stats["durable"] == 5
    sequences = [m.sequence for m in store.recent_items]
    assert sequences == sorted(sequences)
    print("\n[PASS] Caps and insertion order hold under concurrency")


def test_items_are_hashable_by_id():
    """Test that items with tags can be used in sets and compare by id."""
    print("\n" + "=" * 60)
    print("TEST 10: Item identity")
    print("=" * 60)

    from dataclasses import replace

    from taskpilot.memory import MemoryStore

    store = MemoryStore()
    item = store.add("x", tags={"a": "b"}, promote=True)
    other = store.add("x", tags={"a": "b"})

    seen = {item, other, *store.durable_items}
    print(f"\n  Distinct items: {len(seen)}")

    assert len(seen) == 2
    assert item != other
    assert replace(item, content="changed") == item
    print("\n[PASS] Items hash and compare by id")


def main():
    """Run all tests."""
    print("\n" + "=" * 60)
    print("MEMORY STORE TESTS")
    print("=" * 60)

    test_capacity_and_fifo_eviction()
    test_invalid_capacity()
    test_empty_context_returns_newest_of_both_tiers()
    test_tag_value_matching()
    test_content_substring_matching()
    test_keyword_split_characters()
    test_empty_store_and_format()
    test_clear()
    test_concurrent_adds()
    test_items_are_hashable_by_id()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()

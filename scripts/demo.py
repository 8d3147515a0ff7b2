#!/usr/bin/env python3
"""
Demo script for the semantic LLM cache.

Walks through a miss, a paraphrased hit, a signature mismatch and a
filtered clear. Uses the backend and embedding provider from the
environment (CACHE_BACKEND=memory works without Redis); answers are
produced by a stand-in generator, so no OpenAI key is needed.
"""

import asyncio
import time

from semantic_llm_cache import CacheSource, SemanticCacheService, build_signature
from semantic_llm_cache.config import settings
from semantic_llm_cache.logging_config import configure_logging
from semantic_llm_cache.repositories import create_cache_store, create_embedding_provider

SYSTEM_PROMPT = "You are a Web MDN Documentation expert."

ANSWERS = {
    "What is a Promise?": "A Promise is an object representing the eventual completion or failure of an async operation.",
    "How do I debounce a function?": "Wrap it so repeated calls within a delay only trigger the last one, using setTimeout.",
}


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


class DemoGenerator:
    """Stand-in for the LLM: answers from a table and counts calls."""

    def __init__(self) -> None:
        self.calls = 0

    def for_prompt(self, prompt: str):
        async def generate() -> str:
            self.calls += 1
            await asyncio.sleep(0.5)  # pretend to be a slow LLM
            return ANSWERS.get(prompt, f"(generated answer for: {prompt})")

        return generate


async def ask(cache: SemanticCacheService, generator: DemoGenerator, prompt: str, signature: str) -> None:
    start = time.time()
    result = await cache.lookup_or_generate(prompt, signature, generator.for_prompt(prompt))
    duration = (time.time() - start) * 1000

    marker = "✓ CACHE HIT" if result.source is CacheSource.HIT else "✗ Cache miss (generated)"
    print(f"\n  Query: {prompt}")
    print(f"  {marker} in {duration:.0f}ms, id={result.id}")
    print(f"  Response: {result.response[:80]}...")


async def demo_basic_cache(cache: SemanticCacheService, generator: DemoGenerator) -> None:
    """Demonstrate miss, hit and signature mismatch."""
    print_section("Miss, Hit and Signature Mismatch")

    s1 = build_signature("gpt-4o-mini", 0.7, 1024, SYSTEM_PROMPT)
    s2 = build_signature("gpt-4o-mini", 0.2, 1024, SYSTEM_PROMPT)
    print(f"\n  Signature S1: {s1}")
    print(f"  Signature S2: {s2}")

    print("\n📝 First question under S1 (expect miss):")
    await ask(cache, generator, "What is a Promise?", s1)

    print("\n🔍 Paraphrase under S1 (expect hit):")
    await ask(cache, generator, "Explain what a Promise is", s1)

    print("\n🔍 Same paraphrase under S2 (expect miss, different temperature):")
    await ask(cache, generator, "Explain what a Promise is", s2)

    print("\n🔍 Unrelated question under S1 (expect miss):")
    await ask(cache, generator, "How do I debounce a function?", s1)

    print(f"\n  Generator calls so far: {generator.calls}")


async def demo_clear(cache: SemanticCacheService) -> None:
    """Demonstrate clearing by signature."""
    print_section("Clear by Signature")

    s1 = build_signature("gpt-4o-mini", 0.7, 1024, SYSTEM_PROMPT)
    deleted = await cache.clear(s1)
    print(f"\n  Removed {deleted} entries with signature S1")

    remaining = await cache.clear()
    print(f"  Removed {remaining} remaining entries")


async def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n🚀 Semantic LLM Cache Demo")
    print("=" * 70)
    print(f"Backend: {settings.cache_backend}, embeddings: {settings.embedding_provider}")

    embedding_provider = create_embedding_provider(settings)
    cache = SemanticCacheService.create(
        repository=create_cache_store(embedding_provider, settings),
        embedding_provider=embedding_provider,
    )
    generator = DemoGenerator()

    try:
        await demo_basic_cache(cache, generator)
        await demo_clear(cache)

        print_section("Metrics")
        for name, value in cache.metrics.to_dict().items():
            print(f"  {name}: {value}")

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        print("\nMake sure Redis Stack is running:")
        print("  docker run -p 6379:6379 redis/redis-stack-server")
        print("\nOr run without Redis: CACHE_BACKEND=memory python scripts/demo.py")
    finally:
        await cache.close()


if __name__ == "__main__":
    asyncio.run(main())

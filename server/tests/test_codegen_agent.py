import asyncio
import json
import unittest
from typing import List

from velura.core.codegen_agent import call_with_deadline, generate_code, stream_generate_code
from velura.core.errors import (
    MalformedResponseError,
    UnparsableResponseError,
    UpstreamCallError,
    UpstreamTimeoutError,
)
from velura.core.scaffold import is_bootable
from velura.models import EventType, ProgressStep, StatusEvent

GOOD_RESPONSE = json.dumps({
    "src/App.tsx": "import Hero from './components/Hero'\nexport default function App() { return <Hero /> }",
    "src/components/Hero.tsx": "export default function Hero() { return <h1>Hi</h1> }",
    "src/index.css": "@tailwind base;",
})


class FakeModel:
    """Stands in for the model-call collaborator and records what it was sent."""

    def __init__(self, response: str = GOOD_RESPONSE, error: Exception = None, delay: float = 0):
        self.response = response
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []
        self.cancelled = False

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return self.response


async def collect(agen) -> List[StatusEvent]:
    return [event async for event in agen]


class TestStreamGenerateCode(unittest.IsolatedAsyncioTestCase):

    async def test_success_sequence(self):
        model = FakeModel()
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))

        steps = [e.step for e in events]
        self.assertEqual(steps, [
            ProgressStep.STARTED,
            ProgressStep.ANALYZING,
            ProgressStep.PREPARING,
            ProgressStep.CONNECTING,
            ProgressStep.MODEL_CALL_IN_FLIGHT,
            ProgressStep.EXTRACTING,
            ProgressStep.FILES_DETECTED,
            ProgressStep.VALIDATING,
            ProgressStep.OPTIMIZING,
            ProgressStep.COMPLETE,
        ])
        types = [e.type for e in events]
        self.assertEqual(types.count(EventType.COMPLETE), 1)
        self.assertEqual(types.count(EventType.FILES_DETECTED), 1)
        self.assertNotIn(EventType.ERROR, types)
        self.assertEqual([e.is_terminal for e in events], [False] * 9 + [True])

        last = events[-1]
        self.assertEqual(last.type, EventType.COMPLETE)
        self.assertTrue(is_bootable(last.files))
        self.assertNotIn("src/index.css", last.files)
        self.assertEqual(last.summary.totalFiles, len(last.files))
        self.assertEqual(last.summary.fileNames, list(last.files))
        self.assertFalse(last.summary.isUpdate)
        self.assertIsNotNone(last.timestamp)

        self.assertEqual(model.prompts, ["A landing page for a bakery"])

    async def test_files_detected_event(self):
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=FakeModel(), pacing=0))
        detected = [e for e in events if e.type == EventType.FILES_DETECTED][0]
        complete = events[-1]
        self.assertEqual(detected.files, list(complete.files))
        self.assertTrue(detected.message.startswith(f"{len(complete.files)} files detected: "))
        self.assertTrue(detected.message.endswith("..."))

    async def test_update_uses_contextual_prompt(self):
        model = FakeModel()
        current = {"src/App.tsx": "old"}
        events = await collect(stream_generate_code("Make it dark mode", current, model_call=model, pacing=0))
        self.assertTrue(events[-1].summary.isUpdate)
        self.assertIn("CURRENT FILES JSON", model.prompts[0])
        self.assertIn('"Make it dark mode"', model.prompts[0])
        preparing = [e for e in events if e.step == ProgressStep.PREPARING][0]
        self.assertEqual(preparing.message, "Loading existing files...")

    async def test_empty_current_files_is_fresh_project(self):
        model = FakeModel()
        events = await collect(stream_generate_code("A landing page for a bakery", {}, model_call=model, pacing=0))
        self.assertFalse(events[-1].summary.isUpdate)
        self.assertEqual(model.prompts, ["A landing page for a bakery"])
        preparing = [e for e in events if e.step == ProgressStep.PREPARING][0]
        self.assertEqual(preparing.message, "Starting project from scratch...")

    async def _assert_single_error(self, events: List[StatusEvent], code: int) -> StatusEvent:
        types = [e.type for e in events]
        self.assertEqual(types.count(EventType.ERROR), 1)
        self.assertNotIn(EventType.COMPLETE, types)
        self.assertEqual(events[-1].type, EventType.ERROR)
        self.assertEqual(events[-1].code, code)
        self.assertEqual([e.is_terminal for e in events], [False] * (len(events) - 1) + [True])
        return events[-1]

    async def test_unparsable_response(self):
        model = FakeModel(response="not a json at all { invalid ::: }")
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))
        err = await self._assert_single_error(events, 422)
        self.assertIn("Failed to parse", err.message)
        self.assertNotIn(ProgressStep.FILES_DETECTED, [e.step for e in events])

    async def test_malformed_response(self):
        model = FakeModel(response="I'm sorry, I can't do that.")
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))
        await self._assert_single_error(events, 422)

    async def test_upstream_failure(self):
        model = FakeModel(error=UpstreamCallError("AI model call failed: 503 overloaded"))
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))
        err = await self._assert_single_error(events, 502)
        self.assertIn("503 overloaded", err.error)

    async def test_upstream_status_reaches_error_event(self):
        model = FakeModel(error=UpstreamCallError("AI model call failed: 429 rate limited", status_code=429))
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))
        await self._assert_single_error(events, 429)

    async def test_timeout(self):
        model = FakeModel(delay=5)
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model,
                                                    timeout=0.05, pacing=0))
        err = await self._assert_single_error(events, 408)
        self.assertIn("timeout", err.message)
        self.assertTrue(model.cancelled)

    async def test_unexpected_exception_becomes_error_event(self):
        model = FakeModel(error=RuntimeError("Please set GOOGLE_API_KEY_GEMINI"))
        events = await collect(stream_generate_code("A landing page for a bakery", model_call=model, pacing=0))
        err = await self._assert_single_error(events, 500)
        self.assertIn("GOOGLE_API_KEY_GEMINI", err.message)

    async def test_consumer_cancellation_aborts_model_call(self):
        model = FakeModel(delay=5)

        async def consume():
            async for _ in stream_generate_code("A landing page for a bakery", model_call=model,
                                                timeout=10, pacing=0):
                pass

        task = asyncio.ensure_future(consume())
        await asyncio.sleep(0.05)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(model.cancelled)


class TestCallWithDeadline(unittest.IsolatedAsyncioTestCase):

    async def test_returns_result(self):
        self.assertEqual(await call_with_deadline(FakeModel(response="{}"), "p", timeout=1), "{}")

    async def test_timeout_raises(self):
        model = FakeModel(delay=5)
        with self.assertRaises(UpstreamTimeoutError):
            await call_with_deadline(model, "p", timeout=0.05)
        self.assertTrue(model.cancelled)


class TestGenerateCode(unittest.IsolatedAsyncioTestCase):

    async def test_returns_bootable_files(self):
        files = await generate_code("A landing page for a bakery", model_call=FakeModel())
        self.assertTrue(is_bootable(files))
        self.assertIn("src/components/Hero.tsx", files)

    async def test_errors_propagate(self):
        with self.assertRaises(UnparsableResponseError):
            await generate_code("A landing page for a bakery", model_call=FakeModel(response="{ nope :: }"))
        with self.assertRaises(MalformedResponseError):
            await generate_code("A landing page for a bakery", model_call=FakeModel(response="nope"))


if __name__ == "__main__":
    unittest.main()

"""Tests for DialogEngine: the dialog call stack machine."""
import asyncio
import json

import pytest

from dialog_engine.exceptions import DialogNotFoundError, TurnCancelledError
from dialog_engine.execution.context import TurnContext
from dialog_engine.execution.dialogs import CompositeDialog, DialogRegistry, StepSequenceDialog
from dialog_engine.execution.engine import DialogEngine
from dialog_engine.execution.prompts import TextPrompt
from dialog_engine.execution.schemas.state_machine import TurnStatus
from dialog_engine.schemas.prompts import PromptOptions
from dialog_engine.domain.models import MessageFactory
from dialog_engine.state.models import DialogStack


def make_engine(*dialogs) -> DialogEngine:
    return DialogEngine(DialogRegistry(dialogs))


async def wait(step):
    await step.send(f"waiting in {step.dialog_id}")
    return step.end_of_turn()


class TestStepSequence:
    @pytest.mark.asyncio
    async def test_begin_runs_first_step_and_suspends(self, make_context):
        received = []

        async def finish(step):
            received.append(step.result)
            return step.end_dialog("done")

        engine = make_engine(StepSequenceDialog("root", [wait, finish]))
        stack = DialogStack()
        context = make_context("hi")

        result = await engine.create_context(stack, context).begin_dialog("root")

        assert result.status == TurnStatus.WAITING
        assert stack.depth == 1
        assert stack.active_frame.step_index == 0
        assert [a.text for a in context.sent_activities] == ["waiting in root"]

        result = await engine.create_context(stack, make_context("answer")).continue_dialog()

        assert result.status == TurnStatus.COMPLETE
        assert result.value == "done"
        assert received == ["answer"]
        assert not stack

    @pytest.mark.asyncio
    async def test_continue_with_empty_stack_is_complete(self, make_context):
        engine = make_engine(StepSequenceDialog("root", [wait]))
        stack = DialogStack()

        result = await engine.create_context(stack, make_context("hi")).continue_dialog()

        assert result.status == TurnStatus.COMPLETE
        assert result.value is None
        assert not stack

    @pytest.mark.asyncio
    async def test_next_runs_following_step_in_same_turn(self, make_context):
        async def first(step):
            return step.next(5)

        async def second(step):
            return step.end_dialog(step.result * 2)

        engine = make_engine(StepSequenceDialog("root", [first, second]))

        result = await engine.create_context(DialogStack(), make_context()).begin_dialog("root")

        assert result.status == TurnStatus.COMPLETE
        assert result.value == 10

    @pytest.mark.asyncio
    async def test_running_past_last_step_ends_with_last_result(self, make_context):
        async def only(step):
            return step.next("last")

        engine = make_engine(StepSequenceDialog("root", [only]))
        stack = DialogStack()

        result = await engine.create_context(stack, make_context()).begin_dialog("root")

        assert result.status == TurnStatus.COMPLETE
        assert result.value == "last"
        assert not stack

    @pytest.mark.asyncio
    async def test_step_must_return_step_result(self, make_context):
        async def broken(step):
            return "oops"

        engine = make_engine(StepSequenceDialog("root", [broken]))

        with pytest.raises(TypeError, match="expected StepResult"):
            await engine.create_context(DialogStack(), make_context()).begin_dialog("root")

    def test_sequence_needs_steps(self):
        with pytest.raises(ValueError):
            StepSequenceDialog("empty", [])


class TestCallAndReturn:
    @pytest.mark.asyncio
    async def test_child_result_resumes_parent_at_next_step(self, make_context):
        received = []

        async def call_child(step):
            return step.begin_dialog("child", {"n": 1})

        async def after_child(step):
            received.append(step.result)
            return step.end_of_turn()

        async def child_ask(step):
            await step.send(f"child got {step.options['n']}")
            return step.end_of_turn()

        async def child_finish(step):
            return step.end_dialog(step.result.upper())

        engine = make_engine(
            StepSequenceDialog("parent", [call_child, after_child]),
            StepSequenceDialog("child", [child_ask, child_finish]),
        )
        stack = DialogStack()
        context = make_context()

        result = await engine.create_context(stack, context).begin_dialog("parent")

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert [f.dialog_id for f in stack.frames] == ["parent", "child"]
        assert context.sent_activities[0].text == "child got 1"

        result = await engine.create_context(stack, make_context("yes")).continue_dialog()

        assert result.status == TurnStatus.WAITING
        assert received == ["YES"]
        assert [f.dialog_id for f in stack.frames] == ["parent"]
        assert stack.active_frame.step_index == 1

    @pytest.mark.asyncio
    async def test_end_dialog_on_empty_stack_completes_with_result(self, make_context):
        engine = make_engine(StepSequenceDialog("root", [wait]))
        stack = DialogStack()

        result = await engine.create_context(stack, make_context()).end_dialog("value")

        assert result.status == TurnStatus.COMPLETE
        assert result.value == "value"
        assert stack.depth == 0

    @pytest.mark.asyncio
    async def test_end_dialog_pops_one_frame_and_resumes_parent(self, make_context):
        received = []

        async def call_child(step):
            return step.begin_dialog("child")

        async def after_child(step):
            received.append(step.result)
            return step.end_of_turn()

        engine = make_engine(
            StepSequenceDialog("parent", [call_child, after_child]),
            StepSequenceDialog("child", [wait]),
        )
        stack = DialogStack()
        dc = engine.create_context(stack, make_context())
        await dc.begin_dialog("parent")
        assert stack.depth == 2
        assert stack.frames[0].step_index == 0

        result = await dc.end_dialog("from child")

        assert result.status == TurnStatus.WAITING
        assert received == ["from child"]
        assert stack.depth == 1
        assert stack.active_frame.dialog_id == "parent"
        assert stack.active_frame.step_index == 1

    @pytest.mark.asyncio
    async def test_replace_keeps_depth_and_resets_values(self, make_context):
        seen = []

        async def call_loop(step):
            return step.begin_dialog("loop")

        async def count(step):
            step.values["visits"] = step.values.get("visits", 0) + 1
            seen.append(step.values["visits"])
            if len(seen) < 3:
                return step.replace_dialog("loop")
            return step.end_of_turn()

        engine = make_engine(
            StepSequenceDialog("parent", [call_loop, wait]),
            StepSequenceDialog("loop", [count]),
        )
        stack = DialogStack()

        result = await engine.create_context(stack, make_context()).begin_dialog("parent")

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert seen == [1, 1, 1]
        assert stack.depth == 2
        assert stack.active_frame.values == {"visits": 1}

    @pytest.mark.asyncio
    async def test_unknown_dialog_raises(self, make_context):
        engine = make_engine(StepSequenceDialog("root", [wait]))
        stack = DialogStack()

        with pytest.raises(DialogNotFoundError) as excinfo:
            await engine.create_context(stack, make_context()).begin_dialog("missing")

        assert excinfo.value.dialog_id == "missing"
        assert not stack

    @pytest.mark.asyncio
    async def test_replace_with_unknown_dialog_leaves_stack_alone(self, make_context):
        engine = make_engine(StepSequenceDialog("root", [wait]))
        stack = DialogStack()
        dc = engine.create_context(stack, make_context())
        await dc.begin_dialog("root")

        with pytest.raises(DialogNotFoundError):
            await dc.replace_dialog("missing")

        assert [f.dialog_id for f in stack.frames] == ["root"]


class TestComposite:
    @staticmethod
    def build_engine(received=None) -> DialogEngine:
        async def ask_name(step):
            return step.prompt(
                "ask", PromptOptions(prompt=MessageFactory.text("Name?"))
            )

        async def greet(step):
            return step.end_dialog(f"Hi {step.result}")

        profile = CompositeDialog("profile")
        profile.add_dialog(TextPrompt("ask")).add_dialog(
            StepSequenceDialog("profile", [ask_name, greet])
        )

        async def start(step):
            return step.begin_dialog("profile")

        async def finish(step):
            if received is not None:
                received.append(step.result)
            return step.end_dialog(step.result)

        return make_engine(StepSequenceDialog("root", [start, finish]), profile)

    @pytest.mark.asyncio
    async def test_composite_runs_children_on_its_own_stack(self, make_context):
        engine = self.build_engine()
        stack = DialogStack()
        context = make_context()

        result = await engine.create_context(stack, context).begin_dialog("root")

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert [f.dialog_id for f in stack.frames] == ["root", "profile"]
        inner = stack.active_frame.inner_stack
        assert [f.dialog_id for f in inner.frames] == ["profile", "ask"]
        assert context.sent_activities[0].text == "Name?"

    @pytest.mark.asyncio
    async def test_suspended_stack_survives_json_round_trip(self, make_context):
        received = []
        stack = DialogStack()
        await self.build_engine().create_context(stack, make_context()).begin_dialog("root")

        restored = DialogStack.model_validate(json.loads(json.dumps(stack.model_dump(mode="json"))))
        assert restored == stack

        # A new engine, as in a later process, picks the conversation up
        engine = self.build_engine(received)
        result = await engine.create_context(restored, make_context("Ada")).continue_dialog()

        assert result.status == TurnStatus.COMPLETE
        assert result.value == "Hi Ada"
        assert received == ["Hi Ada"]
        assert not restored

    @pytest.mark.asyncio
    async def test_child_context_falls_back_to_parent_registry(self, make_context):
        async def start_shared(step):
            return step.begin_dialog("shared")

        inner = CompositeDialog("outer")
        inner.add_dialog(StepSequenceDialog("outer", [start_shared]))
        engine = make_engine(inner, StepSequenceDialog("shared", [wait]))
        stack = DialogStack()
        context = make_context()

        await engine.create_context(stack, context).begin_dialog("outer")

        assert [f.dialog_id for f in stack.active_frame.inner_stack.frames] == ["outer", "shared"]
        assert context.sent_activities[0].text == "waiting in shared"


class TestInterruption:
    @pytest.mark.asyncio
    async def test_cancel_all_dialogs_clears_the_stack(self, make_context):
        async def call_child(step):
            return step.begin_dialog("child")

        engine = make_engine(
            StepSequenceDialog("parent", [call_child]),
            StepSequenceDialog("child", [wait]),
        )
        stack = DialogStack()
        dc = engine.create_context(stack, make_context())
        await dc.begin_dialog("parent")

        result = await dc.cancel_all_dialogs()

        assert result.status == TurnStatus.CANCELLED
        assert not stack

        result = await dc.cancel_all_dialogs()
        assert result.status == TurnStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_cancelled_turn_stops_before_running_steps(self, make_activity):
        calls = []

        async def record(step):
            calls.append(step.index)
            return step.end_of_turn()

        engine = make_engine(StepSequenceDialog("root", [record]))
        stack = DialogStack()
        cancellation = asyncio.Event()
        cancellation.set()
        context = TurnContext(make_activity("hi"), cancellation=cancellation)

        with pytest.raises(TurnCancelledError):
            await engine.create_context(stack, context).begin_dialog("root")

        assert calls == []
        assert not stack

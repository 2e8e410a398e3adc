"""Tests for Prompt dialogs: recognition, validation and the retry loop."""
import pytest

from dialog_engine.domain.models import Activity, ActivityType, MessageFactory
from dialog_engine.execution.dialogs import DialogRegistry, StepSequenceDialog
from dialog_engine.execution.engine import DialogEngine
from dialog_engine.execution.prompts import (
    ChoicePrompt,
    ConfirmPrompt,
    DateTimePrompt,
    NumberPrompt,
    TextPrompt,
)
from dialog_engine.execution.schemas.state_machine import TurnStatus
from dialog_engine.schemas.prompts import Choice, PromptOptions
from dialog_engine.state.models import DialogStack

ASK = PromptOptions(
    prompt=MessageFactory.text("How many?"),
    retry_prompt=MessageFactory.text("Please enter a number."),
)


def recognize(prompt, text, options=None):
    return prompt.recognize(Activity(text=text), options or PromptOptions())


class PromptHarness:
    """Runs one prompt under a root step sequence and collects what it returns."""

    def __init__(self, prompt, options=ASK):
        self.results = []

        async def ask(step):
            return step.prompt(prompt.id, options)

        async def done(step):
            self.results.append(step.result)
            return step.end_dialog(step.result)

        self.engine = DialogEngine(DialogRegistry([StepSequenceDialog("root", [ask, done]), prompt]))
        self.stack = DialogStack()

    async def begin(self, context):
        return await self.engine.create_context(self.stack, context).begin_dialog("root")

    async def answer(self, context):
        return await self.engine.create_context(self.stack, context).continue_dialog()


class TestPromptLoop:
    @pytest.mark.asyncio
    async def test_begin_sends_prompt_and_waits(self, make_context):
        harness = PromptHarness(NumberPrompt("number", number_type=int))
        context = make_context("start")

        result = await harness.begin(context)

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert [a.text for a in context.sent_activities] == ["How many?"]
        assert harness.stack.active_frame.dialog_id == "number"
        assert harness.stack.active_frame.pending_prompt_options["prompt"]["text"] == "How many?"

    @pytest.mark.asyncio
    async def test_unrecognized_input_sends_retry_prompt(self, make_context):
        harness = PromptHarness(NumberPrompt("number", number_type=int))
        await harness.begin(make_context())
        context = make_context("lots")

        result = await harness.answer(context)

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert [a.text for a in context.sent_activities] == ["Please enter a number."]
        assert harness.stack.active_frame.values["attempt_count"] == 1
        assert harness.results == []

    @pytest.mark.asyncio
    async def test_rejected_input_only_advances_attempt_count(self, make_context):
        harness = PromptHarness(NumberPrompt("number", number_type=int))
        await harness.begin(make_context())
        before = harness.stack.model_copy(deep=True)

        await harness.answer(make_context("lots"))
        await harness.answer(make_context("many"))

        frame = harness.stack.active_frame
        assert [f.dialog_id for f in harness.stack.frames] == [f.dialog_id for f in before.frames]
        assert frame.step_index == before.active_frame.step_index
        assert frame.pending_prompt_options == before.active_frame.pending_prompt_options
        assert frame.values == {"attempt_count": 2}

    @pytest.mark.asyncio
    async def test_valid_input_returns_value_to_parent(self, make_context):
        harness = PromptHarness(NumberPrompt("number", number_type=int))
        await harness.begin(make_context())
        await harness.answer(make_context("lots"))

        result = await harness.answer(make_context("12 people"))

        assert result.status == TurnStatus.COMPLETE
        assert harness.results == [12]
        assert not harness.stack

    @pytest.mark.asyncio
    async def test_validator_message_replaces_retry_prompt(self, make_context):
        attempts = []

        async def at_least_ten(prompt):
            attempts.append(prompt.attempt_count)
            if prompt.recognized.succeeded and prompt.recognized.value >= 10:
                return True
            await prompt.context.send_activity("Ten or more, please.")
            return False

        harness = PromptHarness(NumberPrompt("number", at_least_ten, number_type=int))
        await harness.begin(make_context())
        context = make_context("4")

        await harness.answer(context)
        await harness.answer(make_context("10"))

        assert [a.text for a in context.sent_activities] == ["Ten or more, please."]
        assert attempts == [1, 2]
        assert harness.results == [10]

    @pytest.mark.asyncio
    async def test_sync_validator_is_supported(self, make_context):
        harness = PromptHarness(TextPrompt("text", lambda prompt: prompt.recognized.value == "ok"))
        await harness.begin(make_context())

        await harness.answer(make_context("nope"))
        result = await harness.answer(make_context("ok"))

        assert result.status == TurnStatus.COMPLETE
        assert harness.results == ["ok"]

    @pytest.mark.asyncio
    async def test_non_message_activity_leaves_prompt_waiting(self, make_context):
        harness = PromptHarness(TextPrompt("text"))
        await harness.begin(make_context())
        context = make_context(type=ActivityType.TYPING)

        result = await harness.answer(context)

        assert result.status == TurnStatus.ACTIVE_AND_WAITING
        assert context.sent_activities == []
        assert harness.stack.active_frame.values["attempt_count"] == 0


class TestNumberPrompt:
    def test_recognizes_first_number(self):
        result = recognize(NumberPrompt("n"), "about 4.5 kg")
        assert result.succeeded
        assert result.value == 4.5

    def test_int_prompt_rejects_fractions(self):
        assert not recognize(NumberPrompt("n", number_type=int), "4.5").succeeded

    def test_no_number(self):
        assert not recognize(NumberPrompt("n"), "several").succeeded

    def test_invalid_number_type(self):
        with pytest.raises(ValueError):
            NumberPrompt("n", number_type=str)


class TestChoicePrompt:
    OPTIONS = PromptOptions(
        prompt=MessageFactory.text("Please choose a location."),
        choices=[
            Choice(value="Redmond"),
            Choice(value="Bellevue", synonyms=["bvue"]),
            Choice(value="Seattle"),
        ],
    )

    def test_exact_value_is_case_insensitive(self):
        result = recognize(ChoicePrompt("c"), "seattle", self.OPTIONS)
        assert result.value.value == "Seattle"
        assert result.value.index == 2
        assert result.value.score == 1.0

    def test_synonym(self):
        result = recognize(ChoicePrompt("c"), "BVUE", self.OPTIONS)
        assert result.value.value == "Bellevue"
        assert result.value.synonym == "bvue"

    def test_ordinal(self):
        result = recognize(ChoicePrompt("c"), "1", self.OPTIONS)
        assert result.value.value == "Redmond"

    def test_value_mentioned_in_sentence(self):
        result = recognize(ChoicePrompt("c"), "Redmond would be great", self.OPTIONS)
        assert result.value.value == "Redmond"
        assert result.value.score < 1.0

    def test_out_of_range_ordinal_fails(self):
        assert not recognize(ChoicePrompt("c"), "4", self.OPTIONS).succeeded

    def test_prompt_lists_choices_inline(self):
        decorated = ChoicePrompt("c").decorate_prompt(self.OPTIONS.prompt, self.OPTIONS)
        assert decorated.text == "Please choose a location. (1) Redmond, (2) Bellevue, or (3) Seattle"

    def test_inline_list_can_be_turned_off(self):
        decorated = ChoicePrompt("c", inline_choices=False).decorate_prompt(self.OPTIONS.prompt, self.OPTIONS)
        assert decorated.text == "Please choose a location."


class TestConfirmPrompt:
    @pytest.mark.parametrize("text,expected", [("yes", True), ("Yes please", True), ("nope", False)])
    def test_recognizes_yes_and_no(self, text, expected):
        result = recognize(ConfirmPrompt("c"), text)
        assert result.succeeded
        assert result.value is expected

    def test_ambiguous_answer_fails(self):
        assert not recognize(ConfirmPrompt("c"), "yes and no").succeeded

    def test_prompt_mentions_answers(self):
        decorated = ConfirmPrompt("c").decorate_prompt(MessageFactory.text("Sure?"), PromptOptions())
        assert decorated.text == "Sure? (yes or no)"


class TestDateTimePrompt:
    def test_datetime(self):
        result = recognize(DateTimePrompt("d"), "2024-06-01 19:00")
        assert [(r.value, r.timex) for r in result.value] == [("2024-06-01T19:00", "datetime")]

    def test_date(self):
        result = recognize(DateTimePrompt("d"), "on 2024-06-02")
        assert [(r.value, r.timex) for r in result.value] == [("2024-06-02", "date")]

    def test_clock_time(self):
        result = recognize(DateTimePrompt("d"), "at 7:30 tonight")
        assert [(r.value, r.timex) for r in result.value] == [("07:30", "time")]

    def test_every_match_is_resolved(self):
        result = recognize(DateTimePrompt("d"), "2024-06-01T18:00 or 2024-06-02T19:30:15")
        assert [r.value for r in result.value] == ["2024-06-01T18:00", "2024-06-02T19:30:15"]

    def test_invalid_date_is_ignored(self):
        assert not recognize(DateTimePrompt("d"), "2024-13-45").succeeded

    def test_no_date(self):
        assert not recognize(DateTimePrompt("d"), "whenever").succeeded

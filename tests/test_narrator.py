import asyncio

import redis

from civrise.models import NarrationRequest
from civrise.models.enums import BuildingStyle, Era, LogType, NarrationKind
from civrise.narrator import NarrationDispatcher, TemplateNarrator, image_prompt
from civrise.projects import request_chronicle, request_empire_snapshot


class BrokenNarrator(TemplateNarrator):
    async def generate_chronicle(self, snapshot):
        raise RuntimeError("service unavailable")

    async def generate_era_transition(self, era):
        return ""

    async def generate_crisis_log(self, crisis, solved):
        return None


class ImageNarrator(TemplateNarrator):
    async def generate_empire_snapshot(self, snapshot, dominant_style):
        return "data:image/png;base64,AAAA"


def run(coro):
    return asyncio.run(coro)


class TestTemplateNarrator:
    def test_era_text(self):
        text = run(TemplateNarrator().generate_era_transition(Era.INDUSTRIAL))
        assert "Industrial" in text

    def test_no_images(self):
        assert run(TemplateNarrator().generate_empire_snapshot({}, BuildingStyle.NONE)) is None

    def test_image_prompt_mentions_buildings(self):
        prompt = image_prompt(
            {"era": "TRIBAL", "climate": "ARID", "buildings": [{"name": "Hide Tent", "count": 3}]},
            BuildingStyle.MILITARY,
        )
        assert "3 Hide Tent" in prompt
        assert "fortress walls" in prompt


class TestDispatcher:
    def test_text_lands_in_log(self, state):
        async def scenario():
            dispatcher = NarrationDispatcher(TemplateNarrator())
            state.narration_outbox.append(
                NarrationRequest(kind=NarrationKind.ERA_TRANSITION, era=Era.AGRICULTURAL)
            )
            state.narration_outbox.append(
                NarrationRequest(kind=NarrationKind.CRISIS, crisis_id="drought", solved=True)
            )
            assert dispatcher.drain(state) == 2
            assert state.narration_outbox == []
            await dispatcher.wait_idle()

        run(scenario())
        assert [e.type for e in state.logs] == [LogType.AI, LogType.AI]

    def test_failures_degrade_to_nothing(self, state):
        async def scenario():
            dispatcher = NarrationDispatcher(BrokenNarrator())
            request_chronicle(state)
            state.narration_outbox.append(
                NarrationRequest(kind=NarrationKind.ERA_TRANSITION, era=Era.INDUSTRIAL)
            )
            state.narration_outbox.append(
                NarrationRequest(kind=NarrationKind.CRISIS, crisis_id="strike", solved=False)
            )
            dispatcher.drain(state)
            await dispatcher.wait_idle()
            assert dispatcher.pending == 0

        run(scenario())
        assert state.logs == []

    def test_unknown_crisis_is_skipped(self, state):
        async def scenario():
            dispatcher = NarrationDispatcher(TemplateNarrator())
            state.narration_outbox.append(
                NarrationRequest(kind=NarrationKind.CRISIS, crisis_id="meteor", solved=True)
            )
            dispatcher.drain(state)
            await dispatcher.wait_idle()

        run(scenario())
        assert state.logs == []

    def test_images_go_to_callback(self, state):
        received = []

        async def on_image(image):
            received.append(image)

        async def scenario():
            dispatcher = NarrationDispatcher(ImageNarrator(), on_image=on_image)
            request_empire_snapshot(state)
            dispatcher.drain(state)
            await dispatcher.wait_idle()

        run(scenario())
        assert received == ["data:image/png;base64,AAAA"]
        assert state.logs == []

    def test_image_callback_failure_is_contained(self, state):
        async def on_image(image):
            raise redis.exceptions.ConnectionError("redis is down")

        async def scenario():
            dispatcher = NarrationDispatcher(ImageNarrator(), on_image=on_image)
            request_empire_snapshot(state)
            dispatcher.drain(state)
            tasks = list(dispatcher._tasks)
            await dispatcher.wait_idle()
            return tasks

        tasks = run(scenario())
        assert len(tasks) == 1
        assert tasks[0].exception() is None
        assert state.logs == []

    def test_missing_image_reported_as_none(self, state):
        received = []

        async def on_image(image):
            received.append(image)

        async def scenario():
            dispatcher = NarrationDispatcher(TemplateNarrator(), on_image=on_image)
            request_empire_snapshot(state)
            dispatcher.drain(state)
            await dispatcher.wait_idle()

        run(scenario())
        assert received == [None]

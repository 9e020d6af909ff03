"""Tests for the AJAX submit pipeline."""

import asyncio

import pytest

from formwork.data.model import Field, Model
from formwork.form import Form
from formwork.lib.exceptions import FormworkError
from formwork.lib.hooks import FORM_LOAD_POST, FORM_SAVED, hooks
from formwork.lib.js import JsExpression
from formwork.submission import ErrorKind, SubmitContext, SubmitResponse, SubmitState, error_block


def person_model(saved=None, **data):
    return Model(
        [
            Field("name", type="string", required=True),
            Field("age", type="integer"),
            Field("member", type="boolean"),
            Field("joined", type="date", read_only=True),
        ],
        data,
        persister=(lambda m: saved.append(dict(m.data))) if saved is not None else None,
    )


def make_form(model=None):
    form = Form(name="person")
    form.set_model(model if model is not None else person_model())
    return form


class TestLoadPost:
    @pytest.mark.asyncio
    async def test_values_are_cast_onto_model(self):
        form = make_form()
        await form.load_post(SubmitContext({"name": "Ann", "age": "41", "member": "on"}))
        assert form.model.data == {"name": "Ann", "age": 41, "member": True}

    @pytest.mark.asyncio
    async def test_all_errors_reported_and_model_untouched(self):
        model = person_model(name="Old", age=1)
        form = make_form(model)
        with pytest.raises(FormworkError) as exc_info:
            await form.load_post(SubmitContext({"name": "", "age": "abc"}))
        assert exc_info.value.errors == {"name": "Must not be empty", "age": "Must be an integer"}
        assert model.data == {"name": "Old", "age": 1}

    @pytest.mark.asyncio
    async def test_readonly_decorators_are_skipped(self):
        model = person_model(name="Ann")
        form = Form(name="person")
        form.model = model
        form.add_field("name", {"readonly": True})
        await form.load_post(SubmitContext({"name": "Changed"}))
        assert model["name"] == "Ann"

    @pytest.mark.asyncio
    async def test_disabled_decorators_are_skipped(self):
        model = person_model(name="Ann", age=30)
        form = Form(name="person")
        form.model = model
        form.add_field("name", {"disabled": True})
        form.add_field("age")
        await form.load_post(SubmitContext({"name": "Changed", "age": "31"}))
        assert model["name"] == "Ann"
        assert model["age"] == 31

    @pytest.mark.asyncio
    async def test_load_post_filter_can_rewrite_data(self, clean_hooks):
        async def strip(post, form):
            return {k: v.strip() for k, v in post.items()}

        hooks.add_filter(FORM_LOAD_POST, strip)
        form = make_form()
        await form.load_post(SubmitContext({"name": "  Ann  "}))
        assert form.model["name"] == "Ann"


class TestHandleSubmit:
    @pytest.mark.asyncio
    async def test_saves_model_when_no_handler_answers(self, clean_hooks):
        saved, events = [], []
        hooks.add_action(FORM_SAVED, lambda form, model: events.append(form.name))
        form = make_form(person_model(saved))

        response = await form.handle_submit(SubmitContext({"name": "Ann", "age": "41"}))

        assert response.success
        assert saved == [{"name": "Ann", "age": 41, "member": False}]
        assert events == ["person"]
        assert "Form data has been saved" in response.js
        assert form.state is SubmitState.VALIDATED

    @pytest.mark.asyncio
    async def test_invalid_value_is_rejected_with_error_map(self):
        saved = []
        form = make_form(person_model(saved, name="Old"))

        response = await form.handle_submit(SubmitContext({"name": "Ann", "age": "abc"}))

        assert response.success is False
        assert response.kind is ErrorKind.VALIDATION
        assert response.errors == {"age": "Must be an integer"}
        assert response.js == '$("#person").form("add prompt", "age", "Must be an integer");'
        assert form.model["name"] == "Old"
        assert saved == []
        assert form.state is SubmitState.REJECTED

    @pytest.mark.asyncio
    async def test_read_only_field_is_never_written(self):
        model = person_model(joined="2020-01-01")
        form = make_form(model)
        assert "joined" not in form.fields

        response = await form.handle_submit(SubmitContext({"name": "Ann", "joined": "1999-01-01"}))

        assert response.success
        assert model["joined"] == "2020-01-01"

    @pytest.mark.asyncio
    async def test_handler_result_is_forwarded(self):
        form = make_form()
        form.on_submit(lambda ctx: form.success("Hello " + ctx.get("name")))

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.success
        assert response.js.startswith('$("#person").html(')
        assert "Hello Ann" in response.js

    @pytest.mark.asyncio
    async def test_async_handler_and_decorator_form(self):
        form = make_form()

        @form.on_submit
        async def handle(ctx):
            return [form.error("name", "Taken"), "console.log(1)"]

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.js == '$("#person").form("add prompt", "name", "Taken");\nconsole.log(1);'

    @pytest.mark.asyncio
    async def test_none_results_are_ignored(self):
        saved = []
        form = make_form(person_model(saved))
        form.on_submit(lambda ctx: None)

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.success
        assert len(saved) == 1

    @pytest.mark.asyncio
    async def test_dict_result_is_sent_verbatim(self):
        form = make_form()
        form.on_submit(lambda ctx: {"redirect": "/thanks"})

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.to_dict() == {"redirect": "/thanks"}

    @pytest.mark.asyncio
    async def test_submit_response_result_is_used_as_is(self):
        form = make_form()
        custom = SubmitResponse(success=True, js="go()")
        form.on_submit(lambda ctx: custom)

        assert await form.handle_submit(SubmitContext({"name": "Ann"})) is custom

    @pytest.mark.asyncio
    async def test_direct_output_is_reported(self):
        saved = []
        form = make_form(person_model(saved))
        form.on_submit(lambda ctx: print("debugging"))

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.success is False
        assert response.kind is ErrorKind.DIRECT_OUTPUT
        assert "Direct Output Detected" in response.message
        assert "debugging" in response.message
        assert saved == []

    @pytest.mark.asyncio
    async def test_proxy_model_reports_unhandled_submission(self):
        form = Form(name="bare")
        form.add_field("q")

        response = await form.handle_submit(SubmitContext({"q": "x"}))

        assert response.success
        assert response.js == 'console.log("Form submission is not handled");'

    @pytest.mark.asyncio
    async def test_framework_error_uses_window(self):
        form = make_form()

        def fail(ctx):
            raise FormworkError("Backend unavailable", service="mail")

        form.on_submit(fail)
        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.success is False
        assert response.kind is ErrorKind.FRAMEWORK
        assert response.use_window is True
        assert "Backend unavailable" in response.message
        assert "service" in response.message

    @pytest.mark.asyncio
    async def test_generic_error_does_not_use_window(self):
        form = make_form()
        form.on_submit(lambda ctx: 1 / 0)

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.success is False
        assert response.kind is ErrorKind.GENERIC
        assert response.use_window is False
        assert "ZeroDivisionError" in response.message
        assert response.to_dict()["useWindow"] is False

    @pytest.mark.asyncio
    async def test_unsupported_result_is_a_framework_error(self):
        form = make_form()
        form.on_submit(lambda ctx: 42)

        response = await form.handle_submit(SubmitContext({"name": "Ann"}))

        assert response.kind is ErrorKind.FRAMEWORK


class TestSubmitResponse:
    def test_success_body(self):
        response = SubmitResponse.from_actions([JsExpression("a()")])
        assert response.to_dict() == {"success": True, "js": "a();"}

    def test_failure_body_carries_use_window(self):
        response = SubmitResponse(success=False, message="Nope", errors={"a": "Bad"})
        assert response.to_dict() == {
            "success": False,
            "message": "Nope",
            "useWindow": False,
            "errors": {"a": "Bad"},
        }

    def test_error_block_escapes_plain_exceptions(self):
        html = str(error_block(ValueError("<b>bad</b>\nsecond")))
        assert '<div class="header"> ValueError </div>' in html
        assert "&lt;b&gt;bad&lt;/b&gt;<br>\nsecond" in html


class TestSubmitContext:
    @pytest.mark.asyncio
    async def test_from_request_keeps_string_values(self, mock_request_factory):
        request = mock_request_factory(form_data={"name": "Ann", "upload": object()})
        ctx = await SubmitContext.from_request(request)
        assert ctx.data == {"name": "Ann"}
        assert ctx.request is request


class TestConcurrentSubmissions:
    @pytest.mark.asyncio
    async def test_output_is_charged_to_the_printing_handler_only(self, capsys):
        quiet = Form(name="quiet")
        quiet.set_model(person_model())
        noisy = Form(name="noisy")
        noisy.set_model(person_model())

        @quiet.on_submit
        async def wait(ctx):
            await asyncio.sleep(0.01)

        @noisy.on_submit
        async def chatter(ctx):
            await asyncio.sleep(0)
            print("debugging")
            await asyncio.sleep(0.02)

        quiet_response, noisy_response = await asyncio.gather(
            quiet.handle_submit(SubmitContext({"name": "Ann"})),
            noisy.handle_submit(SubmitContext({"name": "Bob"})),
        )

        assert quiet_response.success
        assert noisy_response.kind is ErrorKind.DIRECT_OUTPUT
        assert "debugging" in noisy_response.message

        print("after")
        assert capsys.readouterr().out == "after\n"

import pytest

from step_executor.actions import Fill, Navigate, Press, Verify, Wait, build_action
from step_executor.errors import InvalidStepError, UnknownActionError
from step_executor.models import ActionKind, ActionStep


@pytest.mark.parametrize("name, kind", [
    ("navigate", ActionKind.NAVIGATE),
    ("GOTO", ActionKind.NAVIGATE),
    ("Type", ActionKind.FILL),
    ("assert", ActionKind.VERIFY),
    (" hover ", ActionKind.HOVER),
])
def test_action_names_resolve_case_insensitively(name, kind):
    assert ActionKind.resolve(name) is kind


def test_unknown_names_do_not_resolve():
    assert ActionKind.resolve("teleport") is None
    assert ActionKind.resolve(None) is None


def test_from_dict_is_lenient_about_content():
    step = ActionStep.from_dict({"action": 7, "value": 1500, "options": "visible", "critical": "no"})
    assert step.action == ""
    assert step.value == "1500"
    assert step.options == {}
    assert step.critical is None
    assert step.is_critical() is True
    assert step.is_critical(default=False) is False


def test_unknown_action_is_rejected():
    with pytest.raises(UnknownActionError, match="teleport"):
        build_action(ActionStep(action="teleport"))


def test_goto_alias_builds_navigate_and_accepts_selector_as_url():
    assert build_action(ActionStep(action="goto", selector="https://x")) == Navigate(url="https://x")


def test_fill_without_value_is_rejected_before_execution():
    with pytest.raises(InvalidStepError, match="value"):
        build_action(ActionStep(action="fill", selector="#user"))


def test_fill_allows_empty_text():
    assert build_action(ActionStep(action="type", selector="#user", value="")) == Fill(selector="#user", text="")


def test_click_requires_selector():
    with pytest.raises(InvalidStepError, match="selector"):
        build_action(ActionStep(action="click"))


def test_press_defaults_to_page():
    assert build_action(ActionStep(action="press", value="Enter")) == Press(key="Enter")


def test_wait_parses_duration_and_rejects_garbage():
    assert build_action(ActionStep(action="wait", value="750")) == Wait(duration_ms=750)
    assert build_action(ActionStep(action="wait")) == Wait()
    assert build_action(ActionStep(action="wait", selector=".done")) == Wait(selector=".done")
    with pytest.raises(InvalidStepError):
        build_action(ActionStep(action="wait", value="soon"))


def test_verify_text_flag_takes_expected_text_from_value():
    step = ActionStep(action="verify", selector=".login_logo", value="Swag Labs", options={"text": True})
    assert build_action(step) == Verify(selector=".login_logo", text="Swag Labs")


def test_verify_text_string_is_the_expected_text():
    step = ActionStep(action="assert", selector="h1", options={"text": "Products"})
    assert build_action(step) == Verify(selector="h1", text="Products")


def test_verify_text_flag_without_value_is_rejected():
    with pytest.raises(InvalidStepError):
        build_action(ActionStep(action="verify", selector="h1", options={"text": True}))


def test_verify_keeps_visibility_and_enabled_flags():
    step = ActionStep(action="verify", selector="#btn", options={"visible": False, "enabled": True})
    assert build_action(step) == Verify(selector="#btn", visible=False, enabled=True)


def test_verify_reads_string_flags_by_their_words():
    step = ActionStep(action="verify", selector="#btn", options={"visible": "false", "enabled": " True "})
    assert build_action(step) == Verify(selector="#btn", visible=False, enabled=True)


def test_verify_rejects_ambiguous_string_flags():
    step = ActionStep(action="verify", selector="#btn", options={"visible": "maybe"})
    with pytest.raises(InvalidStepError, match="visible"):
        build_action(step)

from __future__ import annotations

import pytest
from pydantic import ValidationError

from unibot import logging_utils
from unibot.config import Settings, get_settings
from unibot.errors import DeadlineExceeded, ParseError
from unibot.types import PlatformType


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNIBOT_PLATFORM", "vk")
    monkeypatch.setenv("UNIBOT_VK_CONFIRMATION_TOKEN", "confirm-me")
    monkeypatch.setenv("UNIBOT_IS_LOCAL_STORAGE", "true")

    settings = Settings(_env_file=None)

    assert settings.platform is PlatformType.VK
    assert settings.vk_confirmation_token == "confirm-me"
    assert settings.is_local_storage is True


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.viber_api_version == 2
    assert settings.log_profile == "default"


def test_settings_are_frozen() -> None:
    settings = Settings(_env_file=None)

    with pytest.raises(ValidationError):
        settings.platform = PlatformType.VK  # type: ignore[misc]


def test_settings_reject_unknown_platform() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, platform="icq")


def test_error_messages() -> None:
    assert str(ParseError("alisa", "empty request")) == "alisa: empty request"
    error = DeadlineExceeded("smart_app", 3.0, 2.8)
    assert str(error) == "smart_app: response took 3.000s, budget is 2.800s"
    assert error.budget == 2.8


def test_get_settings_configures_logging_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging_utils, "_CONFIGURED_PROFILE", None)
    added: list[object] = []
    patchers: list[object] = []

    class FakeLogger:
        def add(self, sink: object, **kwargs: object) -> int:
            added.append(sink)
            return len(added)

        def remove(self, *args: object) -> None:
            return None

        def configure(self, **kwargs: object) -> None:
            patchers.append(kwargs.get("patcher"))

    monkeypatch.setattr(logging_utils, "logger", FakeLogger())

    settings = get_settings(_env_file=None, log_profile="console")
    get_settings(_env_file=None, log_profile="console")

    assert settings.log_profile == "console"
    assert len(added) == 1
    assert isinstance(added[0], logging_utils.RichHandler)
    assert patchers == [logging_utils.inject_turn]


def test_turn_context_labels_records_and_resets() -> None:
    assert logging_utils.current_turn() == logging_utils.NO_TURN

    with logging_utils.turn_context("telegram", "4242") as label:
        assert label == "telegram:4242"
        record: dict[str, dict[str, str]] = {"extra": {}}
        logging_utils.inject_turn(record)  # type: ignore[arg-type]
        assert record["extra"]["turn"] == "telegram:4242"

    with logging_utils.turn_context("alisa", None):
        assert logging_utils.current_turn() == "alisa:-"

    assert logging_utils.current_turn() == logging_utils.NO_TURN

import pytest

from api_envelope.config import Environment, Settings


@pytest.mark.parametrize(
    "environment, diagnostic",
    [("development", True), ("production", False), ("test", False)],
)
def test_only_development_is_diagnostic(environment: Environment, diagnostic: bool) -> None:
    assert Settings(environment=environment).is_diagnostic is diagnostic


def test_environment_is_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("API_PREFIX", "/api/v2")

    settings = Settings()

    assert settings.is_diagnostic
    assert settings.api_prefix == "/api/v2"

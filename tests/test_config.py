from dev_doctor.advisory import AdvisoryActive, AdvisoryDisabled, advisory_state
from dev_doctor.config import DEFAULT_TIMEOUT, load_advisory_config


def test_empty_environment_is_disabled():
    config = load_advisory_config({})
    assert config.provider == "openai"
    assert config.api_key is None
    assert config.enabled is False
    assert config.timeout == DEFAULT_TIMEOUT
    assert isinstance(advisory_state(config), AdvisoryDisabled)


def test_key_enables_by_default():
    config = load_advisory_config({"DEV_DOCTOR_AI_API_KEY": "sk-abc", "DEV_DOCTOR_AI_MODEL": "gpt-4o"})
    assert config.enabled is True
    assert config.model == "gpt-4o"
    assert isinstance(advisory_state(config), AdvisoryActive)


def test_provider_specific_key_fallback():
    config = load_advisory_config({"DEV_DOCTOR_AI_PROVIDER": "Anthropic", "ANTHROPIC_API_KEY": "ak"})
    assert config.provider == "anthropic"
    assert config.api_key == "ak"
    assert load_advisory_config({"ANTHROPIC_API_KEY": "ak"}).api_key is None


def test_explicit_disable_wins():
    environ = {"OPENAI_API_KEY": "sk", "DEV_DOCTOR_AI_ENABLED": "yes"}
    assert load_advisory_config(environ).enabled is True
    assert load_advisory_config(environ, disabled=True).enabled is False
    assert load_advisory_config({"OPENAI_API_KEY": "sk", "DEV_DOCTOR_AI_ENABLED": "false"}).enabled is False


def test_overrides_take_precedence():
    config = load_advisory_config(
        {"DEV_DOCTOR_AI_API_KEY": "env-key", "DEV_DOCTOR_AI_MODEL": "env-model"},
        provider="anthropic",
        api_key="cli-key",
        model="cli-model",
    )
    assert (config.provider, config.api_key, config.model) == ("anthropic", "cli-key", "cli-model")


def test_invalid_timeout_falls_back():
    assert load_advisory_config({"DEV_DOCTOR_AI_TIMEOUT": "soon"}).timeout == DEFAULT_TIMEOUT
    assert load_advisory_config({"DEV_DOCTOR_AI_TIMEOUT": "5"}).timeout == 5.0

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.config.config_template import load_templated_yaml
from src.storefront.runtime.config.settings import EnvironmentVariables


@dataclass
class AppContext:
    """Application context containing configuration and other app-wide state."""

    config: ConfigData


def config_path(env: EnvironmentVariables | None = None) -> Path:
    return Path((env or EnvironmentVariables()).app_config_file)


# Global configuration instance; .env values feed the ${VAR} placeholders
load_dotenv()
_env = EnvironmentVariables()
_default_context = AppContext(
    config=load_templated_yaml(config_path(_env), env_mode=_env.app_environment)
)

_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=_default_context
)


def get_context() -> AppContext:
    """Get the current application context."""
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Set the current application context.

    Args:
        context: AppContext instance to set as current.
    """
    return _app_context.set(context)


def set_config(config: ConfigData) -> None:
    """Replace the configuration of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    """Convenience function to get the current configuration."""
    return get_context().config


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily run with a different configuration.

    Example:
        config = get_config().model_copy(deep=True)
        config.orders.debit_stock = False
        with with_context(config):
            assert get_config().orders.debit_stock is False
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    token = set_context(replace(get_context(), config=config_override))
    try:
        yield
    finally:
        _app_context.reset(token)

from .settings import FormatterConfig, DEFAULT_CONF_DIR

__all__ = ["FormatterConfig", "DEFAULT_CONF_DIR"]

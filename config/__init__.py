import os

_ENV_MODULES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    """Settings module named by APP_ENV; unknown values fall back to development."""
    return _ENV_MODULES.get(os.getenv("APP_ENV", "development").strip().lower(), "config.development")

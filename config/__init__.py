import os

# Alias APP_ENV -> module de configuration
_ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
    "dev": "config.development",
    "development": "config.development",
}


def get_settings_module() -> str:
    # Valeur inconnue ou absente : on retombe sur development
    env = os.getenv("APP_ENV", "development").strip().lower()
    return _ENVIRONMENTS.get(env, "config.development")

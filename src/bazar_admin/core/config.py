import os

# In a real deployment, load these from the environment or a secrets manager
SECRET_KEY: str = os.getenv(
    "SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!"
)
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./bazar_admin.sqlite3")

# Used to build links in moderation e-mails sent to sellers
PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://example.com").rstrip("/")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma separated logger prefixes, e.g. "bazar_admin.features.reports,bazar_admin.main"
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]

MODEL_MODULES: list[str] = [
    "bazar_admin.features.auth.models",
    "bazar_admin.features.articles.models",
    "bazar_admin.features.reports.models",
    "bazar_admin.features.audit.models",
    "bazar_admin.features.notifications.models",
]

# Also referenced by Aerich (see [tool.aerich] in pyproject.toml)
TORTOISE_ORM = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {
            "models": [*MODEL_MODULES, "aerich.models"],
            "default_connection": "default",
        }
    },
    "use_tz": False,
    "timezone": "UTC",
}

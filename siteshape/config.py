"""
Runtime settings, read from the environment.
CLI flags take their defaults from here and override them.
"""

import os


class Settings:
    """siteshape settings from environment variables"""

    USER_AGENT: str = os.getenv("SITESHAPE_USER_AGENT", "siteshape/0.1")
    TIMEOUT: float = float(os.getenv("SITESHAPE_TIMEOUT", "15.0"))
    CONCURRENCY: int = int(os.getenv("SITESHAPE_CONCURRENCY", "10"))
    STORE_DIR: str = os.getenv("SITESHAPE_STORE_DIR", "projects")
    LOG_LEVEL: str = os.getenv("SITESHAPE_LOG_LEVEL", "WARNING")


settings = Settings()

"""
config.py

Configuration management for flat_db.
Values come from the environment first, then from a .env.local / .env file
in the working directory, then from the defaults below.
"""
import os

DEFAULT_DB_PATH = "tables"
DEFAULT_EXTENSION = ".csv"
DEFAULT_LOG_LEVEL = "WARNING"


def load_env_file(directory=None):
    """Load KEY=VALUE pairs from .env.local or .env (first file found wins per key)."""
    directory = directory or os.getcwd()
    env_vars = {}
    for candidate in (
        os.path.join(directory, ".env.local"),
        os.path.join(directory, ".env"),
    ):
        if not os.path.exists(candidate):
            continue
        with open(candidate, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                env_vars.setdefault(k.strip(), v.strip().strip("'\""))
    return env_vars


def _lookup(key, default, env_vars):
    return os.environ.get(key, env_vars.get(key, default))


def get_db_config(env_vars=None):
    """Get table store configuration."""
    if env_vars is None:
        env_vars = load_env_file()

    extension = _lookup("FLAT_DB_EXTENSION", DEFAULT_EXTENSION, env_vars)
    if extension and not extension.startswith("."):
        extension = "." + extension

    return {
        "path": _lookup("FLAT_DB_PATH", DEFAULT_DB_PATH, env_vars),
        "extension": extension,
    }


def get_log_config(env_vars=None):
    """Get logging level and optional log file."""
    if env_vars is None:
        env_vars = load_env_file()

    return {
        "level": _lookup("FLAT_DB_LOG_LEVEL", DEFAULT_LOG_LEVEL, env_vars).upper(),
        "file": _lookup("FLAT_DB_LOG_FILE", "", env_vars) or None,
    }


def get_server_config(env_vars=None):
    """Get server host and port configuration."""
    if env_vars is None:
        env_vars = load_env_file()

    return {
        "host": _lookup("HOST", "127.0.0.1", env_vars),
        "port": int(_lookup("PORT", "8000", env_vars)),
    }

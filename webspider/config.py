import os
import logging
from pathlib import Path

from dotenv import load_dotenv

loaded = load_dotenv()
if not loaded and Path(".env").exists():
	raise RuntimeError(".env file present but failed to load")


def get_str_env(name: str, default: str) -> str:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	return raw


def get_int_env(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return int(raw)
	except ValueError:
		logging.exception("Invalid %s: %r", name, raw)
		return default


def get_float_env(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return float(raw)
	except ValueError:
		logging.exception("Invalid %s: %r", name, raw)
		return default


def max_workers() -> int:
	return get_int_env("WEBSPIDER_MAX_WORKERS", 1)


def max_allowed_workers() -> int:
	return get_int_env("WEBSPIDER_MAX_ALLOWED_WORKERS", 99)


def poll_interval_seconds() -> float:
	return get_float_env("WEBSPIDER_POLL_INTERVAL", 0.01)


def seeds_file() -> str:
	return get_str_env("WEBSPIDER_SEEDS_FILE", "seeds.yml")


def log_level() -> str:
	return get_str_env("LOG_LEVEL", "INFO").strip().upper()

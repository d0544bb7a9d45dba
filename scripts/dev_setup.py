"""Configure development environment variables and initialise the database."""
from __future__ import annotations

import argparse
import secrets
import shutil
from pathlib import Path
from typing import Dict

from scriptorium import create_app, db

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create or update a .env file with the settings required for local development "
            "and initialise the SQLite database."
        )
    )
    parser.add_argument(
        "--flask-app",
        default="wsgi.py",
        help="Entry point used by Flask (default: wsgi.py)",
    )
    parser.add_argument(
        "--secret-key",
        help=(
            "Secret key for Flask sessions. If omitted, the current value in .env is kept "
            "or a random key is generated."
        ),
    )
    parser.add_argument("--llm-api-key", help="API key for the OpenAI-compatible endpoint (optional).")
    parser.add_argument(
        "--llm-base-url",
        help="Base URL of an OpenAI-compatible endpoint, e.g. https://api.groq.com/openai/v1 (optional).",
    )
    parser.add_argument("--llm-model", help="Model used by the writing assistant (optional).")
    parser.add_argument(
        "--local-model-path",
        help="Path to a local Hugging Face model used when no API key is set (optional).",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL (optional).")
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="Path to the .env file that should be created/updated.",
    )
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only update the .env file without touching the database.",
    )
    return parser.parse_args()


def read_env(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    data: Dict[str, str] = {}
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        data[key.strip()] = value.strip()
    return data


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Existing {path.name} backed up to {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Updated environment variables written to {path}.")


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    env_data = read_env(args.env_path)
    env_updates = {"FLASK_APP": args.flask_app}
    if args.secret_key:
        env_updates["SECRET_KEY"] = args.secret_key
    elif "SECRET_KEY" not in env_data:
        env_updates["SECRET_KEY"] = secrets.token_hex(32)

    optional = {
        "LLM_API_KEY": args.llm_api_key,
        "LLM_BASE_URL": args.llm_base_url,
        "LLM_MODEL": args.llm_model,
        "TEXT_GENERATOR_MODEL_PATH": args.local_model_path,
        "DATABASE_URL": args.database_url,
    }
    env_updates.update({key: value for key, value in optional.items() if value})

    env_data.update(env_updates)
    write_env(args.env_path, env_data)
    return env_data


def initialize_database() -> None:
    app = create_app()
    with app.app_context():
        db.create_all()
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
    print(f"Database initialised ({uri}).")


def _redacted(key: str, value: str) -> str:
    if key.endswith("_KEY") and value:
        return value[:4] + "..."
    return value


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if not args.skip_db:
        initialize_database()
    else:
        print("Database initialisation skipped.")

    print("\nSetup complete! Summary:")
    for key in sorted(env_values):
        print(f"  {key}={_redacted(key, env_values[key])}")


if __name__ == "__main__":
    main()

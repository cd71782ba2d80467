"""
Diagnostic script to check .env loading and Gemini configuration.
Run this to troubleshoot environment variable issues before starting the server.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def masked(value: str, keep: int = 8) -> str:
    return value[:keep] + "..." if len(value) > keep else value


def main() -> int:
    print("\n" + "=" * 60)
    print("ENVIRONMENT DIAGNOSTICS")
    print("=" * 60 + "\n")

    print(f"Python: {sys.version.split()[0]}")

    env_path = Path(__file__).parent / ".env"
    print(f".env file: {env_path} (exists: {env_path.exists()})")
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)

    api_key = os.environ.get("GEMINI_API_KEY")
    print()
    if api_key:
        print(f"GEMINI_API_KEY: {masked(api_key)} ({len(api_key)} chars)")
        print(f"GEMINI_MODEL: {os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')}")
        print(f"GEMINI_REQUESTS_PER_MINUTE: {os.environ.get('GEMINI_REQUESTS_PER_MINUTE', '15')}")
        print("Layouts will be requested from Gemini first.")
    else:
        print("GEMINI_API_KEY: not set")
        print("Layouts will come from local heuristics only.")
        print("  To enable Gemini: add GEMINI_API_KEY=your_key to .env and restart.")

    print()
    print(f"DESIGN_STORAGE_DIR: {os.environ.get('DESIGN_STORAGE_DIR', 'storage/designs')}")
    print(f"DESIGN_SIMULATED_DELAY: {os.environ.get('DESIGN_SIMULATED_DELAY', '0')}")
    print(f"LOG_LEVEL: {os.environ.get('LOG_LEVEL', 'INFO')}")

    print("\n" + "=" * 60)
    print("Start the server with: uvicorn app.main:app --reload")
    print("=" * 60 + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

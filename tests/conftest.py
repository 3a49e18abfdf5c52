# ABOUTME: Pytest hooks and shared fixtures. Keeps the habit DB off disk unless a test patches its own engine.
# ABOUTME: Loads .env so integration tests (e.g. test_evals) have GEMINI_API_KEY when run via pytest.

import os

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

# Read by core.database at import time.
os.environ.setdefault("HABITS_DB_PATH", ":memory:")

import os

# Settings are read at import time
os.environ.setdefault("TRANSOM_SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("TRANSOM_SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("TRANSOM_ENABLE_RATE_LIMITING", "false")
os.environ.setdefault("TRANSOM_AUTOSAVE_QUIET_PERIOD", "0.05")

import os
import sys
from pathlib import Path

os.environ.setdefault("API_ACCESS_KEY", "test-access")
os.environ.setdefault("API_SECRET_KEY", "test-secret")

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

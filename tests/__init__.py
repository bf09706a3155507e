"""
Request Router Test Suite

Unit tests for classification, routing, orchestration and session handling.
Run tests with: pytest tests/
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Session context used by follow-up ("make it darker") tests
RECENT_FILE = "src/enlightenment-breathing.html"

__all__ = [
    "RECENT_FILE",
]

"""
Pytest configuration for planeseam tests.
Adds the src directory and the repository root to sys.path so that
`import planeseam` and `from tests.test_fixtures import ...` work from a checkout.
"""
import sys
from pathlib import Path

root_path = Path(__file__).parent.parent
src_path = root_path / "src"
for path in (src_path, root_path):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

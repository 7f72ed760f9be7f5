# tests/conftest.py

import os
import sys
import tempfile
from pathlib import Path

# Add project root so `src` is importable without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Keep chart files out of the working tree; must run before src.mcp is imported
_scratch = Path(tempfile.mkdtemp(prefix="chart-tests-"))
os.environ["CHART_STORAGE_BACKEND"] = "local"
os.environ["CHART_PATH"] = str(_scratch / "generated_charts")
os.environ["CHART_TMP_DIR"] = str(_scratch / "tmp")

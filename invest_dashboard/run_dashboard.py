"""Launch the investment dashboard with Streamlit."""
import os
import subprocess
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    app_path = os.path.join(os.path.dirname(__file__), "app.py")
    extra = sys.argv[1:] if argv is None else argv
    return subprocess.call([sys.executable, "-m", "streamlit", "run", app_path, *extra])


if __name__ == "__main__":
    raise SystemExit(main())

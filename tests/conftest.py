import sys
from pathlib import Path

# teerr is a script in python/, not an installed package.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "python"))

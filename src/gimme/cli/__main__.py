"""
Allow running gimme as a module: python -m gimme.cli
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())

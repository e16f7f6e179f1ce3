"""Launch the Docker subdomain proxy.

    python main.py

Configuration comes from DSP_* environment variables (see dsp/settings.py).
"""
from __future__ import annotations

import sys

from dsp.server import main


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""RoundTimer entry point.

Run with:
    python main.py
    python -m roundtimer
"""

from roundtimer.__main__ import main


if __name__ == "__main__":
    main()

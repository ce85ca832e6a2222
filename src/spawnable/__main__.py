"""spawnable entry point.

Supports: python -m spawnable -- CMD [ARGS...]
"""

from .cli import main

if __name__ == "__main__":
    main()
